import mongomock
import pytest
from fastapi.testclient import TestClient

from psychconnect.config import settings
from psychconnect.database import APPOINTMENT_REQUESTS, PATIENTS, PSYCHIATRISTS, get_database
from psychconnect.main import app

ADMIN_EMAIL = "admin@example.com"


@pytest.fixture
def db():
    mongo = mongomock.MongoClient()
    database = mongo["PsychConnectTest"]
    yield database
    mongo.drop_database("PsychConnectTest")


@pytest.fixture
def client(db, monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_EMAILS", [ADMIN_EMAIL])
    app.dependency_overrides[get_database] = lambda: db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def psychiatrist(db):
    document = {
        "name": "Dr. Ada Moreno",
        "specialty": "Child and Adolescent Psychiatry",
        "location": "Boston, MA",
        "bio": "Focuses on anxiety and mood disorders.",
        "email": "ada.moreno@example.com",
    }
    db[PSYCHIATRISTS].insert_one(document)
    return document


@pytest.fixture
def other_psychiatrist(db):
    document = {
        "name": "Dr. Ben Okafor",
        "specialty": "Addiction Psychiatry",
        "location": "Chicago, IL",
        "bio": "Works with substance use and recovery.",
        "email": "ben.okafor@example.com",
    }
    db[PSYCHIATRISTS].insert_one(document)
    return document


@pytest.fixture
def patient(db):
    document = {"user_id": "user-123", "name": "Jamie Rivera", "email": "jamie@example.com"}
    db[PATIENTS].insert_one(document)
    return document


@pytest.fixture
def patient_headers(patient):
    return {"X-User-Id": patient["user_id"], "X-User-Email": patient["email"], "X-User-Role": "patient"}


@pytest.fixture
def psychiatrist_headers(psychiatrist):
    return {"X-User-Id": "doc-1", "X-User-Email": psychiatrist["email"], "X-User-Role": "psychiatrist"}


@pytest.fixture
def admin_headers():
    return {"X-User-Id": "admin-1", "X-User-Email": ADMIN_EMAIL, "X-User-Role": "admin"}


@pytest.fixture
def request_payload(psychiatrist):
    return {
        "psychiatrist_id": str(psychiatrist["_id"]),
        "patient_name": "Jamie Rivera",
        "patient_email": "jamie@example.com",
        "preferred_appointment_type": "virtual",
        "preferred_times": ["Weekday mornings", "Weekend afternoons"],
        "what_brings_you": "Trouble sleeping since changing jobs.",
        "hoping_to_work_on": ["Long-term support"],
        "other_work_on": None,
        "spoken_before": "no",
        "anything_else": None,
    }


@pytest.fixture
def insert_request(db, psychiatrist):
    def _insert(**overrides):
        document = {
            "psychiatrist_id": str(psychiatrist["_id"]),
            "patient_name": "Jamie Rivera",
            "patient_email": "jamie@example.com",
            "preferred_appointment_type": "in-person",
            "preferred_times": '["Weekday evenings"]',
            "what_brings_you": "Feeling overwhelmed.",
            "hoping_to_work_on": "Not sure yet",
            "other_work_on": None,
            "spoken_before": "yes",
            "anything_else": None,
            "status": "pending",
            "created_at": "2025-01-15T10:00:00+00:00",
        }
        document.update(overrides)
        db[APPOINTMENT_REQUESTS].insert_one(document)
        return document

    return _insert
