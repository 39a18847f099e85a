import logging
import re
from functools import lru_cache

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import MongoClient
from pymongo.server_api import ServerApi

from psychconnect.config import settings

logger = logging.getLogger(__name__)

PSYCHIATRISTS = "Psychiatrists"
PATIENTS = "Patients"
APPOINTMENT_REQUESTS = "AppointmentRequests"


@lru_cache
def get_client() -> MongoClient:
    client = MongoClient(settings.MONGO_DB_URI, server_api=ServerApi(version='1'))
    logger.info("MongoDB client created for database %s", settings.MONGO_DB_NAME)
    return client


def get_database():
    return get_client()[settings.MONGO_DB_NAME]


def to_object_id(value: str):
    """Parse a path id, returning None when it is not a valid ObjectId."""
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def email_match(email: str) -> dict:
    """Case-insensitive exact match for an email field."""
    return {"$regex": f"^{re.escape(email.strip())}$", "$options": "i"}


def serialize_document(data):
    """Expose Mongo `_id` values as string `id` keys, recursing into nested data."""
    if isinstance(data, dict):
        serialized = {}
        for key, value in data.items():
            if key == "_id":
                if isinstance(value, dict) and "$oid" in value:
                    serialized["id"] = value["$oid"]
                else:
                    serialized["id"] = str(value)
            else:
                serialized[key] = serialize_document(value)
        return serialized
    if isinstance(data, list):
        return [serialize_document(item) for item in data]
    if isinstance(data, ObjectId):
        return str(data)
    return data
