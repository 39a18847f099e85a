import logging

from fastapi import APIRouter, Depends, HTTPException
from pymongo.errors import PyMongoError

from psychconnect.auth import Session, get_current_patient, get_session
from psychconnect.database import APPOINTMENT_REQUESTS, PATIENTS, email_match, get_database, serialize_document
from psychconnect.models.patients import Patient, PatientSignup
from psychconnect.routers.appointments import serialize_request

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/patient", tags=["Patients"])


@router.post("/signup", status_code=201)
def signup_patient(profile: PatientSignup, session: Session = Depends(get_session), db=Depends(get_database)):
    if not session.user_id:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        # One profile per auth user; signing up again refreshes name and email
        db[PATIENTS].update_one(
            {"user_id": session.user_id},
            {"$set": {"user_id": session.user_id, "name": profile.name, "email": profile.email}},
            upsert=True,
        )
        patient = db[PATIENTS].find_one({"user_id": session.user_id})
    except PyMongoError as e:
        logger.error("Error creating patient record: %s", e)
        raise HTTPException(status_code=500, detail="Database insertion failed")

    logger.info("Patient profile saved for user %s", session.user_id)
    return {"message": "Patient account ready", "patient": Patient.model_validate(serialize_document(patient)).model_dump()}


@router.get("/me")
def get_my_profile(patient: dict = Depends(get_current_patient)):
    return Patient.model_validate(serialize_document(patient)).model_dump()


@router.get("/appointments")
def get_my_appointments(
    patient: dict = Depends(get_current_patient),
    session: Session = Depends(get_session),
    db=Depends(get_database),
):
    try:
        cursor = db[APPOINTMENT_REQUESTS].find({"patient_email": email_match(session.email)}).sort("created_at", -1)
        requests = [serialize_request(doc, with_display=True) for doc in cursor]
    except PyMongoError as e:
        logger.error("Error fetching requests for %s: %s", session.email, e)
        raise HTTPException(status_code=500, detail="Failed to fetch appointment requests")

    response = {"data": requests}
    if not requests:
        response["message"] = "You haven't submitted any appointment requests yet."
    return response
