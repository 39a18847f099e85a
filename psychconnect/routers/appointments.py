import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pymongo.errors import PyMongoError

from psychconnect.auth import Session, get_current_patient, get_current_psychiatrist, get_session
from psychconnect.database import (
    APPOINTMENT_REQUESTS,
    PSYCHIATRISTS,
    email_match,
    get_database,
    serialize_document,
    to_object_id,
)
from psychconnect.forms import EditAppointmentForm, form_options
from psychconnect.formatters import build_detail_rows, format_timestamp, preview_text
from psychconnect.lifecycle import (
    Actor,
    AppointmentStatus,
    PatientAction,
    TransitionNotAllowed,
    LOCKED_MESSAGE,
    can_patient_modify,
    ensure_patient_can_modify,
    reconcile_other,
    validate_transition,
)
from psychconnect.models.appointments import (
    AppointmentRequest,
    AppointmentRequestCreate,
    AppointmentRequestUpdate,
    StatusUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Appointments"])


# support functions
def serialize_request(document: dict, with_display: bool = False) -> dict:
    request = AppointmentRequest.model_validate(serialize_document(document)).model_dump()
    if with_display:
        request["details"] = build_detail_rows(document)
        request["preview"] = preview_text(document.get("what_brings_you"))
        request["submitted"] = format_timestamp(document.get("created_at"))
        request["can_modify"] = can_patient_modify(document.get("status"))
    return request


def find_request_or_404(collection, appointment_id: str) -> dict:
    object_id = to_object_id(appointment_id)
    if object_id is None:
        raise HTTPException(status_code=404, detail="Appointment request not found")
    try:
        request = collection.find_one({"_id": object_id})
    except PyMongoError as e:
        logger.error("Error fetching appointment request %s: %s", appointment_id, e)
        raise HTTPException(status_code=500, detail="Database query failed")
    if not request:
        raise HTTPException(status_code=404, detail="Appointment request not found")
    return request


def ensure_patient_owns(request: dict, session: Session) -> None:
    if (request.get("patient_email") or "").lower() != session.email.lower():
        logger.warning("Patient %s tried to access request %s", session.email, request["_id"])
        raise HTTPException(status_code=403, detail="You do not have access to this appointment request")


def ensure_psychiatrist_owns(request: dict, psychiatrist: dict) -> None:
    if request.get("psychiatrist_id") != str(psychiatrist["_id"]):
        logger.warning("Psychiatrist %s tried to access request %s", psychiatrist.get("email"), request["_id"])
        raise HTTPException(status_code=403, detail="You do not have access to this appointment request")


def request_fields(payload) -> dict:
    hoping, other = reconcile_other(payload.hoping_to_work_on, payload.other_work_on)
    return {
        "patient_name": payload.patient_name,
        "patient_email": payload.patient_email,
        "preferred_appointment_type": payload.preferred_appointment_type,
        "preferred_times": list(payload.preferred_times),
        "what_brings_you": payload.what_brings_you,
        "hoping_to_work_on": hoping,
        "other_work_on": other,
        "spoken_before": payload.spoken_before,
        "anything_else": payload.anything_else,
    }


@router.post("/appointments", status_code=201)
def create_appointment_request(
    payload: AppointmentRequestCreate,
    patient: dict = Depends(get_current_patient),
    db=Depends(get_database),
):
    psychiatrist_id = to_object_id(payload.psychiatrist_id)
    try:
        psychiatrist = db[PSYCHIATRISTS].find_one({"_id": psychiatrist_id}) if psychiatrist_id else None
    except PyMongoError as e:
        logger.error("Error fetching psychiatrist %s: %s", payload.psychiatrist_id, e)
        raise HTTPException(status_code=500, detail="Database query failed")
    if not psychiatrist:
        raise HTTPException(status_code=404, detail="Psychiatrist not found")

    request = request_fields(payload)
    request["psychiatrist_id"] = str(psychiatrist["_id"])
    request["status"] = AppointmentStatus.PENDING.value
    request["created_at"] = datetime.now(timezone.utc).isoformat()

    try:
        database_response = db[APPOINTMENT_REQUESTS].insert_one(request)
    except PyMongoError as e:
        logger.error("Database Insertion Error: %s", e)
        raise HTTPException(status_code=500, detail="Database insertion failed")

    logger.info("New appointment request %s for psychiatrist %s", database_response.inserted_id, request["psychiatrist_id"])
    return {"message": "Appointment request submitted.", "data": serialize_request(request)}


@router.get("/appointments")
def get_psychiatrist_appointments(
    psychiatrist_id: Optional[str] = Query(None, alias="psychiatristId"),
    psychiatrist: dict = Depends(get_current_psychiatrist),
    db=Depends(get_database),
):
    own_id = str(psychiatrist["_id"])
    if psychiatrist_id and psychiatrist_id != own_id:
        raise HTTPException(status_code=403, detail="You can only view your own appointment requests")
    try:
        cursor = db[APPOINTMENT_REQUESTS].find({"psychiatrist_id": own_id}).sort("created_at", -1)
        requests = [serialize_request(doc, with_display=True) for doc in cursor]
    except PyMongoError as e:
        logger.error("Error fetching requests for psychiatrist %s: %s", own_id, e)
        raise HTTPException(status_code=500, detail="Failed to fetch appointment requests")
    return {"data": requests}


@router.put("/appointments/update")
def update_appointment_status(
    update: StatusUpdate,
    psychiatrist: dict = Depends(get_current_psychiatrist),
    db=Depends(get_database),
):
    collection = db[APPOINTMENT_REQUESTS]
    request = find_request_or_404(collection, update.id)
    ensure_psychiatrist_owns(request, psychiatrist)

    try:
        new_status = validate_transition(request.get("status"), update.status, Actor.PSYCHIATRIST)
    except TransitionNotAllowed as e:
        raise HTTPException(status_code=409, detail=str(e))

    try:
        collection.update_one({"_id": request["_id"]}, {"$set": {"status": new_status.value}})
    except PyMongoError as e:
        logger.error("Error updating status of %s: %s", update.id, e)
        raise HTTPException(status_code=500, detail="Database update failed")

    logger.info("Request %s status %s -> %s", update.id, request.get("status"), new_status.value)
    request["status"] = new_status.value
    return {"message": "Status updated", "data": serialize_request(request)}


@router.get("/appointments/{appointment_id}/details")
def get_appointment_details(
    appointment_id: str,
    session: Session = Depends(get_session),
    db=Depends(get_database),
):
    request = find_request_or_404(db[APPOINTMENT_REQUESTS], appointment_id)

    try:
        psychiatrist = db[PSYCHIATRISTS].find_one({"email": email_match(session.email)})
    except PyMongoError as e:
        logger.error("Psychiatrist lookup failed: %s", e)
        raise HTTPException(status_code=500, detail="Database query failed")

    # Either the owning psychiatrist or the patient who submitted it
    if psychiatrist and request.get("psychiatrist_id") == str(psychiatrist["_id"]):
        return serialize_request(request, with_display=True)
    ensure_patient_owns(request, session)
    return serialize_request(request, with_display=True)


@router.get("/appointments/{appointment_id}/edit")
def get_edit_form(
    appointment_id: str,
    patient: dict = Depends(get_current_patient),
    session: Session = Depends(get_session),
    db=Depends(get_database),
):
    request = find_request_or_404(db[APPOINTMENT_REQUESTS], appointment_id)
    ensure_patient_owns(request, session)
    try:
        ensure_patient_can_modify(request.get("status"), PatientAction.EDIT)
    except TransitionNotAllowed as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {
        "id": appointment_id,
        "form": EditAppointmentForm.from_record(request).model_dump(),
        "options": form_options(),
    }


@router.put("/appointments/{appointment_id}")
def edit_appointment_request(
    appointment_id: str,
    update: AppointmentRequestUpdate,
    patient: dict = Depends(get_current_patient),
    session: Session = Depends(get_session),
    db=Depends(get_database),
):
    collection = db[APPOINTMENT_REQUESTS]
    request = find_request_or_404(collection, appointment_id)
    ensure_patient_owns(request, session)
    try:
        ensure_patient_can_modify(request.get("status"), PatientAction.EDIT)
    except TransitionNotAllowed as e:
        raise HTTPException(status_code=409, detail=str(e))

    fields = request_fields(update)
    try:
        # The status filter re-checks pending at write time
        result = collection.update_one(
            {"_id": request["_id"], "status": AppointmentStatus.PENDING.value},
            {"$set": fields},
        )
    except PyMongoError as e:
        logger.error("Error updating appointment request %s: %s", appointment_id, e)
        raise HTTPException(status_code=500, detail="Failed to update appointment")

    if result.matched_count == 0:
        raise HTTPException(status_code=409, detail=LOCKED_MESSAGE)

    logger.info("Appointment request %s updated by patient", appointment_id)
    request.update(fields)
    return {"message": "Appointment request updated.", "data": serialize_request(request)}


@router.delete("/appointments/{appointment_id}")
def cancel_appointment_request(
    appointment_id: str,
    confirm: bool = False,
    patient: dict = Depends(get_current_patient),
    session: Session = Depends(get_session),
    db=Depends(get_database),
):
    collection = db[APPOINTMENT_REQUESTS]
    request = find_request_or_404(collection, appointment_id)
    ensure_patient_owns(request, session)
    try:
        ensure_patient_can_modify(request.get("status"), PatientAction.CANCEL)
    except TransitionNotAllowed as e:
        raise HTTPException(status_code=409, detail=str(e))

    if not confirm:
        raise HTTPException(
            status_code=400,
            detail="Please confirm that you want to cancel this appointment request",
        )

    try:
        result = collection.delete_one({"_id": request["_id"], "status": AppointmentStatus.PENDING.value})
    except PyMongoError as e:
        logger.error("Error cancelling appointment request %s: %s", appointment_id, e)
        raise HTTPException(status_code=500, detail="Failed to cancel appointment")

    if result.deleted_count == 0:
        raise HTTPException(status_code=409, detail=LOCKED_MESSAGE)

    logger.info("Appointment request %s cancelled by patient", appointment_id)
    return {"message": "Appointment request cancelled."}
