import logging

from fastapi import APIRouter, Depends, HTTPException
from pymongo.errors import PyMongoError

from psychconnect.auth import require_admin
from psychconnect.database import APPOINTMENT_REQUESTS, PSYCHIATRISTS, email_match, get_database, to_object_id
from psychconnect.lifecycle import AppointmentStatus
from psychconnect.models.psychiatrists import PsychiatristCreate, PsychiatristUpdate
from psychconnect.routers.appointments import serialize_request
from psychconnect.routers.psychiatrists import serialize_psychiatrist

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(require_admin)])


def parse_psychiatrist_id(psychiatrist_id: str):
    object_id = to_object_id(psychiatrist_id)
    if object_id is None:
        raise HTTPException(status_code=404, detail="Psychiatrist not found")
    return object_id


def ensure_email_available(collection, email: str, exclude_id=None) -> None:
    query = {"email": email_match(email)}
    if exclude_id is not None:
        query["_id"] = {"$ne": exclude_id}
    if collection.find_one(query):
        raise HTTPException(status_code=409, detail="A psychiatrist with this email already exists")


@router.get("/psychiatrists")
def list_all_psychiatrists(db=Depends(get_database)):
    try:
        psychiatrists = [serialize_psychiatrist(doc) for doc in db[PSYCHIATRISTS].find().sort("name", 1)]
    except PyMongoError as e:
        logger.error("Error fetching psychiatrists: %s", e)
        raise HTTPException(status_code=500, detail="Database query failed")
    return {"data": psychiatrists}


@router.post("/psychiatrists", status_code=201)
def create_psychiatrist(psychiatrist: PsychiatristCreate, db=Depends(get_database)):
    document = psychiatrist.model_dump()
    try:
        ensure_email_available(db[PSYCHIATRISTS], document["email"])
        database_response = db[PSYCHIATRISTS].insert_one(document)
    except PyMongoError as e:
        logger.error("Database Insertion Error: %s", e)
        raise HTTPException(status_code=500, detail="Failed to save psychiatrist")

    logger.info("New psychiatrist added with id %s", database_response.inserted_id)
    return {"message": "Psychiatrist created", "data": serialize_psychiatrist(document)}


@router.put("/psychiatrists/{psychiatrist_id}")
def update_psychiatrist(psychiatrist_id: str, psychiatrist: PsychiatristUpdate, db=Depends(get_database)):
    object_id = parse_psychiatrist_id(psychiatrist_id)
    try:
        ensure_email_available(db[PSYCHIATRISTS], psychiatrist.email, exclude_id=object_id)
        result = db[PSYCHIATRISTS].update_one({"_id": object_id}, {"$set": psychiatrist.model_dump()})
        updated = db[PSYCHIATRISTS].find_one({"_id": object_id}) if result.matched_count else None
    except PyMongoError as e:
        logger.error("Error updating psychiatrist %s: %s", psychiatrist_id, e)
        raise HTTPException(status_code=500, detail="Failed to save psychiatrist")

    if not updated:
        raise HTTPException(status_code=404, detail="Psychiatrist not found")

    logger.info("Psychiatrist %s updated", psychiatrist_id)
    return {"message": "Psychiatrist updated", "data": serialize_psychiatrist(updated)}


@router.delete("/psychiatrists/{psychiatrist_id}")
def delete_psychiatrist(psychiatrist_id: str, confirm: bool = False, db=Depends(get_database)):
    object_id = parse_psychiatrist_id(psychiatrist_id)
    if not confirm:
        raise HTTPException(status_code=400, detail="Please confirm that you want to delete this psychiatrist")
    try:
        result = db[PSYCHIATRISTS].delete_one({"_id": object_id})
    except PyMongoError as e:
        logger.error("Error deleting psychiatrist %s: %s", psychiatrist_id, e)
        raise HTTPException(status_code=500, detail="Failed to delete psychiatrist")

    if result.deleted_count == 0:
        raise HTTPException(status_code=404, detail="Psychiatrist not found")

    logger.info("Psychiatrist %s deleted", psychiatrist_id)
    return {"message": "Psychiatrist deleted"}


@router.get("/appointments")
def list_all_appointments(db=Depends(get_database)):
    try:
        cursor = db[APPOINTMENT_REQUESTS].find().sort("created_at", -1)
        requests = [serialize_request(doc, with_display=True) for doc in cursor]
    except PyMongoError as e:
        logger.error("Error fetching appointment requests: %s", e)
        raise HTTPException(status_code=500, detail="Database query failed")
    return {"data": requests}


@router.get("/dashboard")
def get_admin_dashboard(db=Depends(get_database)):
    try:
        total_psychiatrists = db[PSYCHIATRISTS].count_documents({})
        total_requests = db[APPOINTMENT_REQUESTS].count_documents({})
        pending_requests = db[APPOINTMENT_REQUESTS].count_documents({"status": AppointmentStatus.PENDING.value})
    except PyMongoError as e:
        logger.error("Error building admin dashboard: %s", e)
        raise HTTPException(status_code=500, detail="Database query failed")
    return {
        "total_psychiatrists": total_psychiatrists,
        "total_requests": total_requests,
        "pending_requests": pending_requests,
    }
