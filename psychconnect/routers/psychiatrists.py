import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pymongo.errors import PyMongoError

from psychconnect.auth import get_current_psychiatrist
from psychconnect.database import APPOINTMENT_REQUESTS, PSYCHIATRISTS, get_database, serialize_document, to_object_id
from psychconnect.lifecycle import count_by_status, group_by_status
from psychconnect.models.psychiatrists import Psychiatrist
from psychconnect.routers.appointments import serialize_request

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Psychiatrists"])


# support function
def filter_psychiatrists(records, name: str = "", location: str = "", specialty: str = ""):
    """Case-insensitive substring filters; an active filter drops rows missing that field."""
    filtered = list(records)
    for field, term in (("name", name), ("location", location), ("specialty", specialty)):
        term = (term or "").strip().lower()
        if not term:
            continue
        filtered = [
            record for record in filtered
            if isinstance(record.get(field), str) and term in record[field].lower()
        ]
    return filtered


def serialize_psychiatrist(document: dict) -> dict:
    return Psychiatrist.model_validate(serialize_document(document)).model_dump()


@router.get("/psychiatrists")
def list_psychiatrists(
    name: Optional[str] = "",
    location: Optional[str] = "",
    specialty: Optional[str] = "",
    db=Depends(get_database),
):
    try:
        records = [serialize_psychiatrist(doc) for doc in db[PSYCHIATRISTS].find().sort("name", 1)]
    except PyMongoError as e:
        logger.error("Error fetching psychiatrists: %s", e)
        raise HTTPException(status_code=500, detail="Database query failed")

    filtered = filter_psychiatrists(records, name=name, location=location, specialty=specialty)
    response = {"data": filtered, "count": len(filtered)}
    if not filtered:
        response["message"] = (
            "No psychiatrists available at this time."
            if not records
            else "No psychiatrists match your filters."
        )
    return response


@router.get("/psychiatrists/{psychiatrist_id}")
def get_psychiatrist_by_id(psychiatrist_id: str, db=Depends(get_database)):
    object_id = to_object_id(psychiatrist_id)
    if object_id is None:
        raise HTTPException(status_code=404, detail="Psychiatrist not found")
    try:
        psychiatrist = db[PSYCHIATRISTS].find_one({"_id": object_id})
    except PyMongoError as e:
        logger.error("Error fetching psychiatrist %s: %s", psychiatrist_id, e)
        raise HTTPException(status_code=500, detail="Database query failed")
    if not psychiatrist:
        raise HTTPException(status_code=404, detail="Psychiatrist not found")
    return serialize_psychiatrist(psychiatrist)


@router.post("/psychiatrist/login")
def verify_psychiatrist_login(psychiatrist: dict = Depends(get_current_psychiatrist)):
    return {"message": "Psychiatrist verified", "psychiatrist": serialize_psychiatrist(psychiatrist)}


@router.get("/psychiatrist/dashboard")
def get_psychiatrist_dashboard(psychiatrist: dict = Depends(get_current_psychiatrist), db=Depends(get_database)):
    psychiatrist_id = str(psychiatrist["_id"])
    try:
        cursor = db[APPOINTMENT_REQUESTS].find({"psychiatrist_id": psychiatrist_id}).sort("created_at", -1)
        requests = [serialize_request(doc, with_display=True) for doc in cursor]
    except PyMongoError as e:
        logger.error("Error fetching requests for psychiatrist %s: %s", psychiatrist_id, e)
        raise HTTPException(status_code=500, detail="Failed to load appointment requests")

    return {
        "psychiatrist": serialize_psychiatrist(psychiatrist),
        "summary": count_by_status(requests),
        "requests": {"all": requests, **group_by_status(requests)},
    }
