import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException
from pydantic import BaseModel
from pymongo.errors import PyMongoError

from psychconnect.config import settings
from psychconnect.database import PATIENTS, PSYCHIATRISTS, email_match, get_database
from psychconnect.lifecycle import Actor

logger = logging.getLogger(__name__)


class Session(BaseModel):
    """Identity of the caller, supplied per request by the auth provider in front of the API."""

    user_id: Optional[str] = None
    email: str
    role: Actor = Actor.PATIENT


def get_session(
    x_user_id: Optional[str] = Header(None),
    x_user_email: Optional[str] = Header(None),
    x_user_role: str = Header(Actor.PATIENT.value),
) -> Session:
    if not x_user_email or not x_user_email.strip():
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        role = Actor(x_user_role.strip().lower())
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid user role")
    return Session(user_id=x_user_id, email=x_user_email.strip(), role=role)


def get_current_psychiatrist(session: Session = Depends(get_session), db=Depends(get_database)) -> dict:
    try:
        psychiatrist = db[PSYCHIATRISTS].find_one({"email": email_match(session.email)})
    except PyMongoError as e:
        logger.error("Psychiatrist lookup failed: %s", e)
        raise HTTPException(status_code=500, detail="Database query failed")
    if not psychiatrist:
        logger.warning("No psychiatrist record for %s", session.email)
        raise HTTPException(status_code=403, detail="Psychiatrist account not found")
    return psychiatrist


def get_current_patient(session: Session = Depends(get_session), db=Depends(get_database)) -> dict:
    if not session.user_id:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        patient = db[PATIENTS].find_one({"user_id": session.user_id})
    except PyMongoError as e:
        logger.error("Patient lookup failed: %s", e)
        raise HTTPException(status_code=500, detail="Database query failed")
    if not patient:
        logger.warning("No patient record for user %s", session.user_id)
        raise HTTPException(status_code=403, detail="Patient account not found")
    return patient


def require_admin(session: Session = Depends(get_session)) -> Session:
    if session.role != Actor.ADMIN or session.email.lower() not in settings.ADMIN_EMAILS:
        logger.warning("Admin access denied for %s", session.email)
        raise HTTPException(status_code=403, detail="Admin access required")
    return session
