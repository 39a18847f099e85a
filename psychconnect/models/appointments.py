from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List, Literal, Any

from psychconnect.formatters import normalize_array
from psychconnect.lifecycle import AppointmentStatus

AppointmentType = Literal["in-person", "virtual", "either"]
SpokenBefore = Literal["yes", "no", "prefer-not-to-say"]


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class AppointmentRequestBase(BaseModel):
    patient_name: str = Field(..., min_length=1)
    patient_email: EmailStr
    preferred_appointment_type: Optional[AppointmentType] = None
    preferred_times: List[str] = []
    what_brings_you: str = ""
    hoping_to_work_on: List[str] = []
    other_work_on: Optional[str] = None
    spoken_before: Optional[SpokenBefore] = None
    anything_else: Optional[str] = None

    @field_validator("patient_name")
    @classmethod
    def strip_name(cls, value):
        value = value.strip()
        if not value:
            raise ValueError("Name is required")
        return value

    @field_validator("preferred_times", "hoping_to_work_on", mode="before")
    @classmethod
    def normalize_list_fields(cls, value):
        return normalize_array(value)

    @field_validator("preferred_appointment_type", "spoken_before", "other_work_on", "anything_else", mode="before")
    @classmethod
    def blank_as_missing(cls, value):
        return _blank_to_none(value)


class AppointmentRequestCreate(AppointmentRequestBase):
    psychiatrist_id: str


class AppointmentRequestUpdate(AppointmentRequestBase):
    pass


class StatusUpdate(BaseModel):
    id: str
    status: AppointmentStatus


class AppointmentRequest(BaseModel):
    id: str
    psychiatrist_id: Optional[str] = None
    patient_name: Optional[str] = None
    patient_email: Optional[str] = None
    preferred_appointment_type: Optional[str] = None
    preferred_times: List[Any] = []
    what_brings_you: Optional[str] = None
    hoping_to_work_on: List[Any] = []
    other_work_on: Optional[str] = None
    spoken_before: Optional[str] = None
    anything_else: Optional[str] = None
    status: str = AppointmentStatus.PENDING.value
    created_at: Optional[str] = None

    # Older rows were stored with a single date/time and a free-text message
    preferred_date: Optional[str] = None
    preferred_time: Optional[str] = None
    message: Optional[str] = None

    @field_validator("preferred_times", "hoping_to_work_on", mode="before")
    @classmethod
    def normalize_list_fields(cls, value):
        return normalize_array(value)

    @field_validator("created_at", "preferred_date", mode="before")
    @classmethod
    def timestamp_as_text(cls, value):
        if value is None or isinstance(value, str):
            return value
        if hasattr(value, "isoformat"):
            return value.isoformat()
        return str(value)
