from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional


class PatientSignup(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=2)
    email: EmailStr


class Patient(BaseModel):
    id: str
    user_id: str
    name: Optional[str] = None
    email: Optional[str] = None
