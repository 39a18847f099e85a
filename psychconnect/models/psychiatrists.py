from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional


class PsychiatristBase(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1)
    specialty: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1)
    bio: str = Field(..., min_length=1)
    email: EmailStr


class PsychiatristCreate(PsychiatristBase):
    pass


class PsychiatristUpdate(PsychiatristBase):
    pass


class Psychiatrist(BaseModel):
    id: str
    name: Optional[str] = None
    specialty: Optional[str] = None
    location: Optional[str] = None
    bio: Optional[str] = None
    email: Optional[str] = None
