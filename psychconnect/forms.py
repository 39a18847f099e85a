"""Edit-form state for a patient's pending appointment request."""
from typing import Any, List, get_args

from pydantic import BaseModel

from psychconnect.formatters import normalize_array
from psychconnect.lifecycle import OTHER_MARKER, reconcile_other
from psychconnect.models.appointments import AppointmentType, SpokenBefore

PREFERRED_TIME_OPTIONS = [
    "Weekday mornings",
    "Weekday afternoons",
    "Weekday evenings",
    "Weekend mornings",
    "Weekend afternoons",
]

HOPING_TO_WORK_ON_OPTIONS = [
    "Short-term support (specific situation)",
    "Long-term support",
    "Understanding patterns or challenges",
    "Discussing coping strategies",
    "Not sure yet",
]

APPOINTMENT_TYPE_OPTIONS = list(get_args(AppointmentType))
SPOKEN_BEFORE_OPTIONS = list(get_args(SpokenBefore))


def form_options() -> dict:
    """Choices shown by the edit form, keyed by field name."""
    return {
        "preferred_appointment_type": list(APPOINTMENT_TYPE_OPTIONS),
        "preferred_times": list(PREFERRED_TIME_OPTIONS),
        "hoping_to_work_on": [*HOPING_TO_WORK_ON_OPTIONS, OTHER_MARKER],
        "spoken_before": list(SPOKEN_BEFORE_OPTIONS),
    }


class EditAppointmentForm(BaseModel):
    name: str = ""
    email: str = ""
    preferred_appointment_type: str = ""
    preferred_times: List[Any] = []
    what_brings_you: str = ""
    hoping_to_work_on: List[Any] = []
    other_work_on: str = ""
    spoken_before: str = ""
    anything_else: str = ""

    @classmethod
    def from_record(cls, record: dict) -> "EditAppointmentForm":
        return cls(
            name=record.get("patient_name") or "",
            email=record.get("patient_email") or "",
            preferred_appointment_type=record.get("preferred_appointment_type") or "",
            preferred_times=normalize_array(record.get("preferred_times")),
            what_brings_you=record.get("what_brings_you") or "",
            hoping_to_work_on=normalize_array(record.get("hoping_to_work_on")),
            other_work_on=record.get("other_work_on") or "",
            spoken_before=record.get("spoken_before") or "",
            anything_else=record.get("anything_else") or "",
        )

    @property
    def other_checked(self) -> bool:
        return OTHER_MARKER in self.hoping_to_work_on

    def to_update(self) -> dict:
        """Full-replacement payload for PUT /appointments/{id}."""
        hoping, other = reconcile_other(self.hoping_to_work_on, self.other_work_on)
        return {
            "patient_name": self.name,
            "patient_email": self.email,
            "preferred_appointment_type": self.preferred_appointment_type or None,
            "preferred_times": list(self.preferred_times),
            "what_brings_you": self.what_brings_you,
            "hoping_to_work_on": hoping,
            "other_work_on": other,
            "spoken_before": self.spoken_before or None,
            "anything_else": self.anything_else or None,
        }


def toggle_option(values: List[Any], option: Any) -> List[Any]:
    if option in values:
        return [value for value in values if value != option]
    return [*values, option]


def set_other_checked(form: EditAppointmentForm, checked: bool) -> EditAppointmentForm:
    if checked:
        if form.other_checked:
            return form
        return form.model_copy(update={"hoping_to_work_on": [*form.hoping_to_work_on, OTHER_MARKER]})
    # Unchecking "Other" also drops whatever was typed into it
    return form.model_copy(
        update={
            "hoping_to_work_on": [value for value in form.hoping_to_work_on if value != OTHER_MARKER],
            "other_work_on": "",
        }
    )
