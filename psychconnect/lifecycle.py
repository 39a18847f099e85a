"""
Appointment request status lifecycle.

The documented flow is pending -> approved | declined and
approved -> completed, but the owning psychiatrist may set any of the four
statuses from any state. Patients never change status; they may only edit
or cancel a request while it is still pending.
"""
import logging
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from psychconnect.formatters import normalize_array

logger = logging.getLogger(__name__)

OTHER_MARKER = "Other:"
LOCKED_MESSAGE = "This request can no longer be edited or cancelled."


class AppointmentStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DECLINED = "declined"
    COMPLETED = "completed"


class Actor(str, Enum):
    PATIENT = "patient"
    PSYCHIATRIST = "psychiatrist"
    ADMIN = "admin"


class PatientAction(str, Enum):
    EDIT = "edit"
    CANCEL = "cancel"


FORWARD_TRANSITIONS = {
    AppointmentStatus.PENDING: {AppointmentStatus.APPROVED, AppointmentStatus.DECLINED},
    AppointmentStatus.APPROVED: {AppointmentStatus.COMPLETED},
    AppointmentStatus.DECLINED: set(),
    AppointmentStatus.COMPLETED: set(),
}


class TransitionNotAllowed(Exception):
    pass


def coerce_status(value: Any) -> Optional[AppointmentStatus]:
    if isinstance(value, AppointmentStatus):
        return value
    try:
        return AppointmentStatus(value)
    except ValueError:
        return None


def is_forward_transition(current: Any, new: Any) -> bool:
    """True when `new` follows the documented flow (or leaves the status unchanged)."""
    current_status = coerce_status(current)
    new_status = coerce_status(new)
    if current_status is None or new_status is None:
        return False
    return new_status == current_status or new_status in FORWARD_TRANSITIONS[current_status]


def can_transition(current: Any, new: Any, actor: Actor) -> bool:
    if coerce_status(new) is None:
        return False
    # Psychiatrists own the status outright, including reverting to pending
    return actor == Actor.PSYCHIATRIST


def validate_transition(current: Any, new: Any, actor: Actor) -> AppointmentStatus:
    if not can_transition(current, new, actor):
        if coerce_status(new) is None:
            raise TransitionNotAllowed(f"Invalid status: {new}")
        raise TransitionNotAllowed("Only the owning psychiatrist can change the status of an appointment request")
    new_status = coerce_status(new)
    if not is_forward_transition(current, new_status):
        logger.info("Status moved outside the forward flow: %s -> %s", current, new_status.value)
    return new_status


def can_patient_modify(status: Any) -> bool:
    return coerce_status(status) == AppointmentStatus.PENDING


def is_terminal_for_patient(status: Any) -> bool:
    return not can_patient_modify(status)


def ensure_patient_can_modify(status: Any, action: PatientAction) -> None:
    if is_terminal_for_patient(status):
        logger.warning("Rejected patient %s of a request with status %s", PatientAction(action).value, status)
        raise TransitionNotAllowed(LOCKED_MESSAGE)


def reconcile_other(hoping_to_work_on: Any, other_work_on: Optional[str]) -> Tuple[List[Any], Optional[str]]:
    """
    Keep the "Other:" marker and the free-text field in sync.

    Text in `other_work_on` guarantees the marker is present; no text removes
    the marker and stores None.
    """
    values = normalize_array(hoping_to_work_on)
    other = (other_work_on or "").strip()
    if other:
        if OTHER_MARKER not in values:
            values = values + [OTHER_MARKER]
        return values, other
    return [value for value in values if value != OTHER_MARKER], None


def count_by_status(records: Iterable[dict]) -> Dict[str, int]:
    counts = {"total": 0}
    counts.update({status.value: 0 for status in AppointmentStatus})
    for record in records:
        counts["total"] += 1
        status = coerce_status(record.get("status"))
        if status is not None:
            counts[status.value] += 1
    return counts


def group_by_status(records: Iterable[dict]) -> Dict[str, List[dict]]:
    grouped = {status.value: [] for status in AppointmentStatus}
    for record in records:
        status = coerce_status(record.get("status"))
        if status is not None:
            grouped[status.value].append(record)
    return grouped
