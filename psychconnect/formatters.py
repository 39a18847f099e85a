"""
Normalizing and formatting helpers for appointment request fields.

List-valued columns (preferred times, goals) have historically been stored
as native arrays, as JSON text and as bare strings. Everything that reads a
request goes through these helpers so form state and display text look the
same whatever shape the row is in.
"""
import json
from datetime import datetime
from typing import Any, List, Optional

NOT_PROVIDED = "Not provided"
NO_DETAILS = "No details provided."
PREVIEW_LENGTH = 100


def _parse_json(text: str) -> Any:
    try:
        return json.loads(text)
    except (ValueError, RecursionError):
        # Deeply nested brackets overflow the decoder; treat them as plain text
        return None


def _display_item(item: Any) -> str:
    # Matches how the web dashboard joined mixed JSON values
    if item is None:
        return ""
    if isinstance(item, bool):
        return "true" if item else "false"
    if isinstance(item, float) and item.is_integer():
        return str(int(item))
    if isinstance(item, (list, tuple)):
        return ",".join(_display_item(value) for value in item)
    return str(item)


def normalize_array(value: Any) -> List[Any]:
    """
    Coerce a list-like value into an ordered list.

    None and blank strings give an empty list, lists and tuples are returned
    as a new list, JSON array text is parsed, and any other text becomes a
    single-element list holding the stripped string. Never raises.
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, str):
        trimmed = value.strip()
        if not trimmed:
            return []
        parsed = _parse_json(trimmed)
        if isinstance(parsed, list):
            return parsed
        return [item for item in [trimmed] if item]
    return []


def format_list(values: Any) -> str:
    """
    Render a list-like value as a comma separated string.

    Empty input of any shape renders as "Not provided". Text that is not a
    JSON array is returned stripped but otherwise unchanged.
    """
    if values is None:
        return NOT_PROVIDED

    if isinstance(values, (list, tuple)):
        if not values:
            return NOT_PROVIDED
        return ", ".join(_display_item(item) for item in values)

    if isinstance(values, str):
        trimmed = values.strip()
        if not trimmed:
            return NOT_PROVIDED
        parsed = _parse_json(trimmed)
        if isinstance(parsed, list):
            if not parsed:
                return NOT_PROVIDED
            return ", ".join(_display_item(item) for item in parsed)
        return trimmed

    return NOT_PROVIDED


def display_value(value: Any) -> str:
    if value is None:
        return NOT_PROVIDED
    text = str(value).strip()
    return text or NOT_PROVIDED


def preview_text(text: Optional[str]) -> str:
    if not text:
        return NO_DETAILS
    if len(text) > PREVIEW_LENGTH:
        return f"{text[:PREVIEW_LENGTH]}…"
    return text


def format_timestamp(value: Any, with_time: bool = True) -> str:
    if not value:
        return "N/A"
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
    if isinstance(value, datetime):
        return value.strftime("%b %d, %Y %I:%M %p" if with_time else "%b %d, %Y")
    return str(value)


def build_detail_rows(record: dict) -> List[dict]:
    # Labels follow the patient dashboard; legacy columns only show when set
    rows = [
        ("Name", display_value(record.get("patient_name"))),
        ("Email", display_value(record.get("patient_email"))),
        ("Preferred Appointment Type", display_value(record.get("preferred_appointment_type"))),
        ("Preferred Times", format_list(normalize_array(record.get("preferred_times")))),
        ("What are you hoping to work on?", format_list(normalize_array(record.get("hoping_to_work_on")))),
        ("Other (if provided)", display_value(record.get("other_work_on"))),
        ("What brings you here?", display_value(record.get("what_brings_you"))),
        ("Have you spoken with a professional before?", display_value(record.get("spoken_before"))),
        ("Additional details", display_value(record.get("anything_else"))),
    ]
    if record.get("preferred_date"):
        rows.append(("Preferred Date", format_timestamp(record.get("preferred_date"), with_time=False)))
    if record.get("preferred_time"):
        rows.append(("Preferred Time", display_value(record.get("preferred_time"))))
    if record.get("message"):
        rows.append(("Message", display_value(record.get("message"))))
    return [{"label": label, "value": value} for label, value in rows]
