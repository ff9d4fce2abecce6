"""Change-set computation for edit sessions.

Values are compared after normalization so that formatting differences
(surrounding whitespace, ``None`` vs ``""``, a date vs a midnight timestamp of
the same day) do not count as changes.
"""

import logging
import re
from datetime import date, datetime, timezone
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import TypeAdapter, ValidationError

from recordview.core.errors import NoChangesError
from recordview.models.edit_session import EditSession

logger = logging.getLogger(__name__)

ISO_DATE_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}")
# "+0000" style offsets, as sent by some remote stores
COMPACT_OFFSET = re.compile(r"([+-]\d{2})(\d{2})$")

_datetime_adapter = TypeAdapter(datetime)
_date_adapter = TypeAdapter(date)


def unwrap_value(value: Any) -> Any:
    """Unwrap a single-level ``{"value": X}`` wrapper."""
    if isinstance(value, Mapping) and "value" in value:
        return value["value"]
    return value


def to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value).strip()


def parse_calendar_date(text: str) -> Optional[date]:
    """Parse an ISO date or timestamp into a calendar date (UTC), else None."""
    if not ISO_DATE_PREFIX.match(text):
        return None
    try:
        if len(text) == 10:
            return _date_adapter.validate_python(text)
        parsed: Union[datetime, date] = _datetime_adapter.validate_python(COMPACT_OFFSET.sub(r"\1:\2", text))
    except ValidationError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.date()


def normalized_value(value: Any) -> str:
    """Canonical comparison form of a field value."""
    value = unwrap_value(value)
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    text = to_text(value)
    if not text:
        return ""
    parsed = parse_calendar_date(text)
    if parsed is not None:
        return parsed.isoformat()
    return text


def is_empty_value(value: Any) -> bool:
    value = unwrap_value(value)
    return value is None or (isinstance(value, str) and value.strip() == "")


def compute_change_set(session: EditSession) -> Dict[str, Any]:
    """Compute the payload to submit for ``session``.

    Edit mode: every descriptor field whose normalized working value differs
    from the snapshot, carrying the raw working value (``""`` if cleared).
    Create mode: every descriptor field with a non-empty working value.
    """
    payload: Dict[str, Any] = {}
    for descriptor in session.descriptors:
        field_name = descriptor.field_name
        current = session.working.get(field_name)
        if session.is_edit_mode:
            initial = session.original.get(field_name)
            if normalized_value(current) != normalized_value(initial):
                payload[field_name] = current if current is not None else ""
        elif current is not None and current != "":
            payload[field_name] = current
    return payload


def build_submit_payload(session: EditSession) -> Dict[str, Any]:
    """Compute the change-set, refusing an edit that changes nothing."""
    payload = compute_change_set(session)
    if session.is_edit_mode and not payload:
        logger.info(f"No changes to submit for {session.object_type} {session.record_id}")
        raise NoChangesError()
    return payload
