"""Shared wire-format helpers used across the booking engine."""

import re
import uuid
from datetime import datetime, time

from booking_engine.errors import ValidationError

_HHMM_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def new_id(prefix: str) -> str:
    """Generate a short prefixed identifier, e.g. ``BK-3F9A1C``."""
    return f"{prefix}-{uuid.uuid4().hex[:6].upper()}"


def parse_hhmm(value: str) -> time:
    """Parse a wall-clock ``"HH:mm"`` string into a :class:`datetime.time`.

    Examples:
        >>> parse_hhmm("09:30")
        datetime.time(9, 30)
    """
    match = _HHMM_RE.match(value.strip())
    if not match:
        raise ValidationError(f"Invalid time {value!r}, expected HH:mm")
    return time(int(match.group(1)), int(match.group(2)))


def format_hhmm(value: time) -> str:
    return value.strftime("%H:%M")


def to_iso_minute(value: datetime) -> str:
    """Render a local timestamp as ISO 8601 truncated to the minute.

    Examples:
        >>> to_iso_minute(datetime(2026, 1, 25, 9, 0, 42))
        '2026-01-25T09:00:00'
    """
    return value.replace(second=0, microsecond=0).isoformat(timespec="seconds")


def parse_iso_local(value: str) -> datetime:
    """Parse an ISO 8601 local timestamp. Offsets are rejected."""
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"Invalid ISO 8601 timestamp {value!r}") from None
    if parsed.tzinfo is not None:
        raise ValidationError(
            f"Timestamp {value!r} carries a UTC offset; local time expected"
        )
    return parsed


def format_slot_time(iso_string: str) -> str:
    """Extract ``"HH:mm"`` from an ISO 8601 string (characters 11-16).

    Examples:
        >>> format_slot_time("2026-01-25T09:00:00")
        '09:00'
    """
    if len(iso_string) < 16 or iso_string[10] != "T":
        raise ValidationError(f"Invalid ISO 8601 timestamp {iso_string!r}")
    return iso_string[11:16]
