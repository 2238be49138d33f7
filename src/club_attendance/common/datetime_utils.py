from __future__ import annotations

import re
from datetime import date, datetime, time

from ..core.exceptions import ValidationError

_HHMM = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD (optionally followed by a time part) into date."""
    if not value:
        raise ValidationError("Invalid date format")
    try:
        return datetime.strptime(value[:10], "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError("Invalid date format")


def parse_hhmm(value: str) -> time:
    """Parse an "HH:MM" wall clock string."""
    m = _HHMM.match((value or "").strip())
    if not m:
        raise ValidationError(f"Invalid time: {value!r}")
    hours, minutes = int(m.group(1)), int(m.group(2))
    if hours > 23 or minutes > 59:
        raise ValidationError(f"Invalid time: {value!r}")
    return time(hour=hours, minute=minutes)


def combine_session_start(session_date: date, start_time: str) -> datetime:
    return datetime.combine(session_date, parse_hhmm(start_time))


def isoformat_or_empty(value: datetime | None) -> str:
    return value.isoformat() if value else ""
