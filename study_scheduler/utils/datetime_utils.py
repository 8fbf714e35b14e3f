"""Date and time utilities."""

from datetime import date, datetime, time, timezone
from typing import Any, Optional

from dateutil import parser as date_parser

from ..errors import ValidationError


def start_of_day(day: date) -> datetime:
    """Get the first instant of a calendar day."""
    return datetime.combine(day, time.min)


def end_of_day(day: date) -> datetime:
    """Get the last instant of a calendar day."""
    return datetime.combine(day, time.max)


def to_naive(value: datetime) -> datetime:
    """Drop timezone info, converting aware values to UTC wall-clock first."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def utc_now() -> datetime:
    """Current time as a naive UTC value, matching stored timestamps."""
    return to_naive(datetime.now(timezone.utc))


def parse_timestamp(value: Any, field: str) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp from a stored record."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return to_naive(value)
    if isinstance(value, date):
        return start_of_day(value)
    if not isinstance(value, str):
        raise ValidationError(field, f"expected an ISO timestamp, got {type(value).__name__}")
    try:
        return to_naive(date_parser.isoparse(value))
    except ValueError as exc:
        raise ValidationError(field, f"invalid timestamp {value!r}") from exc


def parse_date(value: Any, field: str) -> date:
    """Parse an ISO calendar date (YYYY-MM-DD)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError as exc:
        raise ValidationError(field, f"invalid calendar date {value!r}") from exc


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Format a timestamp for storage."""
    return value.isoformat() if value is not None else None
