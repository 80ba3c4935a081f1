import re
from datetime import UTC, date, datetime

import pytz

from slotbook.core.exceptions import ValidationException

# Fixed-width ASCII formats: YYYY-MM-DD and 24-hour HH:MM
DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def is_valid_date(value: str) -> bool:
    if not isinstance(value, str) or not DATE_RE.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def is_valid_time(value: str) -> bool:
    return isinstance(value, str) and bool(TIME_RE.match(value))


def parse_date(value: str) -> date:
    if not is_valid_date(value):
        raise ValidationException("Invalid date format", "Date must be in YYYY-MM-DD format")
    return date.fromisoformat(value)


def parse_time(value: str) -> int:
    """Validate HH:MM and return minutes since midnight."""
    if not is_valid_time(value):
        raise ValidationException("Invalid time format", "Time must be in HH:MM format")
    return time_to_minutes(value)


def time_to_minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def local_now(tz_name: str) -> datetime:
    """Naive wall-clock time in the booking timezone."""
    try:
        tz = pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError:
        tz = pytz.UTC
    return datetime.now(UTC).astimezone(tz).replace(tzinfo=None)


def utc_naive_now() -> datetime:
    """Naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    return datetime.now(UTC).replace(tzinfo=None)
