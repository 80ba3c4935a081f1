from datetime import datetime

from pydantic import NaiveDatetime, field_validator
from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from slotbook.core.timeutils import is_valid_date, is_valid_time, time_to_minutes, utc_naive_now

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
MAX_TEMPLATE_NAME_LENGTH = 100


class TimeRange(SQLModel):
    start_time: str
    end_time: str

    @field_validator("start_time", "end_time")
    @classmethod
    def check_format(cls, value: str) -> str:
        if not is_valid_time(value):
            raise ValueError(f"Invalid time format: {value!r}, expected HH:MM")
        return value


def validate_schedule(schedule: dict[str, list[TimeRange]]) -> dict[str, list[dict[str, str]]]:
    """Normalise a weekly schedule: all seven days present, ranges sorted, no overlaps."""
    unknown = set(schedule) - set(WEEKDAYS)
    if unknown:
        raise ValueError(f"Invalid day: {sorted(unknown)[0]}. Must be one of: {', '.join(WEEKDAYS)}")
    normalised: dict[str, list[dict[str, str]]] = {}
    for day in WEEKDAYS:
        ranges = sorted(schedule.get(day) or [], key=lambda r: time_to_minutes(r.start_time))
        previous: TimeRange | None = None
        for r in ranges:
            if time_to_minutes(r.start_time) >= time_to_minutes(r.end_time):
                raise ValueError(f"Start time must be before end time on {day}: {r.start_time}-{r.end_time}")
            if previous and time_to_minutes(r.start_time) < time_to_minutes(previous.end_time):
                raise ValueError(
                    f"Overlapping time slots found on {day}: "
                    f"{previous.start_time}-{previous.end_time} and {r.start_time}-{r.end_time}"
                )
            previous = r
        normalised[day] = [{"start_time": r.start_time, "end_time": r.end_time} for r in ranges]
    return normalised


def validate_blackout_days(days: list[str]) -> list[str]:
    for d in days:
        if not is_valid_date(d.strip()):
            raise ValueError(f"Invalid blackout day: {d}. Use YYYY-MM-DD format")
    return sorted({d.strip() for d in days})


def validate_cutoff_date(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    value = value.strip()
    if not is_valid_date(value):
        raise ValueError(f"Invalid cutoff date: {value}. Use YYYY-MM-DD format")
    return value


def validate_template_name(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Template name cannot be empty")
    if len(value) > MAX_TEMPLATE_NAME_LENGTH:
        raise ValueError(f"Template name must be at most {MAX_TEMPLATE_NAME_LENGTH} characters")
    return value


class Template(SQLModel, table=True):
    __tablename__ = "templates"
    id: str = Field(primary_key=True)
    name: str = Field(unique=True, index=True)
    # {"monday": [{"start_time": "09:00", "end_time": "12:00"}, ...], ...}
    schedule: dict = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    blackout_days: list = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    booking_cutoff_date: str | None = None
    created_at: NaiveDatetime = Field(default_factory=utc_naive_now)
    updated_at: NaiveDatetime = Field(default_factory=utc_naive_now)

    def ranges_for(self, weekday: str) -> list[dict[str, str]]:
        return list((self.schedule or {}).get(weekday) or [])


class TemplateCreate(SQLModel):
    name: str
    schedule: dict[str, list[TimeRange]]
    blackout_days: list[str] = []
    booking_cutoff_date: str | None = None

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        return validate_template_name(value)

    @field_validator("schedule")
    @classmethod
    def check_schedule(cls, value: dict[str, list[TimeRange]]) -> dict[str, list[TimeRange]]:
        validate_schedule(value)
        return value

    @field_validator("blackout_days")
    @classmethod
    def check_blackout_days(cls, value: list[str]) -> list[str]:
        return validate_blackout_days(value)

    @field_validator("booking_cutoff_date")
    @classmethod
    def check_cutoff(cls, value: str | None) -> str | None:
        return validate_cutoff_date(value)


class TemplateUpdate(SQLModel):
    name: str | None = None
    schedule: dict[str, list[TimeRange]] | None = None
    blackout_days: list[str] | None = None
    booking_cutoff_date: str | None = None

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str | None) -> str | None:
        return validate_template_name(value) if value is not None else None

    @field_validator("schedule")
    @classmethod
    def check_schedule(cls, value: dict[str, list[TimeRange]] | None) -> dict[str, list[TimeRange]] | None:
        if value is not None:
            validate_schedule(value)
        return value

    @field_validator("blackout_days")
    @classmethod
    def check_blackout_days(cls, value: list[str] | None) -> list[str] | None:
        return validate_blackout_days(value) if value is not None else None

    @field_validator("booking_cutoff_date")
    @classmethod
    def check_cutoff(cls, value: str | None) -> str | None:
        return validate_cutoff_date(value)


class TemplatePublic(SQLModel):
    id: str
    name: str
    schedule: dict[str, list[TimeRange]]
    blackout_days: list[str]
    booking_cutoff_date: str | None = None
    created_at: datetime
    updated_at: datetime
