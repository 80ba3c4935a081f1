import re
from datetime import datetime

from pydantic import NaiveDatetime, field_validator, model_validator
from sqlmodel import Field, SQLModel

from slotbook.core.timeutils import utc_naive_now

SUPPORTED_DURATIONS = (30,)
ALLOWED_ADVANCE_HOURS = (6, 12, 24, 48)
# Applied when advance booking is switched on without choosing the hours
DEFAULT_ADVANCE_HOURS = 24
MAX_LINK_NAME_LENGTH = 100
_SLUG_RE = re.compile(r"^[a-z0-9-]{3,50}$")


def validate_link_name(value: str) -> str:
    value = value.strip()
    if not value or len(value) > MAX_LINK_NAME_LENGTH:
        raise ValueError(f"Booking link name must be 1-{MAX_LINK_NAME_LENGTH} characters")
    return value


def validate_slug(value: str) -> str:
    value = value.strip().lower()
    if not _SLUG_RE.match(value):
        raise ValueError(
            "URL slug must be 3-50 characters and contain only lowercase letters, numbers, and hyphens"
        )
    return value


def normalise_advance(require_advance_booking: bool, advance_hours: int) -> int:
    """Advance hours only mean something when advance booking is on."""
    if not require_advance_booking:
        return 0
    if advance_hours not in ALLOWED_ADVANCE_HOURS:
        raise ValueError(f"Advance hours must be one of {', '.join(map(str, ALLOWED_ADVANCE_HOURS))}")
    return advance_hours


class BookingLink(SQLModel, table=True):
    __tablename__ = "booking_links"
    id: str = Field(primary_key=True)
    name: str = Field(unique=True, index=True)
    # Plain column, not a foreign key: a deleted template leaves the link dangling
    template_id: str = Field(index=True)
    url_slug: str = Field(unique=True, index=True)
    duration: int = 30
    require_advance_booking: bool = False
    advance_hours: int = 0
    is_active: bool = True
    created_at: NaiveDatetime = Field(default_factory=utc_naive_now)
    updated_at: NaiveDatetime = Field(default_factory=utc_naive_now)


class BookingLinkCreate(SQLModel):
    name: str
    template_id: str
    url_slug: str
    duration: int = 30
    require_advance_booking: bool = False
    advance_hours: int = 0
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        return validate_link_name(value)

    @field_validator("url_slug")
    @classmethod
    def check_slug(cls, value: str) -> str:
        return validate_slug(value)

    @field_validator("duration")
    @classmethod
    def check_duration(cls, value: int) -> int:
        if value not in SUPPORTED_DURATIONS:
            raise ValueError("Currently only 30-minute duration is supported")
        return value

    @model_validator(mode="after")
    def check_advance(self) -> "BookingLinkCreate":
        self.advance_hours = normalise_advance(self.require_advance_booking, self.advance_hours)
        return self


class BookingLinkUpdate(SQLModel):
    name: str | None = None
    template_id: str | None = None
    url_slug: str | None = None
    duration: int | None = None
    require_advance_booking: bool | None = None
    advance_hours: int | None = None
    is_active: bool | None = None

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str | None) -> str | None:
        return validate_link_name(value) if value is not None else None

    @field_validator("url_slug")
    @classmethod
    def check_slug(cls, value: str | None) -> str | None:
        return validate_slug(value) if value is not None else None

    @field_validator("duration")
    @classmethod
    def check_duration(cls, value: int | None) -> int | None:
        if value is not None and value not in SUPPORTED_DURATIONS:
            raise ValueError("Currently only 30-minute duration is supported")
        return value


class BookingLinkPublic(SQLModel):
    id: str
    name: str
    template_id: str
    url_slug: str
    duration: int
    require_advance_booking: bool
    advance_hours: int
    is_active: bool
    created_at: datetime
    updated_at: datetime
