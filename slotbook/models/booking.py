import re
from datetime import datetime
from uuid import uuid4

from pydantic import EmailStr, NaiveDatetime, field_validator
from sqlalchemy import Index, text
from sqlmodel import Field, SQLModel

from slotbook.core.timeutils import is_valid_date, is_valid_time, utc_naive_now

STATUS_CONFIRMED = "confirmed"
STATUS_CANCELLED = "cancelled"

_PHONE_RE = re.compile(r"^[\d\s+\-()]{8,20}$")
_ACTIVE_SLOT_WHERE = text("status <> 'cancelled'")


def _new_token() -> str:
    return str(uuid4())


class Booking(SQLModel, table=True):
    __tablename__ = "bookings"
    # At most one live booking per (link, date, time); cancelled rows do not count
    __table_args__ = (
        Index(
            "uq_bookings_active_slot",
            "booking_link_id",
            "selected_date",
            "selected_time",
            unique=True,
            postgresql_where=_ACTIVE_SLOT_WHERE,
            sqlite_where=_ACTIVE_SLOT_WHERE,
        ),
    )
    id: str = Field(primary_key=True)
    booking_link_id: str = Field(index=True)
    selected_date: str = Field(index=True)  # YYYY-MM-DD
    selected_time: str  # HH:MM
    first_name: str
    last_name: str
    email: str
    phone: str
    role: str
    notes: str | None = None
    cancellation_token: str = Field(default_factory=_new_token, index=True)
    status: str = Field(default=STATUS_CONFIRMED)
    created_at: NaiveDatetime = Field(default_factory=utc_naive_now)
    updated_at: NaiveDatetime = Field(default_factory=utc_naive_now)

    @property
    def is_cancelled(self) -> bool:
        return self.status == STATUS_CANCELLED


def _required_text(value: str, field: str, max_length: int) -> str:
    value = value.strip()
    if not value:
        raise ValueError(f"{field} cannot be empty")
    return value[:max_length]


class BookingCreate(SQLModel):
    selected_date: str
    selected_time: str
    first_name: str
    last_name: str
    email: EmailStr
    phone: str
    role: str
    notes: str | None = None

    @field_validator("selected_date")
    @classmethod
    def check_date(cls, value: str) -> str:
        if not is_valid_date(value):
            raise ValueError("Invalid date format. Use YYYY-MM-DD")
        return value

    @field_validator("selected_time")
    @classmethod
    def check_time(cls, value: str) -> str:
        if not is_valid_time(value):
            raise ValueError("Invalid time format. Use HH:MM")
        return value

    @field_validator("first_name")
    @classmethod
    def check_first_name(cls, value: str) -> str:
        return _required_text(value, "First name", 50)

    @field_validator("last_name")
    @classmethod
    def check_last_name(cls, value: str) -> str:
        return _required_text(value, "Last name", 50)

    @field_validator("role")
    @classmethod
    def check_role(cls, value: str) -> str:
        return _required_text(value, "Role", 100)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, value: str) -> str:
        value = value.strip()
        if not _PHONE_RE.match(value):
            raise ValueError("Invalid phone number format")
        return value

    @field_validator("notes")
    @classmethod
    def check_notes(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip()[:500] or None


class BookingPublic(SQLModel):
    """Returned to the person who booked; carries the token for cancel/reschedule."""

    id: str
    booking_link_id: str
    selected_date: str
    selected_time: str
    first_name: str
    last_name: str
    email: str
    phone: str
    role: str
    notes: str | None = None
    cancellation_token: str
    status: str
    created_at: datetime
    updated_at: datetime


class BookingDetails(SQLModel):
    id: str
    selected_date: str
    selected_time: str
    first_name: str
    last_name: str
    email: str
    phone: str
    role: str
    notes: str | None = None
    status: str
    created_at: datetime
