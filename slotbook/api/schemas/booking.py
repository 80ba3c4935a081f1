from datetime import datetime

from pydantic import BaseModel, ConfigDict

from slotbook.models.booking import BookingDetails, BookingPublic


class TimeSlotOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    start_time: str  # HH:MM
    end_time: str


class AvailableSlotsResponse(BaseModel):
    date: str  # YYYY-MM-DD
    booking_link_id: str
    slots: list[TimeSlotOut]


class DayAvailabilityOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date: str
    available: bool
    total_slots: int
    available_slots: int


class MonthAvailabilityResponse(BaseModel):
    year: int
    month: int
    booking_link_id: str
    availability: list[DayAvailabilityOut]


class SlotValidationResponse(BaseModel):
    valid: bool
    error: str | None = None


class PublicBookingLink(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    url_slug: str
    duration: int
    require_advance_booking: bool
    advance_hours: int
    created_at: datetime


class DirectoryResponse(BaseModel):
    count: int
    booking_links: list[PublicBookingLink]


class BookingCreatedResponse(BaseModel):
    message: str = "Booking created successfully"
    booking: BookingPublic


class BookingLinkSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    duration: int
    url_slug: str


class BookingDetailsResponse(BaseModel):
    booking: BookingDetails
    booking_link: BookingLinkSummary | None = None


class CancelBookingRequest(BaseModel):
    token: str
    reason: str | None = None


class CancelBookingResponse(BaseModel):
    message: str = "Booking cancelled successfully"
    booking: BookingDetails


class RescheduleBookingRequest(BaseModel):
    token: str
    new_date: str
    new_time: str


class SlotDateTime(BaseModel):
    date: str
    time: str


class RescheduleBookingResponse(BaseModel):
    message: str = "Booking rescheduled successfully"
    booking: BookingDetails
    old_date_time: SlotDateTime
    new_date_time: SlotDateTime
