"""
Availability calculation for booking links.

A booking link points at a weekly template. For a given date the template's
ranges for that weekday are cut into 30-minute slots, then filtered:

1. blackout / cutoff days yield nothing (day level, before generation)
2. dates before today yield nothing
3. slots held by a non-cancelled booking are removed
4. with advance booking on, slots starting less than ``advance_hours`` from
   now are removed

``validate_booking_slot`` re-runs the same checks for one (date, time) right
before a booking is written. It is advisory: the store's
``insert_booking_if_slot_free`` is what actually guards the slot.

Callers pass "now" as the naive wall clock in the configured timezone;
results for the same stored data change as time passes.
"""

import calendar
import logging
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from slotbook.core.exceptions import NotFoundException, ValidationException
from slotbook.core.timeutils import (
    is_valid_date,
    is_valid_time,
    minutes_to_time,
    parse_date,
    time_to_minutes,
)
from slotbook.models.booking import STATUS_CANCELLED, Booking
from slotbook.models.booking_link import BookingLink
from slotbook.models.template import WEEKDAYS, Template
from slotbook.storage.base import BookingStore

logger = logging.getLogger(__name__)

SLOT_DURATION_MINUTES = 30

ERROR_LINK_INACTIVE = "This booking link is no longer active"
ERROR_PAST_DATE = "Cannot book appointments in the past"
ERROR_DATE_UNAVAILABLE = "This date is not available for booking"
ERROR_NOT_IN_SCHEDULE = "This time slot is not available in the schedule"
ERROR_ALREADY_BOOKED = "This time slot is already booked"


@dataclass(frozen=True)
class GeneratedSlot:
    id: str
    start_time: str
    end_time: str


@dataclass(frozen=True)
class DayAvailability:
    date: str
    available: bool
    total_slots: int
    available_slots: int


@dataclass
class SlotValidation:
    valid: bool
    error: str | None = None
    booking_link: BookingLink | None = None
    template: Template | None = None

    @classmethod
    def reject(cls, error: str) -> "SlotValidation":
        return cls(valid=False, error=error)


def advance_notice_error(advance_hours: int) -> str:
    return f"This booking requires at least {advance_hours} hours advance notice"


def weekday_key(d: date) -> str:
    return WEEKDAYS[d.weekday()]


def slot_id(selected_date: str, start_time: str) -> str:
    return f"TS_{selected_date}_{start_time.replace(':', '')}"


def generate_time_slots(template: Template, selected_date: str) -> list[GeneratedSlot]:
    """Cut each of the weekday's ranges into 30-minute slots; a shorter remainder is dropped."""
    d = parse_date(selected_date)
    slots: list[GeneratedSlot] = []
    for time_range in template.ranges_for(weekday_key(d)):
        current = time_to_minutes(time_range["start_time"])
        end = time_to_minutes(time_range["end_time"])
        while current + SLOT_DURATION_MINUTES <= end:
            start_str = minutes_to_time(current)
            slots.append(
                GeneratedSlot(
                    id=slot_id(selected_date, start_str),
                    start_time=start_str,
                    end_time=minutes_to_time(current + SLOT_DURATION_MINUTES),
                )
            )
            current += SLOT_DURATION_MINUTES
    return slots


def is_date_unavailable(template: Template, selected_date: str) -> bool:
    """Blackout day, or strictly after the cutoff date (the cutoff day itself is bookable)."""
    if selected_date in (template.blackout_days or []):
        return True
    cutoff = template.booking_cutoff_date
    # ISO dates compare correctly as strings
    return bool(cutoff) and selected_date > cutoff


def is_past_date(d: date, now: datetime) -> bool:
    return d < now.date()


def remove_booked_slots(slots: Iterable[GeneratedSlot], bookings: Iterable[Booking]) -> list[GeneratedSlot]:
    booked_times = {b.selected_time for b in bookings if b.status != STATUS_CANCELLED}
    return [s for s in slots if s.start_time not in booked_times]


def meets_advance_notice(selected_date: str, start_time: str, advance_hours: float, now: datetime) -> bool:
    slot_start = datetime.combine(parse_date(selected_date), datetime.min.time()) + timedelta(
        minutes=time_to_minutes(start_time)
    )
    hours_until_slot = (slot_start - now).total_seconds() / 3600
    return hours_until_slot >= advance_hours


def apply_advance_booking_filter(
    slots: Iterable[GeneratedSlot],
    selected_date: str,
    require_advance_booking: bool,
    advance_hours: float,
    now: datetime,
) -> list[GeneratedSlot]:
    if not require_advance_booking:
        return list(slots)
    return [s for s in slots if meets_advance_notice(selected_date, s.start_time, advance_hours, now)]


def get_day_availability(
    template: Template,
    booking_link: BookingLink,
    selected_date: str,
    day_bookings: Iterable[Booking],
    now: datetime,
) -> DayAvailability:
    """Day summary; total_slots counts template capacity, available_slots what can still be booked."""
    if is_past_date(parse_date(selected_date), now) or is_date_unavailable(template, selected_date):
        return DayAvailability(date=selected_date, available=False, total_slots=0, available_slots=0)
    all_slots = generate_time_slots(template, selected_date)
    open_slots = remove_booked_slots(all_slots, day_bookings)
    open_slots = apply_advance_booking_filter(
        open_slots,
        selected_date,
        booking_link.require_advance_booking,
        booking_link.advance_hours,
        now,
    )
    return DayAvailability(
        date=selected_date,
        available=len(open_slots) > 0,
        total_slots=len(all_slots),
        available_slots=len(open_slots),
    )


async def resolve_link_and_template(store: BookingStore, booking_link_id: str) -> tuple[BookingLink, Template]:
    booking_link = await store.fetch_booking_link(booking_link_id)
    if booking_link is None:
        raise NotFoundException("Booking link not found")
    template = await store.fetch_template(booking_link.template_id)
    if template is None:
        logger.warning("Booking link %s references missing template %s", booking_link.id, booking_link.template_id)
        raise NotFoundException("Template not found", f"Booking link {booking_link.id} has no schedule template")
    return booking_link, template


async def get_month_availability(
    store: BookingStore,
    booking_link_id: str,
    year: int,
    month: int,
    *,
    now: datetime,
) -> list[DayAvailability]:
    if not 1 <= month <= 12:
        raise ValidationException("Invalid month", "Month must be a number between 1 and 12")
    booking_link, template = await resolve_link_and_template(store, booking_link_id)
    bookings_by_date: dict[str, list[Booking]] = defaultdict(list)
    for booking in await store.fetch_bookings_for_link_and_month(booking_link_id, year, month):
        bookings_by_date[booking.selected_date].append(booking)
    days_in_month = calendar.monthrange(year, month)[1]
    out: list[DayAvailability] = []
    for day in range(1, days_in_month + 1):
        date_str = date(year, month, day).isoformat()
        out.append(get_day_availability(template, booking_link, date_str, bookings_by_date[date_str], now))
    return out


async def get_available_time_slots(
    store: BookingStore,
    booking_link_id: str,
    selected_date: str,
    *,
    now: datetime,
) -> list[GeneratedSlot]:
    d = parse_date(selected_date)
    booking_link, template = await resolve_link_and_template(store, booking_link_id)
    if is_date_unavailable(template, selected_date) or is_past_date(d, now):
        return []
    existing = await store.fetch_bookings_for_link_and_date(booking_link_id, selected_date)
    slots = remove_booked_slots(generate_time_slots(template, selected_date), existing)
    return apply_advance_booking_filter(
        slots,
        selected_date,
        booking_link.require_advance_booking,
        booking_link.advance_hours,
        now,
    )


async def validate_booking_slot(
    store: BookingStore,
    booking_link_id: str,
    selected_date: str,
    selected_time: str,
    *,
    now: datetime,
) -> SlotValidation:
    """Check one (date, time) for a link. Every failure, including unknown ids, is a rejection value."""
    if not is_valid_date(selected_date):
        return SlotValidation.reject("Invalid date format. Use YYYY-MM-DD")
    if not is_valid_time(selected_time):
        return SlotValidation.reject("Invalid time format. Use HH:MM")
    try:
        booking_link, template = await resolve_link_and_template(store, booking_link_id)
    except NotFoundException as e:
        return SlotValidation.reject(e.message)

    if not booking_link.is_active:
        return SlotValidation.reject(ERROR_LINK_INACTIVE)
    if is_past_date(parse_date(selected_date), now):
        return SlotValidation.reject(ERROR_PAST_DATE)
    if is_date_unavailable(template, selected_date):
        return SlotValidation.reject(ERROR_DATE_UNAVAILABLE)
    if not any(s.start_time == selected_time for s in generate_time_slots(template, selected_date)):
        return SlotValidation.reject(ERROR_NOT_IN_SCHEDULE)
    existing = await store.fetch_bookings_for_link_and_date(booking_link_id, selected_date)
    if any(b.selected_time == selected_time for b in existing):
        return SlotValidation.reject(ERROR_ALREADY_BOOKED)
    if booking_link.require_advance_booking and not meets_advance_notice(
        selected_date, selected_time, booking_link.advance_hours, now
    ):
        return SlotValidation.reject(advance_notice_error(booking_link.advance_hours))
    return SlotValidation(valid=True, booking_link=booking_link, template=template)
