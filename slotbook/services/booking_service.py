import logging
from datetime import datetime, timedelta

from slotbook.core.exceptions import (
    ConflictException,
    ForbiddenException,
    GoneException,
    NotFoundException,
    ValidationException,
)
from slotbook.core.ids import new_booking_id
from slotbook.core.security import tokens_match
from slotbook.core.timeutils import parse_date, parse_time
from slotbook.models.booking import STATUS_CANCELLED, Booking, BookingCreate
from slotbook.models.booking_link import BookingLink
from slotbook.services.availability_service import validate_booking_slot
from slotbook.services.booking_link_service import get_active_booking_link_by_slug
from slotbook.storage.base import BookingStore

logger = logging.getLogger(__name__)


def _slot_start(selected_date: str, selected_time: str) -> datetime:
    return datetime.combine(parse_date(selected_date), datetime.min.time()) + timedelta(
        minutes=parse_time(selected_time)
    )


async def create_booking(
    store: BookingStore, slug: str, data: BookingCreate, *, now: datetime
) -> tuple[Booking, BookingLink]:
    link = await get_active_booking_link_by_slug(store, slug)
    validation = await validate_booking_slot(store, link.id, data.selected_date, data.selected_time, now=now)
    if not validation.valid:
        raise ConflictException("Time slot not available", validation.error)
    booking = Booking(
        id=new_booking_id(),
        booking_link_id=link.id,
        selected_date=data.selected_date,
        selected_time=data.selected_time,
        first_name=data.first_name,
        last_name=data.last_name,
        email=str(data.email).lower(),
        phone=data.phone,
        role=data.role,
        notes=data.notes,
    )
    # Validation above is advisory; the store's conditional insert decides the race
    booking = await store.insert_booking_if_slot_free(booking)
    logger.info(
        "Booking created: %s link=%s date=%s time=%s",
        booking.id,
        link.id,
        booking.selected_date,
        booking.selected_time,
    )
    return booking, link


async def get_booking(store: BookingStore, booking_id: str) -> Booking:
    booking = await store.fetch_booking(booking_id)
    if not booking:
        raise NotFoundException("Booking not found", "No booking found with this ID")
    return booking


async def _get_with_token(store: BookingStore, booking_id: str, token: str | None) -> Booking:
    if not token:
        raise ValidationException("Missing token", "Token is required to manage this booking")
    booking = await get_booking(store, booking_id)
    if not tokens_match(booking.cancellation_token, token):
        raise ForbiddenException("Invalid token", "The provided token is not valid for this booking")
    return booking


def _ensure_modifiable(booking: Booking, now: datetime, cancelled_message: str) -> None:
    if booking.is_cancelled:
        raise GoneException("Booking cancelled", cancelled_message)
    if _slot_start(booking.selected_date, booking.selected_time) < now:
        raise GoneException("Booking in the past", "Cannot modify bookings that have already occurred")


async def get_booking_details(
    store: BookingStore, booking_id: str, token: str | None, *, now: datetime
) -> tuple[Booking, BookingLink | None]:
    booking = await _get_with_token(store, booking_id, token)
    _ensure_modifiable(booking, now, "This booking has already been cancelled")
    link = await store.fetch_booking_link(booking.booking_link_id)
    return booking, link


async def cancel_booking(
    store: BookingStore,
    booking_id: str,
    token: str | None,
    reason: str | None = None,
    *,
    now: datetime,
) -> Booking:
    booking = await _get_with_token(store, booking_id, token)
    _ensure_modifiable(booking, now, "This booking has already been cancelled")
    updated = await store.update_booking_status(booking_id, STATUS_CANCELLED)
    if updated is None:
        raise NotFoundException("Booking not found")
    logger.info("Booking %s cancelled. Reason: %s", booking_id, reason or "No reason provided")
    return updated


async def reschedule_booking(
    store: BookingStore,
    booking_id: str,
    token: str | None,
    new_date: str,
    new_time: str,
    *,
    now: datetime,
) -> tuple[Booking, str, str]:
    """Move a confirmed booking; returns (booking, old_date, old_time).

    The booking keeps its slot until the rewrite succeeds, so a failed
    reschedule leaves it exactly where it was.
    """
    new_start = _slot_start(new_date, new_time)
    booking = await _get_with_token(store, booking_id, token)
    if booking.is_cancelled:
        raise GoneException("Booking cancelled", "Cannot reschedule a cancelled booking")
    if new_start < now:
        raise ValidationException("Invalid new date/time", "Cannot reschedule to a date/time in the past")
    if _slot_start(booking.selected_date, booking.selected_time) < now:
        raise GoneException("Original booking in the past", "Cannot reschedule bookings that have already occurred")

    validation = await validate_booking_slot(store, booking.booking_link_id, new_date, new_time, now=now)
    if not validation.valid:
        raise ConflictException("Time slot not available", validation.error)

    old_date, old_time = booking.selected_date, booking.selected_time
    updated = await store.reschedule_booking_if_slot_free(booking_id, new_date, new_time)
    logger.info("Booking %s rescheduled from %s %s to %s %s", booking_id, old_date, old_time, new_date, new_time)
    return updated, old_date, old_time


async def list_bookings(store: BookingStore, booking_link_id: str | None = None) -> list[Booking]:
    return await store.list_bookings(booking_link_id)


async def delete_booking(store: BookingStore, booking_id: str) -> None:
    if not await store.delete_booking(booking_id):
        raise NotFoundException("Booking not found")
    logger.info("Booking deleted: %s", booking_id)
