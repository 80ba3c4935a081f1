"""Self-service management of an existing booking, authorised by its cancellation token."""

from datetime import datetime

from fastapi import APIRouter, BackgroundTasks, Depends, Query

from slotbook.api.deps import get_now, get_settings, get_store
from slotbook.api.schemas.booking import (
    BookingDetailsResponse,
    BookingLinkSummary,
    CancelBookingRequest,
    CancelBookingResponse,
    RescheduleBookingRequest,
    RescheduleBookingResponse,
    SlotDateTime,
)
from slotbook.core.config import Settings
from slotbook.models.booking import BookingDetails
from slotbook.services import booking_service
from slotbook.services.email_service import send_cancellation_email, send_reschedule_email
from slotbook.storage.base import BookingStore

router = APIRouter(prefix="/public/bookings", tags=["public"])


@router.get("/{booking_id}/details", response_model=BookingDetailsResponse)
async def booking_details(
    booking_id: str,
    token: str | None = Query(None),
    store: BookingStore = Depends(get_store),
    now: datetime = Depends(get_now),
) -> BookingDetailsResponse:
    booking, link = await booking_service.get_booking_details(store, booking_id, token, now=now)
    return BookingDetailsResponse(
        booking=BookingDetails.model_validate(booking),
        booking_link=BookingLinkSummary.model_validate(link) if link else None,
    )


@router.post("/{booking_id}/cancel", response_model=CancelBookingResponse)
async def cancel(
    booking_id: str,
    body: CancelBookingRequest,
    background_tasks: BackgroundTasks,
    store: BookingStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
    now: datetime = Depends(get_now),
) -> CancelBookingResponse:
    booking = await booking_service.cancel_booking(store, booking_id, body.token, body.reason, now=now)
    link = await store.fetch_booking_link(booking.booking_link_id)
    background_tasks.add_task(send_cancellation_email, settings, booking, link)
    return CancelBookingResponse(booking=BookingDetails.model_validate(booking))


@router.post("/{booking_id}/reschedule", response_model=RescheduleBookingResponse)
async def reschedule(
    booking_id: str,
    body: RescheduleBookingRequest,
    background_tasks: BackgroundTasks,
    store: BookingStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
    now: datetime = Depends(get_now),
) -> RescheduleBookingResponse:
    booking, old_date, old_time = await booking_service.reschedule_booking(
        store, booking_id, body.token, body.new_date, body.new_time, now=now
    )
    link = await store.fetch_booking_link(booking.booking_link_id)
    background_tasks.add_task(send_reschedule_email, settings, booking, link, old_date, old_time)
    return RescheduleBookingResponse(
        booking=BookingDetails.model_validate(booking),
        old_date_time=SlotDateTime(date=old_date, time=old_time),
        new_date_time=SlotDateTime(date=booking.selected_date, time=booking.selected_time),
    )
