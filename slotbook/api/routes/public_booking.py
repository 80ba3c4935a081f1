"""Unauthenticated booking pages: directory, availability and booking by link slug."""

import logging

from datetime import datetime

from fastapi import APIRouter, BackgroundTasks, Depends, status

from slotbook.api.deps import get_now, get_settings, get_store
from slotbook.api.schemas.booking import (
    AvailableSlotsResponse,
    BookingCreatedResponse,
    DayAvailabilityOut,
    DirectoryResponse,
    MonthAvailabilityResponse,
    PublicBookingLink,
    SlotValidationResponse,
    TimeSlotOut,
)
from slotbook.core.config import Settings
from slotbook.core.exceptions import ValidationException
from slotbook.core.timeutils import parse_date
from slotbook.models.booking import BookingCreate, BookingPublic
from slotbook.services import availability_service, booking_service
from slotbook.services.booking_link_service import (
    get_active_booking_link_by_slug,
    list_active_booking_links,
)
from slotbook.services.email_service import (
    send_admin_booking_notification_email,
    send_booking_confirmation_email,
)
from slotbook.storage.base import BookingStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/public", tags=["public"])


@router.get("/directory", response_model=DirectoryResponse)
async def directory(store: BookingStore = Depends(get_store)) -> DirectoryResponse:
    links = await list_active_booking_links(store)
    return DirectoryResponse(
        count=len(links),
        booking_links=[PublicBookingLink.model_validate(link) for link in links],
    )


@router.get("/booking/{slug}", response_model=PublicBookingLink)
async def get_public_booking_link(slug: str, store: BookingStore = Depends(get_store)) -> PublicBookingLink:
    return PublicBookingLink.model_validate(await get_active_booking_link_by_slug(store, slug))


@router.get("/booking/{slug}/availability/{year}/{month}", response_model=MonthAvailabilityResponse)
async def month_availability(
    slug: str,
    year: int,
    month: int,
    store: BookingStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
    now: datetime = Depends(get_now),
) -> MonthAvailabilityResponse:
    if not settings.min_booking_year <= year <= settings.max_booking_year:
        raise ValidationException(
            "Invalid year",
            f"Year must be between {settings.min_booking_year} and {settings.max_booking_year}",
        )
    link = await get_active_booking_link_by_slug(store, slug)
    days = await availability_service.get_month_availability(store, link.id, year, month, now=now)
    return MonthAvailabilityResponse(
        year=year,
        month=month,
        booking_link_id=link.id,
        availability=[DayAvailabilityOut.model_validate(d) for d in days],
    )


@router.get("/booking/{slug}/slots/{selected_date}", response_model=AvailableSlotsResponse)
async def day_slots(
    slug: str,
    selected_date: str,
    store: BookingStore = Depends(get_store),
    now: datetime = Depends(get_now),
) -> AvailableSlotsResponse:
    parse_date(selected_date)
    link = await get_active_booking_link_by_slug(store, slug)
    slots = await availability_service.get_available_time_slots(store, link.id, selected_date, now=now)
    return AvailableSlotsResponse(
        date=selected_date,
        booking_link_id=link.id,
        slots=[TimeSlotOut.model_validate(s) for s in slots],
    )


@router.get("/booking/{slug}/validate/{selected_date}/{selected_time}", response_model=SlotValidationResponse)
async def validate_slot(
    slug: str,
    selected_date: str,
    selected_time: str,
    store: BookingStore = Depends(get_store),
    now: datetime = Depends(get_now),
) -> SlotValidationResponse:
    link = await get_active_booking_link_by_slug(store, slug)
    result = await availability_service.validate_booking_slot(
        store, link.id, selected_date, selected_time, now=now
    )
    return SlotValidationResponse(valid=result.valid, error=result.error)


@router.post("/booking/{slug}/book", response_model=BookingCreatedResponse, status_code=status.HTTP_201_CREATED)
async def book(
    slug: str,
    body: BookingCreate,
    background_tasks: BackgroundTasks,
    store: BookingStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
    now: datetime = Depends(get_now),
) -> BookingCreatedResponse:
    booking, link = await booking_service.create_booking(store, slug, body, now=now)
    background_tasks.add_task(send_booking_confirmation_email, settings, booking, link)
    background_tasks.add_task(send_admin_booking_notification_email, settings, booking, link)
    return BookingCreatedResponse(booking=BookingPublic.model_validate(booking))
