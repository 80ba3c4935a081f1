from fastapi import APIRouter, Depends, Query, status

from slotbook.api.deps import get_current_admin, get_store
from slotbook.models.booking import BookingPublic
from slotbook.services import booking_service
from slotbook.storage.base import BookingStore

router = APIRouter(prefix="/bookings", tags=["bookings"], dependencies=[Depends(get_current_admin)])


@router.get("", response_model=list[BookingPublic])
async def list_bookings(
    booking_link_id: str | None = Query(None),
    store: BookingStore = Depends(get_store),
) -> list[BookingPublic]:
    bookings = await booking_service.list_bookings(store, booking_link_id)
    return [BookingPublic.model_validate(b) for b in bookings]


@router.get("/{booking_id}", response_model=BookingPublic)
async def get_booking(booking_id: str, store: BookingStore = Depends(get_store)) -> BookingPublic:
    return BookingPublic.model_validate(await booking_service.get_booking(store, booking_id))


@router.delete("/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_booking(booking_id: str, store: BookingStore = Depends(get_store)) -> None:
    await booking_service.delete_booking(store, booking_id)
