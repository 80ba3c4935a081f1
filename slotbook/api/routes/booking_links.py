from fastapi import APIRouter, Depends, status

from slotbook.api.deps import get_current_admin, get_store
from slotbook.models.booking_link import BookingLinkCreate, BookingLinkPublic, BookingLinkUpdate
from slotbook.services import booking_link_service
from slotbook.storage.base import BookingStore

router = APIRouter(prefix="/booking-links", tags=["booking-links"], dependencies=[Depends(get_current_admin)])


@router.get("", response_model=list[BookingLinkPublic])
async def list_booking_links(store: BookingStore = Depends(get_store)) -> list[BookingLinkPublic]:
    return [BookingLinkPublic.model_validate(link) for link in await store.list_booking_links()]


@router.post("", response_model=BookingLinkPublic, status_code=status.HTTP_201_CREATED)
async def create_booking_link(body: BookingLinkCreate, store: BookingStore = Depends(get_store)) -> BookingLinkPublic:
    link = await booking_link_service.create_booking_link(store, body)
    return BookingLinkPublic.model_validate(link)


@router.get("/{booking_link_id}", response_model=BookingLinkPublic)
async def get_booking_link(booking_link_id: str, store: BookingStore = Depends(get_store)) -> BookingLinkPublic:
    return BookingLinkPublic.model_validate(await booking_link_service.get_booking_link(store, booking_link_id))


@router.put("/{booking_link_id}", response_model=BookingLinkPublic)
async def update_booking_link(
    booking_link_id: str,
    body: BookingLinkUpdate,
    store: BookingStore = Depends(get_store),
) -> BookingLinkPublic:
    link = await booking_link_service.update_booking_link(store, booking_link_id, body)
    return BookingLinkPublic.model_validate(link)


@router.delete("/{booking_link_id}")
async def delete_booking_link(booking_link_id: str, store: BookingStore = Depends(get_store)) -> dict:
    await booking_link_service.delete_booking_link(store, booking_link_id)
    return {"message": "Booking link successfully deleted", "deleted_id": booking_link_id}
