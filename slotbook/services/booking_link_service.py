import logging

from slotbook.core.exceptions import ConflictException, NotFoundException, ValidationException
from slotbook.core.ids import new_booking_link_id
from slotbook.core.timeutils import utc_naive_now
from slotbook.models.booking_link import (
    DEFAULT_ADVANCE_HOURS,
    BookingLink,
    BookingLinkCreate,
    BookingLinkUpdate,
    normalise_advance,
)
from slotbook.storage.base import BookingStore

logger = logging.getLogger(__name__)


async def get_booking_link(store: BookingStore, booking_link_id: str) -> BookingLink:
    link = await store.fetch_booking_link(booking_link_id)
    if not link:
        raise NotFoundException("Booking link not found")
    return link


async def get_active_booking_link_by_slug(store: BookingStore, slug: str) -> BookingLink:
    link = await store.fetch_booking_link_by_slug(slug.strip().lower())
    if not link or not link.is_active:
        raise NotFoundException("Booking link not found", "No active booking link found with this URL")
    return link


async def list_active_booking_links(store: BookingStore) -> list[BookingLink]:
    return [link for link in await store.list_booking_links() if link.is_active]


async def _ensure_template_exists(store: BookingStore, template_id: str) -> None:
    if not await store.fetch_template(template_id):
        raise NotFoundException("Template not found", f"No template with id {template_id}")


async def _ensure_unique(store: BookingStore, name: str | None, slug: str | None, exclude_id: str | None = None) -> None:
    if slug:
        existing = await store.fetch_booking_link_by_slug(slug)
        if existing and existing.id != exclude_id:
            raise ConflictException("A booking link with this URL already exists")
    if name:
        existing = await store.fetch_booking_link_by_name(name)
        if existing and existing.id != exclude_id:
            raise ConflictException("A booking link with this name already exists")


async def create_booking_link(store: BookingStore, data: BookingLinkCreate) -> BookingLink:
    await _ensure_template_exists(store, data.template_id)
    await _ensure_unique(store, data.name, data.url_slug)
    link = BookingLink(id=new_booking_link_id(), **data.model_dump())
    link = await store.save_booking_link(link)
    logger.info("Booking link created: %s (/%s -> %s)", link.id, link.url_slug, link.template_id)
    return link


async def update_booking_link(store: BookingStore, booking_link_id: str, data: BookingLinkUpdate) -> BookingLink:
    link = await get_booking_link(store, booking_link_id)
    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    if "template_id" in changes:
        await _ensure_template_exists(store, changes["template_id"])
    await _ensure_unique(store, changes.get("name"), changes.get("url_slug"), exclude_id=booking_link_id)
    require = changes.get("require_advance_booking", link.require_advance_booking)
    hours = changes.get("advance_hours", link.advance_hours)
    if require and "advance_hours" not in changes and not hours:
        hours = DEFAULT_ADVANCE_HOURS
    try:
        changes["advance_hours"] = normalise_advance(require, hours)
    except ValueError as e:
        raise ValidationException("Invalid advance booking settings", str(e)) from e
    for key, value in changes.items():
        setattr(link, key, value)
    link.updated_at = utc_naive_now()
    link = await store.save_booking_link(link)
    logger.info("Booking link updated: %s (active=%s)", link.id, link.is_active)
    return link


async def delete_booking_link(store: BookingStore, booking_link_id: str) -> None:
    if not await store.delete_booking_link(booking_link_id):
        raise NotFoundException("Booking link not found")
    logger.info("Booking link deleted: %s", booking_link_id)
