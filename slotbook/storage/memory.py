import logging

from slotbook.core.exceptions import GoneException, NotFoundException, SlotTakenError
from slotbook.core.timeutils import utc_naive_now
from slotbook.models.booking import STATUS_CANCELLED, Booking
from slotbook.models.booking_link import BookingLink
from slotbook.models.template import Template
from slotbook.storage.base import BookingStore, month_bounds

logger = logging.getLogger(__name__)


class MemoryBookingStore(BookingStore):
    """Process-local store, created once per application and dropped on shutdown.

    The check-and-write in the ``*_if_slot_free`` methods contains no await,
    so it cannot interleave with another coroutine on the same event loop.
    """

    def __init__(self) -> None:
        self.templates: dict[str, Template] = {}
        self.booking_links: dict[str, BookingLink] = {}
        self.bookings: dict[str, Booking] = {}

    def clear(self) -> None:
        self.templates.clear()
        self.booking_links.clear()
        self.bookings.clear()

    def _slot_holder(self, booking_link_id: str, selected_date: str, selected_time: str) -> Booking | None:
        for b in self.bookings.values():
            if (
                b.booking_link_id == booking_link_id
                and b.selected_date == selected_date
                and b.selected_time == selected_time
                and b.status != STATUS_CANCELLED
            ):
                return b
        return None

    # --- templates ---

    async def fetch_template(self, template_id: str) -> Template | None:
        return self.templates.get(template_id)

    async def fetch_template_by_name(self, name: str) -> Template | None:
        return next((t for t in self.templates.values() if t.name == name), None)

    async def list_templates(self) -> list[Template]:
        return sorted(self.templates.values(), key=lambda t: t.created_at, reverse=True)

    async def save_template(self, template: Template) -> Template:
        self.templates[template.id] = template
        return template

    async def delete_template(self, template_id: str) -> bool:
        return self.templates.pop(template_id, None) is not None

    # --- booking links ---

    async def fetch_booking_link(self, booking_link_id: str) -> BookingLink | None:
        return self.booking_links.get(booking_link_id)

    async def fetch_booking_link_by_slug(self, slug: str) -> BookingLink | None:
        return next((link for link in self.booking_links.values() if link.url_slug == slug), None)

    async def fetch_booking_link_by_name(self, name: str) -> BookingLink | None:
        return next((link for link in self.booking_links.values() if link.name == name), None)

    async def list_booking_links(self) -> list[BookingLink]:
        return sorted(self.booking_links.values(), key=lambda link: link.created_at, reverse=True)

    async def save_booking_link(self, link: BookingLink) -> BookingLink:
        self.booking_links[link.id] = link
        return link

    async def delete_booking_link(self, booking_link_id: str) -> bool:
        return self.booking_links.pop(booking_link_id, None) is not None

    # --- bookings ---

    async def fetch_booking(self, booking_id: str) -> Booking | None:
        return self.bookings.get(booking_id)

    async def list_bookings(self, booking_link_id: str | None = None) -> list[Booking]:
        rows = [b for b in self.bookings.values() if not booking_link_id or b.booking_link_id == booking_link_id]
        return sorted(rows, key=lambda b: b.created_at, reverse=True)

    async def fetch_bookings_for_link_and_date(self, booking_link_id: str, selected_date: str) -> list[Booking]:
        rows = [
            b
            for b in self.bookings.values()
            if b.booking_link_id == booking_link_id and b.selected_date == selected_date and b.status != STATUS_CANCELLED
        ]
        return sorted(rows, key=lambda b: b.selected_time)

    async def fetch_bookings_for_link_and_month(self, booking_link_id: str, year: int, month: int) -> list[Booking]:
        first, last = month_bounds(year, month)
        rows = [
            b
            for b in self.bookings.values()
            if b.booking_link_id == booking_link_id and first <= b.selected_date <= last and b.status != STATUS_CANCELLED
        ]
        return sorted(rows, key=lambda b: (b.selected_date, b.selected_time))

    async def insert_booking_if_slot_free(self, booking: Booking) -> Booking:
        if self._slot_holder(booking.booking_link_id, booking.selected_date, booking.selected_time):
            logger.info(
                "Insert lost slot race: link=%s date=%s time=%s",
                booking.booking_link_id,
                booking.selected_date,
                booking.selected_time,
            )
            raise SlotTakenError()
        self.bookings[booking.id] = booking
        return booking

    async def reschedule_booking_if_slot_free(self, booking_id: str, new_date: str, new_time: str) -> Booking:
        booking = self.bookings.get(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found")
        if booking.is_cancelled:
            raise GoneException("Booking cancelled", "Cannot reschedule a cancelled booking")
        holder = self._slot_holder(booking.booking_link_id, new_date, new_time)
        if holder is not None and holder.id != booking_id:
            logger.info("Reschedule lost slot race: booking=%s date=%s time=%s", booking_id, new_date, new_time)
            raise SlotTakenError()
        booking.selected_date = new_date
        booking.selected_time = new_time
        booking.updated_at = utc_naive_now()
        return booking

    async def update_booking_status(self, booking_id: str, status: str) -> Booking | None:
        booking = self.bookings.get(booking_id)
        if booking is None:
            return None
        booking.status = status
        booking.updated_at = utc_naive_now()
        return booking

    async def delete_booking(self, booking_id: str) -> bool:
        return self.bookings.pop(booking_id, None) is not None
