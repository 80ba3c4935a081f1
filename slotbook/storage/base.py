"""
Storage contract shared by the SQL and in-memory backends.

Availability and booking services only talk to a ``BookingStore``; the
adapter decides how data is kept. Both ``*_if_slot_free`` writes must be
atomic with respect to the (booking_link_id, date, time) uniqueness of
non-cancelled bookings and raise ``SlotTakenError`` for the loser of a race.
"""

from abc import ABC, abstractmethod

from slotbook.models.booking import Booking
from slotbook.models.booking_link import BookingLink
from slotbook.models.template import Template


def month_bounds(year: int, month: int) -> tuple[str, str]:
    """First and last possible YYYY-MM-DD strings of a month (string-comparable)."""
    return f"{year:04d}-{month:02d}-01", f"{year:04d}-{month:02d}-31"


class BookingStore(ABC):
    # --- templates ---

    @abstractmethod
    async def fetch_template(self, template_id: str) -> Template | None: ...

    @abstractmethod
    async def fetch_template_by_name(self, name: str) -> Template | None: ...

    @abstractmethod
    async def list_templates(self) -> list[Template]: ...

    @abstractmethod
    async def save_template(self, template: Template) -> Template: ...

    @abstractmethod
    async def delete_template(self, template_id: str) -> bool: ...

    # --- booking links ---

    @abstractmethod
    async def fetch_booking_link(self, booking_link_id: str) -> BookingLink | None: ...

    @abstractmethod
    async def fetch_booking_link_by_slug(self, slug: str) -> BookingLink | None: ...

    @abstractmethod
    async def fetch_booking_link_by_name(self, name: str) -> BookingLink | None: ...

    @abstractmethod
    async def list_booking_links(self) -> list[BookingLink]: ...

    @abstractmethod
    async def save_booking_link(self, link: BookingLink) -> BookingLink: ...

    @abstractmethod
    async def delete_booking_link(self, booking_link_id: str) -> bool: ...

    # --- bookings ---

    @abstractmethod
    async def fetch_booking(self, booking_id: str) -> Booking | None: ...

    @abstractmethod
    async def list_bookings(self, booking_link_id: str | None = None) -> list[Booking]: ...

    @abstractmethod
    async def fetch_bookings_for_link_and_date(self, booking_link_id: str, selected_date: str) -> list[Booking]:
        """Non-cancelled bookings for one day, ordered by time."""

    @abstractmethod
    async def fetch_bookings_for_link_and_month(self, booking_link_id: str, year: int, month: int) -> list[Booking]:
        """Non-cancelled bookings for one month, ordered by date then time."""

    @abstractmethod
    async def insert_booking_if_slot_free(self, booking: Booking) -> Booking: ...

    @abstractmethod
    async def reschedule_booking_if_slot_free(self, booking_id: str, new_date: str, new_time: str) -> Booking: ...

    @abstractmethod
    async def update_booking_status(self, booking_id: str, status: str) -> Booking | None: ...

    @abstractmethod
    async def delete_booking(self, booking_id: str) -> bool: ...
