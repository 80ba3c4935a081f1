import logging

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from slotbook.core.exceptions import GoneException, NotFoundException, SlotTakenError
from slotbook.core.timeutils import utc_naive_now
from slotbook.models.booking import STATUS_CANCELLED, Booking
from slotbook.models.booking_link import BookingLink
from slotbook.models.template import Template
from slotbook.storage.base import BookingStore, month_bounds

logger = logging.getLogger(__name__)


class SqlBookingStore(BookingStore):
    """SQLModel adapter; one instance per request session.

    Slot uniqueness is enforced by the partial unique index
    ``uq_bookings_active_slot``; a violation rolls the session back and
    surfaces as ``SlotTakenError``.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _get(self, model, entity_id: str):
        result = await self.session.execute(select(model).where(model.id == entity_id))
        return result.scalar_one_or_none()

    async def _save(self, obj):
        self.session.add(obj)
        await self.session.flush()
        await self.session.refresh(obj)
        return obj

    async def _delete(self, model, entity_id: str) -> bool:
        result = await self.session.execute(delete(model).where(model.id == entity_id))
        await self.session.flush()
        return bool(result.rowcount)

    # --- templates ---

    async def fetch_template(self, template_id: str) -> Template | None:
        return await self._get(Template, template_id)

    async def fetch_template_by_name(self, name: str) -> Template | None:
        result = await self.session.execute(select(Template).where(Template.name == name))
        return result.scalar_one_or_none()

    async def list_templates(self) -> list[Template]:
        result = await self.session.execute(select(Template).order_by(Template.created_at.desc()))
        return list(result.scalars().all())

    async def save_template(self, template: Template) -> Template:
        return await self._save(template)

    async def delete_template(self, template_id: str) -> bool:
        return await self._delete(Template, template_id)

    # --- booking links ---

    async def fetch_booking_link(self, booking_link_id: str) -> BookingLink | None:
        return await self._get(BookingLink, booking_link_id)

    async def fetch_booking_link_by_slug(self, slug: str) -> BookingLink | None:
        result = await self.session.execute(select(BookingLink).where(BookingLink.url_slug == slug))
        return result.scalar_one_or_none()

    async def fetch_booking_link_by_name(self, name: str) -> BookingLink | None:
        result = await self.session.execute(select(BookingLink).where(BookingLink.name == name))
        return result.scalar_one_or_none()

    async def list_booking_links(self) -> list[BookingLink]:
        result = await self.session.execute(select(BookingLink).order_by(BookingLink.created_at.desc()))
        return list(result.scalars().all())

    async def save_booking_link(self, link: BookingLink) -> BookingLink:
        return await self._save(link)

    async def delete_booking_link(self, booking_link_id: str) -> bool:
        return await self._delete(BookingLink, booking_link_id)

    # --- bookings ---

    async def fetch_booking(self, booking_id: str) -> Booking | None:
        return await self._get(Booking, booking_id)

    async def list_bookings(self, booking_link_id: str | None = None) -> list[Booking]:
        q = select(Booking).order_by(Booking.created_at.desc())
        if booking_link_id:
            q = q.where(Booking.booking_link_id == booking_link_id)
        result = await self.session.execute(q)
        return list(result.scalars().all())

    async def fetch_bookings_for_link_and_date(self, booking_link_id: str, selected_date: str) -> list[Booking]:
        result = await self.session.execute(
            select(Booking)
            .where(
                Booking.booking_link_id == booking_link_id,
                Booking.selected_date == selected_date,
                Booking.status != STATUS_CANCELLED,
            )
            .order_by(Booking.selected_time)
        )
        return list(result.scalars().all())

    async def fetch_bookings_for_link_and_month(self, booking_link_id: str, year: int, month: int) -> list[Booking]:
        first, last = month_bounds(year, month)
        result = await self.session.execute(
            select(Booking)
            .where(
                Booking.booking_link_id == booking_link_id,
                Booking.selected_date >= first,
                Booking.selected_date <= last,
                Booking.status != STATUS_CANCELLED,
            )
            .order_by(Booking.selected_date, Booking.selected_time)
        )
        return list(result.scalars().all())

    async def insert_booking_if_slot_free(self, booking: Booking) -> Booking:
        self.session.add(booking)
        try:
            await self.session.flush()
        except IntegrityError as e:
            await self.session.rollback()
            logger.info(
                "Insert lost slot race: link=%s date=%s time=%s",
                booking.booking_link_id,
                booking.selected_date,
                booking.selected_time,
            )
            raise SlotTakenError() from e
        await self.session.refresh(booking)
        return booking

    async def reschedule_booking_if_slot_free(self, booking_id: str, new_date: str, new_time: str) -> Booking:
        # The status condition keeps a concurrent cancel from being overwritten
        stmt = (
            update(Booking)
            .where(Booking.id == booking_id, Booking.status != STATUS_CANCELLED)
            .values(selected_date=new_date, selected_time=new_time, updated_at=utc_naive_now())
        )
        try:
            result = await self.session.execute(stmt)
            await self.session.flush()
        except IntegrityError as e:
            await self.session.rollback()
            logger.info("Reschedule lost slot race: booking=%s date=%s time=%s", booking_id, new_date, new_time)
            raise SlotTakenError() from e
        booking = await self.fetch_booking(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found")
        if not result.rowcount:
            raise GoneException("Booking cancelled", "Cannot reschedule a cancelled booking")
        await self.session.refresh(booking)
        return booking

    async def update_booking_status(self, booking_id: str, status: str) -> Booking | None:
        booking = await self.fetch_booking(booking_id)
        if booking is None:
            return None
        booking.status = status
        booking.updated_at = utc_naive_now()
        return await self._save(booking)

    async def delete_booking(self, booking_id: str) -> bool:
        return await self._delete(Booking, booking_id)
