import logging

from slotbook.core.exceptions import ConflictException, NotFoundException
from slotbook.core.ids import new_template_id
from slotbook.core.timeutils import utc_naive_now
from slotbook.models.template import Template, TemplateCreate, TemplateUpdate, validate_schedule
from slotbook.storage.base import BookingStore

logger = logging.getLogger(__name__)


async def get_template(store: BookingStore, template_id: str) -> Template:
    template = await store.fetch_template(template_id)
    if not template:
        raise NotFoundException("Template not found")
    return template


async def create_template(store: BookingStore, data: TemplateCreate) -> Template:
    if await store.fetch_template_by_name(data.name):
        raise ConflictException("A template with this name already exists")
    template = Template(
        id=new_template_id(),
        name=data.name,
        schedule=validate_schedule(data.schedule),
        blackout_days=list(data.blackout_days),
        booking_cutoff_date=data.booking_cutoff_date,
    )
    template = await store.save_template(template)
    logger.info("Template created: %s (%s)", template.id, template.name)
    return template


async def update_template(store: BookingStore, template_id: str, data: TemplateUpdate) -> Template:
    template = await get_template(store, template_id)
    changes = data.model_dump(exclude_unset=True)
    if changes.get("name") and changes["name"] != template.name:
        duplicate = await store.fetch_template_by_name(changes["name"])
        if duplicate and duplicate.id != template_id:
            raise ConflictException("Another template with this name already exists")
        template.name = changes["name"]
    if data.schedule is not None:
        template.schedule = validate_schedule(data.schedule)
    if data.blackout_days is not None:
        template.blackout_days = list(data.blackout_days)
    if "booking_cutoff_date" in changes:
        template.booking_cutoff_date = data.booking_cutoff_date
    template.updated_at = utc_naive_now()
    return await store.save_template(template)


async def delete_template(store: BookingStore, template_id: str) -> None:
    # Links pointing at the template are left in place; availability reports them as not found
    if not await store.delete_template(template_id):
        raise NotFoundException("Template not found")
    logger.info("Template deleted: %s", template_id)
