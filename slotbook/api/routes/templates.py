from fastapi import APIRouter, Depends, status

from slotbook.api.deps import get_current_admin, get_store
from slotbook.models.template import TemplateCreate, TemplatePublic, TemplateUpdate
from slotbook.services import template_service
from slotbook.storage.base import BookingStore

router = APIRouter(prefix="/templates", tags=["templates"], dependencies=[Depends(get_current_admin)])


@router.get("", response_model=list[TemplatePublic])
async def list_templates(store: BookingStore = Depends(get_store)) -> list[TemplatePublic]:
    return [TemplatePublic.model_validate(t) for t in await store.list_templates()]


@router.post("", response_model=TemplatePublic, status_code=status.HTTP_201_CREATED)
async def create_template(body: TemplateCreate, store: BookingStore = Depends(get_store)) -> TemplatePublic:
    template = await template_service.create_template(store, body)
    return TemplatePublic.model_validate(template)


@router.get("/{template_id}", response_model=TemplatePublic)
async def get_template(template_id: str, store: BookingStore = Depends(get_store)) -> TemplatePublic:
    return TemplatePublic.model_validate(await template_service.get_template(store, template_id))


@router.put("/{template_id}", response_model=TemplatePublic)
async def update_template(
    template_id: str,
    body: TemplateUpdate,
    store: BookingStore = Depends(get_store),
) -> TemplatePublic:
    template = await template_service.update_template(store, template_id, body)
    return TemplatePublic.model_validate(template)


@router.delete("/{template_id}")
async def delete_template(template_id: str, store: BookingStore = Depends(get_store)) -> dict:
    await template_service.delete_template(store, template_id)
    return {"message": "Template successfully deleted", "deleted_id": template_id}
