from uuid import UUID

from fastapi import APIRouter, Depends, status
from pymongo.asynchronous.database import AsyncDatabase
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.deps import get_analytics_db, require_template_editor
from storefront.db.base import get_db
from storefront.schemas.template import TemplateCreate, TemplateResponse, TemplateUpdate
from storefront.services import analytics
from storefront.services import templates as template_service

router = APIRouter(prefix="/design-templates", tags=["design-templates"])

editor = [Depends(require_template_editor)]


@router.get("", response_model=list[TemplateResponse])
async def list_templates(db: AsyncSession = Depends(get_db)):
    return await template_service.list_templates(db)


@router.get("/{slug}", response_model=TemplateResponse)
async def get_template(
    slug: str,
    db: AsyncSession = Depends(get_db),
    mongo: AsyncDatabase = Depends(get_analytics_db),
):
    template = await template_service.get_template_by_slug(db, slug)
    await analytics.update_template_analytics(mongo, template.id, {"slug": template.slug})
    return template


@router.get("/{template_id}/analytics", dependencies=editor)
async def template_analytics(template_id: UUID, mongo: AsyncDatabase = Depends(get_analytics_db)):
    return await analytics.get_template_analytics(mongo, template_id) or {}


@router.post("", response_model=TemplateResponse, status_code=status.HTTP_201_CREATED, dependencies=editor)
async def create_template(body: TemplateCreate, db: AsyncSession = Depends(get_db)):
    return await template_service.create_template(db, body)


@router.patch("/{template_id}", response_model=TemplateResponse, dependencies=editor)
async def update_template(template_id: UUID, body: TemplateUpdate, db: AsyncSession = Depends(get_db)):
    return await template_service.update_template(db, template_id, body)


@router.delete("/{template_id}", response_model=TemplateResponse, dependencies=editor)
async def delete_template(template_id: UUID, db: AsyncSession = Depends(get_db)):
    return await template_service.delete_template(db, template_id)
