from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.deps import require_admin
from storefront.core.errors import ValidationError
from storefront.db.base import get_db
from storefront.schemas.category import (
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
    SlugAvailability,
)
from storefront.services import categories as category_service

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=list[CategoryResponse])
async def list_categories(
    parent_id: str | None = Query(None, description="Parent id, or 'root' for top-level categories"),
    db: AsyncSession = Depends(get_db),
):
    if parent_id is None or parent_id == "root":
        return await category_service.list_categories(db, parent_id)
    if not parent_id.isdigit():
        raise ValidationError("parent_id must be an integer or 'root'")
    return await category_service.list_categories(db, int(parent_id))


@router.get("/check-slug/{slug}", response_model=SlugAvailability)
async def check_slug(slug: str, db: AsyncSession = Depends(get_db)):
    return SlugAvailability(slug=slug, available=await category_service.is_slug_available(db, slug))


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(category_id: int, db: AsyncSession = Depends(get_db)):
    return await category_service.get_category(db, category_id)


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(require_admin)])
async def create_category(data: CategoryCreate, db: AsyncSession = Depends(get_db)):
    return await category_service.create_category(db, data)


@router.patch("/{category_id}", response_model=CategoryResponse, dependencies=[Depends(require_admin)])
async def update_category(category_id: int, data: CategoryUpdate, db: AsyncSession = Depends(get_db)):
    return await category_service.update_category(db, category_id, data)


@router.patch("/{category_id}/deactivate", response_model=CategoryResponse, dependencies=[Depends(require_admin)])
async def deactivate_category(category_id: int, db: AsyncSession = Depends(get_db)):
    return await category_service.deactivate_category(db, category_id)


@router.patch("/{category_id}/activate", response_model=CategoryResponse, dependencies=[Depends(require_admin)])
async def activate_category(category_id: int, db: AsyncSession = Depends(get_db)):
    return await category_service.activate_category(db, category_id)


@router.patch("/{category_id}/soft-delete", response_model=CategoryResponse, dependencies=[Depends(require_admin)])
async def soft_delete_category(category_id: int, db: AsyncSession = Depends(get_db)):
    return await category_service.soft_delete_category(db, category_id)


@router.patch("/{category_id}/restore", response_model=CategoryResponse, dependencies=[Depends(require_admin)])
async def restore_category(category_id: int, db: AsyncSession = Depends(get_db)):
    return await category_service.restore_category(db, category_id)


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(require_admin)])
async def delete_category(category_id: int, db: AsyncSession = Depends(get_db)):
    await category_service.delete_category(db, category_id)
