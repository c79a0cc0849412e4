"""Category tree management."""

import logging
from typing import Literal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.errors import ConflictError, NotFoundError, ValidationError
from storefront.models.category import Category
from storefront.models.mixins import utc_now
from storefront.models.product import product_categories
from storefront.schemas.category import CategoryCreate, CategoryUpdate
from storefront.services.slug import generate_unique_slug, slug_exists, slugify

logger = logging.getLogger(__name__)


async def _get_any(db: AsyncSession, category_id: int) -> Category:
    category = await db.get(Category, category_id)
    if not category:
        raise NotFoundError("Category not found")
    return category


async def _check_parent(db: AsyncSession, parent_id: int) -> None:
    parent = await db.get(Category, parent_id)
    if not parent or not parent.is_active or parent.is_deleted:
        raise ValidationError("Parent category does not exist or is inactive")


async def _count_children(db: AsyncSession, category_id: int, *, active_only: bool = False) -> int:
    query = select(func.count()).select_from(Category).where(Category.parent_id == category_id)
    if active_only:
        query = query.where(Category.is_active.is_(True), Category.deleted_at.is_(None))
    return (await db.execute(query)).scalar_one()


async def create_category(db: AsyncSession, data: CategoryCreate) -> Category:
    slug = slugify(data.slug or "")
    if slug:
        if await slug_exists(db, Category, slug):
            raise ConflictError("Slug already in use")
    else:
        slug = await generate_unique_slug(db, Category, data.name)

    if data.parent_id is not None:
        await _check_parent(db, data.parent_id)

    category = Category(
        name=data.name,
        slug=slug,
        parent_id=data.parent_id,
        attributes_normalized=data.attributes_normalized,
    )
    db.add(category)
    await db.commit()
    logger.info("Category created: %s", category.slug)
    return category


async def list_categories(db: AsyncSession, parent_id: int | Literal["root"] | None = None) -> list[Category]:
    """Non-deleted categories, newest first. ``parent_id="root"`` selects top-level only."""
    query = select(Category).where(Category.deleted_at.is_(None))
    if parent_id == "root":
        query = query.where(Category.parent_id.is_(None))
    elif parent_id is not None:
        query = query.where(Category.parent_id == parent_id)
    result = await db.execute(query.order_by(Category.created_at.desc(), Category.id.desc()))
    return list(result.scalars().all())


async def get_category(db: AsyncSession, category_id: int) -> Category:
    category = await db.get(Category, category_id)
    if not category or not category.is_active or category.is_deleted:
        raise NotFoundError("Category not found")
    return category


async def update_category(db: AsyncSession, category_id: int, data: CategoryUpdate) -> Category:
    category = await _get_any(db, category_id)
    changes = data.model_dump(exclude_unset=True)

    slug = slugify(changes.pop("slug", None) or "")
    if slug:
        if await slug_exists(db, Category, slug, exclude_id=category.id):
            raise ConflictError("Slug already in use")
        changes["slug"] = slug
    if changes.get("parent_id") is not None:
        if changes["parent_id"] == category.id:
            raise ValidationError("A category cannot be its own parent")
        await _check_parent(db, changes["parent_id"])

    for field, value in changes.items():
        setattr(category, field, value)
    await db.commit()
    return category


async def deactivate_category(db: AsyncSession, category_id: int) -> Category:
    category = await _get_any(db, category_id)
    if await _count_children(db, category.id, active_only=True):
        raise ValidationError("Cannot deactivate: category has active subcategories")
    category.is_active = False
    await db.commit()
    return category


async def activate_category(db: AsyncSession, category_id: int) -> Category:
    category = await _get_any(db, category_id)
    category.is_active = True
    category.deleted_at = None
    await db.commit()
    return category


async def soft_delete_category(db: AsyncSession, category_id: int) -> Category:
    category = await _get_any(db, category_id)
    if await _count_children(db, category.id, active_only=True):
        raise ValidationError("Cannot delete: category has active subcategories")
    category.is_active = False
    category.deleted_at = utc_now()
    await db.commit()
    return category


async def restore_category(db: AsyncSession, category_id: int) -> Category:
    category = await _get_any(db, category_id)
    if not category.is_deleted:
        raise ValidationError("Category is not deleted")
    return await activate_category(db, category_id)


async def delete_category(db: AsyncSession, category_id: int) -> None:
    """Hard delete; refused while subcategories or products still point at it."""
    category = await _get_any(db, category_id)
    if await _count_children(db, category.id):
        raise ConflictError("Cannot delete: category has subcategories")

    linked = await db.execute(
        select(func.count()).select_from(product_categories).where(
            product_categories.c.category_id == category.id
        )
    )
    if linked.scalar_one():
        raise ConflictError("Cannot delete: category is linked to one or more products")

    await db.delete(category)
    await db.commit()
    logger.info("Category %s deleted", category_id)


async def is_slug_available(db: AsyncSession, slug: str) -> bool:
    return not await slug_exists(db, Category, slugify(slug))
