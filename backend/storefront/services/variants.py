"""Product variants and their images."""

import logging
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.errors import NotFoundError, ValidationError
from storefront.models.mixins import utc_now
from storefront.models.product import Product
from storefront.models.variant import ProductVariant, ProductVariantImage
from storefront.schemas.variant import VariantCreate, VariantImageCreate, VariantUpdate

logger = logging.getLogger(__name__)


async def _reload(db: AsyncSession, variant_id: UUID) -> ProductVariant:
    result = await db.execute(
        select(ProductVariant)
        .where(ProductVariant.id == variant_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def _get_any(db: AsyncSession, variant_id: UUID) -> ProductVariant:
    variant = await db.get(ProductVariant, variant_id)
    if not variant:
        raise NotFoundError("Variant not found")
    return variant


async def create_variant(db: AsyncSession, data: VariantCreate) -> ProductVariant:
    product = await db.get(Product, data.product_id)
    if not product or product.is_deleted:
        raise NotFoundError("Product not found")

    variant = ProductVariant(**data.model_dump())
    db.add(variant)
    await db.commit()
    logger.info("Variant %s created for product %s", variant.sku_suffix, product.sku)
    return await _reload(db, variant.id)


async def update_variant(db: AsyncSession, variant_id: UUID, data: VariantUpdate) -> ProductVariant:
    variant = await _get_any(db, variant_id)
    if variant.is_deleted:
        raise NotFoundError("Variant not found")
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(variant, field, value)
    await db.commit()
    return await _reload(db, variant.id)


async def delete_variant(db: AsyncSession, variant_id: UUID) -> ProductVariant:
    """Soft delete: the row stays so past order lines keep resolving."""
    variant = await _get_any(db, variant_id)
    variant.is_active = False
    variant.deleted_at = utc_now()
    await db.commit()
    return variant


async def list_variants(db: AsyncSession, product_id: UUID) -> list[ProductVariant]:
    result = await db.execute(
        select(ProductVariant)
        .where(
            ProductVariant.product_id == product_id,
            ProductVariant.is_active.is_(True),
            ProductVariant.deleted_at.is_(None),
        )
        .order_by(ProductVariant.created_at.desc())
    )
    return list(result.scalars().all())


async def get_variant(db: AsyncSession, variant_id: UUID) -> ProductVariant:
    variant = await db.get(ProductVariant, variant_id)
    if not variant or not variant.is_active or variant.is_deleted:
        raise NotFoundError("Variant not found")
    return variant


async def add_variant_image(db: AsyncSession, variant_id: UUID, data: VariantImageCreate) -> ProductVariantImage:
    await get_variant(db, variant_id)

    if data.is_primary:
        await db.execute(
            update(ProductVariantImage)
            .where(ProductVariantImage.variant_id == variant_id, ProductVariantImage.is_primary.is_(True))
            .values(is_primary=False)
            .execution_options(synchronize_session=False)
        )
    image = ProductVariantImage(variant_id=variant_id, **data.model_dump())
    db.add(image)
    await db.commit()
    return image


async def remove_variant_image(db: AsyncSession, image_id: UUID) -> UUID:
    """Delete a variant image and return the owning product id."""
    image = await db.get(ProductVariantImage, image_id)
    if not image:
        raise NotFoundError("Image not found")
    variant = await db.get(ProductVariant, image.variant_id)
    await db.delete(image)
    await db.commit()
    return variant.product_id


def ensure_orderable(variant: ProductVariant) -> None:
    if not variant.is_active or variant.is_deleted:
        raise ValidationError(f"Variant {variant.id} is not available")
