"""Design templates: curated product bundles with a precomputed bundle price."""

import logging
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.errors import ConflictError, NotFoundError, ValidationError
from storefront.models.design_template import DesignTemplate, DesignTemplateProduct
from storefront.models.mixins import utc_now
from storefront.models.product import Product, ProductType
from storefront.models.variant import ProductVariant
from storefront.schemas.template import TemplateCreate, TemplateProductIn, TemplateUpdate
from storefront.services.slug import generate_unique_slug, slug_exists, slugify

logger = logging.getLogger(__name__)


async def _unit_price(db: AsyncSession, product: Product) -> Decimal:
    """Base price for SIMPLE products, cheapest active variant for VARIABLE ones."""
    if product.type == ProductType.VARIABLE:
        result = await db.execute(
            select(ProductVariant.price)
            .where(
                ProductVariant.product_id == product.id,
                ProductVariant.is_active.is_(True),
                ProductVariant.deleted_at.is_(None),
            )
            .order_by(ProductVariant.price.asc())
            .limit(1)
        )
        return result.scalar_one_or_none() or Decimal("0")
    return product.base_price or Decimal("0")


async def price_bundle(
    db: AsyncSession, items: list[TemplateProductIn], discount: Decimal | None
) -> tuple[Decimal, list[DesignTemplateProduct]]:
    total = Decimal("0")
    rows = []
    for item in items:
        product = await db.get(Product, item.product_id)
        if not product or not product.is_active or product.is_deleted:
            raise ValidationError(f"Invalid product: {item.product_id}")
        total += await _unit_price(db, product) * item.quantity
        rows.append(DesignTemplateProduct(**item.model_dump()))

    if discount:
        total = total * (1 - discount)
    return total.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP), rows


async def _reload(db: AsyncSession, template_id: UUID) -> DesignTemplate:
    result = await db.execute(
        select(DesignTemplate)
        .where(DesignTemplate.id == template_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def create_template(db: AsyncSession, data: TemplateCreate) -> DesignTemplate:
    slug = slugify(data.slug or "")
    if slug:
        if await slug_exists(db, DesignTemplate, slug):
            raise ConflictError("Slug already in use")
    else:
        slug = await generate_unique_slug(db, DesignTemplate, data.name)

    total, rows = await price_bundle(db, data.products, data.discount)
    template = DesignTemplate(
        slug=slug,
        total_price=total,
        products=rows,
        **data.model_dump(exclude={"slug", "products"}),
    )
    db.add(template)
    await db.commit()
    logger.info("Design template created: %s total=%s", slug, total)
    return await _reload(db, template.id)


async def update_template(db: AsyncSession, template_id: UUID, data: TemplateUpdate) -> DesignTemplate:
    """Partial update; a given product list replaces the current one and reprices the bundle."""
    template = await db.get(DesignTemplate, template_id)
    if not template or template.is_deleted:
        raise NotFoundError("Template not found")

    changes = data.model_dump(exclude_unset=True, exclude={"products"})
    slug = slugify(changes.pop("slug", None) or "")
    if slug:
        if await slug_exists(db, DesignTemplate, slug, exclude_id=template.id):
            raise ConflictError("Slug already in use")
        changes["slug"] = slug
    for field, value in changes.items():
        setattr(template, field, value)

    if data.products is not None:
        total, rows = await price_bundle(db, data.products, template.discount)
        template.products.clear()
        await db.flush()
        template.products.extend(rows)
        template.total_price = total

    await db.commit()
    return await _reload(db, template.id)


async def get_template_by_slug(db: AsyncSession, slug: str) -> DesignTemplate:
    result = await db.execute(select(DesignTemplate).where(DesignTemplate.slug == slug))
    template = result.scalar_one_or_none()
    if not template or not template.is_active or template.is_deleted:
        raise NotFoundError("Template not found")
    return template


async def list_templates(db: AsyncSession) -> list[DesignTemplate]:
    result = await db.execute(
        select(DesignTemplate)
        .where(DesignTemplate.is_active.is_(True), DesignTemplate.deleted_at.is_(None))
        .order_by(DesignTemplate.created_at.desc())
    )
    return list(result.scalars().all())


async def delete_template(db: AsyncSession, template_id: UUID) -> DesignTemplate:
    template = await db.get(DesignTemplate, template_id)
    if not template:
        raise NotFoundError("Template not found")
    template.is_active = False
    template.deleted_at = utc_now()
    await db.commit()
    return template
