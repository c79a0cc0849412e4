"""Product catalog: CRUD by id-or-sku, activation, soft delete and images."""

import logging
import uuid
from uuid import UUID

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.errors import ConflictError, NotFoundError, ValidationError
from storefront.models.category import Category
from storefront.models.mixins import utc_now
from storefront.models.order import OrderItem
from storefront.models.product import Product, ProductAttribute, ProductImage
from storefront.models.review import ProductReview
from storefront.schemas.product import (
    CatalogProductResponse,
    ProductCreate,
    ProductImageCreate,
    ProductResponse,
    ProductUpdate,
    ReviewStats,
)
from storefront.services.slug import generate_unique_slug, slug_exists, slugify

logger = logging.getLogger(__name__)


def _identifier_clause(identifier: str):
    """Match on primary key when ``identifier`` parses as a UUID, on sku otherwise."""
    try:
        return or_(Product.id == uuid.UUID(identifier), Product.sku == identifier)
    except ValueError:
        return Product.sku == identifier


async def _reload(db: AsyncSession, product_id: UUID) -> Product:
    result = await db.execute(
        select(Product).where(Product.id == product_id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def _find(db: AsyncSession, identifier: str, *, deleted: bool = False) -> Product:
    query = select(Product).where(_identifier_clause(identifier))
    query = query.where(Product.deleted_at.is_not(None) if deleted else Product.deleted_at.is_(None))
    product = (await db.execute(query)).scalar_one_or_none()
    if not product:
        raise NotFoundError("Deleted product not found" if deleted else "Product not found")
    return product


async def _load_categories(db: AsyncSession, category_ids: list[int]) -> list[Category]:
    if not category_ids:
        return []
    result = await db.execute(select(Category).where(Category.id.in_(category_ids)))
    categories = list(result.scalars().all())
    missing = set(category_ids) - {c.id for c in categories}
    if missing:
        raise NotFoundError(f"Categories not found: {sorted(missing)}")
    return categories


async def _check_unique(db: AsyncSession, *, sku: str | None, slug: str | None, exclude_id: UUID | None = None) -> None:
    if sku:
        query = select(Product.id).where(Product.sku == sku)
        if exclude_id is not None:
            query = query.where(Product.id != exclude_id)
        if (await db.execute(query)).first():
            raise ConflictError(f"SKU '{sku}' already exists")
    if slug and await slug_exists(db, Product, slug, exclude_id=exclude_id):
        raise ConflictError(f"Slug '{slug}' already exists")


async def create_product(db: AsyncSession, data: ProductCreate) -> Product:
    slug = slugify(data.slug or "") or await generate_unique_slug(db, Product, data.name)
    await _check_unique(db, sku=data.sku, slug=slug)

    product = Product(
        name=data.name,
        sku=data.sku,
        slug=slug,
        description=data.description,
        type=data.type,
        base_price=data.base_price,
        stock=data.stock,
        min_stock=data.min_stock,
        attributes=[ProductAttribute(name=k, value=v) for k, v in data.attributes.items()],
        categories=await _load_categories(db, data.category_ids),
    )
    db.add(product)
    await db.commit()
    logger.info("Product created: %s", product.sku)
    return await _reload(db, product.id)


async def update_product(db: AsyncSession, identifier: str, data: ProductUpdate) -> Product:
    """Partial update. Attributes are merged into the existing set, categories replaced."""
    product = await _find(db, identifier)
    changes = data.model_dump(exclude_unset=True, exclude={"attributes", "category_ids"})

    if "slug" in changes:
        # a blank or symbol-only slug keeps the current one
        slug = slugify(changes.pop("slug") or "")
        if slug:
            changes["slug"] = slug
    await _check_unique(db, sku=changes.get("sku"), slug=changes.get("slug"), exclude_id=product.id)

    for field, value in changes.items():
        setattr(product, field, value)

    if data.attributes is not None:
        merged = {attr.name: attr.value for attr in product.attributes}
        merged.update(data.attributes)
        product.attributes.clear()
        await db.flush()
        product.attributes.extend(ProductAttribute(name=k, value=v) for k, v in merged.items())

    if data.category_ids is not None:
        product.categories = await _load_categories(db, data.category_ids)

    await db.commit()
    return await _reload(db, product.id)


async def get_product(db: AsyncSession, identifier: str) -> Product:
    return await _find(db, identifier)


async def get_product_by_slug(db: AsyncSession, slug: str) -> Product:
    result = await db.execute(
        select(Product).where(Product.slug == slug, Product.deleted_at.is_(None))
    )
    product = result.scalar_one_or_none()
    if not product or not product.is_active:
        raise NotFoundError("Product not found")
    return product


async def list_products(db: AsyncSession, *, include_inactive: bool = True) -> list[Product]:
    query = select(Product).where(Product.deleted_at.is_(None))
    if not include_inactive:
        query = query.where(Product.is_active.is_(True))
    result = await db.execute(query.order_by(Product.created_at.desc()))
    return list(result.scalars().all())


async def list_catalog(db: AsyncSession) -> list[CatalogProductResponse]:
    """Active products with their active variants and review stats."""
    products = await list_products(db, include_inactive=False)

    stats_rows = await db.execute(
        select(ProductReview.product_id, func.avg(ProductReview.rating), func.count(ProductReview.id))
        .group_by(ProductReview.product_id)
    )
    stats = {pid: (float(avg or 0), count) for pid, avg, count in stats_rows.all()}

    catalog = []
    for product in products:
        data = ProductResponse.model_validate(product).model_dump()
        data["variants"] = [v for v in data["variants"] if v["is_active"]]
        average, total = stats.get(product.id, (0.0, 0))
        catalog.append(
            CatalogProductResponse(**data, stats=ReviewStats(average_rating=average, total_reviews=total))
        )
    return catalog


async def list_deleted_products(db: AsyncSession) -> list[Product]:
    result = await db.execute(
        select(Product).where(Product.deleted_at.is_not(None)).order_by(Product.deleted_at.desc())
    )
    return list(result.scalars().all())


async def count_products(db: AsyncSession, *, include_inactive: bool = False, include_deleted: bool = False) -> int:
    query = select(func.count()).select_from(Product)
    if not include_deleted:
        query = query.where(Product.deleted_at.is_(None))
    if not include_inactive:
        query = query.where(Product.is_active.is_(True))
    return (await db.execute(query)).scalar_one()


async def set_product_active(db: AsyncSession, identifier: str, active: bool) -> Product:
    product = await _find(db, identifier)
    product.is_active = active
    await db.commit()
    return product


async def soft_delete_product(db: AsyncSession, identifier: str) -> Product:
    product = await _find(db, identifier)
    product.deleted_at = utc_now()
    product.is_active = False
    await db.commit()
    logger.info("Product soft-deleted: %s", product.sku)
    return product


async def restore_product(db: AsyncSession, identifier: str) -> Product:
    product = await _find(db, identifier, deleted=True)
    product.deleted_at = None
    product.is_active = True
    await db.commit()
    return product


async def permanent_delete_product(db: AsyncSession, identifier: str) -> UUID:
    """Remove the product with its attributes, images and variants.

    Refused while any order line references the product or one of its variants.
    """
    query = select(Product).where(_identifier_clause(identifier))
    product = (await db.execute(query)).scalar_one_or_none()
    if not product:
        raise NotFoundError("Product not found")

    variant_ids = [v.id for v in product.variants]
    ref_clause = OrderItem.product_id == product.id
    if variant_ids:
        ref_clause = or_(ref_clause, OrderItem.variant_id.in_(variant_ids))
    referenced = await db.execute(select(OrderItem.id).where(ref_clause).limit(1))
    if referenced.first():
        raise ConflictError("Product is referenced by existing orders")

    await db.delete(product)
    await db.commit()
    logger.info("Product permanently deleted: %s", product.sku)
    return product.id


async def add_product_image(db: AsyncSession, product_id: UUID, data: ProductImageCreate) -> ProductImage:
    product = await db.get(Product, product_id)
    if not product or product.is_deleted:
        raise NotFoundError("Product not found")

    if data.is_primary:
        await db.execute(
            update(ProductImage)
            .where(ProductImage.product_id == product_id, ProductImage.is_primary.is_(True))
            .values(is_primary=False)
            .execution_options(synchronize_session=False)
        )
    image = ProductImage(product_id=product_id, **data.model_dump())
    db.add(image)
    await db.commit()
    return image


async def remove_product_image(db: AsyncSession, image_id: UUID) -> UUID:
    """Delete an image and return the id of the product it belonged to."""
    image = await db.get(ProductImage, image_id)
    if not image:
        raise NotFoundError("Image not found")
    product_id = image.product_id
    await db.delete(image)
    await db.commit()
    return product_id


def ensure_orderable(product: Product) -> None:
    """Raise unless ``product`` can be sold at its own base price."""
    if not product.is_active or product.is_deleted:
        raise ValidationError(f"Product {product.id} is not available")
    if product.base_price is None:
        raise ValidationError(f"Product {product.id} has no base price")
