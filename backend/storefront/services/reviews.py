from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.errors import NotFoundError, ValidationError
from storefront.models.product import Product
from storefront.models.review import ProductReview
from storefront.schemas.review import ReviewCreate


async def create_review(db: AsyncSession, user_id: UUID, data: ReviewCreate) -> ProductReview:
    if not 1 <= data.rating <= 5:
        raise ValidationError("Rating must be between 1 and 5")
    product = await db.get(Product, data.product_id)
    if not product or product.is_deleted:
        raise NotFoundError("Product not found")

    review = ProductReview(product_id=data.product_id, user_id=user_id, rating=data.rating, comment=data.comment)
    db.add(review)
    await db.commit()
    return review


async def list_reviews(db: AsyncSession, product_id: UUID) -> list[ProductReview]:
    result = await db.execute(
        select(ProductReview)
        .where(ProductReview.product_id == product_id)
        .order_by(ProductReview.created_at.desc())
    )
    return list(result.scalars().all())


async def average_rating(db: AsyncSession, product_id: UUID) -> float:
    """Mean rating for the product, 0 when it has no reviews."""
    result = await db.execute(
        select(func.avg(ProductReview.rating)).where(ProductReview.product_id == product_id)
    )
    value = result.scalar_one_or_none()
    return round(float(value), 2) if value is not None else 0.0
