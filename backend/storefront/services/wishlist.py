from uuid import UUID

from sqlalchemy import delete, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.errors import NotFoundError
from storefront.models.product import Product
from storefront.models.user import wishlist_items


async def add_to_wishlist(db: AsyncSession, user_id: UUID, product_id: UUID) -> list[Product]:
    product = await db.get(Product, product_id)
    if not product or product.is_deleted:
        raise NotFoundError("Product not found")

    exists = await db.execute(
        select(wishlist_items.c.product_id).where(
            wishlist_items.c.user_id == user_id, wishlist_items.c.product_id == product_id
        )
    )
    if not exists.first():
        await db.execute(insert(wishlist_items).values(user_id=user_id, product_id=product_id))
        await db.commit()
    return await get_wishlist(db, user_id)


async def remove_from_wishlist(db: AsyncSession, user_id: UUID, product_id: UUID) -> list[Product]:
    await db.execute(
        delete(wishlist_items).where(
            wishlist_items.c.user_id == user_id, wishlist_items.c.product_id == product_id
        )
    )
    await db.commit()
    return await get_wishlist(db, user_id)


async def get_wishlist(db: AsyncSession, user_id: UUID) -> list[Product]:
    result = await db.execute(
        select(Product)
        .join(wishlist_items, wishlist_items.c.product_id == Product.id)
        .where(wishlist_items.c.user_id == user_id)
        .order_by(Product.name)
    )
    return list(result.scalars().all())
