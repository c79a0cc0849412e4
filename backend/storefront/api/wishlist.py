from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.deps import get_current_user
from storefront.db.base import get_db
from storefront.models.user import User
from storefront.schemas.wishlist import WishlistAdd, WishlistProduct
from storefront.services import wishlist as wishlist_service

router = APIRouter(prefix="/wishlist", tags=["wishlist"])


@router.get("", response_model=list[WishlistProduct])
async def get_wishlist(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await wishlist_service.get_wishlist(db, user.id)


@router.post("", response_model=list[WishlistProduct])
async def add_item(body: WishlistAdd, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await wishlist_service.add_to_wishlist(db, user.id, body.product_id)


@router.delete("/{product_id}", response_model=list[WishlistProduct])
async def remove_item(product_id: UUID, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await wishlist_service.remove_from_wishlist(db, user.id, product_id)
