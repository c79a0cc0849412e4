"""Cart and recently-viewed endpoints; state lives in Redis only."""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from fastapi.encoders import jsonable_encoder
from redis.asyncio import Redis

from storefront.core.deps import get_cache, get_current_user
from storefront.models.user import User
from storefront.schemas.cart import CartResponse, CartUpdate, RecentViews
from storefront.services import cache

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("", response_model=CartResponse)
async def get_cart(user: User = Depends(get_current_user), redis: Redis = Depends(get_cache)):
    cart = await cache.get_cart(redis, user.id)
    return cart or CartResponse(items=[])


@router.put("", response_model=CartResponse)
async def set_cart(body: CartUpdate, user: User = Depends(get_current_user), redis: Redis = Depends(get_cache)):
    items = jsonable_encoder(body.items)
    return await cache.set_cart(redis, user.id, items, body.session_id)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def clear_cart(user: User = Depends(get_current_user), redis: Redis = Depends(get_cache)):
    await cache.clear_cart(redis, user.id)


@router.get("/recent-views", response_model=RecentViews)
async def recent_views(user: User = Depends(get_current_user), redis: Redis = Depends(get_cache)):
    return RecentViews(product_ids=await cache.get_recent_views(redis, user.id))


@router.post("/recent-views/{product_id}", response_model=RecentViews)
async def add_recent_view(product_id: UUID, user: User = Depends(get_current_user), redis: Redis = Depends(get_cache)):
    await cache.add_recent_view(redis, user.id, product_id)
    return RecentViews(product_ids=await cache.get_recent_views(redis, user.id))
