"""Order endpoints. Customers see their own orders; admins see all."""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from pymongo.asynchronous.database import AsyncDatabase
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.deps import get_analytics_db, get_current_user, is_admin, require_admin
from storefront.core.errors import NotFoundError
from storefront.db.base import get_db
from storefront.models.order import Order
from storefront.models.user import User
from storefront.schemas.order import OrderCreate, OrderResponse, OrderStatusUpdate
from storefront.services import analytics
from storefront.services import orders as order_service

router = APIRouter(prefix="/orders", tags=["orders"])


async def _owned_order(db: AsyncSession, order_id: UUID, user: User) -> Order:
    order = await order_service.get_order(db, order_id)
    if order.user_id != user.id and not is_admin(user):
        # Other users' orders look missing
        raise NotFoundError("Order not found")
    return order


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    body: OrderCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    mongo: AsyncDatabase = Depends(get_analytics_db),
):
    order = await order_service.create_order(db, user.id, body)
    await analytics.update_user_insights(
        mongo, user.id, {"last_order_id": str(order.id), "last_order_total": str(order.total)}
    )
    return order


@router.get("/me", response_model=list[OrderResponse])
async def my_orders(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await order_service.list_orders_by_user(db, user.id)


@router.get("", response_model=list[OrderResponse], dependencies=[Depends(require_admin)])
async def list_orders(db: AsyncSession = Depends(get_db)):
    return await order_service.list_all_orders(db)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: UUID, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await _owned_order(db, order_id, user)


@router.patch("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(order_id: UUID, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    await _owned_order(db, order_id, user)
    return await order_service.cancel_order(db, order_id)


@router.patch("/{order_id}/status", response_model=OrderResponse, dependencies=[Depends(require_admin)])
async def update_status(order_id: UUID, body: OrderStatusUpdate, db: AsyncSession = Depends(get_db)):
    return await order_service.update_order_status(db, order_id, body.status, body.tracking_number)
