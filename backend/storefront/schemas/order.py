"""Order schemas for API request/response."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from storefront.models.order import OrderStatus
from storefront.schemas.payment import PaymentResponse


class OrderItemCreate(BaseModel):
    product_id: UUID | None = None
    variant_id: UUID | None = None
    quantity: int = Field(..., gt=0)


class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    product_id: UUID | None
    variant_id: UUID | None
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    discount_applied: Decimal


class OrderCreate(BaseModel):
    items: list[OrderItemCreate] = Field(..., min_length=1)
    shipping_address: dict | None = None
    billing_address: dict | None = None
    notes: str | None = None


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    status: OrderStatus
    subtotal: Decimal
    shipping: Decimal
    discount: Decimal
    tax: Decimal
    total: Decimal
    shipping_address: dict | None = None
    billing_address: dict | None = None
    notes: str | None = None
    tracking_number: str | None = None
    delivery_date: datetime | None = None
    items: list[OrderItemResponse]
    payments: list[PaymentResponse] = []
    created_at: datetime
    updated_at: datetime


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    tracking_number: str | None = Field(None, max_length=100)
