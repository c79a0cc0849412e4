"""Cart / recently-viewed schemas (Redis-backed, not persisted in SQL)."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class CartItem(BaseModel):
    product_id: UUID
    variant_id: UUID | None = None
    quantity: int = Field(..., gt=0)


class CartUpdate(BaseModel):
    items: list[CartItem]
    session_id: str | None = None


class CartResponse(BaseModel):
    items: list[CartItem]
    updated_at: datetime | None = None
    session_id: str | None = None


class RecentViews(BaseModel):
    product_ids: list[str]
