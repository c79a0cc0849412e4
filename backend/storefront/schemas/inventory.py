"""Inventory log request/response schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from storefront.models.inventory import InventoryMovement


class InventoryLogCreate(BaseModel):
    product_id: UUID | None = None
    variant_id: UUID | None = None
    quantity: int
    movement: InventoryMovement | None = None
    reason: str | None = Field(None, max_length=255)
    reference_id: str | None = Field(None, max_length=255)


class InventoryLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    product_id: UUID
    variant_id: UUID | None
    quantity: int
    movement: InventoryMovement
    reason: str | None
    reference_id: str | None
    created_at: datetime
