"""Product variant schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class VariantImageCreate(BaseModel):
    url: str = Field(..., max_length=500)
    alt_text: str | None = Field(None, max_length=255)
    is_primary: bool = False


class VariantImageResponse(VariantImageCreate):
    model_config = ConfigDict(from_attributes=True)

    id: UUID


class VariantCreate(BaseModel):
    product_id: UUID
    sku_suffix: str = Field(..., min_length=1, max_length=100)
    price: Decimal = Field(..., ge=0, decimal_places=2)
    stock: int = Field(default=0, ge=0)
    min_stock: int = Field(default=5, ge=0)
    attributes: dict | None = None


class VariantUpdate(BaseModel):
    sku_suffix: str | None = Field(None, min_length=1, max_length=100)
    price: Decimal | None = Field(None, ge=0, decimal_places=2)
    stock: int | None = Field(None, ge=0)
    min_stock: int | None = Field(None, ge=0)
    is_active: bool | None = None
    attributes: dict | None = None


class VariantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    product_id: UUID
    sku_suffix: str
    price: Decimal
    stock: int
    min_stock: int
    is_active: bool
    is_low_stock: bool
    attributes: dict | None = None
    images: list[VariantImageResponse] = []
    created_at: datetime
