"""Design template schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class TemplateProductIn(BaseModel):
    product_id: UUID
    quantity: int = Field(default=1, ge=1)
    is_optional: bool = False
    notes: str | None = None


class TemplateProductResponse(TemplateProductIn):
    model_config = ConfigDict(from_attributes=True)

    id: UUID


class TemplateCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    slug: str | None = Field(None, max_length=255)
    description: str | None = None
    room_type: str | None = Field(None, max_length=100)
    style: str | None = Field(None, max_length=100)
    discount: Decimal | None = Field(None, ge=0, le=1)
    cover_image_url: str | None = Field(None, max_length=500)
    featured: bool = False
    products: list[TemplateProductIn] = Field(..., min_length=1)


class TemplateUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    slug: str | None = Field(None, max_length=255)
    description: str | None = None
    room_type: str | None = Field(None, max_length=100)
    style: str | None = Field(None, max_length=100)
    discount: Decimal | None = Field(None, ge=0, le=1)
    cover_image_url: str | None = Field(None, max_length=500)
    featured: bool | None = None
    products: list[TemplateProductIn] | None = None


class TemplateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    slug: str
    description: str | None
    room_type: str | None
    style: str | None
    discount: Decimal | None
    total_price: Decimal
    cover_image_url: str | None
    featured: bool
    is_active: bool
    products: list[TemplateProductResponse]
    created_at: datetime
