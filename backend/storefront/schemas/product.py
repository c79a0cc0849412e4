from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from storefront.models.product import ProductType
from storefront.schemas.category import CategoryBrief
from storefront.schemas.variant import VariantResponse


# ── Images / attributes ──
class ProductImageCreate(BaseModel):
    url: str = Field(..., max_length=500)
    alt_text: str | None = Field(None, max_length=255)
    is_primary: bool = False


class ProductImageResponse(ProductImageCreate):
    model_config = ConfigDict(from_attributes=True)

    id: UUID


class ProductAttributeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    value: str


# ── Product ──
class ProductBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    sku: str = Field(..., min_length=1, max_length=100)
    description: str | None = None
    type: ProductType = ProductType.SIMPLE
    base_price: Decimal | None = Field(None, ge=0, decimal_places=2)
    stock: int = Field(default=0, ge=0)
    min_stock: int = Field(default=0, ge=0)


class ProductCreate(ProductBase):
    slug: str | None = Field(None, max_length=255)
    attributes: dict[str, str] = Field(default_factory=dict)
    category_ids: list[int] = Field(default_factory=list)


class ProductUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    sku: str | None = Field(None, min_length=1, max_length=100)
    slug: str | None = Field(None, max_length=255)
    description: str | None = None
    type: ProductType | None = None
    base_price: Decimal | None = Field(None, ge=0, decimal_places=2)
    stock: int | None = Field(None, ge=0)
    min_stock: int | None = Field(None, ge=0)
    attributes: dict[str, str] | None = None
    category_ids: list[int] | None = None


class ProductResponse(ProductBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    slug: str
    is_active: bool
    deleted_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
    categories: list[CategoryBrief] = []
    images: list[ProductImageResponse] = []
    attributes: list[ProductAttributeResponse] = []
    variants: list[VariantResponse] = []


class ReviewStats(BaseModel):
    average_rating: float
    total_reviews: int


class CatalogProductResponse(ProductResponse):
    stats: ReviewStats


class ProductListResponse(BaseModel):
    items: list[ProductResponse]
    total: int


class ProductCount(BaseModel):
    count: int
