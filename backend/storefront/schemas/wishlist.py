from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from storefront.schemas.product import ProductImageResponse


class WishlistAdd(BaseModel):
    product_id: UUID


class WishlistProduct(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    slug: str
    base_price: Decimal | None
    is_active: bool
    images: list[ProductImageResponse] = []
