from storefront.schemas.product import (
    ProductCreate, ProductUpdate, ProductResponse, CatalogProductResponse,
)
from storefront.schemas.category import (
    CategoryCreate, CategoryUpdate, CategoryResponse,
)
from storefront.schemas.order import (
    OrderCreate, OrderItemCreate, OrderResponse,
)
from storefront.schemas.payment import (
    PaymentIntentCreate, PaymentResponse, PaymentListResponse,
)
from storefront.schemas.inventory import (
    InventoryLogCreate, InventoryLogResponse,
)

__all__ = [
    "ProductCreate", "ProductUpdate", "ProductResponse", "CatalogProductResponse",
    "CategoryCreate", "CategoryUpdate", "CategoryResponse",
    "OrderCreate", "OrderItemCreate", "OrderResponse",
    "PaymentIntentCreate", "PaymentResponse", "PaymentListResponse",
    "InventoryLogCreate", "InventoryLogResponse",
]
