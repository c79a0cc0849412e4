"""SQLAlchemy models for the storefront."""

from storefront.models.user import User, UserRole, RoleType, wishlist_items
from storefront.models.category import Category
from storefront.models.product import Product, ProductImage, ProductAttribute, ProductType, product_categories
from storefront.models.variant import ProductVariant, ProductVariantImage
from storefront.models.order import Order, OrderItem, OrderStatus
from storefront.models.payment import Payment, WebhookEvent
from storefront.models.inventory import InventoryLog, InventoryMovement
from storefront.models.review import ProductReview
from storefront.models.design_template import DesignTemplate, DesignTemplateProduct

__all__ = [
    "User",
    "UserRole",
    "RoleType",
    "wishlist_items",
    "Category",
    "Product",
    "ProductImage",
    "ProductAttribute",
    "ProductType",
    "product_categories",
    "ProductVariant",
    "ProductVariantImage",
    "Order",
    "OrderItem",
    "OrderStatus",
    "Payment",
    "WebhookEvent",
    "InventoryLog",
    "InventoryMovement",
    "ProductReview",
    "DesignTemplate",
    "DesignTemplateProduct",
]
