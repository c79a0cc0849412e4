"""Initial database schema - users, catalog, orders, payments, inventory, reviews, templates

Revision ID: 001_initial
Revises: None
Create Date: 2025-06-02
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

UUID = postgresql.UUID(as_uuid=True)
JSONB = postgresql.JSONB

role_type = sa.Enum("ADMIN", "CUSTOMER", "VENDOR", "DESIGNER", name="roletype")
product_type = sa.Enum("SIMPLE", "VARIABLE", name="producttype")
order_status = sa.Enum("PENDING", "PROCESSING", "SHIPPED", "DELIVERED", "CANCELLED", name="orderstatus")
inventory_movement = sa.Enum("IN", "OUT", "ADJUSTMENT", "SALE", "RETURN", name="inventorymovement")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    # --- Users ---
    op.create_table(
        "users",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(255)),
        sa.Column("phone", sa.String(20)),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"])

    op.create_table(
        "user_roles",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("role", role_type, nullable=False),
        sa.Column("permissions", JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("user_id", UUID, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.UniqueConstraint("user_id", "role", name="uq_user_role"),
    )
    op.create_index("ix_user_roles_user_id", "user_roles", ["user_id"])

    # --- Categories ---
    op.create_table(
        "categories",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False, unique=True),
        sa.Column("attributes_normalized", JSONB),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("parent_id", sa.Integer, sa.ForeignKey("categories.id", ondelete="SET NULL")),
        sa.Column("deleted_at", sa.DateTime(timezone=True)),
        *_timestamps(),
    )
    op.create_index("ix_categories_name", "categories", ["name"])
    op.create_index("ix_categories_slug", "categories", ["slug"])
    op.create_index("ix_categories_parent_id", "categories", ["parent_id"])

    # --- Products ---
    op.create_table(
        "products",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("sku", sa.String(100), nullable=False, unique=True),
        sa.Column("slug", sa.String(255), nullable=False, unique=True),
        sa.Column("description", sa.Text),
        sa.Column("type", product_type, nullable=False, server_default="SIMPLE"),
        sa.Column("base_price", sa.Numeric(12, 2)),
        sa.Column("stock", sa.Integer, nullable=False, server_default="0"),
        sa.Column("min_stock", sa.Integer, nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("deleted_at", sa.DateTime(timezone=True)),
        *_timestamps(),
        sa.CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
    )
    op.create_index("ix_products_name", "products", ["name"])
    op.create_index("ix_products_sku", "products", ["sku"])
    op.create_index("ix_products_slug", "products", ["slug"])

    op.create_table(
        "product_categories",
        sa.Column("product_id", UUID, sa.ForeignKey("products.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("category_id", sa.Integer, sa.ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True),
    )

    op.create_table(
        "product_images",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("url", sa.String(500), nullable=False),
        sa.Column("alt_text", sa.String(255)),
        sa.Column("is_primary", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("product_id", UUID, sa.ForeignKey("products.id", ondelete="CASCADE"), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_product_images_product_id", "product_images", ["product_id"])

    op.create_table(
        "product_attributes",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("value", sa.String(255), nullable=False),
        sa.Column("product_id", UUID, sa.ForeignKey("products.id", ondelete="CASCADE"), nullable=False),
    )
    op.create_index("ix_product_attributes_product_id", "product_attributes", ["product_id"])

    # --- Variants ---
    op.create_table(
        "product_variants",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("sku_suffix", sa.String(100), nullable=False),
        sa.Column("stock", sa.Integer, nullable=False, server_default="0"),
        sa.Column("price", sa.Numeric(12, 2), nullable=False),
        sa.Column("min_stock", sa.Integer, nullable=False, server_default="5"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("attributes", JSONB),
        sa.Column("product_id", UUID, sa.ForeignKey("products.id", ondelete="CASCADE"), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True)),
        *_timestamps(),
        sa.CheckConstraint("stock >= 0", name="ck_variants_stock_non_negative"),
    )
    op.create_index("ix_product_variants_product_id", "product_variants", ["product_id"])

    op.create_table(
        "product_variant_images",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("url", sa.String(500), nullable=False),
        sa.Column("alt_text", sa.String(255)),
        sa.Column("is_primary", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("variant_id", UUID, sa.ForeignKey("product_variants.id", ondelete="CASCADE"), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_product_variant_images_variant_id", "product_variant_images", ["variant_id"])

    op.create_table(
        "wishlist_items",
        sa.Column("user_id", UUID, sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("product_id", UUID, sa.ForeignKey("products.id", ondelete="CASCADE"), primary_key=True),
    )

    # --- Orders ---
    op.create_table(
        "orders",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("status", order_status, nullable=False, server_default="PENDING"),
        sa.Column("subtotal", sa.Numeric(12, 2), nullable=False),
        sa.Column("shipping", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("discount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("tax", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("total", sa.Numeric(12, 2), nullable=False),
        sa.Column("shipping_address", JSONB),
        sa.Column("billing_address", JSONB),
        sa.Column("notes", sa.Text),
        sa.Column("tracking_number", sa.String(100)),
        sa.Column("delivery_date", sa.DateTime(timezone=True)),
        sa.Column("user_id", UUID, sa.ForeignKey("users.id"), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_orders_status", "orders", ["status"])
    op.create_index("ix_orders_user_id", "orders", ["user_id"])
    op.create_index("ix_orders_user_created", "orders", ["user_id", "created_at"])

    op.create_table(
        "order_items",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("quantity", sa.Integer, nullable=False),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("discount_applied", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("order_id", UUID, sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("product_id", UUID, sa.ForeignKey("products.id")),
        sa.Column("variant_id", UUID, sa.ForeignKey("product_variants.id")),
        sa.CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
    )
    op.create_index("ix_order_items_order_id", "order_items", ["order_id"])
    op.create_index("ix_order_items_product_id", "order_items", ["product_id"])

    # --- Payments ---
    op.create_table(
        "payments",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("gateway", sa.String(50), nullable=False),
        sa.Column("gateway_id", sa.String(255)),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default="usd"),
        sa.Column("status", sa.String(50), nullable=False, server_default="pending"),
        sa.Column("metadata", JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("order_id", UUID, sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("gateway", "gateway_id", name="uq_payments_gateway_id"),
    )
    op.create_index("ix_payments_order_id", "payments", ["order_id"])
    op.create_index("ix_payments_gateway_id", "payments", ["gateway_id"])
    op.create_index("ix_payments_status_created", "payments", ["status", "created_at"])

    op.create_table(
        "webhook_events",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("gateway", sa.String(50), nullable=False),
        sa.Column("event_id", sa.String(255), nullable=False),
        sa.Column("event_type", sa.String(100), nullable=False),
        sa.Column("received_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("gateway", "event_id", name="uq_webhook_events_event"),
    )

    # --- Inventory ---
    op.create_table(
        "inventory_logs",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("quantity", sa.Integer, nullable=False),
        sa.Column("movement", inventory_movement, nullable=False),
        sa.Column("reason", sa.String(255)),
        sa.Column("reference_id", sa.String(255)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("product_id", UUID, sa.ForeignKey("products.id", ondelete="CASCADE"), nullable=False),
        sa.Column("variant_id", UUID, sa.ForeignKey("product_variants.id", ondelete="SET NULL")),
    )
    op.create_index("ix_inventory_logs_movement", "inventory_logs", ["movement"])
    op.create_index("ix_inventory_logs_reference_id", "inventory_logs", ["reference_id"])
    op.create_index("ix_inventory_logs_product_id", "inventory_logs", ["product_id"])
    op.create_index("ix_inventory_logs_variant_id", "inventory_logs", ["variant_id"])

    # --- Reviews ---
    op.create_table(
        "product_reviews",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("rating", sa.Integer, nullable=False),
        sa.Column("comment", sa.Text),
        sa.Column("product_id", UUID, sa.ForeignKey("products.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", UUID, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("rating BETWEEN 1 AND 5", name="ck_review_rating"),
    )
    op.create_index("ix_product_reviews_product_id", "product_reviews", ["product_id"])
    op.create_index("ix_product_reviews_user_id", "product_reviews", ["user_id"])

    # --- Design templates ---
    op.create_table(
        "design_templates",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False, unique=True),
        sa.Column("description", sa.Text),
        sa.Column("room_type", sa.String(100)),
        sa.Column("style", sa.String(100)),
        sa.Column("discount", sa.Numeric(5, 4)),
        sa.Column("total_price", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("cover_image_url", sa.String(500)),
        sa.Column("featured", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("deleted_at", sa.DateTime(timezone=True)),
        *_timestamps(),
    )
    op.create_index("ix_design_templates_slug", "design_templates", ["slug"])

    op.create_table(
        "design_template_products",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("quantity", sa.Integer, nullable=False, server_default="1"),
        sa.Column("is_optional", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("notes", sa.Text),
        sa.Column("template_id", UUID, sa.ForeignKey("design_templates.id", ondelete="CASCADE"), nullable=False),
        sa.Column("product_id", UUID, sa.ForeignKey("products.id", ondelete="CASCADE"), nullable=False),
    )
    op.create_index("ix_design_template_products_template_id", "design_template_products", ["template_id"])


def downgrade() -> None:
    op.drop_table("design_template_products")
    op.drop_table("design_templates")
    op.drop_table("product_reviews")
    op.drop_table("inventory_logs")
    op.drop_table("webhook_events")
    op.drop_table("payments")
    op.drop_table("order_items")
    op.drop_table("orders")
    op.drop_table("wishlist_items")
    op.drop_table("product_variant_images")
    op.drop_table("product_variants")
    op.drop_table("product_attributes")
    op.drop_table("product_images")
    op.drop_table("product_categories")
    op.drop_table("products")
    op.drop_table("categories")
    op.drop_table("user_roles")
    op.drop_table("users")
    for enum in (inventory_movement, order_status, product_type, role_type):
        enum.drop(op.get_bind(), checkfirst=True)
