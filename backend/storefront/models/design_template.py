"""Design template: a curated bundle of products for a room/style."""

import uuid
from decimal import Decimal

from sqlalchemy import Boolean, ForeignKey, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storefront.db.base import Base
from storefront.models.mixins import SoftDeleteMixin, TimestampMixin, UUIDPrimaryKeyMixin


class DesignTemplate(UUIDPrimaryKeyMixin, TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "design_templates"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text)
    room_type: Mapped[str | None] = mapped_column(String(100))
    style: Mapped[str | None] = mapped_column(String(100))
    discount: Mapped[Decimal | None] = mapped_column(Numeric(5, 4))  # fraction, 0.15 = 15%
    total_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0.00"), nullable=False)
    cover_image_url: Mapped[str | None] = mapped_column(String(500))
    featured: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    products = relationship(
        "DesignTemplateProduct",
        back_populates="template",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<DesignTemplate {self.slug}>"


class DesignTemplateProduct(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "design_template_products"

    quantity: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    is_optional: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)

    template_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("design_templates.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("products.id", ondelete="CASCADE"), nullable=False
    )

    template = relationship("DesignTemplate", back_populates="products")
    product = relationship("Product")
