"""User, role assignment and wishlist association."""

import enum
import uuid

from sqlalchemy import Boolean, Column, Enum, ForeignKey, String, Table, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storefront.db.base import Base
from storefront.models.mixins import JSONType, TimestampMixin, UUIDPrimaryKeyMixin


class RoleType(str, enum.Enum):
    ADMIN = "ADMIN"
    CUSTOMER = "CUSTOMER"
    VENDOR = "VENDOR"
    DESIGNER = "DESIGNER"


wishlist_items = Table(
    "wishlist_items",
    Base.metadata,
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("product_id", Uuid, ForeignKey("products.id", ondelete="CASCADE"), primary_key=True),
)


class User(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str | None] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(20))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationships
    roles = relationship(
        "UserRole", back_populates="user", cascade="all, delete-orphan", lazy="selectin"
    )
    orders = relationship("Order", back_populates="user", passive_deletes=True)
    wishlist = relationship("Product", secondary=wishlist_items, passive_deletes=True)

    @property
    def role_names(self) -> list[str]:
        return [r.role.value for r in self.roles]

    def __repr__(self) -> str:
        return f"<User {self.email}>"


class UserRole(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "user_roles"
    __table_args__ = (UniqueConstraint("user_id", "role", name="uq_user_role"),)

    role: Mapped[RoleType] = mapped_column(Enum(RoleType), nullable=False)
    permissions: Mapped[dict] = mapped_column(JSONType, default=dict, nullable=False)

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    user = relationship("User", back_populates="roles")
