"""Inventory ledger model."""

import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from storefront.db.base import Base
from storefront.models.mixins import UUIDPrimaryKeyMixin, utc_now


class InventoryMovement(str, enum.Enum):
    IN = "in"
    OUT = "out"
    ADJUSTMENT = "adjustment"
    SALE = "sale"
    RETURN = "return"


# Movements allowed through manual stock adjustment
MANUAL_MOVEMENTS = frozenset({InventoryMovement.IN, InventoryMovement.OUT, InventoryMovement.ADJUSTMENT})


class InventoryLog(UUIDPrimaryKeyMixin, Base):
    """Append-only stock movement. Negative quantity = stock out."""

    __tablename__ = "inventory_logs"

    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    movement: Mapped[InventoryMovement] = mapped_column(Enum(InventoryMovement), nullable=False, index=True)
    reason: Mapped[str | None] = mapped_column(String(255))
    reference_id: Mapped[str | None] = mapped_column(String(255), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, nullable=False)

    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True
    )
    variant_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("product_variants.id", ondelete="SET NULL"), index=True
    )

    def __repr__(self) -> str:
        return f"<InventoryLog {self.movement} qty={self.quantity}>"
