"""Payment & processed-webhook models."""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Index, Numeric, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storefront.db.base import Base
from storefront.models.mixins import JSONType, TimestampMixin, UUIDPrimaryKeyMixin, utc_now

# Local statuses written by this service; gateway statuses are stored verbatim
PAYMENT_PENDING = "pending"
PAYMENT_SUCCEEDED = "succeeded"
PAYMENT_REFUNDED = "refunded"
PAYMENT_CANCELED = "canceled"

GATEWAY_MANUAL = "manual"
GATEWAY_STRIPE = "stripe"


class Payment(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "payments"
    __table_args__ = (
        UniqueConstraint("gateway", "gateway_id", name="uq_payments_gateway_id"),
        Index("ix_payments_status_created", "status", "created_at"),
    )

    gateway: Mapped[str] = mapped_column(String(50), nullable=False)
    gateway_id: Mapped[str | None] = mapped_column(String(255), index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="usd", nullable=False)
    status: Mapped[str] = mapped_column(String(50), default=PAYMENT_PENDING, nullable=False)
    # "metadata" is reserved on declarative classes
    metadata_: Mapped[dict] = mapped_column("metadata", JSONType, default=dict, nullable=False)

    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )

    order = relationship("Order", back_populates="payments")

    def __repr__(self) -> str:
        return f"<Payment {self.id} {self.gateway}={self.amount} status={self.status}>"


class WebhookEvent(Base):
    """Gateway events already applied; a second delivery of the same id is ignored."""

    __tablename__ = "webhook_events"
    __table_args__ = (UniqueConstraint("gateway", "event_id", name="uq_webhook_events_event"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    gateway: Mapped[str] = mapped_column(String(50), nullable=False)
    event_id: Mapped[str] = mapped_column(String(255), nullable=False)
    event_type: Mapped[str] = mapped_column(String(100), nullable=False)
    received_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, nullable=False)
