"""Payment request/response schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class PaymentIntentCreate(BaseModel):
    order_id: UUID
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    currency: str = Field(default="usd", min_length=3, max_length=3)
    customer_email: str | None = None
    metadata: dict[str, str] | None = None


class ConfirmPaymentRequest(BaseModel):
    payment_intent_id: str = Field(..., min_length=1)


class RefundRequest(BaseModel):
    payment_intent_id: str = Field(..., min_length=1)
    amount: Decimal | None = Field(None, gt=0, decimal_places=2)


class PaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    order_id: UUID
    gateway: str
    gateway_id: str | None
    amount: Decimal
    currency: str
    status: str
    metadata: dict = Field(default_factory=dict, validation_alias=AliasChoices("metadata_", "metadata"))
    created_at: datetime
    updated_at: datetime


class PaymentIntentResponse(BaseModel):
    payment: PaymentResponse
    client_secret: str | None
    payment_intent_id: str


class PaymentListResponse(BaseModel):
    items: list[PaymentResponse]
    total: int
    page: int
    limit: int
    pages: int


class WebhookAck(BaseModel):
    received: bool = True
    duplicate: bool = False
    event_type: str | None = None
