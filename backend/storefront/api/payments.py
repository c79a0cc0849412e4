"""Payment endpoints: Stripe intents, confirmation, refunds and the webhook."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Header, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.deps import get_current_user, get_payment_gateway, is_admin, require_admin
from storefront.core.errors import NotFoundError
from storefront.db.base import get_db
from storefront.models.order import Order
from storefront.models.user import User
from storefront.schemas.payment import (
    ConfirmPaymentRequest,
    PaymentIntentCreate,
    PaymentIntentResponse,
    PaymentListResponse,
    PaymentResponse,
    RefundRequest,
    WebhookAck,
)
from storefront.services import payments as payment_service
from storefront.services.stripe_client import StripeClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])


async def _check_order_access(db: AsyncSession, order_id: UUID, user: User) -> None:
    order = await db.get(Order, order_id)
    if not order or (order.user_id != user.id and not is_admin(user)):
        raise NotFoundError("Order not found")


@router.post("/webhook", response_model=WebhookAck)
async def stripe_webhook(
    request: Request,
    stripe_signature: str | None = Header(None, alias="Stripe-Signature"),
    db: AsyncSession = Depends(get_db),
    gateway: StripeClient = Depends(get_payment_gateway),
):
    """Stripe event callback. The raw body is needed for signature verification."""
    payload = await request.body()
    return await payment_service.handle_webhook(db, gateway, payload, stripe_signature)


@router.post("/create-intent", response_model=PaymentIntentResponse, status_code=status.HTTP_201_CREATED)
async def create_payment_intent(
    body: PaymentIntentCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    gateway: StripeClient = Depends(get_payment_gateway),
):
    await _check_order_access(db, body.order_id, user)
    return await payment_service.create_payment(
        db,
        gateway,
        order_id=body.order_id,
        amount=body.amount,
        currency=body.currency,
        customer_email=body.customer_email,
        metadata=body.metadata,
    )


@router.post("/confirm", response_model=PaymentResponse)
async def confirm_payment(
    body: ConfirmPaymentRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    gateway: StripeClient = Depends(get_payment_gateway),
):
    payment = await payment_service.get_payment_by_gateway_id(db, body.payment_intent_id)
    await _check_order_access(db, payment.order_id, user)
    return await payment_service.confirm_payment(db, gateway, body.payment_intent_id)


@router.post("/refund", dependencies=[Depends(require_admin)])
async def refund_payment(
    body: RefundRequest,
    db: AsyncSession = Depends(get_db),
    gateway: StripeClient = Depends(get_payment_gateway),
):
    result = await payment_service.refund_payment(db, gateway, body.payment_intent_id, body.amount)
    return {"payment": PaymentResponse.model_validate(result["payment"]), "refund": result["refund"]}


@router.get("/order/{order_id}", response_model=list[PaymentResponse])
async def order_payments(order_id: UUID, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    await _check_order_access(db, order_id, user)
    return await payment_service.get_order_payments(db, order_id)


@router.get("", response_model=PaymentListResponse, dependencies=[Depends(require_admin)])
async def list_payments(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    return await payment_service.list_payments(db, page, limit)


@router.get("/{payment_id}", response_model=PaymentResponse)
async def get_payment(payment_id: UUID, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    payment = await payment_service.get_payment(db, payment_id)
    await _check_order_access(db, payment.order_id, user)
    return payment
