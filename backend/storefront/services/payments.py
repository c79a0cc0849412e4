"""Gateway payments: intents, confirmation, refunds and webhooks."""

import logging
import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import settings
from storefront.core.errors import GatewayError, NotFoundError, ValidationError
from storefront.models.order import Order, OrderStatus
from storefront.models.payment import (
    GATEWAY_STRIPE,
    PAYMENT_PENDING,
    PAYMENT_REFUNDED,
    PAYMENT_SUCCEEDED,
    Payment,
    WebhookEvent,
)
from storefront.models.user import User
from storefront.services import orders as order_service
from storefront.services.stripe_client import StripeClient, StripeError, WebhookSignatureError

logger = logging.getLogger(__name__)

CONFIRMING_EVENTS = frozenset({"payment_intent.succeeded", "payment_intent.payment_failed"})


def to_minor_units(amount: Decimal) -> int:
    """Decimal currency amount -> integer cents, half-up."""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


async def get_payment_by_gateway_id(db: AsyncSession, gateway_payment_id: str) -> Payment:
    result = await db.execute(
        select(Payment).where(Payment.gateway == GATEWAY_STRIPE, Payment.gateway_id == gateway_payment_id)
    )
    payment = result.scalar_one_or_none()
    if not payment:
        raise NotFoundError("Payment not found")
    return payment


async def create_payment(
    db: AsyncSession,
    gateway: StripeClient,
    order_id: UUID,
    amount: Decimal,
    currency: str = "usd",
    customer_email: str | None = None,
    metadata: dict[str, str] | None = None,
) -> dict[str, Any]:
    order = await db.get(Order, order_id)
    if not order:
        raise NotFoundError("Order not found")

    if customer_email is None:
        owner = await db.get(User, order.user_id)
        customer_email = owner.email if owner else None

    try:
        intent = await gateway.create_payment_intent(
            amount=to_minor_units(amount),
            currency=currency,
            metadata={**(metadata or {}), "order_id": str(order_id)},
            receipt_email=customer_email,
        )
    except StripeError as exc:
        raise GatewayError(f"Payment gateway error: {exc.message}") from exc

    client_secret = intent.get("client_secret")
    payment = Payment(
        order_id=order_id,
        gateway=GATEWAY_STRIPE,
        gateway_id=intent["id"],
        amount=amount,
        currency=currency.lower(),
        status=PAYMENT_PENDING,
        metadata_={"client_secret": client_secret, **(metadata or {})},
    )
    db.add(payment)
    await db.commit()
    logger.info("Payment intent %s created for order %s amount=%s", intent["id"], order_id, amount)
    return {"payment": payment, "client_secret": client_secret, "payment_intent_id": intent["id"]}


def _summarise_intent(intent: dict) -> dict[str, Any]:
    error = intent.get("last_payment_error")
    charges = (intent.get("charges") or {}).get("data") or []
    return {
        "order_id": (intent.get("metadata") or {}).get("order_id"),
        "last_payment_error": (
            {"code": error.get("code"), "message": error.get("message"), "type": error.get("type")}
            if error
            else None
        ),
        "charges": [{"id": c.get("id"), "amount": c.get("amount"), "status": c.get("status")} for c in charges],
    }


async def _apply_intent(db: AsyncSession, gateway: StripeClient, gateway_payment_id: str) -> Payment:
    """Mirror the gateway's view of an intent onto the local rows. Does not commit."""
    try:
        intent = await gateway.retrieve_payment_intent(gateway_payment_id)
    except StripeError as exc:
        raise GatewayError(f"Payment gateway error: {exc.message}") from exc

    payment = await get_payment_by_gateway_id(db, gateway_payment_id)
    payment.status = intent["status"]
    payment.metadata_ = {**(payment.metadata_ or {}), **_summarise_intent(intent)}

    if intent["status"] == PAYMENT_SUCCEEDED:
        order = await db.get(Order, payment.order_id)
        if order and order.status == OrderStatus.PENDING:
            order.status = OrderStatus.PROCESSING
            logger.info("Order %s paid, moved to PROCESSING", order.id)
    return payment


async def confirm_payment(db: AsyncSession, gateway: StripeClient, gateway_payment_id: str) -> Payment:
    payment = await _apply_intent(db, gateway, gateway_payment_id)
    await db.commit()
    logger.info("Payment %s confirmed with status %s", gateway_payment_id, payment.status)
    return payment


async def refund_payment(
    db: AsyncSession,
    gateway: StripeClient,
    gateway_payment_id: str,
    amount: Decimal | None = None,
) -> dict[str, Any]:
    payment = await get_payment_by_gateway_id(db, gateway_payment_id)

    minor = to_minor_units(amount) if amount is not None else None
    try:
        refund = await gateway.create_refund(gateway_payment_id, minor)
    except StripeError as exc:
        raise GatewayError(f"Refund failed: {exc.message}") from exc

    refund_summary = {"id": refund.get("id"), "amount": refund.get("amount"), "status": refund.get("status")}
    payment.status = PAYMENT_REFUNDED
    payment.metadata_ = {**(payment.metadata_ or {}), "refund": refund_summary}

    full_refund = minor is None or minor >= to_minor_units(payment.amount)
    if full_refund or settings.REFUND_PARTIAL_CANCELS_ORDER:
        order = await db.get(Order, payment.order_id)
        if order:
            await order_service.mark_cancelled(db, order)

    await db.commit()
    logger.info(
        "Payment %s refunded (%s)", gateway_payment_id, "full" if full_refund else f"partial {amount}"
    )
    return {"payment": payment, "refund": refund_summary}


async def handle_webhook(
    db: AsyncSession,
    gateway: StripeClient,
    payload: bytes,
    signature: str | None,
) -> dict[str, Any]:
    """Verify, de-duplicate and apply a gateway event."""
    if not signature:
        raise ValidationError("Missing Stripe-Signature header")
    try:
        event = gateway.construct_event(payload, signature)
    except WebhookSignatureError as exc:
        logger.warning("Rejected webhook: %s", exc)
        raise ValidationError("Invalid webhook signature") from exc
    except ValueError as exc:
        raise ValidationError("Malformed webhook payload") from exc

    event_id, event_type = event.get("id"), event.get("type")
    if not event_id or not event_type:
        raise ValidationError("Malformed webhook payload")
    logger.info("Webhook received: %s %s", event_type, event_id)

    seen = await db.execute(
        select(WebhookEvent.id).where(WebhookEvent.gateway == GATEWAY_STRIPE, WebhookEvent.event_id == event_id)
    )
    if seen.first():
        logger.info("Duplicate webhook %s ignored", event_id)
        return {"received": True, "duplicate": True, "event_type": event_type}

    db.add(WebhookEvent(gateway=GATEWAY_STRIPE, event_id=event_id, event_type=event_type))
    try:
        if event_type in CONFIRMING_EVENTS:
            intent_id = event["data"]["object"]["id"]
            try:
                await _apply_intent(db, gateway, intent_id)
            except NotFoundError:
                logger.warning("Webhook %s references unknown payment %s", event_id, intent_id)
        else:
            logger.info("Unhandled webhook event type: %s", event_type)
        await db.commit()
    except IntegrityError:
        # Another delivery of the same event committed first
        await db.rollback()
        return {"received": True, "duplicate": True, "event_type": event_type}
    except Exception:
        await db.rollback()
        raise

    return {"received": True, "duplicate": False, "event_type": event_type}


async def get_order_payments(db: AsyncSession, order_id: UUID) -> list[Payment]:
    result = await db.execute(
        select(Payment).where(Payment.order_id == order_id).order_by(Payment.created_at.desc())
    )
    return list(result.scalars().all())


async def get_payment(db: AsyncSession, payment_id: UUID) -> Payment:
    payment = await db.get(Payment, payment_id)
    if not payment:
        raise NotFoundError("Payment not found")
    return payment


async def list_payments(db: AsyncSession, page: int = 1, limit: int = 20) -> dict[str, Any]:
    total = (await db.execute(select(func.count()).select_from(Payment))).scalar_one()
    result = await db.execute(
        select(Payment).order_by(Payment.created_at.desc()).offset((page - 1) * limit).limit(limit)
    )
    return {
        "items": list(result.scalars().all()),
        "total": total,
        "page": page,
        "limit": limit,
        "pages": math.ceil(total / limit) if limit else 0,
    }
