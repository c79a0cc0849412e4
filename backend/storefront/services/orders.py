"""Order placement and cancellation.

``create_order`` runs as one unit of work: stock decrements, ledger rows, the
order, its lines and the pending manual payment are flushed together and
committed once. Any failure rolls all of it back.
"""

import logging
import uuid
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.errors import NotFoundError, ValidationError
from storefront.models.inventory import InventoryMovement
from storefront.models.mixins import utc_now
from storefront.models.order import Order, OrderItem, OrderStatus
from storefront.models.payment import GATEWAY_MANUAL, PAYMENT_CANCELED, PAYMENT_PENDING, Payment
from storefront.models.product import Product
from storefront.models.variant import ProductVariant
from storefront.schemas.order import OrderCreate, OrderItemCreate
from storefront.services import products as product_service
from storefront.services import variants as variant_service
from storefront.services.inventory import apply_stock_delta, record_movement

logger = logging.getLogger(__name__)

TAX_RATE = Decimal("0.18")
CENTS = Decimal("0.01")

# Status changes allowed through update_order_status; cancellation has its own path
FULFILMENT_TRANSITIONS = {
    OrderStatus.PROCESSING: OrderStatus.SHIPPED,
    OrderStatus.SHIPPED: OrderStatus.DELIVERED,
}


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def compute_totals(subtotal: Decimal) -> dict[str, Decimal]:
    subtotal = _money(subtotal)
    shipping = Decimal("0.00")
    discount = Decimal("0.00")
    tax = _money(subtotal * TAX_RATE)
    return {
        "subtotal": subtotal,
        "shipping": shipping,
        "discount": discount,
        "tax": tax,
        "total": subtotal + shipping + tax - discount,
    }


async def _price_item(db: AsyncSession, item: OrderItemCreate) -> tuple[UUID, UUID | None, Decimal]:
    """Resolve (product_id, variant_id, unit_price) for one requested line."""
    if item.variant_id:
        variant = await db.get(ProductVariant, item.variant_id)
        if not variant:
            raise NotFoundError(f"Variant {item.variant_id} not found")
        variant_service.ensure_orderable(variant)
        return variant.product_id, variant.id, variant.price

    if item.product_id:
        product = await db.get(Product, item.product_id)
        if not product:
            raise NotFoundError(f"Product {item.product_id} not found")
        product_service.ensure_orderable(product)
        return product.id, None, product.base_price

    raise ValidationError("Item requires product_id or variant_id")


async def _load(db: AsyncSession, order_id: UUID) -> Order | None:
    result = await db.execute(
        select(Order).where(Order.id == order_id).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def create_order(db: AsyncSession, user_id: UUID, data: OrderCreate) -> Order:
    order_id = uuid.uuid4()
    reference = str(order_id)

    try:
        lines: list[OrderItem] = []
        subtotal = Decimal("0.00")

        for item in data.items:
            product_id, variant_id, unit_price = await _price_item(db, item)

            decremented = await apply_stock_delta(
                db, product_id=product_id, variant_id=variant_id, delta=-item.quantity
            )
            if not decremented:
                target = f"variant {variant_id}" if variant_id else f"product {product_id}"
                raise ValidationError(f"Insufficient stock for {target}")
            record_movement(
                db,
                product_id=product_id,
                variant_id=variant_id,
                quantity=-item.quantity,
                movement=InventoryMovement.SALE,
                reason="Order placed",
                reference_id=reference,
            )

            line_total = _money(unit_price * item.quantity)
            subtotal += line_total
            lines.append(
                OrderItem(
                    product_id=product_id,
                    variant_id=variant_id,
                    quantity=item.quantity,
                    unit_price=unit_price,
                    total_price=line_total,
                    discount_applied=Decimal("0.00"),
                )
            )

        totals = compute_totals(subtotal)
        order = Order(
            id=order_id,
            user_id=user_id,
            status=OrderStatus.PENDING,
            shipping_address=data.shipping_address,
            billing_address=data.billing_address,
            notes=data.notes,
            items=lines,
            payments=[
                Payment(
                    gateway=GATEWAY_MANUAL,
                    amount=totals["total"],
                    status=PAYMENT_PENDING,
                    metadata_={},
                )
            ],
            **totals,
        )
        db.add(order)
        await db.flush()
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info("Order %s created for user %s total=%s", order_id, user_id, totals["total"])
    return await _load(db, order_id)


async def get_order(db: AsyncSession, order_id: UUID) -> Order:
    order = await _load(db, order_id)
    if not order:
        raise NotFoundError("Order not found")
    return order


async def list_orders_by_user(db: AsyncSession, user_id: UUID) -> list[Order]:
    result = await db.execute(
        select(Order).where(Order.user_id == user_id).order_by(Order.created_at.desc())
    )
    return list(result.scalars().all())


async def list_all_orders(db: AsyncSession) -> list[Order]:
    result = await db.execute(select(Order).order_by(Order.created_at.desc()))
    return list(result.scalars().all())


async def cancel_order(db: AsyncSession, order_id: UUID) -> Order:
    """Cancel an order, putting its stock back. Cancelling twice is a no-op."""
    order = await get_order(db, order_id)
    if order.status == OrderStatus.CANCELLED:
        return order
    if order.status == OrderStatus.DELIVERED:
        raise ValidationError("Delivered orders cannot be cancelled")

    try:
        await mark_cancelled(db, order)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info("Order %s cancelled", order_id)
    return await _load(db, order_id)


async def mark_cancelled(db: AsyncSession, order: Order) -> None:
    """Restock, cancel pending payments and flag the order CANCELLED. Does not commit."""
    if order.status == OrderStatus.CANCELLED:
        return
    await restock_order(db, order)
    for payment in order.payments:
        if payment.status == PAYMENT_PENDING:
            payment.status = PAYMENT_CANCELED
    order.status = OrderStatus.CANCELLED


async def restock_order(db: AsyncSession, order: Order) -> None:
    """Return every line's quantity to stock with a "return" ledger row. Does not commit."""
    for item in order.items:
        if item.product_id is None:
            continue
        await apply_stock_delta(
            db, product_id=item.product_id, variant_id=item.variant_id, delta=item.quantity
        )
        record_movement(
            db,
            product_id=item.product_id,
            variant_id=item.variant_id,
            quantity=item.quantity,
            movement=InventoryMovement.RETURN,
            reason="Order cancelled",
            reference_id=str(order.id),
        )


async def update_order_status(
    db: AsyncSession,
    order_id: UUID,
    status: OrderStatus,
    tracking_number: str | None = None,
) -> Order:
    """Advance fulfilment: PROCESSING -> SHIPPED -> DELIVERED."""
    order = await get_order(db, order_id)
    if FULFILMENT_TRANSITIONS.get(order.status) != status:
        raise ValidationError(f"Cannot move order from {order.status.value} to {status.value}")

    order.status = status
    if tracking_number:
        order.tracking_number = tracking_number
    if status == OrderStatus.DELIVERED:
        order.delivery_date = utc_now()
    await db.commit()
    logger.info("Order %s moved to %s", order_id, status.value)
    return await _load(db, order_id)
