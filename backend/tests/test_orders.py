"""Order placement, stock decrement, rollback and cancellation."""

from decimal import Decimal
import uuid

import pytest
from sqlalchemy import func, select

from storefront.core.errors import NotFoundError, ValidationError
from storefront.models.inventory import InventoryLog, InventoryMovement
from storefront.models.order import Order, OrderStatus
from storefront.models.payment import Payment
from storefront.models.product import Product
from storefront.models.variant import ProductVariant
from storefront.schemas.order import OrderCreate, OrderItemCreate
from storefront.services import orders as order_service


async def _count(db, model) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


async def _stock(db, model, row_id) -> int:
    return (await db.execute(select(model.stock).where(model.id == row_id))).scalar_one()


# ── Totals ────────────────────────────────────────

def test_compute_totals_applies_18_percent_tax():
    totals = order_service.compute_totals(Decimal("200.00"))
    assert totals["tax"] == Decimal("36.00")
    assert totals["shipping"] == Decimal("0.00")
    assert totals["discount"] == Decimal("0.00")
    assert totals["total"] == Decimal("236.00")


def test_compute_totals_rounds_tax_to_cents():
    totals = order_service.compute_totals(Decimal("19.99"))
    # 19.99 * 0.18 = 3.5982
    assert totals["tax"] == Decimal("3.60")
    assert totals["total"] == totals["subtotal"] + totals["shipping"] + totals["tax"] - totals["discount"]


# ── Creation ──────────────────────────────────────

@pytest.mark.asyncio
async def test_create_order_with_variant(db_session, customer, variant):
    order = await order_service.create_order(
        db_session,
        customer.id,
        OrderCreate(items=[OrderItemCreate(variant_id=variant.id, quantity=2)], notes="Leave at door"),
    )

    assert order.status == OrderStatus.PENDING
    assert order.subtotal == Decimal("200.00")
    assert order.tax == Decimal("36.00")
    assert order.total == Decimal("236.00")
    assert order.notes == "Leave at door"

    assert len(order.items) == 1
    line = order.items[0]
    assert line.variant_id == variant.id
    assert line.product_id == variant.product_id
    assert line.unit_price == Decimal("100.00")
    assert line.total_price == Decimal("200.00")

    assert len(order.payments) == 1
    payment = order.payments[0]
    assert payment.gateway == "manual"
    assert payment.status == "pending"
    assert payment.amount == Decimal("236.00")

    assert await _stock(db_session, ProductVariant, variant.id) == 8

    logs = (await db_session.execute(select(InventoryLog))).scalars().all()
    assert len(logs) == 1
    assert logs[0].movement == InventoryMovement.SALE
    assert logs[0].quantity == -2
    assert logs[0].variant_id == variant.id
    assert logs[0].reference_id == str(order.id)


@pytest.mark.asyncio
async def test_create_order_with_simple_product_decrements_product_stock(db_session, customer, simple_product):
    order = await order_service.create_order(
        db_session,
        customer.id,
        OrderCreate(items=[OrderItemCreate(product_id=simple_product.id, quantity=3)]),
    )

    assert order.subtotal == Decimal("150.00")
    assert order.total == Decimal("177.00")
    assert order.items[0].variant_id is None
    assert await _stock(db_session, Product, simple_product.id) == 2

    log = (await db_session.execute(select(InventoryLog))).scalar_one()
    assert log.product_id == simple_product.id
    assert log.quantity == -3


@pytest.mark.asyncio
async def test_create_order_mixed_items_sums_lines(db_session, customer, variant, simple_product):
    order = await order_service.create_order(
        db_session,
        customer.id,
        OrderCreate(
            items=[
                OrderItemCreate(variant_id=variant.id, quantity=1),
                OrderItemCreate(product_id=simple_product.id, quantity=2),
            ]
        ),
    )
    assert order.subtotal == Decimal("200.00")
    assert order.total == Decimal("236.00")
    assert await _count(db_session, InventoryLog) == 2


# ── Failure leaves nothing behind ─────────────────

@pytest.mark.asyncio
async def test_missing_variant_rolls_back_everything(db_session, customer, variant):
    variant_id = variant.id
    with pytest.raises(NotFoundError):
        await order_service.create_order(
            db_session,
            customer.id,
            OrderCreate(
                items=[
                    OrderItemCreate(variant_id=variant_id, quantity=2),
                    OrderItemCreate(variant_id=uuid.uuid4(), quantity=1),
                ]
            ),
        )

    assert await _count(db_session, Order) == 0
    assert await _count(db_session, Payment) == 0
    assert await _count(db_session, InventoryLog) == 0
    assert await _stock(db_session, ProductVariant, variant_id) == 10


@pytest.mark.asyncio
async def test_inactive_product_is_rejected(db_session, customer, simple_product):
    simple_product.is_active = False
    await db_session.commit()

    with pytest.raises(ValidationError):
        await order_service.create_order(
            db_session,
            customer.id,
            OrderCreate(items=[OrderItemCreate(product_id=simple_product.id, quantity=1)]),
        )
    assert await _count(db_session, Order) == 0


@pytest.mark.asyncio
async def test_product_without_base_price_is_rejected(db_session, customer, variable_product):
    with pytest.raises(ValidationError):
        await order_service.create_order(
            db_session,
            customer.id,
            OrderCreate(items=[OrderItemCreate(product_id=variable_product.id, quantity=1)]),
        )


@pytest.mark.asyncio
async def test_item_without_reference_is_rejected(db_session, customer):
    with pytest.raises(ValidationError):
        await order_service.create_order(
            db_session, customer.id, OrderCreate(items=[OrderItemCreate(quantity=1)])
        )


@pytest.mark.asyncio
async def test_insufficient_stock_rolls_back(db_session, customer, variant, simple_product):
    variant_id, product_id = variant.id, simple_product.id
    with pytest.raises(ValidationError):
        await order_service.create_order(
            db_session,
            customer.id,
            OrderCreate(
                items=[
                    OrderItemCreate(variant_id=variant_id, quantity=4),
                    OrderItemCreate(product_id=product_id, quantity=6),
                ]
            ),
        )

    assert await _stock(db_session, ProductVariant, variant_id) == 10
    assert await _stock(db_session, Product, product_id) == 5
    assert await _count(db_session, InventoryLog) == 0


# ── Queries ───────────────────────────────────────

@pytest.mark.asyncio
async def test_get_order_missing(db_session):
    with pytest.raises(NotFoundError):
        await order_service.get_order(db_session, uuid.uuid4())


@pytest.mark.asyncio
async def test_list_orders_by_user(db_session, customer, simple_product):
    payload = OrderCreate(items=[OrderItemCreate(product_id=simple_product.id, quantity=1)])
    first = await order_service.create_order(db_session, customer.id, payload)
    second = await order_service.create_order(db_session, customer.id, payload)

    orders = await order_service.list_orders_by_user(db_session, customer.id)
    assert {o.id for o in orders} == {first.id, second.id}
    assert await order_service.list_orders_by_user(db_session, uuid.uuid4()) == []


# ── Cancellation ──────────────────────────────────

@pytest.mark.asyncio
async def test_cancel_restocks_and_is_idempotent(db_session, customer, variant):
    order = await order_service.create_order(
        db_session, customer.id, OrderCreate(items=[OrderItemCreate(variant_id=variant.id, quantity=2)])
    )

    cancelled = await order_service.cancel_order(db_session, order.id)
    assert cancelled.status == OrderStatus.CANCELLED
    assert cancelled.payments[0].status == "canceled"
    assert await _stock(db_session, ProductVariant, variant.id) == 10

    again = await order_service.cancel_order(db_session, order.id)
    assert again.status == OrderStatus.CANCELLED
    assert await _stock(db_session, ProductVariant, variant.id) == 10

    returns = (
        await db_session.execute(select(InventoryLog).where(InventoryLog.movement == InventoryMovement.RETURN))
    ).scalars().all()
    assert len(returns) == 1
    assert returns[0].quantity == 2
    assert returns[0].reference_id == str(order.id)


@pytest.mark.asyncio
async def test_fulfilment_transitions(db_session, customer, simple_product):
    order = await order_service.create_order(
        db_session, customer.id, OrderCreate(items=[OrderItemCreate(product_id=simple_product.id, quantity=1)])
    )

    with pytest.raises(ValidationError):
        await order_service.update_order_status(db_session, order.id, OrderStatus.SHIPPED)

    order.status = OrderStatus.PROCESSING
    await db_session.commit()

    shipped = await order_service.update_order_status(
        db_session, order.id, OrderStatus.SHIPPED, tracking_number="1Z999"
    )
    assert shipped.status == OrderStatus.SHIPPED
    assert shipped.tracking_number == "1Z999"

    delivered = await order_service.update_order_status(db_session, order.id, OrderStatus.DELIVERED)
    assert delivered.delivery_date is not None

    with pytest.raises(ValidationError):
        await order_service.cancel_order(db_session, order.id)
