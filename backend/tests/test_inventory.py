"""Inventory ledger and manual stock adjustments."""

from unittest.mock import AsyncMock, MagicMock
import uuid

import pytest
from sqlalchemy import select

from storefront.core.errors import NotFoundError, ValidationError
from storefront.models.inventory import InventoryLog, InventoryMovement
from storefront.models.product import Product
from storefront.models.variant import ProductVariant
from storefront.schemas.inventory import InventoryLogCreate
from storefront.services import inventory as inventory_service


async def _stock(db, model, row_id) -> int:
    return (await db.execute(select(model.stock).where(model.id == row_id))).scalar_one()


# ── Model properties ──────────────────────────────

def test_variant_is_low_stock_property():
    """ProductVariant.is_low_stock should return True when stock <= min_stock."""
    variant = ProductVariant(sku_suffix="S", price=1, stock=3, min_stock=5)
    assert variant.is_low_stock is True

    variant.stock = 6
    assert variant.is_low_stock is False

    variant.stock = 5  # exactly at threshold
    assert variant.is_low_stock is True


# ── Stock delta ───────────────────────────────────

@pytest.mark.asyncio
async def test_apply_stock_delta_refuses_negative_result(db_session, variant):
    assert await inventory_service.apply_stock_delta(db_session, variant_id=variant.id, delta=-10) is True
    assert await inventory_service.apply_stock_delta(db_session, variant_id=variant.id, delta=-1) is False
    assert await _stock(db_session, ProductVariant, variant.id) == 0


@pytest.mark.asyncio
async def test_apply_stock_delta_on_missing_row(db_session):
    assert await inventory_service.apply_stock_delta(db_session, product_id=uuid.uuid4(), delta=1) is False


# ── Manual adjustment ─────────────────────────────

@pytest.mark.asyncio
async def test_stock_in_on_variant_derives_product(db_session, variant):
    log = await inventory_service.adjust_stock(
        db_session,
        InventoryLogCreate(variant_id=variant.id, quantity=5, movement=InventoryMovement.IN, reason="Restock"),
    )

    assert log.product_id == variant.product_id
    assert log.quantity == 5
    assert await _stock(db_session, ProductVariant, variant.id) == 15


@pytest.mark.asyncio
async def test_stock_out_on_simple_product(db_session, simple_product):
    await inventory_service.adjust_stock(
        db_session,
        InventoryLogCreate(product_id=simple_product.id, quantity=-2, movement=InventoryMovement.OUT),
    )
    assert await _stock(db_session, Product, simple_product.id) == 3


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "movement,quantity",
    [
        (InventoryMovement.IN, -1),
        (InventoryMovement.OUT, 3),
        (InventoryMovement.SALE, -1),
        (InventoryMovement.RETURN, 1),
        (InventoryMovement.ADJUSTMENT, 0),
    ],
)
async def test_adjustment_rejects_bad_sign_or_movement(db_session, simple_product, movement, quantity):
    with pytest.raises(ValidationError):
        await inventory_service.adjust_stock(
            db_session,
            InventoryLogCreate(product_id=simple_product.id, quantity=quantity, movement=movement),
        )


@pytest.mark.asyncio
async def test_adjustment_below_zero_rolls_back(db_session, simple_product):
    product_id = simple_product.id
    with pytest.raises(ValidationError, match="Insufficient"):
        await inventory_service.adjust_stock(
            db_session,
            InventoryLogCreate(product_id=product_id, quantity=-6, movement=InventoryMovement.ADJUSTMENT),
        )

    assert await _stock(db_session, Product, product_id) == 5
    assert (await db_session.execute(select(InventoryLog))).first() is None


@pytest.mark.asyncio
async def test_adjustment_variant_product_mismatch(db_session, variant, simple_product):
    with pytest.raises(ValidationError, match="does not belong"):
        await inventory_service.adjust_stock(
            db_session,
            InventoryLogCreate(
                product_id=simple_product.id, variant_id=variant.id, quantity=1, movement=InventoryMovement.IN
            ),
        )


@pytest.mark.asyncio
async def test_adjustment_unknown_targets(db_session):
    with pytest.raises(NotFoundError):
        await inventory_service.adjust_stock(
            db_session, InventoryLogCreate(variant_id=uuid.uuid4(), quantity=1, movement=InventoryMovement.IN)
        )
    with pytest.raises(NotFoundError):
        await inventory_service.adjust_stock(
            db_session, InventoryLogCreate(product_id=uuid.uuid4(), quantity=1, movement=InventoryMovement.IN)
        )


# ── Ledger ────────────────────────────────────────

@pytest.mark.asyncio
async def test_create_log_requires_fields(db_session, simple_product):
    with pytest.raises(ValidationError):
        await inventory_service.create_log(db_session, InventoryLogCreate(product_id=simple_product.id, quantity=3))
    with pytest.raises(ValidationError):
        await inventory_service.create_log(db_session, InventoryLogCreate(quantity=3, movement=InventoryMovement.IN))


@pytest.mark.asyncio
async def test_create_log_does_not_touch_stock(db_session, simple_product):
    log = await inventory_service.create_log(
        db_session,
        InventoryLogCreate(product_id=simple_product.id, quantity=3, movement=InventoryMovement.IN, reason="Audit"),
    )
    assert log.reason == "Audit"
    assert await _stock(db_session, Product, simple_product.id) == 5


@pytest.mark.asyncio
async def test_find_logs_filters(db_session, variant, simple_product):
    await inventory_service.adjust_stock(
        db_session, InventoryLogCreate(variant_id=variant.id, quantity=1, movement=InventoryMovement.IN)
    )
    await inventory_service.adjust_stock(
        db_session, InventoryLogCreate(product_id=simple_product.id, quantity=1, movement=InventoryMovement.IN)
    )

    assert len(await inventory_service.find_logs(db_session)) == 2
    by_variant = await inventory_service.find_logs(db_session, variant_id=variant.id)
    assert [log.variant_id for log in by_variant] == [variant.id]
    by_product = await inventory_service.find_logs(db_session, product_id=simple_product.id)
    assert len(by_product) == 1


# ── Endpoint wiring ───────────────────────────────

@pytest.mark.asyncio
async def test_adjust_endpoint_delegates_to_service(monkeypatch):
    """The /adjust route hands the body straight to the service."""
    from storefront.api import inventory as inventory_api

    expected = MagicMock()
    service = AsyncMock(return_value=expected)
    monkeypatch.setattr(inventory_service, "adjust_stock", service)

    mock_db = AsyncMock()
    body = InventoryLogCreate(product_id=uuid.uuid4(), quantity=2, movement=InventoryMovement.IN)

    result = await inventory_api.adjust_stock(body, db=mock_db)

    assert result is expected
    service.assert_awaited_once_with(mock_db, body)
