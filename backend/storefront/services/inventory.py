"""Inventory ledger and stock adjustment.

Stock columns only ever change through :func:`apply_stock_delta`, a single
conditional UPDATE, so concurrent orders cannot oversell.
"""

import logging
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.errors import NotFoundError, ValidationError
from storefront.models.inventory import MANUAL_MOVEMENTS, InventoryLog, InventoryMovement
from storefront.models.product import Product
from storefront.models.variant import ProductVariant
from storefront.schemas.inventory import InventoryLogCreate

logger = logging.getLogger(__name__)


async def apply_stock_delta(
    db: AsyncSession,
    *,
    product_id: UUID | None = None,
    variant_id: UUID | None = None,
    delta: int,
) -> bool:
    """Add ``delta`` to the variant's stock (or the product's when no variant).

    Returns False when the row is missing or the result would go below zero.
    Does not commit.
    """
    model, row_id = (ProductVariant, variant_id) if variant_id else (Product, product_id)
    stmt = (
        update(model)
        .where(model.id == row_id, model.stock + delta >= 0)
        .values(stock=model.stock + delta)
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    return result.rowcount == 1


def record_movement(
    db: AsyncSession,
    *,
    product_id: UUID,
    variant_id: UUID | None,
    quantity: int,
    movement: InventoryMovement,
    reason: str | None = None,
    reference_id: str | None = None,
) -> InventoryLog:
    """Stage a ledger row in the current unit of work."""
    log = InventoryLog(
        product_id=product_id,
        variant_id=variant_id,
        quantity=quantity,
        movement=movement,
        reason=reason,
        reference_id=reference_id,
    )
    db.add(log)
    return log


def _validate_entry(entry: InventoryLogCreate) -> None:
    if not entry.product_id or not entry.quantity or not entry.movement:
        raise ValidationError("product_id, a non-zero quantity and movement are required")


async def create_log(db: AsyncSession, entry: InventoryLogCreate) -> InventoryLog:
    _validate_entry(entry)
    log = record_movement(db, **entry.model_dump())
    await db.commit()
    return log


async def find_logs(
    db: AsyncSession,
    product_id: UUID | None = None,
    variant_id: UUID | None = None,
) -> list[InventoryLog]:
    query = select(InventoryLog)
    if product_id:
        query = query.where(InventoryLog.product_id == product_id)
    if variant_id:
        query = query.where(InventoryLog.variant_id == variant_id)
    result = await db.execute(query.order_by(InventoryLog.created_at.desc()))
    return list(result.scalars().all())


async def adjust_stock(db: AsyncSession, entry: InventoryLogCreate) -> InventoryLog:
    """Manual stock movement: applies the signed quantity and logs it in one commit."""
    if entry.movement not in MANUAL_MOVEMENTS:
        raise ValidationError("Movement must be one of: in, out, adjustment")
    if entry.movement == InventoryMovement.IN and entry.quantity <= 0:
        raise ValidationError("Stock in requires a positive quantity")
    if entry.movement == InventoryMovement.OUT and entry.quantity >= 0:
        raise ValidationError("Stock out requires a negative quantity")

    if entry.variant_id:
        variant = await db.get(ProductVariant, entry.variant_id)
        if not variant:
            raise NotFoundError("Variant not found")
        if entry.product_id and entry.product_id != variant.product_id:
            raise ValidationError("Variant does not belong to product")
        entry = entry.model_copy(update={"product_id": variant.product_id})
    elif entry.product_id is None or not await db.get(Product, entry.product_id):
        raise NotFoundError("Product not found")

    _validate_entry(entry)
    try:
        applied = await apply_stock_delta(
            db, product_id=entry.product_id, variant_id=entry.variant_id, delta=entry.quantity
        )
        if not applied:
            raise ValidationError("Insufficient stock for this adjustment")
        log = record_movement(db, **entry.model_dump())
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(
        "Stock %s of %+d for product %s variant %s",
        entry.movement.value, entry.quantity, entry.product_id, entry.variant_id,
    )
    return log
