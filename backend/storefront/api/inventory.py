"""Inventory ledger endpoints (admin / vendor)."""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.deps import require_catalog_editor
from storefront.db.base import get_db
from storefront.schemas.inventory import InventoryLogCreate, InventoryLogResponse
from storefront.services import inventory as inventory_service

router = APIRouter(
    prefix="/inventory-logs",
    tags=["inventory"],
    dependencies=[Depends(require_catalog_editor)],
)


@router.get("", response_model=list[InventoryLogResponse])
async def list_logs(
    product_id: UUID | None = None,
    variant_id: UUID | None = None,
    db: AsyncSession = Depends(get_db),
):
    return await inventory_service.find_logs(db, product_id, variant_id)


@router.post("", response_model=InventoryLogResponse, status_code=status.HTTP_201_CREATED)
async def create_log(body: InventoryLogCreate, db: AsyncSession = Depends(get_db)):
    """Record a movement without touching stock."""
    return await inventory_service.create_log(db, body)


@router.post("/adjust", response_model=InventoryLogResponse, status_code=status.HTTP_201_CREATED)
async def adjust_stock(body: InventoryLogCreate, db: AsyncSession = Depends(get_db)):
    """Apply an in/out/adjustment movement to stock and log it."""
    return await inventory_service.adjust_stock(db, body)
