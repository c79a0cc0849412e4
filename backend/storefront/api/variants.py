from uuid import UUID

from fastapi import APIRouter, Depends, status
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.deps import get_cache, require_catalog_editor
from storefront.db.base import get_db
from storefront.schemas.variant import (
    VariantCreate,
    VariantImageCreate,
    VariantImageResponse,
    VariantResponse,
    VariantUpdate,
)
from storefront.services import cache
from storefront.services import variants as variant_service

router = APIRouter(prefix="/product-variants", tags=["product-variants"])

editor = [Depends(require_catalog_editor)]


@router.get("/product/{product_id}", response_model=list[VariantResponse])
async def list_variants(product_id: UUID, db: AsyncSession = Depends(get_db)):
    return await variant_service.list_variants(db, product_id)


@router.get("/{variant_id}", response_model=VariantResponse)
async def get_variant(variant_id: UUID, db: AsyncSession = Depends(get_db)):
    return await variant_service.get_variant(db, variant_id)


@router.post("", response_model=VariantResponse, status_code=status.HTTP_201_CREATED, dependencies=editor)
async def create_variant(data: VariantCreate, db: AsyncSession = Depends(get_db), redis: Redis = Depends(get_cache)):
    variant = await variant_service.create_variant(db, data)
    await cache.invalidate_product(redis, variant.product_id)
    return variant


@router.patch("/{variant_id}", response_model=VariantResponse, dependencies=editor)
async def update_variant(
    variant_id: UUID,
    data: VariantUpdate,
    db: AsyncSession = Depends(get_db),
    redis: Redis = Depends(get_cache),
):
    variant = await variant_service.update_variant(db, variant_id, data)
    await cache.invalidate_product(redis, variant.product_id)
    return variant


@router.delete("/{variant_id}", response_model=VariantResponse, dependencies=editor)
async def delete_variant(variant_id: UUID, db: AsyncSession = Depends(get_db), redis: Redis = Depends(get_cache)):
    variant = await variant_service.delete_variant(db, variant_id)
    await cache.invalidate_product(redis, variant.product_id)
    return variant


@router.post("/{variant_id}/images", response_model=VariantImageResponse,
             status_code=status.HTTP_201_CREATED, dependencies=editor)
async def add_image(
    variant_id: UUID,
    data: VariantImageCreate,
    db: AsyncSession = Depends(get_db),
    redis: Redis = Depends(get_cache),
):
    image = await variant_service.add_variant_image(db, variant_id, data)
    variant = await variant_service.get_variant(db, variant_id)
    await cache.invalidate_product(redis, variant.product_id)
    return image


@router.delete("/images/{image_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=editor)
async def remove_image(image_id: UUID, db: AsyncSession = Depends(get_db), redis: Redis = Depends(get_cache)):
    product_id = await variant_service.remove_variant_image(db, image_id)
    await cache.invalidate_product(redis, product_id)
