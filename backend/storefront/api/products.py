from uuid import UUID

from fastapi import APIRouter, Depends, status
from fastapi.encoders import jsonable_encoder
from pymongo.asynchronous.database import AsyncDatabase
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.deps import get_analytics_db, get_cache, require_catalog_editor
from storefront.db.base import get_db
from storefront.schemas.product import (
    CatalogProductResponse,
    ProductCount,
    ProductCreate,
    ProductImageCreate,
    ProductImageResponse,
    ProductResponse,
    ProductUpdate,
)
from storefront.services import analytics
from storefront.services import cache
from storefront.services import products as product_service

router = APIRouter(prefix="/products", tags=["products"])

editor = [Depends(require_catalog_editor)]


@router.get("", response_model=list[ProductResponse], dependencies=editor)
async def list_products(db: AsyncSession = Depends(get_db)):
    """Every non-deleted product, active or not."""
    return await product_service.list_products(db)


@router.get("/catalog", response_model=list[CatalogProductResponse])
async def catalog(db: AsyncSession = Depends(get_db)):
    return await product_service.list_catalog(db)


@router.get("/deleted", response_model=list[ProductResponse], dependencies=editor)
async def list_deleted(db: AsyncSession = Depends(get_db)):
    return await product_service.list_deleted_products(db)


@router.get("/count", response_model=ProductCount, dependencies=editor)
async def count_products(
    include_inactive: bool = False,
    include_deleted: bool = False,
    db: AsyncSession = Depends(get_db),
):
    count = await product_service.count_products(
        db, include_inactive=include_inactive, include_deleted=include_deleted
    )
    return ProductCount(count=count)


@router.get("/slug/{slug}", response_model=ProductResponse)
async def get_by_slug(
    slug: str,
    db: AsyncSession = Depends(get_db),
    mongo: AsyncDatabase = Depends(get_analytics_db),
):
    product = await product_service.get_product_by_slug(db, slug)
    await analytics.record_product_view(mongo, product.id)
    return product


@router.get("/{identifier}", response_model=ProductResponse)
async def get_product(identifier: str, db: AsyncSession = Depends(get_db), redis: Redis = Depends(get_cache)):
    """Look up by id or sku. Lookups by id are served from the product cache when warm."""
    cached = await cache.get_cached_product(redis, identifier)
    if cached:
        return cached
    product = await product_service.get_product(db, identifier)
    data = jsonable_encoder(ProductResponse.model_validate(product))
    await cache.cache_product(redis, product.id, data)
    return data


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED, dependencies=editor)
async def create_product(data: ProductCreate, db: AsyncSession = Depends(get_db)):
    return await product_service.create_product(db, data)


@router.patch("/{identifier}", response_model=ProductResponse, dependencies=editor)
async def update_product(
    identifier: str,
    data: ProductUpdate,
    db: AsyncSession = Depends(get_db),
    redis: Redis = Depends(get_cache),
):
    product = await product_service.update_product(db, identifier, data)
    await cache.invalidate_product(redis, product.id)
    return product


@router.patch("/{identifier}/activate", response_model=ProductResponse, dependencies=editor)
async def activate_product(identifier: str, db: AsyncSession = Depends(get_db), redis: Redis = Depends(get_cache)):
    product = await product_service.set_product_active(db, identifier, True)
    await cache.invalidate_product(redis, product.id)
    return product


@router.patch("/{identifier}/deactivate", response_model=ProductResponse, dependencies=editor)
async def deactivate_product(identifier: str, db: AsyncSession = Depends(get_db), redis: Redis = Depends(get_cache)):
    product = await product_service.set_product_active(db, identifier, False)
    await cache.invalidate_product(redis, product.id)
    return product


@router.delete("/{identifier}", response_model=ProductResponse, dependencies=editor)
async def soft_delete_product(identifier: str, db: AsyncSession = Depends(get_db), redis: Redis = Depends(get_cache)):
    product = await product_service.soft_delete_product(db, identifier)
    await cache.invalidate_product(redis, product.id)
    return product


@router.patch("/{identifier}/restore", response_model=ProductResponse, dependencies=editor)
async def restore_product(identifier: str, db: AsyncSession = Depends(get_db), redis: Redis = Depends(get_cache)):
    product = await product_service.restore_product(db, identifier)
    await cache.invalidate_product(redis, product.id)
    return product


@router.delete("/{identifier}/permanent", status_code=status.HTTP_204_NO_CONTENT, dependencies=editor)
async def permanent_delete(identifier: str, db: AsyncSession = Depends(get_db), redis: Redis = Depends(get_cache)):
    product_id = await product_service.permanent_delete_product(db, identifier)
    await cache.invalidate_product(redis, product_id)


@router.post("/{product_id}/images", response_model=ProductImageResponse,
             status_code=status.HTTP_201_CREATED, dependencies=editor)
async def add_image(
    product_id: UUID,
    data: ProductImageCreate,
    db: AsyncSession = Depends(get_db),
    redis: Redis = Depends(get_cache),
):
    image = await product_service.add_product_image(db, product_id, data)
    await cache.invalidate_product(redis, product_id)
    return image


@router.delete("/images/{image_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=editor)
async def remove_image(image_id: UUID, db: AsyncSession = Depends(get_db), redis: Redis = Depends(get_cache)):
    product_id = await product_service.remove_product_image(db, image_id)
    await cache.invalidate_product(redis, product_id)
