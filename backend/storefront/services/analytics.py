"""Analytics documents in MongoDB. Upsert-only, one document per product/user/template."""

from typing import Any
from uuid import UUID

from pymongo.asynchronous.database import AsyncDatabase

from storefront.models.mixins import utc_now

PRODUCT_COLLECTION = "product_analytics"
USER_COLLECTION = "user_insights"
TEMPLATE_COLLECTION = "template_analytics"

_NO_ID = {"_id": 0}


async def update_product_analytics(mongo: AsyncDatabase, product_id: UUID | str, update: dict[str, Any]) -> None:
    await mongo[PRODUCT_COLLECTION].update_one(
        {"product_id": str(product_id)},
        {"$set": {**update, "last_updated": utc_now()}},
        upsert=True,
    )


async def get_product_analytics(mongo: AsyncDatabase, product_id: UUID | str) -> dict | None:
    return await mongo[PRODUCT_COLLECTION].find_one({"product_id": str(product_id)}, _NO_ID)


async def record_product_view(mongo: AsyncDatabase, product_id: UUID | str) -> None:
    await mongo[PRODUCT_COLLECTION].update_one(
        {"product_id": str(product_id)},
        {"$inc": {"views": 1}, "$set": {"last_updated": utc_now()}},
        upsert=True,
    )


async def update_user_insights(mongo: AsyncDatabase, user_id: UUID | str, update: dict[str, Any]) -> None:
    await mongo[USER_COLLECTION].update_one(
        {"user_id": str(user_id)},
        {"$set": update},
        upsert=True,
    )


async def get_user_insights(mongo: AsyncDatabase, user_id: UUID | str) -> dict | None:
    return await mongo[USER_COLLECTION].find_one({"user_id": str(user_id)}, _NO_ID)


async def update_template_analytics(mongo: AsyncDatabase, template_id: UUID | str, update: dict[str, Any]) -> None:
    await mongo[TEMPLATE_COLLECTION].update_one(
        {"template_id": str(template_id)},
        {"$set": {**update, "last_updated": utc_now()}},
        upsert=True,
    )


async def get_template_analytics(mongo: AsyncDatabase, template_id: UUID | str) -> dict | None:
    return await mongo[TEMPLATE_COLLECTION].find_one({"template_id": str(template_id)}, _NO_ID)
