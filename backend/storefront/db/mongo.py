"""MongoDB client for analytics documents."""

from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase

from storefront.core.config import settings

_client: AsyncMongoClient | None = None


def get_mongo_client() -> AsyncMongoClient:
    global _client
    if _client is None:
        _client = AsyncMongoClient(
            settings.MONGODB_URL,
            maxPoolSize=10,
            serverSelectionTimeoutMS=10_000,
            connectTimeoutMS=10_000,
            socketTimeoutMS=45_000,
        )
    return _client


def get_mongo_db() -> AsyncDatabase:
    return get_mongo_client()[settings.MONGODB_DB]


async def ping_mongo() -> bool:
    result = await get_mongo_client().admin.command("ping")
    return bool(result.get("ok"))


async def close_mongo() -> None:
    global _client
    if _client is not None:
        await _client.close()
        _client = None
