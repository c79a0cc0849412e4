"""Redis client used for carts, sessions, caching and the token blacklist."""

from redis.asyncio import Redis

from storefront.core.config import settings

_redis: Redis | None = None


def get_redis() -> Redis:
    """Return the shared client. Connections are opened lazily by redis-py."""
    global _redis
    if _redis is None:
        _redis = Redis.from_url(settings.REDIS_URL, decode_responses=True)
    return _redis


async def ping_redis() -> bool:
    return bool(await get_redis().ping())


async def close_redis() -> None:
    global _redis
    if _redis is not None:
        await _redis.aclose()
        _redis = None
