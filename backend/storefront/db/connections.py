"""Startup connection checks with a fixed retry loop."""

import asyncio
import logging
from typing import Awaitable, Callable

from pymongo.errors import PyMongoError
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from storefront.core.config import settings
from storefront.db.base import engine
from storefront.db.mongo import ping_mongo
from storefront.db.redis import ping_redis

logger = logging.getLogger(__name__)

CONNECTION_ERRORS = (OSError, RedisError, PyMongoError, SQLAlchemyError)


async def ping_database() -> bool:
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    return True


async def connect_with_retry(
    name: str,
    check: Callable[[], Awaitable[bool]],
    *,
    retries: int | None = None,
    delay: float | None = None,
) -> bool:
    """Run ``check`` until it succeeds or the attempts are exhausted.

    Outside production a store that never comes up is logged and the app keeps
    starting; in production the last error is raised.
    """
    retries = retries or settings.STARTUP_CONNECT_RETRIES
    delay = settings.STARTUP_CONNECT_DELAY_SECONDS if delay is None else delay

    for attempt in range(1, retries + 1):
        try:
            await check()
            logger.info("%s connected", name)
            return True
        except CONNECTION_ERRORS as exc:
            logger.warning("%s connection attempt %d/%d failed: %s", name, attempt, retries, exc)
            if attempt == retries:
                if settings.ENVIRONMENT == "production":
                    raise
                logger.error("Continuing without %s", name)
                return False
            await asyncio.sleep(delay)
    return False


async def check_health() -> dict[str, bool]:
    """Single-shot status of every backing store."""
    status: dict[str, bool] = {}
    for name, check in (("postgres", ping_database), ("redis", ping_redis), ("mongo", ping_mongo)):
        try:
            status[name] = await check()
        except CONNECTION_ERRORS:
            status[name] = False
    return status
