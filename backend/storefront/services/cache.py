"""Redis-backed cart, recently-viewed list, sessions, product cache and token blacklist."""

import json
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from redis.asyncio import Redis

CART_TTL_SECONDS = 48 * 60 * 60
SESSION_TTL_SECONDS = 60 * 60
PRODUCT_CACHE_TTL_SECONDS = 60 * 60
RECENT_VIEWS_LIMIT = 10


def cart_key(user_id: UUID | str) -> str:
    return f"user:{user_id}:cart"


def recent_views_key(user_id: UUID | str) -> str:
    return f"user:{user_id}:recent_views"


def session_key(session_id: str) -> str:
    return f"session:{session_id}"


def product_key(product_id: UUID | str) -> str:
    return f"product:{product_id}:full"


def blacklist_key(token: str) -> str:
    return f"bl_{token}"


# ── Cart ───────────────────────────────────────────
async def set_cart(redis: Redis, user_id: UUID | str, items: list[dict], session_id: str | None = None) -> dict:
    cart = {
        "items": json.dumps(items, default=str),
        "updated_at": datetime.now(timezone.utc).isoformat(),
        "session_id": session_id or "",
    }
    key = cart_key(user_id)
    await redis.hset(key, mapping=cart)
    await redis.expire(key, CART_TTL_SECONDS)
    return {"items": items, "updated_at": cart["updated_at"], "session_id": session_id}


async def get_cart(redis: Redis, user_id: UUID | str) -> dict | None:
    raw = await redis.hgetall(cart_key(user_id))
    if not raw or "items" not in raw:
        return None
    return {
        "items": json.loads(raw["items"]),
        "updated_at": raw.get("updated_at"),
        "session_id": raw.get("session_id") or None,
    }


async def clear_cart(redis: Redis, user_id: UUID | str) -> None:
    await redis.delete(cart_key(user_id))


# ── Recently viewed ────────────────────────────────
async def add_recent_view(redis: Redis, user_id: UUID | str, product_id: UUID | str) -> None:
    key = recent_views_key(user_id)
    value = str(product_id)
    await redis.lrem(key, 0, value)
    await redis.lpush(key, value)
    await redis.ltrim(key, 0, RECENT_VIEWS_LIMIT - 1)


async def get_recent_views(redis: Redis, user_id: UUID | str) -> list[str]:
    return await redis.lrange(recent_views_key(user_id), 0, RECENT_VIEWS_LIMIT - 1)


# ── Sessions ───────────────────────────────────────
async def set_session(redis: Redis, session_id: str, data: dict[str, Any], ttl: int = SESSION_TTL_SECONDS) -> None:
    await redis.set(session_key(session_id), json.dumps(data, default=str), ex=ttl)


async def get_session(redis: Redis, session_id: str) -> dict | None:
    raw = await redis.get(session_key(session_id))
    return json.loads(raw) if raw else None


async def delete_session(redis: Redis, session_id: str) -> None:
    await redis.delete(session_key(session_id))


# ── Product cache ──────────────────────────────────
async def cache_product(redis: Redis, product_id: UUID | str, data: dict[str, Any]) -> None:
    await redis.set(product_key(product_id), json.dumps(data, default=str), ex=PRODUCT_CACHE_TTL_SECONDS)


async def get_cached_product(redis: Redis, product_id: UUID | str) -> dict | None:
    raw = await redis.get(product_key(product_id))
    return json.loads(raw) if raw else None


async def invalidate_product(redis: Redis, product_id: UUID | str) -> None:
    await redis.delete(product_key(product_id))


# ── Token blacklist ────────────────────────────────
async def blacklist_token(redis: Redis, token: str, ttl: int) -> None:
    await redis.set(blacklist_key(token), "1", ex=max(int(ttl), 1))


async def is_token_blacklisted(redis: Redis, token: str) -> bool:
    return bool(await redis.exists(blacklist_key(token)))
