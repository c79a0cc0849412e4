"""Redis cart/session/cache helpers, Mongo analytics and startup checks."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from storefront.db import connections
from storefront.services import analytics, cache


# ── Redis ─────────────────────────────────────────

@pytest.mark.asyncio
async def test_set_cart_writes_hash_with_ttl():
    redis = AsyncMock()
    items = [{"product_id": "p1", "quantity": 2}]

    cart = await cache.set_cart(redis, "u1", items, session_id="s1")

    redis.hset.assert_awaited_once()
    key = redis.hset.await_args.args[0]
    mapping = redis.hset.await_args.kwargs["mapping"]
    assert key == "user:u1:cart"
    assert json.loads(mapping["items"]) == items
    assert mapping["session_id"] == "s1"
    redis.expire.assert_awaited_once_with("user:u1:cart", 48 * 60 * 60)
    assert cart["items"] == items


@pytest.mark.asyncio
async def test_get_cart_decodes_or_returns_none():
    redis = AsyncMock()
    redis.hgetall.return_value = {}
    assert await cache.get_cart(redis, "u1") is None

    redis.hgetall.return_value = {"items": '[{"product_id": "p1"}]', "updated_at": "t", "session_id": ""}
    cart = await cache.get_cart(redis, "u1")
    assert cart == {"items": [{"product_id": "p1"}], "updated_at": "t", "session_id": None}


@pytest.mark.asyncio
async def test_recent_views_dedupes_and_caps():
    redis = AsyncMock()
    await cache.add_recent_view(redis, "u1", "p9")

    redis.lrem.assert_awaited_once_with("user:u1:recent_views", 0, "p9")
    redis.lpush.assert_awaited_once_with("user:u1:recent_views", "p9")
    redis.ltrim.assert_awaited_once_with("user:u1:recent_views", 0, 9)


@pytest.mark.asyncio
async def test_session_roundtrip_uses_one_hour_ttl():
    redis = AsyncMock()
    await cache.set_session(redis, "abc", {"user_id": "u1"})
    redis.set.assert_awaited_once_with("session:abc", '{"user_id": "u1"}', ex=3600)

    redis.get.return_value = None
    assert await cache.get_session(redis, "abc") is None


@pytest.mark.asyncio
async def test_product_cache_hit_and_invalidate():
    redis = AsyncMock()
    redis.get.return_value = '{"sku": "LAMP"}'
    assert await cache.get_cached_product(redis, "p1") == {"sku": "LAMP"}
    redis.get.assert_awaited_once_with("product:p1:full")

    await cache.invalidate_product(redis, "p1")
    redis.delete.assert_awaited_once_with("product:p1:full")


@pytest.mark.asyncio
async def test_blacklist_ttl_is_at_least_one_second():
    redis = AsyncMock()
    await cache.blacklist_token(redis, "tok", 0)
    redis.set.assert_awaited_once_with("bl_tok", "1", ex=1)


# ── Mongo analytics ───────────────────────────────

def _mongo():
    collection = MagicMock()
    collection.update_one = AsyncMock()
    collection.find_one = AsyncMock(return_value={"product_id": "p1", "views": 3})
    mongo = MagicMock()
    mongo.__getitem__.return_value = collection
    return mongo, collection


@pytest.mark.asyncio
async def test_record_product_view_upserts_increment():
    mongo, collection = _mongo()

    await analytics.record_product_view(mongo, "p1")

    mongo.__getitem__.assert_called_with("product_analytics")
    query, update = collection.update_one.await_args.args
    assert query == {"product_id": "p1"}
    assert update["$inc"] == {"views": 1}
    assert "last_updated" in update["$set"]
    assert collection.update_one.await_args.kwargs == {"upsert": True}


@pytest.mark.asyncio
async def test_user_insights_upsert():
    mongo, collection = _mongo()

    await analytics.update_user_insights(mongo, "u1", {"last_order_id": "o1"})

    mongo.__getitem__.assert_called_with("user_insights")
    collection.update_one.assert_awaited_once_with(
        {"user_id": "u1"}, {"$set": {"last_order_id": "o1"}}, upsert=True
    )


@pytest.mark.asyncio
async def test_get_product_analytics_hides_object_id():
    mongo, collection = _mongo()

    doc = await analytics.get_product_analytics(mongo, "p1")

    assert doc["views"] == 3
    collection.find_one.assert_awaited_once_with({"product_id": "p1"}, {"_id": 0})


# ── Startup checks ────────────────────────────────

@pytest.mark.asyncio
async def test_connect_with_retry_succeeds_after_failures():
    check = AsyncMock(side_effect=[RedisConnectionError("down"), True])
    assert await connections.connect_with_retry("Redis", check, retries=3, delay=0) is True
    assert check.await_count == 2


@pytest.mark.asyncio
async def test_connect_with_retry_gives_up_outside_production():
    check = AsyncMock(side_effect=OSError("refused"))
    assert await connections.connect_with_retry("MongoDB", check, retries=2, delay=0) is False
    assert check.await_count == 2


@pytest.mark.asyncio
async def test_connect_with_retry_raises_in_production(monkeypatch):
    monkeypatch.setattr(connections.settings, "ENVIRONMENT", "production")
    check = AsyncMock(side_effect=OSError("refused"))
    with pytest.raises(OSError):
        await connections.connect_with_retry("PostgreSQL", check, retries=1, delay=0)


@pytest.mark.asyncio
async def test_check_health_reports_each_store(monkeypatch):
    monkeypatch.setattr(connections, "ping_database", AsyncMock(return_value=True))
    monkeypatch.setattr(connections, "ping_redis", AsyncMock(side_effect=RedisConnectionError("down")))
    monkeypatch.setattr(connections, "ping_mongo", AsyncMock(return_value=True))

    assert await connections.check_health() == {"postgres": True, "redis": False, "mongo": True}
