"""HTTP surface: routing, auth enforcement, error envelope and health."""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import pytest_asyncio

from conftest import sign_payload, stripe_event
from storefront import main
from storefront.core.deps import get_analytics_db, get_cache, get_payment_gateway
from storefront.db.base import get_db
from storefront.models.user import RoleType
from storefront.schemas.auth import UserCreate
from storefront.schemas.product import ProductImageCreate
from storefront.services import auth as auth_service
from storefront.services import products as product_service


@pytest.fixture
def fake_redis() -> AsyncMock:
    redis = AsyncMock()
    redis.exists.return_value = 0
    redis.get.return_value = None
    return redis


@pytest.fixture
def fake_mongo() -> MagicMock:
    collection = MagicMock()
    collection.update_one = AsyncMock()
    mongo = MagicMock()
    mongo.__getitem__.return_value = collection
    return mongo


@pytest_asyncio.fixture
async def client(db_session, fake_redis, fake_mongo, gateway):
    async def override_db():
        yield db_session

    main.app.dependency_overrides[get_db] = override_db
    main.app.dependency_overrides[get_cache] = lambda: fake_redis
    main.app.dependency_overrides[get_analytics_db] = lambda: fake_mongo
    main.app.dependency_overrides[get_payment_gateway] = lambda: gateway

    transport = httpx.ASGITransport(app=main.app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    main.app.dependency_overrides.clear()


async def _register(client, email="shopper@example.com") -> dict:
    response = await client.post("/api/auth/register", json={"email": email, "password": "longenough"})
    assert response.status_code == 201
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.mark.asyncio
async def test_protected_route_requires_token(client):
    response = await client.get("/api/orders/me")
    assert response.status_code == 401
    assert response.json() == {"error": "Authentication required"}


@pytest.mark.asyncio
async def test_register_sets_cookie_and_me_works(client):
    response = await client.post("/api/auth/register", json={"email": "c@example.com", "password": "longenough"})
    assert "token" in response.cookies

    me = await client.get("/api/auth/me")
    assert me.status_code == 200
    assert me.json()["roles"] == ["CUSTOMER"]


@pytest.mark.asyncio
async def test_customer_cannot_manage_catalog(client):
    headers = await _register(client)
    response = await client.post("/api/categories", json={"name": "Chairs"}, headers=headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_place_order_over_http(client, variant, fake_mongo):
    headers = await _register(client)

    response = await client.post(
        "/api/orders", json={"items": [{"variant_id": str(variant.id), "quantity": 2}]}, headers=headers
    )

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "PENDING"
    assert Decimal(body["total"]) == Decimal("236.00")
    assert body["payments"][0]["gateway"] == "manual"
    fake_mongo.__getitem__.assert_called_with("user_insights")

    mine = await client.get("/api/orders/me", headers=headers)
    assert [o["id"] for o in mine.json()] == [body["id"]]

    stranger = await _register(client, email="other@example.com")
    hidden = await client.get(f"/api/orders/{body['id']}", headers=stranger)
    assert hidden.status_code == 404


@pytest.mark.asyncio
async def test_insufficient_stock_is_400(client, variant):
    headers = await _register(client)
    response = await client.post(
        "/api/orders", json={"items": [{"variant_id": str(variant.id), "quantity": 50}]}, headers=headers
    )
    assert response.status_code == 400
    assert "Insufficient stock" in response.json()["error"]


async def _admin(db_session) -> dict:
    admin = await auth_service.create_user(
        db_session, UserCreate(email="admin@example.com", password="longenough", roles=[RoleType.ADMIN])
    )
    return {"Authorization": f"Bearer {auth_service.issue_token(admin).access_token}"}


@pytest.mark.asyncio
async def test_register_cannot_choose_admin_role(client):
    response = await client.post(
        "/api/auth/register", json={"email": "mallory@example.com", "password": "longenough", "role": "ADMIN"}
    )
    assert response.status_code == 201
    assert response.json()["user"]["roles"] == ["CUSTOMER"]

    headers = {"Authorization": f"Bearer {response.json()['access_token']}"}
    denied = await client.post("/api/categories", json={"name": "Chairs"}, headers=headers)
    assert denied.status_code == 403


@pytest.mark.asyncio
async def test_variant_and_image_writes_drop_cached_product(client, db_session, fake_redis, variant, simple_product):
    headers = await _admin(db_session)
    chair_key = f"product:{variant.product_id}:full"
    cushion_key = f"product:{simple_product.id}:full"
    image = await product_service.add_product_image(
        db_session, simple_product.id, ProductImageCreate(url="https://cdn.example.com/cushion.jpg")
    )

    response = await client.patch(
        f"/api/product-variants/{variant.id}", json={"price": "95.00"}, headers=headers
    )
    assert response.status_code == 200
    fake_redis.delete.assert_awaited_with(chair_key)

    response = await client.delete(f"/api/products/images/{image.id}", headers=headers)
    assert response.status_code == 204
    fake_redis.delete.assert_awaited_with(cushion_key)


@pytest.mark.asyncio
async def test_confirm_payment_checks_order_owner(client, variant):
    owner = await _register(client)
    placed = await client.post(
        "/api/orders", json={"items": [{"variant_id": str(variant.id), "quantity": 1}]}, headers=owner
    )
    order = placed.json()
    intent = await client.post(
        "/api/payments/create-intent", json={"order_id": order["id"], "amount": order["total"]}, headers=owner
    )
    assert intent.status_code == 201
    intent_id = intent.json()["payment_intent_id"]

    stranger = await _register(client, email="other@example.com")
    hidden = await client.post("/api/payments/confirm", json={"payment_intent_id": intent_id}, headers=stranger)
    assert hidden.status_code == 404
    assert hidden.json() == {"error": "Order not found"}

    confirmed = await client.post("/api/payments/confirm", json={"payment_intent_id": intent_id}, headers=owner)
    assert confirmed.status_code == 200


@pytest.mark.asyncio
async def test_webhook_without_signature_is_400(client):
    response = await client.post("/api/payments/webhook", content=b"{}")
    assert response.status_code == 400
    assert response.json() == {"error": "Missing Stripe-Signature header"}


@pytest.mark.asyncio
async def test_signed_webhook_is_acknowledged(client):
    payload = stripe_event("customer.created", "cus_1", event_id="evt_api")
    response = await client.post(
        "/api/payments/webhook", content=payload, headers={"Stripe-Signature": sign_payload(payload)}
    )
    assert response.status_code == 200
    assert response.json()["received"] is True


@pytest.mark.asyncio
async def test_health_reports_degraded(client, monkeypatch):
    monkeypatch.setattr(main, "check_health", AsyncMock(return_value={"postgres": True, "redis": False, "mongo": True}))

    response = await client.get("/health")

    assert response.status_code == 503
    assert response.json()["status"] == "degraded"


@pytest.mark.asyncio
async def test_health_ok(client, monkeypatch):
    monkeypatch.setattr(main, "check_health", AsyncMock(return_value={"postgres": True, "redis": True, "mongo": True}))
    response = await client.get("/health")
    assert response.json() == {"status": "ok", "services": {"postgres": True, "redis": True, "mongo": True}}
