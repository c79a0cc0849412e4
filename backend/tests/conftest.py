"""Shared fixtures: in-memory SQLite per test, a fake Stripe gateway, seeded catalog."""

import json
import time
import uuid
from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import storefront.models  # noqa: F401
from storefront.core.security import hash_password
from storefront.db.base import Base
from storefront.models.product import Product, ProductType
from storefront.models.user import RoleType, User, UserRole
from storefront.models.variant import ProductVariant
from storefront.services.stripe_client import StripeError, compute_signature, verify_webhook_signature

WEBHOOK_SECRET = "whsec_test_secret"


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh schema per test; dropped with the engine."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture
async def customer(db_session: AsyncSession) -> User:
    user = User(
        email="buyer@example.com",
        hashed_password=hash_password("Secret123!"),
        full_name="Ana Buyer",
        roles=[UserRole(role=RoleType.CUSTOMER)],
    )
    db_session.add(user)
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def variable_product(db_session: AsyncSession) -> Product:
    product = Product(
        name="Oak Chair",
        sku="CHAIR-OAK",
        slug="oak-chair",
        type=ProductType.VARIABLE,
        categories=[],
        images=[],
        attributes=[],
        variants=[
            ProductVariant(sku_suffix="NAT", price=Decimal("100.00"), stock=10, images=[]),
            ProductVariant(sku_suffix="BLK", price=Decimal("80.00"), stock=3, images=[]),
        ],
    )
    db_session.add(product)
    await db_session.commit()
    return product


@pytest_asyncio.fixture
async def variant(variable_product: Product) -> ProductVariant:
    return next(v for v in variable_product.variants if v.sku_suffix == "NAT")


@pytest_asyncio.fixture
async def simple_product(db_session: AsyncSession) -> Product:
    product = Product(
        name="Linen Cushion",
        sku="CUSHION-LIN",
        slug="linen-cushion",
        type=ProductType.SIMPLE,
        base_price=Decimal("50.00"),
        stock=5,
        categories=[],
        images=[],
        attributes=[],
        variants=[],
    )
    db_session.add(product)
    await db_session.commit()
    return product


class FakeGateway:
    """In-process stand-in for StripeClient."""

    name = "stripe"

    def __init__(self, webhook_secret: str = WEBHOOK_SECRET):
        self.webhook_secret = webhook_secret
        self.intents: dict[str, dict] = {}
        self.refunds: list[dict] = []
        self.fail_with: StripeError | None = None

    async def create_payment_intent(self, amount, currency, metadata, receipt_email=None):
        if self.fail_with:
            raise self.fail_with
        intent_id = f"pi_{uuid.uuid4().hex[:24]}"
        intent = {
            "id": intent_id,
            "amount": amount,
            "currency": currency,
            "metadata": dict(metadata),
            "receipt_email": receipt_email,
            "status": "requires_payment_method",
            "client_secret": f"{intent_id}_secret_abc",
            "last_payment_error": None,
        }
        self.intents[intent_id] = intent
        return intent

    async def retrieve_payment_intent(self, payment_intent_id):
        if payment_intent_id not in self.intents:
            raise StripeError("No such payment_intent", status_code=404)
        return self.intents[payment_intent_id]

    async def create_refund(self, payment_intent_id, amount=None):
        if self.fail_with:
            raise self.fail_with
        intent = self.intents[payment_intent_id]
        refund = {
            "id": f"re_{uuid.uuid4().hex[:24]}",
            "amount": intent["amount"] if amount is None else amount,
            "status": "succeeded",
            "payment_intent": payment_intent_id,
        }
        self.refunds.append(refund)
        return refund

    def set_status(self, payment_intent_id: str, status: str, error: dict | None = None, charges: list | None = None):
        intent = self.intents[payment_intent_id]
        intent["status"] = status
        intent["last_payment_error"] = error
        if charges is not None:
            intent["charges"] = {"data": charges}

    def construct_event(self, payload: bytes, signature: str) -> dict:
        verify_webhook_signature(payload, signature, self.webhook_secret, tolerance=300)
        return json.loads(payload)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


def sign_payload(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: int | None = None) -> str:
    ts = int(time.time()) if timestamp is None else timestamp
    return f"t={ts},v1={compute_signature(payload, ts, secret)}"


def stripe_event(event_type: str, intent_id: str, event_id: str | None = None) -> bytes:
    return json.dumps(
        {
            "id": event_id or f"evt_{uuid.uuid4().hex[:24]}",
            "type": event_type,
            "data": {"object": {"id": intent_id, "object": "payment_intent"}},
        }
    ).encode()
