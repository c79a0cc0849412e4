"""Product catalog, variants and lifecycle."""

from decimal import Decimal
import uuid

import pytest
from sqlalchemy import select

from storefront.core.errors import ConflictError, NotFoundError, ValidationError
from storefront.models.product import Product, ProductImage
from storefront.models.review import ProductReview
from storefront.schemas.order import OrderCreate, OrderItemCreate
from storefront.schemas.product import ProductCreate, ProductImageCreate, ProductUpdate
from storefront.schemas.variant import VariantCreate, VariantUpdate
from storefront.services import orders as order_service
from storefront.services import products as product_service
from storefront.services import variants as variant_service


def _lamp(**overrides) -> ProductCreate:
    data = {"name": "Brass Lamp", "sku": "LAMP-BR", "base_price": Decimal("45.00"), "stock": 4}
    data.update(overrides)
    return ProductCreate(**data)


# ── Creation and lookup ───────────────────────────

@pytest.mark.asyncio
async def test_create_product_with_attributes(db_session):
    product = await product_service.create_product(
        db_session, _lamp(attributes={"material": "brass", "finish": "matte"})
    )

    assert product.slug == "brass-lamp"
    assert {a.name: a.value for a in product.attributes} == {"material": "brass", "finish": "matte"}


@pytest.mark.asyncio
async def test_duplicate_sku_and_slug_conflict(db_session):
    await product_service.create_product(db_session, _lamp())

    with pytest.raises(ConflictError, match="SKU"):
        await product_service.create_product(db_session, _lamp(name="Other Lamp"))
    with pytest.raises(ConflictError, match="Slug"):
        await product_service.create_product(db_session, _lamp(sku="LAMP-2", slug="brass-lamp"))


@pytest.mark.asyncio
async def test_same_name_gets_suffixed_slug(db_session):
    await product_service.create_product(db_session, _lamp())
    second = await product_service.create_product(db_session, _lamp(sku="LAMP-BR-2"))
    assert second.slug == "brass-lamp-1"


@pytest.mark.asyncio
async def test_symbol_only_slug_falls_back_to_name(db_session):
    product = await product_service.create_product(db_session, _lamp(slug="!!!"))
    assert product.slug == "brass-lamp"

    updated = await product_service.update_product(db_session, "LAMP-BR", ProductUpdate(slug="???", name="Lamp"))
    assert updated.slug == "brass-lamp"
    assert updated.name == "Lamp"


@pytest.mark.asyncio
async def test_unknown_category_is_rejected(db_session):
    with pytest.raises(NotFoundError):
        await product_service.create_product(db_session, _lamp(category_ids=[999]))


@pytest.mark.asyncio
async def test_get_product_by_id_or_sku(db_session, simple_product):
    by_id = await product_service.get_product(db_session, str(simple_product.id))
    by_sku = await product_service.get_product(db_session, "CUSHION-LIN")

    assert by_id.id == by_sku.id == simple_product.id
    with pytest.raises(NotFoundError):
        await product_service.get_product(db_session, "NOPE")


@pytest.mark.asyncio
async def test_get_by_slug_hides_inactive(db_session, simple_product):
    assert (await product_service.get_product_by_slug(db_session, "linen-cushion")).id == simple_product.id

    await product_service.set_product_active(db_session, "CUSHION-LIN", False)
    with pytest.raises(NotFoundError):
        await product_service.get_product_by_slug(db_session, "linen-cushion")


# ── Update ────────────────────────────────────────

@pytest.mark.asyncio
async def test_update_merges_attributes(db_session):
    await product_service.create_product(db_session, _lamp(attributes={"material": "brass", "finish": "matte"}))

    updated = await product_service.update_product(
        db_session,
        "LAMP-BR",
        ProductUpdate(base_price=Decimal("49.90"), attributes={"finish": "polished", "bulb": "E27"}),
    )

    assert updated.base_price == Decimal("49.90")
    assert {a.name: a.value for a in updated.attributes} == {
        "material": "brass",
        "finish": "polished",
        "bulb": "E27",
    }


@pytest.mark.asyncio
async def test_update_to_taken_sku_conflicts(db_session, simple_product):
    await product_service.create_product(db_session, _lamp())
    with pytest.raises(ConflictError):
        await product_service.update_product(db_session, "LAMP-BR", ProductUpdate(sku="CUSHION-LIN"))


# ── Lifecycle ─────────────────────────────────────

@pytest.mark.asyncio
async def test_soft_delete_restore_and_counts(db_session, simple_product, variable_product):
    assert await product_service.count_products(db_session) == 2

    await product_service.soft_delete_product(db_session, "CUSHION-LIN")

    assert await product_service.count_products(db_session) == 1
    assert await product_service.count_products(db_session, include_deleted=True, include_inactive=True) == 2
    assert [p.sku for p in await product_service.list_deleted_products(db_session)] == ["CUSHION-LIN"]
    with pytest.raises(NotFoundError):
        await product_service.get_product(db_session, "CUSHION-LIN")

    restored = await product_service.restore_product(db_session, "CUSHION-LIN")
    assert restored.is_active
    assert restored.deleted_at is None
    with pytest.raises(NotFoundError):
        await product_service.restore_product(db_session, "CUSHION-LIN")


@pytest.mark.asyncio
async def test_permanent_delete_refused_when_ordered(db_session, customer, variant):
    await order_service.create_order(
        db_session, customer.id, OrderCreate(items=[OrderItemCreate(variant_id=variant.id, quantity=1)])
    )
    with pytest.raises(ConflictError):
        await product_service.permanent_delete_product(db_session, "CHAIR-OAK")


@pytest.mark.asyncio
async def test_permanent_delete(db_session, simple_product):
    product_id = simple_product.id
    await product_service.permanent_delete_product(db_session, "CUSHION-LIN")

    assert await db_session.get(Product, product_id) is None


# ── Catalog ───────────────────────────────────────

@pytest.mark.asyncio
async def test_catalog_hides_inactive_variants_and_adds_stats(db_session, customer, variable_product, simple_product):
    black = next(v for v in variable_product.variants if v.sku_suffix == "BLK")
    await variant_service.update_variant(db_session, black.id, VariantUpdate(is_active=False))
    db_session.add_all(
        [
            ProductReview(product_id=variable_product.id, user_id=customer.id, rating=4),
            ProductReview(product_id=variable_product.id, user_id=customer.id, rating=5),
        ]
    )
    await db_session.commit()

    catalog = {p.sku: p for p in await product_service.list_catalog(db_session)}

    chair = catalog["CHAIR-OAK"]
    assert [v.sku_suffix for v in chair.variants] == ["NAT"]
    assert chair.stats.average_rating == 4.5
    assert chair.stats.total_reviews == 2
    assert catalog["CUSHION-LIN"].stats.total_reviews == 0


# ── Images ────────────────────────────────────────

@pytest.mark.asyncio
async def test_only_one_primary_image(db_session, simple_product):
    first = await product_service.add_product_image(
        db_session, simple_product.id, ProductImageCreate(url="https://cdn.example.com/1.jpg", is_primary=True)
    )
    second = await product_service.add_product_image(
        db_session, simple_product.id, ProductImageCreate(url="https://cdn.example.com/2.jpg", is_primary=True)
    )

    rows = (
        await db_session.execute(
            select(ProductImage.id, ProductImage.is_primary).where(ProductImage.product_id == simple_product.id)
        )
    ).all()
    assert dict(rows) == {first.id: False, second.id: True}

    await product_service.remove_product_image(db_session, first.id)
    with pytest.raises(NotFoundError):
        await product_service.remove_product_image(db_session, first.id)


# ── Variants ──────────────────────────────────────

@pytest.mark.asyncio
async def test_variant_lifecycle(db_session, variable_product):
    created = await variant_service.create_variant(
        db_session,
        VariantCreate(product_id=variable_product.id, sku_suffix="WHT", price=Decimal("95.00"), stock=2),
    )
    assert created.is_low_stock

    updated = await variant_service.update_variant(db_session, created.id, VariantUpdate(stock=20))
    assert updated.stock == 20
    assert not updated.is_low_stock

    await variant_service.delete_variant(db_session, created.id)
    remaining = await variant_service.list_variants(db_session, variable_product.id)
    assert created.id not in {v.id for v in remaining}
    assert len(remaining) == 2
    with pytest.raises(NotFoundError):
        await variant_service.get_variant(db_session, created.id)


@pytest.mark.asyncio
async def test_variant_for_missing_product(db_session):
    with pytest.raises(NotFoundError):
        await variant_service.create_variant(
            db_session, VariantCreate(product_id=uuid.uuid4(), sku_suffix="X", price=Decimal("1.00"))
        )


@pytest.mark.asyncio
async def test_deleted_variant_cannot_be_ordered(db_session, variant):
    await variant_service.delete_variant(db_session, variant.id)
    with pytest.raises(ValidationError):
        variant_service.ensure_orderable(variant)
