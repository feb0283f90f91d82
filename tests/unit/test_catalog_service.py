"""Unit tests for the catalog service.

Tests cover:
    - Product creation and uniqueness
    - Listing with filters and pagination
    - Variant create/update/delete and the aggregate recompute that follows
    - Cache revalidation after catalog changes
"""
import pytest
from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

from storefront.db.models import Gender, ProductType
from storefront.schemas.requests import (
    ProductCreateRequest,
    VariantCreateRequest,
    VariantUpdateRequest,
)
from storefront.services.cache import ProductCache
from storefront.services.catalog import CatalogService
from storefront.utils.errors import ConflictError, NotFoundError


@pytest.fixture
def mock_cache():
    cache = AsyncMock(spec=ProductCache)
    cache.get_product = AsyncMock(return_value=None)
    cache.revalidate_products = AsyncMock(return_value=0)
    return cache


@pytest.fixture
def catalog(session, mock_cache):
    return CatalogService(session, mock_cache)


def product_request(**overrides) -> ProductCreateRequest:
    values = {
        "sku": "TEE-001",
        "slug": "classic-tee",
        "name": "Classic Tee",
        "category": "t-shirts",
        "product_type": ProductType.T_SHIRT,
        "gender": Gender.UNISEX,
    }
    values.update(overrides)
    return ProductCreateRequest(**values)


class TestProducts:

    @pytest.mark.asyncio
    async def test_create_product_starts_with_empty_aggregates(self, catalog, mock_cache):
        product = await catalog.create_product(product_request(tags=["summer"]))

        assert product.price == Decimal("0")
        assert product.total_stock == 0
        assert product.is_active is False
        assert product.images == []
        assert product.available_sizes == []
        assert product.tags == ["summer"]
        mock_cache.revalidate_products.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_duplicate_sku_conflicts(self, catalog):
        await catalog.create_product(product_request())

        with pytest.raises(ConflictError):
            await catalog.create_product(product_request(slug="another-tee"))

    @pytest.mark.asyncio
    async def test_session_usable_after_conflict(self, catalog):
        await catalog.create_product(product_request())
        with pytest.raises(ConflictError):
            await catalog.create_product(product_request(sku="TEE-002"))

        product = await catalog.create_product(product_request(sku="TEE-003", slug="third-tee"))
        assert product.sku == "TEE-003"

    @pytest.mark.asyncio
    async def test_get_unknown_product_raises(self, catalog):
        with pytest.raises(NotFoundError):
            await catalog.get_product(uuid4())

    @pytest.mark.asyncio
    async def test_list_hides_inactive_by_default(self, catalog, make_product):
        await make_product(name="Visible", is_active=True)
        await make_product(name="Draft", is_active=False)

        active, active_total = await catalog.list_products()
        everything, total = await catalog.list_products(active_only=False)

        assert [p.name for p in active] == ["Visible"]
        assert active_total == 1
        assert total == 2
        assert len(everything) == 2

    @pytest.mark.asyncio
    async def test_list_filters_and_paginates(self, catalog, make_product):
        for index in range(3):
            await make_product(name=f"Hoodie {index}", category="hoodies", is_active=True)
        await make_product(name="Mug", category="mugs", is_active=True)

        page, total = await catalog.list_products(category="hoodies", limit=2, offset=0)
        assert total == 3
        assert len(page) == 2

        found, found_total = await catalog.list_products(search="MUG")
        assert found_total == 1
        assert found[0].name == "Mug"

    @pytest.mark.asyncio
    async def test_product_detail_uses_cache(self, catalog, mock_cache, make_product):
        product = await make_product(name="Cached Tee")

        detail = await catalog.get_product_detail(product.id)

        assert detail.name == "Cached Tee"
        mock_cache.set_product.assert_awaited_once()
        cached_id, payload = mock_cache.set_product.await_args.args
        assert cached_id == product.id
        assert payload["name"] == "Cached Tee"

        mock_cache.get_product = AsyncMock(return_value=payload)
        again = await catalog.get_product_detail(product.id)
        assert again == detail


class TestVariants:

    @pytest.mark.asyncio
    async def test_create_variant_recomputes_product(self, session, catalog, make_product):
        product = await make_product(product_type=ProductType.HOODIE)

        variant = await catalog.create_variant(
            product.id,
            VariantCreateRequest(size="M", color="navy blue", price=Decimal("30"), stock=4, image="m.jpg"),
        )
        await session.refresh(product)

        assert variant.sku.startswith("HodyNavyBlueM")
        assert product.price == Decimal("30")
        assert product.total_stock == 4
        assert product.is_active is True
        assert product.main_image == "m.jpg"

    @pytest.mark.asyncio
    async def test_generated_skus_do_not_collide_within_a_second(self, catalog, make_product):
        first = await make_product(product_type=ProductType.HOODIE)
        second = await make_product(product_type=ProductType.HOODIE)
        clock = MagicMock()
        clock.now.return_value = datetime(2024, 5, 1, 14, 25, 30)

        with patch("storefront.services.catalog.sku.datetime", clock):
            a = await catalog.create_variant(first.id, VariantCreateRequest(size="M", color="Black"))
            b = await catalog.create_variant(second.id, VariantCreateRequest(size="M", color="Black"))

        assert a.sku.startswith("HodyBlackM142530-")
        assert b.sku.startswith("HodyBlackM142530-")
        assert a.sku != b.sku

    @pytest.mark.asyncio
    async def test_explicit_sku_is_kept(self, catalog, make_product):
        product = await make_product()

        variant = await catalog.create_variant(product.id, VariantCreateRequest(size="M", sku="CUSTOM-1"))

        assert variant.sku == "CUSTOM-1"

    @pytest.mark.asyncio
    async def test_duplicate_size_color_conflicts(self, catalog, make_product):
        product = await make_product()
        await catalog.create_variant(product.id, VariantCreateRequest(size="M", color="Red", sku="A"))

        with pytest.raises(ConflictError):
            await catalog.create_variant(product.id, VariantCreateRequest(size="M", color="Red", sku="B"))

    @pytest.mark.asyncio
    async def test_create_variant_for_unknown_product(self, catalog):
        with pytest.raises(NotFoundError):
            await catalog.create_variant(uuid4(), VariantCreateRequest(size="M"))

    @pytest.mark.asyncio
    async def test_deactivating_variant_updates_product(self, session, catalog, make_product):
        product = await make_product()
        cheap = await catalog.create_variant(
            product.id, VariantCreateRequest(size="S", price=Decimal("10"), stock=3, sku="S-1")
        )
        await catalog.create_variant(
            product.id, VariantCreateRequest(size="L", price=Decimal("12"), stock=2, sku="L-1")
        )

        await catalog.update_variant(product.id, cheap.id, VariantUpdateRequest(is_active=False))
        await session.refresh(product)

        assert product.price == Decimal("12")
        assert product.total_stock == 2
        assert product.available_sizes == ["L"]

    @pytest.mark.asyncio
    async def test_update_only_touches_given_fields(self, catalog, make_product):
        product = await make_product()
        variant = await catalog.create_variant(
            product.id, VariantCreateRequest(size="S", color="Red", price=Decimal("10"), stock=3, sku="S-1")
        )

        updated = await catalog.update_variant(product.id, variant.id, VariantUpdateRequest(stock=9))

        assert updated.stock == 9
        assert updated.color == "Red"
        assert updated.price == Decimal("10")

    @pytest.mark.asyncio
    async def test_update_into_existing_option_conflicts(self, catalog, make_product):
        product = await make_product()
        await catalog.create_variant(product.id, VariantCreateRequest(size="S", sku="S-1"))
        large = await catalog.create_variant(product.id, VariantCreateRequest(size="L", sku="L-1"))

        with pytest.raises(ConflictError):
            await catalog.update_variant(product.id, large.id, VariantUpdateRequest(size="S"))

    @pytest.mark.asyncio
    async def test_update_variant_of_other_product_not_found(self, catalog, make_product, make_variant):
        product = await make_product()
        other = await make_product()
        foreign = await make_variant(other)

        with pytest.raises(NotFoundError):
            await catalog.update_variant(product.id, foreign.id, VariantUpdateRequest(stock=1))

    @pytest.mark.asyncio
    async def test_delete_last_variant_deactivates_product(self, session, catalog, mock_cache, make_product):
        product = await make_product()
        variant = await catalog.create_variant(
            product.id, VariantCreateRequest(size="M", price=Decimal("10"), stock=5, image="m.jpg", sku="M-1")
        )
        mock_cache.revalidate_products.reset_mock()

        await catalog.delete_variant(product.id, variant.id)
        await session.refresh(product)

        assert await catalog.list_variants(product.id) == []
        assert product.is_active is False
        assert product.total_stock == 0
        assert product.main_image is None
        mock_cache.revalidate_products.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_list_variants_unknown_product(self, catalog):
        with pytest.raises(NotFoundError):
            await catalog.list_variants(uuid4())


class TestAggregateRecompute:

    @pytest.mark.asyncio
    async def test_recompute_repairs_stale_fields(self, session, catalog, make_product, make_variant):
        product = await make_product()
        await make_variant(product, price=Decimal("9"), stock=7)

        aggregates = await catalog.recompute_aggregates(product.id)
        await session.refresh(product)

        assert aggregates.total_stock == 7
        assert product.total_stock == 7
        assert product.price == Decimal("9")

    @pytest.mark.asyncio
    async def test_recompute_all_reports_counts(self, catalog, mock_cache, make_product):
        await make_product()
        await make_product()

        outcome = await catalog.recompute_all_aggregates()

        assert outcome.success_count == 2
        assert outcome.error_count == 0
        mock_cache.revalidate_products.assert_awaited_once()
