"""Unit tests for aggregation service.

Tests cover:
    - compute_product_aggregates: pure calculation from variants
    - recompute_product_aggregates: persisted single-product recompute
    - recompute_all_product_aggregates: batch recompute with failure isolation
"""
import pytest
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import patch
from uuid import uuid4

from storefront.services.aggregation import service as aggregation_service
from storefront.services.aggregation.service import (
    EMPTY_AGGREGATES,
    compute_product_aggregates,
    recompute_all_product_aggregates,
    recompute_product_aggregates,
)
from storefront.utils.errors import NotFoundError


def variant(**fields):
    """Lightweight stand-in for a Variant row."""
    defaults = {"is_active": True, "price": None, "stock": 0, "size": None, "image": None}
    defaults.update(fields)
    return SimpleNamespace(**defaults)


class TestComputeProductAggregates:
    """Tests for the pure aggregate calculation."""

    def test_min_price_and_stock_sum_over_active_variants(self):
        result = compute_product_aggregates([
            variant(price=Decimal("10"), stock=3, size="M"),
            variant(price=Decimal("8"), stock=2, size="L"),
        ])

        assert result.price == Decimal("8")
        assert result.total_stock == 5
        assert result.is_active is True
        assert result.available_sizes == ["M", "L"]

    def test_inactive_variants_are_ignored(self):
        result = compute_product_aggregates([
            variant(price=Decimal("5"), stock=100, size="XS", image="a.jpg", is_active=False),
            variant(price=Decimal("12"), stock=4, size="M", image="b.jpg"),
        ])

        assert result.price == Decimal("12")
        assert result.total_stock == 4
        assert result.available_sizes == ["M"]
        assert result.images == ["b.jpg"]
        assert result.main_image == "b.jpg"

    def test_all_inactive_yields_empty_aggregates(self):
        result = compute_product_aggregates([
            variant(price=Decimal("10"), stock=3, image="a.jpg", is_active=False),
        ])

        assert result == EMPTY_AGGREGATES
        assert result.price == Decimal("0")
        assert result.total_stock == 0
        assert result.is_active is False
        assert result.main_image is None

    def test_no_variants_yields_empty_aggregates(self):
        assert compute_product_aggregates([]) == EMPTY_AGGREGATES

    def test_variants_without_price_override_give_zero_price(self):
        result = compute_product_aggregates([variant(stock=7, size="M")])

        assert result.price == Decimal("0")
        assert result.total_stock == 7
        assert result.is_active is True

    def test_sizes_and_images_deduplicated_in_first_seen_order(self):
        result = compute_product_aggregates([
            variant(size="L", image="red.jpg"),
            variant(size="M", image=None),
            variant(size="L", image="blue.jpg"),
            variant(size="", image="red.jpg"),
        ])

        assert result.available_sizes == ["L", "M"]
        assert result.images == ["red.jpg", "blue.jpg"]
        assert result.main_image == "red.jpg"

    def test_update_values_always_include_main_image(self):
        values = EMPTY_AGGREGATES.as_update_values()

        assert "main_image" in values
        assert values["main_image"] is None


class TestRecomputeProductAggregates:
    """Tests for the persisted single-product recompute."""

    @pytest.mark.asyncio
    async def test_writes_aggregates_to_product(self, session, make_product, make_variant):
        product = await make_product()
        await make_variant(product, size="M", price=Decimal("10"), stock=3, image="m.jpg")
        await make_variant(product, size="L", price=Decimal("8"), stock=2, image="l.jpg")

        result = await recompute_product_aggregates(session, product.id, trigger="test")
        await session.refresh(product)

        assert result.price == Decimal("8")
        assert product.price == Decimal("8")
        assert product.total_stock == 5
        assert product.is_active is True
        assert product.available_sizes == ["M", "L"]
        assert product.images == ["m.jpg", "l.jpg"]
        assert product.main_image == "m.jpg"

    @pytest.mark.asyncio
    async def test_deactivating_last_variant_clears_product(self, session, make_product, make_variant):
        product = await make_product()
        only = await make_variant(product, price=Decimal("10"), stock=3, image="x.jpg")
        await recompute_product_aggregates(session, product.id)

        only.is_active = False
        await session.flush()
        await recompute_product_aggregates(session, product.id)
        await session.refresh(product)

        assert product.price == Decimal("0")
        assert product.total_stock == 0
        assert product.is_active is False
        assert product.main_image is None
        assert product.images == []
        assert product.available_sizes == []

    @pytest.mark.asyncio
    async def test_recompute_is_idempotent(self, session, make_product, make_variant):
        product = await make_product()
        await make_variant(product, price=Decimal("15"), stock=4, image="a.jpg")

        first = await recompute_product_aggregates(session, product.id)
        second = await recompute_product_aggregates(session, product.id)

        assert first == second

    @pytest.mark.asyncio
    async def test_unknown_product_raises_not_found(self, session):
        with pytest.raises(NotFoundError) as exc_info:
            await recompute_product_aggregates(session, uuid4())

        assert exc_info.value.kind == "not_found"


class TestRecomputeAllProductAggregates:
    """Tests for the batch recompute."""

    @pytest.mark.asyncio
    async def test_updates_every_product(self, session, make_product, make_variant):
        first = await make_product()
        second = await make_product()
        await make_variant(first, price=Decimal("10"), stock=1)
        await make_variant(second, price=Decimal("20"), stock=2)

        outcome = await recompute_all_product_aggregates(session)

        assert set(outcome.updated) == {first.id, second.id}
        assert outcome.failed == []
        assert outcome.success_count == 2
        assert outcome.error_count == 0

    @pytest.mark.asyncio
    async def test_failure_is_recorded_and_batch_continues(self, session, make_product, make_variant):
        healthy = await make_product()
        broken = await make_product()
        await make_variant(healthy, price=Decimal("10"), stock=6)
        await make_variant(broken, price=Decimal("20"), stock=2)

        real_recompute = aggregation_service.recompute_product_aggregates

        async def flaky_recompute(session, product_id, trigger="manual"):
            if product_id == broken.id:
                raise RuntimeError("simulated failure")
            return await real_recompute(session, product_id, trigger=trigger)

        with patch.object(aggregation_service, "recompute_product_aggregates", flaky_recompute):
            outcome = await recompute_all_product_aggregates(session)

        assert outcome.updated == [healthy.id]
        assert outcome.error_count == 1
        failure = outcome.failed[0]
        assert failure["product_id"] == broken.id
        assert failure["error"] == "internal"
        assert failure["message"] == "simulated failure"

        await session.refresh(healthy)
        assert healthy.total_stock == 6
        assert healthy.is_active is True
