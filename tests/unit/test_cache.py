"""Unit tests for the product cache.

Redis is replaced by AsyncMock; every failure path must degrade to a miss.
"""
import json
import pytest
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

from storefront.services.cache import ProductCache, generate_cache_key


@pytest.fixture
def settings():
    settings = MagicMock()
    settings.cache_enabled = True
    settings.cache_prefix = "storefront"
    settings.cache_ttl_seconds = 300
    return settings


@pytest.fixture
def mock_redis():
    redis = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.set = AsyncMock(return_value=True)
    redis.delete = AsyncMock(return_value=0)
    return redis


def scan_returning(*keys):
    async def _scan_iter(match=None):
        for key in keys:
            yield key

    return MagicMock(side_effect=_scan_iter)


class TestGenerateCacheKey:

    def test_keys_sorted_and_none_dropped(self):
        key = generate_cache_key({"offset": 0, "category": "hoodies", "q": None})

        assert key == "products:category=hoodies&offset=0"

    def test_equivalent_params_share_a_key(self):
        assert generate_cache_key({"a": 1, "b": 2}) == generate_cache_key({"b": 2, "a": 1})

    def test_empty_params(self):
        assert generate_cache_key({}) == "products:"


class TestProductCache:

    @pytest.mark.asyncio
    async def test_get_hit_returns_payload(self, mock_redis, settings):
        product_id = uuid4()
        mock_redis.get = AsyncMock(return_value=json.dumps({"name": "Tee"}))
        cache = ProductCache(mock_redis, settings)

        assert await cache.get_product(product_id) == {"name": "Tee"}
        mock_redis.get.assert_awaited_once_with(f"storefront:products:id={product_id}")

    @pytest.mark.asyncio
    async def test_get_error_is_a_miss(self, mock_redis, settings):
        mock_redis.get = AsyncMock(side_effect=ConnectionError("redis down"))
        cache = ProductCache(mock_redis, settings)

        assert await cache.get_product(uuid4()) is None

    @pytest.mark.asyncio
    async def test_corrupt_payload_is_a_miss(self, mock_redis, settings):
        mock_redis.get = AsyncMock(return_value="{not json")
        cache = ProductCache(mock_redis, settings)

        assert await cache.get_product(uuid4()) is None

    @pytest.mark.asyncio
    async def test_set_uses_ttl(self, mock_redis, settings):
        product_id = uuid4()
        cache = ProductCache(mock_redis, settings)

        await cache.set_product(product_id, {"name": "Tee"})

        mock_redis.set.assert_awaited_once_with(
            f"storefront:products:id={product_id}",
            json.dumps({"name": "Tee"}),
            ex=300,
        )

    @pytest.mark.asyncio
    async def test_set_error_is_swallowed(self, mock_redis, settings):
        mock_redis.set = AsyncMock(side_effect=ConnectionError("redis down"))
        cache = ProductCache(mock_redis, settings)

        await cache.set_product(uuid4(), {"name": "Tee"})

    @pytest.mark.asyncio
    async def test_revalidate_deletes_product_keys(self, mock_redis, settings):
        mock_redis.scan_iter = scan_returning("storefront:products:id=1", "storefront:products:id=2")
        mock_redis.delete = AsyncMock(return_value=2)
        cache = ProductCache(mock_redis, settings)

        assert await cache.revalidate_products() == 2
        mock_redis.scan_iter.assert_called_once_with(match="storefront:products:*")
        mock_redis.delete.assert_awaited_once_with("storefront:products:id=1", "storefront:products:id=2")

    @pytest.mark.asyncio
    async def test_revalidate_with_nothing_cached(self, mock_redis, settings):
        mock_redis.scan_iter = scan_returning()
        cache = ProductCache(mock_redis, settings)

        assert await cache.revalidate_products() == 0
        mock_redis.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_revalidate_error_is_swallowed(self, mock_redis, settings):
        mock_redis.scan_iter = scan_returning("storefront:products:id=1")
        mock_redis.delete = AsyncMock(side_effect=ConnectionError("redis down"))
        cache = ProductCache(mock_redis, settings)

        assert await cache.revalidate_products() == 0

    @pytest.mark.asyncio
    async def test_disabled_cache_never_touches_redis(self, mock_redis, settings):
        settings.cache_enabled = False
        cache = ProductCache(mock_redis, settings)

        assert await cache.get_product(uuid4()) is None
        await cache.set_product(uuid4(), {})
        assert await cache.revalidate_products() == 0
        mock_redis.get.assert_not_awaited()
        mock_redis.set.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_client_behaves_as_miss(self, settings):
        cache = ProductCache(None, settings)

        assert cache.enabled is False
        assert await cache.get_product(uuid4()) is None
        assert await cache.revalidate_products() == 0
