"""
Product Cache
=============

Best-effort Redis cache for product reads and revalidation after catalog
changes. Every Redis failure is logged and swallowed: a broken cache
behaves like an empty one and never fails the request that touched it.
"""

import json
from typing import Any, Mapping
from uuid import UUID

import redis.asyncio as aioredis

from storefront.config.settings import Settings, get_settings
from storefront.utils.logger import get_logger

logger = get_logger(__name__)

CACHE_TAG = "products"

_redis_client: aioredis.Redis | None = None  # type: ignore[type-arg]


def generate_cache_key(params: Mapping[str, Any]) -> str:
    """
    Build a stable cache key from request parameters.

    None values are dropped and keys are sorted so that equivalent
    parameter sets map to the same key.

    Example:
        generate_cache_key({"offset": 0, "category": "hoodies", "q": None})
        # "products:category=hoodies&offset=0"
    """
    pairs = sorted((key, value) for key, value in params.items() if value is not None)
    query = "&".join(f"{key}={value}" for key, value in pairs)
    return f"{CACHE_TAG}:{query}"


class ProductCache:
    """Redis-backed product cache with best-effort semantics."""

    def __init__(self, redis: aioredis.Redis | None, settings: Settings | None = None) -> None:  # type: ignore[type-arg]
        self._redis = redis
        self._settings = settings or get_settings()

    @property
    def enabled(self) -> bool:
        return self._redis is not None and self._settings.cache_enabled

    def _namespaced(self, key: str) -> str:
        return f"{self._settings.cache_prefix}:{key}"

    def product_key(self, product_id: UUID) -> str:
        return self._namespaced(generate_cache_key({"id": str(product_id)}))

    async def get_product(self, product_id: UUID) -> dict[str, Any] | None:
        """Return the cached product payload, or None on miss or error."""
        if not self.enabled:
            return None
        try:
            raw = await self._redis.get(self.product_key(product_id))
        except Exception as e:
            logger.warning("product_cache_read_failed", product_id=str(product_id), error=str(e))
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning("product_cache_payload_invalid", product_id=str(product_id), error=str(e))
            return None

    async def set_product(self, product_id: UUID, payload: dict[str, Any]) -> None:
        """Store a JSON-serializable product payload with the configured TTL."""
        if not self.enabled:
            return
        try:
            await self._redis.set(
                self.product_key(product_id),
                json.dumps(payload),
                ex=self._settings.cache_ttl_seconds,
            )
        except Exception as e:
            logger.warning("product_cache_write_failed", product_id=str(product_id), error=str(e))

    async def revalidate_products(self) -> int:
        """
        Drop every cached product entry.

        Returns:
            Number of keys deleted (0 when disabled or on failure)
        """
        if not self.enabled:
            return 0
        pattern = self._namespaced(f"{CACHE_TAG}:*")
        deleted = 0
        try:
            keys = [key async for key in self._redis.scan_iter(match=pattern)]
            if keys:
                deleted = await self._redis.delete(*keys)
            logger.debug("product_cache_revalidated", keys_deleted=deleted)
        except Exception as e:
            logger.error("product_cache_revalidation_failed", error=str(e))
            return 0
        return deleted


async def init_redis(settings: Settings | None = None) -> aioredis.Redis | None:  # type: ignore[type-arg]
    """Connect to Redis; returns None (cache disabled) when unreachable."""
    global _redis_client

    settings = settings or get_settings()
    if not settings.cache_enabled:
        return None

    try:
        client = aioredis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
        )
        await client.ping()
        _redis_client = client
        logger.info("Redis connection established")
    except Exception as e:
        logger.error("Failed to connect to Redis", error=str(e))
        _redis_client = None
    return _redis_client


async def close_redis() -> None:
    """Close the Redis connection if open."""
    global _redis_client

    if _redis_client is not None:
        try:
            await _redis_client.aclose()
            logger.info("Redis connection closed")
        except Exception as e:
            logger.error("Error closing Redis connection", error=str(e))
        _redis_client = None


def get_redis_client() -> aioredis.Redis | None:  # type: ignore[type-arg]
    return _redis_client


def get_product_cache() -> ProductCache:
    """
    Get ProductCache instance.

    Factory function for dependency injection.
    """
    return ProductCache(_redis_client)
