"""Redis-backed cache for product views.

Detail and listing responses are cached as serialized JSON until the next
save touches the product. The same Redis connection carries the rate-limit
counters, so ``client()`` hands it out to the limiter.
"""

from typing import List, Optional
from uuid import UUID

import structlog
from redis.asyncio import Redis, from_url
from redis.exceptions import RedisError

from pricetracker.config import settings

logger = structlog.get_logger(__name__)

PRODUCT_LIST_PATTERN = "products:*"


class CacheService:
    """Product view cache over a lazily opened Redis connection.

    Read and write failures are logged and reported as a miss or a no-op;
    a Redis outage never fails a request that could be served from the
    database.
    """

    def __init__(self, redis_url: str, client: Optional[Redis] = None):
        """Initialize cache service.

        Args:
            redis_url: Redis connection URL (e.g., "redis://localhost:6379/0")
            client: Pre-built client; opened from ``redis_url`` on first use if omitted
        """
        self.redis_url = redis_url
        self._redis: Optional[Redis] = client
        self.logger = logger.bind(service="cache_service")

    async def client(self) -> Redis:
        """Shared Redis connection, opened on first use."""
        if self._redis is None:
            self._redis = from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
            )
            self.logger.info("redis_connection_created", url=self.redis_url)
        return self._redis

    async def get(self, key: str) -> Optional[str]:
        """Cached JSON for ``key``, or None on a miss or Redis error."""
        try:
            value = await (await self.client()).get(key)
        except RedisError as e:
            self.logger.error("cache_get_failed", key=key, error=str(e))
            return None

        self.logger.debug("cache_lookup", key=key, hit=value is not None)
        return value

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> bool:
        """Store ``value`` under ``key``.

        Args:
            key: Cache key
            value: Serialized response
            ttl: Expiry in seconds, ``settings.CACHE_TTL_SECONDS`` when omitted

        Returns:
            Whether the value was written
        """
        expiry = ttl or settings.CACHE_TTL_SECONDS
        try:
            await (await self.client()).set(key, value, ex=expiry)
        except RedisError as e:
            self.logger.error("cache_set_failed", key=key, error=str(e))
            return False

        self.logger.debug("cache_stored", key=key, ttl=expiry, size=len(value))
        return True

    async def _matching_keys(self, redis: Redis, pattern: str) -> List[str]:
        return [key async for key in redis.scan_iter(match=pattern, count=100)]

    async def invalidate_product_views(self, product_id: UUID | str) -> int:
        """Drop the cached detail view of one product and every listing page.

        Called after each save so the next read sees the new price history.

        Returns:
            Number of keys removed, 0 when Redis is unreachable
        """
        try:
            redis = await self.client()
            keys = [cache_key_for_product(product_id)]
            keys += await self._matching_keys(redis, PRODUCT_LIST_PATTERN)
            removed = await redis.delete(*keys)
        except RedisError as e:
            self.logger.error("product_views_invalidation_failed", product_id=str(product_id), error=str(e))
            return 0

        self.logger.info("product_views_invalidated", product_id=str(product_id), keys_removed=removed)
        return removed

    async def health_check(self) -> bool:
        try:
            await (await self.client()).ping()
        except (RedisError, OSError) as e:
            self.logger.error("redis_health_check_failed", error=str(e))
            return False
        return True

    async def close(self) -> None:
        """Close the Redis connection on shutdown."""
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
            self.logger.info("redis_connection_closed")


_cache_instance: Optional[CacheService] = None


def get_cache_service() -> CacheService:
    """Process-wide CacheService bound to ``settings.REDIS_URL``."""
    global _cache_instance

    if _cache_instance is None:
        _cache_instance = CacheService(settings.REDIS_URL)

    return _cache_instance


async def get_cache() -> CacheService:
    """FastAPI dependency for the cache service."""
    return get_cache_service()


def cache_key_for_product(product_id: UUID | str) -> str:
    return f"product:{product_id}"


def cache_key_for_products(page: int = 1, limit: int = 20) -> str:
    """Cache key of one page of the product listing."""
    return f"products:p{page}:l{limit}"
