"""Redis-backed response cache.

The cache is a pure performance optimization. Every operation is best-effort:
failures are logged and degrade to a cache miss, never to a failed request.
"""

import json
import logging
from typing import Any

from redis.asyncio import Redis

from restaurant_menu_service.observability.metrics import (
    record_cache_invalidation,
    record_cache_lookup,
)

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300
SCAN_BATCH_SIZE = 100


class CacheService:
    """JSON get/set/invalidate over a Redis client.

    Expiry is delegated entirely to Redis; the service only observes whether a
    key is present.
    """

    def __init__(self, redis_client: Redis, default_ttl_seconds: int = DEFAULT_TTL_SECONDS) -> None:
        """Initialize the cache service.

        Args:
            redis_client: Async Redis client (created with decode_responses=True)
            default_ttl_seconds: TTL used when set() is called without one
        """
        self.redis = redis_client
        self.default_ttl_seconds = default_ttl_seconds

    async def get(self, key: str) -> Any | None:
        """Get a cached JSON value.

        Args:
            key: Cache key

        Returns:
            The decoded value, or None on a miss or any failure
        """
        try:
            data = await self.redis.get(key)
            if data is None:
                record_cache_lookup(key, hit=False)
                return None

            value = json.loads(data)
        except Exception as e:
            logger.warning(f"Cache get failed for {key}: {e}")
            return None

        record_cache_lookup(key, hit=True)
        logger.debug(f"Cache HIT: {key}")
        return value

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        """Store a JSON-serializable value with a TTL. Failures are swallowed.

        Args:
            key: Cache key
            value: JSON-serializable value
            ttl_seconds: Expiry in seconds, defaults to the service TTL
        """
        ttl = ttl_seconds or self.default_ttl_seconds
        try:
            await self.redis.set(key, json.dumps(value), ex=ttl)
            logger.debug(f"Cache SET: {key} (TTL: {ttl}s)")
        except Exception as e:
            logger.warning(f"Cache set failed for {key}: {e}")

    async def invalidate(self, pattern: str) -> int:
        """Delete every key matching a glob pattern.

        Uses incremental SCAN rather than KEYS so Redis is never blocked by a
        full keyspace walk.

        Args:
            pattern: Glob pattern, e.g. "catalog:*"

        Returns:
            Number of keys deleted, 0 on failure
        """
        deleted = 0
        try:
            cursor = 0
            while True:
                cursor, keys = await self.redis.scan(cursor, match=pattern, count=SCAN_BATCH_SIZE)
                if keys:
                    await self.redis.delete(*keys)
                    deleted += len(keys)
                if int(cursor) == 0:
                    break
        except Exception as e:
            logger.warning(f"Cache invalidate failed for {pattern}: {e}")
            return 0

        record_cache_invalidation(pattern, deleted)
        return deleted

    async def close(self) -> None:
        """Close the underlying connection pool."""
        try:
            await self.redis.aclose()
        except Exception as e:
            logger.warning(f"Cache close failed: {e}")
