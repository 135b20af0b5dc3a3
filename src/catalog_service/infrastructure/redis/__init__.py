"""Redis cache infrastructure with graceful degradation."""

from typing import Any

import orjson
import redis.asyncio as aioredis
import structlog

from catalog_service.config import get_settings

logger = structlog.get_logger()

_redis_client: aioredis.Redis | None = None

KEY_PREFIX = "catalog"


def category_tree_key(shop_id: int) -> str:
    return f"{KEY_PREFIX}:{shop_id}:category-tree"


def category_stats_key(shop_id: int) -> str:
    return f"{KEY_PREFIX}:{shop_id}:category-stats"


async def get_redis_client() -> aioredis.Redis | None:
    """Get or create the global async Redis client; ``None`` when Redis is down."""
    global _redis_client
    if _redis_client is None:
        settings = get_settings()
        try:
            client = aioredis.from_url(
                settings.redis_url,
                decode_responses=False,
                socket_connect_timeout=2,
                socket_timeout=2,
                retry_on_timeout=True,
            )
            await client.ping()
            _redis_client = client
            logger.info("Redis connection established")
        except Exception as e:
            logger.warning("Redis unavailable, caching disabled", error=str(e))
            _redis_client = None
    return _redis_client


async def close_redis() -> None:
    """Close the Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


class CacheService:
    """Async Redis cache with orjson serialization. No-ops if Redis is unavailable."""

    def __init__(self, client: aioredis.Redis | None):
        self.client = client

    async def get(self, key: str) -> Any | None:
        if not self.client:
            return None
        try:
            data = await self.client.get(key)
            if data:
                return orjson.loads(data)
        except Exception as e:
            logger.warning("Cache get failed", key=key, error=str(e))
        return None

    async def set(self, key: str, value: Any, ttl_seconds: int = 300) -> None:
        if not self.client:
            return
        try:
            await self.client.set(key, orjson.dumps(value), ex=ttl_seconds)
        except Exception as e:
            logger.warning("Cache set failed", key=key, error=str(e))

    async def delete(self, *keys: str) -> None:
        if not self.client or not keys:
            return
        try:
            await self.client.delete(*keys)
        except Exception as e:
            logger.warning("Cache delete failed", keys=list(keys), error=str(e))

    async def invalidate_categories(self, shop_id: int) -> None:
        """Drop every derived category view cached for a shop."""
        await self.delete(category_tree_key(shop_id), category_stats_key(shop_id))

    async def health_check(self) -> bool:
        if not self.client:
            return False
        try:
            return await self.client.ping()
        except Exception:
            return False
