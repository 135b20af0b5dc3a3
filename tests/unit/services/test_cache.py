"""Unit tests for Redis cache service."""

import pytest

from catalog_service.infrastructure.redis import CacheService, category_stats_key, category_tree_key


class TestCacheServiceGracefulDegradation:
    """CacheService should no-op safely when Redis is unavailable."""

    @pytest.fixture
    def cache(self) -> CacheService:
        return CacheService(None)

    @pytest.mark.asyncio
    async def test_get_returns_none(self, cache: CacheService) -> None:
        assert await cache.get("any-key") is None

    @pytest.mark.asyncio
    async def test_set_is_noop(self, cache: CacheService) -> None:
        await cache.set("key", {"tree": []})  # should not raise

    @pytest.mark.asyncio
    async def test_delete_is_noop(self, cache: CacheService) -> None:
        await cache.delete("a", "b")

    @pytest.mark.asyncio
    async def test_invalidate_categories_is_noop(self, cache: CacheService) -> None:
        await cache.invalidate_categories(1001)

    @pytest.mark.asyncio
    async def test_health_check_returns_false(self, cache: CacheService) -> None:
        assert await cache.health_check() is False


class TestFailingRedis:
    """Redis errors are logged and treated as cache misses."""

    class _Broken:
        async def get(self, key):
            raise ConnectionError("down")

        async def set(self, key, value, ex=None):
            raise ConnectionError("down")

        async def delete(self, *keys):
            raise ConnectionError("down")

        async def ping(self):
            raise ConnectionError("down")

    @pytest.mark.asyncio
    async def test_errors_are_swallowed(self) -> None:
        cache = CacheService(self._Broken())

        assert await cache.get("k") is None
        await cache.set("k", {"a": 1})
        await cache.invalidate_categories(1001)
        assert await cache.health_check() is False


def test_keys_are_per_shop() -> None:
    assert category_tree_key(1) != category_tree_key(2)
    assert category_tree_key(1) != category_stats_key(1)
