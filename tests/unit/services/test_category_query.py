"""Unit tests for category read queries."""

from typing import Any

import pytest
import pytest_asyncio

from catalog_service.exceptions import NotFoundError
from catalog_service.infrastructure.redis import CacheService
from catalog_service.services.category_query import CategoryQueryService
from catalog_service.services.normalizer import normalize_category
from tests.fakes import SHOP_ID, InMemoryCatalogStore, raw_category


class DictCache(CacheService):
    """CacheService over a plain dict."""

    def __init__(self) -> None:
        super().__init__(None)
        self.data: dict[str, Any] = {}

    async def get(self, key: str) -> Any | None:
        return self.data.get(key)

    async def set(self, key: str, value: Any, ttl_seconds: int = 300) -> None:
        self.data[key] = value

    async def delete(self, *keys: str) -> None:
        for key in keys:
            self.data.pop(key, None)


@pytest_asyncio.fixture
async def catalog(memory_store: InMemoryCatalogStore) -> InMemoryCatalogStore:
    for raw in [
        raw_category(1, "Ropa"),
        raw_category(2, "Remeras", parent=1),
        raw_category(3, "Manga corta", parent=2),
        raw_category(4, "Calzado"),
        raw_category(5, "Huerfana", parent=77),
    ]:
        await memory_store.save_category(normalize_category(raw, SHOP_ID))
    return memory_store


@pytest.fixture
def cache() -> DictCache:
    return DictCache()


@pytest.fixture
def service(catalog: InMemoryCatalogStore, cache: DictCache, test_settings) -> CategoryQueryService:
    return CategoryQueryService(catalog, cache=cache, settings=test_settings)


class TestCategoryQueries:
    @pytest.mark.asyncio
    async def test_categories_with_tree(self, service: CategoryQueryService) -> None:
        result = await service.get_categories(SHOP_ID)

        assert result["total"] == 5
        assert [n["category_id"] for n in result["tree"]] == [4, 5, 1]
        ropa = result["tree"][2]
        assert ropa["children"][0]["category_id"] == 2
        assert ropa["children"][0]["children"][0]["category_id"] == 3

    @pytest.mark.asyncio
    async def test_tree_is_cached_until_invalidated(
        self,
        service: CategoryQueryService,
        catalog: InMemoryCatalogStore,
        cache: DictCache,
    ) -> None:
        first = await service.get_tree(SHOP_ID)
        await catalog.save_category(normalize_category(raw_category(6, "Accesorios"), SHOP_ID))

        assert await service.get_tree(SHOP_ID) == first

        await cache.invalidate_categories(SHOP_ID)
        assert len(await service.get_tree(SHOP_ID)) == len(first) + 1

    @pytest.mark.asyncio
    async def test_get_category(self, service: CategoryQueryService) -> None:
        category = await service.get_category(SHOP_ID, 2)

        assert category["parent_category"]["category_id"] == 1
        assert [c["category_id"] for c in category["subcategory_details"]] == [3]

    @pytest.mark.asyncio
    async def test_get_category_missing(self, service: CategoryQueryService) -> None:
        with pytest.raises(NotFoundError):
            await service.get_category(SHOP_ID, 404)

    @pytest.mark.asyncio
    async def test_roots_include_orphans(self, service: CategoryQueryService) -> None:
        roots = await service.get_roots(SHOP_ID)
        assert sorted(c["category_id"] for c in roots) == [1, 4, 5]

    @pytest.mark.asyncio
    async def test_subcategories(self, service: CategoryQueryService) -> None:
        assert [c["category_id"] for c in await service.get_subcategories(SHOP_ID, 1)] == [2]
        assert await service.get_subcategories(SHOP_ID, 4) == []
        with pytest.raises(NotFoundError):
            await service.get_subcategories(SHOP_ID, 404)

    @pytest.mark.asyncio
    async def test_search(self, service: CategoryQueryService) -> None:
        assert [c["category_id"] for c in await service.search(SHOP_ID, "REM")] == [2]
        assert await service.search(SHOP_ID, "  ") == []

    @pytest.mark.asyncio
    async def test_breadcrumb(self, service: CategoryQueryService) -> None:
        trail = await service.get_breadcrumb(SHOP_ID, 3)
        assert [c["name"] for c in trail] == ["Ropa", "Remeras", "Manga corta"]

    @pytest.mark.asyncio
    async def test_stats(self, service: CategoryQueryService, cache: DictCache) -> None:
        stats = await service.get_stats(SHOP_ID)

        assert stats["total_categories"] == 5
        assert stats["root_categories"] == 3
        assert stats["max_depth"] == 3
        assert any(key.endswith("category-stats") for key in cache.data)
