"""Unit tests for product read queries."""

import pytest
import pytest_asyncio

from catalog_service.domain import ProductFilters, ProductSort
from catalog_service.exceptions import NotFoundError
from catalog_service.services.normalizer import normalize_product
from catalog_service.services.product_query import ProductQueryService
from tests.fakes import SHOP_ID, InMemoryCatalogStore, raw_product


@pytest_asyncio.fixture
async def catalog(memory_store: InMemoryCatalogStore) -> InMemoryCatalogStore:
    payloads = [
        raw_product(1, name="Remera lisa", price="100", stock=5, tags="verano,algodon",
                    categories=[10], updated_at="2024-03-01T00:00:00+00:00"),
        raw_product(2, name="Remera estampada", price="150", stock=0, tags="verano",
                    categories=[10], updated_at="2024-03-02T00:00:00+00:00"),
        raw_product(3, name="Buzo", price="300", stock=2, tags="invierno",
                    categories=[11], updated_at="2024-03-03T00:00:00+00:00"),
        raw_product(4, name="Oculto", price="50", stock=9, tags="verano", published=False,
                    updated_at="2024-03-04T00:00:00+00:00"),
    ]
    for raw in payloads:
        await memory_store.save_product(normalize_product(raw, SHOP_ID))
    return memory_store


@pytest.fixture
def service(catalog: InMemoryCatalogStore) -> ProductQueryService:
    return ProductQueryService(catalog)


def _ids(products: list[dict]) -> list[int]:
    return [p["product_id"] for p in products]


class TestListProducts:
    @pytest.mark.asyncio
    async def test_default_sort_newest_first(self, service: ProductQueryService) -> None:
        result = await service.list_products(SHOP_ID)

        assert _ids(result["products"]) == [4, 3, 2, 1]
        assert result["sort"] == "newest"
        assert result["filters"] == {}
        assert result["pagination"]["total"] == 4

    @pytest.mark.asyncio
    async def test_filters(self, service: ProductQueryService) -> None:
        result = await service.list_products(
            SHOP_ID,
            ProductFilters(published=True, tags=["verano"], in_stock=True),
            ProductSort.PRICE_ASC,
        )
        assert _ids(result["products"]) == [1]
        assert result["filters"] == {"published": True, "tags": ["verano"], "in_stock": True}

    @pytest.mark.asyncio
    async def test_price_and_category(self, service: ProductQueryService) -> None:
        result = await service.list_products(
            SHOP_ID, ProductFilters(min_price=120, category_id=10), ProductSort.PRICE_DESC
        )
        assert _ids(result["products"]) == [2]

    @pytest.mark.asyncio
    async def test_search(self, service: ProductQueryService) -> None:
        result = await service.list_products(
            SHOP_ID, ProductFilters(search="remera"), ProductSort.NAME_ASC
        )
        assert _ids(result["products"]) == [2, 1]

    @pytest.mark.asyncio
    async def test_pagination(self, service: ProductQueryService) -> None:
        result = await service.list_products(SHOP_ID, sort=ProductSort.OLDEST, page=2, limit=3)

        assert len(result["products"]) == 1
        assert result["pagination"] == {
            "page": 2,
            "limit": 3,
            "total": 4,
            "total_pages": 2,
            "has_next_page": False,
            "has_prev_page": True,
        }

    @pytest.mark.asyncio
    async def test_other_shop_is_empty(self, service: ProductQueryService) -> None:
        result = await service.list_products(999)
        assert result["products"] == []
        assert result["pagination"]["total_pages"] == 0


class TestProductDetail:
    @pytest.mark.asyncio
    async def test_get_product(self, service: ProductQueryService) -> None:
        product = await service.get_product(SHOP_ID, 1)

        assert product["name"] == "Remera lisa"
        assert len(product["variants"]) == 1
        assert len(product["images"]) == 1
        assert product["stats"]["total_stock"] == 5
        assert product["stats"]["has_stock"] is True
        assert product["stats"]["min_price"] == 100.0

    @pytest.mark.asyncio
    async def test_missing_product(self, service: ProductQueryService) -> None:
        with pytest.raises(NotFoundError):
            await service.get_product(SHOP_ID, 404)

    @pytest.mark.asyncio
    async def test_related_shares_tags(self, service: ProductQueryService) -> None:
        result = await service.get_related(SHOP_ID, 1)

        assert _ids(result["related_products"]) == [2]
        assert result["base_product"]["product_id"] == 1

    @pytest.mark.asyncio
    async def test_related_without_tags_uses_recent(
        self, catalog: InMemoryCatalogStore, service: ProductQueryService
    ) -> None:
        await catalog.save_product(
            normalize_product(raw_product(5, tags="", updated_at="2024-01-01T00:00:00+00:00"), SHOP_ID)
        )
        result = await service.get_related(SHOP_ID, 5, limit=2)
        assert _ids(result["related_products"]) == [3, 2]


class TestAggregates:
    @pytest.mark.asyncio
    async def test_featured(self, service: ProductQueryService) -> None:
        assert _ids(await service.get_featured(SHOP_ID)) == [3, 1]

    @pytest.mark.asyncio
    async def test_tags(self, service: ProductQueryService) -> None:
        assert await service.get_tags(SHOP_ID) == [
            {"tag": "verano", "count": 2},
            {"tag": "algodon", "count": 1},
            {"tag": "invierno", "count": 1},
        ]

    @pytest.mark.asyncio
    async def test_price_range(self, service: ProductQueryService) -> None:
        assert await service.get_price_range(SHOP_ID) == {
            "min_price": 100.0,
            "max_price": 300.0,
            "avg_price": 183,
        }

    @pytest.mark.asyncio
    async def test_price_range_empty(self, service: ProductQueryService) -> None:
        assert await service.get_price_range(999) == {"min_price": 0, "max_price": 0, "avg_price": 0}

    @pytest.mark.asyncio
    async def test_stats(self, service: ProductQueryService) -> None:
        stats = await service.get_stats(SHOP_ID)

        assert stats["total_products"] == 4
        assert stats["published_products"] == 3
        assert stats["unpublished_products"] == 1
        assert stats["products_with_images"] == 4
        assert stats["total_variants"] == 4
        assert stats["total_stock"] == 16
        assert stats["products_with_stock"] == 3
        assert stats["products_without_stock"] == 1
        assert stats["products_with_sync_errors"] == 0
        assert stats["top_tags"][0] == {"tag": "verano", "count": 2}
