"""Unit tests for product and category read endpoints."""

import pytest
from fastapi.testclient import TestClient

from catalog_service.services.normalizer import normalize_category, normalize_product
from tests.fakes import SHOP_ID, InMemoryCatalogStore, raw_category, raw_product


@pytest.fixture
def seeded(memory_store: InMemoryCatalogStore) -> InMemoryCatalogStore:
    memory_store.seed(
        products=[
            normalize_product(raw_product(1, name="Remera", price="100", tags="verano,algodon"), SHOP_ID),
            normalize_product(raw_product(2, name="Buzo", price="300", tags="invierno", stock=0), SHOP_ID),
            normalize_product(raw_product(3, name="Gorra", price="50", published=False), SHOP_ID),
        ],
        categories=[
            normalize_category(raw_category(1, "Ropa"), SHOP_ID),
            normalize_category(raw_category(2, "Remeras", parent=1), SHOP_ID),
            normalize_category(raw_category(3, "Manga corta", parent=2), SHOP_ID),
        ],
    )
    return memory_store


class TestProductEndpoints:
    def test_list_with_filters(self, client: TestClient, seeded: InMemoryCatalogStore) -> None:
        response = client.get(
            f"/api/v1/products/{SHOP_ID}",
            params={"published": "true", "sort": "price-desc"},
        )
        assert response.status_code == 200

        data = response.json()
        assert [p["product_id"] for p in data["products"]] == [2, 1]
        assert data["filters"] == {"published": True}
        assert data["sort"] == "price-desc"
        assert data["pagination"]["total"] == 2

    def test_comma_separated_tags(self, client: TestClient, seeded: InMemoryCatalogStore) -> None:
        data = client.get(f"/api/v1/products/{SHOP_ID}", params={"tags": "algodon,invierno"}).json()
        assert sorted(p["product_id"] for p in data["products"]) == [1, 2]
        assert data["filters"]["tags"] == ["algodon", "invierno"]

    def test_invalid_sort(self, client: TestClient) -> None:
        assert client.get(f"/api/v1/products/{SHOP_ID}", params={"sort": "random"}).status_code == 422

    def test_search(self, client: TestClient, seeded: InMemoryCatalogStore) -> None:
        data = client.get(f"/api/v1/products/{SHOP_ID}/search", params={"q": "remera"}).json()
        assert [p["product_id"] for p in data["products"]] == [1]

    def test_detail(self, client: TestClient, seeded: InMemoryCatalogStore) -> None:
        data = client.get(f"/api/v1/products/{SHOP_ID}/1").json()
        assert data["name"] == "Remera"
        assert data["stats"]["total_variants"] == 1

    def test_detail_missing(self, client: TestClient, seeded: InMemoryCatalogStore) -> None:
        response = client.get(f"/api/v1/products/{SHOP_ID}/999")
        assert response.status_code == 404
        assert response.json()["error"] == "NotFoundError"

    def test_tags_and_price_range(self, client: TestClient, seeded: InMemoryCatalogStore) -> None:
        tags = client.get(f"/api/v1/products/{SHOP_ID}/tags").json()
        assert tags["total"] == 3

        prices = client.get(f"/api/v1/products/{SHOP_ID}/price-range").json()
        assert prices == {"min_price": 100.0, "max_price": 300.0, "avg_price": 200.0}

    def test_featured_and_stats(self, client: TestClient, seeded: InMemoryCatalogStore) -> None:
        featured = client.get(f"/api/v1/products/{SHOP_ID}/featured").json()
        assert [p["product_id"] for p in featured["products"]] == [1]

        stats = client.get(f"/api/v1/products/{SHOP_ID}/stats").json()
        assert stats["total_products"] == 3
        assert stats["unpublished_products"] == 1


class TestCategoryEndpoints:
    def test_list_and_tree(self, client: TestClient, seeded: InMemoryCatalogStore) -> None:
        data = client.get(f"/api/v1/categories/{SHOP_ID}").json()
        assert data["total"] == 3
        assert [n["category_id"] for n in data["tree"]] == [1]

        tree = client.get(f"/api/v1/categories/{SHOP_ID}/tree").json()["tree"]
        assert tree[0]["children"][0]["children"][0]["name"] == "Manga corta"

    def test_breadcrumb(self, client: TestClient, seeded: InMemoryCatalogStore) -> None:
        data = client.get(f"/api/v1/categories/{SHOP_ID}/3/breadcrumb").json()
        assert [c["id"] for c in data["breadcrumb"]] == [1, 2, 3]

    def test_detail_and_subcategories(self, client: TestClient, seeded: InMemoryCatalogStore) -> None:
        detail = client.get(f"/api/v1/categories/{SHOP_ID}/2").json()
        assert detail["parent_category"]["name"] == "Ropa"

        children = client.get(f"/api/v1/categories/{SHOP_ID}/1/subcategories").json()
        assert children["total"] == 1

    def test_missing_category(self, client: TestClient, seeded: InMemoryCatalogStore) -> None:
        assert client.get(f"/api/v1/categories/{SHOP_ID}/99").status_code == 404

    def test_stats_and_search(self, client: TestClient, seeded: InMemoryCatalogStore) -> None:
        stats = client.get(f"/api/v1/categories/{SHOP_ID}/stats").json()
        assert stats["max_depth"] == 3

        found = client.get(f"/api/v1/categories/{SHOP_ID}/search", params={"q": "manga"}).json()
        assert [c["category_id"] for c in found["categories"]] == [3]
