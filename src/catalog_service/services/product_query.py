"""Read-side queries over mirrored products."""

from collections import Counter, defaultdict
from typing import Any

from catalog_service.domain import (
    ProductFilters,
    ProductRecord,
    ProductSort,
    VariantRecord,
    page_info,
)
from catalog_service.exceptions import NotFoundError
from catalog_service.repositories import CatalogStore
from shared.constants import DEFAULT_FEATURED_LIMIT, DEFAULT_RELATED_LIMIT


def _stock_by_product(variants: list[VariantRecord]) -> dict[int, int]:
    totals: dict[int, int] = defaultdict(int)
    for variant in variants:
        totals[variant.product_id] += variant.stock
    return totals


class ProductQueryService:
    """Product listings, detail, and per-shop aggregates."""

    def __init__(self, store: CatalogStore):
        self.store = store

    async def list_products(
        self,
        shop_id: int,
        filters: ProductFilters | None = None,
        sort: ProductSort = ProductSort.NEWEST,
        page: int = 1,
        limit: int = 20,
    ) -> dict[str, Any]:
        filters = filters or ProductFilters()
        products, total = await self.store.find_products(
            shop_id, filters, sort, offset=(page - 1) * limit, limit=limit
        )
        return {
            "products": [p.to_dict() for p in products],
            "pagination": page_info(page, limit, total),
            "filters": filters.to_dict(),
            "sort": sort.value,
        }

    async def get_product(self, shop_id: int, product_id: int) -> dict[str, Any]:
        """Product with its variants, images and stock/price statistics."""
        product = await self._require(shop_id, product_id)
        variants = await self.store.list_variants(shop_id, [product_id])
        images = await self.store.list_images(shop_id, product_id)

        prices = [v.price for v in variants]
        total_stock = sum(v.stock for v in variants)
        data = product.to_dict()
        data["variants"] = [v.to_dict() for v in variants]
        data["images"] = [i.to_dict() for i in images]
        data["stats"] = {
            "total_variants": len(variants),
            "total_images": len(images),
            "total_stock": total_stock,
            "min_price": min(prices) if prices else product.price,
            "max_price": max(prices) if prices else product.price,
            "average_price": round(sum(prices) / len(prices), 2) if prices else product.price,
            "has_stock": total_stock > 0,
        }
        return data

    async def get_related(
        self, shop_id: int, product_id: int, limit: int = DEFAULT_RELATED_LIMIT
    ) -> dict[str, Any]:
        """Published products sharing a tag; recent published ones when there are no tags."""
        product = await self._require(shop_id, product_id)
        filters = ProductFilters(published=True, tags=list(product.tags))
        candidates, _ = await self.store.find_products(
            shop_id, filters, ProductSort.NEWEST, offset=0, limit=limit + 1
        )
        related = [p for p in candidates if p.product_id != product_id][:limit]
        return {
            "related_products": [p.to_dict() for p in related],
            "base_product": {
                "product_id": product.product_id,
                "name": product.name,
                "tags": product.tags,
            },
        }

    async def get_featured(
        self, shop_id: int, limit: int = DEFAULT_FEATURED_LIMIT
    ) -> list[dict[str, Any]]:
        products, _ = await self.store.find_products(
            shop_id,
            ProductFilters(published=True, in_stock=True),
            ProductSort.NEWEST,
            offset=0,
            limit=limit,
        )
        return [p.to_dict() for p in products]

    async def get_tags(self, shop_id: int) -> list[dict[str, Any]]:
        """Tags of published products with usage counts, most used first."""
        counts: Counter[str] = Counter()
        for product in await self.store.list_products(shop_id, published=True):
            counts.update(product.tags)
        return [
            {"tag": tag, "count": count}
            for tag, count in sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
        ]

    async def get_price_range(self, shop_id: int) -> dict[str, float]:
        products = await self.store.list_products(shop_id, published=True)
        return self._price_range(products)

    @staticmethod
    def _price_range(products: list[ProductRecord]) -> dict[str, float]:
        if not products:
            return {"min_price": 0, "max_price": 0, "avg_price": 0}
        prices = [p.price for p in products]
        return {
            "min_price": min(prices),
            "max_price": max(prices),
            "avg_price": round(sum(prices) / len(prices)),
        }

    async def get_stats(self, shop_id: int) -> dict[str, Any]:
        products = await self.store.list_products(shop_id)
        variants = await self.store.list_variants(shop_id)
        stock = _stock_by_product(variants)
        published = [p for p in products if p.published]
        with_stock = sum(1 for p in products if stock.get(p.product_id, 0) > 0)

        return {
            "total_products": len(products),
            "published_products": len(published),
            "unpublished_products": len(products) - len(published),
            "products_with_images": sum(1 for p in products if p.main_image),
            "total_variants": len(variants),
            "total_stock": sum(stock.values()),
            "products_with_stock": with_stock,
            "products_without_stock": len(products) - with_stock,
            "products_with_sync_errors": sum(1 for p in products if p.sync_error),
            "price_range": self._price_range(published),
            "top_tags": (await self.get_tags(shop_id))[:10],
        }

    async def _require(self, shop_id: int, product_id: int) -> ProductRecord:
        product = await self.store.get_product(shop_id, product_id)
        if product is None:
            raise NotFoundError(f"Product {product_id} not found in shop {shop_id}")
        return product
