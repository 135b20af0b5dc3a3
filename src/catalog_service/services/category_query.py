"""Read-side queries over mirrored categories."""

from typing import Any

from catalog_service.config import Settings, get_settings
from catalog_service.exceptions import NotFoundError
from catalog_service.infrastructure.redis import (
    CacheService,
    category_stats_key,
    category_tree_key,
)
from catalog_service.repositories import CatalogStore
from catalog_service.services.category_tree import (
    build_breadcrumb,
    build_category_tree,
    category_stats,
)


class CategoryQueryService:
    def __init__(
        self,
        store: CatalogStore,
        cache: CacheService | None = None,
        settings: Settings | None = None,
    ):
        self.store = store
        self.cache = cache or CacheService(None)
        self.settings = settings or get_settings()

    async def get_categories(self, shop_id: int) -> dict[str, Any]:
        """Flat list plus the nested tree; the tree is cached per shop."""
        categories = await self.store.list_categories(shop_id)
        key = category_tree_key(shop_id)
        tree = await self.cache.get(key)
        if tree is None:
            tree = build_category_tree(categories)
            await self.cache.set(key, tree, self.settings.category_tree_cache_ttl_seconds)
        return {
            "categories": [c.to_dict() for c in categories],
            "tree": tree,
            "total": len(categories),
        }

    async def get_tree(self, shop_id: int) -> list[dict[str, Any]]:
        return (await self.get_categories(shop_id))["tree"]

    async def get_category(self, shop_id: int, category_id: int) -> dict[str, Any]:
        category = await self.store.get_category(shop_id, category_id)
        if category is None:
            raise NotFoundError(f"Category {category_id} not found in shop {shop_id}")

        categories = await self.store.list_categories(shop_id)
        parent = next((c for c in categories if c.category_id == category.parent), None)
        children = [
            c for c in categories if c.parent == category_id and c.category_id != category_id
        ]
        data = category.to_dict()
        data["parent_category"] = parent.to_dict() if parent else None
        data["subcategory_details"] = [c.to_dict() for c in children]
        return data

    async def get_roots(self, shop_id: int) -> list[dict[str, Any]]:
        """Categories with no parent or with a parent that was never synced."""
        categories = await self.store.list_categories(shop_id)
        known = {c.category_id for c in categories}
        return [c.to_dict() for c in categories if c.parent is None or c.parent not in known]

    async def get_subcategories(self, shop_id: int, category_id: int) -> list[dict[str, Any]]:
        categories = await self.store.list_categories(shop_id)
        if not any(c.category_id == category_id for c in categories):
            raise NotFoundError(f"Category {category_id} not found in shop {shop_id}")
        return [
            c.to_dict()
            for c in categories
            if c.parent == category_id and c.category_id != category_id
        ]

    async def search(self, shop_id: int, term: str) -> list[dict[str, Any]]:
        needle = term.strip().lower()
        if not needle:
            return []
        return [
            c.to_dict()
            for c in await self.store.list_categories(shop_id)
            if needle in c.name.lower() or needle in c.description.lower()
        ]

    async def get_breadcrumb(self, shop_id: int, category_id: int) -> list[dict[str, Any]]:
        categories = await self.store.list_categories(shop_id)
        return build_breadcrumb(categories, category_id)

    async def get_stats(self, shop_id: int) -> dict[str, Any]:
        key = category_stats_key(shop_id)
        cached = await self.cache.get(key)
        if cached is not None:
            return cached
        stats = category_stats(await self.store.list_categories(shop_id))
        await self.cache.set(key, stats, self.settings.category_tree_cache_ttl_seconds)
        return stats
