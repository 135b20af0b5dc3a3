"""Catalog synchronization service.

Pages through a shop's products and categories on Tiendanube, normalizes each
item and upserts it into the local catalog. Item failures are collected into
the returned summary; page fetch failures abort the run.
"""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any

import structlog

from catalog_service.config import Settings, get_settings
from catalog_service.domain import StoreRecord, SyncItemError, SyncSummary
from catalog_service.exceptions import ConfigurationError, NotFoundError
from catalog_service.infrastructure.redis import CacheService
from catalog_service.infrastructure.tiendanube import Resource, TiendanubeClient
from catalog_service.repositories import CatalogStore, CatalogStoreFactory
from catalog_service.services.normalizer import (
    normalize_category,
    normalize_product,
    resolve_handle,
)

logger = structlog.get_logger()

ItemHandler = Callable[[CatalogStore, int, dict[str, Any]], Awaitable[None]]


class CatalogSyncService:
    """Service for mirroring Tiendanube catalogs into the local store."""

    def __init__(
        self,
        client: TiendanubeClient,
        store_factory: CatalogStoreFactory,
        settings: Settings | None = None,
        cache: CacheService | None = None,
    ):
        self.client = client
        self.store_factory = store_factory
        self.settings = settings or get_settings()
        self.cache = cache or CacheService(None)
        self.language = self.settings.tiendanube_language

    # -------------------------------------------------------------------------
    # Full syncs
    # -------------------------------------------------------------------------

    async def sync_products(self, store_id: int) -> SyncSummary:
        """Sync every product page of a store and stamp its last-sync time."""
        async with self.store_factory() as store:
            record = await self._require_connected(store, store_id)
            return await self._sync_products(store, record)

    async def sync_categories(self, store_id: int) -> SyncSummary:
        async with self.store_factory() as store:
            record = await self._require_connected(store, store_id)
            return await self._sync_categories(store, record)

    async def sync_all(self, store_id: int) -> SyncSummary:
        """Run product and category sync concurrently and merge the two summaries.

        Each half gets its own store scope (and thus its own DB session). Both
        halves are allowed to finish before the first failure, if any, is raised.
        """
        async with self.store_factory() as store:
            record = await self._require_connected(store, store_id)

        results = await asyncio.gather(
            self._scoped(self._sync_products, record),
            self._scoped(self._sync_categories, record),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result

        products, categories = results
        merged = SyncSummary(
            store_id=record.shop_id,
            resource="all",
            total_synced=products.total_synced + categories.total_synced,
            pages_fetched=products.pages_fetched + categories.pages_fetched,
            reached_page_limit=products.reached_page_limit or categories.reached_page_limit,
            errors=products.errors + categories.errors,
        )
        logger.info(
            "Full sync completed",
            store_id=store_id,
            shop_id=record.shop_id,
            products=products.total_synced,
            categories=categories.total_synced,
            errors=len(merged.errors),
        )
        return merged

    async def _scoped(
        self,
        run: Callable[[CatalogStore, StoreRecord], Awaitable[SyncSummary]],
        record: StoreRecord,
    ) -> SyncSummary:
        async with self.store_factory() as store:
            return await run(store, record)

    async def _sync_products(self, store: CatalogStore, record: StoreRecord) -> SyncSummary:
        summary = await self._run_pages(
            store,
            record,
            "products",
            self.settings.sync_max_product_pages,
            self._save_product,
            store.record_product_error,
        )
        # Stamped even when some items failed.
        await store.touch_last_sync(record.id, datetime.now(timezone.utc))
        await store.commit()
        return summary

    async def _sync_categories(self, store: CatalogStore, record: StoreRecord) -> SyncSummary:
        summary = await self._run_pages(
            store,
            record,
            "categories",
            self.settings.sync_max_category_pages,
            self._save_category,
            store.record_category_error,
        )
        await self.cache.invalidate_categories(record.shop_id)
        return summary

    async def _run_pages(
        self,
        store: CatalogStore,
        record: StoreRecord,
        resource: Resource,
        max_pages: int,
        handle_item: ItemHandler,
        record_error: Callable[[int, int, str], Awaitable[None]],
    ) -> SyncSummary:
        shop_id = record.shop_id
        summary = SyncSummary(store_id=shop_id, resource=resource)
        log = logger.bind(store_id=record.id, shop_id=shop_id, resource=resource)
        log.info("Starting sync")

        page = 1
        while True:
            items = await self.client.fetch_page(shop_id, record.access_token, resource, page)
            if not items:
                log.info("No more pages", page=page)
                break

            summary.pages_fetched += 1
            for raw in items:
                remote_id = raw.get("id")
                try:
                    await handle_item(store, shop_id, raw)
                    summary.total_synced += 1
                except Exception as e:
                    message = str(e) or e.__class__.__name__
                    log.error("Error syncing item", remote_id=remote_id, error=message)
                    summary.errors.append(SyncItemError(id=remote_id, error=message))
                    if remote_id is not None:
                        await self._record_error_quietly(record_error, shop_id, remote_id, message)

            await store.commit()
            log.info("Page synced", page=page, items=len(items), synced=summary.total_synced)

            page += 1
            if page > max_pages:
                summary.reached_page_limit = True
                log.warning("Reached page limit", max_pages=max_pages)
                break

        log.info(
            "Sync completed",
            total_synced=summary.total_synced,
            pages=summary.pages_fetched,
            errors=len(summary.errors),
        )
        return summary

    @staticmethod
    async def _record_error_quietly(
        record_error: Callable[[int, int, str], Awaitable[None]],
        shop_id: int,
        remote_id: Any,
        message: str,
    ) -> None:
        try:
            await record_error(shop_id, int(remote_id), message)
        except Exception as e:
            logger.debug("Could not store sync error", remote_id=remote_id, error=str(e))

    # -------------------------------------------------------------------------
    # Item handlers
    # -------------------------------------------------------------------------

    async def _save_product(self, store: CatalogStore, shop_id: int, raw: dict[str, Any]) -> None:
        item = normalize_product(raw, shop_id, self.language)
        product = item.product
        if product.handle:
            taken = await store.handle_taken(shop_id, product.handle, product.product_id)
            product.handle = resolve_handle(product.handle, product.product_id, lambda _: taken)
        await store.save_product(item)

    async def _save_category(self, store: CatalogStore, shop_id: int, raw: dict[str, Any]) -> None:
        await store.save_category(normalize_category(raw, shop_id, self.language))

    # -------------------------------------------------------------------------
    # Webhook-driven single entity operations
    # -------------------------------------------------------------------------

    async def sync_single_product(self, shop_id: int, product_id: int) -> None:
        async with self.store_factory() as store:
            token = await self._token_for_shop(store, shop_id)
            raw = await self.client.fetch_single(shop_id, token, "products", product_id)
            await self._save_product(store, shop_id, raw)
            await store.commit()
        logger.info("Product synced", shop_id=shop_id, product_id=product_id)

    async def sync_single_category(self, shop_id: int, category_id: int) -> None:
        async with self.store_factory() as store:
            token = await self._token_for_shop(store, shop_id)
            raw = await self.client.fetch_single(shop_id, token, "categories", category_id)
            await self._save_category(store, shop_id, raw)
            await store.commit()
        await self.cache.invalidate_categories(shop_id)
        logger.info("Category synced", shop_id=shop_id, category_id=category_id)

    async def delete_product(self, shop_id: int, product_id: int) -> bool:
        """Remove a product with its variants and images. Missing rows are not an error."""
        async with self.store_factory() as store:
            deleted = await store.delete_product(shop_id, product_id)
            await store.commit()
        logger.info("Product deleted", shop_id=shop_id, product_id=product_id, existed=deleted)
        return deleted

    async def delete_category(self, shop_id: int, category_id: int) -> bool:
        async with self.store_factory() as store:
            deleted = await store.delete_category(shop_id, category_id)
            await store.commit()
        await self.cache.invalidate_categories(shop_id)
        logger.info("Category deleted", shop_id=shop_id, category_id=category_id, existed=deleted)
        return deleted

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    async def _require_connected(store: CatalogStore, store_id: int) -> StoreRecord:
        record = await store.get_store(store_id)
        if record is None:
            raise NotFoundError(f"Store {store_id} not found")
        if not record.has_credentials:
            raise ConfigurationError(
                f"Store {store_id} is not connected to Tiendanube (missing shop id or access token)"
            )
        return record

    @staticmethod
    async def _token_for_shop(store: CatalogStore, shop_id: int) -> str:
        record = await store.get_store_by_shop_id(shop_id)
        if record is None:
            raise NotFoundError(f"No store linked to shop {shop_id}")
        if not record.access_token:
            raise ConfigurationError(f"Store for shop {shop_id} has no access token")
        return record.access_token
