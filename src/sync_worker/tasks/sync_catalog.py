"""Catalog synchronization tasks."""

import asyncio
from typing import Any

import structlog
from celery import shared_task

from catalog_service.config import get_settings
from catalog_service.exceptions import CatalogError, RateLimitError
from catalog_service.infrastructure.database.connection import dispose_engine
from catalog_service.infrastructure.redis import CacheService, close_redis, get_redis_client
from catalog_service.infrastructure.tiendanube import TiendanubeClient
from catalog_service.repositories import CatalogStoreFactory, catalog_store_scope
from catalog_service.services.catalog_sync import CatalogSyncService
from shared.constants import SYNC_TARGETS

logger = structlog.get_logger()


async def _build_service(store_factory: CatalogStoreFactory) -> tuple[CatalogSyncService, TiendanubeClient]:
    settings = get_settings()
    client = TiendanubeClient(settings)
    cache = CacheService(await get_redis_client())
    return CatalogSyncService(client, store_factory, settings=settings, cache=cache), client


async def sync_connected_stores(
    service: CatalogSyncService, store_factory: CatalogStoreFactory
) -> dict[str, Any]:
    """Run a full sync for every connected store; one store failing does not stop the rest."""
    async with store_factory() as store:
        stores = await store.list_connected_stores()

    results: dict[str, Any] = {"stores": len(stores), "succeeded": 0, "failed": 0, "synced": 0}
    for record in stores:
        try:
            summary = await service.sync_all(record.id)
            results["succeeded"] += 1
            results["synced"] += summary.total_synced
        except CatalogError as e:
            results["failed"] += 1
            logger.error(
                "Scheduled sync failed",
                store_id=record.id,
                shop_id=record.shop_id,
                error_type=type(e).__name__,
                error=e.message,
            )
    return results


async def _run_all() -> dict[str, Any]:
    service, client = await _build_service(catalog_store_scope)
    try:
        return await sync_connected_stores(service, catalog_store_scope)
    finally:
        await client.close()
        await close_redis()
        # Each task invocation runs on a fresh event loop.
        await dispose_engine()


async def _run_one(store_id: int, resource: str) -> dict[str, Any]:
    service, client = await _build_service(catalog_store_scope)
    try:
        if resource == "products":
            summary = await service.sync_products(store_id)
        elif resource == "categories":
            summary = await service.sync_categories(store_id)
        else:
            summary = await service.sync_all(store_id)
        return summary.to_dict()
    finally:
        await client.close()
        await close_redis()
        await dispose_engine()


@shared_task(bind=True, max_retries=3, default_retry_delay=300)
def sync_all_catalogs(self) -> dict:
    """
    Periodic full sync of every store linked to Tiendanube.

    Returns:
        dict: Counts of stores processed, succeeded and failed, plus items synced
    """
    logger.info("Starting scheduled catalog sync")
    results = asyncio.run(_run_all())
    logger.info("Scheduled catalog sync completed", **results)
    return results


@shared_task(bind=True, max_retries=3, default_retry_delay=60)
def sync_store_catalog(self, store_id: int, resource: str = "all") -> dict:
    """
    Sync one store on demand. Retried later when Tiendanube rate limits us.

    Args:
        store_id: Local store id
        resource: "all", "products" or "categories"
    """
    if resource not in SYNC_TARGETS:
        raise ValueError(f"Unknown sync target {resource!r}, expected one of {SYNC_TARGETS}")
    logger.info("Syncing store catalog", store_id=store_id, resource=resource)
    try:
        return asyncio.run(_run_one(store_id, resource))
    except RateLimitError as e:
        raise self.retry(exc=e)
