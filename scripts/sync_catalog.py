#!/usr/bin/env python3
"""CLI script to pull a store's catalog (or every connected store's) from Tiendanube."""

import argparse
import asyncio
import sys

import structlog

from catalog_service.config import get_settings
from catalog_service.exceptions import CatalogError
from catalog_service.infrastructure.database.connection import dispose_engine
from catalog_service.infrastructure.redis import CacheService, close_redis, get_redis_client
from catalog_service.infrastructure.tiendanube import TiendanubeClient
from catalog_service.repositories import catalog_store_scope
from catalog_service.services.catalog_sync import CatalogSyncService
from shared.constants import SYNC_TARGETS
from sync_worker.tasks.sync_catalog import sync_connected_stores

logger = structlog.get_logger()


async def main(store_id: int | None, resource: str) -> int:
    settings = get_settings()
    client = TiendanubeClient(settings)
    cache = CacheService(await get_redis_client())
    service = CatalogSyncService(client, catalog_store_scope, settings=settings, cache=cache)

    try:
        if store_id is None:
            results = await sync_connected_stores(service, catalog_store_scope)
            logger.info("All stores synced", **results)
            return 0 if results["failed"] == 0 else 1

        if resource == "products":
            summary = await service.sync_products(store_id)
        elif resource == "categories":
            summary = await service.sync_categories(store_id)
        else:
            summary = await service.sync_all(store_id)
        logger.info("Store synced", store_id=store_id, **summary.to_dict())
        return 0
    except CatalogError as e:
        logger.error("Sync failed", store_id=store_id, error_type=type(e).__name__, error=e.message)
        return 1
    finally:
        await client.close()
        await close_redis()
        await dispose_engine()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Sync Tiendanube catalogs into the local mirror")
    parser.add_argument("--store-id", type=int, default=None, help="Local store id (default: all connected stores)")
    parser.add_argument("--resource", choices=SYNC_TARGETS, default="all")
    args = parser.parse_args()
    sys.exit(asyncio.run(main(args.store_id, args.resource)))
