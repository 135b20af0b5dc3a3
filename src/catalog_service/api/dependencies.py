"""FastAPI dependency providers.

Services are assembled per request from the shared application state (HTTP
client, debouncer, background runner) and a request-scoped catalog store.
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_service.config import Settings, get_settings
from catalog_service.infrastructure.database.connection import get_session
from catalog_service.infrastructure.redis import CacheService, get_redis_client
from catalog_service.infrastructure.tiendanube import TiendanubeClient
from catalog_service.repositories import (
    CatalogStore,
    CatalogStoreFactory,
    SqlCatalogStore,
    catalog_store_scope,
)
from catalog_service.services.background import BackgroundTaskRunner
from catalog_service.services.catalog_sync import CatalogSyncService
from catalog_service.services.category_query import CategoryQueryService
from catalog_service.services.oauth import OAuthService
from catalog_service.services.product_query import ProductQueryService
from catalog_service.services.store_service import StoreService
from catalog_service.services.webhook_debouncer import WebhookDebouncer
from catalog_service.services.webhooks import WebhookService


async def get_catalog_store(session: AsyncSession = Depends(get_session)) -> CatalogStore:
    return SqlCatalogStore(session)


def get_store_factory() -> CatalogStoreFactory:
    """Factory for work that outlives the request (background and debounced syncs)."""
    return catalog_store_scope


async def get_cache() -> CacheService:
    return CacheService(await get_redis_client())


def get_tiendanube_client(request: Request) -> TiendanubeClient:
    return request.app.state.tiendanube_client


def get_debouncer(request: Request) -> WebhookDebouncer:
    return request.app.state.webhook_debouncer


def get_background_runner(request: Request) -> BackgroundTaskRunner:
    return request.app.state.background_runner


def get_sync_service(
    client: TiendanubeClient = Depends(get_tiendanube_client),
    store_factory: CatalogStoreFactory = Depends(get_store_factory),
    settings: Settings = Depends(get_settings),
    cache: CacheService = Depends(get_cache),
) -> CatalogSyncService:
    return CatalogSyncService(client, store_factory, settings=settings, cache=cache)


def get_store_service(store: CatalogStore = Depends(get_catalog_store)) -> StoreService:
    return StoreService(store)


def get_product_query_service(
    store: CatalogStore = Depends(get_catalog_store),
) -> ProductQueryService:
    return ProductQueryService(store)


def get_category_query_service(
    store: CatalogStore = Depends(get_catalog_store),
    cache: CacheService = Depends(get_cache),
    settings: Settings = Depends(get_settings),
) -> CategoryQueryService:
    return CategoryQueryService(store, cache=cache, settings=settings)


def get_webhook_service(
    sync_service: CatalogSyncService = Depends(get_sync_service),
    debouncer: WebhookDebouncer = Depends(get_debouncer),
    store_factory: CatalogStoreFactory = Depends(get_store_factory),
) -> WebhookService:
    return WebhookService(sync_service, debouncer, store_factory)


def get_oauth_service(
    client: TiendanubeClient = Depends(get_tiendanube_client),
    store_factory: CatalogStoreFactory = Depends(get_store_factory),
    settings: Settings = Depends(get_settings),
) -> OAuthService:
    return OAuthService(client, store_factory, settings=settings)
