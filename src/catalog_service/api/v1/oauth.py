"""Tiendanube app install flow."""

from typing import Annotated, Any
from urllib.parse import urlencode

import structlog
from fastapi import APIRouter, Depends, Query
from fastapi.responses import RedirectResponse

from catalog_service.api.dependencies import (
    get_background_runner,
    get_oauth_service,
    get_store_service,
    get_sync_service,
)
from catalog_service.config import Settings, get_settings
from catalog_service.exceptions import CatalogError
from catalog_service.services.background import BackgroundTaskRunner
from catalog_service.services.catalog_sync import CatalogSyncService
from catalog_service.services.oauth import OAuthService
from catalog_service.services.store_service import StoreService

logger = structlog.get_logger()

router = APIRouter()


@router.get("/tiendanube/install")
async def install(
    state: str | None = None,
    service: OAuthService = Depends(get_oauth_service),
) -> RedirectResponse:
    """Send the merchant to Tiendanube to authorize the app."""
    return RedirectResponse(service.authorization_url(state))


@router.get("/tiendanube/callback")
async def callback(
    code: Annotated[str, Query(min_length=1)],
    state: str | None = None,
    service: OAuthService = Depends(get_oauth_service),
    sync_service: CatalogSyncService = Depends(get_sync_service),
    runner: BackgroundTaskRunner = Depends(get_background_runner),
    settings: Settings = Depends(get_settings),
) -> RedirectResponse:
    """
    Finish the install and redirect to the merchant dashboard.

    The first full sync runs in the background; its failure is only logged.
    """
    frontend = settings.frontend_url.rstrip("/")
    try:
        result = await service.handle_callback(code)
    except CatalogError as e:
        logger.error("OAuth callback failed", error=e.message, state=state)
        return RedirectResponse(f"{frontend}/error?{urlencode({'message': 'oauth_failed'})}")

    store_id = result.store.id
    runner.spawn(sync_service.sync_all(store_id), name=f"initial-sync:{store_id}")

    query = urlencode(
        {"store": store_id, "success": "true", "new": str(result.is_new_store).lower()}
    )
    return RedirectResponse(f"{frontend}/dashboard?{query}")


@router.get("/tiendanube/status/{store_id}")
async def connection_status(
    store_id: int,
    service: StoreService = Depends(get_store_service),
) -> dict[str, Any]:
    store = await service.require(store_id)
    return {
        "store_id": store.id,
        "connected": store.has_credentials,
        "shop_id": store.shop_id,
        "last_sync_at": store.last_sync_at,
    }
