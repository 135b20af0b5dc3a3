"""Store management endpoints."""

from typing import Annotated, Any, Literal

import structlog
from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from catalog_service.api.dependencies import get_store_service, get_sync_service
from catalog_service.services.catalog_sync import CatalogSyncService
from catalog_service.services.store_service import StoreService

logger = structlog.get_logger()

router = APIRouter()


class StoreCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    url: str = Field(..., min_length=1, max_length=500)
    description: str = ""
    logo: str = ""


class StoreUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    url: str | None = Field(None, min_length=1, max_length=500)
    description: str | None = None
    logo: str | None = None
    shop_id: int | None = Field(None, gt=0)


class SyncResponse(BaseModel):
    """Outcome of a manual sync; ``errors`` lists items that failed."""

    total_synced: int
    store_id: int
    pages_fetched: int
    reached_page_limit: bool
    errors: list[dict[str, Any]] | None = None


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_store(
    body: StoreCreate,
    service: StoreService = Depends(get_store_service),
) -> dict[str, Any]:
    return await service.create(body.name, body.url, body.description, body.logo)


@router.get("")
async def list_stores(
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    service: StoreService = Depends(get_store_service),
) -> dict[str, Any]:
    return await service.list(page=page, limit=limit)


@router.get("/{store_id}")
async def get_store(
    store_id: int,
    service: StoreService = Depends(get_store_service),
) -> dict[str, Any]:
    return await service.get(store_id)


@router.patch("/{store_id}")
async def update_store(
    store_id: int,
    body: StoreUpdate,
    service: StoreService = Depends(get_store_service),
) -> dict[str, Any]:
    return await service.update(store_id, body.model_dump(exclude_unset=True))


@router.delete("/{store_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_store(
    store_id: int,
    service: StoreService = Depends(get_store_service),
) -> None:
    await service.delete(store_id)


@router.post("/{store_id}/sync", response_model=SyncResponse, response_model_exclude_none=True)
async def sync_store(
    store_id: int,
    resource: Annotated[Literal["all", "products", "categories"], Query()] = "all",
    sync_service: CatalogSyncService = Depends(get_sync_service),
) -> dict[str, Any]:
    """
    Pull the store's catalog from Tiendanube now.

    Runs to completion before responding. Item failures are reported in
    ``errors``; a failed page fetch fails the request (earlier pages stay saved).
    """
    logger.info("Manual sync requested", store_id=store_id, resource=resource)
    if resource == "products":
        summary = await sync_service.sync_products(store_id)
    elif resource == "categories":
        summary = await sync_service.sync_categories(store_id)
    else:
        summary = await sync_service.sync_all(store_id)
    return summary.to_dict()
