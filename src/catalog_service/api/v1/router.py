"""API v1 router that aggregates all endpoint routers."""

from fastapi import APIRouter

from catalog_service.api.v1 import (
    categories,
    health,
    oauth,
    products,
    stores,
    webhooks,
)

api_router = APIRouter()

api_router.include_router(
    health.router,
    tags=["Health"],
)

api_router.include_router(
    stores.router,
    prefix="/stores",
    tags=["Stores"],
)

api_router.include_router(
    products.router,
    prefix="/products",
    tags=["Products"],
)

api_router.include_router(
    categories.router,
    prefix="/categories",
    tags=["Categories"],
)

api_router.include_router(
    webhooks.router,
    prefix="/webhooks",
    tags=["Webhooks"],
)

api_router.include_router(
    oauth.router,
    prefix="/oauth",
    tags=["OAuth"],
)
