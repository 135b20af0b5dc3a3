"""Business logic services."""

from catalog_service.services.catalog_sync import CatalogSyncService
from catalog_service.services.category_query import CategoryQueryService
from catalog_service.services.oauth import OAuthService
from catalog_service.services.product_query import ProductQueryService
from catalog_service.services.store_service import StoreService
from catalog_service.services.webhook_debouncer import WebhookDebouncer
from catalog_service.services.webhooks import WebhookService

__all__ = [
    "CatalogSyncService",
    "CategoryQueryService",
    "OAuthService",
    "ProductQueryService",
    "StoreService",
    "WebhookDebouncer",
    "WebhookService",
]
