"""Tiendanube webhook handling.

Update events are debounced into a single resync per entity; deletions,
uninstalls and suspensions are applied immediately.
"""

import base64
import hashlib
import hmac
from dataclasses import dataclass
from functools import partial
from typing import Any

import structlog

from catalog_service.repositories import CatalogStoreFactory
from catalog_service.services.catalog_sync import CatalogSyncService
from catalog_service.services.webhook_debouncer import WebhookDebouncer

logger = structlog.get_logger()

PRODUCT_SYNC_EVENTS = {"product/created", "product/updated"}
CATEGORY_SYNC_EVENTS = {"category/created", "category/updated"}

GDPR_TOPICS = {"store/redact", "customers/redact", "customers/data_request"}

# Events that destroy data are never accepted without a valid signature.
SIGNATURE_ALWAYS_REQUIRED = {"app/uninstalled", "app/suspended"} | GDPR_TOPICS


def compute_signature(body: bytes, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_signature(body: bytes, header: str | None, secret: str) -> bool:
    """Check ``x-hmac-sha256``: base64 HMAC-SHA256 of the raw body keyed by the app secret."""
    if not header or not secret:
        return False
    return hmac.compare_digest(compute_signature(body, secret), header.strip())


@dataclass
class WebhookEvent:
    shop_id: int
    event: str
    entity_id: int | None = None


class WebhookService:
    """Dispatches verified webhook events."""

    def __init__(
        self,
        sync_service: CatalogSyncService,
        debouncer: WebhookDebouncer,
        store_factory: CatalogStoreFactory,
    ):
        self.sync = sync_service
        self.debouncer = debouncer
        self.store_factory = store_factory

    async def handle(self, event: WebhookEvent) -> dict[str, Any]:
        log = logger.bind(topic=event.event, shop_id=event.shop_id, entity_id=event.entity_id)
        log.info("Webhook received")

        if event.event in PRODUCT_SYNC_EVENTS | CATEGORY_SYNC_EVENTS:
            if event.entity_id is None:
                log.warning("Webhook without entity id ignored")
                return {"received": True, "action": "ignored"}
            if event.event in PRODUCT_SYNC_EVENTS:
                kind, fn = "product", self.sync.sync_single_product
            else:
                kind, fn = "category", self.sync.sync_single_category
            self.debouncer.schedule(
                kind, event.shop_id, event.entity_id, partial(fn, event.shop_id, event.entity_id)
            )
            return {"received": True, "action": "scheduled"}

        if event.event == "product/deleted" and event.entity_id is not None:
            await self.sync.delete_product(event.shop_id, event.entity_id)
            return {"received": True, "action": "deleted"}

        if event.event == "category/deleted" and event.entity_id is not None:
            await self.sync.delete_category(event.shop_id, event.entity_id)
            return {"received": True, "action": "deleted"}

        if event.event == "app/uninstalled":
            return await self.uninstall(event.shop_id)

        if event.event == "app/suspended":
            return await self.purge(event.shop_id)

        log.info("Unhandled webhook event acknowledged")
        return {"received": True, "action": "ignored"}

    async def uninstall(self, shop_id: int) -> dict[str, Any]:
        """Revoke the stored credential; the store record and catalog are kept."""
        async with self.store_factory() as store:
            cleared = await store.clear_access_token(shop_id)
            await store.commit()
        logger.info("App uninstalled, access token cleared", shop_id=shop_id, store_found=cleared)
        return {"received": True, "action": "uninstalled"}

    async def purge(self, shop_id: int) -> dict[str, Any]:
        """Remove the store and every catalog row of the shop."""
        async with self.store_factory() as store:
            counts = await store.purge_shop(shop_id)
            await store.commit()
        logger.warning("Shop data purged", shop_id=shop_id, **counts)
        return {"received": True, "action": "purged", "deleted": counts}

    async def handle_gdpr(self, topic: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Acknowledge GDPR requests; no customer personal data is stored here."""
        logger.info(
            "GDPR webhook acknowledged",
            topic=topic,
            shop_id=payload.get("store_id"),
            customer_id=(payload.get("customer") or {}).get("id"),
        )
        return {"received": True, "topic": topic, "customer_data_stored": False}
