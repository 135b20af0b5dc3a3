"""Tiendanube app installation (OAuth authorization code flow)."""

from dataclasses import dataclass, field
from urllib.parse import urlencode

import structlog

from catalog_service.config import Settings, get_settings
from catalog_service.domain import StoreRecord
from catalog_service.infrastructure.tiendanube import TiendanubeClient
from catalog_service.repositories import CatalogStoreFactory
from catalog_service.services.normalizer import localized_text

logger = structlog.get_logger()


@dataclass
class InstallResult:
    store: StoreRecord
    is_new_store: bool
    scopes: list[str] = field(default_factory=list)


class OAuthService:
    def __init__(
        self,
        client: TiendanubeClient,
        store_factory: CatalogStoreFactory,
        settings: Settings | None = None,
    ):
        self.client = client
        self.store_factory = store_factory
        self.settings = settings or get_settings()

    def authorization_url(self, state: str | None = None) -> str:
        base = f"{self.settings.tiendanube_auth_base_url.rstrip('/')}/{self.settings.tiendanube_client_id}/authorize"
        if state:
            return f"{base}?{urlencode({'state': state})}"
        return base

    async def handle_callback(self, code: str) -> InstallResult:
        """Exchange the code, link the shop to a local store and register webhooks.

        The initial catalog sync is not started here; callers spawn it.
        """
        token_data = await self.client.exchange_code(code)
        access_token = token_data["access_token"]
        shop_id = int(token_data["user_id"])
        scopes = [s.strip() for s in (token_data.get("scope") or "").split(",") if s.strip()]

        info = await self.client.get_store_info(shop_id, access_token) or {}
        language = self.settings.tiendanube_language
        name = localized_text(info.get("name"), f"Store {shop_id}", language)
        url = info.get("url") or f"https://store-{shop_id}.mitiendanube.com"

        async with self.store_factory() as store:
            existing = await store.get_store_by_shop_id(shop_id)
            if existing is not None:
                record = await store.update_store(
                    existing.id, {"access_token": access_token, "name": name, "url": url}
                )
            else:
                record = await store.create_store(
                    StoreRecord(
                        name=name,
                        url=url,
                        description=localized_text(info.get("description"), "", language),
                        logo=info.get("logo") or "",
                        shop_id=shop_id,
                        access_token=access_token,
                    )
                )
            await store.commit()

        logger.info(
            "Tiendanube app installed",
            shop_id=shop_id,
            store_id=record.id,
            is_new_store=existing is None,
        )

        await self.client.register_webhooks(
            shop_id,
            access_token,
            self.settings.tiendanube_webhook_topics,
            self.settings.webhook_callback_url,
        )
        return InstallResult(store=record, is_new_store=existing is None, scopes=scopes)
