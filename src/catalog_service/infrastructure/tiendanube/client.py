"""Async HTTP client for the Tiendanube REST API."""

from typing import Any, Literal

import httpx
import structlog

from catalog_service.config import Settings, get_settings
from catalog_service.exceptions import (
    AuthorizationError,
    RateLimitError,
    UpstreamFetchError,
    UpstreamNotFoundError,
)

logger = structlog.get_logger()

Resource = Literal["products", "categories"]

TOKEN_URL = "https://www.tiendanube.com/apps/authorize/token"


class TiendanubeClient:
    """Thin wrapper around ``httpx.AsyncClient`` that maps HTTP failures to typed errors.

    One instance is shared by the whole application; the access token is passed
    per call since every shop has its own.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.settings = settings or get_settings()
        self.base_url = self.settings.tiendanube_api_base_url.rstrip("/")
        self.page_size = self.settings.sync_page_size
        self._client = http_client or httpx.AsyncClient(
            timeout=self.settings.tiendanube_api_timeout
        )

    async def close(self) -> None:
        await self._client.aclose()

    def _headers(self, token: str | None = None) -> dict[str, str]:
        headers = {
            "User-Agent": self.settings.tiendanube_user_agent,
            "Content-Type": "application/json",
        }
        if token:
            headers["Authentication"] = f"bearer {token}"
        return headers

    async def _request(
        self,
        method: str,
        url: str,
        token: str | None = None,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        not_found_is_empty: bool = False,
    ) -> Any:
        try:
            response = await self._client.request(
                method, url, headers=self._headers(token), params=params, json=json
            )
        except httpx.HTTPError as e:
            logger.error("Tiendanube request failed", method=method, url=url, error=str(e))
            raise UpstreamFetchError(f"Tiendanube request failed: {e}") from e

        if response.status_code == 404 and not_found_is_empty:
            return []
        if response.is_success:
            if not response.content:
                return None
            return response.json()

        body = response.text
        status = response.status_code
        message = f"Tiendanube {method} {url} returned {status}"
        logger.warning("Tiendanube error response", method=method, url=url, status=status)
        if status in (401, 403):
            raise AuthorizationError(message, status=status, body=body)
        if status == 404:
            raise UpstreamNotFoundError(message, status=status, body=body)
        if status == 429:
            raise RateLimitError(message, status=status, body=body)
        raise UpstreamFetchError(message, status=status, body=body)

    # -------------------------------------------------------------------------
    # Catalog
    # -------------------------------------------------------------------------

    async def fetch_page(
        self, shop_id: int, token: str, resource: Resource, page: int
    ) -> list[dict[str, Any]]:
        """Fetch one page of products or categories. A 404 means past the last page."""
        data = await self._request(
            "GET",
            f"{self.base_url}/{shop_id}/{resource}",
            token,
            params={"page": page, "per_page": self.page_size},
            not_found_is_empty=True,
        )
        return data or []

    async def fetch_single(
        self, shop_id: int, token: str, resource: Resource, remote_id: int
    ) -> dict[str, Any]:
        return await self._request(
            "GET", f"{self.base_url}/{shop_id}/{resource}/{remote_id}", token
        )

    async def get_store_info(self, shop_id: int, token: str) -> dict[str, Any]:
        return await self._request("GET", f"{self.base_url}/{shop_id}/store", token)

    # -------------------------------------------------------------------------
    # Webhooks
    # -------------------------------------------------------------------------

    async def create_webhook(
        self, shop_id: int, token: str, event: str, url: str
    ) -> dict[str, Any]:
        return await self._request(
            "POST",
            f"{self.base_url}/{shop_id}/webhooks",
            token,
            json={"event": event, "url": url},
        )

    async def list_webhooks(self, shop_id: int, token: str) -> list[dict[str, Any]]:
        return await self._request("GET", f"{self.base_url}/{shop_id}/webhooks", token) or []

    async def delete_webhook(self, shop_id: int, token: str, webhook_id: int) -> None:
        await self._request("DELETE", f"{self.base_url}/{shop_id}/webhooks/{webhook_id}", token)

    async def register_webhooks(
        self, shop_id: int, token: str, topics: list[str], callback_url: str
    ) -> list[str]:
        """Register each topic; failures are logged and skipped.

        Returns the topics that were registered successfully.
        """
        registered: list[str] = []
        for topic in topics:
            try:
                await self.create_webhook(shop_id, token, topic, callback_url)
                registered.append(topic)
            except UpstreamFetchError as e:
                logger.warning(
                    "Webhook registration failed",
                    shop_id=shop_id,
                    topic=topic,
                    status=e.status,
                    error=e.message,
                )
        logger.info(
            "Webhooks registered",
            shop_id=shop_id,
            registered=len(registered),
            requested=len(topics),
        )
        return registered

    # -------------------------------------------------------------------------
    # OAuth
    # -------------------------------------------------------------------------

    async def exchange_code(self, code: str) -> dict[str, Any]:
        """Trade an authorization code for ``{access_token, scope, user_id}``."""
        data = await self._request(
            "POST",
            TOKEN_URL,
            json={
                "client_id": self.settings.tiendanube_client_id,
                "client_secret": self.settings.tiendanube_client_secret,
                "grant_type": "authorization_code",
                "code": code,
            },
        )
        if not data or not data.get("access_token"):
            raise AuthorizationError("Token exchange returned no access_token")
        if not data.get("user_id"):
            raise AuthorizationError("Token exchange returned no user_id")
        return data
