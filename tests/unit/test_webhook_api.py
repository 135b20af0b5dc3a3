"""Unit tests for webhook and install endpoints."""

import json
from urllib.parse import parse_qs, urlparse

from fastapi.testclient import TestClient

from catalog_service.config import Settings
from catalog_service.domain import StoreRecord
from catalog_service.services.webhooks import compute_signature
from tests.fakes import (
    APP_SECRET,
    SHOP_ID,
    FakeTiendanube,
    InMemoryCatalogStore,
    RecordingDebouncer,
    RecordingRunner,
)

WEBHOOK_URL = "/api/v1/webhooks/tiendanube"


def _post_signed(client: TestClient, url: str, payload: dict, secret: str = APP_SECRET):
    body = json.dumps(payload).encode()
    return client.post(
        url,
        content=body,
        headers={"content-type": "application/json", "x-hmac-sha256": compute_signature(body, secret)},
    )


class TestWebhookEndpoint:
    def test_signed_update_is_debounced(self, client: TestClient, debouncer: RecordingDebouncer) -> None:
        response = _post_signed(
            client, WEBHOOK_URL, {"store_id": SHOP_ID, "event": "product/updated", "id": 7}
        )

        assert response.status_code == 200
        assert response.json() == {"received": True, "action": "scheduled"}
        assert debouncer.scheduled == [("product", SHOP_ID, 7)]

    def test_missing_signature(self, client: TestClient, debouncer: RecordingDebouncer) -> None:
        response = client.post(
            WEBHOOK_URL, json={"store_id": SHOP_ID, "event": "product/updated", "id": 7}
        )
        assert response.status_code == 401
        assert debouncer.scheduled == []

    def test_invalid_signature(self, client: TestClient, debouncer: RecordingDebouncer) -> None:
        response = _post_signed(
            client,
            WEBHOOK_URL,
            {"store_id": SHOP_ID, "event": "product/updated", "id": 7},
            secret="not-the-secret",
        )
        assert response.status_code == 401
        assert debouncer.scheduled == []

    def test_unsigned_allowed_when_not_required(
        self,
        client: TestClient,
        test_settings: Settings,
        debouncer: RecordingDebouncer,
    ) -> None:
        test_settings.webhook_signature_required = False

        response = client.post(
            WEBHOOK_URL, json={"store_id": SHOP_ID, "event": "category/updated", "id": 3}
        )

        assert response.status_code == 200
        assert debouncer.scheduled == [("category", SHOP_ID, 3)]

    def test_uninstall_always_needs_signature(
        self,
        client: TestClient,
        test_settings: Settings,
        memory_store: InMemoryCatalogStore,
    ) -> None:
        test_settings.webhook_signature_required = False
        memory_store.seed(
            stores=[StoreRecord(name="T", url="https://t.example", shop_id=SHOP_ID, access_token="tok")]
        )

        response = client.post(WEBHOOK_URL, json={"store_id": SHOP_ID, "event": "app/uninstalled"})

        assert response.status_code == 401
        assert memory_store.stores[1].access_token == "tok"

    def test_signed_uninstall(self, client: TestClient, memory_store: InMemoryCatalogStore) -> None:
        memory_store.seed(
            stores=[StoreRecord(name="T", url="https://t.example", shop_id=SHOP_ID, access_token="tok")]
        )

        response = _post_signed(client, WEBHOOK_URL, {"store_id": SHOP_ID, "event": "app/uninstalled"})

        assert response.json()["action"] == "uninstalled"
        assert memory_store.stores[1].access_token is None

    def test_invalid_payload(self, client: TestClient) -> None:
        response = _post_signed(client, WEBHOOK_URL, {"event": "product/updated"})
        assert response.status_code == 422

    def test_malformed_json(self, client: TestClient) -> None:
        body = b"{not json"
        response = client.post(
            WEBHOOK_URL,
            content=body,
            headers={"x-hmac-sha256": compute_signature(body, APP_SECRET)},
        )
        assert response.status_code == 400


class TestGdprEndpoints:
    def test_signed_request_acknowledged(self, client: TestClient) -> None:
        response = _post_signed(
            client,
            "/api/v1/webhooks/tiendanube/gdpr/customers/data_request",
            {"store_id": SHOP_ID, "customer": {"id": 5}},
        )
        assert response.status_code == 200
        assert response.json()["customer_data_stored"] is False

    def test_unsigned_rejected(self, client: TestClient, test_settings: Settings) -> None:
        test_settings.webhook_signature_required = False
        for path in ("store/redact", "customers/redact", "customers/data_request"):
            response = client.post(f"/api/v1/webhooks/tiendanube/gdpr/{path}", json={"store_id": SHOP_ID})
            assert response.status_code == 401


class TestOAuthEndpoints:
    def test_install_redirects(self, client: TestClient) -> None:
        response = client.get(
            "/api/v1/oauth/tiendanube/install", params={"state": "abc"}, follow_redirects=False
        )
        assert response.status_code == 307
        assert response.headers["location"] == "https://www.tiendanube.com/apps/4321/authorize?state=abc"

    def test_callback_links_store_and_starts_sync(
        self,
        client: TestClient,
        memory_store: InMemoryCatalogStore,
        runner: RecordingRunner,
    ) -> None:
        response = client.get(
            "/api/v1/oauth/tiendanube/callback", params={"code": "xyz"}, follow_redirects=False
        )

        location = urlparse(response.headers["location"])
        assert location.path == "/dashboard"
        assert parse_qs(location.query) == {"store": ["1"], "success": ["true"], "new": ["true"]}
        assert memory_store.stores[1].shop_id == SHOP_ID
        assert runner.spawned == ["initial-sync:1"]

    def test_callback_failure_redirects_to_error(
        self,
        client: TestClient,
        upstream: FakeTiendanube,
        runner: RecordingRunner,
    ) -> None:
        upstream.token_response = {"error": "invalid_grant"}

        response = client.get(
            "/api/v1/oauth/tiendanube/callback", params={"code": "bad"}, follow_redirects=False
        )

        assert response.headers["location"] == "https://app.example/error?message=oauth_failed"
        assert runner.spawned == []

    def test_connection_status(self, client: TestClient, memory_store: InMemoryCatalogStore) -> None:
        memory_store.seed(
            stores=[StoreRecord(name="T", url="https://t.example", shop_id=SHOP_ID, access_token="tok")]
        )

        data = client.get("/api/v1/oauth/tiendanube/status/1").json()

        assert data["connected"] is True
        assert data["shop_id"] == SHOP_ID
        assert data["last_sync_at"] is None
