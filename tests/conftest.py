"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator
from typing import Any

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from catalog_service.api.dependencies import (
    get_background_runner,
    get_cache,
    get_catalog_store,
    get_debouncer,
    get_store_factory,
    get_tiendanube_client,
)
from catalog_service.config import Settings, get_settings
from catalog_service.domain import StoreRecord
from catalog_service.infrastructure.redis import CacheService
from catalog_service.infrastructure.tiendanube import TiendanubeClient
from catalog_service.main import create_app
from catalog_service.services.catalog_sync import CatalogSyncService
from tests.fakes import (
    APP_SECRET,
    SHOP_ID,
    FakeTiendanube,
    InMemoryCatalogStore,
    RecordingDebouncer,
    RecordingRunner,
)


@pytest.fixture
def test_settings() -> Settings:
    """Get test settings with overrides."""
    return Settings(
        app_env="test",
        debug=True,
        postgres_host="localhost",
        postgres_user="test",
        postgres_password="test",
        postgres_db="test_db",
        tiendanube_client_id="4321",
        tiendanube_client_secret=APP_SECRET,
        public_base_url="https://mirror.example",
        frontend_url="https://app.example",
        sync_page_size=2,
        webhook_debounce_seconds=0.05,
    )


@pytest.fixture
def memory_store() -> InMemoryCatalogStore:
    return InMemoryCatalogStore()


@pytest.fixture
def upstream() -> FakeTiendanube:
    return FakeTiendanube()


@pytest_asyncio.fixture
async def tiendanube_client(
    upstream: FakeTiendanube, test_settings: Settings
) -> AsyncGenerator[TiendanubeClient, None]:
    client = upstream.client(test_settings)
    yield client
    await client.close()


@pytest.fixture
def sync_service(
    tiendanube_client: TiendanubeClient,
    memory_store: InMemoryCatalogStore,
    test_settings: Settings,
) -> CatalogSyncService:
    return CatalogSyncService(tiendanube_client, memory_store.scope, settings=test_settings)


@pytest_asyncio.fixture
async def connected_store(memory_store: InMemoryCatalogStore) -> StoreRecord:
    """A store that finished the OAuth install."""
    return await memory_store.create_store(
        StoreRecord(
            name="Mi Tienda",
            url="https://mitienda.example",
            shop_id=SHOP_ID,
            access_token="shop-token",
        )
    )


@pytest.fixture
def debouncer() -> RecordingDebouncer:
    return RecordingDebouncer()


@pytest.fixture
def runner() -> RecordingRunner:
    return RecordingRunner()


@pytest.fixture
def app(
    test_settings: Settings,
    memory_store: InMemoryCatalogStore,
    upstream: FakeTiendanube,
    debouncer: RecordingDebouncer,
    runner: RecordingRunner,
) -> Any:
    """Create test application backed by the in-memory store and fake upstream."""

    def get_test_settings() -> Settings:
        return test_settings

    app = create_app()
    app.dependency_overrides[get_settings] = get_test_settings
    app.dependency_overrides[get_catalog_store] = lambda: memory_store
    app.dependency_overrides[get_store_factory] = lambda: memory_store.scope
    app.dependency_overrides[get_cache] = lambda: CacheService(None)
    app.dependency_overrides[get_tiendanube_client] = lambda: upstream.client(test_settings)
    app.dependency_overrides[get_debouncer] = lambda: debouncer
    app.dependency_overrides[get_background_runner] = lambda: runner
    return app


@pytest.fixture
def client(app: Any) -> TestClient:
    """Create synchronous test client."""
    return TestClient(app)
