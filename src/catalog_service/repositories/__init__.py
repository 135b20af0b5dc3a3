"""Persistence adapters for the catalog mirror."""

from catalog_service.repositories.catalog import (
    CatalogStore,
    CatalogStoreFactory,
    SqlCatalogStore,
    catalog_store_scope,
)

__all__ = ["CatalogStore", "CatalogStoreFactory", "SqlCatalogStore", "catalog_store_scope"]
