"""Shared constants across the application."""

# Catalog resources mirrored from Tiendanube
CATALOG_RESOURCES = ["products", "categories"]

# Manual sync targets accepted by the API and the worker
SYNC_TARGETS = ["all", *CATALOG_RESOURCES]

# Default limits
DEFAULT_PAGE_LIMIT = 20
MAX_PAGE_LIMIT = 100
DEFAULT_RELATED_LIMIT = 6
DEFAULT_FEATURED_LIMIT = 12
