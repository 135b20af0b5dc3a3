"""Tiendanube API integration."""

from catalog_service.infrastructure.tiendanube.client import Resource, TiendanubeClient

__all__ = ["Resource", "TiendanubeClient"]
