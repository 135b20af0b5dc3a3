"""Tiendanube catalog mirror service."""

__version__ = "1.0.0"
