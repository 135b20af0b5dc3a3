"""Celery worker that keeps mirrored catalogs fresh."""
