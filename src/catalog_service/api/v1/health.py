"""Health check endpoints."""

from datetime import datetime, timezone
from typing import Any

import structlog
from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy import text

from catalog_service import __version__
from catalog_service.config import get_settings
from catalog_service.infrastructure.database.connection import get_db_session
from catalog_service.infrastructure.redis import CacheService, get_redis_client

logger = structlog.get_logger()

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str
    environment: str
    timestamp: str
    dependencies: dict[str, Any]


class ReadinessResponse(BaseModel):
    ready: bool
    checks: dict[str, bool]


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Process is up; does not touch dependencies."""
    settings = get_settings()

    return HealthResponse(
        status="healthy",
        version=__version__,
        environment=settings.app_env,
        timestamp=datetime.now(timezone.utc).isoformat(),
        dependencies={
            "postgres": "configured",
            "redis": "configured",
            "tiendanube": "configured" if settings.tiendanube_client_id else "missing_credentials",
        },
    )


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness_check() -> ReadinessResponse:
    """
    Readiness check endpoint.

    PostgreSQL is required; Redis is reported but the service degrades
    gracefully without it, so it does not affect ``ready``.
    """
    checks: dict[str, bool] = {}

    try:
        async with get_db_session() as session:
            await session.execute(text("SELECT 1"))
        checks["postgres"] = True
    except Exception as e:
        logger.warning("Readiness: postgres unavailable", error=str(e))
        checks["postgres"] = False

    checks["redis"] = await CacheService(await get_redis_client()).health_check()

    return ReadinessResponse(ready=checks["postgres"], checks=checks)


@router.get("/health/live")
async def liveness_check() -> dict[str, str]:
    return {"status": "alive"}
