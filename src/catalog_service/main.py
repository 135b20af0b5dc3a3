"""FastAPI application entry point."""

import structlog
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from catalog_service import __version__
from catalog_service.api.v1.router import api_router
from catalog_service.config import get_settings
from catalog_service.exceptions import CatalogError, UpstreamFetchError
from catalog_service.infrastructure.database.connection import dispose_engine
from catalog_service.infrastructure.redis import close_redis
from catalog_service.infrastructure.tiendanube import TiendanubeClient
from catalog_service.services.background import BackgroundTaskRunner
from catalog_service.services.webhook_debouncer import WebhookDebouncer

structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer() if get_settings().debug else structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(get_settings().log_level),
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup and shutdown events."""
    settings = get_settings()
    logger.info(
        "Starting Tiendanube Catalog Mirror",
        app_env=settings.app_env,
        debug=settings.debug,
    )
    if not settings.tiendanube_client_id or not settings.tiendanube_client_secret:
        logger.warning("Tiendanube OAuth credentials not configured, install flow will fail")

    yield

    await app.state.webhook_debouncer.shutdown()
    await app.state.background_runner.shutdown()
    await app.state.tiendanube_client.close()
    await close_redis()
    await dispose_engine()
    logger.info("Shutting down Tiendanube Catalog Mirror")


async def catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
    content = {"error": type(exc).__name__, "message": exc.message}
    if isinstance(exc, UpstreamFetchError) and exc.status is not None:
        content["upstream_status"] = exc.status
    if exc.status_code >= 500:
        logger.error("Request failed", path=request.url.path, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content=content)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Tiendanube Catalog Mirror API",
        description="Mirrors Tiendanube products and categories and serves them with search, filters and trees",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Shared, process-wide collaborators; routes reach them through app.state.
    app.state.tiendanube_client = TiendanubeClient(settings)
    app.state.webhook_debouncer = WebhookDebouncer(settings.webhook_debounce_seconds)
    app.state.background_runner = BackgroundTaskRunner()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(CatalogError, catalog_error_handler)

    app.include_router(api_router, prefix="/api/v1")

    return app


app = create_app()


def run() -> None:
    """Run the application using uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "catalog_service.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        workers=1 if settings.debug else settings.api_workers,
    )


if __name__ == "__main__":
    run()
