"""Tiendanube webhook receivers.

Bodies are read raw so the HMAC is computed over exactly what was sent.
"""

from typing import Any

import orjson
import structlog
from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from pydantic import BaseModel, ValidationError

from catalog_service.api.dependencies import get_webhook_service
from catalog_service.config import Settings, get_settings
from catalog_service.services.webhooks import (
    SIGNATURE_ALWAYS_REQUIRED,
    WebhookEvent,
    WebhookService,
    verify_signature,
)

logger = structlog.get_logger()

router = APIRouter()


class WebhookPayload(BaseModel):
    store_id: int
    event: str
    id: int | None = None


async def _read_verified_body(
    request: Request, signature: str | None, settings: Settings, topic: str | None = None
) -> dict[str, Any]:
    body = await request.body()
    try:
        payload = orjson.loads(body) if body else {}
    except orjson.JSONDecodeError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON body")
    if not isinstance(payload, dict):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON body")

    event = topic or payload.get("event")
    if signature is None:
        if settings.webhook_signature_required or event in SIGNATURE_ALWAYS_REQUIRED:
            logger.warning("Webhook rejected, missing signature", topic=event, path=request.url.path)
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing HMAC header")
        logger.warning("Accepting unsigned webhook", topic=event)
    elif not verify_signature(body, signature, settings.tiendanube_client_secret):
        logger.warning("Webhook rejected, invalid signature", topic=event, path=request.url.path)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid HMAC signature")
    return payload


@router.post("/tiendanube")
async def receive_webhook(
    request: Request,
    x_hmac_sha256: str | None = Header(None, alias="x-hmac-sha256"),
    settings: Settings = Depends(get_settings),
    service: WebhookService = Depends(get_webhook_service),
) -> dict[str, Any]:
    """Catalog and app lifecycle events (``product/*``, ``category/*``, ``app/*``)."""
    payload = await _read_verified_body(request, x_hmac_sha256, settings)
    try:
        data = WebhookPayload.model_validate(payload)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.errors(include_url=False, include_context=False),
        )
    return await service.handle(
        WebhookEvent(shop_id=data.store_id, event=data.event, entity_id=data.id)
    )


async def _gdpr(
    topic: str,
    request: Request,
    signature: str | None,
    settings: Settings,
    service: WebhookService,
) -> dict[str, Any]:
    payload = await _read_verified_body(request, signature, settings, topic=topic)
    return await service.handle_gdpr(topic, payload)


@router.post("/tiendanube/gdpr/store/redact")
async def store_redact(
    request: Request,
    x_hmac_sha256: str | None = Header(None, alias="x-hmac-sha256"),
    settings: Settings = Depends(get_settings),
    service: WebhookService = Depends(get_webhook_service),
) -> dict[str, Any]:
    return await _gdpr("store/redact", request, x_hmac_sha256, settings, service)


@router.post("/tiendanube/gdpr/customers/redact")
async def customers_redact(
    request: Request,
    x_hmac_sha256: str | None = Header(None, alias="x-hmac-sha256"),
    settings: Settings = Depends(get_settings),
    service: WebhookService = Depends(get_webhook_service),
) -> dict[str, Any]:
    return await _gdpr("customers/redact", request, x_hmac_sha256, settings, service)


@router.post("/tiendanube/gdpr/customers/data_request")
async def customers_data_request(
    request: Request,
    x_hmac_sha256: str | None = Header(None, alias="x-hmac-sha256"),
    settings: Settings = Depends(get_settings),
    service: WebhookService = Depends(get_webhook_service),
) -> dict[str, Any]:
    return await _gdpr("customers/data_request", request, x_hmac_sha256, settings, service)
