"""Router receiving order webhooks from the commerce platform."""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from .. import schemas
from ..database import get_db
from ..security import (
    DELIVERY_HEADER,
    SIGNATURE_HEADER,
    TOPIC_HEADER,
    require_valid_signature,
)
from ..services import BusinessSettingsService, CashflowError, WebhookEventProcessor, WebhookStatus
from ..services.commerce import CommerceClientFactory
from .dependencies import get_commerce_client_factory, http_error

router = APIRouter()

LOGGER = logging.getLogger(__name__)


def _parse_body(body: bytes) -> Optional[dict[str, Any]]:
    """Return the JSON object of ``body`` or ``None`` for verification pings."""

    if not body or not body.strip():
        return None
    try:
        payload = json.loads(body)
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None
    return payload if isinstance(payload, dict) else None


def _webhook_secret(db: Session, business_id: str) -> Optional[str]:
    settings = BusinessSettingsService.get(db, business_id)
    return settings.webhook_secret if settings is not None else None


@router.get("/woocommerce", response_model=schemas.WebhookAck)
def webhook_ready() -> schemas.WebhookAck:
    return schemas.WebhookAck(status=WebhookStatus.PING, message="Webhook endpoint ready")


@router.post("/woocommerce", response_model=schemas.WebhookAck)
async def receive_woocommerce_webhook(
    request: Request,
    business_id: str = Query(..., min_length=1, max_length=64),
    db: Session = Depends(get_db),
    client_factory: CommerceClientFactory = Depends(get_commerce_client_factory),
) -> schemas.WebhookAck:
    """Apply an order event.

    Recompute failures are acknowledged with a non-processed status so the
    platform does not keep redelivering; only malformed or unsigned requests
    are rejected.
    """

    body = await request.body()
    payload = _parse_body(body)
    if payload is None:
        LOGGER.info("Webhook verification ping for business %s", business_id)
        return schemas.WebhookAck(status=WebhookStatus.PING, message="Webhook verified")

    secret = await run_in_threadpool(_webhook_secret, db, business_id)
    require_valid_signature(body, secret, request.headers.get(SIGNATURE_HEADER))

    topic = request.headers.get(TOPIC_HEADER, "")
    delivery_id = request.headers.get(DELIVERY_HEADER)
    processor = WebhookEventProcessor(db, client_factory)
    try:
        outcome = await run_in_threadpool(
            processor.process, business_id, topic, payload, delivery_id
        )
    except CashflowError as exc:
        LOGGER.warning("Rejected webhook %s for business %s: %s", topic, business_id, exc)
        raise http_error(exc) from exc

    LOGGER.info(
        "Webhook %s for business %s finished with %s", topic, business_id, outcome.status
    )
    return schemas.WebhookAck.model_validate(outcome)
