"""Router triggering snapshot synchronization from the commerce platform."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import schemas
from ..database import get_db
from ..services import CashflowError, PlatformCredentials, SyncOrchestrator
from ..services.commerce import CommerceClientFactory
from .dependencies import get_commerce_client_factory, http_error

router = APIRouter()

LOGGER = logging.getLogger(__name__)


def _override_credentials(request: schemas.SyncRequest):
    if not request.has_credentials:
        return None
    return PlatformCredentials.from_values(
        request.store_url, request.consumer_key, request.consumer_secret
    )


@router.post("", response_model=schemas.SyncResponse)
def sync_day(
    request: schemas.SyncRequest,
    db: Session = Depends(get_db),
    client_factory: CommerceClientFactory = Depends(get_commerce_client_factory),
) -> schemas.SyncResponse:
    """Rebuild the snapshot of one day from the platform's orders."""

    orchestrator = SyncOrchestrator(db, client_factory)
    try:
        result = orchestrator.sync(
            request.business_id, request.date, _override_credentials(request)
        )
    except CashflowError as exc:
        LOGGER.warning("Sync of %s for %s failed: %s", request.date, request.business_id, exc)
        raise http_error(exc) from exc

    return schemas.SyncResponse(
        orders_count=result.orders_count,
        snapshot=schemas.DailySnapshotRead.model_validate(result.snapshot),
        message=result.message,
    )


@router.post("/range", response_model=schemas.SyncRangeResponse)
def sync_range(
    request: schemas.SyncRangeRequest,
    db: Session = Depends(get_db),
    client_factory: CommerceClientFactory = Depends(get_commerce_client_factory),
) -> schemas.SyncRangeResponse:
    orchestrator = SyncOrchestrator(db, client_factory)
    try:
        result = orchestrator.sync_range(request.business_id, request.start_date, request.end_date)
    except CashflowError as exc:
        raise http_error(exc) from exc

    return schemas.SyncRangeResponse(
        synced=result.synced,
        total=result.total,
        failures=[
            schemas.SyncFailureRead(date=failure.date, reason=failure.reason)
            for failure in result.failures
        ],
        message=result.message,
    )
