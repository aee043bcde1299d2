"""Router for bulk variation price and stock writes."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import schemas
from ..database import get_db
from ..services import BatchResult, CashflowError, CatalogService
from ..services.commerce import CommerceClientFactory
from .dependencies import get_commerce_client_factory, http_error

router = APIRouter()


def _batch_response(result: BatchResult) -> schemas.BatchWriteResponse:
    return schemas.BatchWriteResponse(
        success=result.success,
        updated=result.updated,
        total=result.total,
        errors=result.errors,
        message=result.message,
    )


@router.post(
    "/products/{product_id}/variations/prices", response_model=schemas.BatchWriteResponse
)
def update_variation_prices(
    product_id: str,
    payload: schemas.VariationPriceBatch,
    db: Session = Depends(get_db),
    client_factory: CommerceClientFactory = Depends(get_commerce_client_factory),
) -> schemas.BatchWriteResponse:
    """Every variation is attempted; failures are reported next to the count."""

    try:
        result = CatalogService(db, client_factory).update_variation_prices(product_id, payload)
    except CashflowError as exc:
        raise http_error(exc) from exc
    return _batch_response(result)


@router.post(
    "/products/{product_id}/variations/stock", response_model=schemas.BatchWriteResponse
)
def update_variation_stock(
    product_id: str,
    payload: schemas.VariationStockBatch,
    db: Session = Depends(get_db),
    client_factory: CommerceClientFactory = Depends(get_commerce_client_factory),
) -> schemas.BatchWriteResponse:
    try:
        result = CatalogService(db, client_factory).update_variation_stock(product_id, payload)
    except CashflowError as exc:
        raise http_error(exc) from exc
    return _batch_response(result)
