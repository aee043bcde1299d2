"""Router exposing per-business configuration."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from .. import schemas
from ..database import get_db
from ..services import BusinessSettingsService
from .dependencies import not_found

router = APIRouter()

BUSINESS_ID = Path(..., min_length=1, max_length=64)


@router.get("/{business_id}", response_model=schemas.BusinessSettingsRead)
def get_settings(
    business_id: str = BUSINESS_ID, db: Session = Depends(get_db)
) -> schemas.BusinessSettingsRead:
    settings = BusinessSettingsService.get(db, business_id)
    if settings is None:
        raise not_found("Business settings not found")
    return schemas.BusinessSettingsRead.from_model(settings)


@router.put("/{business_id}", response_model=schemas.BusinessSettingsRead)
def save_settings(
    payload: schemas.BusinessSettingsUpdate,
    business_id: str = BUSINESS_ID,
    db: Session = Depends(get_db),
) -> schemas.BusinessSettingsRead:
    """Create or replace the settings of a business."""

    settings = BusinessSettingsService.save(db, business_id, payload)
    return schemas.BusinessSettingsRead.from_model(settings)
