"""Router exposing stored daily snapshots and their manual cells."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from .. import schemas
from ..database import get_db
from ..services import DailySnapshotService

router = APIRouter()


@router.get("", response_model=schemas.CashflowResponse)
def list_cashflow(
    business_id: str = Query(..., min_length=1, max_length=64),
    start: date = Query(..., description="First day, inclusive"),
    end: date = Query(..., description="Last day, inclusive"),
    db: Session = Depends(get_db),
) -> schemas.CashflowResponse:
    if start > end:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "start cannot be after end", "code": "validation_error"},
        )
    rows = DailySnapshotService.list_range(db, business_id, start, end)
    return schemas.CashflowResponse(
        business_id=business_id,
        start_date=start,
        end_date=end,
        items=[schemas.DailySnapshotRead.model_validate(row) for row in rows],
    )


@router.patch("/{day}", response_model=schemas.DailySnapshotRead)
def update_manual_costs(
    day: date,
    payload: schemas.ManualCostUpdate,
    business_id: str = Query(..., min_length=1, max_length=64),
    db: Session = Depends(get_db),
) -> schemas.DailySnapshotRead:
    """Overwrite advertising spend of a day; totals are re-derived."""

    snapshot = DailySnapshotService.update_manual_costs(
        db, business_id, day, payload.model_dump(exclude_none=True)
    )
    return schemas.DailySnapshotRead.model_validate(snapshot)
