"""Routers for manual per-item shipping costs and order-change notifications."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from .. import schemas
from ..database import get_db
from ..services import OrderChangeService, OrderItemCostService

item_costs_router = APIRouter()
order_changes_router = APIRouter()


def _item_cost_response(rows) -> schemas.OrderItemCostListResponse:
    return schemas.OrderItemCostListResponse(
        items=[schemas.OrderItemCostRead.model_validate(row) for row in rows],
        total_shipping=sum((Decimal(str(row.shipping_cost or 0)) for row in rows), Decimal("0")),
    )


@item_costs_router.get("", response_model=schemas.OrderItemCostListResponse)
def list_item_costs(
    business_id: str = Query(..., min_length=1, max_length=64),
    order_id: Optional[str] = Query(None, max_length=64),
    db: Session = Depends(get_db),
) -> schemas.OrderItemCostListResponse:
    return _item_cost_response(OrderItemCostService.list_for_order(db, business_id, order_id))


@item_costs_router.put("", response_model=schemas.OrderItemCostListResponse)
def save_item_costs(
    payload: schemas.OrderItemCostsUpdate, db: Session = Depends(get_db)
) -> schemas.OrderItemCostListResponse:
    """Store manual shipping costs; they feed the next sync of the order's day."""

    return _item_cost_response(OrderItemCostService.save(db, payload))


@order_changes_router.get("", response_model=schemas.OrderChangeListResponse)
def list_order_changes(
    business_id: str = Query(..., min_length=1, max_length=64),
    unread_only: bool = Query(False),
    limit: int = Query(20, ge=1, le=200),
    db: Session = Depends(get_db),
) -> schemas.OrderChangeListResponse:
    items, unread = OrderChangeService.list_changes(
        db, business_id, unread_only=unread_only, limit=limit
    )
    return schemas.OrderChangeListResponse(
        items=[schemas.OrderChangeRead.model_validate(item) for item in items],
        unread_count=unread,
    )


@order_changes_router.post("/mark-read", response_model=schemas.MarkReadResponse)
def mark_order_changes_read(
    payload: schemas.MarkReadRequest, db: Session = Depends(get_db)
) -> schemas.MarkReadResponse:
    updated = OrderChangeService.mark_read(
        db, payload.business_id, change_ids=payload.change_ids, mark_all=payload.mark_all
    )
    return schemas.MarkReadResponse(updated=updated, message=f"Marked {updated} changes as read")
