"""Order audit trail and manual per-item shipping costs."""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Any, List, Optional, Sequence, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from .. import models, schemas

LOGGER = logging.getLogger(__name__)


def describe_change(
    old_values: Optional[dict[str, Any]], new_values: dict[str, Any]
) -> Tuple[models.OrderChangeType, str]:
    """Classify an order update and summarize every field that moved."""

    if not old_values:
        return models.OrderChangeType.UPDATED, "Order updated"

    changes: List[str] = []
    status_moved = old_values.get("status") != new_values.get("status")
    total_moved = _as_decimal(old_values.get("total")) != _as_decimal(new_values.get("total"))
    if status_moved:
        changes.append(f"status {old_values.get('status')} -> {new_values.get('status')}")
    if total_moved:
        changes.append(f"total {old_values.get('total')} -> {new_values.get('total')}")

    if status_moved:
        change_type = models.OrderChangeType.STATUS_CHANGED
    elif total_moved:
        change_type = models.OrderChangeType.TOTAL_CHANGED
    else:
        change_type = models.OrderChangeType.UPDATED
    summary = "; ".join(changes) if changes else "Order updated"
    return change_type, summary


def _as_decimal(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    return Decimal(str(value))


class OrderChangeService:
    """Append-only order change records consumed by the notification surface."""

    @staticmethod
    def latest_for_order(
        db: Session, business_id: str, order_id: str
    ) -> Optional[models.OrderChangeRecord]:
        return (
            db.query(models.OrderChangeRecord)
            .filter(
                models.OrderChangeRecord.business_id == business_id,
                models.OrderChangeRecord.order_id == order_id,
            )
            .order_by(models.OrderChangeRecord.created_at.desc())
            .first()
        )

    @staticmethod
    def record(
        db: Session,
        *,
        business_id: str,
        order_id: str,
        change_type: models.OrderChangeType,
        summary: str,
        order_number: Optional[str] = None,
        order_date: Optional[date] = None,
        old_values: Optional[dict[str, Any]] = None,
        new_values: Optional[dict[str, Any]] = None,
    ) -> Optional[models.OrderChangeRecord]:
        """Append a record inside a savepoint; failures are logged, not raised."""

        try:
            with db.begin_nested():
                entry = models.OrderChangeRecord(
                    business_id=business_id,
                    order_id=order_id,
                    order_number=order_number,
                    order_date=order_date,
                    change_type=change_type,
                    old_values=old_values,
                    new_values=new_values,
                    summary=summary,
                )
                db.add(entry)
                db.flush()
        except Exception:  # audit failures must not undo the financial update
            LOGGER.exception(
                "Failed to record %s change for order %s of business %s",
                getattr(change_type, "value", change_type),
                order_id,
                business_id,
            )
            return None
        return entry

    @staticmethod
    def list_changes(
        db: Session, business_id: str, *, unread_only: bool = False, limit: int = 20
    ) -> Tuple[List[models.OrderChangeRecord], int]:
        query = db.query(models.OrderChangeRecord).filter(
            models.OrderChangeRecord.business_id == business_id
        )
        if unread_only:
            query = query.filter(models.OrderChangeRecord.is_read.is_(False))
        items = (
            query.order_by(models.OrderChangeRecord.created_at.desc())
            .limit(max(limit, 1))
            .all()
        )
        unread = (
            db.query(func.count(models.OrderChangeRecord.id))
            .filter(
                models.OrderChangeRecord.business_id == business_id,
                models.OrderChangeRecord.is_read.is_(False),
            )
            .scalar()
        )
        return items, int(unread or 0)

    @staticmethod
    def mark_read(
        db: Session,
        business_id: str,
        *,
        change_ids: Sequence[str] = (),
        mark_all: bool = False,
    ) -> int:
        query = db.query(models.OrderChangeRecord).filter(
            models.OrderChangeRecord.business_id == business_id,
            models.OrderChangeRecord.is_read.is_(False),
        )
        if not mark_all:
            query = query.filter(models.OrderChangeRecord.id.in_(list(change_ids)))
        updated = query.update({models.OrderChangeRecord.is_read: True}, synchronize_session=False)
        db.commit()
        return int(updated or 0)


class OrderItemCostService:
    """Manual shipping costs entered per order line item."""

    @staticmethod
    def list_for_order(
        db: Session, business_id: str, order_id: Optional[str] = None
    ) -> List[models.OrderItemCost]:
        query = db.query(models.OrderItemCost).filter(
            models.OrderItemCost.business_id == business_id
        )
        if order_id:
            query = query.filter(models.OrderItemCost.order_id == order_id)
        return query.order_by(
            models.OrderItemCost.order_date.asc(), models.OrderItemCost.line_item_id.asc()
        ).all()

    @staticmethod
    def shipping_for_date(db: Session, business_id: str, day: date) -> Decimal:
        total = (
            db.query(func.coalesce(func.sum(models.OrderItemCost.shipping_cost), 0))
            .filter(
                models.OrderItemCost.business_id == business_id,
                models.OrderItemCost.order_date == day,
            )
            .scalar()
        )
        return Decimal(str(total or 0))

    @classmethod
    def save(cls, db: Session, data: schemas.OrderItemCostsUpdate) -> List[models.OrderItemCost]:
        existing = {
            row.line_item_id: row for row in cls.list_for_order(db, data.business_id, data.order_id)
        }
        for item in data.items:
            row = existing.get(item.line_item_id)
            if row is None:
                row = models.OrderItemCost(
                    business_id=data.business_id,
                    order_id=data.order_id,
                    line_item_id=item.line_item_id,
                )
                db.add(row)
            row.product_name = item.product_name
            row.order_date = data.order_date
            row.shipping_cost = item.shipping_cost
        db.commit()
        return cls.list_for_order(db, data.business_id, data.order_id)
