"""Processing of order events pushed by the commerce platform."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import models
from ..database import read_int_env
from .business_settings import BusinessSettingsService
from .commerce import CommerceClientFactory, PlatformOrder, build_commerce_client
from .daily_snapshots import DailySnapshotService
from .errors import ConfigurationError, UpstreamError, ValidationError
from .observability import EVENT_WEBHOOK, ObservabilityService
from .order_changes import OrderChangeService, OrderItemCostService, describe_change
from .snapshot_builder import apply_order_increment
from .sync import SyncOrchestrator

LOGGER = logging.getLogger(__name__)

TOPIC_ORDER_CREATED = "order.created"
TOPIC_ORDER_UPDATED = "order.updated"
TOPIC_ORDER_DELETED = "order.deleted"

DEDUP_RETENTION_ENV = "WEBHOOK_DEDUP_RETENTION_DAYS"
DEFAULT_DEDUP_RETENTION_DAYS = 30


class WebhookStatus:
    PROCESSED = "processed"
    RECOMPUTED = "recomputed"
    DUPLICATE = "duplicate"
    IGNORED = "ignored"
    NOT_CONFIGURED = "not_configured"
    RECOMPUTE_FAILED = "recompute_failed"
    PING = "ping"


@dataclass
class WebhookOutcome:
    status: str
    topic: str
    message: str
    order_id: Optional[str] = None
    date: Optional[date] = None


def _order_values(order: PlatformOrder) -> dict[str, Any]:
    return {"status": order.status, "total": str(order.total)}


def _today() -> date:
    return datetime.now(timezone.utc).date()


def purge_expired_deliveries(db: Session, *, now: Optional[datetime] = None) -> int:
    """Drop dedup markers older than the retention window."""

    retention = read_int_env(DEDUP_RETENTION_ENV, DEFAULT_DEDUP_RETENTION_DAYS)
    cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=retention)
    removed = (
        db.query(models.ProcessedWebhookDelivery)
        .filter(models.ProcessedWebhookDelivery.processed_at < cutoff)
        .delete(synchronize_session=False)
    )
    if removed:
        LOGGER.info("Purged %s webhook deliveries older than %s days", removed, retention)
    return int(removed or 0)


class WebhookEventProcessor:
    """Apply ``order.created`` incrementally and recompute the day for anything else.

    Only a brand-new counted order is a pure addition. Updates and deletions
    may move an order in or out of the counted set, so the whole day is rebuilt
    from the platform instead.
    """

    def __init__(
        self, db: Session, client_factory: CommerceClientFactory = build_commerce_client
    ) -> None:
        self.db = db
        self.client_factory = client_factory

    def process(
        self,
        business_id: str,
        topic: str,
        payload: dict[str, Any],
        delivery_id: Optional[str] = None,
    ) -> WebhookOutcome:
        topic = (topic or "").strip().lower()
        if not topic.startswith("order."):
            return WebhookOutcome(WebhookStatus.IGNORED, topic, "Not an order event")

        try:
            order = PlatformOrder.from_payload(payload)
        except ValueError as exc:
            raise ValidationError("payload", str(exc)) from exc

        with ObservabilityService.timed_event(
            self.db,
            EVENT_WEBHOOK,
            business_id=business_id,
            tags={"topic": topic, "order_id": order.id},
        ) as timer:
            try:
                if topic == TOPIC_ORDER_CREATED:
                    outcome = self._order_created(business_id, order, delivery_id)
                elif topic == TOPIC_ORDER_UPDATED:
                    outcome = self._order_updated(business_id, order)
                elif topic == TOPIC_ORDER_DELETED:
                    outcome = self._order_deleted(business_id, order)
                else:
                    outcome = WebhookOutcome(
                        WebhookStatus.IGNORED, topic, "Unsupported order event", order.id
                    )
            except ConfigurationError as exc:
                LOGGER.warning("Webhook %s for business %s not applied: %s", topic, business_id, exc)
                self.db.rollback()
                self._audit_unapplied(business_id, topic, order)
                self.db.commit()
                outcome = WebhookOutcome(
                    WebhookStatus.NOT_CONFIGURED, topic, str(exc), order.id, order.order_date
                )
            timer.day = outcome.date
            timer.tags["status"] = outcome.status
        return outcome

    def _order_created(
        self, business_id: str, order: PlatformOrder, delivery_id: Optional[str]
    ) -> WebhookOutcome:
        rates = BusinessSettingsService.rate_card(self.db, business_id)
        day = order.order_date or _today()

        if not rates.counts(order):
            self._audit(
                business_id,
                order,
                day,
                models.OrderChangeType.CREATED,
                f"Order #{order.number or order.id} created with status {order.status} (not counted)",
                new_values=_order_values(order),
            )
            self.db.commit()
            return WebhookOutcome(
                WebhookStatus.IGNORED,
                TOPIC_ORDER_CREATED,
                f"Order status {order.status or 'unknown'} is not counted",
                order.id,
                day,
            )

        with DailySnapshotService.locked(business_id, day):
            if self._already_processed(business_id, order.id, TOPIC_ORDER_CREATED):
                LOGGER.info("Ignoring redelivered %s for order %s", TOPIC_ORDER_CREATED, order.id)
                return WebhookOutcome(
                    WebhookStatus.DUPLICATE,
                    TOPIC_ORDER_CREATED,
                    "Order already applied",
                    order.id,
                    day,
                )

            existing = DailySnapshotService.load_for_write(self.db, business_id, day)
            manual_shipping = None
            if rates.manual_shipping_per_item:
                manual_shipping = OrderItemCostService.shipping_for_date(self.db, business_id, day)
            draft = apply_order_increment(
                existing,
                order,
                rates,
                business_id=business_id,
                day=day,
                manual_shipping=manual_shipping,
            )
            DailySnapshotService.write(self.db, draft)
            self.db.add(
                models.ProcessedWebhookDelivery(
                    business_id=business_id,
                    order_id=order.id,
                    topic=TOPIC_ORDER_CREATED,
                    delivery_id=delivery_id,
                )
            )
            try:
                self.db.flush()
            except IntegrityError:
                # Another worker recorded the same delivery first.
                self.db.rollback()
                return WebhookOutcome(
                    WebhookStatus.DUPLICATE,
                    TOPIC_ORDER_CREATED,
                    "Order already applied",
                    order.id,
                    day,
                )
            self._audit(
                business_id,
                order,
                day,
                models.OrderChangeType.CREATED,
                f"Order #{order.number or order.id} created: {order.total}",
                new_values=_order_values(order),
            )
            self.db.commit()

        purge_expired_deliveries(self.db)
        self.db.commit()
        LOGGER.info("Added order %s to %s for business %s", order.id, day, business_id)
        return WebhookOutcome(
            WebhookStatus.PROCESSED, TOPIC_ORDER_CREATED, "Order added", order.id, day
        )

    def _order_updated(self, business_id: str, order: PlatformOrder) -> WebhookOutcome:
        previous = OrderChangeService.latest_for_order(self.db, business_id, order.id)
        old_values = previous.new_values if previous is not None else None
        new_values = _order_values(order)
        change_type, summary = describe_change(old_values, new_values)
        day = order.order_date or (previous.order_date if previous is not None else None) or _today()

        outcome = self._recompute(business_id, TOPIC_ORDER_UPDATED, order.id, day)
        self._audit(
            business_id,
            order,
            day,
            change_type,
            f"Order #{order.number or order.id}: {summary}",
            old_values=old_values,
            new_values=new_values,
        )
        self.db.commit()
        return outcome

    def _order_deleted(self, business_id: str, order: PlatformOrder) -> WebhookOutcome:
        previous = OrderChangeService.latest_for_order(self.db, business_id, order.id)
        old_values = previous.new_values if previous is not None else None
        day = order.order_date or (previous.order_date if previous is not None else None)
        number = order.number or (previous.order_number if previous is not None else None)

        if day is None:
            LOGGER.warning(
                "Deleted order %s of business %s has no known date; day not recomputed",
                order.id,
                business_id,
            )
            outcome = WebhookOutcome(
                WebhookStatus.IGNORED,
                TOPIC_ORDER_DELETED,
                "Order date unknown; nothing to recompute",
                order.id,
            )
        else:
            outcome = self._recompute(business_id, TOPIC_ORDER_DELETED, order.id, day)

        self._audit(
            business_id,
            order,
            day,
            models.OrderChangeType.DELETED,
            f"Order #{number or order.id} deleted",
            order_number=number,
            old_values=old_values,
        )
        self.db.commit()
        return outcome

    def _recompute(self, business_id: str, topic: str, order_id: str, day: date) -> WebhookOutcome:
        try:
            result = SyncOrchestrator(self.db, self.client_factory).sync(business_id, day)
        except (UpstreamError, ConfigurationError) as exc:
            self.db.rollback()
            LOGGER.error(
                "Recompute of %s for business %s after %s failed; resync manually: %s",
                day,
                business_id,
                topic,
                exc,
            )
            return WebhookOutcome(
                WebhookStatus.RECOMPUTE_FAILED, topic, str(exc), order_id, day
            )
        return WebhookOutcome(
            WebhookStatus.RECOMPUTED, topic, result.message, order_id, day
        )

    def _audit_unapplied(self, business_id: str, topic: str, order: PlatformOrder) -> None:
        """Record an event that reached a business without settings."""

        previous = OrderChangeService.latest_for_order(self.db, business_id, order.id)
        old_values = previous.new_values if previous is not None else None
        day = order.order_date or (previous.order_date if previous is not None else None)
        label = f"Order #{order.number or order.id}"
        if topic == TOPIC_ORDER_CREATED:
            change_type = models.OrderChangeType.CREATED
            summary = f"{label} created: {order.total} (not applied)"
            new_values: Optional[dict[str, Any]] = _order_values(order)
        elif topic == TOPIC_ORDER_UPDATED:
            new_values = _order_values(order)
            change_type, change_summary = describe_change(old_values, new_values)
            summary = f"{label}: {change_summary} (not applied)"
        else:
            change_type = models.OrderChangeType.DELETED
            summary = f"{label} deleted (not applied)"
            new_values = None
        self._audit(
            business_id,
            order,
            day,
            change_type,
            summary,
            old_values=old_values,
            new_values=new_values,
        )

    def _already_processed(self, business_id: str, order_id: str, topic: str) -> bool:
        return (
            self.db.query(models.ProcessedWebhookDelivery.id)
            .filter(
                models.ProcessedWebhookDelivery.business_id == business_id,
                models.ProcessedWebhookDelivery.order_id == order_id,
                models.ProcessedWebhookDelivery.topic == topic,
            )
            .first()
            is not None
        )

    def _audit(
        self,
        business_id: str,
        order: PlatformOrder,
        day: Optional[date],
        change_type: models.OrderChangeType,
        summary: str,
        *,
        order_number: Optional[str] = None,
        old_values: Optional[dict[str, Any]] = None,
        new_values: Optional[dict[str, Any]] = None,
    ) -> None:
        OrderChangeService.record(
            self.db,
            business_id=business_id,
            order_id=order.id,
            order_number=order_number or order.number,
            order_date=day,
            change_type=change_type,
            summary=summary,
            old_values=old_values,
            new_values=new_values,
        )
