"""Full resynchronization of daily snapshots from the commerce platform."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import models
from .business_settings import BusinessSettingsService
from .commerce import CommerceClientFactory, PlatformCredentials, build_commerce_client
from .cost_allocation import days_in_range
from .daily_snapshots import DailySnapshotService
from .errors import CashflowError, ValidationError
from .observability import EVENT_SYNC, EVENT_SYNC_RANGE, ObservabilityService
from .order_changes import OrderItemCostService
from .snapshot_builder import RateCard, build

LOGGER = logging.getLogger(__name__)

MAX_SYNC_RANGE_DAYS = 366


@dataclass
class SyncResult:
    orders_count: int
    snapshot: models.DailyFinancialSnapshot

    @property
    def message(self) -> str:
        return f"Synced {self.orders_count} orders for {self.snapshot.date.isoformat()}"


@dataclass
class SyncFailure:
    date: date
    reason: str


@dataclass
class BulkSyncResult:
    total: int
    results: List[SyncResult] = field(default_factory=list)
    failures: List[SyncFailure] = field(default_factory=list)

    @property
    def synced(self) -> int:
        return len(self.results)

    @property
    def message(self) -> str:
        return f"Synced {self.synced} of {self.total} days"


class SyncOrchestrator:
    """Rebuild the snapshot of a day from the platform's current orders."""

    def __init__(
        self, db: Session, client_factory: CommerceClientFactory = build_commerce_client
    ) -> None:
        self.db = db
        self.client_factory = client_factory

    def sync(
        self,
        business_id: str,
        day: date,
        credentials: Optional[PlatformCredentials] = None,
        *,
        rates: Optional[RateCard] = None,
    ) -> SyncResult:
        with ObservabilityService.timed_event(
            self.db, EVENT_SYNC, business_id=business_id, day=day
        ) as timer:
            result = self._sync(business_id, day, credentials, rates)
            timer.tags["orders_count"] = result.orders_count
        return result

    def _sync(
        self,
        business_id: str,
        day: date,
        credentials: Optional[PlatformCredentials],
        rates: Optional[RateCard],
    ) -> SyncResult:
        settings = BusinessSettingsService.require(self.db, business_id)
        rates = rates or RateCard.from_settings(settings)
        credentials = credentials or BusinessSettingsService.credentials(settings)

        # Fetched before any write so a platform failure leaves the stored day untouched.
        client = self.client_factory(credentials)
        orders = client.list_orders(day, day, rates.valid_order_statuses)

        manual_shipping = None
        if rates.manual_shipping_per_item:
            manual_shipping = OrderItemCostService.shipping_for_date(self.db, business_id, day)

        snapshot = DailySnapshotService.upsert(
            self.db,
            business_id,
            day,
            lambda existing: build(
                business_id, day, orders, existing, rates, manual_shipping=manual_shipping
            ),
        )
        LOGGER.info(
            "Synced %s for business %s: %s orders, revenue %s",
            day,
            business_id,
            snapshot.orders_count,
            snapshot.revenue,
        )
        return SyncResult(orders_count=snapshot.orders_count, snapshot=snapshot)

    def sync_range(self, business_id: str, start: date, end: date) -> BulkSyncResult:
        """Sync every day of ``[start, end]``; one failing day never stops the others."""

        days = days_in_range(start, end)
        if not days:
            raise ValidationError("end_date", "must not be before start_date")
        if len(days) > MAX_SYNC_RANGE_DAYS:
            raise ValidationError("end_date", f"range is limited to {MAX_SYNC_RANGE_DAYS} days")

        settings = BusinessSettingsService.require(self.db, business_id)
        rates = RateCard.from_settings(settings)
        credentials = BusinessSettingsService.credentials(settings)

        outcome = BulkSyncResult(total=len(days))
        with ObservabilityService.timed_event(
            self.db,
            EVENT_SYNC_RANGE,
            business_id=business_id,
            day=start,
            tags={"start": start.isoformat(), "end": end.isoformat()},
        ) as timer:
            for day in days:
                try:
                    outcome.results.append(self.sync(business_id, day, credentials, rates=rates))
                except (CashflowError, SQLAlchemyError) as exc:
                    self.db.rollback()
                    LOGGER.warning("Sync of %s for business %s failed: %s", day, business_id, exc)
                    outcome.failures.append(SyncFailure(date=day, reason=str(exc)))
            timer.tags.update({"synced": outcome.synced, "failed": len(outcome.failures)})
        return outcome
