"""Persistence of operational metric events for syncs and webhook deliveries."""

from __future__ import annotations

import logging
import time
from datetime import date
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy.orm import Session

from .. import models
from .errors import ConfigurationError, ValidationError

LOGGER = logging.getLogger(__name__)

EVENT_SYNC = "snapshot.sync"
EVENT_SYNC_RANGE = "snapshot.sync_range"
EVENT_WEBHOOK = "webhook.order"


class MetricOutcome(str):
    SUCCESS = "success"
    REJECTED = "rejected"
    ERROR = "error"


class ObservabilityService:
    """Records timing and outcome of engine operations; never breaks the caller."""

    @staticmethod
    def record_event(
        db: Session,
        event_type: str,
        outcome: str,
        *,
        business_id: Optional[str] = None,
        day: Optional[date] = None,
        duration_ms: float | None = None,
        tags: dict[str, Any] | None = None,
        error: Optional[str] = None,
    ) -> None:
        event = models.OperationalMetricEvent(
            business_id=business_id,
            day=day,
            event_type=event_type,
            outcome=outcome,
            duration_ms=Decimal(str(round(duration_ms, 3))) if duration_ms is not None else None,
            tags=tags or {},
            error=error,
        )
        ObservabilityService._persist(db, event)

    @staticmethod
    def timed_event(
        db: Session,
        event_type: str,
        *,
        business_id: Optional[str] = None,
        day: Optional[date] = None,
        tags: dict[str, Any] | None = None,
    ):
        """Context manager measuring the wrapped block.

        Configuration and validation failures are recorded as ``rejected``,
        anything else raised as ``error``. The timer's ``day`` may be set
        inside the block once the affected day is known.
        """

        class _Timer:
            def __enter__(self):
                self._start = time.perf_counter()
                self.day = day
                self.tags: dict[str, Any] = dict(tags or {})
                return self

            def __exit__(self, exc_type, exc, tb):
                duration = (time.perf_counter() - self._start) * 1000
                if exc is None:
                    outcome = MetricOutcome.SUCCESS
                elif isinstance(exc, (ConfigurationError, ValidationError)):
                    outcome = MetricOutcome.REJECTED
                else:
                    outcome = MetricOutcome.ERROR
                ObservabilityService.record_event(
                    db,
                    event_type,
                    outcome,
                    business_id=business_id,
                    day=self.day,
                    duration_ms=duration,
                    tags=self.tags,
                    error=str(exc) if exc else None,
                )
                return False

        return _Timer()

    @staticmethod
    def _persist(db: Session, event: models.OperationalMetricEvent) -> None:
        try:
            engine = db.get_bind()
            with Session(bind=engine) as metrics_session:
                metrics_session.add(event)
                metrics_session.commit()
        except Exception:  # pragma: no cover - metrics failures should not break flows
            LOGGER.exception("Failed to persist operational metric event")
