"""Persistence of daily financial snapshots."""

from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from threading import Lock
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from .. import models
from .snapshot_builder import DailySnapshotDraft, SnapshotFigures

LOGGER = logging.getLogger(__name__)

MANUAL_COST_FIELDS = ("google_ads_cost", "facebook_ads_cost", "tiktok_ads_cost")


@dataclass
class _KeyLock:
    lock: Lock
    holders: int = 0


class SnapshotLockRegistry:
    """Serializes writers of the same ``(business_id, date)`` within the process."""

    _guard = Lock()
    _locks: Dict[Tuple[str, date], _KeyLock] = {}

    @classmethod
    @contextmanager
    def hold(cls, business_id: str, day: date) -> Iterator[None]:
        key = (business_id, day)
        with cls._guard:
            entry = cls._locks.get(key)
            if entry is None:
                entry = cls._locks[key] = _KeyLock(Lock())
            entry.holders += 1
        entry.lock.acquire()
        try:
            yield
        finally:
            entry.lock.release()
            with cls._guard:
                entry.holders -= 1
                if entry.holders == 0:
                    cls._locks.pop(key, None)

    @classmethod
    def active_keys(cls) -> List[Tuple[str, date]]:
        with cls._guard:
            return list(cls._locks)


def _dialect_insert(db: Session):
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        return None
    return insert


class DailySnapshotService:
    """Read and write ``DailyFinancialSnapshot`` rows.

    Writers call :meth:`locked` around their read-compute-write cycle so that a
    manual edit, a resync and a webhook for the same day never interleave. The
    write itself is a single ``INSERT ... ON CONFLICT DO UPDATE``, which keeps
    concurrent processes from creating duplicate rows.
    """

    @staticmethod
    @contextmanager
    def locked(business_id: str, day: date) -> Iterator[None]:
        with SnapshotLockRegistry.hold(business_id, day):
            yield

    @staticmethod
    def get(db: Session, business_id: str, day: date) -> Optional[models.DailyFinancialSnapshot]:
        return (
            db.query(models.DailyFinancialSnapshot)
            .filter(
                models.DailyFinancialSnapshot.business_id == business_id,
                models.DailyFinancialSnapshot.date == day,
            )
            .first()
        )

    @staticmethod
    def claim_legacy_row(db: Session, business_id: str, day: date) -> bool:
        """Assign an un-scoped row of ``day`` to ``business_id`` if no scoped row exists."""

        scoped = (
            db.query(models.DailyFinancialSnapshot.id)
            .filter(
                models.DailyFinancialSnapshot.business_id == business_id,
                models.DailyFinancialSnapshot.date == day,
            )
            .first()
        )
        if scoped is not None:
            return False

        legacy_id = (
            select(models.DailyFinancialSnapshot.id)
            .where(
                models.DailyFinancialSnapshot.business_id.is_(None),
                models.DailyFinancialSnapshot.date == day,
            )
            .limit(1)
            .scalar_subquery()
        )
        result = db.execute(
            update(models.DailyFinancialSnapshot)
            .where(
                models.DailyFinancialSnapshot.id == legacy_id,
                models.DailyFinancialSnapshot.business_id.is_(None),
            )
            .values(business_id=business_id)
            .execution_options(synchronize_session=False)
        )
        claimed = bool(result.rowcount)
        if claimed:
            LOGGER.info("Adopted legacy snapshot of %s for business %s", day, business_id)
        return claimed

    @classmethod
    def load_for_write(
        cls, db: Session, business_id: str, day: date
    ) -> Optional[models.DailyFinancialSnapshot]:
        """Return the row a writer of ``day`` must start from, adopting legacy data."""

        cls.claim_legacy_row(db, business_id, day)
        return (
            db.query(models.DailyFinancialSnapshot)
            .filter(
                models.DailyFinancialSnapshot.business_id == business_id,
                models.DailyFinancialSnapshot.date == day,
            )
            .with_for_update(of=models.DailyFinancialSnapshot)
            .populate_existing()
            .first()
        )

    @classmethod
    def write(cls, db: Session, draft: DailySnapshotDraft) -> models.DailyFinancialSnapshot:
        """Upsert ``draft`` on ``(business_id, date)`` without committing."""

        values = draft.values()
        insert = _dialect_insert(db)
        if insert is None:
            cls._write_fallback(db, draft)
        else:
            updates = {key: value for key, value in values.items() if key not in ("business_id", "date")}
            statement = (
                insert(models.DailyFinancialSnapshot)
                .values(id=str(uuid.uuid4()), **values)
                .on_conflict_do_update(
                    index_elements=["business_id", "date"],
                    set_={**updates, "updated_at": func.now()},
                )
            )
            db.execute(statement)

        return (
            db.query(models.DailyFinancialSnapshot)
            .filter(
                models.DailyFinancialSnapshot.business_id == draft.business_id,
                models.DailyFinancialSnapshot.date == draft.day,
            )
            .populate_existing()
            .one()
        )

    @classmethod
    def upsert(
        cls,
        db: Session,
        business_id: str,
        day: date,
        compose: Callable[[Optional[models.DailyFinancialSnapshot]], DailySnapshotDraft],
    ) -> models.DailyFinancialSnapshot:
        """Lock the day, derive a draft from its current row and commit the upsert."""

        with cls.locked(business_id, day):
            try:
                existing = cls.load_for_write(db, business_id, day)
                snapshot = cls.write(db, compose(existing))
                db.commit()
            except Exception:
                # A pending legacy claim must not leak into a later commit.
                db.rollback()
                raise
        db.refresh(snapshot)
        return snapshot

    @staticmethod
    def _write_fallback(db: Session, draft: DailySnapshotDraft) -> None:
        snapshot = (
            db.query(models.DailyFinancialSnapshot)
            .filter(
                models.DailyFinancialSnapshot.business_id == draft.business_id,
                models.DailyFinancialSnapshot.date == draft.day,
            )
            .with_for_update(of=models.DailyFinancialSnapshot)
            .first()
        )
        if snapshot is None:
            snapshot = models.DailyFinancialSnapshot(business_id=draft.business_id, date=draft.day)
        for key, value in draft.figures.as_dict().items():
            setattr(snapshot, key, value)
        db.add(snapshot)
        db.flush()

    @classmethod
    def update_manual_costs(
        cls,
        db: Session,
        business_id: str,
        day: date,
        changes: Dict[str, Decimal],
    ) -> models.DailyFinancialSnapshot:
        """Overwrite advertising costs of ``day`` and re-derive its totals."""

        unknown = set(changes) - set(MANUAL_COST_FIELDS)
        if unknown:
            raise ValueError(f"Unsupported manual fields: {', '.join(sorted(unknown))}")

        snapshot = cls.upsert(
            db,
            business_id,
            day,
            lambda existing: DailySnapshotDraft(
                business_id, day, SnapshotFigures.from_snapshot(existing).replace(**changes)
            ),
        )
        LOGGER.info("Updated manual costs of %s for business %s", day, business_id)
        return snapshot

    @staticmethod
    def list_range(
        db: Session, business_id: str, start: date, end: date
    ) -> List[models.DailyFinancialSnapshot]:
        return (
            db.query(models.DailyFinancialSnapshot)
            .filter(
                models.DailyFinancialSnapshot.business_id == business_id,
                models.DailyFinancialSnapshot.date >= start,
                models.DailyFinancialSnapshot.date <= end,
            )
            .order_by(models.DailyFinancialSnapshot.date.asc())
            .all()
        )
