"""Apply Alembic migrations at startup, serialized across worker processes."""

from __future__ import annotations

import errno
import logging
import os
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterable, Iterator, Optional, Sequence

from alembic import command
from alembic.config import Config
from alembic.script import ScriptDirectory
from sqlalchemy import create_engine, inspect
from sqlalchemy.engine.reflection import Inspector

from .database import SQLALCHEMY_DATABASE_URL

LOGGER = logging.getLogger(__name__)

BACKEND_DIR = Path(__file__).resolve().parent.parent
LOCK_FILENAME = ".alembic-migration.lock"
LOCK_POLL_INTERVAL = 0.25
LOCK_TIMEOUT_ENV = "ALEMBIC_MIGRATION_LOCK_TIMEOUT"
DEFAULT_LOCK_TIMEOUT = 30.0

if os.name == "posix":  # pragma: no cover - platform specific
    import fcntl
else:  # pragma: no cover - platform specific
    import msvcrt

RevisionSentinel = tuple[str, Callable[[Inspector], bool]]


def _table_exists(inspector: Inspector, table_name: str) -> bool:
    return inspector.has_table(table_name)


def _index_exists(inspector: Inspector, table_name: str, index_name: str) -> bool:
    if not inspector.has_table(table_name):
        return False
    return any(index["name"] == index_name for index in inspector.get_indexes(table_name))


def _column_exists(inspector: Inspector, table_name: str, column_name: str) -> bool:
    if not inspector.has_table(table_name):
        return False
    return any(column["name"] == column_name for column in inspector.get_columns(table_name))


# Newest first: the first matching check names the revision an unversioned
# database already corresponds to.
REVISION_SENTINELS: Sequence[RevisionSentinel] = (
    (
        "20250215_0002",
        lambda inspector: (
            _table_exists(inspector, "order_changes")
            and _table_exists(inspector, "processed_webhook_deliveries")
            and _column_exists(inspector, "operational_metric_events", "day")
        ),
    ),
    (
        "20250110_0001",
        lambda inspector: (
            _table_exists(inspector, "daily_financial_snapshots")
            and _index_exists(inspector, "daily_financial_snapshots", "daily_snapshots_date_idx")
        ),
    ),
)


def read_lock_timeout() -> float:
    raw = os.getenv(LOCK_TIMEOUT_ENV)
    if not raw:
        return DEFAULT_LOCK_TIMEOUT
    try:
        value = float(raw)
    except ValueError:
        value = 0.0
    if value <= 0:
        LOGGER.warning(
            "Ignoring %s=%s; waiting %.1f seconds for the migration lock",
            LOCK_TIMEOUT_ENV,
            raw,
            DEFAULT_LOCK_TIMEOUT,
        )
        return DEFAULT_LOCK_TIMEOUT
    return value


def _lock_is_busy(error: OSError) -> bool:
    if isinstance(error, BlockingIOError):
        return True
    if getattr(error, "errno", None) in {errno.EACCES, errno.EAGAIN, errno.EBUSY}:
        return True
    # ERROR_SHARING_VIOLATION / ERROR_LOCK_VIOLATION on Windows
    return getattr(error, "winerror", None) in {32, 33}


def _try_lock(handle) -> None:
    if os.name == "posix":  # pragma: no cover - platform specific
        fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
    else:  # pragma: no cover - platform specific
        msvcrt.locking(handle.fileno(), msvcrt.LK_NBLCK, 1)


def _unlock(handle) -> None:
    try:
        if os.name == "posix":  # pragma: no cover - platform specific
            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
        else:  # pragma: no cover - platform specific
            msvcrt.locking(handle.fileno(), msvcrt.LK_UNLCK, 1)
    except OSError:  # pragma: no cover - best effort cleanup
        LOGGER.debug("Migration lock was already released")


@contextmanager
def migration_lock(path: Path, *, timeout: float) -> Iterator[None]:
    """Hold an exclusive file lock so only one worker migrates at a time."""

    path.parent.mkdir(parents=True, exist_ok=True)
    deadline = time.monotonic() + timeout
    with path.open("a+") as handle:
        while True:
            try:
                _try_lock(handle)
                break
            except OSError as error:
                if not _lock_is_busy(error):
                    raise
                if time.monotonic() >= deadline:
                    raise TimeoutError("Timed out waiting for Alembic migration lock") from error
                time.sleep(LOCK_POLL_INTERVAL)
        try:
            yield
        finally:
            _unlock(handle)


def detect_revision(inspector: Inspector, sentinels: Iterable[RevisionSentinel]) -> Optional[str]:
    for revision, check in sentinels:
        if check(inspector):
            return revision
    return None


def build_alembic_config(database_url: Optional[str] = None) -> Config:
    config = Config(str(BACKEND_DIR / "alembic.ini"))
    config.set_main_option("script_location", str(BACKEND_DIR / "alembic"))
    config.set_main_option(
        "sqlalchemy.url", database_url or os.getenv("DATABASE_URL", SQLALCHEMY_DATABASE_URL)
    )
    return config


def run_database_migrations(database_url: Optional[str] = None) -> None:
    """Bring the schema to the latest revision.

    Databases created before Alembic tracked them are stamped with the
    revision their tables match, then upgraded from there.
    """

    config = build_alembic_config(database_url)
    url = config.get_main_option("sqlalchemy.url")
    LOGGER.info("Running database migrations at %s", url)

    with migration_lock(BACKEND_DIR / LOCK_FILENAME, timeout=read_lock_timeout()):
        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
        engine = create_engine(url, connect_args=connect_args)
        try:
            inspector = inspect(engine)
            user_tables = [name for name in inspector.get_table_names() if name != "alembic_version"]
            if user_tables and not inspector.has_table("alembic_version"):
                detected = detect_revision(inspector, REVISION_SENTINELS)
                if detected:
                    LOGGER.info("Stamping existing schema as revision %s", detected)
                    command.stamp(config, detected)
                    if detected == ScriptDirectory.from_config(config).get_current_head():
                        return
                else:
                    LOGGER.warning("Existing tables do not match a known revision; upgrading anyway")
            command.upgrade(config, "head")
        finally:
            engine.dispose()
