from __future__ import annotations

from alembic.script import ScriptDirectory
from sqlalchemy import create_engine, inspect, text

from backend.cashflow.database import Base
from backend.cashflow.migrations import (
    REVISION_SENTINELS,
    build_alembic_config,
    detect_revision,
    read_lock_timeout,
    run_database_migrations,
)


def _expected_head() -> str:
    return ScriptDirectory.from_config(build_alembic_config()).get_current_head()


def _version(url: str) -> str:
    engine = create_engine(url, connect_args={"check_same_thread": False})
    try:
        with engine.connect() as connection:
            return connection.scalar(text("SELECT version_num FROM alembic_version"))
    finally:
        engine.dispose()


def test_run_database_migrations_upgrades_existing_database(tmp_path) -> None:
    url = f"sqlite:///{tmp_path / 'legacy.db'}"

    engine = create_engine(url, connect_args={"check_same_thread": False})
    with engine.begin() as connection:
        connection.execute(text("CREATE TABLE legacy_table (id INTEGER PRIMARY KEY)"))
    engine.dispose()

    run_database_migrations(url)

    engine = create_engine(url, connect_args={"check_same_thread": False})
    tables = inspect(engine).get_table_names()
    engine.dispose()

    assert "legacy_table" in tables
    assert "daily_financial_snapshots" in tables
    assert "order_changes" in tables
    assert _version(url) == _expected_head()


def test_run_database_migrations_stamps_head_for_current_schema(tmp_path) -> None:
    url = f"sqlite:///{tmp_path / 'current.db'}"

    engine = create_engine(url, connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)
    engine.dispose()

    run_database_migrations(url)

    assert _version(url) == _expected_head()


def test_run_database_migrations_is_idempotent(tmp_path) -> None:
    url = f"sqlite:///{tmp_path / 'fresh.db'}"

    run_database_migrations(url)
    run_database_migrations(url)

    assert _version(url) == _expected_head()


def test_detect_revision_matches_the_oldest_schema(tmp_path) -> None:
    url = f"sqlite:///{tmp_path / 'core.db'}"
    engine = create_engine(url, connect_args={"check_same_thread": False})
    with engine.begin() as connection:
        connection.execute(
            text("CREATE TABLE daily_financial_snapshots (id VARCHAR PRIMARY KEY, date DATE)")
        )
        connection.execute(
            text("CREATE INDEX daily_snapshots_date_idx ON daily_financial_snapshots (date)")
        )

    try:
        assert detect_revision(inspect(engine), REVISION_SENTINELS) == "20250110_0001"
    finally:
        engine.dispose()


def test_read_lock_timeout_ignores_invalid_values(monkeypatch) -> None:
    monkeypatch.setenv("ALEMBIC_MIGRATION_LOCK_TIMEOUT", "-3")
    assert read_lock_timeout() == 30.0

    monkeypatch.setenv("ALEMBIC_MIGRATION_LOCK_TIMEOUT", "12.5")
    assert read_lock_timeout() == 12.5
