"""Alembic entry point; migrations target the cashflow model metadata."""

from __future__ import annotations

import sys
from logging.config import fileConfig
from pathlib import Path

from alembic import context
from sqlalchemy import create_engine, pool

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from cashflow import models  # noqa: E402,F401  registers every table on Base
from cashflow.database import Base, DatabaseSettings  # noqa: E402

config = context.config
if config.config_file_name and Path(config.config_file_name).exists():
    fileConfig(config.config_file_name, disable_existing_loggers=False)


def _settings() -> DatabaseSettings:
    # An explicit URL (set by ``run_database_migrations`` or ``-x``) wins over DATABASE_URL.
    return DatabaseSettings.from_env(config.get_main_option("sqlalchemy.url") or None)


def _configure(settings: DatabaseSettings, **options) -> None:
    context.configure(
        target_metadata=Base.metadata,
        render_as_batch=settings.is_sqlite,
        compare_type=True,
        **options,
    )


def run_offline(settings: DatabaseSettings) -> None:
    _configure(
        settings,
        url=settings.url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_online(settings: DatabaseSettings) -> None:
    options = settings.engine_options()
    engine = create_engine(
        settings.url, poolclass=pool.NullPool, connect_args=options.get("connect_args", {})
    )
    try:
        with engine.connect() as connection:
            _configure(settings, connection=connection)
            with context.begin_transaction():
                context.run_migrations()
    finally:
        engine.dispose()


settings = _settings()
if context.is_offline_mode():
    run_offline(settings)
else:
    run_online(settings)
