"""Engine and session factory for the cashflow backend.

Configuration comes from the environment:

``DATABASE_URL``
    Any SQLAlchemy URL. Defaults to ``backend/cashflow.db`` (SQLite).
``REQUIRE_POSTGRES``
    Refuse to start on SQLite, so production never silently falls back.
``DATABASE_POOL_SIZE`` / ``DATABASE_MAX_OVERFLOW`` / ``DATABASE_POOL_TIMEOUT`` /
``DATABASE_POOL_RECYCLE`` / ``DATABASE_CONNECT_TIMEOUT``
    Pool tuning for server databases; ignored on SQLite.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Generator, Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker

DEFAULT_SQLITE_PATH = Path(__file__).resolve().parent.parent / "cashflow.db"


def read_int_env(name: str, default: int) -> int:
    """Read a non-negative integer from the environment."""

    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer") from exc
    if value < 0:
        raise ValueError(f"{name} must be non-negative")
    return value


def read_bool_env(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class DatabaseSettings:
    url: str
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800
    connect_timeout: int = 10

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @classmethod
    def from_env(cls, raw_url: Optional[str] = None) -> "DatabaseSettings":
        require_postgres = read_bool_env("REQUIRE_POSTGRES")
        raw_url = raw_url if raw_url is not None else os.getenv("DATABASE_URL")
        if not raw_url:
            if require_postgres:
                raise RuntimeError(
                    "DATABASE_URL must point to PostgreSQL when REQUIRE_POSTGRES=1"
                )
            raw_url = f"sqlite:///{DEFAULT_SQLITE_PATH.as_posix()}"

        url = make_url(raw_url)
        if url.drivername.startswith("sqlite"):
            if require_postgres:
                raise RuntimeError("SQLite is not permitted when REQUIRE_POSTGRES=1")
            if url.database not in (None, "", ":memory:"):
                Path(url.database).parent.mkdir(parents=True, exist_ok=True)

        return cls(
            url=url.render_as_string(hide_password=False),
            pool_size=read_int_env("DATABASE_POOL_SIZE", cls.pool_size),
            max_overflow=read_int_env("DATABASE_MAX_OVERFLOW", cls.max_overflow),
            pool_timeout=read_int_env("DATABASE_POOL_TIMEOUT", cls.pool_timeout),
            pool_recycle=read_int_env("DATABASE_POOL_RECYCLE", cls.pool_recycle),
            connect_timeout=read_int_env("DATABASE_CONNECT_TIMEOUT", cls.connect_timeout),
        )

    def engine_options(self) -> Dict[str, Any]:
        if self.is_sqlite:
            # Sessions are handed to worker threads by FastAPI.
            return {"connect_args": {"check_same_thread": False}}
        return {
            "pool_pre_ping": True,
            "pool_size": self.pool_size,
            "max_overflow": self.max_overflow,
            "pool_timeout": self.pool_timeout,
            "pool_recycle": self.pool_recycle,
            "connect_args": {"connect_timeout": self.connect_timeout},
        }


def build_engine(settings: DatabaseSettings) -> Engine:
    return create_engine(settings.url, **settings.engine_options())


DATABASE_SETTINGS = DatabaseSettings.from_env()
SQLALCHEMY_DATABASE_URL = DATABASE_SETTINGS.url

engine = build_engine(DATABASE_SETTINGS)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency: one session per request."""

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope() -> Iterator[Session]:
    """Session for scripts; committed on success, rolled back on error."""

    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
