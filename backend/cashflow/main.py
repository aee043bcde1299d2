"""Expose the cashflow FastAPI app and enforce local development CORS defaults."""

import logging
import os
import re
from contextlib import asynccontextmanager
from typing import Iterable

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .database import read_bool_env
from .migrations import run_database_migrations
from .routers import (
    business_settings_router,
    cashflow_router,
    catalog_router,
    employees_router,
    expenses_router,
    monthly_summary_router,
    order_changes_router,
    order_item_costs_router,
    refunds_router,
    statistics_router,
    sync_router,
    webhooks_router,
)

LOGGER = logging.getLogger(__name__)

RUN_MIGRATIONS_ENV = "RUN_MIGRATIONS_ON_STARTUP"
ALLOWED_ORIGINS_ENV = "BACKEND_ALLOWED_ORIGINS"

LOCALHOST_ORIGIN_REGEX = r"https?://(localhost|127\.0\.0\.1|0\.0\.0\.0)(:\d+)?$"

DEFAULT_ALLOWED_ORIGINS = {
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:4173",
    "http://127.0.0.1:4173",
}


def _normalize_origin(origin: str) -> str | None:
    stripped = origin.strip()
    if not stripped:
        return None
    return stripped.rstrip("/")


def _read_allowed_origins(raw_origins: Iterable[str]) -> list[str]:
    normalized = {_normalize_origin(origin) for origin in raw_origins}
    return sorted({origin for origin in normalized if origin})


def resolve_allowed_origins() -> list[str]:
    """Origins from ``BACKEND_ALLOWED_ORIGINS`` (comma or whitespace separated)."""

    raw_value = os.getenv(ALLOWED_ORIGINS_ENV)
    if raw_value:
        origins = _read_allowed_origins(re.split(r"[\s,]+", raw_value))
        if origins:
            return origins
    return _read_allowed_origins(DEFAULT_ALLOWED_ORIGINS)


def ensure_database_is_ready() -> None:
    """Apply pending database migrations when the service starts."""

    if not read_bool_env(RUN_MIGRATIONS_ENV, True):
        LOGGER.info("Skipping migrations because %s is disabled", RUN_MIGRATIONS_ENV)
        return
    LOGGER.info("Ensuring database schema is up to date before serving requests")
    run_database_migrations()


@asynccontextmanager
async def lifespan(_: FastAPI):
    ensure_database_is_ready()
    yield


app = FastAPI(title="Cashflow API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=resolve_allowed_origins(),
    allow_origin_regex=LOCALHOST_ORIGIN_REGEX,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(
    business_settings_router, prefix="/business-settings", tags=["business-settings"]
)
app.include_router(cashflow_router, prefix="/cashflow", tags=["cashflow"])
app.include_router(sync_router, prefix="/sync", tags=["sync"])
app.include_router(webhooks_router, prefix="/webhooks", tags=["webhooks"])
app.include_router(monthly_summary_router, prefix="/monthly-summary", tags=["reports"])
app.include_router(statistics_router, prefix="/statistics", tags=["reports"])
app.include_router(employees_router, prefix="/employees", tags=["periodic-costs"])
app.include_router(expenses_router, prefix="/expenses", tags=["periodic-costs"])
app.include_router(refunds_router, prefix="/refunds", tags=["periodic-costs"])
app.include_router(order_item_costs_router, prefix="/order-item-costs", tags=["orders"])
app.include_router(order_changes_router, prefix="/order-changes", tags=["orders"])
app.include_router(catalog_router, prefix="/catalog", tags=["catalog"])


@app.get("/", tags=["health"])
def read_root() -> dict[str, str]:
    """Return a simple health check response."""
    return {"status": "ok"}
