"""Daily financial rollup backend for multi-tenant e-commerce stores."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fastapi import FastAPI


def get_app() -> "FastAPI":
    """Return the FastAPI application without importing it eagerly.

    Alembic and the command line scripts import this package without needing
    the web layer.
    """

    from .main import app

    return app


__all__ = ["get_app"]
