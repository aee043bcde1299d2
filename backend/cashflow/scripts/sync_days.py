"""Command line entry-point to rebuild daily snapshots for a date range."""

from __future__ import annotations

import argparse
import logging
from datetime import date, timedelta
from typing import Optional

from ..database import session_scope
from ..services.errors import CashflowError
from ..services.sync import SyncOrchestrator

LOGGER = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _parse_date(raw: str) -> date:
    try:
        return date.fromisoformat(raw)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid date '{raw}', expected YYYY-MM-DD") from exc


def _parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Re-sync the daily snapshots of a business from the commerce platform."
    )
    parser.add_argument("business_id", help="Business whose snapshots are rebuilt.")
    parser.add_argument(
        "--start",
        type=_parse_date,
        help="First day to sync (default: yesterday).",
    )
    parser.add_argument(
        "--end",
        type=_parse_date,
        help="Last day to sync, inclusive (default: same as --start).",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    args = _parse_args(argv)
    _configure_logging(args.verbose)

    start = args.start or date.today() - timedelta(days=1)
    end = args.end or start

    try:
        with session_scope() as session:
            result = SyncOrchestrator(session).sync_range(args.business_id, start, end)
    except CashflowError as exc:
        LOGGER.error("Sync not started: %s", exc)
        return 2

    LOGGER.info("%s", result.message)
    for failure in result.failures:
        LOGGER.warning("%s: %s", failure.date.isoformat(), failure.reason)
    return 0 if not result.failures else 1


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
