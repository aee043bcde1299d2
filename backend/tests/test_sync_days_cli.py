from __future__ import annotations

from contextlib import contextmanager
from datetime import date

from backend.cashflow.scripts import sync_days
from backend.cashflow.services.sync import SyncOrchestrator
from backend.tests.factories import BUSINESS_ID, make_order


def _wire(monkeypatch, db_session, commerce) -> None:
    @contextmanager
    def fake_scope():
        yield db_session

    monkeypatch.setattr(sync_days, "session_scope", fake_scope)
    monkeypatch.setattr(
        sync_days, "SyncOrchestrator", lambda session: SyncOrchestrator(session, commerce.factory)
    )


def test_cli_syncs_requested_days(monkeypatch, db_session, business_settings, commerce):
    _wire(monkeypatch, db_session, commerce)
    commerce.add_order(date(2024, 3, 2), make_order(1, "50", created="2024-03-02T08:00:00"))

    exit_code = sync_days.main([BUSINESS_ID, "--start", "2024-03-01", "--end", "2024-03-02"])

    assert exit_code == 0
    assert [request[0] for request in commerce.order_requests] == [
        date(2024, 3, 1),
        date(2024, 3, 2),
    ]


def test_cli_defaults_to_yesterday(monkeypatch, db_session, business_settings, commerce):
    class FixedDate(date):
        @classmethod
        def today(cls):
            return cls(2024, 3, 11)

    _wire(monkeypatch, db_session, commerce)
    monkeypatch.setattr(sync_days, "date", FixedDate)

    assert sync_days.main([BUSINESS_ID]) == 0
    assert commerce.order_requests[0][0] == date(2024, 3, 10)


def test_cli_exit_codes_for_failures(monkeypatch, db_session, business_settings, commerce):
    _wire(monkeypatch, db_session, commerce)
    commerce.failing_days.add(date(2024, 3, 1))

    assert sync_days.main([BUSINESS_ID, "--start", "2024-03-01"]) == 1
    assert sync_days.main(["unknown-shop", "--start", "2024-03-01"]) == 2
    assert sync_days.main([BUSINESS_ID, "--start", "2024-03-02", "--end", "2024-03-01"]) == 2
