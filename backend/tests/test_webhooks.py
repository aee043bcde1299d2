from __future__ import annotations

import json
from datetime import date
from decimal import Decimal

import pytest

from backend.cashflow import models
from backend.cashflow.security import compute_webhook_signature
from backend.cashflow.services.errors import ValidationError
from backend.cashflow.services.webhooks import WebhookEventProcessor, WebhookStatus
from backend.tests.factories import BUSINESS_ID, make_order, order_payload, snapshot_row

DAY = date(2024, 3, 10)


def _snapshot(db_session, day=DAY):
    return (
        db_session.query(models.DailyFinancialSnapshot)
        .filter(
            models.DailyFinancialSnapshot.business_id == BUSINESS_ID,
            models.DailyFinancialSnapshot.date == day,
        )
        .one_or_none()
    )


def _changes(db_session):
    return (
        db_session.query(models.OrderChangeRecord)
        .filter(models.OrderChangeRecord.business_id == BUSINESS_ID)
        .order_by(models.OrderChangeRecord.created_at.asc())
        .all()
    )


def test_created_order_is_added_once(db_session, business_settings, commerce):
    snapshot_row(db_session, DAY, revenue=Decimal("1000"), orders_count=2, google_ads_cost=Decimal("50"))
    processor = WebhookEventProcessor(db_session, commerce.factory)
    payload = order_payload(77, "200", shipping_method="local_pickup")

    first = processor.process(BUSINESS_ID, "order.created", payload, "delivery-1")
    second = processor.process(BUSINESS_ID, "order.created", payload, "delivery-2")

    assert first.status == WebhookStatus.PROCESSED
    assert first.date == DAY
    assert second.status == WebhookStatus.DUPLICATE

    snapshot = _snapshot(db_session)
    assert snapshot.orders_count == 3
    assert Decimal(str(snapshot.revenue)) == Decimal("1200.00")
    assert Decimal(str(snapshot.google_ads_cost)) == Decimal("50.00")
    assert Decimal(str(snapshot.total_expenses)) == Decimal("644.00")
    assert commerce.order_requests == []

    (change,) = _changes(db_session)
    assert change.change_type == models.OrderChangeType.CREATED
    assert change.order_date == DAY
    assert change.new_values == {"status": "processing", "total": "200"}


def test_created_order_outside_counted_statuses_is_ignored(db_session, business_settings, commerce):
    processor = WebhookEventProcessor(db_session, commerce.factory)

    outcome = processor.process(
        BUSINESS_ID, "order.created", order_payload(5, "80", status="pending")
    )

    assert outcome.status == WebhookStatus.IGNORED
    assert _snapshot(db_session) is None
    (change,) = _changes(db_session)
    assert "not counted" in change.summary


def test_updated_order_recomputes_the_whole_day(db_session, business_settings, commerce):
    processor = WebhookEventProcessor(db_session, commerce.factory)
    processor.process(BUSINESS_ID, "order.created", order_payload(9, "500", shipping_method=None))
    commerce.add_order(DAY, make_order(9, "500", status="cancelled"))
    commerce.add_order(DAY, make_order(10, "120", shipping_method=None))

    outcome = processor.process(
        BUSINESS_ID, "order.updated", order_payload(9, "500", status="cancelled")
    )

    assert outcome.status == WebhookStatus.RECOMPUTED
    assert outcome.message == "Synced 1 orders for 2024-03-10"
    snapshot = _snapshot(db_session)
    assert snapshot.orders_count == 1
    assert Decimal(str(snapshot.revenue)) == Decimal("120.00")

    created, updated = _changes(db_session)
    assert updated.change_type == models.OrderChangeType.STATUS_CHANGED
    assert updated.old_values == {"status": "processing", "total": "500"}
    assert "processing -> cancelled" in updated.summary


def test_failed_recompute_is_acknowledged_and_audited(db_session, business_settings, commerce):
    snapshot_row(db_session, DAY, revenue=Decimal("300"), orders_count=1)
    commerce.failing_days.add(DAY)

    outcome = WebhookEventProcessor(db_session, commerce.factory).process(
        BUSINESS_ID, "order.updated", order_payload(3, "310")
    )

    assert outcome.status == WebhookStatus.RECOMPUTE_FAILED
    assert Decimal(str(_snapshot(db_session).revenue)) == Decimal("300.00")
    (change,) = _changes(db_session)
    assert change.change_type == models.OrderChangeType.UPDATED


def test_deleted_order_without_known_date_is_only_audited(db_session, business_settings, commerce):
    outcome = WebhookEventProcessor(db_session, commerce.factory).process(
        BUSINESS_ID, "order.deleted", {"id": 404}
    )

    assert outcome.status == WebhookStatus.IGNORED
    assert commerce.order_requests == []
    (change,) = _changes(db_session)
    assert change.change_type == models.OrderChangeType.DELETED
    assert change.order_date is None


def test_deleted_order_reuses_the_date_of_its_last_change(db_session, business_settings, commerce):
    processor = WebhookEventProcessor(db_session, commerce.factory)
    processor.process(BUSINESS_ID, "order.created", order_payload(12, "90", shipping_method=None))

    outcome = processor.process(BUSINESS_ID, "order.deleted", {"id": 12})

    assert outcome.status == WebhookStatus.RECOMPUTED
    assert outcome.date == DAY
    assert _snapshot(db_session).orders_count == 0


def test_audit_failure_does_not_undo_the_snapshot_update(
    db_session, business_settings, commerce, monkeypatch
):
    def broken_record(**kwargs):
        raise RuntimeError("audit table unavailable")

    monkeypatch.setattr(models, "OrderChangeRecord", broken_record)

    outcome = WebhookEventProcessor(db_session, commerce.factory).process(
        BUSINESS_ID, "order.created", order_payload(21, "100", shipping_method=None)
    )
    monkeypatch.undo()

    assert outcome.status == WebhookStatus.PROCESSED
    assert Decimal(str(_snapshot(db_session).revenue)) == Decimal("100.00")
    assert _changes(db_session) == []


def test_missing_settings_are_reported_as_not_configured(db_session, commerce):
    processor = WebhookEventProcessor(db_session, commerce.factory)

    outcome = processor.process(BUSINESS_ID, "order.created", order_payload(1, "10"))

    assert outcome.status == WebhookStatus.NOT_CONFIGURED
    changes = _changes(db_session)
    assert len(changes) == 1
    assert changes[0].order_id == "1"
    assert changes[0].change_type == models.OrderChangeType.CREATED
    assert db_session.query(models.DailyFinancialSnapshot).count() == 0


def test_non_order_topics_and_bad_payloads(db_session, business_settings, commerce):
    processor = WebhookEventProcessor(db_session, commerce.factory)

    assert processor.process(BUSINESS_ID, "product.updated", {"id": 1}).status == WebhookStatus.IGNORED
    with pytest.raises(ValidationError):
        processor.process(BUSINESS_ID, "order.created", {"status": "processing"})


def test_webhook_endpoint_applies_signed_order(client, db_session, business_settings):
    business_settings.webhook_secret = "whsec"
    db_session.commit()
    body = json.dumps(order_payload(31, "250", shipping_method=None)).encode()

    response = client.post(
        "/webhooks/woocommerce",
        params={"business_id": BUSINESS_ID},
        content=body,
        headers={
            "Content-Type": "application/json",
            "X-WC-Webhook-Topic": "order.created",
            "X-WC-Webhook-Signature": compute_webhook_signature(body, "whsec"),
            "X-WC-Webhook-Delivery-ID": "d-31",
        },
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "processed"
    assert payload["order_id"] == "31"
    assert payload["date"] == "2024-03-10"
    delivery = db_session.query(models.ProcessedWebhookDelivery).one()
    assert delivery.delivery_id == "d-31"


def test_webhook_endpoint_rejects_bad_signature(client, db_session, business_settings):
    business_settings.webhook_secret = "whsec"
    db_session.commit()

    response = client.post(
        "/webhooks/woocommerce",
        params={"business_id": BUSINESS_ID},
        content=json.dumps(order_payload(1, "10")).encode(),
        headers={"X-WC-Webhook-Topic": "order.created", "X-WC-Webhook-Signature": "nope"},
    )

    assert response.status_code == 401
    assert response.json()["detail"]["code"] == "invalid_signature"
    assert _snapshot(db_session) is None


def test_webhook_endpoint_acknowledges_pings(client):
    assert client.get("/webhooks/woocommerce").json()["status"] == "ping"

    response = client.post(
        "/webhooks/woocommerce", params={"business_id": BUSINESS_ID}, content=b"webhook_id=5"
    )

    assert response.status_code == 200
    assert response.json() == {
        "status": "ping",
        "message": "Webhook verified",
        "topic": None,
        "order_id": None,
        "date": None,
    }


def test_webhook_endpoint_maps_malformed_orders_to_bad_request(client, business_settings):
    response = client.post(
        "/webhooks/woocommerce",
        params={"business_id": BUSINESS_ID},
        content=json.dumps({"status": "processing"}).encode(),
        headers={"X-WC-Webhook-Topic": "order.created"},
    )

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "validation_error"
