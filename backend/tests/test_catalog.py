from __future__ import annotations

from decimal import Decimal

import pytest

from backend.cashflow import schemas
from backend.cashflow.services.batch import run_batch
from backend.cashflow.services.catalog import CatalogService
from backend.cashflow.services.errors import UpstreamError, ValidationError
from backend.tests.factories import BUSINESS_ID

PRICE_URL = "/catalog/products/5/variations/prices"
STOCK_URL = "/catalog/products/5/variations/stock"


def test_price_batch_reports_partial_failure(client, business_settings, commerce):
    commerce.failing_variations["v2"] = "Invalid price"

    response = client.post(
        PRICE_URL,
        json={
            "business_id": BUSINESS_ID,
            "items": [
                {"variation_id": "v1", "price": "10"},
                {"variation_id": "v2", "name": "Blue / L", "price": "12"},
                {"variation_id": "v3", "price": "9.5"},
            ],
        },
    )

    assert response.status_code == 200
    assert response.json() == {
        "success": False,
        "updated": 2,
        "total": 3,
        "errors": ["Blue / L: Invalid price"],
        "message": "Updated 2 of 3 variations; 1 failed",
    }
    assert commerce.price_updates == [
        ("5", "v1", Decimal("10"), "regular"),
        ("5", "v3", Decimal("9.5"), "regular"),
    ]


def test_sale_price_and_stock_batches(client, business_settings, commerce):
    sale = client.post(
        PRICE_URL,
        json={
            "business_id": BUSINESS_ID,
            "price_type": "sale",
            "items": [{"variation_id": "v1", "price": "7"}],
        },
    )
    stock = client.post(
        STOCK_URL,
        json={"business_id": BUSINESS_ID, "items": [{"variation_id": "v1", "quantity": 4}]},
    )

    assert sale.json()["message"] == "Updated 1 of 1 variations"
    assert stock.json()["success"] is True
    assert commerce.price_updates == [("5", "v1", Decimal("7"), "sale")]
    assert commerce.stock_updates == [("5", "v1", 4)]


def test_empty_batch_is_rejected_before_reaching_the_platform(client, business_settings, commerce):
    response = client.post(PRICE_URL, json={"business_id": BUSINESS_ID, "items": []})

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "validation_error"
    assert commerce.credentials == []


def test_batch_without_settings_is_a_configuration_error(client, commerce):
    response = client.post(
        STOCK_URL,
        json={"business_id": "unknown", "items": [{"variation_id": "v1", "quantity": 1}]},
    )

    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "configuration_error"


def test_catalog_service_uses_stored_credentials(db_session, business_settings, commerce):
    batch = schemas.VariationStockBatch(
        business_id=BUSINESS_ID, items=[schemas.VariationStockItem(variation_id="v9", quantity=0)]
    )

    result = CatalogService(db_session, commerce.factory).update_variation_stock("5", batch)

    assert result.success
    assert commerce.credentials[0].consumer_key == "ck_test"


def test_run_batch_only_collects_cashflow_errors():
    def action(item):
        if item == "bad":
            raise UpstreamError("rejected", "HTTP 400")
        if item == "boom":
            raise KeyError(item)
        return item

    result = run_batch(["ok", "bad"], action, name_of=str)
    assert result.errors == ["bad: rejected: HTTP 400"]
    assert result.message == "Updated 1 of 2 items; 1 failed"

    with pytest.raises(KeyError):
        run_batch(["boom"], action, name_of=str)
    with pytest.raises(ValidationError):
        run_batch([], action, name_of=str)
