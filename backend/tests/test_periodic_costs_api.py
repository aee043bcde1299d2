from __future__ import annotations

from decimal import Decimal

from backend.tests.factories import BUSINESS_ID


def _employee(client, name="Dana", salary="3000", month=4, year=2024, **extra):
    return client.post(
        "/employees",
        json={
            "business_id": BUSINESS_ID,
            "name": name,
            "salary": salary,
            "month": month,
            "year": year,
            **extra,
        },
    )


def test_employee_lifecycle(client):
    created = _employee(client)
    assert created.status_code == 201
    employee_id = created.json()["id"]

    assert _employee(client, name=" Dana ").status_code == 400

    updated = _employee(client, salary="3600", id=employee_id)
    assert updated.status_code == 200
    assert Decimal(updated.json()["salary"]) == Decimal("3600")

    _employee(client, name="Ari", salary="900")
    listing = client.get("/employees", params={"business_id": BUSINESS_ID, "month": 4, "year": 2024})
    payload = listing.json()
    assert [item["name"] for item in payload["items"]] == ["Ari", "Dana"]
    assert Decimal(payload["total_salary"]) == Decimal("4500")
    assert payload["days_in_month"] == 30
    assert Decimal(payload["daily_cost"]) == Decimal("150")

    assert client.delete(f"/employees/{employee_id}").status_code == 204
    missing = client.delete(f"/employees/{employee_id}")
    assert missing.status_code == 404
    assert missing.json()["detail"]["code"] == "not_found"


def test_copy_employees_from_previous_month(client):
    _employee(client, name="Dana", month=12, year=2023)
    _employee(client, name="Ari", month=12, year=2023)
    _employee(client, name="Ari", salary="1000", month=1, year=2024)

    response = client.post(
        "/employees/copy", json={"business_id": BUSINESS_ID, "month": 1, "year": 2024}
    )

    assert response.status_code == 200
    assert response.json() == {"copied": 1, "message": "Copied 1 employees into 01/2024"}

    empty = client.post(
        "/employees/copy", json={"business_id": BUSINESS_ID, "month": 6, "year": 2024}
    )
    assert empty.status_code == 400


def test_expenses_are_listed_by_kind_with_daily_totals(client):
    for day, amount in (("2024-04-05", "100"), ("2024-04-05", "50"), ("2024-04-20", "25")):
        response = client.post(
            "/expenses",
            json={
                "business_id": BUSINESS_ID,
                "kind": "vat",
                "expense_date": day,
                "description": "Packaging",
                "amount": amount,
                "vat_amount": "3",
            },
        )
        assert response.status_code == 201
    client.post(
        "/expenses",
        json={
            "business_id": BUSINESS_ID,
            "kind": "no_vat",
            "expense_date": "2024-04-06",
            "description": "Rent",
            "amount": "1200",
        },
    )

    vat = client.get(
        "/expenses",
        params={"business_id": BUSINESS_ID, "kind": "vat", "start_date": "2024-04-01", "end_date": "2024-04-10"},
    ).json()
    assert len(vat["items"]) == 2
    assert Decimal(vat["total"]) == Decimal("150")
    assert {key: Decimal(value) for key, value in vat["totals_by_date"].items()} == {
        "2024-04-05": Decimal("150")
    }

    no_vat = client.get("/expenses", params={"business_id": BUSINESS_ID, "kind": "no_vat"}).json()
    assert no_vat["items"][0]["vat_amount"] is None
    assert Decimal(no_vat["total"]) == Decimal("1200")

    reversed_range = client.get(
        "/expenses",
        params={"business_id": BUSINESS_ID, "start_date": "2024-04-10", "end_date": "2024-04-01"},
    )
    assert reversed_range.status_code == 400


def test_copy_expenses_clamps_day_to_target_month(client):
    client.post(
        "/expenses",
        json={
            "business_id": BUSINESS_ID,
            "expense_date": "2024-01-31",
            "description": "Hosting",
            "amount": "40",
            "is_recurring": True,
        },
    )

    response = client.post(
        "/expenses/copy",
        json={
            "business_id": BUSINESS_ID,
            "from_month": 1,
            "from_year": 2024,
            "to_month": 2,
            "to_year": 2024,
        },
    )

    assert response.json()["message"] == "Copied 1 expenses into 02/2024"
    february = client.get(
        "/expenses",
        params={"business_id": BUSINESS_ID, "start_date": "2024-02-01", "end_date": "2024-02-29"},
    ).json()
    assert february["items"][0]["expense_date"] == "2024-02-29"
    assert february["items"][0]["is_recurring"] is True

    same_month = client.post(
        "/expenses/copy",
        json={
            "business_id": BUSINESS_ID,
            "from_month": 2,
            "from_year": 2024,
            "to_month": 2,
            "to_year": 2024,
        },
    )
    assert same_month.status_code == 400


def test_delete_expense_requires_matching_kind(client):
    expense_id = client.post(
        "/expenses",
        json={
            "business_id": BUSINESS_ID,
            "kind": "no_vat",
            "expense_date": "2024-04-06",
            "description": "Rent",
            "amount": "1200",
        },
    ).json()["id"]

    assert client.delete(f"/expenses/{expense_id}", params={"kind": "vat"}).status_code == 404
    assert client.delete(f"/expenses/{expense_id}", params={"kind": "no_vat"}).status_code == 204


def test_refund_lifecycle(client):
    created = client.post(
        "/refunds",
        json={
            "business_id": BUSINESS_ID,
            "refund_date": "2024-04-02",
            "amount": "35.50",
            "order_id": "1001",
            "reason": "Damaged",
        },
    )
    assert created.status_code == 201

    listing = client.get("/refunds", params={"business_id": BUSINESS_ID}).json()
    assert Decimal(listing["total"]) == Decimal("35.50")
    assert listing["items"][0]["order_id"] == "1001"

    assert client.delete(f"/refunds/{created.json()['id']}").status_code == 204
    assert client.get("/refunds", params={"business_id": BUSINESS_ID}).json()["items"] == []
