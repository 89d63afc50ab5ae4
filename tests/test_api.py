from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from salon_desk.dependencies.services import get_database
from salon_desk.main import app


@pytest.fixture
def client(database):
    app.dependency_overrides[get_database] = lambda: database
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_create_and_fetch_bill(client, seed) -> None:
    customer_id = seed.customer("Anita", points=50)

    response = client.post(
        "/tools/billing/create",
        json={
            "customerId": customer_id,
            "customerName": "Anita",
            "items": [{"serviceName": "Hair Spa", "unitPrice": 200, "quantity": 1}],
            "gstRate": 10,
            "payments": [{"mode": "Cash", "amount": 200}],
            "loyaltyRedeemPoints": 20,
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert set(body) == {"id", "customer_id", "customer_name", "bill_date", "total_amount", "net_amount"}
    assert body["total_amount"] == pytest.approx(220.0)
    assert body["net_amount"] == pytest.approx(200.0)

    fetched = client.get(f"/tools/billing/{body['id']}")
    assert fetched.status_code == 200
    detail = fetched.json()
    assert detail["bill"]["loyalty_points_redeemed"] == 20
    assert detail["items"][0]["service_name"] == "Hair Spa"


def test_billing_uses_stored_tax_rate(client) -> None:
    update = client.put("/settings/billing", json={"gstRate": 18, "loyaltyRate": 0.01})
    assert update.status_code == 200
    assert update.json() == {"gst_rate": 18.0, "loyalty_rate": 0.01}

    response = client.post(
        "/tools/billing/create",
        json={"customerName": "Neha", "items": [{"serviceName": "Haircut", "unitPrice": 100}]},
    )

    assert response.status_code == 200
    assert response.json()["total_amount"] == pytest.approx(118.0)


def test_underpayment_returns_400(client) -> None:
    response = client.post(
        "/tools/billing/create",
        json={
            "customerName": "Kiran",
            "items": [{"serviceName": "Hair Colour", "unitPrice": 100}],
            "payments": [{"mode": "Cash", "amount": 40}, {"mode": "Card", "amount": 30}],
        },
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Total payment is less than bill amount"


def test_validation_message_is_passed_through(client) -> None:
    response = client.post(
        "/tools/billing/create",
        json={"customerName": "Asha", "items": [{"serviceName": "Cut", "unitPrice": "free"}]},
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "invalid price"


def test_non_finite_tax_rate_returns_400(client) -> None:
    response = client.post(
        "/tools/billing/create",
        content='{"customerName": "Asha", "items": [{"serviceName": "Cut", "unitPrice": 10}], "gstRate": NaN}',
        headers={"content-type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "invalid tax rate"


def test_non_finite_settings_rate_is_rejected(client) -> None:
    response = client.put(
        "/settings/billing",
        content='{"gstRate": Infinity}',
        headers={"content-type": "application/json"},
    )

    assert response.status_code == 422


def test_unknown_bill_returns_404(client) -> None:
    response = client.get("/tools/billing/999")

    assert response.status_code == 404


def test_stock_move_and_reconcile_routes(client, seed) -> None:
    product_id = seed.product("Shampoo", stock=4)

    moved = client.post(
        "/tools/inventory/stock-move",
        json={"productId": product_id, "quantity": 2, "type": "OUT", "reason": "Salon use"},
    )
    assert moved.status_code == 200
    assert moved.json()["stock_quantity"] == 2

    reconciled = client.post(f"/tools/inventory/products/{product_id}/reconcile")
    assert reconciled.status_code == 200
    assert reconciled.json()["drift"] == 0

    missing = client.post("/tools/inventory/stock-move", json={"productId": 999, "quantity": 1})
    assert missing.status_code == 404


def test_health(client) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"ok": True}
