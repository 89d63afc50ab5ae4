import asyncio
import logging
import math

import pytest
from sqlalchemy.exc import OperationalError

from salon_desk.db.models import (
    Bill,
    BillItem,
    BillPayment,
    Customer,
    LoyaltyTransaction,
    Product,
    StockMovement,
)
from salon_desk.db.repository import LedgerRepository
from salon_desk.schemas.billing import BillingConfig, BillRequest
from salon_desk.services.billing import BillingService
from salon_desk.services.exceptions import (
    InsufficientPaymentError,
    StorageError,
    ValidationError,
)

from conftest import FIXED_NOW

LEDGER_MODELS = (Bill, BillItem, BillPayment, LoyaltyTransaction, StockMovement)


@pytest.fixture
def service(database) -> BillingService:
    return BillingService(database, clock=lambda: FIXED_NOW)


def _create(service, config=None, **payload):
    request = BillRequest(**payload)
    return asyncio.run(service.create(request, config or BillingConfig()))


def _ledger_counts(count_rows):
    return {model.__name__: count_rows(model) for model in LEDGER_MODELS}


def test_worked_example_with_redemption(service, seed, fetch) -> None:
    customer_id = seed.customer("Anita", points=50)

    created = _create(
        service,
        BillingConfig(gst_rate=0, loyalty_rate=0),
        customerId=customer_id,
        customerName="Anita",
        items=[{"serviceName": "Hair Spa", "unitPrice": 200, "quantity": 1}],
        gstRate=10,
        discountAmount=0,
        payments=[{"mode": "Cash", "amount": 200}],
        loyaltyRedeemPoints=20,
    )

    assert created.customer_id == customer_id
    assert created.customer_name == "Anita"
    assert created.total_amount == pytest.approx(220.0)
    assert created.net_amount == pytest.approx(200.0)
    assert created.bill_date == FIXED_NOW.isoformat()

    detail = asyncio.run(service.get(created.id))
    assert detail is not None
    assert detail.bill.subtotal == 200
    assert detail.bill.gst_amount == pytest.approx(20.0)
    assert detail.bill.loyalty_points_redeemed == 20
    assert detail.bill.loyalty_points_earned == 0
    assert detail.bill.status == "FINAL"
    assert [p.amount for p in detail.payments] == [200]

    assert fetch(Customer, customer_id).loyalty_points == 30


def test_bill_items_snapshot_names_and_totals(service, seed) -> None:
    service_id = seed.service("Manicure", price=50)
    staff_id = seed.staff("Ravi")

    created = _create(
        service,
        customerName="Walk-in",
        items=[
            {
                "serviceId": service_id,
                "serviceName": "Manicure",
                "unitPrice": 50,
                "quantity": 3,
                "staffId": staff_id,
                "staffName": "Ravi",
                "duration_minutes": 30,
            },
            {"serviceName": "Manicure", "unitPrice": 50, "quantity": 3},
        ],
    )

    detail = asyncio.run(service.get(created.id))
    assert detail.bill.subtotal == 300
    assert [item.line_total for item in detail.items] == [150, 150]
    assert detail.items[0].staff_name == "Ravi"
    assert detail.items[0].duration_minutes == 30
    assert detail.items[1].staff_name is None


def test_empty_tender_list_creates_single_cash_payment(service, seed) -> None:
    created = _create(
        service,
        BillingConfig(gst_rate=5),
        customerName="Farah",
        items=[{"serviceName": "Facial", "unitPrice": 99.99}],
    )

    detail = asyncio.run(service.get(created.id))
    assert len(detail.payments) == 1
    assert detail.payments[0].mode == "Cash"
    assert sum(p.amount for p in detail.payments) == pytest.approx(created.net_amount)
    assert created.net_amount == pytest.approx(99.99 * 1.05)


def test_zero_net_without_tenders_writes_no_payment(service, seed, count_rows) -> None:
    customer_id = seed.customer("Tara", points=100)

    created = _create(
        service,
        customerId=customer_id,
        customerName="Tara",
        items=[{"serviceName": "Threading", "unitPrice": 40}],
        loyaltyRedeemPoints=40,
    )

    assert created.net_amount == 0
    detail = asyncio.run(service.get(created.id))
    assert detail.payments == []
    assert count_rows(BillPayment) == 0


def test_items_may_reference_ids_missing_from_catalog(service, database, count_rows) -> None:
    created = _create(
        service,
        customerName="Maya",
        items=[
            {"serviceId": 999, "serviceName": "Old Package", "unitPrice": 500},
            {"serviceName": "Haircut", "unitPrice": 100, "staffId": 77, "staffName": "Former Stylist"},
        ],
    )

    with database.reader() as session:
        bill = LedgerRepository(session).get_bill(created.id)
        assert [(i.service_id, i.staff_id) for i in bill.items] == [(999, None), (None, 77)]
    assert count_rows(StockMovement) == 0


def test_underpayment_persists_nothing(service, seed, count_rows, fetch) -> None:
    customer_id = seed.customer("Kiran", points=10)
    service_id = seed.service("Hair Colour", price=100)
    product_id = seed.product("Colour Tube", stock=10)
    seed.link(service_id, product_id, 1)
    before = _ledger_counts(count_rows)

    with pytest.raises(InsufficientPaymentError):
        _create(
            service,
            BillingConfig(loyalty_rate=1),
            customerId=customer_id,
            customerName="Kiran",
            items=[{"serviceId": service_id, "serviceName": "Hair Colour", "unitPrice": 100}],
            payments=[{"mode": "Cash", "amount": 40}, {"mode": "Card", "amount": 30}],
            loyaltyRedeemPoints=0,
        )

    assert _ledger_counts(count_rows) == before
    assert fetch(Customer, customer_id).loyalty_points == 10
    assert fetch(Product, product_id).stock_quantity == 10


def test_service_usage_deducts_linked_stock(service, seed, fetch, database) -> None:
    service_id = seed.service("Keratin", price=1500)
    product_id = seed.product("Keratin Cream", stock=20)
    seed.link(service_id, product_id, 2)

    created = _create(
        service,
        customerName="Sana",
        items=[
            {"serviceId": service_id, "serviceName": "Keratin", "unitPrice": 1500, "quantity": 3}
        ],
    )

    assert fetch(Product, product_id).stock_quantity == 14
    with database.reader() as session:
        movements = LedgerRepository(session).stock_movements(product_id)
        usage = [m for m in movements if m.reason == "SERVICE_USAGE"]
        assert len(usage) == 1
        assert usage[0].type == "OUT"
        assert usage[0].quantity == 6
        assert usage[0].related_service_id == service_id
        item = session.get(BillItem, usage[0].related_bill_item_id)
        assert item.bill_id == created.id


def test_loyalty_earn_and_redeem_write_ledger_rows(service, seed, database, fetch) -> None:
    customer_id = seed.customer("Divya", points=25)

    created = _create(
        service,
        BillingConfig(gst_rate=0, loyalty_rate=0.1),
        customerId=customer_id,
        customerName="Divya",
        items=[{"serviceName": "Pedicure", "unitPrice": 300}],
        loyaltyRedeemPoints=25,
    )

    assert created.net_amount == pytest.approx(275.0)
    with database.reader() as session:
        entries = LedgerRepository(session).loyalty_history(customer_id)
        assert [(e.type, e.points, e.bill_id) for e in entries] == [
            ("EARN", 30, created.id),
            ("REDEEM", 25, created.id),
        ]
    assert fetch(Customer, customer_id).loyalty_points == 25 + 30 - 25


def test_redemption_never_drives_net_below_zero(service, seed, fetch) -> None:
    customer_id = seed.customer("Zoya", points=500)

    created = _create(
        service,
        customerId=customer_id,
        customerName="Zoya",
        items=[{"serviceName": "Eyebrow Threading", "unitPrice": 60}],
        loyaltyRedeemPoints=100,
    )

    assert created.net_amount == 0
    assert 0 <= created.net_amount <= created.total_amount
    assert fetch(Customer, customer_id).loyalty_points == 400


def test_configured_rate_used_when_request_has_none(service) -> None:
    created = _create(
        service,
        BillingConfig(gst_rate=18),
        customerName="Neha",
        items=[{"serviceName": "Haircut", "unitPrice": 100}],
    )

    assert created.total_amount == pytest.approx(118.0)


def test_resubmitting_creates_independent_bill(service) -> None:
    payload = {
        "customerName": "Rahul",
        "items": [{"serviceName": "Beard Trim", "unitPrice": 150}],
        "payments": [{"mode": "UPI", "amount": 150, "reference": "UPI-9"}],
    }

    first = _create(service, **payload)
    second = _create(service, **payload)

    assert first.id != second.id
    assert first.total_amount == second.total_amount


@pytest.mark.parametrize(
    "payload, message",
    [
        ({"customerName": "  ", "items": [{"serviceName": "Cut", "unitPrice": 1}]}, "customer name required"),
        ({"customerName": "Asha", "items": []}, "at least one service is required"),
        ({"customerName": "Asha", "items": [{"serviceName": "Cut", "unitPrice": -1}]}, "invalid price"),
        ({"customerName": "Asha", "customerId": 999, "items": [{"serviceName": "Cut", "unitPrice": 1}]}, "customer not found"),
    ],
)
def test_validation_failures_write_nothing(service, count_rows, payload, message) -> None:
    with pytest.raises(ValidationError) as excinfo:
        _create(service, **payload)

    assert str(excinfo.value) == message
    assert all(count == 0 for count in _ledger_counts(count_rows).values())


def test_storage_failure_rolls_back_every_row(service, seed, count_rows, fetch, monkeypatch) -> None:
    customer_id = seed.customer("Isha", points=40)
    service_id = seed.service("Hair Spa", price=200)
    product_id = seed.product("Spa Cream", stock=5)
    seed.link(service_id, product_id, 1)
    before = _ledger_counts(count_rows)

    def _fail(self, **kwargs):
        raise OperationalError("INSERT INTO stock_movements", {}, Exception("disk I/O error"))

    monkeypatch.setattr(LedgerRepository, "add_stock_movement", _fail)

    with pytest.raises(StorageError):
        _create(
            service,
            BillingConfig(loyalty_rate=0.1),
            customerId=customer_id,
            customerName="Isha",
            items=[{"serviceId": service_id, "serviceName": "Hair Spa", "unitPrice": 200}],
            loyaltyRedeemPoints=10,
        )

    assert _ledger_counts(count_rows) == before
    assert fetch(Customer, customer_id).loyalty_points == 40
    assert fetch(Product, product_id).stock_quantity == 5


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"gstRate": math.nan}, "invalid tax rate"),
        ({"gstRate": math.inf}, "invalid tax rate"),
        ({"items": [{"serviceName": "Bridal", "unitPrice": 1e308, "quantity": 10}]}, "invalid price"),
        ({"items": [{"serviceName": "Bridal", "unitPrice": 1e308}], "gstRate": 100}, "bill total out of range"),
    ],
)
def test_non_finite_amounts_are_validation_errors(service, count_rows, overrides, message) -> None:
    payload = {"customerName": "Asha", "items": [{"serviceName": "Cut", "unitPrice": 100}]}
    payload.update(overrides)

    with pytest.raises(ValidationError) as excinfo:
        _create(service, **payload)

    assert str(excinfo.value) == message
    assert all(count == 0 for count in _ledger_counts(count_rows).values())


@pytest.mark.parametrize("with_customer", [True, False])
def test_infinite_redeem_request_redeems_nothing(service, seed, fetch, with_customer) -> None:
    payload = {"customerName": "Lina", "items": [{"serviceName": "Cut", "unitPrice": 100}]}
    customer_id = None
    if with_customer:
        customer_id = seed.customer("Lina", points=30)
        payload["customerId"] = customer_id

    created = _create(service, loyaltyRedeemPoints=math.inf, **payload)

    assert created.net_amount == pytest.approx(100.0)
    if customer_id:
        assert fetch(Customer, customer_id).loyalty_points == 30


def test_commit_is_logged_as_final_stage(service, caplog) -> None:
    caplog.set_level(logging.DEBUG, logger="salon_desk.services.billing")

    created = _create(service, customerName="Ira", items=[{"serviceName": "Cut", "unitPrice": 10}])

    assert "stock_resolved -> committed" in caplog.text
    assert f"Bill {created.id} committed for Ira" in caplog.text


def test_get_unknown_bill_returns_none(service) -> None:
    assert asyncio.run(service.get(12345)) is None


def test_get_requires_bill_id(service) -> None:
    with pytest.raises(ValidationError):
        asyncio.run(service.get(0))
