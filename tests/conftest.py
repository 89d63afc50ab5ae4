import os
import sys
from datetime import datetime, timezone

import pytest
from sqlalchemy import func, select

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from salon_desk.db.models import (
    Customer,
    Product,
    Service,
    ServiceProduct,
    Staff,
    StockMovement,
)
from salon_desk.db.session import Database

FIXED_NOW = datetime(2025, 3, 14, 10, 30, tzinfo=timezone.utc)


class Seeder:
    """Inserts catalog rows the way the CRUD screens would."""

    def __init__(self, database: Database) -> None:
        self._database = database

    def _add(self, row):
        with self._database.transaction() as session:
            session.add(row)
            session.flush()
            return row.id

    def customer(self, name: str = "Priya", points: int = 0) -> int:
        return self._add(Customer(name=name, loyalty_points=points))

    def service(self, name: str = "Hair Spa", price: float = 200.0, duration: int = 45) -> int:
        return self._add(Service(name=name, price=price, duration_minutes=duration))

    def staff(self, name: str = "Meena", role: str = "Stylist") -> int:
        return self._add(Staff(name=name, role=role))

    def product(self, name: str = "Hair Serum", stock: float = 0, min_stock: float = 0, *, book_opening: bool = True) -> int:
        product_id = self._add(Product(name=name, stock_quantity=stock, min_stock=min_stock))
        if stock and book_opening:
            self._add(
                StockMovement(
                    product_id=product_id,
                    movement_date=FIXED_NOW,
                    quantity=stock,
                    type="IN",
                    reason="OPENING",
                )
            )
        return product_id

    def link(self, service_id: int, product_id: int, quantity: float) -> int:
        return self._add(
            ServiceProduct(service_id=service_id, product_id=product_id, quantity=quantity)
        )


@pytest.fixture
def database():
    db = Database("sqlite://")
    db.create_all()
    yield db
    db.close()


@pytest.fixture
def seed(database) -> Seeder:
    return Seeder(database)


@pytest.fixture
def count_rows(database):
    def _count(model) -> int:
        with database.reader() as session:
            return session.scalar(select(func.count()).select_from(model))

    return _count


@pytest.fixture
def fetch(database):
    def _fetch(model, row_id):
        with database.reader() as session:
            return session.get(model, row_id)

    return _fetch
