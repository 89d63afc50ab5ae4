"""Session-bound data access used by the service layer.

The repository never commits; the caller owns the transaction boundary.
"""
from __future__ import annotations

from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session, selectinload

from salon_desk.db.models import (
    Bill,
    BillItem,
    BillPayment,
    Customer,
    LoyaltyTransaction,
    Product,
    ServiceProduct,
    Setting,
    StockMovement,
)


class LedgerRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    # Customers

    def get_customer(self, customer_id: int) -> Optional[Customer]:
        return self._session.get(Customer, customer_id)

    def set_loyalty_balance(self, customer_id: int, balance: int) -> None:
        self._session.execute(
            update(Customer)
            .where(Customer.id == customer_id)
            .values(loyalty_points=balance)
        )

    def add_loyalty_transaction(
        self, *, customer_id: int, bill_id: Optional[int], type: str, points: int
    ) -> LoyaltyTransaction:
        entry = LoyaltyTransaction(
            customer_id=customer_id, bill_id=bill_id, type=type, points=points
        )
        self._session.add(entry)
        return entry

    def loyalty_history(self, customer_id: int) -> List[LoyaltyTransaction]:
        stmt = (
            select(LoyaltyTransaction)
            .where(LoyaltyTransaction.customer_id == customer_id)
            .order_by(LoyaltyTransaction.id)
        )
        return list(self._session.scalars(stmt))

    def loyalty_ledger_balance(self, customer_id: int) -> int:
        totals = self._grouped_sums(
            LoyaltyTransaction.type,
            LoyaltyTransaction.points,
            LoyaltyTransaction.customer_id == customer_id,
        )
        return int(totals.get("EARN", 0) - totals.get("REDEEM", 0))

    # Products and bill-of-materials

    def get_product(self, product_id: int) -> Optional[Product]:
        return self._session.get(Product, product_id)

    def service_product_links(self, service_id: int) -> List[Tuple[int, float]]:
        stmt = (
            select(ServiceProduct.product_id, ServiceProduct.quantity)
            .where(ServiceProduct.service_id == service_id)
            .order_by(ServiceProduct.id)
        )
        return [(row.product_id, row.quantity or 0) for row in self._session.execute(stmt)]

    def adjust_stock(self, product_id: int, delta: float) -> int:
        result = self._session.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(stock_quantity=Product.stock_quantity + delta)
        )
        return result.rowcount

    def set_stock(self, product_id: int, quantity: float) -> None:
        self._session.execute(
            update(Product).where(Product.id == product_id).values(stock_quantity=quantity)
        )

    def add_stock_movement(
        self,
        *,
        product_id: int,
        movement_date: datetime,
        quantity: float,
        type: str,
        reason: Optional[str],
        related_service_id: Optional[int] = None,
        related_bill_item_id: Optional[int] = None,
    ) -> StockMovement:
        movement = StockMovement(
            product_id=product_id,
            movement_date=movement_date,
            quantity=quantity,
            type=type,
            reason=reason,
            related_service_id=related_service_id,
            related_bill_item_id=related_bill_item_id,
        )
        self._session.add(movement)
        return movement

    def stock_movements(self, product_id: int) -> List[StockMovement]:
        stmt = (
            select(StockMovement)
            .where(StockMovement.product_id == product_id)
            .order_by(StockMovement.id)
        )
        return list(self._session.scalars(stmt))

    def stock_ledger_balance(self, product_id: int) -> float:
        totals = self._grouped_sums(
            StockMovement.type,
            StockMovement.quantity,
            StockMovement.product_id == product_id,
        )
        return float(totals.get("IN", 0) - totals.get("OUT", 0))

    def low_stock_products(self) -> List[Product]:
        stmt = (
            select(Product)
            .where(Product.is_active.is_(True))
            .where(Product.stock_quantity <= Product.min_stock)
            .order_by(Product.name)
        )
        return list(self._session.scalars(stmt))

    # Bills

    def add_bill(self, bill: Bill) -> Bill:
        self._session.add(bill)
        self._session.flush()
        return bill

    def add_bill_items(self, items: Iterable[BillItem]) -> List[BillItem]:
        rows = list(items)
        self._session.add_all(rows)
        self._session.flush()
        return rows

    def add_bill_payments(self, payments: Iterable[BillPayment]) -> None:
        self._session.add_all(list(payments))

    def get_bill(self, bill_id: int) -> Optional[Bill]:
        stmt = (
            select(Bill)
            .where(Bill.id == bill_id)
            .options(selectinload(Bill.items), selectinload(Bill.payments))
        )
        return self._session.scalars(stmt).first()

    def bills_between(self, start: datetime, end: datetime) -> Sequence[Bill]:
        stmt = (
            select(Bill)
            .where(Bill.bill_date >= start, Bill.bill_date < end)
            .options(selectinload(Bill.items), selectinload(Bill.payments))
            .order_by(Bill.id)
        )
        return list(self._session.scalars(stmt))

    # Settings

    def get_setting(self, key: str) -> Optional[str]:
        row = self._session.get(Setting, key)
        return row.value if row is not None else None

    def set_setting(self, key: str, value: str) -> None:
        row = self._session.get(Setting, key)
        if row is None:
            self._session.add(Setting(key=key, value=value))
        else:
            row.value = value

    def _grouped_sums(self, type_column, amount_column, condition) -> Dict[str, float]:
        stmt = (
            select(type_column, func.coalesce(func.sum(amount_column), 0))
            .where(condition)
            .group_by(type_column)
        )
        return {kind: total for kind, total in self._session.execute(stmt)}
