"""Billing transaction.

A bill is built by running the request through a fixed chain of stages:

    Received -> Priced -> Taxed -> LoyaltyResolved -> PaymentValidated
             -> StockResolved -> Committed

Each stage takes the draft produced by the previous one and returns a new
draft or raises a ``ServiceError``. The stages only read from the database;
every row (bill, items, payments, loyalty entries, stock movements and the
two running balances) is written in the final stage, inside the same
transaction, so a failure anywhere leaves nothing behind.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, List, Optional

from salon_desk.db.models import Bill, BillItem, BillPayment, utc_now
from salon_desk.db.repository import LedgerRepository
from salon_desk.db.session import Database
from salon_desk.schemas.billing import (
    BillCreated,
    BillDetail,
    BillingConfig,
    BillItemView,
    BillPaymentView,
    BillRecord,
    BillRequest,
)
from salon_desk.services.exceptions import StorageError, ValidationError
from salon_desk.services.loyalty import LoyaltyResolution, resolve_loyalty
from salon_desk.services.payments import PaymentPlan, reconcile_payments
from salon_desk.services.pricing import PricingResult, price_items
from salon_desk.services.stock import StockDeduction, resolve_stock_deductions
from salon_desk.services.tax import TaxBreakdown, apply_discount_and_tax

logger = logging.getLogger(__name__)

FINAL = "FINAL"


class BillingStage(str, Enum):
    RECEIVED = "received"
    PRICED = "priced"
    TAXED = "taxed"
    LOYALTY_RESOLVED = "loyalty_resolved"
    PAYMENT_VALIDATED = "payment_validated"
    STOCK_RESOLVED = "stock_resolved"
    COMMITTED = "committed"


@dataclass(frozen=True)
class BillDraft:
    request: BillRequest
    config: BillingConfig
    customer_name: str
    bill_date: datetime
    stage: BillingStage = BillingStage.RECEIVED
    pricing: Optional[PricingResult] = None
    tax: Optional[TaxBreakdown] = None
    loyalty: Optional[LoyaltyResolution] = None
    net_amount: float = 0.0
    payments: Optional[PaymentPlan] = None
    stock: List[StockDeduction] = field(default_factory=list)

    def advance(self, stage: BillingStage, **changes) -> "BillDraft":
        logger.debug("Bill draft for %s: %s -> %s", self.customer_name, self.stage.value, stage.value)
        return replace(self, stage=stage, **changes)


def _iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


class BillingService:
    def __init__(
        self,
        database: Database,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._database = database
        self._clock = clock

    async def create(self, request: BillRequest, config: BillingConfig) -> BillCreated:
        """Price, settle and persist a bill as one atomic unit."""

        customer_name = (request.customer_name or "").strip()
        if not customer_name:
            raise ValidationError("customer name required")
        if not request.items:
            raise ValidationError("at least one service is required")

        logger.debug("Creating bill for %s with %d item(s)", customer_name, len(request.items))
        draft = BillDraft(
            request=request,
            config=config,
            customer_name=customer_name,
            bill_date=self._clock(),
        )

        with self._database.transaction() as session:
            repo = LedgerRepository(session)
            draft = self._price(draft)
            draft = self._tax(draft)
            draft = self._resolve_loyalty(draft, repo)
            draft = self._validate_payment(draft)
            draft = self._resolve_stock(draft, repo)
            created = self._commit(draft, repo)
        logger.debug(
            "Bill draft for %s: %s -> %s",
            draft.customer_name,
            draft.stage.value,
            BillingStage.COMMITTED.value,
        )

        logger.info(
            "Bill %s committed for %s: total=%.2f net=%.2f",
            created.id,
            created.customer_name,
            created.total_amount,
            created.net_amount,
        )
        return created

    # Stages

    @staticmethod
    def _price(draft: BillDraft) -> BillDraft:
        return draft.advance(BillingStage.PRICED, pricing=price_items(draft.request.items))

    @staticmethod
    def _tax(draft: BillDraft) -> BillDraft:
        rate = draft.request.gst_rate
        if rate is None:
            rate = draft.config.gst_rate
        tax = apply_discount_and_tax(
            draft.pricing.subtotal, draft.request.discount_amount, rate
        )
        return draft.advance(BillingStage.TAXED, tax=tax)

    @staticmethod
    def _resolve_loyalty(draft: BillDraft, repo: LedgerRepository) -> BillDraft:
        customer_id = draft.request.customer_id
        balance = 0
        if customer_id:
            customer = repo.get_customer(customer_id)
            if customer is None:
                raise ValidationError("customer not found")
            balance = int(customer.loyalty_points or 0)

        loyalty = resolve_loyalty(
            total_amount=draft.tax.total_amount,
            has_customer=bool(customer_id),
            current_balance=balance,
            accrual_rate=draft.config.loyalty_rate,
            requested_points=draft.request.loyalty_redeem_points,
        )
        net_amount = max(draft.tax.total_amount - loyalty.redemption_value, 0.0)
        return draft.advance(
            BillingStage.LOYALTY_RESOLVED, loyalty=loyalty, net_amount=net_amount
        )

    @staticmethod
    def _validate_payment(draft: BillDraft) -> BillDraft:
        plan = reconcile_payments(draft.net_amount, draft.request.payments)
        return draft.advance(BillingStage.PAYMENT_VALIDATED, payments=plan)

    @staticmethod
    def _resolve_stock(draft: BillDraft, repo: LedgerRepository) -> BillDraft:
        deductions = resolve_stock_deductions(
            draft.pricing.items, repo.service_product_links
        )
        return draft.advance(BillingStage.STOCK_RESOLVED, stock=deductions)

    def _commit(self, draft: BillDraft, repo: LedgerRepository) -> BillCreated:
        request = draft.request
        tax = draft.tax
        loyalty = draft.loyalty
        customer_id = request.customer_id or None

        bill = repo.add_bill(
            Bill(
                customer_id=customer_id,
                customer_name=draft.customer_name,
                bill_date=draft.bill_date,
                subtotal=tax.subtotal,
                discount_amount=tax.discount_amount,
                gst_rate=tax.gst_rate,
                gst_amount=tax.gst_amount,
                total_amount=tax.total_amount,
                net_amount=draft.net_amount,
                status=FINAL,
                loyalty_points_earned=loyalty.earned,
                loyalty_points_redeemed=loyalty.redeemed,
            )
        )

        items = repo.add_bill_items(
            BillItem(
                bill_id=bill.id,
                service_id=item.service_id,
                service_name=item.service_name,
                staff_id=item.staff_id,
                staff_name=item.staff_name,
                unit_price=item.unit_price,
                duration_minutes=item.duration_minutes,
                quantity=item.quantity,
                line_total=item.line_total,
            )
            for item in draft.pricing.items
        )

        repo.add_bill_payments(
            BillPayment(
                bill_id=bill.id,
                mode=payment.mode,
                amount=payment.amount,
                reference=payment.reference,
            )
            for payment in draft.payments.payments
        )

        if customer_id and loyalty.entries:
            repo.set_loyalty_balance(customer_id, loyalty.new_balance)
            for entry in loyalty.entries:
                repo.add_loyalty_transaction(
                    customer_id=customer_id,
                    bill_id=bill.id,
                    type=entry.type,
                    points=entry.points,
                )

        for deduction in draft.stock:
            if not repo.adjust_stock(deduction.product_id, deduction.delta):
                raise StorageError(
                    f"Product {deduction.product_id} linked to service "
                    f"{deduction.service_id} does not exist"
                )
            repo.add_stock_movement(
                product_id=deduction.product_id,
                movement_date=draft.bill_date,
                quantity=deduction.quantity,
                type=deduction.type,
                reason=deduction.reason,
                related_service_id=deduction.service_id,
                related_bill_item_id=items[deduction.item_index].id,
            )

        return BillCreated(
            id=bill.id,
            customer_id=customer_id,
            customer_name=draft.customer_name,
            bill_date=_iso(draft.bill_date),
            total_amount=tax.total_amount,
            net_amount=draft.net_amount,
        )

    async def get(self, bill_id: int) -> Optional[BillDetail]:
        if not bill_id:
            raise ValidationError("bill id is required")
        with self._database.reader() as session:
            bill = LedgerRepository(session).get_bill(bill_id)
            if bill is None:
                return None
            return BillDetail(
                bill=BillRecord(
                    id=bill.id,
                    customer_id=bill.customer_id,
                    customer_name=bill.customer_name,
                    bill_date=_iso(bill.bill_date),
                    subtotal=bill.subtotal,
                    discount_amount=bill.discount_amount,
                    gst_rate=bill.gst_rate,
                    gst_amount=bill.gst_amount,
                    total_amount=bill.total_amount,
                    net_amount=bill.net_amount,
                    status=bill.status,
                    loyalty_points_earned=bill.loyalty_points_earned,
                    loyalty_points_redeemed=bill.loyalty_points_redeemed,
                ),
                items=[
                    BillItemView(
                        service_name=item.service_name,
                        staff_name=item.staff_name,
                        unit_price=item.unit_price,
                        duration_minutes=item.duration_minutes,
                        quantity=item.quantity,
                        line_total=item.line_total,
                    )
                    for item in bill.items
                ],
                payments=[
                    BillPaymentView(
                        mode=payment.mode,
                        amount=payment.amount,
                        reference=payment.reference,
                    )
                    for payment in bill.payments
                ],
            )
