"""Loyalty point accrual and redemption.

``resolve_loyalty`` is the pure part used inside the billing transaction.
``LoyaltyService`` reads the ledger and can rebuild a customer's running
balance from it.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional

from salon_desk.db.repository import LedgerRepository
from salon_desk.db.session import Database
from salon_desk.schemas.loyalty import (
    LoyaltyEntryView,
    LoyaltyHistoryResponse,
    LoyaltyReconciliation,
)
from salon_desk.services.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

EARN = "EARN"
REDEEM = "REDEEM"

# 1 point is worth 1 currency unit at redemption.
POINT_VALUE = 1


@dataclass(frozen=True)
class LoyaltyEntry:
    type: str
    points: int


@dataclass(frozen=True)
class LoyaltyResolution:
    earned: int
    redeemed: int
    redemption_value: float
    balance_before: int
    new_balance: int
    entries: List[LoyaltyEntry] = field(default_factory=list)


def resolve_loyalty(
    *,
    total_amount: float,
    has_customer: bool,
    current_balance: int,
    accrual_rate: float,
    requested_points: Optional[float],
) -> LoyaltyResolution:
    balance = current_balance if has_customer else 0

    earned = 0
    if has_customer and accrual_rate > 0:
        accrued = total_amount * accrual_rate
        if not math.isfinite(accrued):
            raise ValidationError("invalid loyalty rate")
        earned = math.floor(accrued)

    requested = 0
    if requested_points and math.isfinite(requested_points) and requested_points > 0:
        requested = int(requested_points)
    redeemed = min(requested, balance) if has_customer else 0
    redeemed = max(redeemed, 0)

    entries: List[LoyaltyEntry] = []
    if earned > 0:
        entries.append(LoyaltyEntry(EARN, earned))
    if redeemed > 0:
        entries.append(LoyaltyEntry(REDEEM, redeemed))

    return LoyaltyResolution(
        earned=earned,
        redeemed=redeemed,
        redemption_value=float(redeemed * POINT_VALUE),
        balance_before=balance,
        new_balance=balance + earned - redeemed,
        entries=entries,
    )


class LoyaltyService:
    def __init__(self, database: Database) -> None:
        self._database = database

    async def history(self, customer_id: int) -> LoyaltyHistoryResponse:
        with self._database.reader() as session:
            repo = LedgerRepository(session)
            customer = repo.get_customer(customer_id)
            if customer is None:
                raise NotFoundError(f"Customer {customer_id} not found")
            entries = [
                LoyaltyEntryView(
                    bill_id=entry.bill_id,
                    type=entry.type,
                    points=entry.points,
                    created_at=entry.created_at.isoformat() if entry.created_at else None,
                )
                for entry in repo.loyalty_history(customer_id)
            ]
            return LoyaltyHistoryResponse(
                customer_id=customer_id,
                balance=customer.loyalty_points,
                total=len(entries),
                items=entries,
            )

    async def reconcile(self, customer_id: int, *, apply: bool = False) -> LoyaltyReconciliation:
        """Compare the running balance with the ledger and optionally repair it."""

        with self._database.transaction() as session:
            repo = LedgerRepository(session)
            customer = repo.get_customer(customer_id)
            if customer is None:
                raise NotFoundError(f"Customer {customer_id} not found")
            recorded = int(customer.loyalty_points or 0)
            expected = repo.loyalty_ledger_balance(customer_id)
            drift = recorded - expected
            repaired = False
            if drift and apply:
                logger.warning(
                    "Repairing loyalty balance for customer %s: %s -> %s",
                    customer_id,
                    recorded,
                    expected,
                )
                repo.set_loyalty_balance(customer_id, expected)
                repaired = True
            return LoyaltyReconciliation(
                customer_id=customer_id,
                recorded_balance=recorded,
                ledger_balance=expected,
                drift=drift,
                repaired=repaired,
            )
