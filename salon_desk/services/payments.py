from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional, Sequence

from salon_desk.schemas.billing import PaymentInput
from salon_desk.services.exceptions import InsufficientPaymentError, ValidationError
from salon_desk.services.pricing import parse_number

logger = logging.getLogger(__name__)

DEFAULT_MODE = "Cash"


@dataclass(frozen=True)
class AcceptedPayment:
    mode: str
    amount: float
    reference: Optional[str] = None


@dataclass(frozen=True)
class PaymentPlan:
    payments: List[AcceptedPayment]
    paid_total: float
    net_amount: float

    @property
    def change_due(self) -> float:
        return max(self.paid_total - self.net_amount, 0.0)


def to_cents(amount: float) -> int:
    """Round half away from zero to whole cents.

    Rounds the shortest decimal form of the float, so ``10.005`` gives 1001.
    """

    cents = Decimal(repr(float(amount))).scaleb(2)
    return int(cents.to_integral_value(rounding=ROUND_HALF_UP))


def reconcile_payments(
    net_amount: float, tendered: Sequence[PaymentInput]
) -> PaymentPlan:
    """Check the tendered payments cover ``net_amount``.

    An empty tender list settles the bill with a single cash payment.
    Entries whose amount is missing, unparseable or not positive are left
    out of the plan instead of being rejected.
    """

    if not tendered:
        tendered = [PaymentInput(mode=DEFAULT_MODE, amount=net_amount)]

    accepted: List[AcceptedPayment] = []
    for payment in tendered:
        amount = parse_number(payment.amount)
        if amount is None or amount <= 0:
            logger.debug("Dropping tender %r with non-positive amount", payment.amount)
            continue
        mode = (payment.mode or "").strip() or DEFAULT_MODE
        reference = (payment.reference or "").strip() or None
        accepted.append(AcceptedPayment(mode=mode, amount=amount, reference=reference))

    try:
        paid_total = math.fsum(payment.amount for payment in accepted)
    except OverflowError as exc:
        raise ValidationError("invalid payment amount", cause=exc) from exc
    if to_cents(paid_total) < to_cents(net_amount):
        raise InsufficientPaymentError(paid=paid_total, due=net_amount)

    return PaymentPlan(payments=accepted, paid_total=paid_total, net_amount=net_amount)
