from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from salon_desk.services.exceptions import ValidationError


@dataclass(frozen=True)
class TaxBreakdown:
    subtotal: float
    discount_amount: float
    taxable_amount: float
    gst_rate: float
    gst_amount: float
    total_amount: float


def apply_discount_and_tax(
    subtotal: float, discount: Optional[float], gst_rate: float
) -> TaxBreakdown:
    """Apply the manual discount and tax rate to a subtotal.

    A negative discount counts as none and a discount above the subtotal is
    absorbed by the zero floor. A discount that is not a finite number also
    counts as none. Amounts are left unrounded.
    """

    if gst_rate is None or not math.isfinite(gst_rate) or gst_rate < 0:
        raise ValidationError("invalid tax rate")
    if discount and math.isfinite(discount) and discount > 0:
        discount_amount = discount
    else:
        discount_amount = 0.0
    taxable = max(subtotal - discount_amount, 0.0)
    gst_amount = taxable * gst_rate / 100
    if not math.isfinite(taxable + gst_amount):
        raise ValidationError("bill total out of range")
    return TaxBreakdown(
        subtotal=subtotal,
        discount_amount=discount_amount,
        taxable_amount=taxable,
        gst_rate=gst_rate,
        gst_amount=gst_amount,
        total_amount=taxable + gst_amount,
    )
