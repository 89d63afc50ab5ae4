"""Line item validation and pricing.

Pure functions: no database access and no logging side effects beyond
debug traces.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Sequence

from salon_desk.schemas.billing import LineItemInput
from salon_desk.services.exceptions import ValidationError


def parse_number(value: Any) -> Optional[float]:
    """Return ``value`` as a finite float, or ``None`` when it is not one."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _as_positive_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, float) and value.is_integer() and value > 0:
        return int(value)
    return None


@dataclass(frozen=True)
class PricedItem:
    service_id: Optional[int]
    service_name: str
    staff_id: Optional[int]
    staff_name: Optional[str]
    unit_price: float
    duration_minutes: int
    quantity: int
    line_total: float


@dataclass(frozen=True)
class PricingResult:
    items: List[PricedItem]
    subtotal: float


def price_item(item: LineItemInput) -> PricedItem:
    service_name = (item.service_name or "").strip()
    if not service_name:
        raise ValidationError("service name required")

    unit_price = parse_number(item.unit_price)
    if unit_price is None or unit_price < 0:
        raise ValidationError("invalid price")

    if _is_blank(item.duration_minutes):
        duration = 0
    else:
        parsed_duration = parse_number(item.duration_minutes)
        if parsed_duration is None or parsed_duration < 0 or not parsed_duration.is_integer():
            raise ValidationError("invalid duration")
        duration = int(parsed_duration)

    if item.quantity is None:
        quantity = 1
    else:
        quantity = _as_positive_int(item.quantity)
        if quantity is None:
            raise ValidationError("invalid quantity")

    line_total = unit_price * quantity
    if not math.isfinite(line_total):
        raise ValidationError("invalid price")

    staff_name = (item.staff_name or "").strip() or None
    return PricedItem(
        service_id=item.service_id or None,
        service_name=service_name,
        staff_id=item.staff_id or None,
        staff_name=staff_name,
        unit_price=unit_price,
        duration_minutes=duration,
        quantity=quantity,
        line_total=line_total,
    )


def price_items(items: Sequence[LineItemInput] | Iterable[LineItemInput]) -> PricingResult:
    """Validate and price every line, in order; the first bad line aborts."""

    priced = [price_item(item) for item in items]
    try:
        subtotal = math.fsum(item.line_total for item in priced)
    except OverflowError as exc:
        raise ValidationError("invalid price", cause=exc) from exc
    return PricingResult(items=priced, subtotal=subtotal)
