from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, List, Tuple

from salon_desk.services.pricing import PricedItem

SERVICE_USAGE = "SERVICE_USAGE"

LinkLookup = Callable[[int], Iterable[Tuple[int, float]]]


@dataclass(frozen=True)
class StockDeduction:
    """One product consumed by one priced line.

    ``item_index`` points back at the line in the priced item list so the
    movement can be tied to the bill item once it has an id.
    """

    product_id: int
    quantity: float
    service_id: int
    item_index: int
    reason: str = SERVICE_USAGE
    type: str = "OUT"

    @property
    def delta(self) -> float:
        return -self.quantity


def resolve_stock_deductions(
    items: Iterable[PricedItem], links_for_service: LinkLookup
) -> List[StockDeduction]:
    deductions: List[StockDeduction] = []
    for index, item in enumerate(items):
        if not item.service_id:
            continue
        for product_id, per_use in links_for_service(item.service_id):
            used_qty = (per_use or 0) * item.quantity
            if not used_qty:
                continue
            deductions.append(
                StockDeduction(
                    product_id=product_id,
                    quantity=used_qty,
                    service_id=item.service_id,
                    item_index=index,
                )
            )
    return deductions
