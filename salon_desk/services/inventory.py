from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from salon_desk.db.models import StockMovement, utc_now
from salon_desk.db.repository import LedgerRepository
from salon_desk.db.session import Database
from salon_desk.schemas.inventory import (
    LowStockItem,
    LowStockResponse,
    StockMoveRequest,
    StockMoveResponse,
    StockMovementListResponse,
    StockMovementView,
    StockReconciliation,
)
from salon_desk.services.exceptions import NotFoundError, ValidationError
from salon_desk.services.pricing import parse_number

logger = logging.getLogger(__name__)

# Counters are floats; differences below this are rounding noise.
_DRIFT_TOLERANCE = 1e-9


def _movement_view(movement: StockMovement) -> StockMovementView:
    moved_at = movement.movement_date
    if moved_at.tzinfo is None:
        moved_at = moved_at.replace(tzinfo=timezone.utc)
    return StockMovementView(
        id=movement.id,
        product_id=movement.product_id,
        movement_date=moved_at.isoformat(),
        quantity=movement.quantity,
        type=movement.type,
        reason=movement.reason,
        related_service_id=movement.related_service_id,
        related_bill_item_id=movement.related_bill_item_id,
    )


class InventoryService:
    def __init__(
        self,
        database: Database,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._database = database
        self._clock = clock

    async def stock_move(self, request: StockMoveRequest) -> StockMoveResponse:
        """Record a manual stock adjustment and move the product counter with it."""

        quantity = parse_number(request.quantity)
        if quantity is None or quantity <= 0:
            raise ValidationError("quantity must be positive")
        direction = "OUT" if request.type == "OUT" else "IN"
        reason = (request.reason or "").strip() or None
        signed = -quantity if direction == "OUT" else quantity

        with self._database.transaction() as session:
            repo = LedgerRepository(session)
            product = repo.get_product(request.product_id)
            if product is None:
                raise NotFoundError(f"Product {request.product_id} not found")
            repo.adjust_stock(product.id, signed)
            movement = repo.add_stock_movement(
                product_id=product.id,
                movement_date=self._clock(),
                quantity=quantity,
                type=direction,
                reason=reason,
            )
            session.flush()
            session.refresh(product)
            response = StockMoveResponse(
                product_id=product.id,
                stock_quantity=product.stock_quantity,
                movement=_movement_view(movement),
            )

        logger.info(
            "Stock %s %s for product %s (%s)",
            direction,
            quantity,
            request.product_id,
            reason or "no reason",
        )
        return response

    async def movements(self, product_id: int) -> StockMovementListResponse:
        with self._database.reader() as session:
            repo = LedgerRepository(session)
            if repo.get_product(product_id) is None:
                raise NotFoundError(f"Product {product_id} not found")
            items = [_movement_view(m) for m in repo.stock_movements(product_id)]
            return StockMovementListResponse(
                product_id=product_id, total=len(items), items=items
            )

    async def reconcile(self, product_id: int, *, apply: bool = False) -> StockReconciliation:
        """Rebuild the stock counter from the movement ledger.

        Opening stock must have been booked as an ``IN`` movement for the
        ledger value to be meaningful.
        """

        with self._database.transaction() as session:
            repo = LedgerRepository(session)
            product = repo.get_product(product_id)
            if product is None:
                raise NotFoundError(f"Product {product_id} not found")
            recorded = float(product.stock_quantity or 0)
            expected = repo.stock_ledger_balance(product_id)
            drift = recorded - expected
            repaired = False
            if abs(drift) > _DRIFT_TOLERANCE and apply:
                logger.warning(
                    "Repairing stock for product %s: %s -> %s", product_id, recorded, expected
                )
                repo.set_stock(product_id, expected)
                repaired = True
            return StockReconciliation(
                product_id=product_id,
                recorded_quantity=recorded,
                ledger_quantity=expected,
                drift=drift if abs(drift) > _DRIFT_TOLERANCE else 0.0,
                repaired=repaired,
            )

    async def low_stock(self) -> LowStockResponse:
        with self._database.reader() as session:
            items = [
                LowStockItem(
                    product_id=product.id,
                    name=product.name,
                    stock_quantity=product.stock_quantity,
                    min_stock=product.min_stock,
                )
                for product in LedgerRepository(session).low_stock_products()
            ]
        return LowStockResponse(total=len(items), items=items)
