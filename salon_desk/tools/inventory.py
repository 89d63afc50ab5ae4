from fastapi import APIRouter, Depends

from salon_desk.dependencies.services import get_inventory_service
from salon_desk.schemas.inventory import (
    LowStockResponse,
    StockMoveRequest,
    StockMoveResponse,
    StockMovementListResponse,
    StockReconciliation,
)
from salon_desk.services import InventoryService
from salon_desk.services.exceptions import ServiceError
from salon_desk.tools.errors import http_error

router = APIRouter()


@router.post("/stock-move", response_model=StockMoveResponse)
async def stock_move(
    req: StockMoveRequest,
    service: InventoryService = Depends(get_inventory_service),
):
    try:
        return await service.stock_move(req)
    except ServiceError as exc:
        raise http_error(exc) from exc


@router.get("/low-stock", response_model=LowStockResponse)
async def low_stock(service: InventoryService = Depends(get_inventory_service)):
    try:
        return await service.low_stock()
    except ServiceError as exc:
        raise http_error(exc) from exc


@router.get("/products/{product_id}/movements", response_model=StockMovementListResponse)
async def list_movements(
    product_id: int,
    service: InventoryService = Depends(get_inventory_service),
):
    try:
        return await service.movements(product_id)
    except ServiceError as exc:
        raise http_error(exc) from exc


@router.post("/products/{product_id}/reconcile", response_model=StockReconciliation)
async def reconcile_stock(
    product_id: int,
    apply: bool = False,
    service: InventoryService = Depends(get_inventory_service),
):
    try:
        return await service.reconcile(product_id, apply=apply)
    except ServiceError as exc:
        raise http_error(exc) from exc
