from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class StockMoveRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: int = Field(..., alias="productId")
    quantity: float
    type: Literal["IN", "OUT"] = "IN"
    reason: Optional[str] = None


class StockMovementView(BaseModel):
    id: int
    product_id: int
    movement_date: str
    quantity: float
    type: str
    reason: Optional[str] = None
    related_service_id: Optional[int] = None
    related_bill_item_id: Optional[int] = None


class StockMoveResponse(BaseModel):
    product_id: int
    stock_quantity: float
    movement: StockMovementView


class StockMovementListResponse(BaseModel):
    product_id: int
    total: int
    items: List[StockMovementView]


class StockReconciliation(BaseModel):
    product_id: int
    recorded_quantity: float
    ledger_quantity: float
    drift: float
    repaired: bool = False


class LowStockItem(BaseModel):
    product_id: int
    name: str
    stock_quantity: float
    min_stock: float


class LowStockResponse(BaseModel):
    total: int
    items: List[LowStockItem]
