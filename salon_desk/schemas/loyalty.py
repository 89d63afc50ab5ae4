from typing import List, Optional

from pydantic import BaseModel


class LoyaltyEntryView(BaseModel):
    bill_id: Optional[int] = None
    type: str
    points: int
    created_at: Optional[str] = None


class LoyaltyHistoryResponse(BaseModel):
    customer_id: int
    balance: int
    total: int
    items: List[LoyaltyEntryView]


class LoyaltyReconciliation(BaseModel):
    customer_id: int
    recorded_balance: int
    ledger_balance: int
    drift: int
    repaired: bool = False
