from __future__ import annotations

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class ReportRequest(BaseModel):
    """Request payload for the end-of-day reports."""

    date: str = Field(..., description="ISO formatted date (YYYY-MM-DD)")
    expenses: float = Field(
        default=0.0,
        ge=0,
        description="Expenses recorded for the day, used by the cash closing report.",
    )

    @field_validator("date")
    @classmethod
    def _validate_date(cls, value: str) -> str:
        try:
            date.fromisoformat(value)
        except ValueError as exc:
            raise ValueError("date must be provided in ISO format YYYY-MM-DD") from exc
        return value


class ServiceUsage(BaseModel):
    service_name: str
    usage_count: int
    revenue: float


class StaffServiceCount(BaseModel):
    staff_name: Optional[str] = None
    service_count: int


class DailySummaryResponse(BaseModel):
    date: str
    total_revenue: float
    customers_served: int
    bill_count: int
    top_services: List[ServiceUsage]
    staff_service_counts: List[StaffServiceCount]


class ModeIncome(BaseModel):
    mode: str
    total: float


class CashClosingResponse(BaseModel):
    date: str
    income_by_mode: List[ModeIncome]
    total_income: float
    total_expenses: float
    net_cash: float
