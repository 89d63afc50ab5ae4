"""End-of-day reports computed from the bill ledger."""
from __future__ import annotations

import logging
import math
from collections import defaultdict
from datetime import date, datetime, time, timedelta, timezone
from typing import DefaultDict, Dict, List, Sequence, Tuple

from salon_desk.db.models import Bill
from salon_desk.db.repository import LedgerRepository
from salon_desk.db.session import Database
from salon_desk.schemas.reports import (
    CashClosingResponse,
    DailySummaryResponse,
    ModeIncome,
    ReportRequest,
    ServiceUsage,
    StaffServiceCount,
)

logger = logging.getLogger(__name__)

_TOP_SERVICES_LIMIT = 20


def _day_bounds(day: str) -> Tuple[datetime, datetime]:
    start = datetime.combine(date.fromisoformat(day), time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


class ReportService:
    def __init__(self, database: Database) -> None:
        self._database = database

    def _bills_for(self, day: str) -> Sequence[Bill]:
        start, end = _day_bounds(day)
        with self._database.reader() as session:
            return LedgerRepository(session).bills_between(start, end)

    async def daily_summary(self, request: ReportRequest) -> DailySummaryResponse:
        logger.info("Building daily summary for %s", request.date)
        bills = self._bills_for(request.date)

        usage: Dict[str, List[float]] = {}
        staff: DefaultDict[Tuple[int, str | None], int] = defaultdict(int)
        for bill in bills:
            for item in bill.items:
                stats = usage.setdefault(item.service_name, [0, 0.0])
                stats[0] += 1
                stats[1] += item.line_total
                if item.staff_id is not None:
                    staff[(item.staff_id, item.staff_name)] += 1

        top_services = sorted(
            (
                ServiceUsage(service_name=name, usage_count=count, revenue=revenue)
                for name, (count, revenue) in usage.items()
            ),
            key=lambda entry: (-entry.usage_count, -entry.revenue),
        )[:_TOP_SERVICES_LIMIT]
        staff_counts = sorted(
            (
                StaffServiceCount(staff_name=name, service_count=count)
                for (_, name), count in staff.items()
            ),
            key=lambda entry: -entry.service_count,
        )

        return DailySummaryResponse(
            date=request.date,
            total_revenue=math.fsum(bill.total_amount for bill in bills),
            customers_served=len({b.customer_id for b in bills if b.customer_id is not None}),
            bill_count=len(bills),
            top_services=top_services,
            staff_service_counts=staff_counts,
        )

    async def cash_closing(self, request: ReportRequest) -> CashClosingResponse:
        logger.info("Building cash closing for %s", request.date)
        bills = self._bills_for(request.date)

        by_mode: Dict[str, float] = {}
        for bill in bills:
            for payment in bill.payments:
                by_mode[payment.mode] = by_mode.get(payment.mode, 0.0) + payment.amount

        total_income = math.fsum(bill.net_amount for bill in bills)
        return CashClosingResponse(
            date=request.date,
            income_by_mode=[
                ModeIncome(mode=mode, total=total) for mode, total in sorted(by_mode.items())
            ],
            total_income=total_income,
            total_expenses=request.expenses,
            net_cash=total_income - request.expenses,
        )
