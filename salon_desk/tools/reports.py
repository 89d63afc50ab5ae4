from fastapi import APIRouter, Depends

from salon_desk.dependencies.services import get_report_service
from salon_desk.schemas.reports import (
    CashClosingResponse,
    DailySummaryResponse,
    ReportRequest,
)
from salon_desk.services import ReportService
from salon_desk.services.exceptions import ServiceError
from salon_desk.tools.errors import http_error

router = APIRouter()


@router.post("/daily-summary", response_model=DailySummaryResponse)
async def daily_summary(
    req: ReportRequest,
    service: ReportService = Depends(get_report_service),
):
    try:
        return await service.daily_summary(req)
    except ServiceError as exc:
        raise http_error(exc) from exc


@router.post("/cash-closing", response_model=CashClosingResponse)
async def cash_closing(
    req: ReportRequest,
    service: ReportService = Depends(get_report_service),
):
    try:
        return await service.cash_closing(req)
    except ServiceError as exc:
        raise http_error(exc) from exc
