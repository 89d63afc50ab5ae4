# salon_desk/mcp_server.py
from __future__ import annotations

import logging

from mcp.server.fastmcp import FastMCP, Context

from salon_desk.config import get_settings
from salon_desk.dependencies.services import get_database_cached
from salon_desk.schemas.billing import BillCreated, BillDetail, BillRequest
from salon_desk.schemas.reports import DailySummaryResponse, ReportRequest
from salon_desk.services import BillingService, ReportService, SettingsStore
from salon_desk.services.exceptions import ServiceError

log = logging.getLogger("salon.mcp")

# Name shown to MCP clients
mcp = FastMCP("salon_desk")


def _settings_store() -> SettingsStore:
    settings = get_settings()
    return SettingsStore(
        get_database_cached(),
        default_gst_rate=settings.default_gst_rate,
        default_loyalty_rate=settings.default_loyalty_rate,
    )


@mcp.tool(name="billing_create", description="Create a finalized bill with payments")
async def billing_create(input: BillRequest, ctx: Context) -> BillCreated:
    log.debug("billing_create input=%s", input.model_dump())
    config = await _settings_store().billing_config()
    try:
        out = await BillingService(get_database_cached()).create(input, config)
    except ServiceError as exc:
        log.debug("billing_create rejected: %s", exc)
        raise ValueError(str(exc)) from exc
    log.debug("billing_create output=%s", out.model_dump())
    return out


@mcp.tool(name="billing_get", description="Fetch a bill with its line items and payments")
async def billing_get(bill_id: int, ctx: Context) -> BillDetail:
    log.debug("billing_get bill_id=%s", bill_id)
    try:
        out = await BillingService(get_database_cached()).get(bill_id)
    except ServiceError as exc:
        raise ValueError(str(exc)) from exc
    if out is None:
        raise ValueError(f"Bill {bill_id} not found")
    return out


@mcp.tool(name="reports_daily_summary", description="Revenue, customers and top services for a day")
async def reports_daily_summary(input: ReportRequest, ctx: Context) -> DailySummaryResponse:
    log.debug("reports_daily_summary input=%s", input.model_dump())
    out = await ReportService(get_database_cached()).daily_summary(input)
    log.debug("reports_daily_summary output=%s", out.model_dump())
    return out


@mcp.tool(name="ping", description="Health check")
async def ping(message: str) -> str:
    log.debug("ping %s", message)
    return f"pong: {message}"
