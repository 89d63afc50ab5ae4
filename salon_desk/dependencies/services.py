from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from salon_desk.config import Settings, get_settings
from salon_desk.db.session import Database
from salon_desk.services import (
    BillingService,
    InventoryService,
    LoyaltyService,
    ReportService,
    SettingsStore,
)


@lru_cache(maxsize=1)
def get_database_cached() -> Database:
    settings = get_settings()
    database = Database(settings.database_url, echo=settings.sql_echo)
    database.create_all()
    return database


def get_database(settings: Settings = Depends(get_settings)) -> Database:
    return get_database_cached()


def get_settings_store(
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_settings),
) -> SettingsStore:
    return SettingsStore(
        database,
        default_gst_rate=settings.default_gst_rate,
        default_loyalty_rate=settings.default_loyalty_rate,
    )


def get_billing_service(
    database: Database = Depends(get_database),
) -> BillingService:
    return BillingService(database)


def get_inventory_service(
    database: Database = Depends(get_database),
) -> InventoryService:
    return InventoryService(database)


def get_loyalty_service(
    database: Database = Depends(get_database),
) -> LoyaltyService:
    return LoyaltyService(database)


def get_report_service(
    database: Database = Depends(get_database),
) -> ReportService:
    return ReportService(database)
