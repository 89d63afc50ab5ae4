from __future__ import annotations

import logging
from typing import Optional

from salon_desk.db.repository import LedgerRepository
from salon_desk.db.session import Database
from salon_desk.schemas.billing import BillingConfig
from salon_desk.schemas.settings import BillingConfigUpdate
from salon_desk.services.pricing import parse_number

logger = logging.getLogger(__name__)

GST_RATE_KEY = "gst_rate"
LOYALTY_RATE_KEY = "loyalty_rate"


class SettingsStore:
    """Key-value settings persisted in the ``settings`` table."""

    def __init__(
        self,
        database: Database,
        *,
        default_gst_rate: float = 0.0,
        default_loyalty_rate: float = 0.0,
    ) -> None:
        self._database = database
        self._defaults = {
            GST_RATE_KEY: default_gst_rate,
            LOYALTY_RATE_KEY: default_loyalty_rate,
        }

    def get(self, key: str) -> Optional[str]:
        with self._database.reader() as session:
            return LedgerRepository(session).get_setting(key)

    def set(self, key: str, value: str) -> None:
        with self._database.transaction() as session:
            LedgerRepository(session).set_setting(key, str(value))
        logger.info("Setting %s updated to %s", key, value)

    def _rate(self, key: str) -> float:
        value = parse_number(self.get(key))
        if value is None or value < 0:
            return self._defaults[key]
        return value

    async def billing_config(self) -> BillingConfig:
        return BillingConfig(
            gst_rate=self._rate(GST_RATE_KEY),
            loyalty_rate=self._rate(LOYALTY_RATE_KEY),
        )

    async def update_billing_config(self, update: BillingConfigUpdate) -> BillingConfig:
        if update.gst_rate is not None:
            self.set(GST_RATE_KEY, repr(update.gst_rate))
        if update.loyalty_rate is not None:
            self.set(LOYALTY_RATE_KEY, repr(update.loyalty_rate))
        return await self.billing_config()
