"""Service package public API definitions.

Service implementations are imported lazily. ``salon_desk.db.session``
imports ``salon_desk.services.exceptions``, and the services themselves import
the database layer, so importing them eagerly here would create an import
cycle at start up.
"""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING, Any

__all__ = [
    "BillingService",
    "InventoryService",
    "LoyaltyService",
    "ReportService",
    "SettingsStore",
]

_SERVICE_MODULES = {
    "BillingService": "billing",
    "InventoryService": "inventory",
    "LoyaltyService": "loyalty",
    "ReportService": "reports",
    "SettingsStore": "settings_store",
}


def __getattr__(name: str) -> Any:
    if name not in _SERVICE_MODULES:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

    module = import_module(f".{_SERVICE_MODULES[name]}", __name__)
    attr = getattr(module, name)
    globals()[name] = attr
    return attr


if TYPE_CHECKING:  # pragma: no cover - import for static analysis only
    from .billing import BillingService as BillingService
    from .inventory import InventoryService as InventoryService
    from .loyalty import LoyaltyService as LoyaltyService
    from .reports import ReportService as ReportService
    from .settings_store import SettingsStore as SettingsStore
