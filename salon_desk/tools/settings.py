from fastapi import APIRouter, Depends

from salon_desk.dependencies.services import get_settings_store
from salon_desk.schemas.billing import BillingConfig
from salon_desk.schemas.settings import BillingConfigUpdate
from salon_desk.services import SettingsStore
from salon_desk.services.exceptions import ServiceError
from salon_desk.tools.errors import http_error

router = APIRouter()


@router.get("/billing", response_model=BillingConfig)
async def get_billing_config(store: SettingsStore = Depends(get_settings_store)):
    try:
        return await store.billing_config()
    except ServiceError as exc:
        raise http_error(exc) from exc


@router.put("/billing", response_model=BillingConfig)
async def update_billing_config(
    req: BillingConfigUpdate,
    store: SettingsStore = Depends(get_settings_store),
):
    try:
        return await store.update_billing_config(req)
    except ServiceError as exc:
        raise http_error(exc) from exc
