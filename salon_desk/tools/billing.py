from fastapi import APIRouter, Depends, HTTPException

from salon_desk.dependencies.services import get_billing_service, get_settings_store
from salon_desk.schemas.billing import BillCreated, BillDetail, BillRequest
from salon_desk.services import BillingService, SettingsStore
from salon_desk.services.exceptions import ServiceError
from salon_desk.tools.errors import http_error

router = APIRouter()


@router.post("/create", response_model=BillCreated)
async def create_bill(
    req: BillRequest,
    service: BillingService = Depends(get_billing_service),
    settings_store: SettingsStore = Depends(get_settings_store),
):
    try:
        config = await settings_store.billing_config()
        return await service.create(req, config)
    except ServiceError as exc:
        raise http_error(exc) from exc


@router.get("/{bill_id}", response_model=BillDetail)
async def get_bill(
    bill_id: int,
    service: BillingService = Depends(get_billing_service),
):
    try:
        detail = await service.get(bill_id)
    except ServiceError as exc:
        raise http_error(exc) from exc
    if detail is None:
        raise HTTPException(status_code=404, detail="Bill not found")
    return detail
