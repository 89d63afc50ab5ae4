from fastapi import APIRouter, Depends

from salon_desk.dependencies.services import get_loyalty_service
from salon_desk.schemas.loyalty import LoyaltyHistoryResponse, LoyaltyReconciliation
from salon_desk.services import LoyaltyService
from salon_desk.services.exceptions import ServiceError
from salon_desk.tools.errors import http_error

router = APIRouter()


@router.get("/customers/{customer_id}", response_model=LoyaltyHistoryResponse)
async def loyalty_history(
    customer_id: int,
    service: LoyaltyService = Depends(get_loyalty_service),
):
    try:
        return await service.history(customer_id)
    except ServiceError as exc:
        raise http_error(exc) from exc


@router.post("/customers/{customer_id}/reconcile", response_model=LoyaltyReconciliation)
async def reconcile_loyalty(
    customer_id: int,
    apply: bool = False,
    service: LoyaltyService = Depends(get_loyalty_service),
):
    try:
        return await service.reconcile(customer_id, apply=apply)
    except ServiceError as exc:
        raise http_error(exc) from exc
