import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, status

from ledger.core.audit import record_audit
from ledger.core.dependencies import get_rate_service, require_permission
from ledger.core.pagination import ListParams, Page
from ledger.db.schema import AuditAction, User
from ledger.models.common import ApiResponse, CONFLICT_RESPONSES, Deleted, ok
from ledger.models.rate import RateCreate, RateRead, RateUpdate
from ledger.services.rate import RateService


router = APIRouter()


@router.get(
    "/",
    response_model=ApiResponse[Page[RateRead]],
    summary="List Rates",
    description="`date` keeps only rates whose validity window contains that day."
)
def list_rates(
    params: ListParams = Depends(),
    product_id: Optional[uuid.UUID] = None,
    unit: Optional[str] = None,
    is_active: Optional[bool] = None,
    on_date: Optional[date] = Query(None, alias="date"),
    current_user: User = Depends(require_permission("rates.view")),
    service: RateService = Depends(get_rate_service)
):
    return ok(service.list_rates(
        params, product_id=product_id, unit=unit, is_active=is_active, on_date=on_date))


@router.post(
    "/",
    response_model=ApiResponse[RateRead],
    status_code=status.HTTP_201_CREATED,
    summary="Create Rate",
    description=(
        "Adds a new price for a product and unit. Open-ended rates of the same "
        "product and unit that started earlier are closed the day before."
    )
)
def create_rate(
    rate_in: RateCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_permission("rates.create")),
    service: RateService = Depends(get_rate_service)
):
    rate = service.create_rate(rate_in)
    record_audit(background_tasks, request, service.session, current_user,
                 AuditAction.CREATED, "rate", rate.id, rate_in.model_dump())
    return ok(RateRead.model_validate(rate), "Rate created successfully")


@router.get(
    "/{rate_id}",
    response_model=ApiResponse[RateRead],
    summary="Get Rate"
)
def get_rate(
    rate_id: uuid.UUID,
    current_user: User = Depends(require_permission("rates.view")),
    service: RateService = Depends(get_rate_service)
):
    return ok(RateRead.model_validate(service.get_rate(rate_id)))


@router.put(
    "/{rate_id}",
    response_model=ApiResponse[RateRead],
    summary="Update Rate",
    description="Existing collections keep the rate they were priced with.",
    responses=CONFLICT_RESPONSES
)
def update_rate(
    rate_id: uuid.UUID,
    data: RateUpdate,
    request: Request,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_permission("rates.edit")),
    service: RateService = Depends(get_rate_service)
):
    rate = service.update_rate(rate_id, data)
    record_audit(background_tasks, request, service.session, current_user,
                 AuditAction.UPDATED, "rate", rate.id, data.model_dump(exclude_unset=True))
    return ok(RateRead.model_validate(rate), "Rate updated successfully")


@router.delete(
    "/{rate_id}",
    response_model=ApiResponse[Deleted],
    summary="Delete Rate",
    description="Refused with 422 while live collections were priced with this rate."
)
def delete_rate(
    rate_id: uuid.UUID,
    request: Request,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_permission("rates.delete")),
    service: RateService = Depends(get_rate_service)
):
    rate = service.delete_rate(rate_id)
    record_audit(background_tasks, request, service.session, current_user,
                 AuditAction.DELETED, "rate", rate.id)
    return ok(Deleted(id=rate.id), "Rate deleted successfully")
