import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status

from ledger.core.audit import record_audit
from ledger.core.dependencies import get_payment_service, require_permission
from ledger.core.pagination import ListParams, Page
from ledger.db.schema import AuditAction, PaymentType, User
from ledger.models.common import ApiResponse, CONFLICT_RESPONSES, DUPLICATE_RESPONSES, Deleted, ok
from ledger.models.payment import PaymentCreate, PaymentRead, PaymentUpdate
from ledger.services.payment import PaymentService


router = APIRouter()


@router.get(
    "/",
    response_model=ApiResponse[Page[PaymentRead]],
    summary="List Payments"
)
def list_payments(
    params: ListParams = Depends(),
    supplier_id: Optional[uuid.UUID] = None,
    user_id: Optional[uuid.UUID] = None,
    type: Optional[PaymentType] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    current_user: User = Depends(require_permission("payments.view")),
    service: PaymentService = Depends(get_payment_service)
):
    return ok(service.list_payments(
        params,
        supplier_id=supplier_id,
        user_id=user_id,
        type=type,
        start_date=start_date,
        end_date=end_date,
    ))


@router.post(
    "/",
    response_model=ApiResponse[PaymentRead],
    status_code=status.HTTP_201_CREATED,
    summary="Record Payment",
    responses=DUPLICATE_RESPONSES
)
def create_payment(
    payment_in: PaymentCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_permission("payments.create")),
    service: PaymentService = Depends(get_payment_service)
):
    payment = service.create_payment(payment_in, current_user)
    record_audit(background_tasks, request, service.session, current_user,
                 AuditAction.CREATED, "payment", payment.id, payment_in.model_dump())
    return ok(PaymentRead.model_validate(payment), "Payment created successfully")


@router.get(
    "/{payment_id}",
    response_model=ApiResponse[PaymentRead],
    summary="Get Payment"
)
def get_payment(
    payment_id: uuid.UUID,
    current_user: User = Depends(require_permission("payments.view")),
    service: PaymentService = Depends(get_payment_service)
):
    return ok(PaymentRead.model_validate(service.get_payment(payment_id)))


@router.put(
    "/{payment_id}",
    response_model=ApiResponse[PaymentRead],
    summary="Update Payment",
    responses=CONFLICT_RESPONSES
)
def update_payment(
    payment_id: uuid.UUID,
    data: PaymentUpdate,
    request: Request,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_permission("payments.edit")),
    service: PaymentService = Depends(get_payment_service)
):
    payment = service.update_payment(payment_id, data)
    record_audit(background_tasks, request, service.session, current_user,
                 AuditAction.UPDATED, "payment", payment.id, data.model_dump(exclude_unset=True))
    return ok(PaymentRead.model_validate(payment), "Payment updated successfully")


@router.delete(
    "/{payment_id}",
    response_model=ApiResponse[Deleted],
    summary="Delete Payment"
)
def delete_payment(
    payment_id: uuid.UUID,
    request: Request,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_permission("payments.delete")),
    service: PaymentService = Depends(get_payment_service)
):
    payment = service.delete_payment(payment_id)
    record_audit(background_tasks, request, service.session, current_user,
                 AuditAction.DELETED, "payment", payment.id)
    return ok(Deleted(id=payment.id), "Payment deleted successfully")
