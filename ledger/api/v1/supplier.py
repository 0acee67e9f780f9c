import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, status

from ledger.core.audit import record_audit
from ledger.core.dependencies import get_supplier_service, require_permission
from ledger.core.pagination import ListParams, Page
from ledger.db.schema import AuditAction, User
from ledger.models.collection import CollectionRead
from ledger.models.common import ApiResponse, CONFLICT_RESPONSES, DUPLICATE_RESPONSES, Deleted, ok
from ledger.models.payment import PaymentRead
from ledger.models.supplier import SupplierBalance, SupplierCreate, SupplierRead, SupplierUpdate
from ledger.services.supplier import SupplierService


router = APIRouter()


@router.get(
    "/",
    response_model=ApiResponse[Page[SupplierRead]],
    summary="List Suppliers",
    description="Paginated list. `search` matches name, code and region."
)
def list_suppliers(
    params: ListParams = Depends(),
    is_active: Optional[bool] = None,
    current_user: User = Depends(require_permission("suppliers.view")),
    service: SupplierService = Depends(get_supplier_service)
):
    return ok(service.list_suppliers(params, is_active=is_active))


@router.post(
    "/",
    response_model=ApiResponse[SupplierRead],
    status_code=status.HTTP_201_CREATED,
    summary="Create Supplier",
    responses=DUPLICATE_RESPONSES
)
def create_supplier(
    supplier_in: SupplierCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_permission("suppliers.create")),
    service: SupplierService = Depends(get_supplier_service)
):
    supplier = service.create_supplier(supplier_in)
    record_audit(background_tasks, request, service.session, current_user,
                 AuditAction.CREATED, "supplier", supplier.id, supplier_in.model_dump())
    return ok(SupplierRead.model_validate(supplier), "Supplier created successfully")


@router.get(
    "/{supplier_id}",
    response_model=ApiResponse[SupplierRead],
    summary="Get Supplier"
)
def get_supplier(
    supplier_id: uuid.UUID,
    current_user: User = Depends(require_permission("suppliers.view")),
    service: SupplierService = Depends(get_supplier_service)
):
    return ok(SupplierRead.model_validate(service.get_supplier(supplier_id)))


@router.put(
    "/{supplier_id}",
    response_model=ApiResponse[SupplierRead],
    summary="Update Supplier",
    description=(
        "Partial update guarded by optimistic locking. Send the `version` you read; "
        "if someone else saved in between the answer is 409 with the current record."
    ),
    responses=CONFLICT_RESPONSES
)
def update_supplier(
    supplier_id: uuid.UUID,
    data: SupplierUpdate,
    request: Request,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_permission("suppliers.edit")),
    service: SupplierService = Depends(get_supplier_service)
):
    supplier = service.update_supplier(supplier_id, data)
    record_audit(background_tasks, request, service.session, current_user,
                 AuditAction.UPDATED, "supplier", supplier.id, data.model_dump(exclude_unset=True))
    return ok(SupplierRead.model_validate(supplier), "Supplier updated successfully")


@router.delete(
    "/{supplier_id}",
    response_model=ApiResponse[Deleted],
    summary="Delete Supplier",
    description="Soft delete. The supplier disappears from every listing and report."
)
def delete_supplier(
    supplier_id: uuid.UUID,
    request: Request,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_permission("suppliers.delete")),
    service: SupplierService = Depends(get_supplier_service)
):
    supplier = service.delete_supplier(supplier_id)
    record_audit(background_tasks, request, service.session, current_user,
                 AuditAction.DELETED, "supplier", supplier.id)
    return ok(Deleted(id=supplier.id), "Supplier deleted successfully")


@router.get(
    "/{supplier_id}/balance",
    response_model=ApiResponse[SupplierBalance],
    summary="Supplier Balance",
    description="Total collected minus total paid, optionally within a date range."
)
def get_balance(
    supplier_id: uuid.UUID,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    current_user: User = Depends(require_permission("suppliers.view")),
    service: SupplierService = Depends(get_supplier_service)
):
    return ok(service.get_balance(supplier_id, start_date, end_date))


@router.get(
    "/{supplier_id}/collections",
    response_model=ApiResponse[Page[CollectionRead]],
    summary="Supplier Collections"
)
def list_supplier_collections(
    supplier_id: uuid.UUID,
    params: ListParams = Depends(),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    current_user: User = Depends(require_permission("collections.view")),
    service: SupplierService = Depends(get_supplier_service)
):
    return ok(service.list_collections(supplier_id, params, start_date, end_date))


@router.get(
    "/{supplier_id}/payments",
    response_model=ApiResponse[Page[PaymentRead]],
    summary="Supplier Payments"
)
def list_supplier_payments(
    supplier_id: uuid.UUID,
    params: ListParams = Depends(),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    current_user: User = Depends(require_permission("payments.view")),
    service: SupplierService = Depends(get_supplier_service)
):
    return ok(service.list_payments(supplier_id, params, start_date, end_date))
