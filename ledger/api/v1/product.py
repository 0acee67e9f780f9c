import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, status

from ledger.core.audit import record_audit
from ledger.core.dependencies import get_product_service, require_permission
from ledger.core.pagination import ListParams, Page
from ledger.db.schema import AuditAction, User
from ledger.models.common import ApiResponse, CONFLICT_RESPONSES, DUPLICATE_RESPONSES, Deleted, ok
from ledger.models.product import (
    CurrentRate, ProductCreate, ProductRead, ProductUpdate, RateHistory
)
from ledger.services.product import ProductService


router = APIRouter()


@router.get(
    "/",
    response_model=ApiResponse[Page[ProductRead]],
    summary="List Products",
    description="Paginated list. `search` matches name and code."
)
def list_products(
    params: ListParams = Depends(),
    is_active: Optional[bool] = None,
    current_user: User = Depends(require_permission("products.view")),
    service: ProductService = Depends(get_product_service)
):
    return ok(service.list_products(params, is_active=is_active))


@router.post(
    "/",
    response_model=ApiResponse[ProductRead],
    status_code=status.HTTP_201_CREATED,
    summary="Create Product",
    description="The base unit is always added to `supported_units`.",
    responses=DUPLICATE_RESPONSES
)
def create_product(
    product_in: ProductCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_permission("products.create")),
    service: ProductService = Depends(get_product_service)
):
    product = service.create_product(product_in)
    record_audit(background_tasks, request, service.session, current_user,
                 AuditAction.CREATED, "product", product.id, product_in.model_dump())
    return ok(ProductRead.model_validate(product), "Product created successfully")


@router.get(
    "/{product_id}",
    response_model=ApiResponse[ProductRead],
    summary="Get Product"
)
def get_product(
    product_id: uuid.UUID,
    current_user: User = Depends(require_permission("products.view")),
    service: ProductService = Depends(get_product_service)
):
    return ok(ProductRead.model_validate(service.get_product(product_id)))


@router.put(
    "/{product_id}",
    response_model=ApiResponse[ProductRead],
    summary="Update Product",
    description="Partial update guarded by optimistic locking (send the `version` you read).",
    responses=CONFLICT_RESPONSES
)
def update_product(
    product_id: uuid.UUID,
    data: ProductUpdate,
    request: Request,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_permission("products.edit")),
    service: ProductService = Depends(get_product_service)
):
    product = service.update_product(product_id, data)
    record_audit(background_tasks, request, service.session, current_user,
                 AuditAction.UPDATED, "product", product.id, data.model_dump(exclude_unset=True))
    return ok(ProductRead.model_validate(product), "Product updated successfully")


@router.delete(
    "/{product_id}",
    response_model=ApiResponse[Deleted],
    summary="Delete Product"
)
def delete_product(
    product_id: uuid.UUID,
    request: Request,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_permission("products.delete")),
    service: ProductService = Depends(get_product_service)
):
    product = service.delete_product(product_id)
    record_audit(background_tasks, request, service.session, current_user,
                 AuditAction.DELETED, "product", product.id)
    return ok(Deleted(id=product.id), "Product deleted successfully")


@router.get(
    "/{product_id}/current-rate",
    response_model=ApiResponse[CurrentRate],
    summary="Current Rate",
    description=(
        "The rate in effect on `date` (default today) for `unit` "
        "(default the product's base unit). `rate` is null when none applies."
    )
)
def get_current_rate(
    product_id: uuid.UUID,
    on_date: Optional[date] = Query(None, alias="date"),
    unit: Optional[str] = None,
    current_user: User = Depends(require_permission("products.view")),
    service: ProductService = Depends(get_product_service)
):
    return ok(service.current_rate(product_id, on_date, unit))


@router.get(
    "/{product_id}/rate-history",
    response_model=ApiResponse[RateHistory],
    summary="Rate History",
    description="Every rate of the product, newest `effective_from` first."
)
def get_rate_history(
    product_id: uuid.UUID,
    unit: Optional[str] = None,
    current_user: User = Depends(require_permission("products.view")),
    service: ProductService = Depends(get_product_service)
):
    return ok(service.rate_history(product_id, unit))
