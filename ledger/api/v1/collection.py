import uuid
from datetime import date
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, status

from ledger.core.audit import record_audit
from ledger.core.dependencies import get_collection_service, require_permission
from ledger.core.pagination import ListParams, Page
from ledger.db.schema import AuditAction, User
from ledger.models.collection import (
    CollectionCalculation, CollectionCreate, CollectionRead, CollectionUpdate
)
from ledger.models.common import ApiResponse, CONFLICT_RESPONSES, Deleted, ok
from ledger.services.collection import CollectionService


router = APIRouter()


@router.get(
    "/",
    response_model=ApiResponse[Page[CollectionRead]],
    summary="List Collections"
)
def list_collections(
    params: ListParams = Depends(),
    supplier_id: Optional[uuid.UUID] = None,
    product_id: Optional[uuid.UUID] = None,
    user_id: Optional[uuid.UUID] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    current_user: User = Depends(require_permission("collections.view")),
    service: CollectionService = Depends(get_collection_service)
):
    return ok(service.list_collections(
        params,
        supplier_id=supplier_id,
        product_id=product_id,
        user_id=user_id,
        start_date=start_date,
        end_date=end_date,
    ))


@router.get(
    "/calculate",
    response_model=ApiResponse[CollectionCalculation],
    summary="Preview Collection Amount",
    description="Prices a quantity with the rate in effect on `date` without saving anything."
)
def calculate_amount(
    product_id: uuid.UUID,
    unit: str,
    quantity: Decimal = Query(..., gt=0),
    on_date: Optional[date] = Query(None, alias="date"),
    current_user: User = Depends(require_permission("collections.view")),
    service: CollectionService = Depends(get_collection_service)
):
    return ok(service.calculate(product_id, unit, quantity, on_date or date.today()))


@router.post(
    "/",
    response_model=ApiResponse[CollectionRead],
    status_code=status.HTTP_201_CREATED,
    summary="Record Collection",
    description=(
        "Resolves the rate for the product, unit and date, then stores "
        "`rate_applied` and `total_amount = quantity * rate_applied`. "
        "Answers 422 when no rate covers the date."
    )
)
def create_collection(
    collection_in: CollectionCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_permission("collections.create")),
    service: CollectionService = Depends(get_collection_service)
):
    collection = service.create_collection(collection_in, current_user)
    record_audit(background_tasks, request, service.session, current_user,
                 AuditAction.CREATED, "collection", collection.id, collection_in.model_dump())
    return ok(CollectionRead.model_validate(collection), "Collection created successfully")


@router.get(
    "/{collection_id}",
    response_model=ApiResponse[CollectionRead],
    summary="Get Collection"
)
def get_collection(
    collection_id: uuid.UUID,
    current_user: User = Depends(require_permission("collections.view")),
    service: CollectionService = Depends(get_collection_service)
):
    return ok(CollectionRead.model_validate(service.get_collection(collection_id)))


@router.put(
    "/{collection_id}",
    response_model=ApiResponse[CollectionRead],
    summary="Update Collection",
    description=(
        "Changing product, unit or date re-resolves the rate; changing only the "
        "quantity re-prices with the rate already applied."
    ),
    responses=CONFLICT_RESPONSES
)
def update_collection(
    collection_id: uuid.UUID,
    data: CollectionUpdate,
    request: Request,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_permission("collections.edit")),
    service: CollectionService = Depends(get_collection_service)
):
    collection = service.update_collection(collection_id, data)
    record_audit(background_tasks, request, service.session, current_user,
                 AuditAction.UPDATED, "collection", collection.id, data.model_dump(exclude_unset=True))
    return ok(CollectionRead.model_validate(collection), "Collection updated successfully")


@router.delete(
    "/{collection_id}",
    response_model=ApiResponse[Deleted],
    summary="Delete Collection"
)
def delete_collection(
    collection_id: uuid.UUID,
    request: Request,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_permission("collections.delete")),
    service: CollectionService = Depends(get_collection_service)
):
    collection = service.delete_collection(collection_id)
    record_audit(background_tasks, request, service.session, current_user,
                 AuditAction.DELETED, "collection", collection.id)
    return ok(Deleted(id=collection.id), "Collection deleted successfully")
