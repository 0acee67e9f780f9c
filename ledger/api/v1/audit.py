import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends

from ledger.core.dependencies import get_audit_service, require_permission
from ledger.core.pagination import ListParams, Page
from ledger.db.schema import AuditAction, User
from ledger.models.audit import AuditLogRead
from ledger.models.common import ApiResponse, ok
from ledger.services.audit import AuditService


router = APIRouter()


@router.get(
    "/",
    response_model=ApiResponse[Page[AuditLogRead]],
    summary="List Audit Entries",
    description="Every create, update and delete performed through the API, newest first."
)
def list_audit_logs(
    params: ListParams = Depends(),
    entity_type: Optional[str] = None,
    entity_id: Optional[uuid.UUID] = None,
    user_id: Optional[uuid.UUID] = None,
    action: Optional[AuditAction] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    current_user: User = Depends(require_permission("audit.view")),
    service: AuditService = Depends(get_audit_service)
):
    return ok(service.list_entries(
        params,
        entity_type=entity_type,
        entity_id=entity_id,
        user_id=user_id,
        action=action,
        start_date=start_date,
        end_date=end_date,
    ))
