import uuid
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status

from ledger.core.audit import record_audit
from ledger.core.dependencies import get_role_service, require_permission
from ledger.core.pagination import ListParams, Page
from ledger.core.permissions import PERMISSIONS
from ledger.db.schema import AuditAction, User
from ledger.models.common import ApiResponse, CONFLICT_RESPONSES, DUPLICATE_RESPONSES, Deleted, ok
from ledger.models.role import RoleCreate, RoleRead, RoleUpdate
from ledger.services.role import RoleService


router = APIRouter()


@router.get(
    "/",
    response_model=ApiResponse[Page[RoleRead]],
    summary="List Roles",
    description="Each role carries the number of live users assigned to it."
)
def list_roles(
    params: ListParams = Depends(),
    current_user: User = Depends(require_permission("roles.view")),
    service: RoleService = Depends(get_role_service)
):
    return ok(service.list_roles(params))


@router.get(
    "/permissions",
    response_model=ApiResponse[List[str]],
    summary="List Permission Keys",
    description="Every permission key a role can grant."
)
def list_permissions(
    current_user: User = Depends(require_permission("roles.view")),
):
    return ok(PERMISSIONS)


@router.post(
    "/",
    response_model=ApiResponse[RoleRead],
    status_code=status.HTTP_201_CREATED,
    summary="Create Role",
    responses=DUPLICATE_RESPONSES
)
def create_role(
    role_in: RoleCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_permission("roles.create")),
    service: RoleService = Depends(get_role_service)
):
    role = service.create_role(role_in)
    record_audit(background_tasks, request, service.session, current_user,
                 AuditAction.CREATED, "role", role.id, role_in.model_dump())
    return ok(service.to_read(role, 0), "Role created successfully")


@router.get(
    "/{role_id}",
    response_model=ApiResponse[RoleRead],
    summary="Get Role"
)
def get_role(
    role_id: uuid.UUID,
    current_user: User = Depends(require_permission("roles.view")),
    service: RoleService = Depends(get_role_service)
):
    return ok(service.to_read(service.get_role(role_id)))


@router.put(
    "/{role_id}",
    response_model=ApiResponse[RoleRead],
    summary="Update Role",
    responses=CONFLICT_RESPONSES
)
def update_role(
    role_id: uuid.UUID,
    data: RoleUpdate,
    request: Request,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_permission("roles.edit")),
    service: RoleService = Depends(get_role_service)
):
    role = service.update_role(role_id, data)
    record_audit(background_tasks, request, service.session, current_user,
                 AuditAction.UPDATED, "role", role.id, data.model_dump(exclude_unset=True))
    return ok(service.to_read(role), "Role updated successfully")


@router.delete(
    "/{role_id}",
    response_model=ApiResponse[Deleted],
    summary="Delete Role",
    description="Refused with 422 while users are assigned to the role."
)
def delete_role(
    role_id: uuid.UUID,
    request: Request,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_permission("roles.delete")),
    service: RoleService = Depends(get_role_service)
):
    role = service.delete_role(role_id)
    record_audit(background_tasks, request, service.session, current_user,
                 AuditAction.DELETED, "role", role.id)
    return ok(Deleted(id=role.id), "Role deleted successfully")
