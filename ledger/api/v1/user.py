import uuid
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status

from ledger.core.audit import record_audit
from ledger.core.dependencies import get_user_service, require_permission
from ledger.core.pagination import ListParams, Page
from ledger.db.schema import AuditAction, User
from ledger.models.common import ApiResponse, CONFLICT_RESPONSES, DUPLICATE_RESPONSES, Deleted, ok
from ledger.models.user import UserCreate, UserRead, UserUpdate
from ledger.services.user import UserService


router = APIRouter()


@router.get(
    "/",
    response_model=ApiResponse[Page[UserRead]],
    summary="List Users",
    description="Paginated list. `search` matches name and email."
)
def list_users(
    params: ListParams = Depends(),
    role_id: Optional[uuid.UUID] = None,
    is_active: Optional[bool] = None,
    current_user: User = Depends(require_permission("users.view")),
    service: UserService = Depends(get_user_service)
):
    return ok(service.list_users(params, role_id=role_id, is_active=is_active))


@router.post(
    "/",
    response_model=ApiResponse[UserRead],
    status_code=status.HTTP_201_CREATED,
    summary="Create User",
    responses=DUPLICATE_RESPONSES
)
def create_user(
    user_in: UserCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_permission("users.create")),
    service: UserService = Depends(get_user_service)
):
    user = service.create_user(user_in)
    record_audit(background_tasks, request, service.session, current_user,
                 AuditAction.CREATED, "user", user.id, user_in.model_dump())
    return ok(UserRead.model_validate(user), "User created successfully")


@router.get(
    "/{user_id}",
    response_model=ApiResponse[UserRead],
    summary="Get User"
)
def get_user(
    user_id: uuid.UUID,
    current_user: User = Depends(require_permission("users.view")),
    service: UserService = Depends(get_user_service)
):
    return ok(UserRead.model_validate(service.get_user(user_id)))


@router.put(
    "/{user_id}",
    response_model=ApiResponse[UserRead],
    summary="Update User",
    description="Sending `password` replaces the stored hash.",
    responses=CONFLICT_RESPONSES
)
def update_user(
    user_id: uuid.UUID,
    data: UserUpdate,
    request: Request,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_permission("users.edit")),
    service: UserService = Depends(get_user_service)
):
    user = service.update_user(user_id, data)
    record_audit(background_tasks, request, service.session, current_user,
                 AuditAction.UPDATED, "user", user.id, data.model_dump(exclude_unset=True))
    return ok(UserRead.model_validate(user), "User updated successfully")


@router.delete(
    "/{user_id}",
    response_model=ApiResponse[Deleted],
    summary="Delete User",
    description="Users cannot delete their own account."
)
def delete_user(
    user_id: uuid.UUID,
    request: Request,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_permission("users.delete")),
    service: UserService = Depends(get_user_service)
):
    user = service.delete_user(user_id, current_user)
    record_audit(background_tasks, request, service.session, current_user,
                 AuditAction.DELETED, "user", user.id)
    return ok(Deleted(id=user.id), "User deleted successfully")
