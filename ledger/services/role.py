from typing import Dict, List
import uuid

from sqlalchemy import func
from sqlmodel import Session, select

from ledger.core.concurrency import compare_and_swap, load_live
from ledger.core.errors import BusinessRuleError
from ledger.core.pagination import ListParams, Page, apply_search, apply_sorting, paginate
from ledger.db.schema import Role, User
from ledger.models.role import RoleCreate, RoleRead, RoleUpdate
from .common import ensure_unique, save, soft_delete


class RoleService:
    SORT_FIELDS = ("name", "created_at")

    def __init__(self, session: Session):
        self.session = session

    def _users_count(self, role_ids: List[uuid.UUID]) -> Dict[uuid.UUID, int]:
        if not role_ids:
            return {}
        rows = self.session.exec(
            select(User.role_id, func.count(User.id))
            .where(User.role_id.in_(role_ids))
            .where(User.deleted_at == None)  # noqa: E711
            .group_by(User.role_id)
        ).all()
        return {role_id: count for role_id, count in rows}

    def to_read(self, role: Role, users_count: int = None) -> RoleRead:
        view = RoleRead.model_validate(role)
        if users_count is None:
            users_count = self._users_count([role.id]).get(role.id, 0)
        view.users_count = users_count
        return view

    def list_roles(self, params: ListParams) -> Page:
        statement = select(Role).where(Role.deleted_at == None)  # noqa: E711
        statement = apply_search(statement, params.search, [Role.name, Role.display_name])
        statement = apply_sorting(statement, Role, params, self.SORT_FIELDS)

        page = paginate(self.session, statement, params)
        counts = self._users_count([r.id for r in page.items])
        page.items = [self.to_read(r, counts.get(r.id, 0)) for r in page.items]
        return page

    def get_role(self, role_id: uuid.UUID) -> Role:
        return load_live(self.session, Role, role_id)

    def create_role(self, data: RoleCreate) -> Role:
        ensure_unique(self.session, Role, "name", data.name,
                      message="A role with this name already exists.")
        role = Role(**data.model_dump())
        return save(self.session, role, "A role with this name already exists.")

    def update_role(self, role_id: uuid.UUID, data: RoleUpdate) -> Role:
        changes = data.model_dump(exclude_unset=True, exclude={"version"})

        if changes.get("name") is not None:
            ensure_unique(self.session, Role, "name", changes["name"], exclude_id=role_id,
                          message="A role with this name already exists.")

        for required in ("name", "display_name", "permissions"):
            if required in changes and changes[required] is None:
                changes.pop(required)

        return compare_and_swap(
            self.session, Role, role_id, data.version,
            lambda current: changes,
            read_model=RoleRead,
        )

    def delete_role(self, role_id: uuid.UUID) -> Role:
        role = load_live(self.session, Role, role_id)

        if self._users_count([role.id]).get(role.id, 0) > 0:
            raise BusinessRuleError("Cannot delete role with active users.")

        soft_delete(self.session, role)
        return role
