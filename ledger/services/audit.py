from datetime import date, datetime, time
from typing import Optional
import uuid

from sqlmodel import Session, select

from ledger.core.pagination import ListParams, Page, apply_sorting, paginate
from ledger.db.schema import AuditLog, AuditAction
from ledger.models.audit import AuditLogRead


class AuditService:
    SORT_FIELDS = ("timestamp", "entity_type", "action")

    def __init__(self, session: Session):
        self.session = session

    def list_entries(
        self,
        params: ListParams,
        entity_type: Optional[str] = None,
        entity_id: Optional[uuid.UUID] = None,
        user_id: Optional[uuid.UUID] = None,
        action: Optional[AuditAction] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Page:
        statement = select(AuditLog)

        if entity_type:
            statement = statement.where(AuditLog.entity_type == entity_type)
        if entity_id:
            statement = statement.where(AuditLog.entity_id == entity_id)
        if user_id:
            statement = statement.where(AuditLog.user_id == user_id)
        if action:
            statement = statement.where(AuditLog.action == action)
        # Whole days, timestamps are stored in UTC
        if start_date:
            statement = statement.where(AuditLog.timestamp >= datetime.combine(start_date, time.min))
        if end_date:
            statement = statement.where(AuditLog.timestamp <= datetime.combine(end_date, time.max))

        statement = apply_sorting(statement, AuditLog, params, self.SORT_FIELDS, default="timestamp")
        return paginate(self.session, statement, params, AuditLogRead.model_validate)
