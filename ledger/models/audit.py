from typing import Any, Dict, Optional
from datetime import datetime
from uuid import UUID
from sqlmodel import SQLModel

from ledger.db.schema import AuditAction


class AuditLogRead(SQLModel):
    id: UUID
    user_id: Optional[UUID] = None
    action: AuditAction
    entity_type: str
    entity_id: Optional[UUID] = None
    changes: Dict[str, Any] = {}
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    timestamp: datetime
