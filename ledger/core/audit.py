import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import BackgroundTasks, Request
from fastapi.encoders import jsonable_encoder
from loguru import logger
from sqlalchemy.engine import Engine
from sqlmodel import Session

from ledger.db.schema import AuditLog, AuditAction, User


# Never written to the audit trail
SENSITIVE_FIELDS = {"password", "hashed_password", "password_confirmation", "token"}

# Concurrency token sent with updates, not a changed field
CONTROL_FIELDS = {"version"}


def _perform_audit_log(
    bind: Engine,
    user_id: Optional[uuid.UUID],
    entity_type: str,
    entity_id: Optional[uuid.UUID],
    action: AuditAction,
    changes: Dict[str, Any],
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
):
    """
    Background worker.
    Creates its OWN session on the engine the request used, so a failing
    audit write never touches the request transaction.
    """
    try:
        with Session(bind) as session:
            log_entry = AuditLog(
                user_id=user_id,
                entity_type=entity_type,
                entity_id=entity_id,
                action=action,
                changes=changes,
                ip_address=ip_address,
                user_agent=user_agent,
                timestamp=datetime.utcnow()
            )
            session.add(log_entry)
            session.commit()

    except Exception as e:
        logger.error(f"Audit log failed for {entity_type} {entity_id}: {e}")


def sanitize_changes(changes: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    if not changes:
        return {}
    clean = {
        k: v for k, v in changes.items()
        if k not in SENSITIVE_FIELDS and k not in CONTROL_FIELDS
    }
    return jsonable_encoder(clean)


def record_audit(
    background_tasks: BackgroundTasks,
    request: Request,
    session: Session,
    user: Optional[User],
    action: AuditAction,
    entity_type: str,
    entity_id: Optional[uuid.UUID],
    changes: Optional[Dict[str, Any]] = None,
):
    """Schedules an audit entry to be written after the response is sent."""
    background_tasks.add_task(
        _perform_audit_log,
        bind=session.get_bind(),
        user_id=user.id if user else None,
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        changes=sanitize_changes(changes),
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
