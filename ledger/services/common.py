from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Optional, Type, TypeVar
import uuid

from fastapi import HTTPException, status
from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, SQLModel, select


T = TypeVar("T", bound=SQLModel)

CENT = Decimal("0.01")


def money(value: Any) -> Decimal:
    """Rounds half-up to two decimal places."""
    return Decimal(str(value if value is not None else 0)).quantize(CENT, rounding=ROUND_HALF_UP)


def ensure_unique(
    session: Session,
    model: Type[T],
    field: str,
    value: Any,
    exclude_id: Optional[uuid.UUID] = None,
    message: Optional[str] = None,
):
    """
    Raises 409 when another row already holds `value` in `field`.
    Soft deleted rows still count: the database constraint covers them too.
    """
    if value is None:
        return

    column = getattr(model, field)
    statement = select(model).where(column == value)
    if exclude_id:
        statement = statement.where(model.id != exclude_id)

    if session.exec(statement).first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=message or f"The {field} has already been taken."
        )


def save(session: Session, entity: T, conflict_message: str = "Duplicate record.") -> T:
    """Inserts a new row, mapping a unique constraint race to 409."""
    try:
        session.add(entity)
        session.commit()
    except IntegrityError as e:
        session.rollback()
        logger.warning(f"Integrity error saving {type(entity).__name__}: {e.orig}")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=conflict_message
        )
    except Exception:
        session.rollback()
        raise

    session.refresh(entity)
    logger.info(f"Created {type(entity).__name__.lower()} {entity.id}")
    return entity


def soft_delete(session: Session, entity: SQLModel) -> None:
    try:
        entity.deleted_at = datetime.utcnow()
        session.add(entity)
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.info(f"Deleted {type(entity).__name__.lower()} {entity.id}")
