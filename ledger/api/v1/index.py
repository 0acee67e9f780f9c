from fastapi import APIRouter, Depends, HTTPException, status
from loguru import logger
from sqlmodel import Session, select, text

from ledger.core.config import settings
from ledger.db.core import get_session
from ledger.db.schema import Role

router = APIRouter()


@router.get("/", status_code=status.HTTP_200_OK)
def index():
    return {"status": "API is running"}


@router.get("/readiness", status_code=status.HTTP_200_OK)
def readiness_check(session: Session = Depends(get_session)):
    """
    The ledger is ready once the database answers and the role handed to
    self-registered users has been seeded.
    """
    try:
        session.exec(text("SELECT 1"))
    except Exception:
        logger.exception("Database readiness check failed")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database not ready"
        )

    default_role = session.exec(
        select(Role).where(
            Role.name == settings.default_role,
            Role.deleted_at == None  # noqa: E711
        )
    ).first()
    if not default_role:
        logger.warning(f"Readiness: default role '{settings.default_role}' is not seeded")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Default role '{settings.default_role}' is not seeded. Run seed.py."
        )

    return {"status": "ready", "database": "online", "default_role": default_role.name}
