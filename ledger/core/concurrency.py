from typing import Any, Callable, Dict, Optional, Type, TypeVar
import uuid

from fastapi import HTTPException, status
from starlette.exceptions import HTTPException as StarletteHTTPException
from loguru import logger
from sqlalchemy import update
from sqlmodel import Session, SQLModel, select

from ledger.core.errors import VersionConflictError


T = TypeVar("T", bound=SQLModel)

# Receives the locked, current row and returns the column values to write.
Mutation = Callable[[Any], Dict[str, Any]]


def _entity_label(model: Type[SQLModel]) -> str:
    return model.__name__.lower()


def load_live(session: Session, model: Type[T], entity_id: uuid.UUID, lock: bool = False) -> T:
    """
    Fetches a row that has not been soft deleted, or raises 404.
    With `lock=True` the row is selected FOR UPDATE on backends that
    support it so the version check and the write see the same state.
    """
    statement = select(model).where(
        model.id == entity_id,
        model.deleted_at == None  # noqa: E711
    )
    if lock:
        statement = statement.with_for_update()

    entity = session.exec(statement).first()
    if not entity:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{model.__name__} not found."
        )
    return entity


def _snapshot(entity: SQLModel, read_model: Optional[Type[SQLModel]]) -> Dict[str, Any]:
    view = read_model.model_validate(entity) if read_model else entity
    return view.model_dump(mode="json")


def compare_and_swap(
    session: Session,
    model: Type[T],
    entity_id: uuid.UUID,
    expected_version: int,
    mutation: Mutation,
    read_model: Optional[Type[SQLModel]] = None,
) -> T:
    """
    Applies `mutation` to a row only if its stored version still equals
    `expected_version`, then bumps the version by exactly one.

    The write itself is guarded (`UPDATE ... WHERE version = :expected`), so
    when two writers race on the same version only one UPDATE matches a row;
    the other is reported as a conflict against the freshly reloaded state.

    Args:
        session (Session): The request-scoped database session.
        model: The table model (must carry `id`, `version` and `deleted_at`).
        entity_id (UUID): Primary key of the row to update.
        expected_version (int): The version the client read.
        mutation: Callable computing the new column values from the current row.
        read_model: Public view used to render the row in a conflict payload.

    Returns:
        The updated row, refreshed from the database.

    Raises:
        HTTPException(404): If the row does not exist or is soft deleted.
        VersionConflictError: If the version does not match.
    """
    label = _entity_label(model)

    try:
        entity = load_live(session, model, entity_id, lock=True)

        if entity.version != expected_version:
            raise VersionConflictError(
                entity_type=label,
                client_version=expected_version,
                server_version=entity.version,
                current_data=_snapshot(entity, read_model),
            )

        changes = dict(mutation(entity))
        changes.pop("id", None)
        changes["version"] = expected_version + 1

        result = session.connection().execute(
            update(model)
            .where(model.id == entity_id)
            .where(model.version == expected_version)
            .where(model.deleted_at == None)  # noqa: E711
            .values(**changes)
        )

        if result.rowcount != 1:
            # Lost the race between our read and our write
            session.rollback()
            current = load_live(session, model, entity_id)
            raise VersionConflictError(
                entity_type=label,
                client_version=expected_version,
                server_version=current.version,
                current_data=_snapshot(current, read_model),
            )

        session.commit()
    except (VersionConflictError, StarletteHTTPException):
        session.rollback()
        raise
    except Exception as e:
        session.rollback()
        logger.error(f"Update of {label} {entity_id} failed: {e}")
        raise

    session.refresh(entity)
    logger.info(f"Updated {label} {entity_id} to version {entity.version}")
    return entity
