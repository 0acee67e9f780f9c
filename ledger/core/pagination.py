from datetime import date
from typing import Any, Callable, Generic, List, Optional, Sequence, Type, TypeVar
import math

from fastapi import Query
from pydantic import BaseModel
from sqlalchemy import func, or_
from sqlmodel import Session, SQLModel, col, select

from ledger.core.config import settings


T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    items: List[T]
    total: int
    page: int
    per_page: int
    pages: int


class ListParams:
    """
    Query parameters shared by every list endpoint.
    Out-of-range `per_page` values fall back to the default or are capped
    at the configured maximum instead of failing the request.
    """

    def __init__(
        self,
        page: int = Query(1, description="1-based page number"),
        per_page: Optional[int] = Query(None, description="Results per page"),
        sort_by: Optional[str] = Query(None, description="Field to sort by"),
        sort_order: str = Query("desc", description="Sort order: asc or desc"),
        search: Optional[str] = Query(None, description="Free text filter"),
    ):
        if per_page is None or per_page < 1:
            per_page = settings.default_per_page

        self.page = max(page, 1)
        self.per_page = min(per_page, settings.max_per_page)
        self.sort_by = sort_by
        self.sort_order = sort_order.lower() if sort_order else "desc"
        self.search = search


def apply_sorting(
    statement,
    model: Type[SQLModel],
    params: ListParams,
    allowed: Sequence[str],
    default: str = "created_at",
):
    field = params.sort_by if params.sort_by in allowed else default
    order = params.sort_order if params.sort_order in ("asc", "desc") else "desc"
    column = col(getattr(model, field))
    return statement.order_by(column.asc() if order == "asc" else column.desc())


def apply_search(statement, search: Optional[str], columns: Sequence[Any], max_length: int = 100):
    if not search:
        return statement
    term = f"%{search[:max_length]}%"
    return statement.where(or_(*[col(c).ilike(term) for c in columns]))


def apply_date_range(statement, column: Any, start: Optional[date], end: Optional[date]):
    if start:
        statement = statement.where(column >= start)
    if end:
        statement = statement.where(column <= end)
    return statement


def paginate(
    session: Session,
    statement,
    params: ListParams,
    transform: Optional[Callable[[Any], Any]] = None,
) -> Page:
    """
    Runs `statement` for one page and counts the full result set.
    `transform` maps each row to its public view (defaults to the row itself).
    """
    total = session.exec(
        select(func.count()).select_from(statement.order_by(None).subquery())
    ).one()

    rows = session.exec(
        statement
        .offset((params.page - 1) * params.per_page)
        .limit(params.per_page)
    ).all()

    items = [transform(r) for r in rows] if transform else list(rows)

    return Page(
        items=items,
        total=total,
        page=params.page,
        per_page=params.per_page,
        pages=math.ceil(total / params.per_page) if total else 0,
    )
