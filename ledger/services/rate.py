from datetime import date, timedelta
from typing import List, Optional
import uuid

from loguru import logger
from sqlalchemy import func, or_, update
from sqlmodel import Session, select

from ledger.core.concurrency import compare_and_swap, load_live
from ledger.core.errors import BusinessRuleError
from ledger.core.pagination import ListParams, Page, apply_sorting, paginate
from ledger.db.schema import Rate, Product, Collection
from ledger.models.rate import RateCreate, RateRead, RateUpdate
from .common import soft_delete


class RateService:
    SORT_FIELDS = ("rate", "unit", "effective_from", "effective_to", "created_at")

    def __init__(self, session: Session):
        self.session = session

    def _live(self):
        return select(Rate).where(Rate.deleted_at == None)  # noqa: E711

    def resolve(self, product_id: uuid.UUID, unit: str, on_date: date) -> Optional[Rate]:
        """
        Finds the active rate of `product_id` quoted in `unit` whose window
        contains `on_date`. When windows overlap the latest start wins.
        """
        statement = (
            self._live()
            .where(Rate.product_id == product_id)
            .where(Rate.unit == unit)
            .where(Rate.is_active == True)  # noqa: E712
            .where(Rate.effective_from <= on_date)
            .where(or_(Rate.effective_to == None, Rate.effective_to >= on_date))  # noqa: E711
            .order_by(Rate.effective_from.desc(), Rate.revision.desc())
        )
        return self.session.exec(statement).first()

    def history(self, product_id: uuid.UUID, unit: Optional[str] = None) -> List[Rate]:
        statement = self._live().where(Rate.product_id == product_id)
        if unit:
            statement = statement.where(Rate.unit == unit)
        statement = statement.order_by(Rate.effective_from.desc(), Rate.revision.desc())
        return list(self.session.exec(statement).all())

    def list_rates(
        self,
        params: ListParams,
        product_id: Optional[uuid.UUID] = None,
        unit: Optional[str] = None,
        is_active: Optional[bool] = None,
        on_date: Optional[date] = None,
    ) -> Page:
        statement = self._live()

        if product_id:
            statement = statement.where(Rate.product_id == product_id)
        if unit:
            statement = statement.where(Rate.unit == unit)
        if is_active is not None:
            statement = statement.where(Rate.is_active == is_active)
        if on_date:
            statement = statement.where(Rate.effective_from <= on_date).where(
                or_(Rate.effective_to == None, Rate.effective_to >= on_date)  # noqa: E711
            )

        statement = apply_sorting(statement, Rate, params, self.SORT_FIELDS, default="effective_from")
        return paginate(self.session, statement, params, RateRead.model_validate)

    def get_rate(self, rate_id: uuid.UUID) -> Rate:
        return load_live(self.session, Rate, rate_id)

    def _next_revision(self, product_id: uuid.UUID, unit: str) -> int:
        current = self.session.exec(
            select(func.max(Rate.revision))
            .where(Rate.product_id == product_id)
            .where(Rate.unit == unit)
        ).one()
        return (current or 0) + 1

    def _open_rates(self, product_id: uuid.UUID, unit: str, effective_from: date) -> List[Rate]:
        """Open-ended rates of the product and unit that start before `effective_from`."""
        return list(self.session.exec(
            self._live()
            .where(Rate.product_id == product_id)
            .where(Rate.unit == unit)
            .where(Rate.effective_to == None)  # noqa: E711
            .where(Rate.effective_from < effective_from)
            .with_for_update()
        ).all())

    def _close_open_rates(self, product_id: uuid.UUID, unit: str, effective_from: date) -> None:
        """
        Ends every open rate that started earlier on the day before `effective_from`.
        The version is incremented in the UPDATE itself, so an edit committed
        after the rows were read keeps its own step.
        """
        open_ids = [rate.id for rate in self._open_rates(product_id, unit, effective_from)]
        if not open_ids:
            return

        closed_on = effective_from - timedelta(days=1)
        result = self.session.connection().execute(
            update(Rate)
            .where(Rate.id.in_(open_ids))
            .where(Rate.effective_to == None)  # noqa: E711
            .where(Rate.deleted_at == None)  # noqa: E711
            .values(effective_to=closed_on, version=Rate.version + 1)
        )
        logger.info(f"Closed {result.rowcount} open rate(s) of product {product_id} ({unit}) on {closed_on}")

    def create_rate(self, data: RateCreate) -> Rate:
        product = self.session.exec(
            select(Product).where(
                Product.id == data.product_id,
                Product.deleted_at == None  # noqa: E711
            )
        ).first()
        if not product:
            raise BusinessRuleError("The selected product is invalid.")

        try:
            self._close_open_rates(product.id, data.unit, data.effective_from)

            rate = Rate(
                **data.model_dump(),
                revision=self._next_revision(product.id, data.unit),
            )
            self.session.add(rate)
            self.session.commit()
        except Exception as e:
            self.session.rollback()
            logger.error(f"Rate creation failed for product {product.id}: {e}")
            raise

        self.session.refresh(rate)
        logger.info(
            f"Created rate {rate.id} for product {product.id} "
            f"({rate.unit}, revision {rate.revision})")
        return rate

    def update_rate(self, rate_id: uuid.UUID, data: RateUpdate) -> Rate:
        changes = data.model_dump(exclude_unset=True, exclude={"version"})

        for required in ("rate", "unit", "effective_from", "is_active"):
            if required in changes and changes[required] is None:
                changes.pop(required)

        def mutation(current: Rate):
            start = changes.get("effective_from", current.effective_from)
            end = changes.get("effective_to", current.effective_to)
            if end is not None and end <= start:
                raise BusinessRuleError("effective_to must be after effective_from.")
            return changes

        return compare_and_swap(
            self.session, Rate, rate_id, data.version,
            mutation,
            read_model=RateRead,
        )

    def delete_rate(self, rate_id: uuid.UUID) -> Rate:
        rate = load_live(self.session, Rate, rate_id)

        in_use = self.session.exec(
            select(Collection.id)
            .where(Collection.rate_id == rate.id)
            .where(Collection.deleted_at == None)  # noqa: E711
        ).first()
        if in_use:
            raise BusinessRuleError("Cannot delete rate that is used in collections.")

        soft_delete(self.session, rate)
        return rate
