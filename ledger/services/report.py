from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Optional, Tuple
import uuid

from sqlalchemy import and_, extract, func
from sqlmodel import Session, select

from ledger.db.schema import Collection, Payment, Product, Supplier
from ledger.models.report import (
    CollectionTotals, CollectionsByProduct, CollectionsBySupplier, CollectionsSummary,
    FinancialSummary, FinancialTotals, MonthlyFigures,
    PaymentTotals, PaymentsBySupplier, PaymentsByType, PaymentsSummary,
    ProductPerformanceRow, SupplierBalanceRow, SystemSummary,
)
from .common import money


def quantity(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(Decimal("0.001"), rounding=ROUND_HALF_UP)


def month_bounds(day: date) -> Tuple[date, date]:
    """First day of the month of `day` and first day of the following month."""
    start = day.replace(day=1)
    following = (start + timedelta(days=32)).replace(day=1)
    return start, following


class ReportService:
    """
    Read-only aggregates over live (not soft deleted) rows.
    Money is rounded half-up to cents after aggregation.
    """

    def __init__(self, session: Session):
        self.session = session

    def _scalar(self, statement):
        return self.session.exec(statement).one()

    def _count(self, model, *criteria) -> int:
        return self._scalar(
            select(func.count(model.id)).where(model.deleted_at == None, *criteria)  # noqa: E711
        )

    def _collected(self, *criteria) -> Decimal:
        return money(self._scalar(
            select(func.coalesce(func.sum(Collection.total_amount), 0))
            .where(Collection.deleted_at == None, *criteria)  # noqa: E711
        ))

    def _paid(self, *criteria) -> Decimal:
        return money(self._scalar(
            select(func.coalesce(func.sum(Payment.amount), 0))
            .where(Payment.deleted_at == None, *criteria)  # noqa: E711
        ))

    def _collection_filters(self, start_date=None, end_date=None, supplier_id=None, product_id=None):
        criteria = [Collection.deleted_at == None]  # noqa: E711
        if start_date:
            criteria.append(Collection.collection_date >= start_date)
        if end_date:
            criteria.append(Collection.collection_date <= end_date)
        if supplier_id:
            criteria.append(Collection.supplier_id == supplier_id)
        if product_id:
            criteria.append(Collection.product_id == product_id)
        return criteria

    def _payment_filters(self, start_date=None, end_date=None, supplier_id=None):
        criteria = [Payment.deleted_at == None]  # noqa: E711
        if start_date:
            criteria.append(Payment.payment_date >= start_date)
        if end_date:
            criteria.append(Payment.payment_date <= end_date)
        if supplier_id:
            criteria.append(Payment.supplier_id == supplier_id)
        return criteria

    def summary(self, today: Optional[date] = None) -> SystemSummary:
        month_start, next_month = month_bounds(today or date.today())

        in_month_c = (Collection.collection_date >= month_start, Collection.collection_date < next_month)
        in_month_p = (Payment.payment_date >= month_start, Payment.payment_date < next_month)

        total_collection_amount = self._collected()
        total_payment_amount = self._paid()

        return SystemSummary(
            total_suppliers=self._count(Supplier),
            active_suppliers=self._count(Supplier, Supplier.is_active == True),  # noqa: E712
            total_products=self._count(Product),
            active_products=self._count(Product, Product.is_active == True),  # noqa: E712
            total_collections=self._count(Collection),
            total_collection_amount=total_collection_amount,
            total_payments=self._count(Payment),
            total_payment_amount=total_payment_amount,
            outstanding_balance=money(total_collection_amount - total_payment_amount),
            collections_this_month=self._count(Collection, *in_month_c),
            payments_this_month=self._count(Payment, *in_month_p),
            collection_amount_this_month=self._collected(*in_month_c),
            payment_amount_this_month=self._paid(*in_month_p),
        )

    def supplier_balances(self, limit: int = 10, sort: str = "desc"):
        """
        Per supplier totals. Collections and payments are aggregated in
        separate subqueries so neither side is multiplied by the other's rows.
        """
        collected = (
            select(
                Collection.supplier_id.label("supplier_id"),
                func.sum(Collection.total_amount).label("total"),
                func.count(Collection.id).label("count"),
            )
            .where(Collection.deleted_at == None)  # noqa: E711
            .group_by(Collection.supplier_id)
            .subquery()
        )
        paid = (
            select(
                Payment.supplier_id.label("supplier_id"),
                func.sum(Payment.amount).label("total"),
                func.count(Payment.id).label("count"),
            )
            .where(Payment.deleted_at == None)  # noqa: E711
            .group_by(Payment.supplier_id)
            .subquery()
        )

        total_collections = func.coalesce(collected.c.total, 0)
        total_payments = func.coalesce(paid.c.total, 0)
        balance = (total_collections - total_payments).label("balance")

        statement = (
            select(
                Supplier.id,
                Supplier.name,
                Supplier.code,
                total_collections.label("total_collections"),
                total_payments.label("total_payments"),
                balance,
                func.coalesce(collected.c.count, 0).label("collection_count"),
                func.coalesce(paid.c.count, 0).label("payment_count"),
            )
            .outerjoin(collected, collected.c.supplier_id == Supplier.id)
            .outerjoin(paid, paid.c.supplier_id == Supplier.id)
            .where(Supplier.deleted_at == None)  # noqa: E711
            .order_by(balance.asc() if sort == "asc" else balance.desc(), Supplier.name)
            .limit(limit)
        )

        return [
            SupplierBalanceRow(
                supplier_id=row.id,
                supplier_name=row.name,
                supplier_code=row.code,
                total_collections=money(row.total_collections),
                total_payments=money(row.total_payments),
                balance=money(row.balance),
                collection_count=row.collection_count,
                payment_count=row.payment_count,
            )
            for row in self.session.exec(statement).all()
        ]

    def collections_summary(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        supplier_id: Optional[uuid.UUID] = None,
        product_id: Optional[uuid.UUID] = None,
    ) -> CollectionsSummary:
        criteria = self._collection_filters(start_date, end_date, supplier_id, product_id)

        count, amount, qty = self.session.exec(
            select(
                func.count(Collection.id),
                func.coalesce(func.sum(Collection.total_amount), 0),
                func.coalesce(func.sum(Collection.quantity), 0),
            ).where(*criteria)
        ).one()

        total_amount = func.sum(Collection.total_amount)
        by_product = self.session.exec(
            select(
                Product.id,
                Product.name,
                func.count(Collection.id).label("count"),
                func.sum(Collection.quantity).label("total_quantity"),
                total_amount.label("total_amount"),
            )
            .join(Product, Product.id == Collection.product_id)
            .where(*criteria)
            .group_by(Product.id, Product.name)
            .order_by(total_amount.desc())
        ).all()

        by_supplier = self.session.exec(
            select(
                Supplier.id,
                Supplier.name,
                Supplier.code,
                func.count(Collection.id).label("count"),
                func.sum(Collection.quantity).label("total_quantity"),
                total_amount.label("total_amount"),
            )
            .join(Supplier, Supplier.id == Collection.supplier_id)
            .where(*criteria)
            .group_by(Supplier.id, Supplier.name, Supplier.code)
            .order_by(total_amount.desc())
        ).all()

        return CollectionsSummary(
            summary=CollectionTotals(
                total_count=count,
                total_amount=money(amount),
                total_quantity=quantity(qty),
            ),
            by_product=[
                CollectionsByProduct(
                    product_id=row.id,
                    product_name=row.name,
                    count=row.count,
                    total_quantity=quantity(row.total_quantity),
                    total_amount=money(row.total_amount),
                )
                for row in by_product
            ],
            by_supplier=[
                CollectionsBySupplier(
                    supplier_id=row.id,
                    supplier_name=row.name,
                    supplier_code=row.code,
                    count=row.count,
                    total_quantity=quantity(row.total_quantity),
                    total_amount=money(row.total_amount),
                )
                for row in by_supplier
            ],
        )

    def payments_summary(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        supplier_id: Optional[uuid.UUID] = None,
    ) -> PaymentsSummary:
        criteria = self._payment_filters(start_date, end_date, supplier_id)

        count, amount = self.session.exec(
            select(
                func.count(Payment.id),
                func.coalesce(func.sum(Payment.amount), 0),
            ).where(*criteria)
        ).one()

        total_amount = func.sum(Payment.amount)
        by_type = self.session.exec(
            select(
                Payment.type,
                func.count(Payment.id).label("count"),
                total_amount.label("total_amount"),
            )
            .where(*criteria)
            .group_by(Payment.type)
            .order_by(Payment.type)
        ).all()

        by_supplier = self.session.exec(
            select(
                Supplier.id,
                Supplier.name,
                Supplier.code,
                func.count(Payment.id).label("count"),
                total_amount.label("total_amount"),
            )
            .join(Supplier, Supplier.id == Payment.supplier_id)
            .where(*criteria)
            .group_by(Supplier.id, Supplier.name, Supplier.code)
            .order_by(total_amount.desc())
        ).all()

        return PaymentsSummary(
            summary=PaymentTotals(total_count=count, total_amount=money(amount)),
            by_type=[
                PaymentsByType(type=row.type, count=row.count, total_amount=money(row.total_amount))
                for row in by_type
            ],
            by_supplier=[
                PaymentsBySupplier(
                    supplier_id=row.id,
                    supplier_name=row.name,
                    supplier_code=row.code,
                    count=row.count,
                    total_amount=money(row.total_amount),
                )
                for row in by_supplier
            ],
        )

    def product_performance(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ):
        # Date filters go into the join so products without deliveries still show
        join_on = and_(
            Collection.product_id == Product.id,
            *self._collection_filters(start_date, end_date),
        )
        total_amount = func.coalesce(func.sum(Collection.total_amount), 0)

        rows = self.session.exec(
            select(
                Product.id,
                Product.name,
                Product.code,
                func.count(func.distinct(Collection.id)).label("collection_count"),
                func.coalesce(func.sum(Collection.quantity), 0).label("total_quantity"),
                total_amount.label("total_amount"),
                func.count(func.distinct(Collection.supplier_id)).label("unique_suppliers"),
                func.avg(Collection.rate_applied).label("avg_rate"),
            )
            .outerjoin(Collection, join_on)
            .where(Product.deleted_at == None)  # noqa: E711
            .group_by(Product.id, Product.name, Product.code)
            .order_by(total_amount.desc(), Product.name)
        ).all()

        return [
            ProductPerformanceRow(
                product_id=row.id,
                product_name=row.name,
                product_code=row.code,
                collection_count=row.collection_count,
                total_quantity=quantity(row.total_quantity),
                total_amount=money(row.total_amount),
                unique_suppliers=row.unique_suppliers,
                avg_rate=money(row.avg_rate),
            )
            for row in rows
        ]

    def _monthly(self, date_column, amount_column, criteria) -> Dict[str, Decimal]:
        year = extract("year", date_column).label("year")
        month = extract("month", date_column).label("month")

        rows = self.session.exec(
            select(year, month, func.sum(amount_column).label("total"))
            .where(*criteria)
            .group_by(year, month)
        ).all()

        return {f"{int(row.year):04d}-{int(row.month):02d}": money(row.total) for row in rows}

    def financial_summary(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> FinancialSummary:
        collection_criteria = self._collection_filters(start_date, end_date)
        payment_criteria = self._payment_filters(start_date, end_date)

        total_collections = self._collected(*collection_criteria)
        total_payments = self._paid(*payment_criteria)

        collected = self._monthly(
            Collection.collection_date, Collection.total_amount, collection_criteria)
        paid = self._monthly(
            Payment.payment_date, Payment.amount, payment_criteria)

        zero = money(0)
        breakdown = [
            MonthlyFigures(
                month=month,
                collections=collected.get(month, zero),
                payments=paid.get(month, zero),
                net=money(collected.get(month, zero) - paid.get(month, zero)),
            )
            for month in sorted(set(collected) | set(paid))
        ]

        return FinancialSummary(
            summary=FinancialTotals(
                total_collections=total_collections,
                total_payments=total_payments,
                net_balance=money(total_collections - total_payments),
            ),
            monthly_breakdown=breakdown,
        )
