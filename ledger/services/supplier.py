from datetime import date
from typing import Optional
import uuid

from sqlalchemy import func
from sqlmodel import Session, select

from ledger.core.concurrency import compare_and_swap, load_live
from ledger.core.pagination import (
    ListParams, Page, apply_date_range, apply_search, apply_sorting, paginate
)
from ledger.db.schema import Supplier, Collection, Payment
from ledger.models.collection import CollectionRead
from ledger.models.payment import PaymentRead
from ledger.models.supplier import (
    Period, SupplierBalance, SupplierBrief, SupplierCreate, SupplierRead, SupplierUpdate
)
from .common import ensure_unique, money, save, soft_delete


class SupplierService:
    SORT_FIELDS = ("name", "code", "region", "created_at", "updated_at")

    def __init__(self, session: Session):
        self.session = session

    def list_suppliers(self, params: ListParams, is_active: Optional[bool] = None) -> Page:
        statement = select(Supplier).where(Supplier.deleted_at == None)  # noqa: E711

        statement = apply_search(
            statement, params.search, [Supplier.name, Supplier.code, Supplier.region])
        if is_active is not None:
            statement = statement.where(Supplier.is_active == is_active)

        statement = apply_sorting(statement, Supplier, params, self.SORT_FIELDS)
        return paginate(self.session, statement, params, SupplierRead.model_validate)

    def get_supplier(self, supplier_id: uuid.UUID) -> Supplier:
        return load_live(self.session, Supplier, supplier_id)

    def create_supplier(self, data: SupplierCreate) -> Supplier:
        ensure_unique(self.session, Supplier, "code", data.code,
                      message="The code has already been taken.")
        supplier = Supplier(**data.model_dump())
        return save(self.session, supplier, "The code has already been taken.")

    def update_supplier(self, supplier_id: uuid.UUID, data: SupplierUpdate) -> Supplier:
        changes = data.model_dump(exclude_unset=True, exclude={"version"})

        if changes.get("code") is not None:
            ensure_unique(self.session, Supplier, "code", changes["code"],
                          exclude_id=supplier_id,
                          message="The code has already been taken.")

        for required in ("name", "code", "is_active"):
            if required in changes and changes[required] is None:
                changes.pop(required)

        return compare_and_swap(
            self.session, Supplier, supplier_id, data.version,
            lambda current: changes,
            read_model=SupplierRead,
        )

    def delete_supplier(self, supplier_id: uuid.UUID) -> Supplier:
        supplier = load_live(self.session, Supplier, supplier_id)
        soft_delete(self.session, supplier)
        return supplier

    def get_balance(
        self,
        supplier_id: uuid.UUID,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> SupplierBalance:
        """
        Total collected minus total paid, optionally limited to a date range.
        A positive balance is money still owed to the supplier.
        """
        supplier = load_live(self.session, Supplier, supplier_id)

        collected = select(func.coalesce(func.sum(Collection.total_amount), 0)).where(
            Collection.supplier_id == supplier_id,
            Collection.deleted_at == None  # noqa: E711
        )
        collected = apply_date_range(collected, Collection.collection_date, start_date, end_date)

        paid = select(func.coalesce(func.sum(Payment.amount), 0)).where(
            Payment.supplier_id == supplier_id,
            Payment.deleted_at == None  # noqa: E711
        )
        paid = apply_date_range(paid, Payment.payment_date, start_date, end_date)

        total_collected = money(self.session.exec(collected).one())
        total_paid = money(self.session.exec(paid).one())

        return SupplierBalance(
            supplier=SupplierBrief.model_validate(supplier),
            total_collected=total_collected,
            total_paid=total_paid,
            balance=money(total_collected - total_paid),
            period=Period(start_date=start_date, end_date=end_date),
        )

    def list_collections(
        self,
        supplier_id: uuid.UUID,
        params: ListParams,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Page:
        load_live(self.session, Supplier, supplier_id)

        statement = select(Collection).where(
            Collection.supplier_id == supplier_id,
            Collection.deleted_at == None  # noqa: E711
        )
        statement = apply_date_range(statement, Collection.collection_date, start_date, end_date)
        statement = statement.order_by(Collection.collection_date.desc())
        return paginate(self.session, statement, params, CollectionRead.model_validate)

    def list_payments(
        self,
        supplier_id: uuid.UUID,
        params: ListParams,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Page:
        load_live(self.session, Supplier, supplier_id)

        statement = select(Payment).where(
            Payment.supplier_id == supplier_id,
            Payment.deleted_at == None  # noqa: E711
        )
        statement = apply_date_range(statement, Payment.payment_date, start_date, end_date)
        statement = statement.order_by(Payment.payment_date.desc())
        return paginate(self.session, statement, params, PaymentRead.model_validate)
