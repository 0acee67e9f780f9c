from datetime import date
from typing import Optional
import uuid

from loguru import logger
from sqlmodel import Session, select

from ledger.core.concurrency import compare_and_swap, load_live
from ledger.core.errors import BusinessRuleError
from ledger.core.pagination import (
    ListParams, Page, apply_date_range, apply_sorting, paginate
)
from ledger.db.schema import Payment, PaymentType, Supplier, User
from ledger.models.payment import PaymentCreate, PaymentRead, PaymentUpdate
from .common import ensure_unique, money, save, soft_delete


REFERENCE_TAKEN = "The reference number has already been taken."


class PaymentService:
    SORT_FIELDS = ("payment_date", "amount", "type", "created_at")

    def __init__(self, session: Session):
        self.session = session

    def _require_supplier(self, supplier_id: uuid.UUID) -> Supplier:
        supplier = self.session.exec(
            select(Supplier).where(
                Supplier.id == supplier_id,
                Supplier.deleted_at == None  # noqa: E711
            )
        ).first()
        if not supplier:
            raise BusinessRuleError("The selected supplier is invalid.")
        return supplier

    def list_payments(
        self,
        params: ListParams,
        supplier_id: Optional[uuid.UUID] = None,
        user_id: Optional[uuid.UUID] = None,
        type: Optional[PaymentType] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Page:
        statement = select(Payment).where(Payment.deleted_at == None)  # noqa: E711

        if supplier_id:
            statement = statement.where(Payment.supplier_id == supplier_id)
        if user_id:
            statement = statement.where(Payment.user_id == user_id)
        if type:
            statement = statement.where(Payment.type == type)
        statement = apply_date_range(statement, Payment.payment_date, start_date, end_date)

        statement = apply_sorting(
            statement, Payment, params, self.SORT_FIELDS, default="payment_date")
        return paginate(self.session, statement, params, PaymentRead.model_validate)

    def get_payment(self, payment_id: uuid.UUID) -> Payment:
        return load_live(self.session, Payment, payment_id)

    def create_payment(self, data: PaymentCreate, user: User) -> Payment:
        self._require_supplier(data.supplier_id)
        ensure_unique(self.session, Payment, "reference_number", data.reference_number,
                      message=REFERENCE_TAKEN)

        values = data.model_dump()
        values["amount"] = money(values["amount"])
        payment = Payment(**values, user_id=user.id)
        payment = save(self.session, payment, REFERENCE_TAKEN)

        logger.info(
            f"Payment {payment.id} of {payment.amount} ({payment.type.value}) "
            f"recorded for supplier {payment.supplier_id}")
        return payment

    def update_payment(self, payment_id: uuid.UUID, data: PaymentUpdate) -> Payment:
        changes = data.model_dump(exclude_unset=True, exclude={"version"})

        for required in ("supplier_id", "payment_date", "amount", "type"):
            if required in changes and changes[required] is None:
                changes.pop(required)

        if "supplier_id" in changes:
            self._require_supplier(changes["supplier_id"])
        if changes.get("reference_number") is not None:
            ensure_unique(self.session, Payment, "reference_number", changes["reference_number"],
                          exclude_id=payment_id, message=REFERENCE_TAKEN)
        if "amount" in changes:
            changes["amount"] = money(changes["amount"])

        return compare_and_swap(
            self.session, Payment, payment_id, data.version,
            lambda current: changes,
            read_model=PaymentRead,
        )

    def delete_payment(self, payment_id: uuid.UUID) -> Payment:
        payment = load_live(self.session, Payment, payment_id)
        soft_delete(self.session, payment)
        return payment
