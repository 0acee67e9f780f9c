from datetime import date
from decimal import Decimal
from typing import Optional
import uuid

from loguru import logger
from sqlmodel import Session, select

from ledger.core.concurrency import compare_and_swap, load_live
from ledger.core.errors import BusinessRuleError
from ledger.core.pagination import (
    ListParams, Page, apply_date_range, apply_sorting, paginate
)
from ledger.db.schema import Collection, Product, Supplier, User
from ledger.models.collection import (
    CollectionCalculation, CollectionCreate, CollectionRead, CollectionUpdate
)
from .common import money, save, soft_delete
from .rate import RateService


class CollectionService:
    SORT_FIELDS = ("collection_date", "quantity", "total_amount", "created_at")
    # Changing any of these re-resolves the rate
    PRICING_FIELDS = ("product_id", "collection_date", "unit")

    def __init__(self, session: Session):
        self.session = session
        self.rates = RateService(session)

    def _require(self, model, entity_id: uuid.UUID, label: str):
        entity = self.session.exec(
            select(model).where(model.id == entity_id, model.deleted_at == None)  # noqa: E711
        ).first()
        if not entity:
            raise BusinessRuleError(f"The selected {label} is invalid.")
        return entity

    def calculate(
        self,
        product_id: uuid.UUID,
        unit: str,
        quantity: Decimal,
        on_date: date,
    ) -> CollectionCalculation:
        """
        Resolves the rate for (product, unit, date) and prices `quantity` with it.
        Raises 422 when no rate covers the date.
        """
        rate = self.rates.resolve(product_id, unit, on_date)
        if not rate:
            raise BusinessRuleError("No valid rate found for the specified date and unit")

        rate_applied = money(rate.rate)
        return CollectionCalculation(
            product_id=product_id,
            rate_id=rate.id,
            collection_date=on_date,
            quantity=quantity,
            unit=unit,
            rate_applied=rate_applied,
            total_amount=money(Decimal(str(quantity)) * rate_applied),
        )

    def list_collections(
        self,
        params: ListParams,
        supplier_id: Optional[uuid.UUID] = None,
        product_id: Optional[uuid.UUID] = None,
        user_id: Optional[uuid.UUID] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Page:
        statement = select(Collection).where(Collection.deleted_at == None)  # noqa: E711

        if supplier_id:
            statement = statement.where(Collection.supplier_id == supplier_id)
        if product_id:
            statement = statement.where(Collection.product_id == product_id)
        if user_id:
            statement = statement.where(Collection.user_id == user_id)
        statement = apply_date_range(statement, Collection.collection_date, start_date, end_date)

        statement = apply_sorting(
            statement, Collection, params, self.SORT_FIELDS, default="collection_date")
        return paginate(self.session, statement, params, CollectionRead.model_validate)

    def get_collection(self, collection_id: uuid.UUID) -> Collection:
        return load_live(self.session, Collection, collection_id)

    def create_collection(self, data: CollectionCreate, user: User) -> Collection:
        self._require(Supplier, data.supplier_id, "supplier")
        self._require(Product, data.product_id, "product")

        priced = self.calculate(data.product_id, data.unit, data.quantity, data.collection_date)

        collection = Collection(
            **data.model_dump(),
            user_id=user.id,
            rate_id=priced.rate_id,
            rate_applied=priced.rate_applied,
            total_amount=priced.total_amount,
        )
        collection = save(self.session, collection)
        logger.info(
            f"Collection {collection.id} recorded for supplier {collection.supplier_id}: "
            f"{collection.quantity} {collection.unit} = {collection.total_amount}")
        return collection

    def update_collection(self, collection_id: uuid.UUID, data: CollectionUpdate) -> Collection:
        changes = data.model_dump(exclude_unset=True, exclude={"version"})

        for required in ("supplier_id", "product_id", "collection_date", "quantity", "unit"):
            if required in changes and changes[required] is None:
                changes.pop(required)

        if "supplier_id" in changes:
            self._require(Supplier, changes["supplier_id"], "supplier")
        if "product_id" in changes:
            self._require(Product, changes["product_id"], "product")

        def mutation(current: Collection):
            product_id = changes.get("product_id", current.product_id)
            unit = changes.get("unit", current.unit)
            on_date = changes.get("collection_date", current.collection_date)
            quantity = changes.get("quantity", current.quantity)

            values = dict(changes)
            if any(f in changes for f in self.PRICING_FIELDS):
                priced = self.calculate(product_id, unit, quantity, on_date)
                values["rate_id"] = priced.rate_id
                values["rate_applied"] = priced.rate_applied
                values["total_amount"] = priced.total_amount
            elif "quantity" in changes:
                values["total_amount"] = money(
                    Decimal(str(quantity)) * Decimal(str(current.rate_applied)))
            return values

        return compare_and_swap(
            self.session, Collection, collection_id, data.version,
            mutation,
            read_model=CollectionRead,
        )

    def delete_collection(self, collection_id: uuid.UUID) -> Collection:
        collection = load_live(self.session, Collection, collection_id)
        soft_delete(self.session, collection)
        return collection
