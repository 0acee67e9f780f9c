from datetime import date
from typing import Optional
import uuid

from sqlmodel import Session, select

from ledger.core.concurrency import compare_and_swap, load_live
from ledger.core.pagination import ListParams, Page, apply_search, apply_sorting, paginate
from ledger.db.schema import Product
from ledger.models.product import (
    CurrentRate, ProductBrief, ProductCreate, ProductRead, ProductUpdate,
    RateHistory, RateSummary
)
from .common import ensure_unique, save, soft_delete
from .rate import RateService


class ProductService:
    SORT_FIELDS = ("name", "code", "base_unit", "created_at", "updated_at")

    def __init__(self, session: Session):
        self.session = session
        self.rates = RateService(session)

    def list_products(self, params: ListParams, is_active: Optional[bool] = None) -> Page:
        statement = select(Product).where(Product.deleted_at == None)  # noqa: E711

        statement = apply_search(statement, params.search, [Product.name, Product.code])
        if is_active is not None:
            statement = statement.where(Product.is_active == is_active)

        statement = apply_sorting(statement, Product, params, self.SORT_FIELDS)
        return paginate(self.session, statement, params, ProductRead.model_validate)

    def get_product(self, product_id: uuid.UUID) -> Product:
        return load_live(self.session, Product, product_id)

    def create_product(self, data: ProductCreate) -> Product:
        ensure_unique(self.session, Product, "code", data.code,
                      message="The code has already been taken.")
        product = Product(**data.model_dump())
        return save(self.session, product, "The code has already been taken.")

    def update_product(self, product_id: uuid.UUID, data: ProductUpdate) -> Product:
        changes = data.model_dump(exclude_unset=True, exclude={"version"})

        if changes.get("code") is not None:
            ensure_unique(self.session, Product, "code", changes["code"],
                          exclude_id=product_id,
                          message="The code has already been taken.")

        for required in ("name", "code", "base_unit", "supported_units", "is_active"):
            if required in changes and changes[required] is None:
                changes.pop(required)

        def mutation(current: Product):
            # The base unit is always one of the supported units
            base_unit = changes.get("base_unit", current.base_unit)
            units = list(changes.get("supported_units", current.supported_units) or [])
            if base_unit not in units:
                units = [base_unit] + units
            return {**changes, "supported_units": units}

        return compare_and_swap(
            self.session, Product, product_id, data.version,
            mutation,
            read_model=ProductRead,
        )

    def delete_product(self, product_id: uuid.UUID) -> Product:
        product = load_live(self.session, Product, product_id)
        soft_delete(self.session, product)
        return product

    def current_rate(
        self,
        product_id: uuid.UUID,
        on_date: Optional[date] = None,
        unit: Optional[str] = None,
    ) -> CurrentRate:
        product = load_live(self.session, Product, product_id)
        on_date = on_date or date.today()
        unit = unit or product.base_unit

        rate = self.rates.resolve(product.id, unit, on_date)

        return CurrentRate(
            product=ProductBrief.model_validate(product),
            as_of=on_date,
            unit=unit,
            rate=RateSummary.model_validate(rate) if rate else None,
        )

    def rate_history(self, product_id: uuid.UUID, unit: Optional[str] = None) -> RateHistory:
        product = load_live(self.session, Product, product_id)
        rates = self.rates.history(product.id, unit)

        return RateHistory(
            product=ProductBrief.model_validate(product),
            unit=unit,
            rates=[RateSummary.model_validate(r) for r in rates],
        )
