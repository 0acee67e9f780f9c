from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID
from sqlmodel import SQLModel, Field
from pydantic import model_validator

from ledger.models.product import ProductBrief


class RateCreate(SQLModel):
    product_id: UUID
    rate: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    unit: str = Field(min_length=1, max_length=50)
    effective_from: date
    effective_to: Optional[date] = None
    is_active: bool = True

    @model_validator(mode="after")
    def check_window(self) -> "RateCreate":
        if self.effective_to and self.effective_to <= self.effective_from:
            raise ValueError("effective_to must be after effective_from.")
        return self


class RateUpdate(SQLModel):
    """
    Rates are history: the product a rate belongs to cannot be changed, only
    the price, unit and validity window.
    """
    rate: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    unit: Optional[str] = Field(default=None, min_length=1, max_length=50)
    effective_from: Optional[date] = None
    effective_to: Optional[date] = None
    is_active: Optional[bool] = None
    version: int = Field(description="The version the client last read.")

    @model_validator(mode="after")
    def check_window(self) -> "RateUpdate":
        if (
            self.effective_from and self.effective_to
            and self.effective_to <= self.effective_from
        ):
            raise ValueError("effective_to must be after effective_from.")
        return self


class RateRead(SQLModel):
    id: UUID
    product_id: UUID
    rate: Decimal
    unit: str
    effective_from: date
    effective_to: Optional[date] = None
    is_active: bool
    revision: int
    version: int
    created_at: datetime
    updated_at: datetime
    product: Optional[ProductBrief] = None
