from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID
from sqlmodel import SQLModel, Field
from pydantic import model_validator


class ProductBase(SQLModel):
    name: str = Field(min_length=1, max_length=255)
    code: str = Field(
        min_length=1,
        max_length=255,
        description="Business code, unique across products. Example: 'TEA001'"
    )
    description: Optional[str] = None
    base_unit: str = Field(
        min_length=1,
        max_length=50,
        description="Unit used when no unit is given. Example: 'kg'"
    )
    supported_units: List[str] = Field(default_factory=list)
    is_active: bool = True


class ProductCreate(ProductBase):
    @model_validator(mode="after")
    def include_base_unit(self) -> "ProductCreate":
        if self.base_unit not in self.supported_units:
            self.supported_units = [self.base_unit] + list(self.supported_units)
        return self


class ProductUpdate(SQLModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    code: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    base_unit: Optional[str] = Field(default=None, min_length=1, max_length=50)
    supported_units: Optional[List[str]] = None
    is_active: Optional[bool] = None
    version: int = Field(description="The version the client last read.")


class ProductBrief(SQLModel):
    id: UUID
    name: str
    code: str
    base_unit: str


class ProductRead(SQLModel):
    id: UUID
    name: str
    code: str
    description: Optional[str] = None
    base_unit: str
    supported_units: List[str] = []
    is_active: bool
    version: int
    created_at: datetime
    updated_at: datetime


class RateSummary(SQLModel):
    id: UUID
    rate: Decimal
    unit: str
    effective_from: date
    effective_to: Optional[date] = None
    is_active: bool
    revision: int
    version: int


class CurrentRate(SQLModel):
    product: ProductBrief
    as_of: date
    unit: str
    rate: Optional[RateSummary] = None


class RateHistory(SQLModel):
    product: ProductBrief
    unit: Optional[str] = None
    rates: List[RateSummary]
