from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID
from sqlmodel import SQLModel, Field

from ledger.models.product import ProductBrief
from ledger.models.supplier import SupplierBrief
from ledger.models.user import UserBrief


class CollectionCreate(SQLModel):
    """
    The rate and the total are never accepted from the client; they are
    resolved from the product's rates for the collection date and unit.
    """
    supplier_id: UUID
    product_id: UUID
    collection_date: date
    quantity: Decimal = Field(gt=0, max_digits=10, decimal_places=3)
    unit: str = Field(min_length=1, max_length=50)
    notes: Optional[str] = None


class CollectionUpdate(SQLModel):
    supplier_id: Optional[UUID] = None
    product_id: Optional[UUID] = None
    collection_date: Optional[date] = None
    quantity: Optional[Decimal] = Field(default=None, gt=0, max_digits=10, decimal_places=3)
    unit: Optional[str] = Field(default=None, min_length=1, max_length=50)
    notes: Optional[str] = None
    version: int = Field(description="The version the client last read.")


class CollectionRead(SQLModel):
    id: UUID
    supplier_id: UUID
    product_id: UUID
    user_id: UUID
    rate_id: UUID
    collection_date: date
    quantity: Decimal
    unit: str
    rate_applied: Decimal
    total_amount: Decimal
    notes: Optional[str] = None
    version: int
    created_at: datetime
    updated_at: datetime
    supplier: Optional[SupplierBrief] = None
    product: Optional[ProductBrief] = None
    user: Optional[UserBrief] = None


class CollectionCalculation(SQLModel):
    """Preview of what a collection would be charged at."""
    product_id: UUID
    rate_id: UUID
    collection_date: date
    quantity: Decimal
    unit: str
    rate_applied: Decimal
    total_amount: Decimal
