from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID
from sqlmodel import SQLModel, Field

from ledger.db.schema import PaymentType
from ledger.models.supplier import SupplierBrief
from ledger.models.user import UserBrief


class PaymentCreate(SQLModel):
    supplier_id: UUID
    payment_date: date
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    type: PaymentType
    reference_number: Optional[str] = Field(default=None, max_length=255)
    payment_method: Optional[str] = Field(default=None, max_length=255)
    notes: Optional[str] = None


class PaymentUpdate(SQLModel):
    supplier_id: Optional[UUID] = None
    payment_date: Optional[date] = None
    amount: Optional[Decimal] = Field(default=None, gt=0, max_digits=12, decimal_places=2)
    type: Optional[PaymentType] = None
    reference_number: Optional[str] = Field(default=None, max_length=255)
    payment_method: Optional[str] = Field(default=None, max_length=255)
    notes: Optional[str] = None
    version: int = Field(description="The version the client last read.")


class PaymentRead(SQLModel):
    id: UUID
    supplier_id: UUID
    user_id: UUID
    payment_date: date
    amount: Decimal
    type: PaymentType
    reference_number: Optional[str] = None
    payment_method: Optional[str] = None
    notes: Optional[str] = None
    version: int
    created_at: datetime
    updated_at: datetime
    supplier: Optional[SupplierBrief] = None
    user: Optional[UserBrief] = None
