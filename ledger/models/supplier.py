from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID
from sqlmodel import SQLModel, Field
from pydantic import EmailStr


class SupplierBase(SQLModel):
    name: str = Field(min_length=1, max_length=255)
    code: str = Field(
        min_length=1,
        max_length=255,
        description="Business code, unique across suppliers. Example: 'SUP001'"
    )
    contact_person: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=20)
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    region: Optional[str] = Field(default=None, max_length=255)
    is_active: bool = True


class SupplierCreate(SupplierBase):
    pass


class SupplierUpdate(SQLModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    code: Optional[str] = Field(default=None, min_length=1, max_length=255)
    contact_person: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=20)
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    region: Optional[str] = Field(default=None, max_length=255)
    is_active: Optional[bool] = None
    version: int = Field(description="The version the client last read.")


class SupplierBrief(SQLModel):
    id: UUID
    name: str
    code: str


class SupplierRead(SQLModel):
    id: UUID
    name: str
    code: str
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    region: Optional[str] = None
    is_active: bool
    version: int
    created_at: datetime
    updated_at: datetime


class Period(SQLModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class SupplierBalance(SQLModel):
    """Running balance: everything collected minus everything paid."""
    supplier: SupplierBrief
    total_collected: Decimal
    total_paid: Decimal
    balance: Decimal
    period: Period
