from typing import List
from decimal import Decimal
from uuid import UUID
from sqlmodel import SQLModel

from ledger.db.schema import PaymentType


class SystemSummary(SQLModel):
    total_suppliers: int
    active_suppliers: int
    total_products: int
    active_products: int
    total_collections: int
    total_collection_amount: Decimal
    total_payments: int
    total_payment_amount: Decimal
    outstanding_balance: Decimal
    collections_this_month: int
    payments_this_month: int
    collection_amount_this_month: Decimal
    payment_amount_this_month: Decimal


class SupplierBalanceRow(SQLModel):
    supplier_id: UUID
    supplier_name: str
    supplier_code: str
    total_collections: Decimal
    total_payments: Decimal
    balance: Decimal
    collection_count: int
    payment_count: int


class CollectionTotals(SQLModel):
    total_count: int
    total_amount: Decimal
    total_quantity: Decimal


class CollectionsByProduct(SQLModel):
    product_id: UUID
    product_name: str
    count: int
    total_quantity: Decimal
    total_amount: Decimal


class CollectionsBySupplier(SQLModel):
    supplier_id: UUID
    supplier_name: str
    supplier_code: str
    count: int
    total_quantity: Decimal
    total_amount: Decimal


class CollectionsSummary(SQLModel):
    summary: CollectionTotals
    by_product: List[CollectionsByProduct]
    by_supplier: List[CollectionsBySupplier]


class PaymentTotals(SQLModel):
    total_count: int
    total_amount: Decimal


class PaymentsByType(SQLModel):
    type: PaymentType
    count: int
    total_amount: Decimal


class PaymentsBySupplier(SQLModel):
    supplier_id: UUID
    supplier_name: str
    supplier_code: str
    count: int
    total_amount: Decimal


class PaymentsSummary(SQLModel):
    summary: PaymentTotals
    by_type: List[PaymentsByType]
    by_supplier: List[PaymentsBySupplier]


class ProductPerformanceRow(SQLModel):
    product_id: UUID
    product_name: str
    product_code: str
    collection_count: int
    total_quantity: Decimal
    total_amount: Decimal
    unique_suppliers: int
    avg_rate: Decimal


class FinancialTotals(SQLModel):
    total_collections: Decimal
    total_payments: Decimal
    net_balance: Decimal


class MonthlyFigures(SQLModel):
    month: str
    collections: Decimal
    payments: Decimal
    net: Decimal


class FinancialSummary(SQLModel):
    summary: FinancialTotals
    monthly_breakdown: List[MonthlyFigures]
