from typing import Optional, List, Dict, Any
from datetime import datetime, date
from decimal import Decimal
import uuid
from sqlalchemy import Index
from sqlmodel import SQLModel, Field, Relationship, JSON
from enum import Enum


class PaymentType(str, Enum):
    ADVANCE = "advance"        # Paid before any delivery is recorded
    PARTIAL = "partial"        # Settles part of the outstanding balance
    FULL = "full"              # Settles the whole outstanding balance
    ADJUSTMENT = "adjustment"  # Manual correction, may be negative in effect


class AuditAction(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


class TimestampMixin(SQLModel):
    """
    A foundational mixin that provides standard audit timestamps for database records.
    Every ledger entity inherits this so that creation and last modification are
    always tracked.
    """
    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="The exact UTC timestamp when this record was first persisted in the database. Example: '2025-12-29 14:30:00'"
    )
    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_column_kwargs={"onupdate": datetime.utcnow},
        description="The exact UTC timestamp when this record was last modified. Updates automatically. Example: '2025-12-30 09:15:00'"
    )


class LedgerMixin(TimestampMixin):
    """
    Shared columns of every mutable ledger entity.

    `version` is the optimistic concurrency counter: it starts at 1 and is
    incremented by exactly one on every successful update. `deleted_at`
    implements soft deletion; rows with a value here are invisible to the API.
    """
    version: int = Field(
        default=1,
        description="Optimistic concurrency counter. Clients echo the value they read when updating. Example: 3"
    )
    deleted_at: Optional[datetime] = Field(
        default=None,
        index=True,
        description="Soft delete marker. NULL while the record is live. Example: '2026-01-02 10:00:00'"
    )


class Role(LedgerMixin, SQLModel, table=True):
    """
    Represents a named collection of permissions.
    Permissions are dotted strings such as 'suppliers.view' or
    'collections.create'; every route checks exactly one of them.
    """
    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        description="The unique identifier for this role."
    )
    name: str = Field(
        unique=True,
        index=True,
        description="Technical slug of the role. Example: 'manager'"
    )
    display_name: str = Field(
        description="Human readable name of the role. Example: 'Manager'"
    )
    description: Optional[str] = Field(
        default=None,
        description="Details about the responsibilities of this role. Example: 'Manage collections, payments, and view reports'"
    )
    permissions: List[str] = Field(
        default_factory=list,
        sa_type=JSON,
        description="Permission keys granted by this role. Example: ['suppliers.view', 'reports.view']"
    )

    users: List["User"] = Relationship(back_populates="role")


class User(LedgerMixin, SQLModel, table=True):
    """
    Represents a person operating the ledger (admin, manager, field collector).
    Every collection and payment records the user who entered it.
    """
    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        description="The unique identifier for the user."
    )
    name: str = Field(
        description="Full name of the user. Example: 'Jane Perera'"
    )
    email: str = Field(
        unique=True,
        index=True,
        description="The login email address. Example: 'jane@example.com'"
    )
    hashed_password: str = Field(
        description="The salted password hash. Never store plain text."
    )
    role_id: uuid.UUID = Field(
        foreign_key="role.id",
        index=True,
        description="The role that defines what this user may do."
    )
    is_active: bool = Field(
        default=True,
        description="If False, the user cannot log in. Example: True"
    )

    role: Role = Relationship(back_populates="users")
    collections: List["Collection"] = Relationship(back_populates="user")
    payments: List["Payment"] = Relationship(back_populates="user")


class Supplier(LedgerMixin, SQLModel, table=True):
    """
    Represents a supplier (farmer, grower, vendor) who delivers products and
    receives payments. The running balance is the sum of collection amounts
    minus the sum of payments.
    """
    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        description="The unique identifier for the supplier."
    )
    name: str = Field(
        index=True,
        description="Display name of the supplier. Example: 'Green Valley Estate'"
    )
    code: str = Field(
        unique=True,
        index=True,
        description="Business code, unique across all suppliers. Example: 'SUP001'"
    )
    contact_person: Optional[str] = Field(default=None)
    phone: Optional[str] = Field(default=None)
    email: Optional[str] = Field(default=None)
    address: Optional[str] = Field(default=None)
    region: Optional[str] = Field(
        default=None,
        index=True,
        description="Collection region or route. Example: 'Nuwara Eliya'"
    )
    is_active: bool = Field(default=True, index=True)

    collections: List["Collection"] = Relationship(back_populates="supplier")
    payments: List["Payment"] = Relationship(back_populates="supplier")


class Product(LedgerMixin, SQLModel, table=True):
    """
    Represents a product that suppliers deliver (e.g., green tea leaves).
    Prices are not stored here; they live in time-bounded Rate records.
    """
    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        description="The unique identifier for the product."
    )
    name: str = Field(
        index=True,
        description="Display name of the product. Example: 'Tea Leaves'"
    )
    code: str = Field(
        unique=True,
        index=True,
        description="Business code, unique across all products. Example: 'TEA001'"
    )
    description: Optional[str] = Field(default=None)
    base_unit: str = Field(
        description="Default unit of measurement used for rate lookups. Example: 'kg'"
    )
    supported_units: List[str] = Field(
        default_factory=list,
        sa_type=JSON,
        description="Other units this product may be collected in. Example: ['kg', 'g']"
    )
    is_active: bool = Field(default=True, index=True)

    rates: List["Rate"] = Relationship(back_populates="product")
    collections: List["Collection"] = Relationship(back_populates="product")


class Rate(LedgerMixin, SQLModel, table=True):
    """
    The price paid per unit of a product during a date window.
    For a given (product, unit) the windows are expected not to overlap; the
    rate applied to a collection is the one whose window contains the
    collection date, preferring the most recent `effective_from`.
    """
    __table_args__ = (
        Index("ix_rate_lookup", "product_id", "unit", "effective_from"),
    )

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        description="The unique identifier for the rate."
    )
    product_id: uuid.UUID = Field(
        foreign_key="product.id",
        index=True,
        description="The product this price applies to."
    )
    rate: Decimal = Field(
        max_digits=10,
        decimal_places=2,
        description="Price per unit. Example: 250.00"
    )
    unit: str = Field(
        index=True,
        description="Unit the price is quoted in. Example: 'kg'"
    )
    effective_from: date = Field(
        index=True,
        description="First day (inclusive) the rate applies. Example: '2025-01-01'"
    )
    effective_to: Optional[date] = Field(
        default=None,
        description="Last day (inclusive) the rate applies. NULL means open-ended. Example: '2025-12-31'"
    )
    is_active: bool = Field(default=True)
    revision: int = Field(
        default=1,
        description="Sequence number of this price within its product and unit. Example: 4"
    )

    product: Product = Relationship(back_populates="rates")
    collections: List["Collection"] = Relationship(back_populates="rate")


class Collection(LedgerMixin, SQLModel, table=True):
    """
    A delivery of a product by a supplier, recorded by a user.
    `rate_applied` is copied from the resolved Rate so that later price
    changes never rewrite history; `total_amount` = quantity * rate_applied.
    """
    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        description="The unique identifier for the collection."
    )
    supplier_id: uuid.UUID = Field(foreign_key="supplier.id", index=True)
    product_id: uuid.UUID = Field(foreign_key="product.id", index=True)
    user_id: uuid.UUID = Field(foreign_key="user.id", index=True)
    rate_id: uuid.UUID = Field(foreign_key="rate.id", index=True)

    collection_date: date = Field(
        index=True,
        description="Day the goods were collected. Example: '2025-12-29'"
    )
    quantity: Decimal = Field(
        max_digits=10,
        decimal_places=3,
        description="Quantity collected, in `unit`. Example: 50.500"
    )
    unit: str = Field(description="Unit of the quantity. Example: 'kg'")
    rate_applied: Decimal = Field(
        max_digits=10,
        decimal_places=2,
        description="Price per unit copied from the resolved rate. Example: 250.00"
    )
    total_amount: Decimal = Field(
        max_digits=12,
        decimal_places=2,
        description="quantity * rate_applied. Example: 12625.00"
    )
    notes: Optional[str] = Field(default=None)

    supplier: Supplier = Relationship(back_populates="collections")
    product: Product = Relationship(back_populates="collections")
    user: User = Relationship(back_populates="collections")
    rate: Rate = Relationship(back_populates="collections")


class Payment(LedgerMixin, SQLModel, table=True):
    """
    Money paid to a supplier. Payments reduce the supplier's running balance.
    """
    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        description="The unique identifier for the payment."
    )
    supplier_id: uuid.UUID = Field(foreign_key="supplier.id", index=True)
    user_id: uuid.UUID = Field(foreign_key="user.id", index=True)

    payment_date: date = Field(
        index=True,
        description="Day the payment was made. Example: '2025-12-31'"
    )
    amount: Decimal = Field(
        max_digits=12,
        decimal_places=2,
        description="Amount paid. Example: 5000.00"
    )
    type: PaymentType = Field(
        default=PaymentType.PARTIAL,
        description="Nature of the payment. Example: 'advance'"
    )
    reference_number: Optional[str] = Field(
        default=None,
        unique=True,
        description="Receipt, cheque or transfer reference. Example: 'PAY-2025-0001'"
    )
    payment_method: Optional[str] = Field(
        default=None,
        description="How the money was paid. Example: 'bank_transfer'"
    )
    notes: Optional[str] = Field(default=None)

    supplier: Supplier = Relationship(back_populates="payments")
    user: User = Relationship(back_populates="payments")


class AuditLog(SQLModel, table=True):
    """
    Immutable trail of every successful write performed through the API.
    """
    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
    )
    user_id: Optional[uuid.UUID] = Field(
        default=None,
        foreign_key="user.id",
        index=True,
        description="The actor. NULL for anonymous actions such as registration."
    )
    action: AuditAction = Field(index=True)
    entity_type: str = Field(
        index=True,
        description="Kind of record touched. Example: 'supplier'"
    )
    entity_id: Optional[uuid.UUID] = Field(default=None)
    changes: Dict[str, Any] = Field(
        default_factory=dict,
        sa_type=JSON,
        description="Submitted field values, secrets removed. Example: {'name': 'New name'}"
    )
    ip_address: Optional[str] = Field(default=None)
    user_agent: Optional[str] = Field(default=None)
    timestamp: datetime = Field(default_factory=datetime.utcnow, index=True)


class RevokedToken(SQLModel, table=True):
    """
    Access tokens invalidated by logout. Rows can be purged once `expires_at`
    has passed since the token would be rejected anyway.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    jti: str = Field(unique=True, index=True)
    expires_at: datetime = Field(index=True)
