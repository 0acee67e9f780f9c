"""initial ledger schema

Revision ID: 3f1c9a2b7d40
Revises:
Create Date: 2026-01-05 09:12:44.210593

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
import sqlmodel


# revision identifiers, used by Alembic.
revision: str = '3f1c9a2b7d40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _ledger_columns():
    """Timestamps, optimistic lock counter and soft delete marker."""
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
    ]


def upgrade():
    op.create_table(
        'role',
        *_ledger_columns(),
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('display_name', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('description', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('permissions', sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_role_name'), 'role', ['name'], unique=True)
    op.create_index(op.f('ix_role_deleted_at'), 'role', ['deleted_at'], unique=False)

    op.create_table(
        'user',
        *_ledger_columns(),
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('email', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('hashed_password', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('role_id', sa.Uuid(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(['role_id'], ['role.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_user_email'), 'user', ['email'], unique=True)
    op.create_index(op.f('ix_user_role_id'), 'user', ['role_id'], unique=False)
    op.create_index(op.f('ix_user_deleted_at'), 'user', ['deleted_at'], unique=False)

    op.create_table(
        'supplier',
        *_ledger_columns(),
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('code', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('contact_person', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('phone', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('email', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('address', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('region', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_supplier_code'), 'supplier', ['code'], unique=True)
    op.create_index(op.f('ix_supplier_name'), 'supplier', ['name'], unique=False)
    op.create_index(op.f('ix_supplier_region'), 'supplier', ['region'], unique=False)
    op.create_index(op.f('ix_supplier_is_active'), 'supplier', ['is_active'], unique=False)
    op.create_index(op.f('ix_supplier_deleted_at'), 'supplier', ['deleted_at'], unique=False)

    op.create_table(
        'product',
        *_ledger_columns(),
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('code', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('description', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('base_unit', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('supported_units', sa.JSON(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_product_code'), 'product', ['code'], unique=True)
    op.create_index(op.f('ix_product_name'), 'product', ['name'], unique=False)
    op.create_index(op.f('ix_product_is_active'), 'product', ['is_active'], unique=False)
    op.create_index(op.f('ix_product_deleted_at'), 'product', ['deleted_at'], unique=False)

    op.create_table(
        'rate',
        *_ledger_columns(),
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=False),
        sa.Column('rate', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('unit', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('effective_from', sa.Date(), nullable=False),
        sa.Column('effective_to', sa.Date(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('revision', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['product_id'], ['product.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_rate_product_id'), 'rate', ['product_id'], unique=False)
    op.create_index(op.f('ix_rate_unit'), 'rate', ['unit'], unique=False)
    op.create_index(op.f('ix_rate_effective_from'), 'rate', ['effective_from'], unique=False)
    op.create_index(op.f('ix_rate_deleted_at'), 'rate', ['deleted_at'], unique=False)
    # Rate lookups filter on all three
    op.create_index('ix_rate_lookup', 'rate', ['product_id', 'unit', 'effective_from'], unique=False)

    op.create_table(
        'collection',
        *_ledger_columns(),
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('supplier_id', sa.Uuid(), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('rate_id', sa.Uuid(), nullable=False),
        sa.Column('collection_date', sa.Date(), nullable=False),
        sa.Column('quantity', sa.Numeric(precision=10, scale=3), nullable=False),
        sa.Column('unit', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('rate_applied', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('total_amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('notes', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.ForeignKeyConstraint(['supplier_id'], ['supplier.id']),
        sa.ForeignKeyConstraint(['product_id'], ['product.id']),
        sa.ForeignKeyConstraint(['user_id'], ['user.id']),
        sa.ForeignKeyConstraint(['rate_id'], ['rate.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_collection_supplier_id'), 'collection', ['supplier_id'], unique=False)
    op.create_index(op.f('ix_collection_product_id'), 'collection', ['product_id'], unique=False)
    op.create_index(op.f('ix_collection_user_id'), 'collection', ['user_id'], unique=False)
    op.create_index(op.f('ix_collection_rate_id'), 'collection', ['rate_id'], unique=False)
    op.create_index(op.f('ix_collection_collection_date'), 'collection', ['collection_date'], unique=False)
    op.create_index(op.f('ix_collection_deleted_at'), 'collection', ['deleted_at'], unique=False)

    op.create_table(
        'payment',
        *_ledger_columns(),
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('supplier_id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('payment_date', sa.Date(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('type', sa.Enum('ADVANCE', 'PARTIAL', 'FULL', 'ADJUSTMENT', name='paymenttype'), nullable=False),
        sa.Column('reference_number', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('payment_method', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('notes', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.ForeignKeyConstraint(['supplier_id'], ['supplier.id']),
        sa.ForeignKeyConstraint(['user_id'], ['user.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('reference_number'),
    )
    op.create_index(op.f('ix_payment_supplier_id'), 'payment', ['supplier_id'], unique=False)
    op.create_index(op.f('ix_payment_user_id'), 'payment', ['user_id'], unique=False)
    op.create_index(op.f('ix_payment_payment_date'), 'payment', ['payment_date'], unique=False)
    op.create_index(op.f('ix_payment_deleted_at'), 'payment', ['deleted_at'], unique=False)

    op.create_table(
        'auditlog',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=True),
        sa.Column('action', sa.Enum('CREATED', 'UPDATED', 'DELETED', name='auditaction'), nullable=False),
        sa.Column('entity_type', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('entity_id', sa.Uuid(), nullable=True),
        sa.Column('changes', sa.JSON(), nullable=False),
        sa.Column('ip_address', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('user_agent', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['user.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_auditlog_user_id'), 'auditlog', ['user_id'], unique=False)
    op.create_index(op.f('ix_auditlog_action'), 'auditlog', ['action'], unique=False)
    op.create_index(op.f('ix_auditlog_entity_type'), 'auditlog', ['entity_type'], unique=False)
    op.create_index(op.f('ix_auditlog_timestamp'), 'auditlog', ['timestamp'], unique=False)

    op.create_table(
        'revokedtoken',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('jti', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_revokedtoken_jti'), 'revokedtoken', ['jti'], unique=True)
    op.create_index(op.f('ix_revokedtoken_expires_at'), 'revokedtoken', ['expires_at'], unique=False)


def downgrade():
    op.drop_table('revokedtoken')
    op.drop_table('auditlog')
    op.drop_table('payment')
    op.drop_table('collection')
    op.drop_table('rate')
    op.drop_table('product')
    op.drop_table('supplier')
    op.drop_table('user')
    op.drop_table('role')

    bind = op.get_bind()
    if bind.dialect.name == 'postgresql':
        op.execute("DROP TYPE IF EXISTS paymenttype")
        op.execute("DROP TYPE IF EXISTS auditaction")
