"""initial_storeflow_schema

Revision ID: 0f3a9c21b7d4
Revises:
Create Date: 2026-10-18 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0f3a9c21b7d4'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


ENUMS = {
    'planstatus': ('active', 'inactive'),
    'tenantstatus': ('active', 'expired', 'suspended', 'deleted'),
    'userrole': ('landlord', 'tenant_admin', 'tenant_staff', 'customer'),
    'productstatus': ('active', 'draft', 'archived'),
    'adjustmenttype': ('increase', 'decrease', 'set', 'sale', 'return', 'damage', 'transfer'),
    'orderstatus': ('pending', 'processing', 'shipped', 'delivered', 'cancelled', 'refunded'),
    'paymentstatus': ('pending', 'paid', 'failed', 'refunded'),
    'ticketstatus': ('open', 'in_progress', 'resolved', 'closed'),
    'ticketpriority': ('low', 'medium', 'high', 'urgent'),
    'ticketcategory': ('billing', 'technical', 'feature_request', 'bug_report', 'account', 'other'),
}


def enum(name: str):
    # Types are created once up front; the ticket enums are shared by two tables
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    for name, values in ENUMS.items():
        sa.Enum(*values, name=name).create(bind, checkfirst=True)

    op.create_table(
        'price_plan',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('duration_months', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('trial_days', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('features', postgresql.JSONB(), nullable=True),
        sa.Column('status', enum('planstatus'), nullable=False, server_default='active'),
        *timestamps(),
    )

    op.create_table(
        'tenant',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('subdomain', sa.String(63), nullable=False),
        sa.Column('custom_domain', sa.String(255), nullable=True, unique=True),
        sa.Column('contact_email', sa.String(255), nullable=True),
        sa.Column('status', enum('tenantstatus'), nullable=False, server_default='active'),
        sa.Column('plan_id', sa.Integer(), sa.ForeignKey('price_plan.id', ondelete='SET NULL'), nullable=True),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('expire_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('settings', postgresql.JSONB(), nullable=True),
        *timestamps(),
    )
    op.create_index('ix_tenant_subdomain', 'tenant', ['subdomain'], unique=True)
    op.create_index('ix_tenant_status_expire', 'tenant', ['status', 'expire_date'])

    op.create_table(
        'user',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('role', enum('userrole'), nullable=False, server_default='customer'),
        sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenant.id', ondelete='CASCADE'), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True, server_default=sa.true()),
        *timestamps(),
    )
    op.create_index('ix_user_email', 'user', ['email'], unique=True)
    op.create_index('ix_user_tenant_role', 'user', ['tenant_id', 'role'])

    op.create_table(
        'product',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenant.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(255), nullable=True),
        sa.Column('sku', sa.String(100), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('sale_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('stock_quantity', sa.Integer(), nullable=True, server_default='0'),
        sa.Column('image_url', sa.String(), nullable=True),
        sa.Column('status', enum('productstatus'), nullable=False, server_default='active'),
        *timestamps(),
        sa.UniqueConstraint('tenant_id', 'sku', name='uq_product_tenant_sku'),
    )

    op.create_table(
        'product_variant',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenant.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('product.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('sku', sa.String(100), nullable=True),
        sa.Column('price', sa.Numeric(10, 2), nullable=True),
        sa.Column('stock_quantity', sa.Integer(), nullable=False, server_default='0'),
        *timestamps(),
        sa.UniqueConstraint('tenant_id', 'sku', name='uq_variant_tenant_sku'),
    )

    op.create_table(
        'inventory_history',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenant.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('product.id', ondelete='SET NULL'), nullable=True, index=True),
        sa.Column('variant_id', sa.Integer(), sa.ForeignKey('product_variant.id', ondelete='SET NULL'), nullable=True, index=True),
        sa.Column('adjustment_type', enum('adjustmenttype'), nullable=False),
        sa.Column('quantity_before', sa.Integer(), nullable=False),
        sa.Column('quantity_after', sa.Integer(), nullable=False),
        sa.Column('quantity_change', sa.Integer(), nullable=False),
        sa.Column('reason', sa.String(255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('adjusted_by', sa.Integer(), sa.ForeignKey('user.id', ondelete='SET NULL'), nullable=True),
        *timestamps(),
    )

    op.create_table(
        'order',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenant.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('order_number', sa.String(32), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id', ondelete='SET NULL'), nullable=True),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('email', sa.String(255), nullable=True, index=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('total_amount', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('status', enum('orderstatus'), nullable=False, server_default='pending'),
        sa.Column('payment_status', enum('paymentstatus'), nullable=False, server_default='pending'),
        sa.Column('payment_method', sa.String(50), nullable=True),
        sa.Column('payment_gateway', sa.String(50), nullable=True),
        sa.Column('transaction_id', sa.String(255), nullable=True),
        sa.Column('shipping_address', postgresql.JSONB(), nullable=True),
        sa.Column('billing_address', postgresql.JSONB(), nullable=True),
        sa.Column('coupon_code', sa.String(100), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('tracking_number', sa.String(255), nullable=True),
        sa.Column('shipping_carrier', sa.String(100), nullable=True),
        sa.Column('cancellation_reason', sa.String(500), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        *timestamps(),
    )
    op.create_index('ix_order_order_number', 'order', ['order_number'], unique=True)
    op.create_index('ix_order_tenant_created', 'order', ['tenant_id', 'created_at'])

    op.create_table(
        'order_product',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenant.id', ondelete='CASCADE'), nullable=False),
        sa.Column('order_id', sa.Integer(), sa.ForeignKey('order.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('product.id', ondelete='SET NULL'), nullable=True),
        sa.Column('variant_id', sa.Integer(), sa.ForeignKey('product_variant.id', ondelete='SET NULL'), nullable=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('sku', sa.String(100), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('total', sa.Numeric(10, 2), nullable=False),
        *timestamps(),
    )

    op.create_table(
        'support_ticket',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenant.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id', ondelete='SET NULL'), nullable=True),
        sa.Column('subject', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('status', enum('ticketstatus'), nullable=False, server_default='open'),
        sa.Column('priority', enum('ticketpriority'), nullable=False, server_default='medium'),
        *timestamps(),
    )

    op.create_table(
        'support_ticket_message',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('ticket_id', sa.Integer(), sa.ForeignKey('support_ticket.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id', ondelete='SET NULL'), nullable=True),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('attachments', postgresql.JSONB(), nullable=True),
        sa.Column('is_staff', sa.Boolean(), nullable=False, server_default=sa.false()),
        *timestamps(),
    )

    op.create_table(
        'landlord_support_ticket',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenant.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('user.id', ondelete='SET NULL'), nullable=True),
        sa.Column('subject', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('category', enum('ticketcategory'), nullable=False, server_default='other'),
        sa.Column('status', enum('ticketstatus'), nullable=False, server_default='open'),
        sa.Column('priority', enum('ticketpriority'), nullable=False, server_default='medium'),
        *timestamps(),
    )

    op.create_table(
        'landlord_support_ticket_message',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('ticket_id', sa.Integer(), sa.ForeignKey('landlord_support_ticket.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id', ondelete='SET NULL'), nullable=True),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('attachments', postgresql.JSONB(), nullable=True),
        sa.Column('is_landlord', sa.Boolean(), nullable=False, server_default=sa.false()),
        *timestamps(),
    )


def downgrade() -> None:
    for table in (
        'landlord_support_ticket_message',
        'landlord_support_ticket',
        'support_ticket_message',
        'support_ticket',
        'order_product',
        'order',
        'inventory_history',
        'product_variant',
        'product',
        'user',
        'tenant',
        'price_plan',
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for name, values in ENUMS.items():
        sa.Enum(*values, name=name).drop(bind, checkfirst=True)
