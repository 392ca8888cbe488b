"""Initial migration

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create store_addresses table
    op.create_table(
        'store_addresses',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('address', sa.Text()),
        sa.Column('city', sa.String(100)),
        sa.Column('phone', sa.String(20)),
        sa.Column('latitude', sa.Float()),
        sa.Column('longitude', sa.Float()),
        sa.Column('is_active', sa.Boolean(), default=True),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
    )

    # Create users table
    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('email', sa.String(255), unique=True, nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255)),
        sa.Column('phone', sa.String(20)),
        sa.Column('image_url', sa.String(500)),
        sa.Column('role', sa.Enum('CUSTOMER', 'DRIVER', 'ADMIN', name='userrole'), nullable=False),
        sa.Column('store_address_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('store_addresses.id')),
        sa.Column('is_active', sa.Boolean(), default=True),
        sa.Column('last_login', sa.DateTime()),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now(), onupdate=sa.func.now()),
    )

    # Create user_addresses table
    op.create_table(
        'user_addresses',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('label', sa.String(100)),
        sa.Column('address', sa.Text(), nullable=False),
        sa.Column('city', sa.String(100)),
        sa.Column('phone', sa.String(20)),
        sa.Column('latitude', sa.Float()),
        sa.Column('longitude', sa.Float()),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
    )

    # Create products table
    op.create_table(
        'products',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('category', sa.String(100)),
        sa.Column('price_cents', sa.Integer(), nullable=False),
        sa.Column('image_url', sa.String(500)),
        sa.Column('ratings_average', sa.Float()),
        sa.Column('is_active', sa.Boolean(), default=True),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now(), onupdate=sa.func.now()),
    )

    # Create orders table
    op.create_table(
        'orders',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('order_number', sa.Integer(), nullable=False),
        sa.Column('order_day', sa.String(10), nullable=False),
        sa.Column('status', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('customer_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id')),
        sa.Column('customer_name', sa.String(255)),
        sa.Column('customer_phone', sa.String(20)),
        sa.Column('driver_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id')),
        sa.Column('nearby_store_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('store_addresses.id')),
        sa.Column('shipping_address_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('user_addresses.id')),
        sa.Column('notes', sa.Text()),
        sa.Column('subtotal_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('tax_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('shipping_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('delivery_type', sa.String(20), nullable=False, server_default='delivery'),
        sa.Column('order_source', sa.String(20), nullable=False, server_default='app'),
        sa.Column('payment_method_type', sa.String(20), nullable=False, server_default='cash'),
        sa.Column('is_deferred', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('payment_status', sa.String(20), nullable=False, server_default='unpaid'),
        sa.Column('paid_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('admin_accepted_at', sa.DateTime()),
        sa.Column('admin_completed_at', sa.DateTime()),
        sa.Column('driver_accepted_at', sa.DateTime()),
        sa.Column('driver_delivered_at', sa.DateTime()),
        sa.Column('canceled_at', sa.DateTime()),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now(), onupdate=sa.func.now()),
        sa.UniqueConstraint('order_day', 'order_number', name='uq_orders_day_number'),
        sa.CheckConstraint('paid_cents <= total_cents', name='ck_orders_paid_within_total'),
    )
    op.create_index('ix_orders_store_status', 'orders', ['nearby_store_id', 'status'])
    op.create_index('ix_orders_created_at', 'orders', ['created_at'])

    # Create order_items table
    op.create_table(
        'order_items',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('order_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('orders.id'), nullable=False),
        sa.Column('product_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('products.id'), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('price_cents', sa.Integer(), nullable=False),
        sa.Column('total_item_price_cents', sa.Integer(), nullable=False),
    )
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'])

    # Create order_payments table
    op.create_table(
        'order_payments',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('order_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('orders.id'), nullable=False),
        sa.Column('amount_cents', sa.Integer(), nullable=False),
        sa.Column('method', sa.String(20), nullable=False, server_default='cash'),
        sa.Column('paid_at', sa.DateTime(), nullable=False),
        sa.Column('paid_by_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id')),
        sa.CheckConstraint('amount_cents > 0', name='ck_order_payments_positive'),
    )
    op.create_index('ix_order_payments_order_id', 'order_payments', ['order_id'])

    # Create order_driver_cancellations table
    op.create_table(
        'order_driver_cancellations',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('order_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('orders.id'), nullable=False),
        sa.Column('driver_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('canceled_at', sa.DateTime()),
        sa.UniqueConstraint('order_id', 'driver_id', name='uq_order_driver_cancellation'),
    )
    op.create_index('ix_order_driver_cancellations_order_id', 'order_driver_cancellations', ['order_id'])

    # Create counters table
    op.create_table(
        'counters',
        sa.Column('name', sa.String(100), primary_key=True),
        sa.Column('value', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('period', sa.String(10), nullable=False),
        sa.Column('last_reset', sa.DateTime(), nullable=False),
    )

    # Create audit_logs table
    op.create_table(
        'audit_logs',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('store_id', postgresql.UUID(as_uuid=True)),
        sa.Column('actor_id', postgresql.UUID(as_uuid=True)),
        sa.Column('actor_role', sa.String(50)),
        sa.Column('action', sa.String(100), nullable=False),
        sa.Column('resource_type', sa.String(50)),
        sa.Column('resource_id', postgresql.UUID(as_uuid=True)),
        sa.Column('data_json', postgresql.JSON()),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
    )
    op.create_index('ix_audit_logs_resource_id', 'audit_logs', ['resource_id'])


def downgrade() -> None:
    op.drop_table('audit_logs')
    op.drop_table('counters')
    op.drop_table('order_driver_cancellations')
    op.drop_table('order_payments')
    op.drop_table('order_items')
    op.drop_table('orders')
    op.drop_table('products')
    op.drop_table('user_addresses')
    op.drop_table('users')
    op.drop_table('store_addresses')
    sa.Enum(name='userrole').drop(op.get_bind(), checkfirst=True)
