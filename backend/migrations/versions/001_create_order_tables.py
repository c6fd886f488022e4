"""Create users, orders, order notes, status history, shipments and sequences

Revision ID: 001_create_order_tables
Revises:
Create Date: 2026-10-18

orders.version is the optimistic locking counter; order_status_history is
append-only.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001_create_order_tables'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    """Create the order lifecycle tables."""

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=True),
        sa.Column('last_name', sa.String(100), nullable=True),
        sa.Column('phone', sa.String(40), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('account_type', sa.String(20), nullable=False, server_default='customer'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_status', 'users', ['status'])

    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('invoice', sa.Integer(), nullable=False),
        sa.Column('order_code', sa.String(32), nullable=False),
        sa.Column('cart', sa.JSON(), nullable=False),
        sa.Column('user_info', sa.JSON(), nullable=False),
        sa.Column('sub_total', sa.Numeric(10, 2), nullable=False),
        sa.Column('shipping_cost', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('discount', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('total', sa.Numeric(10, 2), nullable=False),
        sa.Column('payment_method', sa.String(50), nullable=False),
        sa.Column('shipping_option', sa.String(100), nullable=True),
        sa.Column('shipping_method', sa.String(100), nullable=True),
        sa.Column('shipping_protection', sa.Boolean(), nullable=True),
        sa.Column('status', sa.String(50), nullable=False, server_default='Payment-Processing'),
        sa.Column('shipment_tracking', sa.String(255), nullable=True),
        sa.Column('origin', sa.String(100), nullable=False, server_default='Website'),
        sa.Column('is_trashed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint(
            "status IN ('Payment-Processing', 'Pending', 'Processing', 'Awaiting Stock', "
            "'On-Hold', 'Picking/Packing', 'Awaiting Delivery', 'Out-for-Delivery', "
            "'Delivered', 'Completed', 'Cancel', 'Cancelled', 'Refunded')",
            name='chk_orders_status'
        )
    )
    op.create_index('ix_orders_id', 'orders', ['id'])
    op.create_index('ix_orders_user_id', 'orders', ['user_id'])
    op.create_index('ix_orders_invoice', 'orders', ['invoice'], unique=True)
    op.create_index('ix_orders_order_code', 'orders', ['order_code'], unique=True)
    op.create_index('ix_orders_payment_method', 'orders', ['payment_method'])
    op.create_index('ix_orders_status', 'orders', ['status'])
    op.create_index('ix_orders_origin', 'orders', ['origin'])
    op.create_index('ix_orders_is_trashed', 'orders', ['is_trashed'])
    op.create_index('ix_orders_created_at', 'orders', ['created_at'])
    op.create_index('ix_orders_updated_at', 'orders', ['updated_at'])

    op.create_table(
        'order_notes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('added_by_id', sa.Integer(), nullable=False),
        sa.Column('note', sa.Text(), nullable=False),
        sa.Column('added_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['added_by_id'], ['users.id'], ondelete='NO ACTION'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_order_notes_id', 'order_notes', ['id'])
    op.create_index('ix_order_notes_order_id', 'order_notes', ['order_id'])
    op.create_index('ix_order_notes_added_by_id', 'order_notes', ['added_by_id'])

    op.create_table(
        'order_status_history',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('changed_by_id', sa.Integer(), nullable=False),
        sa.Column('old_status', sa.String(50), nullable=True),
        sa.Column('new_status', sa.String(50), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('changed_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['changed_by_id'], ['users.id'], ondelete='NO ACTION'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_order_status_history_id', 'order_status_history', ['id'])
    op.create_index('ix_order_status_history_order_id', 'order_status_history', ['order_id'])
    op.create_index('ix_order_status_history_changed_by_id', 'order_status_history', ['changed_by_id'])
    op.create_index('ix_order_status_history_order_changed', 'order_status_history', ['order_id', 'changed_at'])

    op.create_table(
        'shipments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('tracking_number', sa.String(255), nullable=True),
        sa.Column('carrier', sa.String(100), nullable=True),
        sa.Column('status', sa.String(50), nullable=False, server_default='Pending'),
        sa.Column('estimated_delivery', sa.DateTime(), nullable=True),
        sa.Column('actual_delivery', sa.DateTime(), nullable=True),
        sa.Column('shipping_address', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_shipments_id', 'shipments', ['id'])
    op.create_index('ix_shipments_order_id', 'shipments', ['order_id'], unique=True)
    op.create_index('ix_shipments_tracking_number', 'shipments', ['tracking_number'])

    op.create_table(
        'sequences',
        sa.Column('name', sa.String(50), nullable=False),
        sa.Column('value', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('name')
    )


def downgrade():
    """Drop the order lifecycle tables."""
    op.drop_table('sequences')

    op.drop_index('ix_shipments_tracking_number', table_name='shipments')
    op.drop_index('ix_shipments_order_id', table_name='shipments')
    op.drop_index('ix_shipments_id', table_name='shipments')
    op.drop_table('shipments')

    op.drop_index('ix_order_status_history_order_changed', table_name='order_status_history')
    op.drop_index('ix_order_status_history_changed_by_id', table_name='order_status_history')
    op.drop_index('ix_order_status_history_order_id', table_name='order_status_history')
    op.drop_index('ix_order_status_history_id', table_name='order_status_history')
    op.drop_table('order_status_history')

    op.drop_index('ix_order_notes_added_by_id', table_name='order_notes')
    op.drop_index('ix_order_notes_order_id', table_name='order_notes')
    op.drop_index('ix_order_notes_id', table_name='order_notes')
    op.drop_table('order_notes')

    for index in (
        'ix_orders_updated_at', 'ix_orders_created_at', 'ix_orders_is_trashed', 'ix_orders_origin',
        'ix_orders_status', 'ix_orders_payment_method', 'ix_orders_order_code', 'ix_orders_invoice',
        'ix_orders_user_id', 'ix_orders_id',
    ):
        op.drop_index(index, table_name='orders')
    op.drop_table('orders')

    op.drop_index('ix_users_status', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_index('ix_users_id', table_name='users')
    op.drop_table('users')
