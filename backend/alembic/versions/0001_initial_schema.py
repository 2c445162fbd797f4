"""initial schema: tenants, services, schedule, blocks, bookings, day locks, audit

Revision ID: 0001
Revises:
Create Date: 2026-03-01 09:00:00

"""
from alembic import op
import sqlalchemy as sa


revision = '0001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'tenants',
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('created_at', sa.Text(), server_default=sa.text('CURRENT_TIMESTAMP')),
    )

    op.create_table(
        'services',
        sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('duration_min', sa.Integer(), nullable=False),
        sa.Column('price', sa.Float(), nullable=False, server_default=sa.text('0')),
        sa.Column('is_active', sa.Integer(), nullable=False, server_default=sa.text('1')),
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('description', sa.Text()),
    )

    op.create_table(
        'schedule_settings',
        sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('working_days', sa.Text(), nullable=False, server_default=sa.text("'[6, 0, 1, 2, 3]'")),
        sa.Column('working_hours_start', sa.Text(), nullable=False, server_default=sa.text("'09:00'")),
        sa.Column('working_hours_end', sa.Text(), nullable=False, server_default=sa.text("'18:00'")),
        sa.Column('slot_duration_min', sa.Integer(), nullable=False, server_default=sa.text('15')),
        sa.Column('min_advance_hours', sa.Integer(), nullable=False, server_default=sa.text('2')),
        sa.Column('max_advance_days', sa.Integer(), nullable=False, server_default=sa.text('30')),
        sa.Column('timezone', sa.Text(), nullable=False, server_default=sa.text("'UTC'")),
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('updated_at', sa.Text(), server_default=sa.text('CURRENT_TIMESTAMP')),
    )

    op.create_table(
        'blocked_slots',
        sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False),
        sa.Column('blocked_date', sa.Text(), nullable=False),
        sa.Column('start_time', sa.Text(), nullable=False),
        sa.Column('end_time', sa.Text(), nullable=False),
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('reason', sa.Text()),
        sa.Column('created_at', sa.Text(), server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('idx_blocked_slots_tenant_date', 'blocked_slots', ['tenant_id', 'blocked_date'])

    op.create_table(
        'bookings',
        sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False),
        sa.Column('service_id', sa.Integer(), sa.ForeignKey('services.id'), nullable=False),
        sa.Column('booking_date', sa.Text(), nullable=False),
        sa.Column('booking_time', sa.Text(), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('status', sa.Text(), nullable=False, server_default=sa.text("'pending'")),
        sa.Column('customer_name', sa.Text(), nullable=False),
        sa.Column('customer_phone', sa.Text(), nullable=False),
        sa.Column('idempotency_key', sa.Text(), nullable=False),
        sa.Column('created_at', sa.Text(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.Text(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('customer_email', sa.Text()),
        sa.Column('notes', sa.Text()),
        sa.Column('cancel_reason', sa.Text()),
        sa.Column('cancelled_at', sa.Text()),
        sa.UniqueConstraint('tenant_id', 'idempotency_key'),
    )
    op.create_index('idx_bookings_tenant_date_status', 'bookings', ['tenant_id', 'booking_date', 'status'])

    op.create_table(
        'booking_day_locks',
        sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenants.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('lock_date', sa.Text(), primary_key=True),
        sa.Column('version', sa.Integer(), nullable=False, server_default=sa.text('0')),
    )

    op.create_table(
        'audit_log',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False),
        sa.Column('event_type', sa.Text(), nullable=False),
        sa.Column('booking_id', sa.Integer(), sa.ForeignKey('bookings.id', ondelete='SET NULL')),
        sa.Column('payload', sa.Text()),
        sa.Column('created_at', sa.Text(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    )


def downgrade():
    op.drop_table('audit_log')
    op.drop_table('booking_day_locks')
    op.drop_index('idx_bookings_tenant_date_status', table_name='bookings')
    op.drop_table('bookings')
    op.drop_index('idx_blocked_slots_tenant_date', table_name='blocked_slots')
    op.drop_table('blocked_slots')
    op.drop_table('schedule_settings')
    op.drop_table('services')
    op.drop_table('tenants')
