from sqlalchemy import Column, Float, ForeignKey, Integer, Text, UniqueConstraint, Index, text

from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()
metadata = Base.metadata


class Tenants(Base):
    __tablename__ = 'tenants'

    name = Column(Text, nullable=False)
    id = Column(Integer, primary_key=True)
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))

    services = relationship('Services', back_populates='tenant')
    schedule_settings = relationship('ScheduleSettings', back_populates='tenant', uselist=False)
    blocked_slots = relationship('BlockedSlots', back_populates='tenant')
    bookings = relationship('Bookings', back_populates='tenant')


class Services(Base):
    __tablename__ = 'services'

    tenant_id = Column(ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False)
    name = Column(Text, nullable=False)
    duration_min = Column(Integer, nullable=False)
    price = Column(Float, nullable=False, server_default=text('0'))
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    id = Column(Integer, primary_key=True)
    description = Column(Text)

    tenant = relationship('Tenants', back_populates='services')
    bookings = relationship('Bookings', back_populates='service')


class ScheduleSettings(Base):
    __tablename__ = 'schedule_settings'

    tenant_id = Column(ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False, unique=True)
    # JSON list of date.weekday() numbers (0 = Monday)
    working_days = Column(Text, nullable=False, server_default=text("'[6, 0, 1, 2, 3]'"))
    working_hours_start = Column(Text, nullable=False, server_default=text("'09:00'"))
    working_hours_end = Column(Text, nullable=False, server_default=text("'18:00'"))
    slot_duration_min = Column(Integer, nullable=False, server_default=text('15'))
    min_advance_hours = Column(Integer, nullable=False, server_default=text('2'))
    max_advance_days = Column(Integer, nullable=False, server_default=text('30'))
    timezone = Column(Text, nullable=False, server_default=text("'UTC'"))
    id = Column(Integer, primary_key=True)
    updated_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))

    tenant = relationship('Tenants', back_populates='schedule_settings')


class BlockedSlots(Base):
    __tablename__ = 'blocked_slots'
    __table_args__ = (
        Index('idx_blocked_slots_tenant_date', 'tenant_id', 'blocked_date'),
    )

    tenant_id = Column(ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False)
    blocked_date = Column(Text, nullable=False)
    start_time = Column(Text, nullable=False)
    end_time = Column(Text, nullable=False)
    id = Column(Integer, primary_key=True)
    reason = Column(Text)
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))

    tenant = relationship('Tenants', back_populates='blocked_slots')


class Bookings(Base):
    __tablename__ = 'bookings'
    __table_args__ = (
        UniqueConstraint('tenant_id', 'idempotency_key'),
        Index('idx_bookings_tenant_date_status', 'tenant_id', 'booking_date', 'status'),
    )

    tenant_id = Column(ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False)
    service_id = Column(ForeignKey('services.id'), nullable=False)
    booking_date = Column(Text, nullable=False)
    booking_time = Column(Text, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    status = Column(Text, nullable=False, server_default=text("'pending'"))
    customer_name = Column(Text, nullable=False)
    customer_phone = Column(Text, nullable=False)
    idempotency_key = Column(Text, nullable=False)
    created_at = Column(Text, nullable=False, server_default=text('CURRENT_TIMESTAMP'))
    updated_at = Column(Text, nullable=False, server_default=text('CURRENT_TIMESTAMP'))
    id = Column(Integer, primary_key=True)
    customer_email = Column(Text)
    notes = Column(Text)
    cancel_reason = Column(Text)
    cancelled_at = Column(Text)

    tenant = relationship('Tenants', back_populates='bookings')
    service = relationship('Services', back_populates='bookings')


class BookingDayLocks(Base):
    __tablename__ = 'booking_day_locks'

    tenant_id = Column(ForeignKey('tenants.id', ondelete='CASCADE'), primary_key=True)
    lock_date = Column(Text, primary_key=True)
    version = Column(Integer, nullable=False, server_default=text('0'))


class AuditLog(Base):
    __tablename__ = 'audit_log'

    id = Column(Integer, primary_key=True)
    tenant_id = Column(ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False)
    event_type = Column(Text, nullable=False)

    booking_id = Column(
        ForeignKey('bookings.id', ondelete='SET NULL')
    )

    payload = Column(Text)
    created_at = Column(
        Text,
        nullable=False,
        server_default=text('CURRENT_TIMESTAMP')
    )

    booking = relationship('Bookings')
