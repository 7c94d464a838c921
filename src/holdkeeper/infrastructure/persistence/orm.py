"""SQLAlchemy table mappings.

Rows are persistence shapes only; repositories map them to and from the
domain aggregates.  Nested policy settings live in JSON columns and are
decoded once, at the repository boundary.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    TypeDecorator,
)
from sqlalchemy.orm import DeclarativeBase


class UTCDateTime(TypeDecorator):
    """Timezone-aware UTC datetimes on every backend.

    Stored naive (SQLite drops the offset anyway) and handed back with
    ``tzinfo=UTC`` so domain comparisons never mix naive and aware values.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect):
        if value is None:
            return None
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def process_result_value(self, value: datetime | None, dialect):
        if value is None:
            return None
        return value.replace(tzinfo=timezone.utc)


class Base(DeclarativeBase):
    pass


class ReservationRow(Base):
    __tablename__ = "reservations"

    id = Column(String(64), primary_key=True)
    business_id = Column(String(64), nullable=False, index=True)
    customer_name = Column(String(255), nullable=False)
    customer_email = Column(String(255))
    service_type_id = Column(String(64))
    policy_id = Column(String(64), ForeignKey("expiration_policies.id"))
    status = Column(String(16), nullable=False, default="pending")
    notes = Column(Text, nullable=False, default="")
    created_at = Column(UTCDateTime, nullable=False)
    updated_at = Column(UTCDateTime, nullable=False)
    cancelled_at = Column(UTCDateTime)
    cancelled_by = Column(String(64))
    cancellation_reason = Column(Text)


class ReservationTTLRow(Base):
    __tablename__ = "reservation_ttls"

    reservation_id = Column(String(64), ForeignKey("reservations.id"), primary_key=True)
    expires_at = Column(UTCDateTime, nullable=False)
    warnings_sent = Column(JSON, nullable=False, default=list)
    grace_period_ends_at = Column(UTCDateTime)
    status = Column(String(16), nullable=False, default="active")
    updated_at = Column(UTCDateTime, nullable=False)

    __table_args__ = (Index("ix_reservation_ttls_status_expires", "status", "expires_at"),)


class ExpirationPolicyRow(Base):
    __tablename__ = "expiration_policies"

    id = Column(String(64), primary_key=True)
    business_id = Column(String(64), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    default_ttl_minutes = Column(Integer, nullable=False)
    warning_intervals = Column(JSON, nullable=False, default=list)
    grace_period_minutes = Column(Integer, nullable=False, default=0)
    auto_cleanup = Column(Boolean, nullable=False, default=False)
    notification_settings = Column(JSON, nullable=False, default=dict)
    service_type_ids = Column(JSON)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(UTCDateTime, nullable=False)
    updated_at = Column(UTCDateTime, nullable=False)


class ProductInventoryRow(Base):
    __tablename__ = "product_inventory"

    product_id = Column(String(64), primary_key=True)
    business_id = Column(String(64), nullable=False, index=True)
    product_name = Column(String(255), nullable=False)
    total_quantity = Column(Integer, nullable=False, default=0)
    available_quantity = Column(Integer, nullable=False, default=0)
    reserved_quantity = Column(Integer, nullable=False, default=0)
    minimum_stock = Column(Integer, nullable=False, default=0)
    tracking_enabled = Column(Boolean, nullable=False, default=True)
    updated_at = Column(UTCDateTime, nullable=False)


class InventoryHoldRow(Base):
    __tablename__ = "inventory_holds"

    id = Column(String(64), primary_key=True)
    reservation_id = Column(String(64), ForeignKey("reservations.id"), index=True)
    product_id = Column(String(64), ForeignKey("product_inventory.product_id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    hold_until = Column(UTCDateTime, nullable=False)
    status = Column(String(16), nullable=False, default="active")
    created_at = Column(UTCDateTime, nullable=False)
    updated_at = Column(UTCDateTime, nullable=False)
