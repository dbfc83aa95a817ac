"""Tenant-owned operational records."""
from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from carfit.db.base import Base
from carfit.db.models.enums import RecordStatus, VehicleStatus, enum_column


class TenantOwnedMixin:
    """Primary key, owning tenant and creation time."""

    id: Mapped[uuid.UUID] = mapped_column(
        PGUUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class Vehicle(TenantOwnedMixin, Base):
    """A vehicle brought in for accessory installation."""

    __tablename__ = "vehicles"

    registration_number: Mapped[str] = mapped_column(String, nullable=False)
    make: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    model: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    customer_name: Mapped[str] = mapped_column(String, nullable=False)
    customer_phone: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    accessories: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[VehicleStatus] = mapped_column(
        enum_column(VehicleStatus, "vehicle_status"),
        nullable=False,
        default=VehicleStatus.PENDING,
    )
    expected_delivery: Mapped[Optional[date]] = mapped_column(Date, nullable=True)


class ServiceJob(TenantOwnedMixin, Base):
    __tablename__ = "service_jobs"

    vehicle_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        PGUUID(as_uuid=True), ForeignKey("vehicles.id", ondelete="SET NULL"), nullable=True
    )
    title: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[RecordStatus] = mapped_column(
        enum_column(RecordStatus, "service_job_status"),
        nullable=False,
        default=RecordStatus.PENDING,
    )
    scheduled_for: Mapped[Optional[date]] = mapped_column(Date, nullable=True)


class CustomerRequirement(TenantOwnedMixin, Base):
    __tablename__ = "customer_requirements"

    customer_name: Mapped[str] = mapped_column(String, nullable=False)
    customer_phone: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[RecordStatus] = mapped_column(
        enum_column(RecordStatus, "requirement_status"),
        nullable=False,
        default=RecordStatus.PENDING,
    )


class CallFollowUp(TenantOwnedMixin, Base):
    __tablename__ = "call_follow_ups"

    customer_name: Mapped[str] = mapped_column(String, nullable=False)
    customer_phone: Mapped[str] = mapped_column(String, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[RecordStatus] = mapped_column(
        enum_column(RecordStatus, "follow_up_status"),
        nullable=False,
        default=RecordStatus.PENDING,
    )
    follow_up_on: Mapped[Optional[date]] = mapped_column(Date, nullable=True)


class Invoice(TenantOwnedMixin, Base):
    __tablename__ = "invoices"

    vehicle_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        PGUUID(as_uuid=True), ForeignKey("vehicles.id", ondelete="SET NULL"), nullable=True
    )
    invoice_number: Mapped[str] = mapped_column(String, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    is_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class SystemSetting(Base):
    """Key/value settings; ``tenant_id`` is null for platform-wide rows."""

    __tablename__ = "system_settings"

    id: Mapped[uuid.UUID] = mapped_column(
        PGUUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    tenant_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        index=True,
        nullable=True,
    )
    setting_key: Mapped[str] = mapped_column(String, nullable=False)
    setting_value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    setting_group: Mapped[str] = mapped_column(String, nullable=False, default="general")

    __table_args__ = (
        UniqueConstraint("tenant_id", "setting_key", name="uq_setting_tenant_key"),
    )


class Location(TenantOwnedMixin, Base):
    __tablename__ = "locations"

    name: Mapped[str] = mapped_column(String, nullable=False)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class Notification(TenantOwnedMixin, Base):
    __tablename__ = "notifications"

    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(PGUUID(as_uuid=True), nullable=True)
    title: Mapped[str] = mapped_column(String, nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
