"""Tenant model definition."""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, DateTime, String, func
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from carfit.db.base import Base
from carfit.db.models.enums import TenantStatus, enum_column

if TYPE_CHECKING:  # pragma: no cover
    from carfit.db.models.payment_proof import PaymentProof
    from carfit.db.models.subscription import Subscription


class Tenant(Base):
    """Represents one installation business using the system."""

    __tablename__ = "tenants"

    id: Mapped[uuid.UUID] = mapped_column(
        PGUUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    workspace_url: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    tenant_code: Mapped[Optional[str]] = mapped_column(
        String(16), unique=True, nullable=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_free: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    subscription_status: Mapped[TenantStatus] = mapped_column(
        enum_column(TenantStatus, "tenant_status"),
        nullable=False,
        default=TenantStatus.TRIAL,
    )
    trial_ends_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    subscription: Mapped[Optional["Subscription"]] = relationship(
        "Subscription", back_populates="tenant", uselist=False, passive_deletes=True
    )
    payment_proofs: Mapped[List["PaymentProof"]] = relationship(
        "PaymentProof", back_populates="tenant", passive_deletes=True
    )

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Tenant {self.id} code={self.tenant_code} status={self.subscription_status}>"
