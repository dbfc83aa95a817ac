"""Tenant-submitted evidence of an offline payment."""
from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Date, DateTime, ForeignKey, Numeric, String, Text, func
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from carfit.db.base import Base
from carfit.db.models.enums import ProofStatus, enum_column

if TYPE_CHECKING:  # pragma: no cover
    from carfit.db.models.tenant import Tenant


class PaymentProof(Base):
    __tablename__ = "tenant_payment_proofs"

    id: Mapped[uuid.UUID] = mapped_column(
        PGUUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    transaction_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    payment_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(8), nullable=False, default="INR")
    status: Mapped[ProofStatus] = mapped_column(
        enum_column(ProofStatus, "proof_status"),
        nullable=False,
        default=ProofStatus.PENDING,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    reviewed_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        PGUUID(as_uuid=True), nullable=True
    )
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    payment_proof_url: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    tenant: Mapped["Tenant"] = relationship("Tenant", back_populates="payment_proofs")

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<PaymentProof {self.id} tenant={self.tenant_id} status={self.status}>"
