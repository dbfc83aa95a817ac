"""Repository for tenant payment proofs."""
from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from carfit.auth.context import TenantContext
from carfit.db.models.payment_proof import PaymentProof


class PaymentProofRepo:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, proof_id: UUID) -> PaymentProof | None:
        result = await self.session.execute(
            select(PaymentProof).where(PaymentProof.id == proof_id)
        )
        return result.scalar_one_or_none()

    async def list_scoped(
        self, ctx: TenantContext, tenant_id: Optional[UUID] = None
    ) -> List[PaymentProof]:
        """Proofs visible to ``ctx``, newest first, optionally for one tenant."""

        stmt = ctx.scope(select(PaymentProof), PaymentProof)
        if tenant_id is not None:
            ctx.ensure_can_access(tenant_id)
            stmt = stmt.where(PaymentProof.tenant_id == tenant_id)
        result = await self.session.execute(stmt.order_by(PaymentProof.created_at.desc()))
        return list(result.scalars().all())

    async def add(self, proof: PaymentProof) -> PaymentProof:
        self.session.add(proof)
        await self.session.flush()
        await self.session.refresh(proof)
        return proof
