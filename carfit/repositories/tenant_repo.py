"""Repository for tenant records."""
from __future__ import annotations

import re
from typing import List
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from carfit.db.models.tenant import Tenant

_CODE_PATTERN = re.compile(r"^Z(\d+)$")


class TenantRepo:
    """Data-access helpers for :class:`Tenant`."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, tenant_id: UUID) -> Tenant | None:
        result = await self.session.execute(
            select(Tenant).where(Tenant.id == tenant_id)
        )
        return result.scalar_one_or_none()

    async def list_with_billing(self) -> List[Tenant]:
        """All tenants with subscription and proofs, ``tenant_code`` first."""

        result = await self.session.execute(
            select(Tenant)
            .options(
                selectinload(Tenant.subscription),
                selectinload(Tenant.payment_proofs),
            )
            .order_by(
                Tenant.tenant_code.asc().nulls_last(),
                Tenant.created_at.desc(),
            )
        )
        return list(result.scalars().all())

    async def get_with_billing(self, tenant_id: UUID) -> Tenant | None:
        result = await self.session.execute(
            select(Tenant)
            .options(
                selectinload(Tenant.subscription),
                selectinload(Tenant.payment_proofs),
            )
            .where(Tenant.id == tenant_id)
        )
        return result.scalar_one_or_none()

    async def next_tenant_code(self) -> str:
        """Return the next ``Z<nn>`` code after the highest one in use."""

        result = await self.session.execute(
            select(Tenant.tenant_code).where(Tenant.tenant_code.like("Z%"))
        )
        highest = 0
        for code in result.scalars():
            match = _CODE_PATTERN.match(code or "")
            if match:
                highest = max(highest, int(match.group(1)))
        return f"Z{highest + 1:02d}"

    async def create(self, tenant: Tenant) -> Tenant:
        self.session.add(tenant)
        await self.session.flush()
        return tenant

    async def delete(self, tenant_id: UUID) -> None:
        await self.session.execute(delete(Tenant).where(Tenant.id == tenant_id))
