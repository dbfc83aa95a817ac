"""Repository for subscription plan-change requests."""
from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from carfit.db.models.enums import RequestStatus
from carfit.db.models.plan_request import SubscriptionPlanRequest


class PlanRequestRepo:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, request_id: UUID) -> SubscriptionPlanRequest | None:
        result = await self.session.execute(
            select(SubscriptionPlanRequest).where(SubscriptionPlanRequest.id == request_id)
        )
        return result.scalar_one_or_none()

    async def list_all(
        self, status: Optional[RequestStatus] = None
    ) -> List[SubscriptionPlanRequest]:
        """Requests newest first, optionally filtered by status."""

        stmt = select(SubscriptionPlanRequest)
        if status is not None:
            stmt = stmt.where(SubscriptionPlanRequest.status == status)
        stmt = stmt.order_by(SubscriptionPlanRequest.requested_at.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def pending_for_tenant(self, tenant_id: UUID) -> SubscriptionPlanRequest | None:
        result = await self.session.execute(
            select(SubscriptionPlanRequest)
            .where(
                SubscriptionPlanRequest.tenant_id == tenant_id,
                SubscriptionPlanRequest.status == RequestStatus.PENDING,
            )
            .order_by(SubscriptionPlanRequest.requested_at.desc())
        )
        return result.scalars().first()

    async def add(self, request: SubscriptionPlanRequest) -> SubscriptionPlanRequest:
        self.session.add(request)
        await self.session.flush()
        await self.session.refresh(request)
        return request
