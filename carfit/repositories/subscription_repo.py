"""Repository utilities for tenant subscriptions."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from carfit.auth.context import TenantContext
from carfit.db.models.enums import SubscriptionStatus
from carfit.db.models.subscription import Subscription


class SubscriptionRepo:
    """Data-access helpers for :class:`Subscription`."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_for_tenant(self, tenant_id: UUID) -> Subscription | None:
        result = await self.session.execute(
            select(Subscription).where(Subscription.tenant_id == tenant_id)
        )
        return result.scalars().first()

    async def get_scoped(self, ctx: TenantContext, tenant_id: UUID) -> Subscription | None:
        ctx.ensure_can_access(tenant_id)
        stmt = ctx.scope(
            select(Subscription).where(Subscription.tenant_id == tenant_id), Subscription
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def count_for_tenant(self, tenant_id: UUID) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(Subscription)
            .where(Subscription.tenant_id == tenant_id)
        )
        return int(result.scalar_one() or 0)

    async def upsert(
        self,
        tenant_id: UUID,
        plan_name: str,
        amount: Decimal,
        currency: Optional[str],
        period_start: datetime,
        period_end: datetime,
        status: SubscriptionStatus = SubscriptionStatus.ACTIVE,
    ) -> Subscription:
        """Update the tenant's subscription in place, or insert the first one."""

        subscription = await self.get_for_tenant(tenant_id)
        if subscription is None:
            subscription = Subscription(
                tenant_id=tenant_id,
                plan_name=plan_name,
                amount=amount,
                currency=currency,
                status=status,
                billing_period_start=period_start,
                billing_period_end=period_end,
            )
            self.session.add(subscription)
        else:
            subscription.plan_name = plan_name
            subscription.amount = amount
            subscription.currency = currency
            subscription.status = status
            subscription.billing_period_start = period_start
            subscription.billing_period_end = period_end
            self.session.add(subscription)

        await self.session.flush()
        await self.session.refresh(subscription)
        return subscription
