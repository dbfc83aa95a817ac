"""Matching tenants to their outstanding plan-change requests."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from carfit.auth.context import TenantContext
from carfit.core.exceptions import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    TenantAccessError,
    ValidationError,
)
from carfit.db.models.enums import RequestStatus
from carfit.db.models.plan_request import SubscriptionPlanRequest
from carfit.repositories.plan_request_repo import PlanRequestRepo
from carfit.schemas.billing import PlanRequestCreate
from carfit.services.billing_dates import utcnow


logger = logging.getLogger(__name__)


async def pending_requests_by_tenant(
    session: AsyncSession,
) -> Dict[UUID, SubscriptionPlanRequest]:
    """Most recent pending request per tenant."""

    requests = await PlanRequestRepo(session).list_all(status=RequestStatus.PENDING)
    matched: Dict[UUID, SubscriptionPlanRequest] = {}
    for request in requests:
        matched.setdefault(request.tenant_id, request)
    return matched


async def list_plan_requests(
    session: AsyncSession, status: Optional[RequestStatus] = None
) -> List[SubscriptionPlanRequest]:
    return await PlanRequestRepo(session).list_all(status=status)


async def submit_plan_request(
    session: AsyncSession,
    ctx: TenantContext,
    data: PlanRequestCreate,
    clock: Callable[[], datetime] = utcnow,
) -> SubscriptionPlanRequest:
    tenant_id = ctx.require_tenant()
    if not ctx.is_tenant_admin:
        raise TenantAccessError("You must be an admin to request a plan change")

    repo = PlanRequestRepo(session)
    if await repo.pending_for_tenant(tenant_id) is not None:
        raise ConflictError("A plan change request is already pending")

    request = await repo.add(
        SubscriptionPlanRequest(
            tenant_id=tenant_id,
            user_id=ctx.user_id,
            plan_name=data.plan_name,
            plan_display_name=data.plan_display_name,
            amount=data.amount,
            currency=data.currency,
            billing_cycle=data.billing_cycle,
            status=RequestStatus.PENDING,
            requested_at=clock(),
        )
    )
    logger.info(
        "Tenant %s requested plan %s (%s)", tenant_id, data.plan_name, data.billing_cycle
    )
    return request


async def reject_plan_request(
    session: AsyncSession,
    request_id: UUID,
    reason: str,
    actor: TenantContext,
    clock: Callable[[], datetime] = utcnow,
) -> SubscriptionPlanRequest:
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("A rejection reason is required")

    request = await PlanRequestRepo(session).get(request_id)
    if request is None:
        raise NotFoundError("Plan request not found")
    if request.status.is_terminal:
        raise InvalidTransitionError(f"Plan request already {request.status.value}")

    request.status = RequestStatus.REJECTED
    request.rejection_reason = reason
    request.reviewed_by = actor.user_id
    request.reviewed_at = clock()
    session.add(request)
    await session.flush()
    logger.info("Plan request %s rejected by %s", request_id, actor.user_id)
    return request
