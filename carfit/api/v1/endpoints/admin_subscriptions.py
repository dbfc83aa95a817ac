"""Super-admin endpoints for reviewing payments and managing subscriptions."""
from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from carfit.api.deps import get_db_session
from carfit.auth.context import TenantContext
from carfit.auth.tenant import require_super_admin
from carfit.db.models.enums import RequestStatus
from carfit.schemas.billing import (
    AdminStats,
    ApplyPlanBody,
    ApprovePaymentBody,
    PaymentProofRead,
    PlanRequestRead,
    RejectBody,
    SubscriptionRead,
    TenantOverview,
)
from carfit.services import admin_view, plan_requests
from carfit.services.lifecycle import SubscriptionLifecycle
from carfit.services.limits import guard_mutation, idempotency_key_header


router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/subscriptions", response_model=List[TenantOverview])
async def list_subscriptions(
    search: Optional[str] = None,
    status: str = Query(default="all"),
    ctx: TenantContext = Depends(require_super_admin),
    db: AsyncSession = Depends(get_db_session),
):
    return await admin_view.list_overviews(db, search=search, status=status)


@router.get("/tenants/stats", response_model=AdminStats)
async def tenant_stats(
    ctx: TenantContext = Depends(require_super_admin),
    db: AsyncSession = Depends(get_db_session),
):
    rows = await admin_view.list_overviews(db)
    return admin_view.compute_stats(rows)


@router.post("/payments/{proof_id}/approve", response_model=SubscriptionRead)
async def approve_payment(
    proof_id: UUID,
    body: ApprovePaymentBody,
    ctx: TenantContext = Depends(require_super_admin),
    idempotency_key: Optional[str] = Depends(idempotency_key_header),
    db: AsyncSession = Depends(get_db_session),
):
    async with guard_mutation(ctx, f"payments.approve:{proof_id}", idempotency_key):
        return await SubscriptionLifecycle(db).approve_payment(
            proof_id, body.tenant_id, ctx
        )


@router.post("/payments/{proof_id}/reject", response_model=PaymentProofRead)
async def reject_payment(
    proof_id: UUID,
    body: RejectBody,
    ctx: TenantContext = Depends(require_super_admin),
    idempotency_key: Optional[str] = Depends(idempotency_key_header),
    db: AsyncSession = Depends(get_db_session),
):
    async with guard_mutation(ctx, f"payments.reject:{proof_id}", idempotency_key):
        return await SubscriptionLifecycle(db).reject_payment(proof_id, body.reason, ctx)


@router.post("/tenants/{tenant_id}/activate", response_model=SubscriptionRead)
async def activate_tenant(
    tenant_id: UUID,
    ctx: TenantContext = Depends(require_super_admin),
    idempotency_key: Optional[str] = Depends(idempotency_key_header),
    db: AsyncSession = Depends(get_db_session),
):
    async with guard_mutation(ctx, f"tenants.activate:{tenant_id}", idempotency_key):
        return await SubscriptionLifecycle(db).activate_tenant(tenant_id, ctx)


@router.post("/tenants/{tenant_id}/apply-plan", response_model=SubscriptionRead)
async def apply_plan(
    tenant_id: UUID,
    body: ApplyPlanBody,
    ctx: TenantContext = Depends(require_super_admin),
    idempotency_key: Optional[str] = Depends(idempotency_key_header),
    db: AsyncSession = Depends(get_db_session),
):
    async with guard_mutation(ctx, f"tenants.apply_plan:{tenant_id}", idempotency_key):
        return await SubscriptionLifecycle(db).apply_plan_from_request(
            tenant_id, body.request_id, body.proof_id, ctx
        )


@router.get("/plan-requests", response_model=List[PlanRequestRead])
async def list_plan_requests(
    status: Optional[RequestStatus] = None,
    ctx: TenantContext = Depends(require_super_admin),
    db: AsyncSession = Depends(get_db_session),
):
    return await plan_requests.list_plan_requests(db, status=status)


@router.patch("/plan-requests/{request_id}/reject", response_model=PlanRequestRead)
async def reject_plan_request(
    request_id: UUID,
    body: RejectBody,
    ctx: TenantContext = Depends(require_super_admin),
    db: AsyncSession = Depends(get_db_session),
):
    async with guard_mutation(ctx, f"plan_requests.reject:{request_id}"):
        return await plan_requests.reject_plan_request(
            db, request_id, body.reason, ctx
        )
