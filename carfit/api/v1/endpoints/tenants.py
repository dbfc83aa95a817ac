"""Tenant-facing endpoints: signup, plans, payment proofs and billing status."""
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from carfit.api.deps import get_db_session
from carfit.auth.context import TenantContext
from carfit.auth.tenant import require_tenant_member
from carfit.core.config import settings
from carfit.core.exceptions import NotFoundError
from carfit.repositories.payment_proof_repo import PaymentProofRepo
from carfit.repositories.subscription_repo import SubscriptionRepo
from carfit.repositories.tenant_repo import TenantRepo
from carfit.schemas.billing import (
    AccessStatusRead,
    PaymentProofCreate,
    PaymentProofRead,
    PlanOptionRead,
    PlanRequestCreate,
    PlanRequestRead,
    SubscriptionRead,
    TenantSubscriptionView,
    TrialTimeRemainingRead,
)
from carfit.schemas.tenant import TenantRead, TenantSignup
from carfit.services import plan_requests
from carfit.services.billing_dates import (
    days_remaining,
    format_price,
    trial_time_remaining,
    utcnow,
)
from carfit.services.lifecycle import SubscriptionLifecycle
from carfit.services.limits import check_rate_limit, guard_mutation, idempotency_key_header
from carfit.services.tenant_state import access_status, derive_tenant_state


router = APIRouter(prefix="/tenants", tags=["tenants"])


@router.post("/create", response_model=TenantRead, status_code=status.HTTP_201_CREATED)
async def create_tenant(
    body: TenantSignup,
    db: AsyncSession = Depends(get_db_session),
):
    await check_rate_limit(f"signup:{body.admin_email}")
    return await SubscriptionLifecycle(db).create_tenant(body)


@router.get("/subscription-plans", response_model=List[PlanOptionRead])
async def subscription_plans():
    return [
        PlanOptionRead(
            plan_name=plan.plan_name,
            display_name=plan.display_name,
            amount=plan.amount,
            currency=plan.currency,
            billing_cycle=plan.billing_cycle,
            price_display=format_price(plan.amount, plan.currency, plan.billing_cycle),
        )
        for plan in settings.billing.plans
        if plan.is_active
    ]


@router.get("/subscription", response_model=TenantSubscriptionView)
async def my_subscription(
    ctx: TenantContext = Depends(require_tenant_member),
    db: AsyncSession = Depends(get_db_session),
):
    tenant_id = ctx.require_tenant()
    tenant = await TenantRepo(db).get(tenant_id)
    if tenant is None:
        raise NotFoundError("Tenant not found")

    subscription = await SubscriptionRepo(db).get_scoped(ctx, tenant_id)
    proofs = await PaymentProofRepo(db).list_scoped(ctx, tenant_id=tenant_id)
    now = utcnow()
    remaining = trial_time_remaining(tenant.trial_ends_at, now)
    access = access_status(tenant, subscription, is_admin=ctx.is_tenant_admin, now=now)

    return TenantSubscriptionView(
        tenant_id=tenant.id,
        state=derive_tenant_state(tenant, subscription, proofs, now),
        subscription=(
            SubscriptionRead.model_validate(subscription) if subscription else None
        ),
        trial_ends_at=tenant.trial_ends_at,
        trial_remaining=(
            TrialTimeRemainingRead.model_validate(remaining) if remaining else None
        ),
        days_remaining=(
            days_remaining(subscription.billing_period_end, now) if subscription else None
        ),
        access=AccessStatusRead.model_validate(access),
    )


@router.get("/payment-proofs", response_model=List[PaymentProofRead])
async def list_payment_proofs(
    ctx: TenantContext = Depends(require_tenant_member),
    db: AsyncSession = Depends(get_db_session),
):
    return await PaymentProofRepo(db).list_scoped(ctx, tenant_id=ctx.require_tenant())


@router.post(
    "/payment-proofs",
    response_model=PaymentProofRead,
    status_code=status.HTTP_201_CREATED,
)
async def submit_payment_proof(
    body: PaymentProofCreate,
    ctx: TenantContext = Depends(require_tenant_member),
    idempotency_key: Optional[str] = Depends(idempotency_key_header),
    db: AsyncSession = Depends(get_db_session),
):
    async with guard_mutation(ctx, "payment_proofs.submit", idempotency_key):
        return await SubscriptionLifecycle(db).submit_payment_proof(ctx, body)


@router.post(
    "/plan-requests",
    response_model=PlanRequestRead,
    status_code=status.HTTP_201_CREATED,
)
async def request_plan_change(
    body: PlanRequestCreate,
    ctx: TenantContext = Depends(require_tenant_member),
    idempotency_key: Optional[str] = Depends(idempotency_key_header),
    db: AsyncSession = Depends(get_db_session),
):
    async with guard_mutation(ctx, "plan_requests.submit", idempotency_key):
        return await plan_requests.submit_plan_request(db, ctx, body)
