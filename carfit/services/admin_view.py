"""Read models for the subscription management screens."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from carfit.core.config import settings
from carfit.core.exceptions import ValidationError
from carfit.db.models.enums import ProofStatus, TenantStatus
from carfit.db.models.plan_request import SubscriptionPlanRequest
from carfit.db.models.tenant import Tenant
from carfit.repositories.tenant_repo import TenantRepo
from carfit.schemas.billing import (
    AdminStats,
    PaymentProofRead,
    PlanRequestRead,
    SubscriptionRead,
    TenantOverview,
    TrialTimeRemainingRead,
)
from carfit.services.billing_dates import (
    as_utc,
    days_remaining,
    format_price,
    has_ended,
    trial_time_remaining,
    utcnow,
)
from carfit.services.plan_requests import pending_requests_by_tenant
from carfit.services.tenant_state import derive_tenant_state, has_missing_subscription

STATUS_FILTERS = (
    "all",
    "pending",
    "active",
    "inactive",
    "expired",
    "expiring",
    "trial",
    "paid",
)


def _plan_cycle(plan_name: str) -> Optional[str]:
    for plan in settings.billing.plans:
        if plan.plan_name == plan_name:
            return plan.billing_cycle
    return None


def build_overview(
    tenant: Tenant,
    plan_request: Optional[SubscriptionPlanRequest] = None,
    now: Optional[datetime] = None,
) -> TenantOverview:
    """Flatten one tenant with its billing records into a view row.

    ``tenant.subscription`` and ``tenant.payment_proofs`` must already be
    loaded.
    """

    now = now or utcnow()
    subscription = tenant.subscription
    proofs = sorted(
        tenant.payment_proofs, key=lambda proof: as_utc(proof.created_at), reverse=True
    )
    remaining = trial_time_remaining(tenant.trial_ends_at, now)
    end = subscription.billing_period_end if subscription is not None else None
    left = days_remaining(end, now)
    is_expired = has_ended(end, now)

    price_display = None
    if subscription is not None:
        price_display = format_price(
            subscription.amount,
            subscription.currency,
            _plan_cycle(subscription.plan_name),
        )

    return TenantOverview(
        tenant_id=tenant.id,
        tenant_name=tenant.name,
        tenant_code=tenant.tenant_code,
        workspace_url=tenant.workspace_url,
        subscription_status=tenant.subscription_status,
        is_active=tenant.is_active,
        is_free=tenant.is_free,
        trial_ends_at=tenant.trial_ends_at,
        state=derive_tenant_state(tenant, subscription, proofs, now),
        missing_subscription=has_missing_subscription(tenant, subscription),
        subscription=(
            SubscriptionRead.model_validate(subscription) if subscription else None
        ),
        payment_proofs=[PaymentProofRead.model_validate(proof) for proof in proofs],
        plan_request=(
            PlanRequestRead.model_validate(plan_request) if plan_request else None
        ),
        days_remaining=left,
        is_expired=is_expired,
        expiring_soon=(
            left is not None
            and not is_expired
            and left <= settings.billing.expiring_soon_days
        ),
        trial_remaining=(
            TrialTimeRemainingRead.model_validate(remaining) if remaining else None
        ),
        price_display=price_display,
    )


def matches_filter(row: TenantOverview, status: str) -> bool:
    if status == "all":
        return True
    if status == "pending":
        return any(proof.status == ProofStatus.PENDING for proof in row.payment_proofs)
    if status == "active":
        return row.is_active
    if status == "inactive":
        return not row.is_active
    if status == "expired":
        return row.is_expired
    if status == "expiring":
        return row.expiring_soon
    if status == "trial":
        return row.subscription_status == TenantStatus.TRIAL
    if status == "paid":
        return row.subscription_status == TenantStatus.ACTIVE and not row.is_free
    raise ValidationError(f"Unknown status filter: {status}")


def matches_search(row: TenantOverview, search: Optional[str]) -> bool:
    needle = (search or "").strip().lower()
    if not needle:
        return True
    return needle in row.tenant_name.lower() or (
        row.tenant_code is not None and needle in row.tenant_code.lower()
    )


async def list_overviews(
    session: AsyncSession,
    search: Optional[str] = None,
    status: str = "all",
    now: Optional[datetime] = None,
) -> List[TenantOverview]:
    if status not in STATUS_FILTERS:
        raise ValidationError(f"Unknown status filter: {status}")

    tenants = await TenantRepo(session).list_with_billing()
    requests = await pending_requests_by_tenant(session)
    rows = [build_overview(tenant, requests.get(tenant.id), now) for tenant in tenants]
    return [
        row for row in rows if matches_search(row, search) and matches_filter(row, status)
    ]


def compute_stats(rows: List[TenantOverview]) -> AdminStats:
    revenue: Dict[str, Decimal] = {}
    paid = 0
    for row in rows:
        if row.subscription_status != TenantStatus.ACTIVE or row.is_free:
            continue
        paid += 1
        if row.subscription is not None:
            currency = row.subscription.currency or "INR"
            revenue[currency] = revenue.get(currency, Decimal("0")) + row.subscription.amount

    return AdminStats(
        total=len(rows),
        active=sum(1 for row in rows if row.is_active),
        trial=sum(1 for row in rows if row.subscription_status == TenantStatus.TRIAL),
        paid=paid,
        pending_review=sum(1 for row in rows if matches_filter(row, "pending")),
        missing_subscription=sum(1 for row in rows if row.missing_subscription),
        revenue=revenue,
    )
