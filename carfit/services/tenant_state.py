"""One authoritative answer to "what state is this tenant in"."""
from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from carfit.db.models.enums import ProofStatus, SubscriptionStatus, TenantStatus
from carfit.db.models.payment_proof import PaymentProof
from carfit.db.models.subscription import Subscription
from carfit.db.models.tenant import Tenant
from carfit.services.billing_dates import (
    days_remaining,
    has_ended,
    trial_time_remaining,
    utcnow,
)


class LifecycleState(str, enum.Enum):
    INACTIVE = "inactive"
    FREE = "free"
    PENDING_REVIEW = "pending_review"
    TRIAL = "trial"
    TRIAL_EXPIRED = "trial_expired"
    ACTIVE = "active"
    EXPIRED = "expired"


@dataclass(frozen=True)
class AccessStatus:
    """Whether a tenant member may use operational features right now."""

    is_active: bool
    is_expired: bool
    days_remaining: Optional[int]
    subscription_end: Optional[datetime]
    tenant_inactive: bool
    is_admin: bool


def derive_tenant_state(
    tenant: Tenant,
    subscription: Optional[Subscription],
    proofs: Iterable[PaymentProof] = (),
    now: Optional[datetime] = None,
) -> LifecycleState:
    now = now or utcnow()
    if not tenant.is_active:
        return LifecycleState.INACTIVE
    if tenant.is_free:
        return LifecycleState.FREE
    if any(proof.status == ProofStatus.PENDING for proof in proofs):
        return LifecycleState.PENDING_REVIEW
    if tenant.subscription_status == TenantStatus.TRIAL:
        remaining = trial_time_remaining(tenant.trial_ends_at, now)
        if remaining is not None and remaining.expired:
            return LifecycleState.TRIAL_EXPIRED
        return LifecycleState.TRIAL
    if (
        subscription is not None
        and subscription.status == SubscriptionStatus.ACTIVE
        and subscription.billing_period_end is not None
    ):
        if has_ended(subscription.billing_period_end, now):
            return LifecycleState.EXPIRED
        return LifecycleState.ACTIVE
    if tenant.subscription_status == TenantStatus.ACTIVE:
        return LifecycleState.ACTIVE
    return LifecycleState.INACTIVE


def has_missing_subscription(tenant: Tenant, subscription: Optional[Subscription]) -> bool:
    """Active tenant without a billing record: an interrupted activation."""

    return tenant.is_active and subscription is None


def access_status(
    tenant: Tenant,
    subscription: Optional[Subscription],
    is_admin: bool = False,
    now: Optional[datetime] = None,
) -> AccessStatus:
    end = subscription.billing_period_end if subscription is not None else None
    left: Optional[int] = None
    if end is not None:
        left = days_remaining(end, now)
        is_expired = has_ended(end, now)
    else:
        # Legacy or manually activated tenants have no billing window.
        is_expired = not tenant.is_active

    tenant_inactive = not tenant.is_active
    # Tenant admins keep access while inactive so they can submit payment.
    allowed = (tenant.is_active and (not is_expired or end is None)) or (
        is_admin and tenant_inactive
    )
    return AccessStatus(
        is_active=allowed,
        is_expired=is_expired,
        days_remaining=left,
        subscription_end=end,
        tenant_inactive=tenant_inactive,
        is_admin=is_admin,
    )
