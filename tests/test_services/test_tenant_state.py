from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from carfit.db.models import PaymentProof, Subscription, Tenant
from carfit.db.models.enums import ProofStatus, SubscriptionStatus, TenantStatus
from carfit.services.tenant_state import (
    LifecycleState,
    access_status,
    derive_tenant_state,
    has_missing_subscription,
)


NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_tenant(**overrides) -> Tenant:
    values = dict(
        name="Acme",
        workspace_url="tenant-z01",
        tenant_code="Z01",
        is_active=True,
        is_free=False,
        subscription_status=TenantStatus.TRIAL,
        trial_ends_at=NOW + timedelta(hours=5),
        created_at=NOW - timedelta(hours=19),
    )
    values.update(overrides)
    return Tenant(**values)


def make_subscription(end: datetime) -> Subscription:
    return Subscription(
        plan_name="annual",
        amount=Decimal("12000"),
        currency="INR",
        status=SubscriptionStatus.ACTIVE,
        billing_period_start=end - timedelta(days=365),
        billing_period_end=end,
    )


def test_inactive_wins_over_everything():
    tenant = make_tenant(is_active=False, is_free=True)
    assert derive_tenant_state(tenant, None, now=NOW) == LifecycleState.INACTIVE


def test_free_tenant():
    assert derive_tenant_state(make_tenant(is_free=True), None, now=NOW) == LifecycleState.FREE


def test_pending_proof_means_pending_review():
    proof = PaymentProof(amount=Decimal("12000"), status=ProofStatus.PENDING)
    state = derive_tenant_state(make_tenant(), None, [proof], now=NOW)
    assert state == LifecycleState.PENDING_REVIEW


def test_trial_and_expired_trial():
    assert derive_tenant_state(make_tenant(), None, now=NOW) == LifecycleState.TRIAL
    expired = make_tenant(trial_ends_at=NOW - timedelta(minutes=1))
    assert derive_tenant_state(expired, None, now=NOW) == LifecycleState.TRIAL_EXPIRED


def test_active_and_expired_subscription():
    tenant = make_tenant(subscription_status=TenantStatus.ACTIVE, trial_ends_at=None)
    live = make_subscription(NOW + timedelta(days=30))
    lapsed = make_subscription(NOW - timedelta(days=3))
    assert derive_tenant_state(tenant, live, now=NOW) == LifecycleState.ACTIVE
    assert derive_tenant_state(tenant, lapsed, now=NOW) == LifecycleState.EXPIRED


def test_missing_subscription_flag():
    active = make_tenant(subscription_status=TenantStatus.ACTIVE)
    assert has_missing_subscription(active, None) is True
    assert has_missing_subscription(active, make_subscription(NOW)) is False
    assert has_missing_subscription(make_tenant(is_active=False), None) is False


def test_access_denied_once_subscription_expired():
    tenant = make_tenant(subscription_status=TenantStatus.ACTIVE)
    status = access_status(tenant, make_subscription(NOW - timedelta(days=1)), now=NOW)
    assert status.is_expired is True
    assert status.is_active is False
    assert status.days_remaining == -1


def test_access_without_billing_window_follows_tenant_flag():
    assert access_status(make_tenant(), None, now=NOW).is_active is True
    assert access_status(make_tenant(is_active=False), None, now=NOW).is_active is False


def test_admin_keeps_access_to_deactivated_tenant():
    tenant = make_tenant(is_active=False)
    status = access_status(tenant, None, is_admin=True, now=NOW)
    assert status.is_active is True
    assert status.tenant_inactive is True


def test_subscription_ended_hours_ago_is_expired():
    tenant = make_tenant(subscription_status=TenantStatus.ACTIVE, trial_ends_at=None)
    lapsed = make_subscription(NOW - timedelta(hours=12))

    assert derive_tenant_state(tenant, lapsed, now=NOW) == LifecycleState.EXPIRED
    status = access_status(tenant, lapsed, now=NOW)
    assert status.days_remaining == 0
    assert status.is_expired is True
    assert status.is_active is False
