from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from carfit.auth.context import TenantContext
from carfit.core.exceptions import (
    ConfirmationError,
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from carfit.db import models
from carfit.db.models.enums import (
    ProofStatus,
    RequestStatus,
    SubscriptionStatus,
    TenantRole,
    TenantStatus,
)
from carfit.repositories.subscription_repo import SubscriptionRepo
from carfit.repositories.tenant_repo import TenantRepo
from carfit.schemas.tenant import TenantSignup
from carfit.services.admin_view import build_overview
from carfit.services.billing_dates import as_utc
from carfit.services.lifecycle import SubscriptionLifecycle


UTC = timezone.utc


def fixed_clock(moment: datetime):
    return lambda: moment


async def super_admin_ctx(seed) -> TenantContext:
    user = await seed.super_admin()
    return TenantContext(user_id=user.id, tenant_id=None, is_super_admin=True)


@pytest.mark.asyncio
async def test_approve_payment_anchors_on_payment_date(test_db, seed):
    actor = await super_admin_ctx(seed)
    tenant = await seed.tenant()
    proof = await seed.proof(tenant, payment_date=date(2024, 3, 10))

    engine = SubscriptionLifecycle(test_db, clock=fixed_clock(datetime(2024, 3, 15, 10, tzinfo=UTC)))
    subscription = await engine.approve_payment(proof.id, tenant.id, actor)
    await test_db.commit()

    assert as_utc(subscription.billing_period_start) == datetime(2024, 3, 10, tzinfo=UTC)
    assert as_utc(subscription.billing_period_end) == datetime(2025, 3, 10, 23, 59, 59, tzinfo=UTC)
    assert subscription.plan_name == "annual"
    assert subscription.amount == Decimal("12000.00")
    assert subscription.currency == "INR"
    assert subscription.status == SubscriptionStatus.ACTIVE

    await test_db.refresh(tenant)
    await test_db.refresh(proof)
    assert tenant.subscription_status == TenantStatus.ACTIVE
    assert tenant.trial_ends_at is None
    assert tenant.is_active is True
    assert proof.status == ProofStatus.APPROVED
    assert proof.reviewed_by == actor.user_id


@pytest.mark.asyncio
async def test_approve_payment_without_payment_date_uses_today(test_db, seed):
    actor = await super_admin_ctx(seed)
    tenant = await seed.tenant()
    proof = await seed.proof(tenant, payment_date=None)

    engine = SubscriptionLifecycle(test_db, clock=fixed_clock(datetime(2024, 7, 4, 18, tzinfo=UTC)))
    subscription = await engine.approve_payment(proof.id, tenant.id, actor)

    start = as_utc(subscription.billing_period_start)
    end = as_utc(subscription.billing_period_end)
    assert start == datetime(2024, 7, 4, tzinfo=UTC)
    assert end.date() - start.date() == timedelta(days=365)


@pytest.mark.asyncio
async def test_reviewed_proof_cannot_be_reviewed_again(test_db, seed):
    actor = await super_admin_ctx(seed)
    tenant = await seed.tenant()
    proof = await seed.proof(tenant, status=ProofStatus.REJECTED)

    engine = SubscriptionLifecycle(test_db)
    with pytest.raises(InvalidTransitionError):
        await engine.approve_payment(proof.id, tenant.id, actor)
    with pytest.raises(InvalidTransitionError):
        await engine.reject_payment(proof.id, "duplicate", actor)

    assert await SubscriptionRepo(test_db).count_for_tenant(tenant.id) == 0


@pytest.mark.asyncio
async def test_approve_rejects_proof_of_another_tenant(test_db, seed):
    actor = await super_admin_ctx(seed)
    tenant = await seed.tenant()
    other = await seed.tenant(name="Other")
    proof = await seed.proof(other)

    with pytest.raises(NotFoundError):
        await SubscriptionLifecycle(test_db).approve_payment(proof.id, tenant.id, actor)


@pytest.mark.asyncio
async def test_reject_payment_requires_reason_and_keeps_tenant_state(test_db, seed):
    actor = await super_admin_ctx(seed)
    tenant = await seed.tenant()
    proof = await seed.proof(tenant)
    engine = SubscriptionLifecycle(test_db)

    for blank in ("", "   ", None):
        with pytest.raises(ValidationError):
            await engine.reject_payment(proof.id, blank, actor)

    rejected = await engine.reject_payment(proof.id, "  Amount does not match  ", actor)
    await test_db.commit()

    assert rejected.status == ProofStatus.REJECTED
    assert rejected.notes == "Amount does not match"
    await test_db.refresh(tenant)
    assert tenant.subscription_status == TenantStatus.TRIAL
    assert tenant.trial_ends_at is not None
    assert await SubscriptionRepo(test_db).count_for_tenant(tenant.id) == 0


@pytest.mark.asyncio
async def test_activate_twice_keeps_a_single_subscription(test_db, seed):
    actor = await super_admin_ctx(seed)
    tenant = await seed.tenant()
    engine = SubscriptionLifecycle(test_db, clock=fixed_clock(datetime(2024, 1, 1, tzinfo=UTC)))

    first = await engine.activate_tenant(tenant.id, actor)
    engine.clock = fixed_clock(datetime(2024, 2, 1, tzinfo=UTC))
    second = await engine.activate_tenant(tenant.id, actor)
    await test_db.commit()

    assert first.id == second.id
    assert await SubscriptionRepo(test_db).count_for_tenant(tenant.id) == 1
    assert as_utc(second.billing_period_start) == datetime(2024, 2, 1, tzinfo=UTC)


@pytest.mark.asyncio
async def test_activate_repairs_missing_subscription(test_db, seed):
    actor = await super_admin_ctx(seed)
    tenant = await seed.tenant(status=TenantStatus.ACTIVE, trial_ends_at=None)
    repo = TenantRepo(test_db)

    row = build_overview(await repo.get_with_billing(tenant.id))
    assert row.missing_subscription is True

    await SubscriptionLifecycle(test_db).activate_tenant(tenant.id, actor)
    await test_db.commit()
    test_db.expire_all()

    row = build_overview(await repo.get_with_billing(tenant.id))
    assert row.missing_subscription is False
    assert await SubscriptionRepo(test_db).count_for_tenant(tenant.id) == 1


@pytest.mark.parametrize(
    "cycle,expected_end",
    [
        ("monthly", datetime(2024, 7, 1, tzinfo=UTC)),
        ("quarterly", datetime(2024, 9, 1, tzinfo=UTC)),
        ("annual", datetime(2025, 6, 1, tzinfo=UTC)),
        ("lifetime", datetime(2025, 6, 1, tzinfo=UTC)),
    ],
)
@pytest.mark.asyncio
async def test_apply_plan_from_request_uses_requested_terms(test_db, seed, cycle, expected_end):
    actor = await super_admin_ctx(seed)
    tenant = await seed.tenant()
    request = await seed.plan_request(
        tenant, plan_name=cycle, amount=Decimal("3500.00"), billing_cycle=cycle
    )

    engine = SubscriptionLifecycle(test_db, clock=fixed_clock(datetime(2024, 6, 1, 9, tzinfo=UTC)))
    subscription = await engine.apply_plan_from_request(tenant.id, request.id, None, actor)
    await test_db.commit()

    assert as_utc(subscription.billing_period_start) == datetime(2024, 6, 1, tzinfo=UTC)
    assert as_utc(subscription.billing_period_end) == expected_end
    assert subscription.plan_name == cycle
    assert subscription.amount == Decimal("3500.00")

    await test_db.refresh(request)
    await test_db.refresh(tenant)
    assert request.status == RequestStatus.APPROVED
    assert tenant.subscription_status == TenantStatus.ACTIVE
    assert tenant.trial_ends_at is None


@pytest.mark.asyncio
async def test_apply_plan_approves_attached_proof(test_db, seed):
    actor = await super_admin_ctx(seed)
    tenant = await seed.tenant()
    request = await seed.plan_request(tenant, billing_cycle="monthly")
    proof = await seed.proof(tenant, payment_date=date(2024, 5, 20))

    engine = SubscriptionLifecycle(test_db, clock=fixed_clock(datetime(2024, 6, 1, tzinfo=UTC)))
    subscription = await engine.apply_plan_from_request(tenant.id, request.id, proof.id, actor)
    await test_db.commit()

    assert as_utc(subscription.billing_period_start) == datetime(2024, 5, 20, tzinfo=UTC)
    assert as_utc(subscription.billing_period_end) == datetime(2024, 6, 20, tzinfo=UTC)
    await test_db.refresh(proof)
    assert proof.status == ProofStatus.APPROVED


@pytest.mark.asyncio
async def test_apply_plan_rejects_foreign_or_closed_requests(test_db, seed):
    actor = await super_admin_ctx(seed)
    tenant = await seed.tenant()
    other = await seed.tenant(name="Other")
    foreign = await seed.plan_request(other)
    closed = await seed.plan_request(tenant, status=RequestStatus.REJECTED)
    engine = SubscriptionLifecycle(test_db)

    with pytest.raises(NotFoundError):
        await engine.apply_plan_from_request(tenant.id, foreign.id, None, actor)
    with pytest.raises(InvalidTransitionError):
        await engine.apply_plan_from_request(tenant.id, closed.id, None, actor)


@pytest.mark.asyncio
async def test_toggle_active_only_flips_flag(test_db, seed):
    tenant = await seed.tenant(status=TenantStatus.ACTIVE, trial_ends_at=None)
    await SubscriptionLifecycle(test_db).toggle_active(tenant.id, False)
    await test_db.commit()
    await test_db.refresh(tenant)

    assert tenant.is_active is False
    assert tenant.subscription_status == TenantStatus.ACTIVE


@pytest.mark.parametrize("typed", ["", "delete", "DELETE ", "Delete", None])
@pytest.mark.asyncio
async def test_delete_requires_exact_confirmation(test_db, seed, typed):
    tenant = await seed.tenant()
    await seed.user(tenant, primary=True)

    with pytest.raises(ConfirmationError):
        await SubscriptionLifecycle(test_db).delete_tenant(tenant.id, typed)
    await test_db.commit()

    assert await test_db.get(models.Tenant, tenant.id) is not None
    members = await test_db.execute(
        select(func.count()).select_from(models.TenantUser).where(
            models.TenantUser.tenant_id == tenant.id
        )
    )
    assert members.scalar_one() == 1


@pytest.mark.asyncio
async def test_delete_cascades_and_preserves_shared_users(test_db, seed):
    tenant = await seed.tenant(name="Doomed Motors", code="Z07")
    survivor_tenant = await seed.tenant(name="Survivor")
    orphan = await seed.user(tenant, primary=True)
    shared = await seed.user(tenant, role=TenantRole.INSTALLER)
    await seed.membership(survivor_tenant, shared, role=TenantRole.MANAGER)
    await seed.subscription(
        tenant,
        start=datetime(2024, 1, 1, tzinfo=UTC),
        end=datetime(2025, 1, 1, tzinfo=UTC),
    )
    await seed.proof(tenant)
    await seed.plan_request(tenant)
    test_db.add(
        models.Vehicle(
            tenant_id=tenant.id, registration_number="KA01AB1234", customer_name="Ravi"
        )
    )
    await test_db.commit()

    result = await SubscriptionLifecycle(test_db).delete_tenant(tenant.id, "DELETE")
    await test_db.commit()

    assert result.deleted_users == 1
    assert result.preserved_users == 1
    assert '"Doomed Motors" (Z07)' in result.message
    assert await test_db.get(models.Tenant, tenant.id) is None
    assert await test_db.get(models.User, orphan.id) is None
    assert await test_db.get(models.User, shared.id) is not None
    assert await test_db.get(models.Tenant, survivor_tenant.id) is not None

    for model in (models.Vehicle, models.Subscription, models.PaymentProof, models.TenantUser):
        remaining = await test_db.execute(
            select(func.count()).select_from(model).where(model.tenant_id == tenant.id)
        )
        assert remaining.scalar_one() == 0


@pytest.mark.asyncio
async def test_delete_unknown_tenant(test_db):
    with pytest.raises(NotFoundError):
        await SubscriptionLifecycle(test_db).delete_tenant(uuid4(), "DELETE")


@pytest.mark.asyncio
async def test_create_tenant_starts_trial_with_primary_admin(test_db):
    moment = datetime(2024, 1, 1, tzinfo=UTC)
    engine = SubscriptionLifecycle(test_db, clock=fixed_clock(moment))
    signup = TenantSignup(
        organization_name=" Speed Fit ",
        admin_name="Meera",
        admin_email="meera@example.com",
        admin_phone="9000000001",
    )

    first = await engine.create_tenant(signup)
    second = await engine.create_tenant(
        signup.model_copy(update={"admin_email": "other@example.com"})
    )
    await test_db.commit()

    assert (first.tenant_code, first.workspace_url) == ("Z01", "tenant-z01")
    assert second.tenant_code == "Z02"
    assert first.name == "Speed Fit"
    assert first.subscription_status == TenantStatus.TRIAL
    assert as_utc(first.trial_ends_at) == as_utc(first.created_at) + timedelta(days=1)
    assert await SubscriptionRepo(test_db).count_for_tenant(first.id) == 0

    membership = (
        await test_db.execute(
            select(models.TenantUser).where(models.TenantUser.tenant_id == first.id)
        )
    ).scalar_one()
    assert membership.role == TenantRole.ADMIN
    assert membership.is_primary_admin is True

    settings_rows = await test_db.execute(
        select(func.count())
        .select_from(models.SystemSetting)
        .where(models.SystemSetting.tenant_id == first.id)
    )
    assert settings_rows.scalar_one() == 4


@pytest.mark.asyncio
async def test_create_tenant_rejects_registered_email(test_db, seed):
    await seed.user(email="taken@example.com")
    signup = TenantSignup(
        organization_name="Dup",
        admin_name="Dup",
        admin_email="taken@example.com",
        admin_phone="1",
    )
    with pytest.raises(ConflictError):
        await SubscriptionLifecycle(test_db).create_tenant(signup)
