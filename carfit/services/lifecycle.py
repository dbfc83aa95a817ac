"""Subscription lifecycle transitions for a single tenant.

Every public coroutine here runs inside the caller's session; the
request-scoped session commits once on success and rolls back on any error,
so a transition either lands completely or not at all.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional
from uuid import UUID

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from carfit.auth.context import TenantContext
from carfit.core.config import settings
from carfit.core.exceptions import (
    ConfirmationError,
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    TenantAccessError,
    ValidationError,
)
from carfit.db.models import TENANT_OWNED_MODELS
from carfit.db.models.enums import (
    ProofStatus,
    RequestStatus,
    SubscriptionStatus,
    TenantRole,
    TenantStatus,
)
from carfit.db.models.payment_proof import PaymentProof
from carfit.db.models.records import SystemSetting
from carfit.db.models.subscription import Subscription
from carfit.db.models.tenant import Tenant
from carfit.db.models.user import TenantUser, User
from carfit.repositories.payment_proof_repo import PaymentProofRepo
from carfit.repositories.plan_request_repo import PlanRequestRepo
from carfit.repositories.subscription_repo import SubscriptionRepo
from carfit.repositories.tenant_repo import TenantRepo
from carfit.repositories.user_repo import UserRepo
from carfit.schemas.billing import PaymentProofCreate
from carfit.schemas.tenant import TenantSignup
from carfit.services.billing_dates import (
    annual_billing_window,
    compute_trial_end,
    plan_billing_window,
    utcnow,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeletionResult:
    tenant_name: str
    tenant_code: Optional[str]
    deleted_users: int
    preserved_users: int

    @property
    def message(self) -> str:
        text = (
            f'Tenant "{self.tenant_name}" ({self.tenant_code or "N/A"}) and all '
            "associated data have been deleted successfully."
        )
        if self.deleted_users:
            text += f" Deleted {self.deleted_users} user account(s)."
        if self.preserved_users:
            text += (
                f" {self.preserved_users} user(s) were preserved "
                "(belong to other tenants)."
            )
        return text


class SubscriptionLifecycle:
    """Trial, review, activation, deactivation and deletion of tenants."""

    def __init__(
        self, session: AsyncSession, clock: Callable[[], datetime] = utcnow
    ) -> None:
        self.session = session
        self.clock = clock
        self.tenants = TenantRepo(session)
        self.subscriptions = SubscriptionRepo(session)
        self.proofs = PaymentProofRepo(session)
        self.plan_requests = PlanRequestRepo(session)
        self.users = UserRepo(session)

    async def _get_tenant(self, tenant_id: UUID) -> Tenant:
        tenant = await self.tenants.get(tenant_id)
        if tenant is None:
            raise NotFoundError("Tenant not found")
        return tenant

    async def _review_proof(
        self,
        proof_id: UUID,
        status: ProofStatus,
        actor: TenantContext,
        tenant_id: Optional[UUID] = None,
        notes: Optional[str] = None,
    ) -> PaymentProof:
        proof = await self.proofs.get(proof_id)
        if proof is None or (tenant_id is not None and proof.tenant_id != tenant_id):
            raise NotFoundError("Payment proof not found")
        if proof.status.is_terminal:
            raise InvalidTransitionError(f"Payment proof already {proof.status.value}")

        proof.status = status
        proof.reviewed_by = actor.user_id
        proof.reviewed_at = self.clock()
        if notes is not None:
            proof.notes = notes
        self.session.add(proof)
        await self.session.flush()
        return proof

    async def _activate(
        self,
        tenant: Tenant,
        plan_name: str,
        amount: Decimal,
        currency: Optional[str],
        period_start: datetime,
        period_end: datetime,
    ) -> Subscription:
        subscription = await self.subscriptions.upsert(
            tenant.id,
            plan_name=plan_name,
            amount=amount,
            currency=currency,
            period_start=period_start,
            period_end=period_end,
            status=SubscriptionStatus.ACTIVE,
        )
        tenant.is_active = True
        tenant.subscription_status = TenantStatus.ACTIVE
        tenant.trial_ends_at = None
        self.session.add(tenant)
        await self.session.flush()
        return subscription

    async def _activate_default_plan(
        self, tenant: Tenant, anchor: datetime
    ) -> Subscription:
        billing = settings.billing
        start, end = annual_billing_window(anchor, billing.annual_term_days)
        return await self._activate(
            tenant,
            plan_name=billing.default_plan_name,
            amount=billing.default_plan_amount,
            currency=billing.default_plan_currency,
            period_start=start,
            period_end=end,
        )

    async def create_tenant(self, signup: TenantSignup) -> Tenant:
        """Sign up a business: tenant in trial plus its primary admin."""

        if await self.users.get_by_email(signup.admin_email) is not None:
            raise ConflictError(
                "Email already registered. Please use a different email or sign in."
            )

        now = self.clock()
        code = await self.tenants.next_tenant_code()
        tenant = await self.tenants.create(
            Tenant(
                name=signup.organization_name.strip(),
                workspace_url=f"tenant-{code.lower()}",
                tenant_code=code,
                is_active=True,
                is_free=False,
                subscription_status=TenantStatus.TRIAL,
                created_at=now,
                trial_ends_at=compute_trial_end(now, settings.billing.trial_days),
            )
        )
        user = await self.users.add_user(
            User(
                email=signup.admin_email,
                name=signup.admin_name.strip(),
                phone=signup.admin_phone.strip(),
            )
        )
        await self.users.add_membership(
            TenantUser(
                tenant_id=tenant.id,
                user_id=user.id,
                role=TenantRole.ADMIN,
                is_primary_admin=True,
            )
        )
        company = {
            "company_name": tenant.name,
            "company_address": "",
            "company_phone": signup.admin_phone,
            "company_email": signup.admin_email,
        }
        self.session.add_all(
            SystemSetting(
                tenant_id=tenant.id,
                setting_key=key,
                setting_value=value,
                setting_group="company",
            )
            for key, value in company.items()
        )
        await self.session.flush()
        logger.info("Created tenant %s (%s) in trial", tenant.id, code)
        return tenant

    async def submit_payment_proof(
        self, ctx: TenantContext, data: PaymentProofCreate
    ) -> PaymentProof:
        tenant_id = ctx.require_tenant()
        if not ctx.is_tenant_admin:
            raise TenantAccessError("You must be an admin to submit payment proof")
        await self._get_tenant(tenant_id)
        proof = await self.proofs.add(
            PaymentProof(
                tenant_id=tenant_id,
                transaction_id=data.transaction_id,
                payment_date=data.payment_date,
                amount=data.amount,
                currency=data.currency,
                status=ProofStatus.PENDING,
                created_at=self.clock(),
                notes=data.notes,
                payment_proof_url=data.payment_proof_url,
            )
        )
        logger.info("Tenant %s submitted payment proof %s", tenant_id, proof.id)
        return proof

    async def approve_payment(
        self, proof_id: UUID, tenant_id: UUID, actor: TenantContext
    ) -> Subscription:
        """Approve a pending proof and activate the tenant on the default plan.

        The billing period starts on the proof's payment date (or today) and
        runs for the annual term.
        """

        tenant = await self._get_tenant(tenant_id)
        proof = await self._review_proof(
            proof_id, ProofStatus.APPROVED, actor, tenant_id=tenant_id
        )
        anchor = proof.payment_date or self.clock()
        subscription = await self._activate_default_plan(tenant, anchor)
        logger.info(
            "Payment %s approved by %s; tenant %s active until %s",
            proof_id,
            actor.user_id,
            tenant_id,
            subscription.billing_period_end,
        )
        return subscription

    async def reject_payment(
        self, proof_id: UUID, reason: str, actor: TenantContext
    ) -> PaymentProof:
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("A rejection reason is required")
        proof = await self._review_proof(
            proof_id, ProofStatus.REJECTED, actor, notes=reason
        )
        logger.info("Payment %s rejected by %s", proof_id, actor.user_id)
        return proof

    async def activate_tenant(self, tenant_id: UUID, actor: TenantContext) -> Subscription:
        """Activate without a proof; also repairs a missing subscription."""

        tenant = await self._get_tenant(tenant_id)
        subscription = await self._activate_default_plan(tenant, self.clock())
        logger.info("Tenant %s activated by %s", tenant_id, actor.user_id)
        return subscription

    async def toggle_active(self, tenant_id: UUID, is_active: bool) -> Tenant:
        """Flip ``is_active`` only. Must be given the privileged session."""

        tenant = await self._get_tenant(tenant_id)
        tenant.is_active = is_active
        self.session.add(tenant)
        await self.session.flush()
        logger.info("Tenant %s is_active set to %s", tenant_id, is_active)
        return tenant

    async def apply_plan_from_request(
        self,
        tenant_id: UUID,
        request_id: UUID,
        proof_id: Optional[UUID],
        actor: TenantContext,
    ) -> Subscription:
        """Activate the tenant on the plan it asked for."""

        tenant = await self._get_tenant(tenant_id)
        request = await self.plan_requests.get(request_id)
        if request is None or request.tenant_id != tenant_id:
            raise NotFoundError("Plan request not found")
        if request.status.is_terminal:
            raise InvalidTransitionError(f"Plan request already {request.status.value}")

        anchor = self.clock()
        if proof_id is not None:
            proof = await self._review_proof(
                proof_id, ProofStatus.APPROVED, actor, tenant_id=tenant_id
            )
            if proof.payment_date is not None:
                anchor = proof.payment_date

        start, end = plan_billing_window(anchor, request.billing_cycle)
        subscription = await self._activate(
            tenant,
            plan_name=request.plan_name,
            amount=request.amount,
            currency=request.currency,
            period_start=start,
            period_end=end,
        )

        request.status = RequestStatus.APPROVED
        request.reviewed_by = actor.user_id
        request.reviewed_at = self.clock()
        self.session.add(request)
        await self.session.flush()
        logger.info(
            "Plan %s (%s) applied to tenant %s by %s",
            request.plan_name,
            request.billing_cycle,
            tenant_id,
            actor.user_id,
        )
        return subscription

    async def delete_tenant(
        self, tenant_id: UUID, typed_confirmation: Optional[str]
    ) -> DeletionResult:
        """Remove a tenant and every row it owns. Privileged session only."""

        expected = settings.billing.delete_confirmation
        if typed_confirmation != expected:
            raise ConfirmationError(f'Type "{expected}" to confirm tenant deletion')

        tenant = await self._get_tenant(tenant_id)
        name, code = tenant.name, tenant.tenant_code
        user_ids = await self.users.user_ids_for_tenant(tenant_id)

        for model in TENANT_OWNED_MODELS:
            await self.session.execute(delete(model).where(model.tenant_id == tenant_id))
        await self.tenants.delete(tenant_id)

        deleted = preserved = 0
        for user_id in user_ids:
            if await self.users.has_other_memberships(user_id) or await self.users.is_super_admin(
                user_id
            ):
                preserved += 1
                continue
            await self.users.delete_user(user_id)
            deleted += 1

        await self.session.flush()
        logger.warning(
            "Tenant %s (%s) deleted with %d user(s); %d preserved",
            tenant_id,
            code,
            deleted,
            preserved,
        )
        return DeletionResult(
            tenant_name=name,
            tenant_code=code,
            deleted_users=deleted,
            preserved_users=preserved,
        )
