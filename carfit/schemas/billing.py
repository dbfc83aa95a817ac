"""Pydantic schemas for subscriptions, payment proofs and plan requests."""
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from carfit.db.models.enums import (
    ProofStatus,
    RequestStatus,
    SubscriptionStatus,
    TenantStatus,
)
from carfit.services.tenant_state import LifecycleState


class SubscriptionRead(BaseModel):
    id: UUID
    tenant_id: UUID
    plan_name: str
    amount: Decimal
    currency: Optional[str] = None
    status: SubscriptionStatus
    billing_period_start: Optional[datetime] = None
    billing_period_end: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class PaymentProofCreate(BaseModel):
    transaction_id: Optional[str] = Field(default=None, description="Bank reference")
    payment_date: Optional[date] = None
    amount: Decimal = Field(..., gt=0)
    currency: str = "INR"
    notes: Optional[str] = None
    payment_proof_url: Optional[str] = Field(
        default=None, description="Reference to the uploaded proof file"
    )


class PaymentProofRead(BaseModel):
    id: UUID
    tenant_id: UUID
    transaction_id: Optional[str] = None
    payment_date: Optional[date] = None
    amount: Decimal
    currency: str
    status: ProofStatus
    created_at: Optional[datetime] = None
    reviewed_by: Optional[UUID] = None
    reviewed_at: Optional[datetime] = None
    notes: Optional[str] = None
    payment_proof_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class PlanRequestCreate(BaseModel):
    plan_name: str = Field(..., min_length=1)
    plan_display_name: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0)
    currency: str = "INR"
    billing_cycle: str = "annual"


class PlanRequestRead(BaseModel):
    id: UUID
    tenant_id: UUID
    plan_name: str
    plan_display_name: str
    amount: Decimal
    currency: str
    billing_cycle: str
    status: RequestStatus
    requested_at: Optional[datetime] = None
    reviewed_by: Optional[UUID] = None
    reviewed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class PlanOptionRead(BaseModel):
    plan_name: str
    display_name: str
    amount: Decimal
    currency: str
    billing_cycle: str
    price_display: str


class ApprovePaymentBody(BaseModel):
    tenant_id: UUID


class RejectBody(BaseModel):
    reason: str = Field(default="", description="Shown to the tenant")


class ApplyPlanBody(BaseModel):
    request_id: UUID
    proof_id: Optional[UUID] = None


class TrialTimeRemainingRead(BaseModel):
    expired: bool
    days: int
    hours: int
    minutes: int
    total_minutes: int

    model_config = ConfigDict(from_attributes=True)


class AccessStatusRead(BaseModel):
    is_active: bool
    is_expired: bool
    days_remaining: Optional[int] = None
    subscription_end: Optional[datetime] = None
    tenant_inactive: bool
    is_admin: bool

    model_config = ConfigDict(from_attributes=True)


class TenantSubscriptionView(BaseModel):
    """A tenant's own billing summary."""

    tenant_id: UUID
    state: LifecycleState
    subscription: Optional[SubscriptionRead] = None
    trial_ends_at: Optional[datetime] = None
    trial_remaining: Optional[TrialTimeRemainingRead] = None
    days_remaining: Optional[int] = None
    access: AccessStatusRead


class TenantOverview(BaseModel):
    """One row of the admin subscription-management view."""

    tenant_id: UUID
    tenant_name: str
    tenant_code: Optional[str] = None
    workspace_url: str
    subscription_status: TenantStatus
    is_active: bool
    is_free: bool
    trial_ends_at: Optional[datetime] = None
    state: LifecycleState
    missing_subscription: bool
    subscription: Optional[SubscriptionRead] = None
    payment_proofs: List[PaymentProofRead] = Field(default_factory=list)
    plan_request: Optional[PlanRequestRead] = None
    days_remaining: Optional[int] = None
    is_expired: bool = False
    expiring_soon: bool = False
    trial_remaining: Optional[TrialTimeRemainingRead] = None
    price_display: Optional[str] = None


class AdminStats(BaseModel):
    total: int
    active: int
    trial: int
    paid: int
    pending_review: int
    missing_subscription: int
    revenue: Dict[str, Decimal] = Field(
        default_factory=dict, description="Totals per currency"
    )


class DeleteTenantResult(BaseModel):
    message: str


class ToggleResult(BaseModel):
    ok: bool = True
    message: str
