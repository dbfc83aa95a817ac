"""Database models package exports."""

from carfit.db.models.payment_proof import PaymentProof
from carfit.db.models.plan_request import SubscriptionPlanRequest
from carfit.db.models.records import (
    CallFollowUp,
    CustomerRequirement,
    Invoice,
    Location,
    Notification,
    ServiceJob,
    SystemSetting,
    Vehicle,
)
from carfit.db.models.subscription import Subscription
from carfit.db.models.tenant import Tenant
from carfit.db.models.user import SuperAdmin, TenantUser, User

# Every table keyed by tenant id, children before parents.
TENANT_OWNED_MODELS = (
    Notification,
    Invoice,
    ServiceJob,
    CustomerRequirement,
    CallFollowUp,
    Vehicle,
    Location,
    SystemSetting,
    SubscriptionPlanRequest,
    PaymentProof,
    Subscription,
    TenantUser,
)

__all__ = [
    "CallFollowUp",
    "CustomerRequirement",
    "Invoice",
    "Location",
    "Notification",
    "PaymentProof",
    "ServiceJob",
    "Subscription",
    "SubscriptionPlanRequest",
    "SuperAdmin",
    "SystemSetting",
    "TENANT_OWNED_MODELS",
    "Tenant",
    "TenantUser",
    "User",
]
