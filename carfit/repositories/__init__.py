"""Repository layer package."""

from carfit.repositories.payment_proof_repo import PaymentProofRepo
from carfit.repositories.plan_request_repo import PlanRequestRepo
from carfit.repositories.record_repo import RecordRepo
from carfit.repositories.subscription_repo import SubscriptionRepo
from carfit.repositories.tenant_repo import TenantRepo
from carfit.repositories.user_repo import UserRepo

__all__ = [
    "PaymentProofRepo",
    "PlanRequestRepo",
    "RecordRepo",
    "SubscriptionRepo",
    "TenantRepo",
    "UserRepo",
]
