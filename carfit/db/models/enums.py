"""Closed status vocabularies for tenants and billing records."""
from __future__ import annotations

import enum
from typing import Type

from sqlalchemy import Enum as SAEnum


class TenantStatus(str, enum.Enum):
    TRIAL = "trial"
    ACTIVE = "active"
    INACTIVE = "inactive"


class SubscriptionStatus(str, enum.Enum):
    ACTIVE = "active"
    PENDING = "pending"
    INACTIVE = "inactive"


class ProofStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self != ProofStatus.PENDING


class RequestStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self != RequestStatus.PENDING


class TenantRole(str, enum.Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    COORDINATOR = "coordinator"
    INSTALLER = "installer"
    ACCOUNTANT = "accountant"


class VehicleStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    INSTALLATION_COMPLETE = "installation_complete"
    DELIVERED = "delivered"


class RecordStatus(str, enum.Enum):
    """Workflow status shared by service jobs, requirements and follow-ups."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


def enum_column(enum_cls: Type[enum.Enum], name: str) -> SAEnum:
    """Store enum values (not member names) in a plain string column."""

    return SAEnum(
        enum_cls,
        name=name,
        native_enum=False,
        length=32,
        values_callable=lambda members: [member.value for member in members],
    )
