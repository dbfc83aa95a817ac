"""Pydantic schemas for tenant resources."""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from carfit.db.models.enums import TenantStatus


class TenantSignup(BaseModel):
    """Payload for creating a tenant together with its first admin."""

    organization_name: str = Field(..., min_length=1, description="Business name")
    admin_name: str = Field(..., min_length=1, description="Primary admin name")
    admin_email: EmailStr = Field(..., description="Primary admin email")
    admin_phone: str = Field(..., min_length=1, description="Primary admin phone")


class TenantRead(BaseModel):
    id: UUID
    name: str
    workspace_url: str
    tenant_code: Optional[str] = None
    is_active: bool
    is_free: bool
    subscription_status: TenantStatus
    trial_ends_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class TenantAdminRead(BaseModel):
    id: UUID
    name: str
    email: str
    phone: str


class TenantAdminDetails(BaseModel):
    admin: TenantAdminRead


class ToggleTenantStatus(BaseModel):
    tenant_id: UUID = Field(..., alias="tenantId")
    is_active: bool = Field(..., alias="isActive")

    model_config = ConfigDict(populate_by_name=True)
