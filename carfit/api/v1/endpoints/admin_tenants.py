"""Super-admin tenant operations on the privileged connection."""
from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from carfit.api.deps import get_privileged_session
from carfit.auth.context import TenantContext
from carfit.auth.tenant import require_super_admin
from carfit.core.exceptions import NotFoundError
from carfit.repositories.user_repo import UserRepo
from carfit.schemas.billing import DeleteTenantResult, ToggleResult
from carfit.schemas.tenant import TenantAdminDetails, TenantAdminRead, ToggleTenantStatus
from carfit.services.lifecycle import SubscriptionLifecycle
from carfit.services.limits import guard_mutation, idempotency_key_header


router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/tenant-details", response_model=TenantAdminDetails)
async def tenant_details(
    tenant_id: UUID = Query(..., alias="tenantId"),
    ctx: TenantContext = Depends(require_super_admin),
    db: AsyncSession = Depends(get_privileged_session),
):
    found = await UserRepo(db).primary_admin(tenant_id)
    if found is None:
        raise NotFoundError("Tenant admin not found")
    _, user = found
    return TenantAdminDetails(
        admin=TenantAdminRead(
            id=user.id,
            name=user.name or "N/A",
            email=user.email,
            phone=user.phone or "N/A",
        )
    )


@router.patch("/toggle-tenant-status", response_model=ToggleResult)
async def toggle_tenant_status(
    body: ToggleTenantStatus,
    ctx: TenantContext = Depends(require_super_admin),
    idempotency_key: Optional[str] = Depends(idempotency_key_header),
    db: AsyncSession = Depends(get_privileged_session),
):
    async with guard_mutation(
        ctx, f"tenants.toggle:{body.tenant_id}", idempotency_key
    ):
        tenant = await SubscriptionLifecycle(db).toggle_active(
            body.tenant_id, body.is_active
        )
    state = "activated" if tenant.is_active else "deactivated"
    return ToggleResult(ok=True, message=f"Tenant {state} successfully")


@router.delete("/delete-tenant", response_model=DeleteTenantResult)
async def delete_tenant(
    tenant_id: UUID = Query(..., alias="tenantId"),
    confirmation: Optional[str] = Query(default=None),
    ctx: TenantContext = Depends(require_super_admin),
    db: AsyncSession = Depends(get_privileged_session),
):
    async with guard_mutation(ctx, f"tenants.delete:{tenant_id}"):
        result = await SubscriptionLifecycle(db).delete_tenant(tenant_id, confirmation)
    return DeleteTenantResult(message=result.message)
