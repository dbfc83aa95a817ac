"""Tenant resolution: the single gate for tenant-scoped access."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from uuid import UUID

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from carfit.api.deps import get_db_session
from carfit.auth.context import TenantContext
from carfit.auth.jwt import require_auth
from carfit.core.config import settings
from carfit.core.exceptions import (
    AuthenticationError,
    PaymentRequiredError,
    TenantAccessError,
)
from carfit.db.models.enums import TenantRole
from carfit.repositories.subscription_repo import SubscriptionRepo
from carfit.repositories.tenant_repo import TenantRepo
from carfit.repositories.user_repo import UserRepo
from carfit.services.tenant_state import access_status


logger = logging.getLogger(__name__)


async def build_tenant_context(
    session: AsyncSession,
    user_id: UUID,
    requested_tenant_id: Optional[UUID],
) -> TenantContext:
    """Resolve membership and super-admin rights for ``user_id``."""

    users = UserRepo(session)
    if await users.get(user_id) is None:
        raise AuthenticationError("Unknown user")

    is_super = await users.is_super_admin(user_id)
    if not is_super:
        platform_membership = await users.membership(user_id, settings.PLATFORM_TENANT_ID)
        is_super = (
            platform_membership is not None
            and platform_membership.role == TenantRole.ADMIN
        )

    role: Optional[TenantRole] = None
    if requested_tenant_id is not None:
        membership = await users.membership(user_id, requested_tenant_id)
        if membership is not None:
            role = membership.role
        elif not is_super:
            logger.warning(
                "User %s refused access to tenant %s", user_id, requested_tenant_id
            )
            raise TenantAccessError("Tenant mismatch")

    return TenantContext(
        user_id=user_id,
        tenant_id=requested_tenant_id,
        is_super_admin=is_super,
        role=role,
    )


async def resolve_tenant_context(
    auth: Dict[str, Any] = Depends(require_auth),
    tenant_header: Optional[str] = Header(default=None, alias=settings.TENANT_HEADER),
    db: AsyncSession = Depends(get_db_session),
) -> TenantContext:
    """FastAPI dependency returning the caller's :class:`TenantContext`.

    The tenant comes from the token's ``tenant_id`` claim; the tenant header
    may override it (workspace switching), subject to the same membership
    check.
    """

    tenant_id = auth["tenant_id"]
    if tenant_header:
        try:
            tenant_id = UUID(tenant_header)
        except ValueError as exc:
            raise TenantAccessError("Invalid tenant identifier") from exc
    return await build_tenant_context(db, auth["user_id"], tenant_id)


async def require_tenant_member(
    ctx: TenantContext = Depends(resolve_tenant_context),
) -> TenantContext:
    ctx.require_tenant()
    return ctx


async def require_super_admin(
    ctx: TenantContext = Depends(resolve_tenant_context),
) -> TenantContext:
    if not ctx.is_super_admin:
        raise TenantAccessError("Forbidden: Super admin access required")
    return ctx


async def require_subscription_access(
    ctx: TenantContext = Depends(require_tenant_member),
    db: AsyncSession = Depends(get_db_session),
) -> TenantContext:
    """Block operational features for expired or deactivated tenants.

    Tenant admins of a deactivated tenant keep access so they can renew.
    """

    if ctx.is_super_admin:
        return ctx
    tenant_id = ctx.require_tenant()
    tenant = await TenantRepo(db).get(tenant_id)
    if tenant is None:
        raise TenantAccessError("Tenant mismatch")
    subscription = await SubscriptionRepo(db).get_scoped(ctx, tenant_id)
    status = access_status(tenant, subscription, is_admin=ctx.is_tenant_admin)
    if not status.is_active:
        raise PaymentRequiredError(
            "Subscription expired or inactive. Please renew to continue."
        )
    return ctx
