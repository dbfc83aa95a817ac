"""Explicit per-request tenant context."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import Select

from carfit.core.exceptions import TenantAccessError
from carfit.db.models.enums import TenantRole


@dataclass(frozen=True)
class TenantContext:
    """Who is calling and which tenant's rows they may touch.

    Built once per request and passed into every tenant-scoped query. A
    super admin sees every tenant; anyone else is pinned to ``tenant_id``.
    """

    user_id: UUID
    tenant_id: Optional[UUID]
    is_super_admin: bool = False
    role: Optional[TenantRole] = None

    @property
    def is_tenant_admin(self) -> bool:
        return self.role == TenantRole.ADMIN

    def require_tenant(self) -> UUID:
        if self.tenant_id is None:
            raise TenantAccessError("No tenant selected for this session")
        return self.tenant_id

    def scope(self, stmt: Select[Any], model: Any) -> Select[Any]:
        """Restrict ``stmt`` to the caller's tenant unless super admin."""

        if self.is_super_admin:
            return stmt
        return stmt.where(model.tenant_id == self.require_tenant())

    def ensure_can_access(self, tenant_id: UUID) -> None:
        if self.is_super_admin:
            return
        if self.require_tenant() != tenant_id:
            raise TenantAccessError("Tenant mismatch")
