"""Repository for users, tenant memberships and super admins."""
from __future__ import annotations

from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from carfit.db.models.enums import TenantRole
from carfit.db.models.user import SuperAdmin, TenantUser, User


class UserRepo:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, user_id: UUID) -> User | None:
        return await self.session.get(User, user_id)

    async def get_by_email(self, email: str) -> User | None:
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def is_super_admin(self, user_id: UUID) -> bool:
        result = await self.session.execute(
            select(SuperAdmin.user_id).where(SuperAdmin.user_id == user_id)
        )
        return result.scalar_one_or_none() is not None

    async def membership(self, user_id: UUID, tenant_id: UUID) -> TenantUser | None:
        result = await self.session.execute(
            select(TenantUser).where(
                TenantUser.user_id == user_id,
                TenantUser.tenant_id == tenant_id,
            )
        )
        return result.scalar_one_or_none()

    async def primary_admin(self, tenant_id: UUID) -> Optional[Tuple[TenantUser, User]]:
        result = await self.session.execute(
            select(TenantUser, User)
            .join(User, User.id == TenantUser.user_id)
            .where(
                TenantUser.tenant_id == tenant_id,
                TenantUser.is_primary_admin.is_(True),
                TenantUser.role == TenantRole.ADMIN,
            )
        )
        row = result.first()
        return (row[0], row[1]) if row else None

    async def user_ids_for_tenant(self, tenant_id: UUID) -> List[UUID]:
        result = await self.session.execute(
            select(TenantUser.user_id).where(TenantUser.tenant_id == tenant_id)
        )
        return list(result.scalars().all())

    async def has_other_memberships(self, user_id: UUID) -> bool:
        result = await self.session.execute(
            select(TenantUser.id).where(TenantUser.user_id == user_id).limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def add_user(self, user: User) -> User:
        self.session.add(user)
        await self.session.flush()
        return user

    async def add_membership(self, membership: TenantUser) -> TenantUser:
        self.session.add(membership)
        await self.session.flush()
        return membership

    async def delete_user(self, user_id: UUID) -> None:
        await self.session.execute(delete(User).where(User.id == user_id))
