"""Tenant-scoped CRUD for operational records."""
from __future__ import annotations

from typing import Any, Dict, Generic, List, Type, TypeVar
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from carfit.auth.context import TenantContext
from carfit.core.exceptions import NotFoundError

RecordT = TypeVar("RecordT")


class RecordRepo(Generic[RecordT]):
    """Every read and write goes through :meth:`TenantContext.scope`."""

    def __init__(self, session: AsyncSession, model: Type[RecordT]) -> None:
        self.session = session
        self.model = model

    async def list(self, ctx: TenantContext) -> List[RecordT]:
        stmt = ctx.scope(select(self.model), self.model).order_by(
            self.model.created_at.desc()
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get(self, ctx: TenantContext, record_id: UUID) -> RecordT:
        stmt = ctx.scope(select(self.model).where(self.model.id == record_id), self.model)
        result = await self.session.execute(stmt)
        record = result.scalar_one_or_none()
        if record is None:
            raise NotFoundError(f"{self.model.__name__} not found")
        return record

    async def create(self, ctx: TenantContext, values: Dict[str, Any]) -> RecordT:
        record = self.model(tenant_id=ctx.require_tenant(), **values)
        self.session.add(record)
        await self.session.flush()
        await self.session.refresh(record)
        return record

    async def update(
        self, ctx: TenantContext, record_id: UUID, values: Dict[str, Any]
    ) -> RecordT:
        record = await self.get(ctx, record_id)
        for key, value in values.items():
            setattr(record, key, value)
        self.session.add(record)
        await self.session.flush()
        await self.session.refresh(record)
        return record

    async def delete(self, ctx: TenantContext, record_id: UUID) -> None:
        record = await self.get(ctx, record_id)
        await self.session.delete(record)
        await self.session.flush()
