"""
Pytest configuration for the application
"""
import os
from datetime import datetime, timedelta
from decimal import Decimal
from typing import AsyncGenerator, Dict, Optional
from uuid import UUID, uuid4

import httpx
import jwt
import pytest
import pytest_asyncio
from asgi_lifespan import LifespanManager
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from carfit.core.config import settings
from carfit.db import models
from carfit.db.base import Base
from carfit.db.models.enums import (
    ProofStatus,
    RequestStatus,
    SubscriptionStatus,
    TenantRole,
    TenantStatus,
)
from carfit.db.session import get_db, get_privileged_db
from carfit.main import create_application
from carfit.services import limits as limits_service
from carfit.services.billing_dates import utcnow


# Keep the application under test away from external services.
os.environ["ENV"] = "test"
settings.ENV = "test"
settings.DATABASE_URI = "sqlite+aiosqlite://"
settings.notifications.webhook_url = None
API_PREFIX = f"{settings.API_PREFIX}/v1"


class FakeRedis:
    """Minimal async Redis stub for rate limiting and idempotency."""

    def __init__(self) -> None:
        self.store: Dict[str, int | str] = {}

    async def incr(self, key: str) -> int:
        current = int(self.store.get(key, 0)) + 1
        self.store[key] = current
        return current

    async def expire(self, key: str, seconds: int) -> None:
        self.store.setdefault(f"{key}:ttl", seconds)

    async def set(self, key: str, value: str, ex: int | None = None, nx: bool = False) -> bool:
        if nx and key in self.store:
            return False
        self.store[key] = value
        if ex is not None:
            self.store[f"{key}:ttl"] = ex
        return True

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
            self.store.pop(f"{key}:ttl", None)
        return removed

    async def aclose(self) -> None:
        return None


@pytest.fixture(autouse=True)
def fake_redis(monkeypatch) -> FakeRedis:
    """Patch the limits module to use an in-memory Redis stub."""

    fake = FakeRedis()
    monkeypatch.setattr(limits_service, "_redis_client", fake, raising=False)
    yield fake
    monkeypatch.setattr(limits_service, "_redis_client", None, raising=False)


@pytest_asyncio.fixture
async def test_db_engine():
    """
    In-memory database shared by the test session and the application.
    """
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def test_db(test_db_engine) -> AsyncGenerator[AsyncSession, None]:
    """
    Session used by tests to seed and inspect rows.
    """
    factory = async_sessionmaker(test_db_engine, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest_asyncio.fixture
async def test_app(test_db_engine) -> AsyncGenerator[FastAPI, None]:
    """
    Create a FastAPI test application bound to the test database.
    """
    app = create_application()
    factory = async_sessionmaker(test_db_engine, expire_on_commit=False)

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_privileged_db] = _override_get_db
    async with LifespanManager(app):
        yield app


@pytest_asyncio.fixture
async def client(test_app: FastAPI) -> AsyncGenerator[httpx.AsyncClient, None]:
    """
    Create an async HTTP client for testing.
    """
    transport = httpx.ASGITransport(app=test_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as async_client:
        yield async_client


def build_auth_header(user_id: UUID, tenant_id: Optional[UUID] = None) -> Dict[str, str]:
    claims = {"sub": str(user_id)}
    if tenant_id is not None:
        claims["tenant_id"] = str(tenant_id)
    token = jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALG)
    return {"Authorization": f"Bearer {token}"}


class Seeder:
    """Inserts and commits rows through the test session."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self._counter = 0

    async def _save(self, *rows):
        self.session.add_all(rows)
        await self.session.commit()
        for row in rows:
            await self.session.refresh(row)
        return rows[0] if len(rows) == 1 else rows

    async def tenant(
        self,
        *,
        name: str = "Acme Motors",
        code: Optional[str] = None,
        status: TenantStatus = TenantStatus.TRIAL,
        is_active: bool = True,
        is_free: bool = False,
        trial_ends_at: Optional[datetime] = None,
        created_at: Optional[datetime] = None,
        tenant_id: Optional[UUID] = None,
    ) -> models.Tenant:
        self._counter += 1
        code = code or f"T{self._counter:02d}"
        created_at = created_at or utcnow()
        if trial_ends_at is None and status == TenantStatus.TRIAL:
            trial_ends_at = created_at + timedelta(days=1)
        return await self._save(
            models.Tenant(
                id=tenant_id or uuid4(),
                name=name,
                workspace_url=f"tenant-{code.lower()}",
                tenant_code=code,
                is_active=is_active,
                is_free=is_free,
                subscription_status=status,
                trial_ends_at=trial_ends_at,
                created_at=created_at,
            )
        )

    async def user(
        self,
        tenant: Optional[models.Tenant] = None,
        *,
        role: TenantRole = TenantRole.ADMIN,
        primary: bool = False,
        email: Optional[str] = None,
        name: str = "Asha Rao",
        phone: Optional[str] = "9876543210",
    ) -> models.User:
        self._counter += 1
        user = await self._save(
            models.User(
                email=email or f"user{self._counter}@example.com",
                name=name,
                phone=phone,
            )
        )
        if tenant is not None:
            await self.membership(tenant, user, role=role, primary=primary)
        return user

    async def membership(
        self,
        tenant: models.Tenant,
        user: models.User,
        *,
        role: TenantRole = TenantRole.ADMIN,
        primary: bool = False,
    ) -> models.TenantUser:
        return await self._save(
            models.TenantUser(
                tenant_id=tenant.id,
                user_id=user.id,
                role=role,
                is_primary_admin=primary,
            )
        )

    async def super_admin(self) -> models.User:
        user = await self.user(email=f"root{uuid4().hex[:6]}@example.com", name="Root")
        await self._save(models.SuperAdmin(user_id=user.id))
        return user

    async def subscription(
        self,
        tenant: models.Tenant,
        *,
        start: datetime,
        end: datetime,
        amount: Decimal = Decimal("12000.00"),
        currency: Optional[str] = "INR",
        plan_name: str = "annual",
    ) -> models.Subscription:
        return await self._save(
            models.Subscription(
                tenant_id=tenant.id,
                plan_name=plan_name,
                amount=amount,
                currency=currency,
                status=SubscriptionStatus.ACTIVE,
                billing_period_start=start,
                billing_period_end=end,
            )
        )

    async def proof(
        self,
        tenant: models.Tenant,
        *,
        status: ProofStatus = ProofStatus.PENDING,
        payment_date=None,
        amount: Decimal = Decimal("12000.00"),
        created_at: Optional[datetime] = None,
    ) -> models.PaymentProof:
        return await self._save(
            models.PaymentProof(
                tenant_id=tenant.id,
                transaction_id=f"UTR{uuid4().hex[:8]}",
                payment_date=payment_date,
                amount=amount,
                currency="INR",
                status=status,
                created_at=created_at or utcnow(),
            )
        )

    async def plan_request(
        self,
        tenant: models.Tenant,
        *,
        plan_name: str = "quarterly",
        amount: Decimal = Decimal("3500.00"),
        currency: str = "INR",
        billing_cycle: str = "quarterly",
        status: RequestStatus = RequestStatus.PENDING,
        requested_at: Optional[datetime] = None,
    ) -> models.SubscriptionPlanRequest:
        return await self._save(
            models.SubscriptionPlanRequest(
                tenant_id=tenant.id,
                plan_name=plan_name,
                plan_display_name=plan_name.title(),
                amount=amount,
                currency=currency,
                billing_cycle=billing_cycle,
                status=status,
                requested_at=requested_at or utcnow(),
            )
        )


@pytest.fixture
def seed(test_db: AsyncSession) -> Seeder:
    return Seeder(test_db)
