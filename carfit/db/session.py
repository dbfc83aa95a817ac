"""Engine and session factories for the tenant and privileged paths."""
from __future__ import annotations

from typing import AsyncGenerator, Dict

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from carfit.core.config import settings

_engines: Dict[str, AsyncEngine] = {}


def get_engine(uri: str) -> AsyncEngine:
    """Return a cached engine for ``uri``, creating it on first use."""

    engine = _engines.get(uri)
    if engine is None:
        engine = create_async_engine(uri, echo=settings.DB_ECHO, pool_pre_ping=True)
        _engines[uri] = engine
    return engine


def session_factory(uri: str) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(get_engine(uri), expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session; one transaction per request."""

    async with session_factory(settings.DATABASE_URI)() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_privileged_db() -> AsyncGenerator[AsyncSession, None]:
    """Session on the service-role connection used for cross-tenant writes."""

    async with session_factory(settings.service_database_uri)() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def dispose_engines() -> None:
    for engine in list(_engines.values()):
        await engine.dispose()
    _engines.clear()
