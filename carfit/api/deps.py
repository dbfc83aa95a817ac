"""Shared FastAPI dependencies."""
from __future__ import annotations

from typing import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from carfit.db.session import get_db, get_privileged_db


async def get_db_session(
    session: AsyncSession = Depends(get_db),
) -> AsyncGenerator[AsyncSession, None]:
    yield session


async def get_privileged_session(
    session: AsyncSession = Depends(get_privileged_db),
) -> AsyncGenerator[AsyncSession, None]:
    yield session
