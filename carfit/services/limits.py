"""Rate limiting and idempotency helpers for admin and tenant mutations."""
from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import redis.asyncio as redis
from fastapi import Header

from carfit.auth.context import TenantContext
from carfit.core.config import settings
from carfit.core.exceptions import ConflictError, RateLimitError

_redis_client: redis.Redis | None = None


async def _get_client() -> redis.Redis:
    """Return a cached Redis client instance."""

    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(
            str(settings.REDIS_URI), decode_responses=True
        )
    return _redis_client


async def close_client() -> None:
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


async def check_rate_limit(caller_id: str) -> None:
    """Enforce a fixed one-minute window per caller."""

    if not settings.limits.enabled:
        return
    client = await _get_client()
    minute_window = int(time.time() // 60)
    key = f"rl:{caller_id}:{minute_window}"
    current = await client.incr(key)
    if current == 1:
        await client.expire(key, 60)
    if current > settings.limits.rate_limit_rpm:
        raise RateLimitError("Rate limit exceeded")


async def ensure_idempotent(scope: str, key: Optional[str]) -> Optional[str]:
    """Reserve ``key`` within ``scope``; a repeat inside the TTL is a conflict.

    Returns the reserved Redis key, or ``None`` when nothing was reserved.
    """

    if not key or not settings.limits.enabled:
        return None
    client = await _get_client()
    redis_key = f"idemp:{scope}:{key}"
    was_set = await client.set(
        redis_key, "1", ex=settings.limits.idempotency_ttl_seconds, nx=True
    )
    if not was_set:
        raise ConflictError("Duplicate request (idempotency)")
    return redis_key


async def release_idempotency(redis_key: Optional[str]) -> None:
    if redis_key is None:
        return
    client = await _get_client()
    await client.delete(redis_key)


@asynccontextmanager
async def guard_mutation(
    ctx: TenantContext,
    operation: str,
    idempotency_key: Optional[str] = None,
) -> AsyncIterator[None]:
    """Rate limit the caller and hold the idempotency key for ``operation``.

    The key is released when the guarded block raises, so a failed request
    can be retried with the same key.
    """

    await check_rate_limit(str(ctx.user_id))
    reserved = await ensure_idempotent(f"{ctx.user_id}:{operation}", idempotency_key)
    try:
        yield
    except Exception:
        await release_idempotency(reserved)
        raise


def idempotency_key_header(
    idempotency_key: Optional[str] = Header(default=None, alias="Idempotency-Key"),
) -> Optional[str]:
    return idempotency_key
