"""Bearer-token decoding."""
from __future__ import annotations

from typing import Any, Dict, Optional
from uuid import UUID

import jwt
from fastapi import Header, HTTPException, status

from carfit.core.config import settings


def _parse_uuid(value: Any, detail: str) -> UUID:
    try:
        return UUID(str(value))
    except (TypeError, ValueError) as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
        ) from exc


def require_auth(authorization: Optional[str] = Header(default=None)) -> Dict[str, Any]:
    """Validate a bearer token and return the caller identity and claims."""

    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing bearer token",
        )

    token = authorization.split(" ", 1)[1].strip()
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALG],
        )
    except jwt.InvalidTokenError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        ) from exc

    if "sub" not in payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Subject missing in token",
        )

    user_id = _parse_uuid(payload["sub"], "Invalid user identifier")
    tenant_id = None
    if payload.get("tenant_id"):
        tenant_id = _parse_uuid(payload["tenant_id"], "Invalid tenant identifier")

    return {"user_id": user_id, "tenant_id": tenant_id, "claims": payload}
