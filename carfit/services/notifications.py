"""Outbound notifications for vehicle workflow events."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from carfit.core.config import settings


logger = logging.getLogger(__name__)


async def notify_vehicle_status(
    tenant_id: str,
    vehicle_id: str,
    registration_number: str,
    status: str,
    customer_phone: Optional[str] = None,
) -> bool:
    """Post a vehicle status event to the configured webhook.

    Delivery failures are logged and never raised.
    """

    url = settings.notifications.webhook_url
    if not url:
        logger.debug("No notification webhook configured; skipping %s", vehicle_id)
        return False

    payload: Dict[str, Any] = {
        "event": "vehicle_status_changed",
        "tenant_id": tenant_id,
        "vehicle_id": vehicle_id,
        "registration_number": registration_number,
        "status": status,
        "customer_phone": customer_phone,
    }
    try:
        async with httpx.AsyncClient(timeout=settings.notifications.timeout_seconds) as client:
            response = await client.post(url, json=payload)
            response.raise_for_status()
    except httpx.HTTPError as exc:
        logger.warning("Vehicle notification for %s failed: %s", vehicle_id, exc)
        return False
    return True
