import logging

import httpx

from ..core.config import settings

logger = logging.getLogger(__name__)


async def notify_alert_webhook(reading: dict, device_name: str | None = None) -> bool:
    """POST an alerting reading to ``ALERT_WEBHOOK_URL``; returns whether it was delivered."""
    url = settings.ALERT_WEBHOOK_URL.strip()
    if not url:
        return False
    payload = {
        "reading_id": reading["id"],
        "project_id": reading["project_id"],
        "device_id": reading["device_id"],
        "device_name": device_name,
        "sensor_type": reading["sensor_type"],
        "value": reading["value"],
        "unit": reading["unit"],
        "alert_level": reading["alert_level"],
        "message": reading["alert_message"],
        "timestamp": reading["timestamp"],
    }
    headers = {"Content-Type": "application/json"}
    token = settings.ALERT_WEBHOOK_TOKEN.strip() if settings.ALERT_WEBHOOK_TOKEN else ""
    if token:
        headers["Authorization"] = f"Bearer {token}"
    timeout = float(settings.EXTERNAL_TIMEOUT_SECONDS) if settings.EXTERNAL_TIMEOUT_SECONDS else 8.0
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.post(url, json=payload, headers=headers)
            response.raise_for_status()
    except httpx.HTTPError as exc:
        # ingest has already been acknowledged, nothing to roll back
        logger.warning("Alert webhook failed for reading %s: %s", reading["id"], exc)
        return False
    return True
