"""Health check endpoint logic."""

from __future__ import annotations

import structlog

from ardhiflow.config.settings import get_settings
from ardhiflow.payments.store import PaymentStatusStore

logger = structlog.get_logger(__name__)


async def check_health(store: PaymentStatusStore) -> dict[str, object]:
    """Return application health status including the key-value store."""
    settings = get_settings()
    result: dict[str, object] = {
        "status": "healthy",
        "version": "0.1.0",
        "environment": settings.environment,
        "kv_store": "connected",
    }

    if not await store.ping():
        logger.warning("health_check_kv_failed")
        result["kv_store"] = "unavailable"
        result["status"] = "degraded"

    return result
