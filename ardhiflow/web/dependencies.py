"""FastAPI dependency injection and shared clients."""

from __future__ import annotations

from functools import lru_cache

import structlog

from ardhiflow.config.settings import get_settings
from ardhiflow.payments.store import (
    InMemoryPaymentStatusStore,
    PaymentStatusStore,
    RedisPaymentStatusStore,
)
from ardhiflow.tenancy.directory import ClerkDirectory, OrganizationDirectory
from ardhiflow.tenancy.resolver import OrganizationResolver

logger = structlog.get_logger(__name__)


@lru_cache
def get_directory() -> OrganizationDirectory:
    """Clerk-backed organization directory."""
    settings = get_settings()
    return ClerkDirectory(
        secret_key=settings.clerk_secret_key or "",
        api_url=settings.clerk_api_url,
        timeout=settings.directory_timeout_seconds,
    )


def get_resolver() -> OrganizationResolver:
    return OrganizationResolver(get_directory())


@lru_cache
def get_payment_store() -> PaymentStatusStore:
    """Create the appropriate payment status store based on settings."""
    settings = get_settings()
    if settings.redis_url:
        from redis.asyncio import Redis

        client = Redis.from_url(settings.redis_url, decode_responses=True, encoding="utf-8")
        return RedisPaymentStatusStore(client)
    logger.info("payment_store_in_memory")
    return InMemoryPaymentStatusStore()
