"""Server-Sent Events feed of a payment's status."""

from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING, Any

import structlog

from ardhiflow.exceptions import StorageError

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Awaitable, Callable

    from ardhiflow.payments.store import PaymentStatusStore

logger = structlog.get_logger(__name__)


def to_sse(payload: dict[str, Any]) -> str:
    """Serialize to SSE wire format."""
    return f"data: {json.dumps(payload)}\n\n"


async def payment_status_events(
    store: PaymentStatusStore,
    order_reference: str,
    *,
    interval: float = 2.0,
    max_checks: int = 60,
    is_disconnected: Callable[[], Awaitable[bool]] | None = None,
) -> AsyncGenerator[str, None]:
    """Poll the store until the payment is final, the client leaves, or checks run out.

    Emits ``connected`` first, then one event per poll that found a record,
    and ``TIMEOUT`` after ``max_checks`` polls without a final status.
    """
    yield to_sse({"status": "connected"})

    for check in range(1, max_checks + 1):
        await asyncio.sleep(interval)
        if is_disconnected is not None and await is_disconnected():
            logger.info("payment_stream_client_left", order_reference=order_reference)
            return

        try:
            status = await store.get(order_reference)
        except StorageError as exc:
            logger.warning("payment_stream_poll_failed", order_reference=order_reference, error=str(exc))
            yield to_sse({"error": "Polling error"})
            continue

        if status is not None:
            yield to_sse(status.to_dict())
            if status.is_final:
                logger.info(
                    "payment_final", order_reference=order_reference, status=status.status
                )
                return

        logger.debug("payment_stream_poll", order_reference=order_reference, check=check)

    logger.warning("payment_stream_timeout", order_reference=order_reference, checks=max_checks)
    yield to_sse({"status": "TIMEOUT", "message": "Payment confirmation timeout"})
