"""Payment status routes backed by the key-value status store."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from ardhiflow.config.settings import get_settings
from ardhiflow.exceptions import StorageError
from ardhiflow.payments.store import PaymentStatusStore
from ardhiflow.payments.stream import payment_status_events
from ardhiflow.web.dependencies import get_payment_store

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["payments"])


class CheckStatusRequest(BaseModel):
    order_reference: str = Field(default="", alias="orderReference")


@router.post("/api/webhooks/clickpesa/check-status")
async def check_payment_status(
    body: CheckStatusRequest,
    store: PaymentStatusStore = Depends(get_payment_store),
) -> dict[str, Any]:
    """Return the latest stored status for an order, or PENDING."""
    if not body.order_reference:
        raise HTTPException(status_code=400, detail="Order reference required")

    try:
        status = await store.get(body.order_reference)
    except StorageError as exc:
        logger.error("payment_status_check_failed", error=str(exc))
        raise HTTPException(status_code=500, detail="Failed to check status") from exc

    if status is None:
        return {"status": "PENDING", "message": "Payment status not yet available"}
    return status.to_dict()


@router.get("/api/payments/{order_reference}/status/stream")
async def payment_status_stream(
    order_reference: str,
    request: Request,
    store: PaymentStatusStore = Depends(get_payment_store),
) -> StreamingResponse:
    """Stream a payment's status as Server-Sent Events until it settles."""
    settings = get_settings()
    logger.info("payment_stream_connected", order_reference=order_reference)
    return StreamingResponse(
        payment_status_events(
            store,
            order_reference,
            interval=settings.payment_poll_interval_seconds,
            max_checks=settings.payment_max_checks,
            is_disconnected=request.is_disconnected,
        ),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache, no-transform",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
