"""Read side of the payment status key-value store.

The payment provider's webhook writes one record per order under
``payment:{order_reference}``; this service only reads them.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

import structlog

from ardhiflow.exceptions import StorageError

if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = structlog.get_logger(__name__)

FINAL_STATUSES = frozenset({"SUCCESS", "FAILED"})


def payment_key(order_reference: str) -> str:
    return f"payment:{order_reference}"


@dataclass(frozen=True, slots=True)
class PaymentStatus:
    status: str
    message: str = ""
    transaction_id: str | None = None
    channel: str | None = None
    updated_at: str | None = None
    event: str | None = None

    @property
    def is_final(self) -> bool:
        return self.status in FINAL_STATUSES

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> PaymentStatus:
        return cls(
            status=str(record.get("status") or "PENDING"),
            message=str(record.get("message") or ""),
            transaction_id=record.get("transactionId"),
            channel=record.get("channel"),
            updated_at=record.get("updatedAt"),
            event=record.get("event"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "message": self.message,
            "transactionId": self.transaction_id,
            "channel": self.channel,
            "updatedAt": self.updated_at,
            "event": self.event,
        }


class PaymentStatusStore(Protocol):
    async def get(self, order_reference: str) -> PaymentStatus | None: ...

    async def ping(self) -> bool: ...


class InMemoryPaymentStatusStore:
    """Dict-backed store for development and tests."""

    def __init__(self) -> None:
        self._records: dict[str, dict[str, Any]] = {}

    def put(self, order_reference: str, record: dict[str, Any]) -> None:
        self._records[payment_key(order_reference)] = record

    async def get(self, order_reference: str) -> PaymentStatus | None:
        record = self._records.get(payment_key(order_reference))
        return PaymentStatus.from_record(record) if record is not None else None

    async def ping(self) -> bool:
        return True


class RedisPaymentStatusStore:
    """Store backed by Redis, values JSON-encoded."""

    def __init__(self, client: Redis) -> None:
        self._client = client

    async def get(self, order_reference: str) -> PaymentStatus | None:
        key = payment_key(order_reference)
        try:
            raw = await self._client.get(key)
        except Exception as exc:
            logger.warning("payment_status_read_failed", key=key, error=str(exc))
            msg = f"Failed to read {key}"
            raise StorageError(msg) from exc

        if raw is None:
            return None
        try:
            record = json.loads(raw)
        except (TypeError, ValueError) as exc:
            msg = f"Corrupt payment status record at {key}"
            raise StorageError(msg) from exc
        if not isinstance(record, dict):
            msg = f"Corrupt payment status record at {key}"
            raise StorageError(msg)
        return PaymentStatus.from_record(record)

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except Exception as exc:
            logger.warning("payment_store_ping_failed", error=str(exc))
            return False
