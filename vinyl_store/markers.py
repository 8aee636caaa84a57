"""Idempotency markers for payment confirmation.

A marker is a short-lived key recording that confirmation for a payment id
has started. It is created with an atomic set-if-absent, so two concurrent
confirmations for the same payment id cannot both proceed. It is not a lock:
it never blocks, it only tells the caller whether it got there first.
"""

from typing import Protocol

import redis.asyncio as aioredis

from .config import CHECKOUT_TTL_SECONDS


class MarkerStore(Protocol):
    async def try_create(self, payment_id: str) -> bool:
        """Create the marker; False if it already exists."""
        ...

    async def clear(self, payment_id: str) -> None:
        """Drop the marker so the payment can be confirmed again."""
        ...


class RedisMarkerStore:
    def __init__(self, redis: aioredis.Redis, ttl_seconds: int = CHECKOUT_TTL_SECONDS):
        self.redis = redis
        self.ttl_seconds = ttl_seconds

    @staticmethod
    def key_for(payment_id: str) -> str:
        return f"checkout:{payment_id}"

    async def try_create(self, payment_id: str) -> bool:
        created = await self.redis.set(f"{self.key_for(payment_id)}:marker", "1", nx=True, ex=self.ttl_seconds)
        return bool(created)

    async def clear(self, payment_id: str) -> None:
        key = self.key_for(payment_id)
        await self.redis.delete(key, f"{key}:marker")
