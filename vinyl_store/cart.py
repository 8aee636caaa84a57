from typing import Dict

import redis.asyncio as aioredis

from .config import CART_TTL_SECONDS


class CartService:
    """Per-user cart kept in a Redis hash (vinyl id -> quantity).

    Every write refreshes the expiry, so an untouched cart disappears after
    ``ttl_seconds``.
    """

    def __init__(self, redis: aioredis.Redis, ttl_seconds: int = CART_TTL_SECONDS):
        self.redis = redis
        self.ttl_seconds = ttl_seconds

    @staticmethod
    def key_for(user_id: str) -> str:
        return f"cart:{user_id}"

    async def put_item(self, user_id: str, vinyl_id: str, quantity: int) -> None:
        key = self.key_for(user_id)
        await self.redis.hset(key, vinyl_id, str(quantity))
        await self.redis.expire(key, self.ttl_seconds)

    async def remove_item(self, user_id: str, vinyl_id: str) -> None:
        await self.redis.hdel(self.key_for(user_id), vinyl_id)

    async def list_items(self, user_id: str) -> Dict[str, int]:
        entries = await self.redis.hgetall(self.key_for(user_id))
        if not entries:
            return {}
        return {str(k): int(v) for k, v in entries.items()}

    async def clear_cart(self, user_id: str) -> None:
        await self.redis.delete(self.key_for(user_id))

    async def set_cart(self, user_id: str, items: Dict[str, int]) -> None:
        # Merges into the existing hash, entries not in ``items`` are kept
        if not items:
            return
        key = self.key_for(user_id)
        await self.redis.hset(key, mapping={k: str(v) for k, v in items.items()})
        await self.redis.expire(key, self.ttl_seconds)

    async def create_cart(self, user_id: str, items: Dict[str, int]) -> None:
        await self.set_cart(user_id, items)
