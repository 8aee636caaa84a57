import asyncio
from datetime import datetime, timezone
from typing import Dict, List, Optional

from vinyl_store.models import Order, OrderStatus, Vinyl


class InMemoryOrderRepository:
    """Stands in for OrderRepository; yields to the loop on every call."""

    def __init__(self):
        self.orders: Dict[str, Order] = {}
        self.saves = 0

    async def get(self, order_id: str) -> Optional[Order]:
        await asyncio.sleep(0)
        return self.orders.get(order_id)

    async def find_by_payment_id(self, payment_id: str) -> Optional[Order]:
        await asyncio.sleep(0)
        return next((o for o in self.orders.values() if o.payment_id == payment_id), None)

    async def find_by_user_id(self, user_id: str) -> List[Order]:
        return [o for o in self.orders.values() if o.user_id == user_id]

    async def find_all(self) -> List[Order]:
        return list(self.orders.values())

    async def exists(self, order_id: str) -> bool:
        return order_id in self.orders

    async def save(self, order: Order) -> Order:
        await asyncio.sleep(0)
        self.orders[order.id] = order
        self.saves += 1
        return order

    async def delete(self, order_id: str) -> None:
        self.orders.pop(order_id, None)


class InMemoryVinylRepository:
    def __init__(self):
        self.vinyls: Dict[str, Vinyl] = {}
        self.saves = 0

    async def get(self, vinyl_id: str) -> Optional[Vinyl]:
        await asyncio.sleep(0)
        return self.vinyls.get(vinyl_id)

    async def find_all(self) -> List[Vinyl]:
        return list(self.vinyls.values())

    async def exists(self, vinyl_id: str) -> bool:
        return vinyl_id in self.vinyls

    async def save(self, vinyl: Vinyl) -> Vinyl:
        await asyncio.sleep(0)
        self.vinyls[vinyl.id] = vinyl
        self.saves += 1
        return vinyl


class InMemoryMarkerStore:
    def __init__(self):
        self.markers = set()
        self.cleared: List[str] = []

    async def try_create(self, payment_id: str) -> bool:
        if payment_id in self.markers:
            return False
        self.markers.add(payment_id)
        return True

    async def clear(self, payment_id: str) -> None:
        self.markers.discard(payment_id)
        self.cleared.append(payment_id)


def make_vinyl(vinyl_id: str, stock: int, price: float = 30.0) -> Vinyl:
    now = datetime.now(timezone.utc)
    return Vinyl(
        id=vinyl_id,
        title=f"Title {vinyl_id}",
        artist=f"Artist {vinyl_id}",
        price=price,
        stock=stock,
        cover_path=f"/covers/{vinyl_id}.jpg",
        gallery=[],
        is_principal=False,
        created_at=now,
        updated_at=now,
    )


def make_order(payment_id: str, items: List[dict], order_id: str = "order-1", user_id: str = "user-1") -> Order:
    return Order(
        id=order_id,
        user_id=user_id,
        items=[{"vinyl_id": i["vinyl_id"], "quantity": i["quantity"]} for i in items],
        qt=sum(i["quantity"] for i in items),
        payment_id=payment_id,
        order_status=OrderStatus.PENDING.value,
        is_payment_confirmed=False,
        created_at=datetime.now(timezone.utc),
        updated_at=None,
    )


