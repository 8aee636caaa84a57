"""
Payment confirmation workflow.

Moves an order from PENDING to CONFIRMED exactly once per payment id and
decrements stock for each of its line items.

Stock is checked for every item before any item is decremented, then
decremented item by item. The two passes are separate reads and writes, so
two confirmations for *different* payment ids that share a vinyl can both
pass the check before either decrements. Closing that gap needs a single
conditional decrement in the store (``UPDATE ... SET stock = stock - :n
WHERE stock >= :n``); this workflow does not do that.

A persistence error during the decrement pass leaves the items already
processed decremented. Nothing here retries.
"""

from dataclasses import dataclass
from datetime import datetime, timezone

from .errors import OrderNotFound, OutOfStock, VinylNotFound
from .logger import logger
from .markers import MarkerStore
from .models import Order, OrderStatus
from .repositories import OrderRepository, VinylRepository

SUCCESS = "success"
ALREADY_PROCESSED = "already_processed"


@dataclass
class ApprovalResult:
    order: Order
    status: str = SUCCESS

    @property
    def already_processed(self) -> bool:
        return self.status == ALREADY_PROCESSED


class PaymentWorkflow:
    def __init__(self, orders: OrderRepository, vinyls: VinylRepository, markers: MarkerStore):
        self.orders = orders
        self.vinyls = vinyls
        self.markers = markers

    async def _load(self, payment_id: str) -> Order:
        order = await self.orders.find_by_payment_id(payment_id)
        if order is None:
            raise OrderNotFound(payment_id)
        return order

    async def approve(self, payment_id: str) -> ApprovalResult:
        order = await self._load(payment_id)

        if not await self.markers.try_create(payment_id):
            logger.info(f"Payment {payment_id} already processed, order {order.id} left as {order.order_status}")
            return ApprovalResult(order=order, status=ALREADY_PROCESSED)

        items = order.items or []

        # 1. Check stock for every item before touching any of them
        for item in items:
            vinyl_id = item["vinyl_id"]
            needed = item.get("quantity") or 1
            vinyl = await self.vinyls.get(vinyl_id)
            if vinyl is None:
                await self.markers.clear(payment_id)
                raise VinylNotFound(vinyl_id)
            if (vinyl.stock or 0) < needed:
                await self.markers.clear(payment_id)
                logger.warning(
                    f"Payment {payment_id}: vinyl {vinyl_id} has {vinyl.stock or 0} in stock, {needed} needed"
                )
                raise OutOfStock(vinyl_id)

        # 2. Decrement
        for item in items:
            needed = item.get("quantity") or 1
            vinyl = await self.vinyls.get(item["vinyl_id"])
            vinyl.stock = (vinyl.stock or 0) - needed
            vinyl.updated_at = datetime.now(timezone.utc)
            await self.vinyls.save(vinyl)

        order.order_status = OrderStatus.CONFIRMED.value
        order.is_payment_confirmed = True
        order.updated_at = datetime.now(timezone.utc)
        saved = await self.orders.save(order)
        logger.info(f"Order {saved.id} confirmed for payment {payment_id}")
        return ApprovalResult(order=saved)

    async def _set_status(self, payment_id: str, status: OrderStatus) -> Order:
        order = await self._load(payment_id)
        order.order_status = status.value
        order.is_payment_confirmed = False
        order.updated_at = datetime.now(timezone.utc)
        saved = await self.orders.save(order)
        logger.info(f"Order {saved.id} status updated to {status.value}")
        return saved

    async def fail(self, payment_id: str) -> Order:
        return await self._set_status(payment_id, OrderStatus.FAILED)

    async def cancel(self, payment_id: str) -> Order:
        return await self._set_status(payment_id, OrderStatus.CANCELED)
