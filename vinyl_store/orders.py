"""Order creation and editing outside the payment workflow."""

from datetime import datetime, timezone
from typing import Iterable, List, Optional
from uuid import uuid4

from sqlalchemy.exc import IntegrityError

from .errors import DuplicatePayment
from .logger import logger
from .mail import Mailer
from .models import Order, OrderStatus, Vinyl
from .repositories import OrderRepository, UserRepository, VinylRepository
from .schemas import OrderCreate, OrderItem, OrderUpdate


def total_quantity(items: Iterable[dict]) -> int:
    return sum(item.get("quantity") or 1 for item in items)


def snapshot_item(vinyl_id: str, quantity: int, vinyl: Optional[Vinyl] = None) -> dict:
    item = OrderItem(vinyl_id=vinyl_id, quantity=quantity)
    if vinyl is not None:
        item.title = vinyl.title
        item.artist = vinyl.artist
        item.price = float(vinyl.price) if vinyl.price is not None else None
        item.cover_path = vinyl.cover_path
    return item.model_dump()


async def save_order(order: Order, orders: OrderRepository) -> Order:
    """Save, reporting a payment id taken by a concurrent writer as DuplicatePayment."""
    try:
        return await orders.save(order)
    except IntegrityError as e:
        raise DuplicatePayment(order.payment_id) from e


async def fill_snapshots(items: List[OrderItem], vinyls: VinylRepository) -> List[dict]:
    """Copy title/artist/price/cover from the catalogue where the item has no title."""
    filled = []
    for item in items:
        if not (item.title and item.title.strip()):
            vinyl = await vinyls.get(item.vinyl_id)
            if vinyl is not None:
                filled.append(snapshot_item(item.vinyl_id, item.quantity, vinyl))
                continue
        filled.append(item.model_dump())
    return filled


async def create_order(data: OrderCreate, orders: OrderRepository, vinyls: VinylRepository) -> Order:
    if data.payment_id and await orders.find_by_payment_id(data.payment_id) is not None:
        raise DuplicatePayment(data.payment_id)
    items = await fill_snapshots(data.items, vinyls)
    order = Order(
        id=str(uuid4()),
        user_id=data.user_id,
        items=items,
        qt=total_quantity(items),
        payment_id=data.payment_id,
        order_status=(data.order_status or OrderStatus.PENDING).value,
        is_payment_confirmed=bool(data.is_payment_confirmed),
        created_at=datetime.now(timezone.utc),
    )
    return await save_order(order, orders)


async def update_order(order: Order, data: OrderUpdate, orders: OrderRepository) -> Order:
    # Checked before any field changes: the lookup refreshes loaded orders
    if data.payment_id is not None and data.payment_id != order.payment_id:
        if await orders.find_by_payment_id(data.payment_id) is not None:
            raise DuplicatePayment(data.payment_id)

    if data.user_id is not None:
        order.user_id = data.user_id
    if data.items is not None:
        order.items = [item.model_dump() for item in data.items]
        order.qt = total_quantity(order.items)
    if data.payment_id is not None:
        order.payment_id = data.payment_id
    if data.order_status is not None:
        order.order_status = data.order_status.value
    if data.is_payment_confirmed is not None:
        order.is_payment_confirmed = data.is_payment_confirmed
    order.updated_at = datetime.now(timezone.utc)
    return await save_order(order, orders)


def confirmation_body(order: Order) -> str:
    lines = "\n".join(
        f"{item.get('title') or item['vinyl_id']} (x{item.get('quantity') or 1})" for item in order.items or []
    )
    return f"Your order has been received. Request Order: {order.id}\nItems:\n{lines}"


async def send_order_confirmation(order: Order, users: UserRepository, mailer: Mailer) -> bool:
    """Best effort: a failed email never fails the order."""
    try:
        user = await users.get(order.user_id)
        if user is None or not (user.email and user.email.strip()):
            return False
        await mailer.send_async(user.email, f"Order confirmation {order.id}", confirmation_body(order))
        return True
    except Exception as e:
        logger.warning(f"Error sending confirmation for order {order.id}: {e}")
        return False
