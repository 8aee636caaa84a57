from datetime import datetime, timezone
from uuid import uuid4

from .cart import CartService
from .errors import DuplicatePayment, EmptyCart
from .logger import logger
from .models import Order, OrderStatus
from .orders import save_order, snapshot_item, total_quantity
from .repositories import OrderRepository, VinylRepository


async def checkout(
    user_id: str,
    payment_id: str,
    cart: CartService,
    orders: OrderRepository,
    vinyls: VinylRepository,
) -> Order:
    """Turn the user's cart into a PENDING order tied to ``payment_id``.

    The cart is read once and cleared only after the order is stored. The
    idempotency marker is left alone: it belongs to payment approval.
    """
    if await orders.find_by_payment_id(payment_id) is not None:
        raise DuplicatePayment(payment_id)

    cart_items = await cart.list_items(user_id)
    if not cart_items:
        raise EmptyCart(user_id)

    items = []
    for vinyl_id, quantity in cart_items.items():
        vinyl = await vinyls.get(vinyl_id)
        items.append(snapshot_item(vinyl_id, quantity or 1, vinyl))

    order = Order(
        id=str(uuid4()),
        user_id=user_id,
        items=items,
        qt=total_quantity(items),
        payment_id=payment_id,
        order_status=OrderStatus.PENDING.value,
        is_payment_confirmed=False,
        created_at=datetime.now(timezone.utc),
    )
    saved = await save_order(order, orders)

    await cart.clear_cart(user_id)
    logger.info(f"Checkout for user {user_id} created order {saved.id} ({saved.qt} items)")
    return saved
