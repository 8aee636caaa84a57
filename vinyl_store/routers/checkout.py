from fastapi import APIRouter, Depends

from ..cart import CartService
from ..checkout import checkout
from ..dependencies import get_cart_service, get_order_repository, get_vinyl_repository
from ..repositories import OrderRepository, VinylRepository
from ..schemas import CheckoutRequest, OrderRead, ResponseJSON

router = APIRouter(prefix="/api/checkout", tags=["checkout"])


@router.post("", response_model=ResponseJSON[OrderRead], status_code=201)
async def post_checkout(
    request: CheckoutRequest,
    cart: CartService = Depends(get_cart_service),
    orders: OrderRepository = Depends(get_order_repository),
    vinyls: VinylRepository = Depends(get_vinyl_repository),
):
    order = await checkout(request.user_id, request.payment_id, cart, orders, vinyls)
    return ResponseJSON(status="created", data=OrderRead.model_validate(order))
