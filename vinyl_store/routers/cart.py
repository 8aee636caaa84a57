from typing import Dict, Optional

from fastapi import APIRouter, Depends, HTTPException

from ..cart import CartService
from ..dependencies import get_cart_service
from ..models import Role
from ..schemas import CartItemQuantity, CartItems, ResponseJSON
from ..security import RequestContext, require_user

def require_cart_owner(user_id: str, ctx: RequestContext = Depends(require_user)) -> RequestContext:
    """Only the cart's owner, or an ADMIN, may touch ``cart:{user_id}``."""
    if ctx.user_id != user_id and not ctx.has_role(Role.ADMIN.value):
        raise HTTPException(status_code=403, detail="Forbidden")
    return ctx


router = APIRouter(prefix="/api/cart", tags=["cart"], dependencies=[Depends(require_cart_owner)])


@router.get("/{user_id}", response_model=ResponseJSON[Dict[str, int]])
async def get_cart(user_id: str, cart: CartService = Depends(get_cart_service)):
    return ResponseJSON(status="success", data=await cart.list_items(user_id))


@router.post("/{user_id}/item/{vinyl_id}", response_model=ResponseJSON[str], status_code=201)
async def add_or_update_item(
    user_id: str,
    vinyl_id: str,
    body: Optional[CartItemQuantity] = None,
    cart: CartService = Depends(get_cart_service),
):
    await cart.put_item(user_id, vinyl_id, body.quantity if body else 1)
    return ResponseJSON(status="created", data="item_added_or_updated")


@router.delete("/{user_id}/item/{vinyl_id}", response_model=ResponseJSON[str])
async def remove_item(user_id: str, vinyl_id: str, cart: CartService = Depends(get_cart_service)):
    await cart.remove_item(user_id, vinyl_id)
    return ResponseJSON(status="success", data="item_removed")


@router.put("/{user_id}", response_model=ResponseJSON[str])
async def set_cart(user_id: str, items: CartItems, cart: CartService = Depends(get_cart_service)):
    await cart.set_cart(user_id, items)
    return ResponseJSON(status="success", data="cart_set")


@router.delete("/{user_id}", response_model=ResponseJSON[str])
async def clear_cart(user_id: str, cart: CartService = Depends(get_cart_service)):
    await cart.clear_cart(user_id)
    return ResponseJSON(status="success", data="cart_cleared")


@router.post("/{user_id}", response_model=ResponseJSON[str], status_code=201)
async def create_cart(user_id: str, items: CartItems, cart: CartService = Depends(get_cart_service)):
    await cart.create_cart(user_id, items)
    return ResponseJSON(status="created", data="cart_created")
