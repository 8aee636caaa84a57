from typing import List

from fastapi import APIRouter, Depends, HTTPException

from ..dependencies import (
    get_mailer,
    get_order_repository,
    get_payment_workflow,
    get_user_repository,
    get_vinyl_repository,
)
from ..mail import Mailer
from ..orders import create_order, send_order_confirmation, update_order
from ..payments import PaymentWorkflow
from ..repositories import OrderRepository, UserRepository, VinylRepository
from ..schemas import OrderCreate, OrderRead, OrderUpdate, ResponseJSON
from ..security import require_user

router = APIRouter(prefix="/api/orders", tags=["orders"], dependencies=[Depends(require_user)])


@router.get("", response_model=ResponseJSON[List[OrderRead]])
async def list_orders(orders: OrderRepository = Depends(get_order_repository)):
    found = await orders.find_all()
    return ResponseJSON(status="success", data=[OrderRead.model_validate(o) for o in found])


@router.get("/by-customer/{user_id}", response_model=ResponseJSON[List[OrderRead]])
async def list_orders_by_customer(user_id: str, orders: OrderRepository = Depends(get_order_repository)):
    found = await orders.find_by_user_id(user_id)
    return ResponseJSON(status="success", data=[OrderRead.model_validate(o) for o in found])


@router.get("/{order_id}", response_model=ResponseJSON[OrderRead])
async def get_order(order_id: str, orders: OrderRepository = Depends(get_order_repository)):
    order = await orders.get(order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return ResponseJSON(status="success", data=OrderRead.model_validate(order))


@router.post("/", response_model=ResponseJSON[OrderRead], status_code=201)
async def post_order(
    order_data: OrderCreate,
    orders: OrderRepository = Depends(get_order_repository),
    vinyls: VinylRepository = Depends(get_vinyl_repository),
    users: UserRepository = Depends(get_user_repository),
    mailer: Mailer = Depends(get_mailer),
):
    order = await create_order(order_data, orders, vinyls)
    await send_order_confirmation(order, users, mailer)
    return ResponseJSON(status="created", data=OrderRead.model_validate(order))


@router.patch("/{order_id}", response_model=ResponseJSON[OrderRead])
async def patch_order(
    order_id: str,
    order_data: OrderUpdate,
    orders: OrderRepository = Depends(get_order_repository),
):
    order = await orders.get(order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    order = await update_order(order, order_data, orders)
    return ResponseJSON(status="success", data=OrderRead.model_validate(order))


@router.delete("/{order_id}", response_model=ResponseJSON[str])
async def delete_order(order_id: str, orders: OrderRepository = Depends(get_order_repository)):
    if not await orders.exists(order_id):
        raise HTTPException(status_code=404, detail="Order not found")
    await orders.delete(order_id)
    return ResponseJSON(status="success", data=order_id)


# ── Payment notifications ───────────────────────


@router.post("/payment/{payment_id}/approve", response_model=ResponseJSON[OrderRead])
async def approve_payment(payment_id: str, workflow: PaymentWorkflow = Depends(get_payment_workflow)):
    result = await workflow.approve(payment_id)
    return ResponseJSON(status=result.status, data=OrderRead.model_validate(result.order))


@router.post("/payment/{payment_id}/fail", response_model=ResponseJSON[OrderRead])
async def fail_payment(payment_id: str, workflow: PaymentWorkflow = Depends(get_payment_workflow)):
    order = await workflow.fail(payment_id)
    return ResponseJSON(status="success", data=OrderRead.model_validate(order))


@router.post("/payment/{payment_id}/cancel", response_model=ResponseJSON[OrderRead])
async def cancel_payment(payment_id: str, workflow: PaymentWorkflow = Depends(get_payment_workflow)):
    order = await workflow.cancel(payment_id)
    return ResponseJSON(status="success", data=OrderRead.model_validate(order))
