import asyncio

import pytest

from tests.fakes import make_order, make_vinyl
from vinyl_store.errors import OrderNotFound, OutOfStock, VinylNotFound
from vinyl_store.models import OrderStatus
from vinyl_store.payments import ALREADY_PROCESSED, SUCCESS, PaymentWorkflow


@pytest.fixture
def workflow(order_repo, vinyl_repo, marker_store):
    return PaymentWorkflow(order_repo, vinyl_repo, marker_store)


@pytest.fixture
def two_item_order(order_repo):
    order = make_order("pay-1", [{"vinyl_id": "A", "quantity": 2}, {"vinyl_id": "B", "quantity": 1}])
    order_repo.orders[order.id] = order
    return order


@pytest.mark.asyncio
async def test_approve_decrements_stock_and_confirms(workflow, vinyl_repo, two_item_order):
    """
    Stock A=5, B=3: approval leaves A=3, B=2 and the order CONFIRMED.
    """
    vinyl_repo.vinyls = {"A": make_vinyl("A", 5), "B": make_vinyl("B", 3)}

    result = await workflow.approve("pay-1")

    assert result.status == SUCCESS
    assert vinyl_repo.vinyls["A"].stock == 3
    assert vinyl_repo.vinyls["B"].stock == 2
    assert result.order.order_status == OrderStatus.CONFIRMED.value
    assert result.order.is_payment_confirmed is True
    assert result.order.updated_at is not None


@pytest.mark.asyncio
async def test_out_of_stock_touches_nothing_and_clears_marker(workflow, vinyl_repo, marker_store, two_item_order):
    """
    Stock A=5, B=0: OutOfStock("B"), A untouched, order PENDING, marker gone.
    """
    vinyl_repo.vinyls = {"A": make_vinyl("A", 5), "B": make_vinyl("B", 0)}

    with pytest.raises(OutOfStock) as exc_info:
        await workflow.approve("pay-1")

    assert exc_info.value.vinyl_id == "B"
    assert vinyl_repo.vinyls["A"].stock == 5
    assert vinyl_repo.saves == 0
    assert two_item_order.order_status == OrderStatus.PENDING.value
    assert two_item_order.is_payment_confirmed is False
    assert "pay-1" not in marker_store.markers
    assert marker_store.cleared == ["pay-1"]


@pytest.mark.asyncio
async def test_retry_after_restock_succeeds(workflow, vinyl_repo, two_item_order):
    vinyl_repo.vinyls = {"A": make_vinyl("A", 5), "B": make_vinyl("B", 0)}
    with pytest.raises(OutOfStock):
        await workflow.approve("pay-1")

    vinyl_repo.vinyls["B"].stock = 3
    result = await workflow.approve("pay-1")

    assert result.status == SUCCESS
    assert vinyl_repo.vinyls["A"].stock == 3
    assert vinyl_repo.vinyls["B"].stock == 2


@pytest.mark.asyncio
async def test_unknown_payment_id(workflow, order_repo, marker_store):
    with pytest.raises(OrderNotFound):
        await workflow.approve("missing")

    assert order_repo.saves == 0
    assert marker_store.markers == set()


@pytest.mark.asyncio
async def test_missing_vinyl_clears_marker(workflow, vinyl_repo, marker_store, two_item_order):
    vinyl_repo.vinyls = {"A": make_vinyl("A", 5)}

    with pytest.raises(VinylNotFound):
        await workflow.approve("pay-1")

    assert marker_store.markers == set()
    assert vinyl_repo.vinyls["A"].stock == 5


@pytest.mark.asyncio
async def test_second_approval_is_already_processed(workflow, vinyl_repo, two_item_order):
    vinyl_repo.vinyls = {"A": make_vinyl("A", 5), "B": make_vinyl("B", 3)}

    await workflow.approve("pay-1")
    again = await workflow.approve("pay-1")

    assert again.status == ALREADY_PROCESSED
    assert again.already_processed
    assert vinyl_repo.vinyls["A"].stock == 3
    assert vinyl_repo.vinyls["B"].stock == 2


@pytest.mark.asyncio
async def test_concurrent_approvals_decrement_once(workflow, vinyl_repo, order_repo, two_item_order):
    """
    Two approvals racing for one payment id: one confirms, the other
    observes already_processed, stock moves once.
    """
    vinyl_repo.vinyls = {"A": make_vinyl("A", 5), "B": make_vinyl("B", 3)}

    results = await asyncio.gather(workflow.approve("pay-1"), workflow.approve("pay-1"))

    statuses = sorted(r.status for r in results)
    assert statuses == [ALREADY_PROCESSED, SUCCESS]
    assert vinyl_repo.vinyls["A"].stock == 3
    assert vinyl_repo.vinyls["B"].stock == 2
    assert order_repo.saves == 1
    assert order_repo.orders["order-1"].order_status == OrderStatus.CONFIRMED.value


@pytest.mark.asyncio
async def test_order_without_items_is_confirmed(workflow, order_repo, vinyl_repo):
    order = make_order("pay-empty", [], order_id="order-empty")
    order_repo.orders[order.id] = order

    result = await workflow.approve("pay-empty")

    assert result.order.order_status == OrderStatus.CONFIRMED.value
    assert vinyl_repo.saves == 0


@pytest.mark.asyncio
async def test_fail_payment(workflow, marker_store, vinyl_repo, two_item_order):
    vinyl_repo.vinyls = {"A": make_vinyl("A", 5), "B": make_vinyl("B", 3)}

    order = await workflow.fail("pay-1")

    assert order.order_status == OrderStatus.FAILED.value
    assert order.is_payment_confirmed is False
    assert vinyl_repo.saves == 0
    assert marker_store.markers == set()


@pytest.mark.asyncio
async def test_cancel_payment(workflow, marker_store, two_item_order):
    order = await workflow.cancel("pay-1")

    assert order.order_status == OrderStatus.CANCELED.value
    assert order.is_payment_confirmed is False
    assert marker_store.markers == set()


@pytest.mark.asyncio
async def test_fail_unknown_payment(workflow):
    with pytest.raises(OrderNotFound):
        await workflow.fail("nope")
    with pytest.raises(OrderNotFound):
        await workflow.cancel("nope")
