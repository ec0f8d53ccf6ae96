"""Order status transitions."""
import pytest

from conftest import cart_line
from errors import ConflictError, NotFoundError, ValidationError
from ordering import can_transition, parse_status, place_order, sources_for, update_order_status
from schemas import OrderStatus


@pytest.fixture
def order_id(stocked_store):
    s = stocked_store
    return place_order(s, "Asha", "21CS042", [cart_line(s, s.samosa, 1)], 15.0)


def test_complete_order(stocked_store, order_id):
    assert update_order_status(stocked_store, order_id, "Completed") is OrderStatus.COMPLETED
    assert stocked_store.orders[order_id]["status"] == "Completed"


def test_completing_twice_is_a_no_op(stocked_store, order_id):
    update_order_status(stocked_store, order_id, "Completed")
    before = dict(stocked_store.orders[order_id])

    assert update_order_status(stocked_store, order_id, "Completed") is OrderStatus.COMPLETED
    assert stocked_store.orders[order_id] == before


def test_no_way_back_to_placed(stocked_store, order_id):
    update_order_status(stocked_store, order_id, "Completed")
    with pytest.raises(ConflictError):
        update_order_status(stocked_store, order_id, "Placed")
    assert stocked_store.orders[order_id]["status"] == "Completed"


def test_unknown_order(stocked_store):
    with pytest.raises(NotFoundError):
        update_order_status(stocked_store, "f" * 32, "Completed")


@pytest.mark.parametrize("value", ["completed", "Cancelled", "", None])
def test_unknown_status_rejected(value):
    with pytest.raises(ValidationError):
        parse_status(value)


def test_transition_table():
    assert can_transition(OrderStatus.PLACED, OrderStatus.COMPLETED)
    assert not can_transition(OrderStatus.COMPLETED, OrderStatus.PLACED)
    assert sources_for(OrderStatus.COMPLETED) == [OrderStatus.PLACED, OrderStatus.COMPLETED]
    assert sources_for(OrderStatus.PLACED) == [OrderStatus.PLACED]
