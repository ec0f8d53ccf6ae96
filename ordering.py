"""
Order placement and order status.

Placement reserves stock for every cart line through the store's conditional
decrement, then records exactly one order. If any line cannot be reserved the
lines that were taken are handed back and nothing is recorded.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from errors import ConflictError, InfrastructureError, NotFoundError, ValidationError
from schemas import CartLine, Order, Orderitem, OrderStatus
from stock import StockLine


logger = logging.getLogger(__name__)

PRICE_TOLERANCE = 0.005


def _require_text(value: Optional[str]) -> str:
    if value is None or not str(value).strip():
        raise ValidationError("Missing required order information.")
    return str(value).strip()


def _validate_cart(cart: List[CartLine]):
    if not cart:
        raise ValidationError("Missing required order information.")
    for line in cart:
        if not line.item.id:
            raise ValidationError("Every cart line needs an item id.")
        if line.quantity <= 0:
            raise ValidationError(f"Quantity for {line.item.name} must be positive.")


def cart_total(cart: List[CartLine]) -> float:
    return round(sum(line.item.price * line.quantity for line in cart), 2)


def build_order_document(
    student_name: str,
    roll_number: str,
    cart: List[CartLine],
    total_price: float,
    created_at: datetime,
) -> Dict:
    """Snapshot the cart into an order. Names and prices come from the cart."""
    order = Order(
        student_name=student_name,
        roll_number=roll_number,
        items=[
            Orderitem(item_id=line.item.id, name=line.item.name, price=line.item.price, quantity=line.quantity)
            for line in cart
        ],
        total_price=total_price,
        status=OrderStatus.PLACED,
    )
    return {**order.model_dump(by_alias=True, mode="json"), "createdAt": created_at}


def place_order(
    store,
    student_name: Optional[str],
    roll_number: Optional[str],
    cart: List[CartLine],
    total_price: Optional[float] = None,
    now: Optional[datetime] = None,
) -> str:
    """Reserve stock for the cart and record the order. Returns the order id.

    Raises ValidationError for a malformed request, ConflictError when any
    line lacks stock (all reserved stock is handed back first), and
    InfrastructureError when the store fails.
    """
    student_name = _require_text(student_name)
    roll_number = _require_text(roll_number)
    _validate_cart(cart)

    expected = cart_total(cart)
    if total_price is None:
        total_price = expected
    elif abs(float(total_price) - expected) > PRICE_TOLERANCE:
        # totalPrice is client-supplied and stored as given
        logger.warning(
            f"Client total {total_price} differs from cart total {expected} "
            f"for roll number {roll_number}"
        )

    lines = [StockLine(item_id=line.item.id, quantity=line.quantity) for line in cart]
    matched = store.decrement_stock(lines)

    if not all(matched):
        reserved = [line for line, ok in zip(lines, matched) if ok]
        missing = [line.item_id for line, ok in zip(lines, matched) if not ok]
        if reserved:
            store.restore_stock(reserved)
        logger.warning(f"Stock conflict, order not placed (items: {', '.join(missing)})")
        raise ConflictError("Some items are out of stock. Please review your cart.", item_ids=missing)

    document = build_order_document(
        student_name,
        roll_number,
        cart,
        float(total_price),
        now or datetime.now(timezone.utc),
    )
    try:
        order_id = store.insert_order(document)
    except InfrastructureError:
        logger.error("Order insert failed, handing reserved stock back")
        store.restore_stock(lines)
        raise

    logger.info(f"Order {order_id} placed with {len(lines)} line(s)")
    return order_id


# Order status

TRANSITIONS = {
    OrderStatus.PLACED: {OrderStatus.PLACED, OrderStatus.COMPLETED},
    OrderStatus.COMPLETED: {OrderStatus.COMPLETED},
}


def parse_status(value: Optional[str]) -> OrderStatus:
    if not value:
        raise ValidationError("Missing status field")
    try:
        return OrderStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in OrderStatus)
        raise ValidationError(f"Invalid status {value!r}, expected one of: {allowed}")


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in TRANSITIONS[current]


def sources_for(target: OrderStatus) -> List[OrderStatus]:
    """States an order may be in for a move to target to be legal."""
    return [state for state in OrderStatus if can_transition(state, target)]


def update_order_status(store, order_id: str, status: Optional[str]) -> OrderStatus:
    """Move an order to status. Repeating the current status is a no-op."""
    target = parse_status(status)
    sources = [state.value for state in sources_for(target)]
    if store.set_order_status(order_id, sources, target.value):
        logger.info(f"Order {order_id} is now {target.value}")
        return target

    order = store.get_order(order_id)
    if order is None:
        raise NotFoundError("Order not found")
    raise ConflictError(f"Cannot move order from {order['status']} to {target.value}")
