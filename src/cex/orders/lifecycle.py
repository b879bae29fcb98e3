"""Order status state machine.

Orders are immutable snapshots, so every change produces a new Order that is
re-validated against the model's invariants.
"""

from collections.abc import Iterable
from datetime import datetime
from typing import Any

from cex.errors import InvalidTransitionError, OrderAlreadyTerminalError
from cex.models.base import OrderStatus
from cex.models.order import QUANTITY_EPSILON, Order, utcnow

TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.RECEIVED: frozenset(
        {
            OrderStatus.OPEN,
            OrderStatus.ACTIVE,
            OrderStatus.PENDING,
            OrderStatus.DONE,
            OrderStatus.REJECTED,
        }
    ),
    OrderStatus.OPEN: frozenset(
        {OrderStatus.PENDING, OrderStatus.DONE, OrderStatus.REJECTED}
    ),
    OrderStatus.ACTIVE: frozenset(
        {OrderStatus.OPEN, OrderStatus.DONE, OrderStatus.REJECTED}
    ),
    OrderStatus.PENDING: frozenset({OrderStatus.DONE, OrderStatus.REJECTED}),
    OrderStatus.DONE: frozenset(),
    OrderStatus.REJECTED: frozenset(),
}


def can_transition(src: OrderStatus, dst: OrderStatus) -> bool:
    """Return True if an order may move from ``src`` to ``dst``."""
    return dst in TRANSITIONS.get(src, frozenset())


def transition(
    order: Order,
    status: OrderStatus,
    at: datetime | None = None,
    **changes: Any,
) -> Order:
    """Move an order to ``status`` and return the new snapshot.

    Entering a terminal status stamps ``done_at`` with ``at`` (or now).
    Extra keyword arguments are applied to the new snapshot, e.g.
    ``done_reason`` or ``reject_reason``.

    Raises:
        InvalidTransitionError: If the lifecycle does not allow the move.
    """
    if not can_transition(order.status, status):
        raise InvalidTransitionError(order.id, order.status, status)
    data = order.model_dump()
    data.update(changes)
    data["status"] = status
    if status.is_terminal:
        data["done_at"] = at or utcnow()
    return Order.model_validate(data)


def fill(order: Order, quantity: float, fee: float = 0.0) -> Order:
    """Record a fill of ``quantity`` base currency and its fee.

    The filled quantity only grows and never passes the ordered quantity.
    """
    if order.is_terminal:
        raise OrderAlreadyTerminalError(order.id, order.status)
    if quantity <= 0:
        raise ValueError("fill quantity must be positive")
    if fee < 0:
        raise ValueError("fill fee cannot be negative")

    filled = order.filled_quantity + quantity
    if order.quantity is not None:
        if filled > order.quantity + QUANTITY_EPSILON:
            raise ValueError(
                f"fill of {quantity} exceeds remaining {order.remaining_quantity}"
            )
        filled = min(filled, order.quantity)

    return order.model_copy(
        update={"filled_quantity": filled, "fill_fees": order.fill_fees + fee}
    )


def filter_orders(
    orders: Iterable[Order], status: OrderStatus = OrderStatus.ALL
) -> list[Order]:
    """Select orders by status; ALL keeps every order."""
    if status == OrderStatus.ALL:
        return list(orders)
    return [o for o in orders if o.status == status]
