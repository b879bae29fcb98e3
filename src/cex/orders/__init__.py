"""Order lifecycle rules."""

from cex.orders.lifecycle import (
    TRANSITIONS,
    can_transition,
    filter_orders,
    fill,
    transition,
)

__all__ = ["TRANSITIONS", "can_transition", "fill", "filter_orders", "transition"]
