"""Exception taxonomy for exchange clients.

Validation and balance errors are raised before an order exists. Rejections
decided by the venue after an order was registered are not exceptions; they
come back as orders with status REJECTED and a reject_reason.
"""

from cex.models.base import OrderStatus


class ExchangeError(Exception):
    """Base class for all exchange client errors."""


class OrderValidationError(ExchangeError, ValueError):
    """Non-positive amount or price, or a bad time-in-force/expiry combination."""


class InsufficientFundsError(ExchangeError):
    """Requested spend exceeds the available quote balance."""

    def __init__(self, required: float, available: float):
        self.required = required
        self.available = available
        super().__init__(
            f"Insufficient funds: required {required:.8f}, available {available:.8f}"
        )


class InsufficientHoldingsError(ExchangeError):
    """Requested sell quantity exceeds the available base holdings."""

    def __init__(self, required: float, available: float):
        self.required = required
        self.available = available
        super().__init__(
            f"Insufficient holdings: required {required:.8f}, available {available:.8f}"
        )


class OrderNotFoundError(ExchangeError):
    """No order with the given id is known to the client."""

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order not found: {order_id}")


class OrderAlreadyTerminalError(ExchangeError):
    """The order is already DONE or REJECTED and cannot change any more."""

    def __init__(self, order_id: str, status: OrderStatus):
        self.order_id = order_id
        self.status = status
        super().__init__(f"Order {order_id} is already {status.value}")


class InvalidTransitionError(ExchangeError):
    """An order status change that the lifecycle does not allow."""

    def __init__(self, order_id: str, src: OrderStatus, dst: OrderStatus):
        self.order_id = order_id
        self.src = src
        self.dst = dst
        super().__init__(
            f"Order {order_id} cannot move from {src.value} to {dst.value}"
        )
