"""Order data model."""

from datetime import datetime, timezone

from pydantic import Field, field_validator, model_validator

from cex.models.base import (
    DoneReason,
    FrozenModel,
    OrderStatus,
    OrderType,
    Side,
    Stop,
    TimeInForce,
)

# Float slack when comparing filled against ordered quantity
QUANTITY_EPSILON = 1e-10


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Order(FrozenModel):
    """Represents a single trading instruction.

    Funds-denominated orders (market buys) carry ``funds`` and no
    ``quantity``; every other order carries ``quantity`` in base currency.
    Stop orders execute at market once triggered, so they are MARKET orders
    with ``stop`` and ``stop_price`` set.
    """

    id: str
    type: OrderType
    side: Side
    status: OrderStatus = OrderStatus.RECEIVED
    time_in_force: TimeInForce = TimeInForce.GOOD_TILL_CANCEL
    quantity: float | None = Field(default=None, gt=0)
    funds: float | None = Field(default=None, gt=0)
    filled_quantity: float = Field(default=0.0, ge=0)
    price: float | None = Field(default=None, gt=0)
    stop: Stop | None = None
    stop_price: float | None = Field(default=None, gt=0)
    created_at: datetime = Field(default_factory=utcnow)
    expire_time: datetime | None = None
    done_at: datetime | None = None
    done_reason: DoneReason | None = None
    reject_reason: str | None = None
    fill_fees: float = Field(default=0.0, ge=0)

    @field_validator("created_at", "expire_time", "done_at")
    @classmethod
    def timezone_aware(cls, v: datetime | None) -> datetime | None:
        return as_utc(v)

    @model_validator(mode="after")
    def check_amounts(self) -> "Order":
        if self.funds is not None:
            if self.type != OrderType.MARKET or self.side != Side.BUY or self.stop:
                raise ValueError("funds are only valid on market buy orders")
            if self.quantity is not None:
                raise ValueError("an order carries either quantity or funds, not both")
        elif self.quantity is None:
            raise ValueError("quantity is required unless funds are given")
        if (
            self.quantity is not None
            and self.filled_quantity > self.quantity + QUANTITY_EPSILON
        ):
            raise ValueError("filled_quantity cannot exceed quantity")
        return self

    @model_validator(mode="after")
    def check_pricing(self) -> "Order":
        if self.type == OrderType.LIMIT:
            if self.price is None:
                raise ValueError("Limit orders must have a positive price")
            if self.stop is not None:
                raise ValueError("Limit orders cannot carry a stop")
        elif self.price is not None:
            raise ValueError("Market orders are filled at market and take no price")

        if (self.stop is None) != (self.stop_price is None):
            raise ValueError("stop and stop_price must be given together")
        if self.stop == Stop.LOSS and self.side != Side.SELL:
            raise ValueError("stop loss orders must sell")
        if self.stop == Stop.ENTRY and self.side != Side.BUY:
            raise ValueError("stop entry orders must buy")
        return self

    @model_validator(mode="after")
    def check_timing(self) -> "Order":
        gtt = self.time_in_force == TimeInForce.GOOD_TILL_TIME
        if gtt and self.expire_time is None:
            raise ValueError("GTT orders need an expire_time")
        if not gtt and self.expire_time is not None:
            raise ValueError("expire_time is only valid with GTT")
        return self

    @model_validator(mode="after")
    def check_status(self) -> "Order":
        if self.status == OrderStatus.ALL:
            raise ValueError("ALL is a query filter, not an order status")
        if self.status.is_terminal != (self.done_at is not None):
            raise ValueError("done_at is set exactly when the order is terminal")
        if self.done_reason is not None and self.status != OrderStatus.DONE:
            raise ValueError("done_reason requires status DONE")
        if self.reject_reason is not None and self.status != OrderStatus.REJECTED:
            raise ValueError("reject_reason requires status REJECTED")
        return self

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def is_stop(self) -> bool:
        return self.stop is not None

    @property
    def remaining_quantity(self) -> float | None:
        """Base quantity still to fill, or None for funds-denominated orders."""
        if self.quantity is None:
            return None
        return max(self.quantity - self.filled_quantity, 0.0)
