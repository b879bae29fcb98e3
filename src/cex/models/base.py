"""Base model and common enums for the exchange contract."""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class FrozenModel(BaseModel):
    """Immutable base model."""

    model_config = ConfigDict(frozen=True)


class Side(str, Enum):
    """Order side: buy or sell."""

    BUY = "buy"
    SELL = "sell"


class OrderType(str, Enum):
    """Order type."""

    LIMIT = "limit"
    MARKET = "market"


class Stop(str, Enum):
    """Stop trigger direction.

    LOSS triggers when the last trade price moves to or below the stop price,
    ENTRY when it moves to or above it.
    """

    LOSS = "loss"
    ENTRY = "entry"


class TimeInForce(str, Enum):
    """How long an order stays eligible for matching."""

    GOOD_TILL_CANCEL = "GTC"
    GOOD_TILL_TIME = "GTT"
    IMMEDIATE_OR_CANCEL = "IOC"
    FILL_OR_KILL = "FOK"


class OrderStatus(str, Enum):
    """Order lifecycle status.

    ALL is never carried by an order; it only means "no filter" when
    querying.
    """

    RECEIVED = "received"
    OPEN = "open"
    ACTIVE = "active"
    PENDING = "pending"
    DONE = "done"
    REJECTED = "rejected"
    ALL = "all"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.DONE, OrderStatus.REJECTED)


class DoneReason(str, Enum):
    """Why an order reached DONE."""

    FILLED = "filled"
    CANCELED = "canceled"
    EXPIRED = "expired"
