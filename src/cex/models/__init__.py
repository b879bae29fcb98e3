"""Core data models for the exchange contract."""

from cex.models.account import Account
from cex.models.base import (
    DoneReason,
    OrderStatus,
    OrderType,
    Side,
    Stop,
    TimeInForce,
)
from cex.models.market import TradingData
from cex.models.order import Order
from cex.models.requests import (
    LimitBuy,
    LimitSell,
    MarketBuy,
    MarketSell,
    OrderRequest,
    StopEntry,
    StopLoss,
)
from cex.models.trade import Trade

__all__ = [
    "Account",
    "DoneReason",
    "LimitBuy",
    "LimitSell",
    "MarketBuy",
    "MarketSell",
    "Order",
    "OrderRequest",
    "OrderStatus",
    "OrderType",
    "Side",
    "Stop",
    "StopEntry",
    "StopLoss",
    "TimeInForce",
    "Trade",
    "TradingData",
]
