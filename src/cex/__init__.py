"""Exchange client contract: orders, trades, accounts and a simulated exchange."""

from cex.config import Settings, load_settings
from cex.errors import (
    ExchangeError,
    InsufficientFundsError,
    InsufficientHoldingsError,
    InvalidTransitionError,
    OrderAlreadyTerminalError,
    OrderNotFoundError,
    OrderValidationError,
)
from cex.exchanges import ExchangeClient, ExchangeFactory, SimulatedExchange
from cex.models import (
    Account,
    DoneReason,
    Order,
    OrderStatus,
    OrderType,
    Side,
    Stop,
    TimeInForce,
    Trade,
    TradingData,
)

__all__ = [
    "Account",
    "DoneReason",
    "ExchangeClient",
    "ExchangeError",
    "ExchangeFactory",
    "InsufficientFundsError",
    "InsufficientHoldingsError",
    "InvalidTransitionError",
    "Order",
    "OrderAlreadyTerminalError",
    "OrderNotFoundError",
    "OrderStatus",
    "OrderType",
    "OrderValidationError",
    "Settings",
    "SimulatedExchange",
    "Side",
    "Stop",
    "TimeInForce",
    "Trade",
    "TradingData",
    "load_settings",
]
