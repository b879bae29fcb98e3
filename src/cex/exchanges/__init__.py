"""Exchange clients package."""

from cex.exchanges.base import ExchangeClient
from cex.exchanges.factory import ExchangeFactory, register_adapter
from cex.exchanges.simulated import SimulatedExchange

__all__ = ["ExchangeClient", "ExchangeFactory", "SimulatedExchange", "register_adapter"]
