"""Exchange factory for creating client instances."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from cex.exchanges.base import ExchangeClient
from cex.monitoring.logger import setup_logging

if TYPE_CHECKING:
    from cex.config import Settings

# Registry of exchange client classes
_adapter_registry: dict[str, type[ExchangeClient]] = {}


def register_adapter(name: str, adapter_class: type[ExchangeClient]) -> None:
    """Register an exchange client class."""
    _adapter_registry[name.lower()] = adapter_class


class ExchangeFactory:
    """Factory for creating exchange client instances."""

    @staticmethod
    def create(name: str, **kwargs: Any) -> ExchangeClient:
        """Create an exchange client by name.

        Args:
            name: Exchange name (e.g., 'simulated')
            **kwargs: Configuration passed to the client constructor

        Returns:
            ExchangeClient instance

        Raises:
            ValueError: If the exchange name is not registered
        """
        adapter_class = _adapter_registry.get(name.lower())
        if adapter_class is None:
            available = ", ".join(_adapter_registry) or "none"
            raise ValueError(
                f"Unknown exchange: '{name}'. Available: {available}"
            )
        return adapter_class(**kwargs)

    @staticmethod
    def from_settings(settings: Settings) -> ExchangeClient:
        """Create the client named by ``settings.exchange``.

        Logging is configured from ``log_level`` and ``log_json`` first.
        The remaining settings are passed as keyword arguments; clients
        ignore the ones they do not use.
        """
        setup_logging(settings.log_level, json_output=settings.log_json)
        return ExchangeFactory.create(
            settings.exchange, **settings.model_dump(exclude={"exchange"})
        )

    @staticmethod
    def available() -> list[str]:
        """Return list of available exchange clients."""
        return list(_adapter_registry)
