"""Abstract exchange client interface."""

from abc import ABC, abstractmethod
from datetime import datetime

from pydantic import TypeAdapter, ValidationError

from cex.errors import OrderValidationError
from cex.models import Account, Order, OrderRequest, TimeInForce, Trade

_request_adapter: TypeAdapter[OrderRequest] = TypeAdapter(OrderRequest)


def build_request(kind: str, **fields) -> OrderRequest:
    """Build an order request variant, translating validation failures.

    Raises:
        OrderValidationError: If an amount or price is not positive, or the
            time-in-force and cancel_after do not agree.
    """
    try:
        return _request_adapter.validate_python({"kind": kind, **fields})
    except ValidationError as e:
        raise OrderValidationError(f"Invalid {kind} order: {e}") from e


class ExchangeClient(ABC):
    """Abstract base class for exchange clients, live or simulated.

    All methods are async; an implementation that completes synchronously
    simply returns without awaiting anything. Every value returned is an
    immutable snapshot.

    The six placement methods validate their arguments into an
    ``OrderRequest`` and hand it to ``submit``, so implementations only
    write one placement path.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the exchange name."""

    @abstractmethod
    async def submit(self, request: OrderRequest) -> Order:
        """Register a validated order request and return the created order.

        Raises:
            InsufficientFundsError: If a buy needs more than is available.
            InsufficientHoldingsError: If a sell needs more than is held.
        """

    async def market_buy_order(
        self,
        funds: float,
        time_in_force: TimeInForce = TimeInForce.GOOD_TILL_CANCEL,
        cancel_after: datetime | None = None,
    ) -> Order:
        """Spend ``funds`` of quote currency at the current market price."""
        return await self.submit(
            build_request(
                "market_buy",
                funds=funds,
                time_in_force=time_in_force,
                cancel_after=cancel_after,
            )
        )

    async def market_sell_order(
        self,
        size: float,
        time_in_force: TimeInForce = TimeInForce.GOOD_TILL_CANCEL,
        cancel_after: datetime | None = None,
    ) -> Order:
        """Sell ``size`` of base currency at the current market price."""
        return await self.submit(
            build_request(
                "market_sell",
                size=size,
                time_in_force=time_in_force,
                cancel_after=cancel_after,
            )
        )

    async def limit_buy_order(
        self,
        price: float,
        funds: float,
        time_in_force: TimeInForce = TimeInForce.GOOD_TILL_CANCEL,
        cancel_after: datetime | None = None,
    ) -> Order:
        """Buy at ``price`` or better, allocating ``funds`` of quote currency."""
        return await self.submit(
            build_request(
                "limit_buy",
                price=price,
                funds=funds,
                time_in_force=time_in_force,
                cancel_after=cancel_after,
            )
        )

    async def limit_sell_order(
        self,
        price: float,
        quantity: float,
        time_in_force: TimeInForce = TimeInForce.GOOD_TILL_CANCEL,
        cancel_after: datetime | None = None,
    ) -> Order:
        """Sell ``quantity`` of base currency at ``price`` or better."""
        return await self.submit(
            build_request(
                "limit_sell",
                price=price,
                quantity=quantity,
                time_in_force=time_in_force,
                cancel_after=cancel_after,
            )
        )

    async def stop_loss_order(
        self,
        price: float,
        size: float,
        time_in_force: TimeInForce = TimeInForce.GOOD_TILL_CANCEL,
        cancel_after: datetime | None = None,
    ) -> Order:
        """Sell ``size`` once the price drops to or below ``price``."""
        return await self.submit(
            build_request(
                "stop_loss",
                price=price,
                size=size,
                time_in_force=time_in_force,
                cancel_after=cancel_after,
            )
        )

    async def stop_entry_order(
        self,
        price: float,
        size: float,
        time_in_force: TimeInForce = TimeInForce.GOOD_TILL_CANCEL,
        cancel_after: datetime | None = None,
    ) -> Order:
        """Buy ``size`` once the price rises to or above ``price``."""
        return await self.submit(
            build_request(
                "stop_entry",
                price=price,
                size=size,
                time_in_force=time_in_force,
                cancel_after=cancel_after,
            )
        )

    @abstractmethod
    async def cancel_order(self, order_id: str) -> None:
        """Cancel a non-terminal order.

        Raises:
            OrderNotFoundError: If the id is unknown.
            OrderAlreadyTerminalError: If the order is already DONE or REJECTED.
        """

    @abstractmethod
    async def cancel_all_orders(self) -> None:
        """Cancel every non-terminal order as one step."""

    @abstractmethod
    async def get_all_orders(self) -> list[Order]:
        """Return every order of the account, across all statuses."""

    @abstractmethod
    async def get_all_trades(self) -> list[Trade]:
        """Return the account's trade history, oldest first."""

    @abstractmethod
    async def get_account(self) -> Account:
        """Return a snapshot of balance, holds and holdings."""

    async def close(self) -> None:
        """Clean up resources. Override if needed."""
