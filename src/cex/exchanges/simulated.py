"""In-memory simulated exchange priced against observed trading data.

There is no order book and no counterparty: market orders fill at the last
observed price, resting limit orders fill at their limit price once the last
price crosses it, and each observation's volume caps how much limit quantity
can match on it.
"""

from __future__ import annotations

import asyncio
import math
import uuid
from datetime import datetime

import structlog

from cex.errors import (
    InsufficientFundsError,
    InsufficientHoldingsError,
    OrderAlreadyTerminalError,
    OrderNotFoundError,
    OrderValidationError,
)
from cex.exchanges.base import ExchangeClient
from cex.exchanges.factory import register_adapter
from cex.execution.ledger import EPSILON, AccountLedger
from cex.models import (
    Account,
    DoneReason,
    LimitBuy,
    Order,
    OrderRequest,
    OrderStatus,
    OrderType,
    Side,
    Stop,
    TimeInForce,
    Trade,
    TradingData,
)
from cex.models.order import utcnow
from cex.orders import fill, transition

logger = structlog.get_logger()


class SimulatedExchange(ExchangeClient):
    """Exchange client backed by an AccountLedger and a price feed.

    Orders placed before any price is known stay RECEIVED until the first
    call to ``on_trading_data``. With ``settlement_ticks > 0`` filled orders
    wait in PENDING for that many further observations before becoming DONE;
    their trades and balances are final as soon as they fill.

    A single lock serializes every operation, so ``cancel_all_orders`` is
    never observed half done.
    """

    def __init__(
        self,
        product_name: str = "BTC-USD",
        account_balance: float = 10000.0,
        fee: float = 0.0,
        product_quantity: float = 0.0,
        currency: str = "USD",
        account_id: str = "simulated",
        settlement_ticks: int = 0,
        **kwargs,
    ):
        if settlement_ticks < 0:
            raise ValueError("settlement_ticks cannot be negative")
        self._product_name = product_name
        self._currency = currency
        self._account_id = account_id
        self._settlement_ticks = settlement_ticks
        self._ledger = AccountLedger(
            balance=account_balance,
            product_quantity=product_quantity,
            fee_pct=fee,
        )
        self._orders: dict[str, Order] = {}
        self._settlements: dict[str, int] = {}
        self._last: TradingData | None = None
        self._liquidity = 0.0
        self._lock = asyncio.Lock()

    @property
    def name(self) -> str:
        return "simulated"

    @property
    def product_name(self) -> str:
        return self._product_name

    @property
    def last_price(self) -> float | None:
        return self._last.price if self._last else None

    # ------------------------------------------------------------------
    # Client operations
    # ------------------------------------------------------------------

    async def submit(self, request: OrderRequest) -> Order:
        async with self._lock:
            now = self._now()
            if request.cancel_after is not None and request.cancel_after <= now:
                raise OrderValidationError("cancel_after must be in the future")

            order = request.to_order(f"sim-{uuid.uuid4().hex[:12]}", now)
            self._reserve(order, request)
            self._orders[order.id] = order
            logger.info(
                "order_received",
                order_id=order.id,
                kind=request.kind,
                product=self._product_name,
                side=order.side.value,
                quantity=order.quantity,
                funds=order.funds,
                price=order.price,
                stop_price=order.stop_price,
            )

            if self._last is not None:
                self._acknowledge(order.id)
            return self._orders[order.id]

    async def cancel_order(self, order_id: str) -> None:
        async with self._lock:
            self._cancel_one(order_id)

    async def cancel_all_orders(self) -> None:
        async with self._lock:
            open_ids = [oid for oid, o in self._orders.items() if not o.is_terminal]
            for order_id in open_ids:
                self._cancel_one(order_id)
            logger.info("orders_canceled", count=len(open_ids))

    async def get_order(self, order_id: str) -> Order:
        """Return the current snapshot of one order."""
        async with self._lock:
            order = self._orders.get(order_id)
            if order is None:
                raise OrderNotFoundError(order_id)
            return order

    async def get_all_orders(self) -> list[Order]:
        async with self._lock:
            return list(self._orders.values())

    async def get_all_trades(self) -> list[Trade]:
        async with self._lock:
            return self._ledger.trades

    async def get_account(self) -> Account:
        async with self._lock:
            return self._ledger.snapshot(self._account_id, self._currency)

    # ------------------------------------------------------------------
    # Price feed
    # ------------------------------------------------------------------

    async def on_trading_data(self, data: TradingData) -> None:
        """Advance the simulation to a new market observation.

        Settles PENDING orders, expires GTT orders, acknowledges RECEIVED
        orders, triggers stop orders and matches resting limit orders, in
        order of creation.
        """
        async with self._lock:
            if self._last is not None and data.timestamp < self._last.timestamp:
                raise ValueError(
                    f"Trading data out of order: {data.timestamp} < {self._last.timestamp}"
                )
            self._last = data
            self._liquidity = data.volume
            logger.debug(
                "trading_data", timestamp=data.timestamp, price=data.price, volume=data.volume
            )

            self._advance_settlements()
            for order_id in list(self._orders):
                order = self._orders[order_id]
                if order.is_terminal or order.status == OrderStatus.PENDING:
                    continue
                if order.expire_time is not None and order.expire_time <= data.time:
                    self._close(order_id, DoneReason.EXPIRED)
                elif order.status == OrderStatus.RECEIVED:
                    self._acknowledge(order_id)
                elif order.status == OrderStatus.ACTIVE:
                    self._check_trigger(order_id)
                elif order.status == OrderStatus.OPEN:
                    self._match_resting(order_id)

    async def update_price(
        self,
        price: float,
        volume: float = math.inf,
        timestamp: int | None = None,
    ) -> None:
        """Feed a price observation; unlimited volume unless given."""
        if timestamp is None:
            if self._last is not None:
                timestamp = self._last.timestamp + 1000
            else:
                timestamp = int(utcnow().timestamp() * 1000)
        await self.on_trading_data(
            TradingData(timestamp=timestamp, price=price, volume=volume)
        )

    # ------------------------------------------------------------------
    # Internals; callers hold the lock
    # ------------------------------------------------------------------

    def _now(self) -> datetime:
        return self._last.time if self._last is not None else utcnow()

    def _reserve(self, order: Order, request: OrderRequest) -> None:
        fee_factor = 1 + self._ledger.fee_pct / 100
        if order.side == Side.SELL:
            self._ledger.hold_quantity(order.id, order.quantity)
        elif order.funds is not None:
            self._ledger.hold_funds(order.id, order.funds)
        elif isinstance(request, LimitBuy):
            self._ledger.hold_funds(order.id, request.funds * fee_factor)
        elif order.stop_price is not None:
            self._ledger.hold_funds(order.id, order.quantity * order.stop_price * fee_factor)
        else:
            self._ledger.hold_funds(order.id, order.quantity * order.price * fee_factor)

    def _acknowledge(self, order_id: str) -> None:
        order = self._orders[order_id]
        if order.is_stop:
            self._orders[order_id] = transition(order, OrderStatus.ACTIVE)
            logger.info("stop_order_active", order_id=order_id, stop_price=order.stop_price)
            self._check_trigger(order_id)
        elif order.type == OrderType.MARKET:
            self._execute_market(order_id)
        else:
            self._acknowledge_limit(order_id)

    def _acknowledge_limit(self, order_id: str) -> None:
        order = self._orders[order_id]
        remaining = order.remaining_quantity
        matchable = min(remaining, self._liquidity) if self._crosses(order) else 0.0

        if (
            order.time_in_force == TimeInForce.FILL_OR_KILL
            and matchable < remaining - EPSILON
        ):
            self._reject(order_id, "Fill or kill order could not be fully matched")
            return

        self._orders[order_id] = transition(order, OrderStatus.OPEN)
        if matchable > EPSILON:
            self._fill_limit(order_id, matchable, self._last.price)

        order = self._orders[order_id]
        if order.status == OrderStatus.OPEN and order.time_in_force in (
            TimeInForce.IMMEDIATE_OR_CANCEL,
            TimeInForce.FILL_OR_KILL,
        ):
            self._close(order_id, DoneReason.CANCELED)

    def _check_trigger(self, order_id: str) -> None:
        order = self._orders[order_id]
        price = self._last.price
        if order.stop == Stop.LOSS:
            triggered = price <= order.stop_price
        else:
            triggered = price >= order.stop_price
        if not triggered:
            return
        logger.info(
            "stop_order_triggered",
            order_id=order_id,
            stop=order.stop.value,
            stop_price=order.stop_price,
            price=price,
        )
        self._orders[order_id] = transition(order, OrderStatus.OPEN)
        self._execute_market(order_id)

    def _match_resting(self, order_id: str) -> None:
        order = self._orders[order_id]
        if order.type != OrderType.LIMIT or not self._crosses(order):
            return
        quantity = min(order.remaining_quantity, self._liquidity)
        if quantity > EPSILON:
            self._fill_limit(order_id, quantity, order.price)

    def _crosses(self, order: Order) -> bool:
        price = self._last.price
        if order.side == Side.BUY:
            return price <= order.price
        return price >= order.price

    def _execute_market(self, order_id: str) -> None:
        order = self._orders[order_id]
        price = self._last.price
        at = self._now()
        try:
            if order.funds is not None:
                trade = self._ledger.buy_with_funds(order_id, order.funds, price, at)
            elif order.side == Side.BUY:
                trade = self._ledger.buy(order_id, order.remaining_quantity, price, at)
            else:
                trade = self._ledger.sell(order_id, order.remaining_quantity, price, at)
        except (InsufficientFundsError, InsufficientHoldingsError) as e:
            self._reject(order_id, str(e))
            return

        self._orders[order_id] = fill(order, trade.quantity, trade.fee)
        logger.info(
            "order_filled",
            order_id=order_id,
            qty=trade.quantity,
            price=trade.price,
            fee=trade.fee,
        )
        self._complete(order_id)

    def _fill_limit(self, order_id: str, quantity: float, price: float) -> None:
        order = self._orders[order_id]
        at = self._now()
        if order.side == Side.BUY:
            trade = self._ledger.buy(order_id, quantity, price, at)
        else:
            trade = self._ledger.sell(order_id, quantity, price, at)
        self._liquidity = max(self._liquidity - quantity, 0.0)

        order = fill(order, trade.quantity, trade.fee)
        self._orders[order_id] = order
        if order.remaining_quantity <= EPSILON:
            logger.info("order_filled", order_id=order_id, qty=quantity, price=price)
            self._complete(order_id)
        else:
            logger.info(
                "order_partially_filled",
                order_id=order_id,
                qty=quantity,
                price=price,
                remaining=order.remaining_quantity,
            )

    def _complete(self, order_id: str) -> None:
        self._ledger.release(order_id)
        order = self._orders[order_id]
        if self._settlement_ticks > 0:
            self._orders[order_id] = transition(order, OrderStatus.PENDING)
            self._settlements[order_id] = self._settlement_ticks
        else:
            self._orders[order_id] = transition(
                order, OrderStatus.DONE, at=self._now(), done_reason=DoneReason.FILLED
            )

    def _advance_settlements(self) -> None:
        for order_id in list(self._settlements):
            self._settlements[order_id] -= 1
            if self._settlements[order_id] <= 0:
                self._settle(order_id)

    def _settle(self, order_id: str) -> None:
        del self._settlements[order_id]
        self._orders[order_id] = transition(
            self._orders[order_id],
            OrderStatus.DONE,
            at=self._now(),
            done_reason=DoneReason.FILLED,
        )
        logger.info("order_settled", order_id=order_id)

    def _close(self, order_id: str, reason: DoneReason) -> None:
        self._ledger.release(order_id)
        self._orders[order_id] = transition(
            self._orders[order_id], OrderStatus.DONE, at=self._now(), done_reason=reason
        )
        logger.info("order_closed", order_id=order_id, reason=reason.value)

    def _reject(self, order_id: str, reason: str) -> None:
        self._ledger.release(order_id)
        self._orders[order_id] = transition(
            self._orders[order_id],
            OrderStatus.REJECTED,
            at=self._now(),
            reject_reason=reason,
        )
        logger.warning("order_rejected", order_id=order_id, reason=reason)

    def _cancel_one(self, order_id: str) -> None:
        order = self._orders.get(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        if order.is_terminal:
            raise OrderAlreadyTerminalError(order_id, order.status)
        if order.status == OrderStatus.PENDING:
            # Execution is final; cancelling only ends the wait
            self._settle(order_id)
        else:
            self._close(order_id, DoneReason.CANCELED)


register_adapter("simulated", SimulatedExchange)
