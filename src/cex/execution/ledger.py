"""Account ledger with finite capital, order holds and fee tracking."""

import math
from datetime import datetime

import structlog

from cex.errors import InsufficientFundsError, InsufficientHoldingsError
from cex.models import Account, Side, Trade

logger = structlog.get_logger()

EPSILON = 1e-10
REL_TOLERANCE = 1e-12


def exceeds(required: float, available: float) -> bool:
    """True if ``required`` is more than ``available`` beyond float rounding."""
    return required > available and not math.isclose(
        required, available, rel_tol=REL_TOLERANCE, abs_tol=EPSILON
    )


class AccountLedger:
    """Tracks quote balance, base holdings, per-order holds and trade history.

    Fees are charged on every fill in quote currency as
    ``notional * fee_pct / 100``: buys pay notional plus fee, sells receive
    notional minus fee.
    """

    def __init__(
        self,
        balance: float,
        product_quantity: float = 0.0,
        fee_pct: float = 0.0,
    ):
        if balance < 0 or product_quantity < 0:
            raise ValueError("Initial balance and holdings cannot be negative")
        if not 0 <= fee_pct <= 100:
            raise ValueError("fee_pct must be between 0 and 100")
        self._balance = balance
        self._holdings = product_quantity
        self._fee_pct = fee_pct
        self._fund_holds: dict[str, float] = {}
        self._quantity_holds: dict[str, float] = {}
        self._trades: list[Trade] = []

    @property
    def balance(self) -> float:
        """Total quote currency, including held funds."""
        return self._balance

    @property
    def holdings(self) -> float:
        """Total base currency, including quantity held by open sells."""
        return self._holdings

    @property
    def fee_pct(self) -> float:
        return self._fee_pct

    @property
    def available(self) -> float:
        """Quote currency not held by open orders."""
        return max(self._balance - sum(self._fund_holds.values()), 0.0)

    @property
    def available_quantity(self) -> float:
        """Base currency not held by open sell orders."""
        return max(self._holdings - sum(self._quantity_holds.values()), 0.0)

    @property
    def trades(self) -> list[Trade]:
        return list(self._trades)

    def fee_for(self, notional: float) -> float:
        return notional * self._fee_pct / 100

    def held_funds(self, order_id: str) -> float:
        return self._fund_holds.get(order_id, 0.0)

    def held_quantity(self, order_id: str) -> float:
        return self._quantity_holds.get(order_id, 0.0)

    def hold_funds(self, order_id: str, amount: float) -> None:
        """Reserve quote currency for an order.

        Raises:
            InsufficientFundsError: If ``amount`` exceeds what is available.
        """
        if exceeds(amount, self.available):
            logger.warning(
                "ledger_hold_insufficient_funds",
                order_id=order_id,
                required=amount,
                available=self.available,
            )
            raise InsufficientFundsError(amount, self.available)
        self._fund_holds[order_id] = self.held_funds(order_id) + amount

    def hold_quantity(self, order_id: str, quantity: float) -> None:
        """Reserve base currency for a sell order.

        Raises:
            InsufficientHoldingsError: If ``quantity`` exceeds what is available.
        """
        if exceeds(quantity, self.available_quantity):
            logger.warning(
                "ledger_hold_insufficient_holdings",
                order_id=order_id,
                required=quantity,
                available=self.available_quantity,
            )
            raise InsufficientHoldingsError(quantity, self.available_quantity)
        self._quantity_holds[order_id] = self.held_quantity(order_id) + quantity

    def release(self, order_id: str) -> None:
        """Drop whatever is still held for an order."""
        self._fund_holds.pop(order_id, None)
        self._quantity_holds.pop(order_id, None)

    def buy(self, order_id: str, quantity: float, price: float, at: datetime) -> Trade:
        """Buy ``quantity`` at ``price``, paying from the order's hold first.

        Raises:
            InsufficientFundsError: If hold plus available funds cannot pay.
        """
        notional = quantity * price
        fee = self.fee_for(notional)
        return self._book_buy(order_id, quantity, price, notional + fee, fee, at)

    def buy_with_funds(
        self, order_id: str, funds: float, price: float, at: datetime
    ) -> Trade:
        """Spend exactly ``funds`` (fee included) at ``price``."""
        quantity = funds / (price * (1 + self._fee_pct / 100))
        fee = funds - quantity * price
        return self._book_buy(order_id, quantity, price, funds, fee, at)

    def sell(self, order_id: str, quantity: float, price: float, at: datetime) -> Trade:
        """Sell ``quantity`` at ``price``, drawing on the order's hold first.

        Raises:
            InsufficientHoldingsError: If hold plus available holdings fall short.
        """
        usable = self.available_quantity + self.held_quantity(order_id)
        if exceeds(quantity, usable):
            raise InsufficientHoldingsError(quantity, usable)

        proceeds = quantity * price
        fee = self.fee_for(proceeds)
        self._balance += proceeds - fee
        self._holdings = max(self._holdings - quantity, 0.0)
        self._consume(self._quantity_holds, order_id, quantity)

        trade = self._record(order_id, Side.SELL, quantity, price, fee, at)
        logger.info(
            "ledger_sell_executed",
            order_id=order_id,
            qty=quantity,
            price=price,
            fee=fee,
            balance=self._balance,
        )
        return trade

    def snapshot(self, account_id: str, currency: str = "USD") -> Account:
        """Build an immutable Account view of the current state."""
        return Account(
            id=account_id,
            balance=self._balance,
            available=min(self.available, self._balance),
            currency=currency,
            product_quantity=self._holdings,
            fee=self._fee_pct,
        )

    def _book_buy(
        self,
        order_id: str,
        quantity: float,
        price: float,
        total_cost: float,
        fee: float,
        at: datetime,
    ) -> Trade:
        usable = self.available + self.held_funds(order_id)
        if exceeds(total_cost, usable):
            logger.warning(
                "ledger_buy_insufficient_funds",
                order_id=order_id,
                required=total_cost,
                available=usable,
            )
            raise InsufficientFundsError(total_cost, usable)

        self._balance = max(self._balance - total_cost, 0.0)
        self._holdings += quantity
        self._consume(self._fund_holds, order_id, total_cost)

        trade = self._record(order_id, Side.BUY, quantity, price, fee, at)
        logger.info(
            "ledger_buy_executed",
            order_id=order_id,
            qty=quantity,
            price=price,
            fee=fee,
            balance=self._balance,
        )
        return trade

    @staticmethod
    def _consume(holds: dict[str, float], order_id: str, amount: float) -> None:
        if order_id not in holds:
            return
        remaining = holds[order_id] - amount
        if remaining < EPSILON:
            del holds[order_id]
        else:
            holds[order_id] = remaining

    def _record(
        self,
        order_id: str,
        side: Side,
        quantity: float,
        price: float,
        fee: float,
        at: datetime,
    ) -> Trade:
        trade = Trade(
            order_id=order_id,
            price=price,
            side=side,
            quantity=quantity,
            created_at=at,
            fee=fee,
            balance_after_trade=self._balance,
            holdings_after_trade=self._holdings,
        )
        self._trades.append(trade)
        return trade
