"""Order request variants, one per kind of order a client can place.

Each variant carries only the fields its kind needs, so an illegal
combination (a market sell with funds, a limit order without a price)
cannot be built in the first place.
"""

from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import Field, field_validator, model_validator

from cex.models.base import FrozenModel, OrderType, Side, Stop, TimeInForce
from cex.models.order import Order, as_utc


class BaseOrderRequest(FrozenModel):
    """Execution policy shared by every request."""

    time_in_force: TimeInForce = TimeInForce.GOOD_TILL_CANCEL
    cancel_after: datetime | None = None

    @field_validator("cancel_after")
    @classmethod
    def timezone_aware(cls, v: datetime | None) -> datetime | None:
        return as_utc(v)

    @model_validator(mode="after")
    def cancel_after_requires_gtt(self) -> "BaseOrderRequest":
        gtt = self.time_in_force == TimeInForce.GOOD_TILL_TIME
        if self.cancel_after is not None and not gtt:
            raise ValueError("cancel_after is only valid with GTT")
        if gtt and self.cancel_after is None:
            raise ValueError("GTT orders need cancel_after")
        return self

    def _order(self, order_id: str, created_at: datetime, **fields) -> Order:
        return Order(
            id=order_id,
            created_at=created_at,
            time_in_force=self.time_in_force,
            expire_time=self.cancel_after,
            **fields,
        )


class MarketBuy(BaseOrderRequest):
    """Spend ``funds`` of quote currency at the market price."""

    kind: Literal["market_buy"] = "market_buy"
    funds: float = Field(gt=0, allow_inf_nan=False)

    def to_order(self, order_id: str, created_at: datetime) -> Order:
        return self._order(
            order_id, created_at, type=OrderType.MARKET, side=Side.BUY, funds=self.funds
        )


class MarketSell(BaseOrderRequest):
    """Sell ``size`` of base currency at the market price."""

    kind: Literal["market_sell"] = "market_sell"
    size: float = Field(gt=0, allow_inf_nan=False)

    def to_order(self, order_id: str, created_at: datetime) -> Order:
        return self._order(
            order_id, created_at, type=OrderType.MARKET, side=Side.SELL, quantity=self.size
        )


class LimitBuy(BaseOrderRequest):
    """Buy at ``price`` or better, allocating ``funds`` of quote currency."""

    kind: Literal["limit_buy"] = "limit_buy"
    price: float = Field(gt=0, allow_inf_nan=False)
    funds: float = Field(gt=0, allow_inf_nan=False)

    @model_validator(mode="after")
    def quantity_is_positive(self) -> "LimitBuy":
        if not self.funds / self.price > 0:
            raise ValueError("funds are too small to buy any quantity at this price")
        return self

    def to_order(self, order_id: str, created_at: datetime) -> Order:
        return self._order(
            order_id,
            created_at,
            type=OrderType.LIMIT,
            side=Side.BUY,
            price=self.price,
            quantity=self.funds / self.price,
        )


class LimitSell(BaseOrderRequest):
    """Sell ``quantity`` of base currency at ``price`` or better."""

    kind: Literal["limit_sell"] = "limit_sell"
    price: float = Field(gt=0, allow_inf_nan=False)
    quantity: float = Field(gt=0, allow_inf_nan=False)

    def to_order(self, order_id: str, created_at: datetime) -> Order:
        return self._order(
            order_id,
            created_at,
            type=OrderType.LIMIT,
            side=Side.SELL,
            price=self.price,
            quantity=self.quantity,
        )


class StopLoss(BaseOrderRequest):
    """Sell ``size`` at market once the price falls to ``price`` or below."""

    kind: Literal["stop_loss"] = "stop_loss"
    price: float = Field(gt=0, allow_inf_nan=False)
    size: float = Field(gt=0, allow_inf_nan=False)

    def to_order(self, order_id: str, created_at: datetime) -> Order:
        return self._order(
            order_id,
            created_at,
            type=OrderType.MARKET,
            side=Side.SELL,
            stop=Stop.LOSS,
            stop_price=self.price,
            quantity=self.size,
        )


class StopEntry(BaseOrderRequest):
    """Buy ``size`` at market once the price rises to ``price`` or above."""

    kind: Literal["stop_entry"] = "stop_entry"
    price: float = Field(gt=0, allow_inf_nan=False)
    size: float = Field(gt=0, allow_inf_nan=False)

    def to_order(self, order_id: str, created_at: datetime) -> Order:
        return self._order(
            order_id,
            created_at,
            type=OrderType.MARKET,
            side=Side.BUY,
            stop=Stop.ENTRY,
            stop_price=self.price,
            quantity=self.size,
        )


OrderRequest = Annotated[
    Union[MarketBuy, MarketSell, LimitBuy, LimitSell, StopLoss, StopEntry],
    Field(discriminator="kind"),
]
