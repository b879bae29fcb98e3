"""Trade data model."""

from datetime import datetime

from pydantic import Field

from cex.models.base import FrozenModel, Side


class Trade(FrozenModel):
    """An execution against an order. Trades are append-only records."""

    order_id: str
    price: float = Field(gt=0)
    side: Side
    quantity: float = Field(gt=0)
    created_at: datetime
    fee: float = Field(default=0.0, ge=0)
    balance_after_trade: float | None = None
    holdings_after_trade: float | None = None
