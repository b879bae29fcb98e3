"""Account data model."""

from pydantic import Field, model_validator

from cex.models.base import FrozenModel


class Account(FrozenModel):
    """Snapshot of an account's balance and holdings.

    ``balance`` is the total quote currency; ``available`` excludes the
    amount held by open orders.
    """

    id: str
    balance: float = Field(ge=0)
    available: float = Field(ge=0)
    currency: str = "USD"
    product_quantity: float = Field(default=0.0, ge=0)
    fee: float = Field(default=0.0, ge=0, le=100)

    @model_validator(mode="after")
    def available_within_balance(self) -> "Account":
        # Holds are computed in floats; tolerate rounding at the edge
        if self.available > self.balance + 1e-9:
            raise ValueError("available cannot exceed balance")
        return self
