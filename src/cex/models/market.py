"""Market observation data model."""

from datetime import datetime, timezone

from pydantic import Field

from cex.models.base import FrozenModel


class TradingData(FrozenModel):
    """Trading data for a specific point in time."""

    timestamp: int = Field(ge=0)  # milliseconds since the UNIX epoch
    price: float = Field(gt=0)
    volume: float = Field(ge=0)

    @property
    def time(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp / 1000, tz=timezone.utc)
