"""Bar (OHLCV) and quote data models."""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, model_validator

NANOS_PER_SECOND = 1_000_000_000


class Bar(BaseModel):
    """OHLCV bar with a nanosecond-precision Unix timestamp."""

    model_config = ConfigDict(frozen=True)

    timestamp_ns: int
    open: float
    high: float
    low: float
    close: float
    volume: int = 0

    @model_validator(mode="after")
    def _check_price_range(self) -> "Bar":
        if not (self.low <= min(self.open, self.close) <= max(self.open, self.close) <= self.high):
            raise ValueError(
                f"Inconsistent bar prices: open={self.open} high={self.high} "
                f"low={self.low} close={self.close}"
            )
        if self.volume < 0:
            raise ValueError(f"Bar volume must be non-negative, got {self.volume}")
        return self

    @property
    def timestamp(self) -> datetime:
        """Bar time as a timezone-aware UTC datetime."""
        return datetime.fromtimestamp(self.timestamp_ns / NANOS_PER_SECOND, tz=timezone.utc)

    @property
    def is_bullish(self) -> bool:
        """Check if this is a bullish (green) candle."""
        return self.close > self.open

    @property
    def range_size(self) -> float:
        """Get the full range (high - low) of the candle."""
        return self.high - self.low


class Quote(BaseModel):
    """Latest bid/ask quote for a symbol."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    timestamp_ns: int = 0
    bid_price: float
    ask_price: float
    bid_size: int = 0
    ask_size: int = 0

    @property
    def mid_price(self) -> float:
        return (self.bid_price + self.ask_price) / 2.0

    @property
    def spread(self) -> float:
        return self.ask_price - self.bid_price
