"""Trading signal models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class SignalType(str, Enum):
    """Trading decision emitted for a bar or quote."""

    NONE = "NONE"  # No decision possible (indicators not ready, no quote)
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


class Signal(BaseModel):
    """Classified signal with its confidence and the indicator snapshot behind it."""

    model_config = ConfigDict(frozen=True)

    signal: SignalType
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    reason: str = ""

    # Indicator values at evaluation time
    price: float = 0.0
    ema: float = 0.0
    rsi: float = 50.0
    bb_upper: float = 0.0
    bb_middle: float = 0.0
    bb_lower: float = 0.0

    timestamp_ns: int | None = None

    @property
    def is_actionable(self) -> bool:
        """True for BUY and SELL signals."""
        return self.signal in (SignalType.BUY, SignalType.SELL)
