"""Strategy configuration model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, model_validator


class StrategyConfig(BaseModel):
    """Mean-reversion strategy parameters.

    Passed explicitly to the strategy at construction; invalid combinations
    are rejected here rather than discovered mid-run.
    """

    model_config = ConfigDict(frozen=True)

    # Indicator periods
    ema_period: int = 20
    rsi_period: int = 14
    bb_period: int = 20
    bb_std_dev: float = 2.0

    # RSI gates
    rsi_oversold: float = 30.0
    rsi_overbought: float = 70.0

    # Minimum confidence required to act on an RSI extreme
    confidence_threshold: float = 0.65

    @model_validator(mode="after")
    def _validate(self):
        for name in ("ema_period", "rsi_period", "bb_period"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        if self.bb_std_dev <= 0:
            raise ValueError(f"bb_std_dev must be positive, got {self.bb_std_dev}")
        if not 0 < self.rsi_oversold < 100 or not 0 < self.rsi_overbought < 100:
            raise ValueError(
                "RSI thresholds must lie strictly between 0 and 100, got "
                f"oversold={self.rsi_oversold} overbought={self.rsi_overbought}"
            )
        if self.rsi_oversold >= self.rsi_overbought:
            raise ValueError(
                f"rsi_oversold ({self.rsi_oversold}) must be below "
                f"rsi_overbought ({self.rsi_overbought})"
            )
        if not 0 < self.confidence_threshold <= 1:
            raise ValueError(
                f"confidence_threshold must be in (0, 1], got {self.confidence_threshold}"
            )
        return self

