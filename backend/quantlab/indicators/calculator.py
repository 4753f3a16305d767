"""Indicator set driven one close at a time.

Bundles the EMA trend filter, RSI, and Bollinger Bands used by the
mean-reversion strategy so they always advance together.
"""

from __future__ import annotations

from dataclasses import dataclass

from quantlab.indicators.bollinger import Bands, BollingerBands
from quantlab.indicators.ema import RollingEMA
from quantlab.indicators.rsi import RSI


@dataclass(frozen=True, slots=True)
class IndicatorSnapshot:
    """Indicator values after one update."""

    price: float
    ema: float
    rsi: float
    bands: Bands | None

    @property
    def is_ready(self) -> bool:
        return self.bands is not None


class IndicatorSet:
    """EMA + RSI + Bollinger Bands, updated in lockstep."""

    def __init__(
        self,
        ema_period: int = 20,
        rsi_period: int = 14,
        bb_period: int = 20,
        bb_std_dev: float = 2.0,
    ):
        self.ema = RollingEMA(ema_period)
        self.rsi = RSI(rsi_period)
        self.bollinger = BollingerBands(bb_period, bb_std_dev)
        self._updates = 0

    @property
    def updates(self) -> int:
        """Number of prices consumed since creation or the last reset."""
        return self._updates

    def update(self, price: float) -> IndicatorSnapshot:
        ema_value = self.ema.update(price)
        rsi_value = self.rsi.update(price)
        bands = self.bollinger.update(price)
        self._updates += 1
        return IndicatorSnapshot(price=price, ema=ema_value, rsi=rsi_value, bands=bands)

    def is_ready(self) -> bool:
        return self.ema.is_ready() and self.rsi.is_ready() and self.bollinger.is_ready()

    def reset(self) -> None:
        self.ema.reset()
        self.rsi.reset()
        self.bollinger.reset()
        self._updates = 0
