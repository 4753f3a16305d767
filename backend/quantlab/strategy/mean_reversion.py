"""Mean-reversion strategy with a confidence-weighted RSI gate.

Per bar:
1. Update EMA, RSI, and Bollinger Bands with the close
2. Score confidence from RSI extremity, band extremity, trend deviation,
   and volatility regime
3. BUY when RSI < oversold, SELL when RSI > overbought, in both cases only
   if confidence clears the threshold; HOLD otherwise

Until every indicator is warmed up the strategy emits ``SignalType.NONE``
rather than trading on partial data.

This module is pure business logic with no I/O dependencies.
"""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from quantlab.indicators import IndicatorSet
from quantlab.models import Bar, Quote, Signal, SignalType, StrategyConfig
from quantlab.strategy.confidence import evaluate

logger = logging.getLogger(__name__)

MEAN_REVERSION_STRATEGY_NAME = "mean_reversion"

# Bars used to prime indicators before a batch backtest emits signals
DEFAULT_WARMUP_BARS = 20


class MeanReversionStrategy:
    """Mean reversion with momentum filter.

    One instance holds the indicator state of exactly one run; bars must be
    fed in non-decreasing timestamp order.
    """

    def __init__(self, config: StrategyConfig | None = None):
        self.config = config or StrategyConfig()
        self.indicators = IndicatorSet(
            ema_period=self.config.ema_period,
            rsi_period=self.config.rsi_period,
            bb_period=self.config.bb_period,
            bb_std_dev=self.config.bb_std_dev,
        )
        self._last_timestamp_ns: int | None = None

    @property
    def name(self) -> str:
        return MEAN_REVERSION_STRATEGY_NAME

    @property
    def version(self) -> str:
        return "1.0.0"

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Return all indicators to their uninitialized state."""
        self.indicators.reset()
        self._last_timestamp_ns = None

    def is_ready(self) -> bool:
        return self.indicators.is_ready()

    def _check_order(self, bar: Bar) -> None:
        if self._last_timestamp_ns is not None and bar.timestamp_ns < self._last_timestamp_ns:
            raise ValueError(
                f"Bar at {bar.timestamp_ns} arrived after {self._last_timestamp_ns}; "
                "bars must be in chronological order"
            )
        self._last_timestamp_ns = bar.timestamp_ns

    def warm_up(self, bars: Iterable[Bar]) -> int:
        """Feed historical closes to the indicators without producing signals.

        Returns the number of bars consumed.
        """
        count = 0
        for bar in bars:
            self._check_order(bar)
            self.indicators.update(bar.close)
            count += 1
        logger.debug(f"Warmed up {self.name} with {count} bars (ready={self.is_ready()})")
        return count

    # ------------------------------------------------------------------
    # Signal generation
    # ------------------------------------------------------------------

    def process_price(self, price: float, timestamp_ns: int | None = None) -> Signal:
        """Update indicators with a price and classify the result."""
        snapshot = self.indicators.update(price)

        if not snapshot.is_ready:
            return Signal(
                signal=SignalType.NONE,
                confidence=0.0,
                reason=(
                    f"Insufficient data: {self.indicators.updates}/"
                    f"{self.config.bb_period} bars for Bollinger Bands"
                ),
                price=price,
                ema=snapshot.ema,
                rsi=snapshot.rsi,
                timestamp_ns=timestamp_ns,
            )

        bands = snapshot.bands
        return evaluate(
            price=price,
            ema=snapshot.ema,
            rsi=snapshot.rsi,
            bb_upper=bands.upper,
            bb_middle=bands.middle,
            bb_lower=bands.lower,
            rsi_oversold=self.config.rsi_oversold,
            rsi_overbought=self.config.rsi_overbought,
            confidence_threshold=self.config.confidence_threshold,
            timestamp_ns=timestamp_ns,
        )

    def process_bar(self, bar: Bar) -> Signal:
        """Process one closed bar and return its signal."""
        self._check_order(bar)
        return self.process_price(bar.close, bar.timestamp_ns)

    def process_quote(self, quote: Quote | None) -> Signal:
        """Generate a live signal from the quote's mid price.

        A missing quote yields a ``NONE`` signal instead of an error.
        """
        if quote is None:
            return Signal(
                signal=SignalType.NONE,
                confidence=0.0,
                reason="No quote data available",
            )
        signal = self.process_price(quote.mid_price, quote.timestamp_ns or None)
        if signal.is_actionable:
            logger.info(f"{quote.symbol} live {signal.signal.value} @ {quote.mid_price}: {signal.reason}")
        return signal

    def backtest(
        self, bars: Sequence[Bar], warmup_bars: int = DEFAULT_WARMUP_BARS
    ) -> list[Signal]:
        """Replay bars from a clean state and return one signal per post-warmup bar.

        Indicators are reset first, then primed with
        ``min(warmup_bars, len(bars) // 2)`` bars.
        """
        if not bars:
            logger.warning("No historical bars available for backtesting")
            return []

        self.reset()
        warmup = min(warmup_bars, len(bars) // 2)
        self.warm_up(bars[:warmup])
        return [self.process_bar(bar) for bar in bars[warmup:]]
