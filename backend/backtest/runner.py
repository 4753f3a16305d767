"""BacktestRunner: drives the engine from a bar source.

Two modes:
- backtest: load a symbol's bars, replay them, return one aggregated result
- live signal: warm indicators on history, then classify the latest quote

Neither mode raises: an empty bar history becomes a NO_DATA result and a
missing quote a NONE signal; source and engine errors become a FAILED
result or a NONE signal carrying the error.
"""

from __future__ import annotations

import logging
import time

from quantlab.models import Signal, SignalType
from quantlab.strategy import MeanReversionStrategy

from backtest.config import BacktestConfig
from backtest.engine import BacktestEngine, BacktestResult, RunStatus
from backtest.sources import BarSource, QuoteSource

logger = logging.getLogger(__name__)


class BacktestRunner:
    """Run backtests and live signals for one configuration."""

    def __init__(
        self,
        config: BacktestConfig,
        bar_source: BarSource,
        quote_source: QuoteSource | None = None,
    ):
        self.config = config
        self._bar_source = bar_source
        self._quote_source = quote_source

    async def run(self, symbol: str, days: int | None = None) -> BacktestResult:
        """Backtest ``symbol`` over the last ``days`` days of bars."""
        start_time = time.time()
        logger.info(
            f"Starting backtest {symbol} days={days} "
            f"confidence>={self.config.strategy.confidence_threshold} "
            f"rsi={self.config.strategy.rsi_oversold:g}/{self.config.strategy.rsi_overbought:g}"
        )

        try:
            bars = await self._bar_source.get_bars(symbol, days)
        except Exception as e:
            logger.error(f"[{symbol}] Failed to load bars", exc_info=True)
            return BacktestResult(
                symbol=symbol,
                config=self.config,
                status=RunStatus.FAILED,
                message=f"Bar source error: {e}",
            )

        engine = BacktestEngine(self.config, symbol=symbol)
        try:
            result = engine.run(bars)
        except Exception as e:
            logger.error(f"[{symbol}] Backtest failed", exc_info=True)
            return BacktestResult(
                symbol=symbol,
                config=self.config,
                status=RunStatus.FAILED,
                message=f"Backtest error: {e}",
            )

        elapsed = time.time() - start_time
        logger.info(f"Backtest {symbol} finished in {elapsed:.2f}s: {result.status.value}")
        return result

    async def live_signal(self, symbol: str, days: int | None = None) -> Signal:
        """Warm up on ``days`` of history, then classify the latest quote."""
        if self._quote_source is None:
            return Signal(signal=SignalType.NONE, reason="No quote source configured")

        strategy = MeanReversionStrategy(self.config.strategy)
        try:
            bars = await self._bar_source.get_bars(symbol, days)
            strategy.warm_up(bars)
        except Exception as e:
            logger.error(f"[{symbol}] Failed to warm up from history", exc_info=True)
            return Signal(signal=SignalType.NONE, reason=f"Historical data error: {e}")
        logger.info(f"[{symbol}] Loaded {len(bars)} historical bars for live analysis")

        try:
            quote = await self._quote_source.get_latest_quote(symbol)
        except Exception as e:
            logger.error(f"[{symbol}] Failed to fetch latest quote", exc_info=True)
            return Signal(signal=SignalType.NONE, reason=f"Quote source error: {e}")
        if quote is None:
            logger.warning(f"[{symbol}] No quote available")
        return strategy.process_quote(quote)
