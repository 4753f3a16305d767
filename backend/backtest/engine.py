"""Single-run backtest engine.

Ties together MeanReversionStrategy, Portfolio, and MetricsCalculator to
replay one symbol's bars under one parameter set.

Processing order for each bar after warm-up:
1. Update indicators and classify the bar (strategy)
2. Size and execute the trade, if any (portfolio)
3. Mark the portfolio at the bar's close (valuation series)

Sizing: every BUY/SELL targets ``position_notional`` dollars, floored to
whole shares; a SELL never exceeds the shares held.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence

from quantlab.models import Bar, Signal, SignalType, Trade
from quantlab.strategy import MeanReversionStrategy

from backtest.config import BacktestConfig
from backtest.metrics import BacktestMetrics, MetricsCalculator, Valuation
from backtest.portfolio import Portfolio

logger = logging.getLogger(__name__)


class RunStatus(str, Enum):
    """Outcome of a backtest run."""

    OK = "ok"
    NO_DATA = "no_data"  # Empty bar sequence, nothing to backtest
    FAILED = "failed"  # Unexpected error, see message


@dataclass
class BacktestResult:
    """Everything produced by one run."""

    symbol: str
    config: BacktestConfig
    status: RunStatus = RunStatus.OK
    message: str = ""
    metrics: BacktestMetrics | None = None
    signals: list[Signal] = field(default_factory=list)
    trades: list[Trade] = field(default_factory=list)
    valuations: list[Valuation] = field(default_factory=list)
    bars_processed: int = 0
    warmup_bars: int = 0

    @property
    def ok(self) -> bool:
        return self.status == RunStatus.OK

    def count(self, signal_type: SignalType) -> int:
        return sum(1 for s in self.signals if s.signal == signal_type)


class BacktestEngine:
    """Replay bars through strategy and portfolio for a single run."""

    def __init__(self, config: BacktestConfig | None = None, symbol: str = ""):
        self.config = config or BacktestConfig()
        self.symbol = symbol
        self.strategy = MeanReversionStrategy(self.config.strategy)
        self.portfolio = Portfolio(cash=self.config.starting_capital)
        self._calculator = MetricsCalculator(
            risk_free_rate=self.config.risk_free_rate,
            periods_per_year=self.config.periods_per_year,
        )

        self._signals: list[Signal] = []
        self._valuations: list[Valuation] = []
        self._warmup = 0
        self._last_price: float | None = None
        self._metrics: BacktestMetrics | None = None

    # ------------------------------------------------------------------
    # Bar processing
    # ------------------------------------------------------------------

    def warm_up(self, bars: Sequence[Bar]) -> None:
        """Prime indicators without trading."""
        self._warmup += self.strategy.warm_up(bars)
        if bars:
            self._last_price = bars[-1].close

    def process_bar(self, bar: Bar) -> Signal:
        """Process a single bar in chronological order."""
        if self._metrics is not None:
            raise RuntimeError("Engine already finalized; create a new engine per run")

        signal = self.strategy.process_bar(bar)
        self._signals.append(signal)
        self._apply_signal(signal)

        self._last_price = bar.close
        self._valuations.append(
            Valuation(timestamp_ns=bar.timestamp_ns, value=self.portfolio.total_value(bar.close))
        )
        return signal

    def _apply_signal(self, signal: Signal) -> None:
        if signal.is_actionable and signal.price <= 0:
            logger.debug(
                f"[{self.symbol}] {signal.signal.value} skipped: "
                f"cannot size a position at price {signal.price}"
            )
            return

        if signal.signal == SignalType.BUY:
            shares = int(self.config.position_notional // signal.price)
            self.portfolio.execute_buy(
                signal.price, shares, signal.confidence, signal.reason, signal.timestamp_ns
            )
        elif signal.signal == SignalType.SELL:
            if self.portfolio.shares_held == 0:
                return
            shares = min(
                int(self.config.position_notional // signal.price),
                self.portfolio.shares_held,
            )
            self.portfolio.execute_sell(
                signal.price, shares, signal.confidence, signal.reason, signal.timestamp_ns
            )
        elif signal.signal in (SignalType.HOLD, SignalType.NONE):
            return

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def finalize(self, final_price: float | None = None) -> BacktestMetrics:
        """Compute metrics once, marking the position at ``final_price``.

        Defaults to the last processed close. Later calls return the same
        metrics object.
        """
        if self._metrics is not None:
            return self._metrics

        price = final_price if final_price is not None else self._last_price
        if price is None:
            raise ValueError("No bars processed and no final price given")

        self._metrics = self._calculator.calculate(
            portfolio=self.portfolio,
            final_price=price,
            starting_capital=self.config.starting_capital,
            valuations=self._valuations,
        )
        return self._metrics

    def get_metrics(self) -> BacktestMetrics:
        return self.finalize()

    def get_result(self) -> BacktestResult:
        return BacktestResult(
            symbol=self.symbol,
            config=self.config,
            metrics=self.finalize(),
            signals=list(self._signals),
            trades=list(self.portfolio.trade_history),
            valuations=list(self._valuations),
            bars_processed=len(self._signals),
            warmup_bars=self._warmup,
        )

    def run(self, bars: Sequence[Bar]) -> BacktestResult:
        """Warm up on the first ``min(warmup_bars, len(bars) // 2)`` bars, replay the rest."""
        if not bars:
            logger.warning(f"[{self.symbol}] No bars available, cannot backtest")
            return BacktestResult(
                symbol=self.symbol,
                config=self.config,
                status=RunStatus.NO_DATA,
                message="No bars available",
            )

        warmup = min(self.config.warmup_bars, len(bars) // 2)
        self.warm_up(bars[:warmup])
        for bar in bars[warmup:]:
            self.process_bar(bar)

        result = self.get_result()
        m = result.metrics
        logger.info(
            f"[{self.symbol}] {result.bars_processed} bars "
            f"({warmup} warmup): {m.total_trades} trades, "
            f"return {m.total_return_pct:+.2f}%"
        )
        return result
