"""Parameter sweep over symbols, lookbacks, and strategy thresholds.

Every parameter set is an independent run with its own strategy, portfolio,
and metrics; runs share nothing but the (read-only) bar lists. Runs execute
on a thread pool driven from asyncio, and results are appended only from
the event-loop thread as futures complete. Successful runs rank first by
total return, with parameter order breaking ties.

Usage:
    optimizer = StrategyOptimizer(bar_source)
    optimizer.build_parameter_grid(["AAPL"], [60, 120, 365], [0.5, 0.65, 0.8])
    results = await optimizer.run_optimization()
"""

from __future__ import annotations

import asyncio
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from itertools import product
from pathlib import Path
from typing import Sequence

import yaml
from pydantic import BaseModel, model_validator

from quantlab.models import Bar, StrategyConfig

from backtest.config import BacktestConfig, get_backtest_settings
from backtest.engine import BacktestEngine, RunStatus
from backtest.sources import BarSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True, order=True)
class ParameterSet:
    """One combination in the sweep."""

    symbol: str
    days: int
    confidence_threshold: float
    rsi_oversold: float = 30.0
    rsi_overbought: float = 70.0


@dataclass
class OptimizationResult:
    """Summary metrics for one parameter set."""

    parameters: ParameterSet
    status: RunStatus = RunStatus.OK
    message: str = ""
    total_return: float = 0.0  # Fraction, 0.05 = +5%
    max_drawdown: float | None = None  # Percent
    sharpe_ratio: float | None = None
    total_trades: int = 0
    winning_trades: int = 0
    win_rate: float = 0.0  # Percent
    profit_factor: float | None = None

    @property
    def total_return_pct(self) -> float:
        return self.total_return * 100.0


class SweepGrid(BaseModel):
    """Parameter ranges, typically loaded from YAML."""

    symbols: list[str]
    days: list[int] = [60, 120, 365]
    confidence_thresholds: list[float] = [0.5, 0.65, 0.8]
    rsi_thresholds: list[tuple[float, float]] = [(30.0, 70.0)]

    @model_validator(mode="after")
    def _validate(self):
        if not self.symbols:
            raise ValueError("symbols must contain at least one entry")
        for oversold, overbought in self.rsi_thresholds:
            if oversold >= overbought:
                raise ValueError(
                    f"RSI threshold pair ({oversold}, {overbought}): "
                    "oversold must be below overbought"
                )
        return self

    def parameter_sets(self) -> list[ParameterSet]:
        return [
            ParameterSet(
                symbol=symbol,
                days=days,
                confidence_threshold=confidence,
                rsi_oversold=oversold,
                rsi_overbought=overbought,
            )
            for symbol, days, confidence, (oversold, overbought) in product(
                self.symbols, self.days, self.confidence_thresholds, self.rsi_thresholds
            )
        ]


def load_sweep_grid(path: str | Path) -> SweepGrid:
    """Load a sweep grid from a YAML file."""
    with open(path) as f:
        raw = yaml.safe_load(f) or {}
    grid = SweepGrid(**raw)
    logger.info(
        "Loaded sweep grid from %s: %d combinations", path, len(grid.parameter_sets())
    )
    return grid


class StrategyOptimizer:
    """Automated parameter sweep."""

    def __init__(
        self,
        bar_source: BarSource,
        base_config: BacktestConfig | None = None,
        max_workers: int | None = None,
    ):
        self._bar_source = bar_source
        self.base_config = base_config or BacktestConfig.from_settings()
        self.max_workers = max_workers or get_backtest_settings().max_workers
        self.parameter_grid: list[ParameterSet] = []
        self._results: list[OptimizationResult] = []

    @property
    def results(self) -> list[OptimizationResult]:
        return self._results

    def build_parameter_grid(
        self,
        symbols: Sequence[str],
        days_range: Sequence[int],
        confidence_range: Sequence[float],
        rsi_thresholds: Sequence[tuple[float, float]] = ((30.0, 70.0),),
    ) -> list[ParameterSet]:
        grid = SweepGrid(
            symbols=list(symbols),
            days=list(days_range),
            confidence_thresholds=list(confidence_range),
            rsi_thresholds=list(rsi_thresholds),
        )
        self.parameter_grid = grid.parameter_sets()
        logger.info(
            f"Built parameter grid with {len(self.parameter_grid)} combinations "
            f"(symbols={len(symbols)} days={len(days_range)} "
            f"confidence={len(confidence_range)} rsi={len(rsi_thresholds)})"
        )
        return self.parameter_grid

    def _config_for(self, params: ParameterSet) -> BacktestConfig:
        strategy = self.base_config.strategy.model_copy(
            update={
                "confidence_threshold": params.confidence_threshold,
                "rsi_oversold": params.rsi_oversold,
                "rsi_overbought": params.rsi_overbought,
            }
        )
        # model_copy skips validation; re-validate the combined parameters
        strategy = StrategyConfig(**strategy.model_dump())
        return self.base_config.model_copy(update={"strategy": strategy})

    def run_single_backtest(
        self, params: ParameterSet, bars: Sequence[Bar]
    ) -> OptimizationResult:
        """Run one parameter set. Errors become a FAILED result."""
        try:
            config = self._config_for(params)
            result = BacktestEngine(config, symbol=params.symbol).run(bars)
        except Exception as e:
            logger.error(
                f"Error testing {params.symbol} {params.days} days, "
                f"{params.confidence_threshold:.0%} confidence: {e}",
                exc_info=True,
            )
            return OptimizationResult(parameters=params, status=RunStatus.FAILED, message=str(e))

        if not result.ok:
            return OptimizationResult(
                parameters=params, status=result.status, message=result.message
            )

        m = result.metrics
        return OptimizationResult(
            parameters=params,
            total_return=(m.ending_capital - m.starting_capital) / m.starting_capital,
            max_drawdown=m.max_drawdown_pct,
            sharpe_ratio=m.sharpe_ratio,
            total_trades=m.total_trades,
            winning_trades=m.winning_trades,
            win_rate=m.win_rate_pct,
            profit_factor=m.profit_factor,
        )

    async def _load_bars(
        self, params: Sequence[ParameterSet]
    ) -> dict[tuple[str, int], list[Bar]]:
        """Fetch each (symbol, days) history once."""
        keys = sorted({(p.symbol, p.days) for p in params})
        bars: dict[tuple[str, int], list[Bar]] = {}
        for symbol, days in keys:
            try:
                bars[(symbol, days)] = await self._bar_source.get_bars(symbol, days)
            except Exception:
                logger.error(f"Failed to load bars for {symbol} ({days} days)", exc_info=True)
                bars[(symbol, days)] = []
        return bars

    async def run_optimization(
        self, parameter_sets: Sequence[ParameterSet] | None = None
    ) -> list[OptimizationResult]:
        """Run every parameter set and return ranked results."""
        params = list(parameter_sets) if parameter_sets is not None else self.parameter_grid
        total = len(params)
        logger.info(f"Starting optimization run: {total} combinations, {self.max_workers} workers")
        start_time = time.time()

        bars = await self._load_bars(params)
        loop = asyncio.get_running_loop()
        results: list[OptimizationResult] = []

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [
                loop.run_in_executor(
                    executor, self.run_single_backtest, p, bars[(p.symbol, p.days)]
                )
                for p in params
            ]
            for i, future in enumerate(asyncio.as_completed(futures), start=1):
                results.append(await future)
                if i % 10 == 0 or i == total:
                    logger.info(f"Progress: {i / total:.1%} ({i}/{total})")

        # Non-OK runs last; parameter order breaks ties so reruns rank identically
        results.sort(
            key=lambda r: (r.status != RunStatus.OK, -r.total_return, r.parameters)
        )
        self._results = results

        failed = sum(1 for r in results if r.status != RunStatus.OK)
        logger.info(
            f"Optimization completed in {time.time() - start_time:.1f}s: "
            f"{len(results)} results ({failed} without data or failed)"
        )
        return results

    def top_results(self, n: int = 10) -> list[OptimizationResult]:
        """Best ``n`` results by total return."""
        return self._results[:n]
