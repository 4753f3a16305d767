"""Backtesting system for the mean-reversion strategy.

Depends only on quantlab/ for business logic; market data arrives through
the ``BarSource`` / ``QuoteSource`` protocols.

Usage:
    runner = BacktestRunner(BacktestConfig(), CsvBarSource("data"))
    result = await runner.run("AAPL", days=365)
    ReportFormatter.print_console(result)
"""

from backtest.config import BacktestConfig, BacktestSettings, get_backtest_settings
from backtest.engine import BacktestEngine, BacktestResult, RunStatus
from backtest.metrics import BacktestMetrics, MetricsCalculator
from backtest.optimizer import (
    OptimizationResult,
    ParameterSet,
    StrategyOptimizer,
    SweepGrid,
    load_sweep_grid,
)
from backtest.portfolio import Portfolio
from backtest.report import ReportFormatter
from backtest.runner import BacktestRunner
from backtest.sources import CsvBarSource, InMemoryBarSource, InMemoryQuoteSource

__all__ = [
    "BacktestConfig",
    "BacktestEngine",
    "BacktestMetrics",
    "BacktestResult",
    "BacktestRunner",
    "BacktestSettings",
    "CsvBarSource",
    "InMemoryBarSource",
    "InMemoryQuoteSource",
    "MetricsCalculator",
    "OptimizationResult",
    "ParameterSet",
    "Portfolio",
    "ReportFormatter",
    "RunStatus",
    "StrategyOptimizer",
    "SweepGrid",
    "get_backtest_settings",
    "load_sweep_grid",
]
