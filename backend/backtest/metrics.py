"""Performance metrics for a completed backtest run.

Trade-cycle P&L uses weighted average cost, not FIFO/LIFO lots:
  BUY   adds its value to the position cost and its shares to the position
  SELL  realizes (sell_price - avg_cost) * shares, then removes the sold
        fraction of the cost basis

Each SELL against an open position is one completed cycle. A cycle with
P&L > 0 is a win; anything else counts as a loss.

Risk metrics need a valuation series (portfolio value per bar). Without
one, max drawdown, peak capital, Sharpe, and annualized return are
reported as ``None`` (unavailable) rather than approximated.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from backtest.portfolio import Portfolio
from quantlab.models.trade import TradeAction

logger = logging.getLogger(__name__)

NANOS_PER_YEAR = 365.25 * 24 * 3600 * 1_000_000_000


@dataclass(frozen=True, slots=True)
class Valuation:
    """Portfolio value marked at one bar's close."""

    timestamp_ns: int
    value: float


@dataclass(frozen=True, slots=True)
class TradeCycle:
    """P&L realized by one SELL against the open position."""

    sell_index: int  # Position of the SELL in the trade ledger
    shares: int
    avg_cost: float
    sell_price: float
    pnl: float

    @property
    def is_win(self) -> bool:
        return self.pnl > 0


@dataclass
class BacktestMetrics:
    """Read-only snapshot of a finished run."""

    # Portfolio
    starting_capital: float = 0.0
    ending_capital: float = 0.0
    current_position_value: float = 0.0
    total_return_pct: float = 0.0
    realized_pnl: float = 0.0
    unrealized_pnl: float = 0.0

    # Trades
    total_trades: int = 0
    completed_cycles: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    win_rate_pct: float = 0.0
    avg_win: float = 0.0
    avg_loss: float = 0.0
    profit_factor: float | None = None  # inf with wins and no losses, None with neither

    # Risk (None = no valuation series)
    max_drawdown_pct: float | None = None
    max_capital: float | None = None
    sharpe_ratio: float | None = None
    annual_return_pct: float | None = None

    cycles: list[TradeCycle] = field(default_factory=list)


def trade_cycles(portfolio: Portfolio) -> tuple[list[TradeCycle], float]:
    """Walk the ledger with average-cost accounting.

    Returns (cycles, remaining_cost_basis).
    """
    cycles: list[TradeCycle] = []
    position_cost = 0.0
    position_shares = 0

    for index, trade in enumerate(portfolio.trade_history):
        if trade.action == TradeAction.BUY:
            position_cost += trade.value
            position_shares += trade.shares
        elif trade.action == TradeAction.SELL and position_shares > 0:
            avg_cost = position_cost / position_shares
            pnl = (trade.price - avg_cost) * trade.shares
            cycles.append(
                TradeCycle(
                    sell_index=index,
                    shares=trade.shares,
                    avg_cost=avg_cost,
                    sell_price=trade.price,
                    pnl=pnl,
                )
            )
            sold_ratio = trade.shares / position_shares
            position_cost -= position_cost * sold_ratio
            position_shares -= trade.shares

    return cycles, position_cost


def max_drawdown_pct(values: Sequence[float], starting_capital: float) -> float:
    """Largest peak-to-trough decline, in percent, with the peak seeded at starting capital."""
    peak = starting_capital
    worst = 0.0
    for value in values:
        if value > peak:
            peak = value
        if peak > 0:
            drawdown = (peak - value) / peak * 100.0
            if drawdown > worst:
                worst = drawdown
    return worst


def sharpe_ratio(
    values: Sequence[float],
    risk_free_rate: float = 0.02,
    periods_per_year: int = 252,
) -> float | None:
    """Annualized Sharpe ratio of per-period returns.

    mean(r - rf/periods) / std(r, ddof=1) * sqrt(periods).
    Returns None for fewer than two returns or zero volatility.
    """
    arr = np.asarray(values, dtype=np.float64)
    if len(arr) < 3 or np.any(arr[:-1] <= 0):
        return None

    returns = np.diff(arr) / arr[:-1]
    excess = returns - risk_free_rate / periods_per_year
    std = float(np.std(excess, ddof=1))
    if std == 0 or not math.isfinite(std):
        return None
    return float(np.mean(excess) / std * math.sqrt(periods_per_year))


def annual_return_pct(
    starting_capital: float,
    ending_capital: float,
    valuations: Sequence[Valuation],
) -> float | None:
    """Compound annual growth over the valuation time span, in percent."""
    if len(valuations) < 2 or starting_capital <= 0 or ending_capital <= 0:
        return None
    years = (valuations[-1].timestamp_ns - valuations[0].timestamp_ns) / NANOS_PER_YEAR
    if years <= 0:
        return None
    try:
        growth = (ending_capital / starting_capital) ** (1.0 / years)
    except OverflowError:
        return None
    return (growth - 1.0) * 100.0


class MetricsCalculator:
    """Calculate performance metrics from a completed portfolio."""

    def __init__(self, risk_free_rate: float = 0.02, periods_per_year: int = 252):
        self.risk_free_rate = risk_free_rate
        self.periods_per_year = periods_per_year

    def calculate(
        self,
        portfolio: Portfolio,
        final_price: float,
        starting_capital: float,
        valuations: Sequence[Valuation] | None = None,
    ) -> BacktestMetrics:
        if starting_capital <= 0:
            raise ValueError(f"starting_capital must be positive, got {starting_capital}")

        result = BacktestMetrics(starting_capital=starting_capital)
        self._calc_portfolio(result, portfolio, final_price)
        self._calc_cycles(result, portfolio, final_price)
        if valuations:
            self._calc_risk(result, valuations)
        else:
            logger.debug("No valuation series supplied; risk metrics unavailable")
        return result

    def _calc_portfolio(
        self, result: BacktestMetrics, portfolio: Portfolio, final_price: float
    ) -> None:
        result.ending_capital = portfolio.total_value(final_price)
        result.current_position_value = portfolio.position_value(final_price)
        result.total_return_pct = (
            (result.ending_capital - result.starting_capital) / result.starting_capital * 100.0
        )
        result.total_trades = len(portfolio.trade_history)

    def _calc_cycles(
        self, result: BacktestMetrics, portfolio: Portfolio, final_price: float
    ) -> None:
        cycles, remaining_cost = trade_cycles(portfolio)
        result.cycles = cycles
        result.completed_cycles = len(cycles)

        wins = [c.pnl for c in cycles if c.is_win]
        losses = [abs(c.pnl) for c in cycles if not c.is_win]
        result.winning_trades = len(wins)
        result.losing_trades = len(losses)
        result.realized_pnl = sum(c.pnl for c in cycles)
        result.unrealized_pnl = portfolio.shares_held * final_price - remaining_cost

        if cycles:
            result.win_rate_pct = len(wins) / len(cycles) * 100.0
            result.avg_win = sum(wins) / len(wins) if wins else 0.0
            result.avg_loss = sum(losses) / len(losses) if losses else 0.0

        total_wins = sum(wins)
        total_losses = sum(losses)
        if total_losses > 0:
            result.profit_factor = total_wins / total_losses
        elif total_wins > 0:
            result.profit_factor = float("inf")

    def _calc_risk(self, result: BacktestMetrics, valuations: Sequence[Valuation]) -> None:
        values = [v.value for v in valuations]
        result.max_drawdown_pct = max_drawdown_pct(values, result.starting_capital)
        result.max_capital = max(result.starting_capital, max(values))
        result.sharpe_ratio = sharpe_ratio(values, self.risk_free_rate, self.periods_per_year)
        result.annual_return_pct = annual_return_pct(
            result.starting_capital, result.ending_capital, valuations
        )
