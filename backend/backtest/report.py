"""Report formatting for backtest and sweep results.

Outputs results to console (formatted tables), JSON files, and CSV sweep tables.
Non-finite floats (an all-win profit factor) and unavailable metrics are
written as ``null`` in JSON and left empty in CSV.
"""

from __future__ import annotations

import csv
import json
import math
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Sequence

from quantlab.models import SignalType

from backtest.engine import BacktestResult
from backtest.optimizer import OptimizationResult

SWEEP_FIELDS = [
    "symbol",
    "days",
    "confidence_threshold",
    "oversold_threshold",
    "overbought_threshold",
    "total_return",
    "total_return_pct",
    "max_drawdown",
    "sharpe_ratio",
    "total_trades",
    "winning_trades",
    "win_rate",
    "profit_factor",
]


class ReportEncoder(json.JSONEncoder):
    def default(self, obj):
        if isinstance(obj, Enum):
            return obj.value
        if isinstance(obj, datetime):
            return obj.isoformat()
        return super().default(obj)


def _finite(value: float | None, digits: int = 4) -> float | None:
    if value is None or not math.isfinite(value):
        return None
    return round(value, digits)


def _fmt(value: float | None, fmt: str, suffix: str = "") -> str:
    if value is None:
        return "n/a"
    if math.isinf(value):
        return "inf"
    return f"{value:{fmt}}{suffix}"


class ReportFormatter:
    """Format results for display and export."""

    # ------------------------------------------------------------------
    # Single run
    # ------------------------------------------------------------------

    @staticmethod
    def print_console(result: BacktestResult, last_trades: int = 10) -> None:
        """Print formatted report to console."""
        strategy = result.config.strategy

        print("\n" + "=" * 70)
        print(f"  BACKTEST RESULTS: {result.symbol or '(unnamed)'}")
        print("=" * 70)
        print(
            f"  Strategy: EMA {strategy.ema_period}, RSI {strategy.rsi_period} "
            f"({strategy.rsi_oversold:g}/{strategy.rsi_overbought:g}), "
            f"BB {strategy.bb_period}/{strategy.bb_std_dev:g}, "
            f"confidence >= {strategy.confidence_threshold:.0%}"
        )

        if not result.ok:
            print(f"\n  Status: {result.status.value.upper()} ({result.message})")
            print("\n" + "=" * 70)
            return

        m = result.metrics
        print(f"  Bars: {result.bars_processed} processed, {result.warmup_bars} warm-up")

        print("\n" + "-" * 70)
        print("  PORTFOLIO")
        print("-" * 70)
        print(f"  Starting capital: ${m.starting_capital:,.2f}")
        print(f"  Ending capital:   ${m.ending_capital:,.2f}")
        print(f"  Position value:   ${m.current_position_value:,.2f}")
        print(f"  Total return:     {m.total_return_pct:+.2f}%")
        print(f"  Annual return:    {_fmt(m.annual_return_pct, '+.2f', '%')}")
        print(f"  Realized P&L:     ${m.realized_pnl:,.2f}")
        print(f"  Unrealized P&L:   ${m.unrealized_pnl:,.2f}")

        print("\n" + "-" * 70)
        print("  TRADES")
        print("-" * 70)
        print(
            f"  Signals:        BUY {result.count(SignalType.BUY)}  "
            f"SELL {result.count(SignalType.SELL)}  "
            f"HOLD {result.count(SignalType.HOLD)}"
        )
        print(f"  Total trades:   {m.total_trades}")
        print(f"  Cycles:         {m.completed_cycles} ({m.winning_trades}W / {m.losing_trades}L)")
        print(f"  Win rate:       {m.win_rate_pct:.1f}%")
        print(f"  Avg win/loss:   ${m.avg_win:,.2f} / ${m.avg_loss:,.2f}")
        print(f"  Profit factor:  {_fmt(m.profit_factor, '.2f')}")

        print("\n" + "-" * 70)
        print("  RISK")
        print("-" * 70)
        print(f"  Max drawdown:   {_fmt(m.max_drawdown_pct, '.2f', '%')}")
        print(f"  Peak capital:   {_fmt(m.max_capital, ',.2f')}")
        print(f"  Sharpe ratio:   {_fmt(m.sharpe_ratio, '.2f')}")

        if result.trades:
            print("\n" + "-" * 70)
            print(f"  LAST {min(last_trades, len(result.trades))} TRADES")
            print("-" * 70)
            print(f"  {'Action':<6} {'Shares':>8} {'Price':>10} {'Value':>12} {'Conf':>6}")
            for t in result.trades[-last_trades:]:
                print(
                    f"  {t.action.value:<6} {t.shares:>8} {t.price:>10.2f} "
                    f"{t.value:>12,.2f} {t.confidence:>5.0%}"
                )

        print("\n" + "=" * 70)

    @staticmethod
    def to_dict(result: BacktestResult) -> dict:
        """Convert a run to a JSON-serializable dict."""
        data = {
            "metadata": {
                "symbol": result.symbol,
                "status": result.status.value,
                "message": result.message,
                "bars_processed": result.bars_processed,
                "warmup_bars": result.warmup_bars,
                "config": result.config.model_dump(),
            },
            "signals": {
                "buy": result.count(SignalType.BUY),
                "sell": result.count(SignalType.SELL),
                "hold": result.count(SignalType.HOLD),
            },
            "trades": [
                {
                    "action": t.action.value,
                    "price": t.price,
                    "shares": t.shares,
                    "value": t.value,
                    "confidence": round(t.confidence, 4),
                    "reason": t.reason,
                    "timestamp_ns": t.timestamp_ns,
                }
                for t in result.trades
            ],
        }

        m = result.metrics
        if m is None:
            data["metrics"] = None
            return data

        data["metrics"] = {
            "starting_capital": m.starting_capital,
            "ending_capital": round(m.ending_capital, 2),
            "current_position_value": round(m.current_position_value, 2),
            "total_return_pct": round(m.total_return_pct, 4),
            "realized_pnl": round(m.realized_pnl, 2),
            "unrealized_pnl": round(m.unrealized_pnl, 2),
            "total_trades": m.total_trades,
            "completed_cycles": m.completed_cycles,
            "winning_trades": m.winning_trades,
            "losing_trades": m.losing_trades,
            "win_rate_pct": round(m.win_rate_pct, 2),
            "avg_win": round(m.avg_win, 2),
            "avg_loss": round(m.avg_loss, 2),
            "profit_factor": _finite(m.profit_factor),
            "max_drawdown_pct": _finite(m.max_drawdown_pct),
            "max_capital": _finite(m.max_capital, 2),
            "sharpe_ratio": _finite(m.sharpe_ratio),
            "annual_return_pct": _finite(m.annual_return_pct),
        }
        return data

    @staticmethod
    def save_json(result: BacktestResult, filepath: str | Path) -> None:
        """Save a run to a JSON file."""
        data = ReportFormatter.to_dict(result)
        with open(filepath, "w") as f:
            json.dump(data, f, indent=2, cls=ReportEncoder)
        print(f"\nResults saved to {filepath}")

    # ------------------------------------------------------------------
    # Parameter sweep
    # ------------------------------------------------------------------

    @staticmethod
    def sweep_row(result: OptimizationResult) -> dict:
        p = result.parameters
        return {
            "symbol": p.symbol,
            "days": p.days,
            "confidence_threshold": p.confidence_threshold,
            "oversold_threshold": p.rsi_oversold,
            "overbought_threshold": p.rsi_overbought,
            "total_return": _finite(result.total_return, 6),
            "total_return_pct": _finite(result.total_return_pct),
            "max_drawdown": _finite(result.max_drawdown),
            "sharpe_ratio": _finite(result.sharpe_ratio),
            "total_trades": result.total_trades,
            "winning_trades": result.winning_trades,
            "win_rate": _finite(result.win_rate, 2),
            "profit_factor": _finite(result.profit_factor),
        }

    @staticmethod
    def sweep_summary(results: Sequence[OptimizationResult]) -> dict:
        return {
            "total_combinations": len(results),
            "symbols_tested": sorted({r.parameters.symbol for r in results}),
            "date_generated": datetime.now(timezone.utc).isoformat(),
        }

    @staticmethod
    def export_csv(results: Sequence[OptimizationResult], filepath: str | Path) -> None:
        """Write sweep results as a CSV table, one row per parameter set."""
        with open(filepath, "w", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=SWEEP_FIELDS)
            writer.writeheader()
            for r in results:
                writer.writerow(ReportFormatter.sweep_row(r))
        print(f"\nSweep results saved to {filepath}")

    @staticmethod
    def export_json(results: Sequence[OptimizationResult], filepath: str | Path) -> None:
        """Write sweep results with a summary block."""
        data = {
            "results": [ReportFormatter.sweep_row(r) for r in results],
            "summary": ReportFormatter.sweep_summary(results),
        }
        with open(filepath, "w") as f:
            json.dump(data, f, indent=2, cls=ReportEncoder)
        print(f"\nSweep results saved to {filepath}")

    @staticmethod
    def print_sweep(results: Sequence[OptimizationResult], top: int = 10) -> None:
        """Print the best parameter sets."""
        print("\n" + "=" * 70)
        print(f"  PARAMETER SWEEP: top {min(top, len(results))} of {len(results)}")
        print("=" * 70)
        print(
            f"  {'Symbol':<8} {'Days':>5} {'Conf':>6} {'RSI':>7} "
            f"{'Return':>9} {'MaxDD':>8} {'Sharpe':>7} {'Trades':>7} {'Win%':>7}"
        )
        for r in results[:top]:
            p = r.parameters
            print(
                f"  {p.symbol:<8} {p.days:>5} {p.confidence_threshold:>5.0%} "
                f"{p.rsi_oversold:>3.0f}/{p.rsi_overbought:<3.0f} "
                f"{r.total_return_pct:>+8.2f}% {_fmt(r.max_drawdown, '>7.2f', '%')} "
                f"{_fmt(r.sharpe_ratio, '>7.2f')} {r.total_trades:>7} {r.win_rate:>6.1f}%"
            )
        print("\n" + "=" * 70)
