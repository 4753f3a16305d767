"""Tests for the single-run backtest engine."""

import pytest

from backtest.config import BacktestConfig
from backtest.engine import BacktestEngine, RunStatus
from quantlab.models import Bar, SignalType, StrategyConfig, TradeAction

NANOS_PER_DAY = 86_400 * 1_000_000_000


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def make_bars(closes: list[float]) -> list[Bar]:
    return [
        Bar(timestamp_ns=i * NANOS_PER_DAY, open=c, high=c, low=c, close=c)
        for i, c in enumerate(closes)
    ]


def triangle_wave(n: int, low: float = 90.0, step: float = 2.0, leg: int = 10) -> list[float]:
    prices = []
    for i in range(n):
        phase = i % (2 * leg)
        offset = phase if phase <= leg else 2 * leg - phase
        prices.append(low + step * offset)
    return prices


def make_config(**overrides) -> BacktestConfig:
    strategy = StrategyConfig(confidence_threshold=0.5)
    return BacktestConfig(strategy=strategy, **overrides)


class TestBacktestEngine:
    """End-to-end runs over synthetic series."""

    def test_empty_bars(self):
        result = BacktestEngine(make_config(), symbol="AAPL").run([])

        assert result.status == RunStatus.NO_DATA
        assert not result.ok
        assert result.metrics is None
        assert result.message == "No bars available"

    def test_oscillating_series_trades_both_sides(self):
        result = BacktestEngine(make_config(), symbol="AAPL").run(make_bars(triangle_wave(200)))
        m = result.metrics

        assert result.ok
        assert result.count(SignalType.BUY) > 0
        assert result.count(SignalType.SELL) > 0
        actions = {t.action for t in result.trades}
        assert actions == {TradeAction.BUY, TradeAction.SELL}
        assert m.completed_cycles > 0
        assert m.ending_capital == pytest.approx(
            m.starting_capital + m.realized_pnl + m.unrealized_pnl
        )

    def test_buys_at_troughs_win(self):
        """Buying below 100 and selling above it on a symmetric wave is profitable."""
        result = BacktestEngine(make_config(), symbol="AAPL").run(make_bars(triangle_wave(200)))
        m = result.metrics

        assert all(t.price < 100 for t in result.trades if t.action == TradeAction.BUY)
        assert all(t.price > 100 for t in result.trades if t.action == TradeAction.SELL)
        assert m.realized_pnl > 0
        assert m.winning_trades == m.completed_cycles

    def test_trade_sizing(self):
        config = make_config(position_notional=1_000.0)
        result = BacktestEngine(config).run(make_bars(triangle_wave(200)))

        for trade in result.trades:
            assert trade.shares <= int(1_000.0 // trade.price)
            assert trade.shares > 0

    def test_no_trades_on_flat_series(self):
        result = BacktestEngine(make_config()).run(make_bars([100.0] * 60))

        assert result.trades == []
        assert result.metrics.total_return_pct == 0.0
        assert result.count(SignalType.HOLD) == 40

    def test_warmup_split(self):
        result = BacktestEngine(make_config()).run(make_bars(triangle_wave(200)))
        assert result.warmup_bars == 20
        assert result.bars_processed == 180
        assert len(result.signals) == 180
        assert len(result.valuations) == 180

    def test_short_series_warmup(self):
        result = BacktestEngine(make_config()).run(make_bars([100.0] * 10))
        assert result.warmup_bars == 5
        assert result.bars_processed == 5
        assert all(s.signal == SignalType.NONE for s in result.signals)

    def test_final_mark_uses_last_close(self):
        closes = triangle_wave(195)
        result = BacktestEngine(make_config()).run(make_bars(closes))
        m = result.metrics

        shares = sum(
            t.shares if t.action == TradeAction.BUY else -t.shares for t in result.trades
        )
        assert m.ending_capital == pytest.approx(result.valuations[-1].value)
        assert m.current_position_value == pytest.approx(shares * closes[-1])

    def test_balances_never_negative(self):
        config = make_config(starting_capital=20_000.0, position_notional=15_000.0)
        engine = BacktestEngine(config)
        bars = make_bars(triangle_wave(200))
        engine.warm_up(bars[:20])
        for bar in bars[20:]:
            engine.process_bar(bar)
            assert engine.portfolio.cash >= 0
            assert engine.portfolio.shares_held >= 0

    def test_series_falling_to_zero(self):
        """Signals at a zero close are not sized into trades."""
        closes = [100.0] * 30 + [90.0 - 10.0 * i for i in range(10)]
        assert closes[-1] == 0.0
        result = BacktestEngine(make_config(warmup_bars=0)).run(make_bars(closes))

        assert result.ok
        assert result.signals[-1].signal == SignalType.BUY
        assert all(t.price > 0 for t in result.trades)
        assert len(result.valuations) == result.bars_processed == len(closes)
        assert result.metrics.current_position_value == 0.0

    def test_flat_ending_reconciles_with_cycles(self):
        config = make_config(starting_capital=1_000_000.0, position_notional=1_000_000.0)
        engine = BacktestEngine(config)
        bars = make_bars(triangle_wave(200))
        engine.warm_up(bars[:20])
        for bar in bars[20:]:
            engine.process_bar(bar)
            if engine.portfolio.trade_history and engine.portfolio.shares_held == 0:
                break
        m = engine.finalize()

        assert engine.portfolio.shares_held == 0
        assert m.completed_cycles > 0
        assert m.current_position_value == 0.0
        assert m.unrealized_pnl == pytest.approx(0.0)
        assert m.ending_capital == pytest.approx(
            m.starting_capital + sum(c.pnl for c in m.cycles)
        )


class TestFinalize:
    """Tests for the metrics lifecycle."""

    def test_get_metrics_is_idempotent(self):
        engine = BacktestEngine(make_config())
        engine.run(make_bars(triangle_wave(100)))

        assert engine.get_metrics() is engine.get_metrics()

    def test_process_after_finalize_rejected(self):
        engine = BacktestEngine(make_config())
        bars = make_bars(triangle_wave(100))
        engine.run(bars[:-1])

        with pytest.raises(RuntimeError):
            engine.process_bar(bars[-1])

    def test_finalize_without_bars(self):
        with pytest.raises(ValueError):
            BacktestEngine(make_config()).finalize()

    def test_explicit_final_price(self):
        engine = BacktestEngine(make_config())
        engine.process_bar(make_bars([100.0])[0])
        m = engine.finalize(final_price=50.0)

        assert m.ending_capital == pytest.approx(engine.config.starting_capital)
