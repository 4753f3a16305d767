"""Tests for the simulated cash portfolio."""

import pytest

from backtest.portfolio import Portfolio
from quantlab.models import TradeAction


class TestPortfolio:
    """Tests for Portfolio execution rules."""

    @pytest.fixture
    def portfolio(self):
        return Portfolio(cash=10_000.0)

    def test_buy(self, portfolio):
        assert portfolio.execute_buy(50.0, 100, confidence=0.8, reason="test", timestamp_ns=1)

        assert portfolio.cash == pytest.approx(5_000.0)
        assert portfolio.shares_held == 100
        trade = portfolio.trade_history[-1]
        assert trade.action == TradeAction.BUY
        assert trade.value == pytest.approx(5_000.0)
        assert trade.confidence == 0.8
        assert trade.timestamp_ns == 1

    def test_buy_insufficient_cash_is_noop(self, portfolio):
        assert not portfolio.execute_buy(50.0, 201)

        assert portfolio.cash == 10_000.0
        assert portfolio.shares_held == 0
        assert portfolio.trade_history == []

    def test_buy_exact_cash(self, portfolio):
        assert portfolio.execute_buy(100.0, 100)
        assert portfolio.cash == 0.0

    def test_zero_shares_rejected(self, portfolio):
        assert not portfolio.execute_buy(50.0, 0)
        assert not portfolio.execute_sell(50.0, 0)
        assert portfolio.trade_history == []

    def test_sell(self, portfolio):
        portfolio.execute_buy(50.0, 100)
        assert portfolio.execute_sell(60.0, 40)

        assert portfolio.cash == pytest.approx(5_000.0 + 2_400.0)
        assert portfolio.shares_held == 60
        assert portfolio.trade_history[-1].action == TradeAction.SELL

    def test_sell_more_than_held_is_noop(self, portfolio):
        portfolio.execute_buy(50.0, 10)
        assert not portfolio.execute_sell(50.0, 11)

        assert portfolio.shares_held == 10
        assert len(portfolio.trade_history) == 1

    def test_sell_when_flat_is_noop(self, portfolio):
        assert not portfolio.execute_sell(50.0, 1)
        assert portfolio.cash == 10_000.0

    def test_total_value(self, portfolio):
        portfolio.execute_buy(50.0, 100)
        assert portfolio.total_value(55.0) == pytest.approx(5_000.0 + 5_500.0)
        assert portfolio.position_value(55.0) == pytest.approx(5_500.0)

    def test_balances_never_negative(self, portfolio):
        requests = [(50.0, 150), (40.0, 500), (30.0, 90), (20.0, 1000), (60.0, 60)]
        for price, shares in requests:
            portfolio.execute_buy(price, shares)
            portfolio.execute_sell(price, shares // 2)
            assert portfolio.cash >= 0
            assert portfolio.shares_held >= 0
            for mark in (0.0, price, 123.45):
                assert portfolio.total_value(mark) == pytest.approx(
                    portfolio.cash + portfolio.shares_held * mark
                )

    def test_ledger_reconciles_with_balances(self, portfolio):
        portfolio.execute_buy(50.0, 100)
        portfolio.execute_sell(55.0, 30)
        portfolio.execute_buy(45.0, 20)

        bought = sum(t.shares for t in portfolio.trade_history if t.action == TradeAction.BUY)
        sold = sum(t.shares for t in portfolio.trade_history if t.action == TradeAction.SELL)
        spent = sum(t.value for t in portfolio.trade_history if t.action == TradeAction.BUY)
        received = sum(t.value for t in portfolio.trade_history if t.action == TradeAction.SELL)

        assert portfolio.shares_held == bought - sold
        assert portfolio.cash == pytest.approx(10_000.0 - spent + received)

    def test_negative_cash_rejected(self):
        with pytest.raises(ValueError):
            Portfolio(cash=-1.0)
