"""Tests for confidence scoring and the decision rule."""

import pytest

from quantlab.models import SignalType
from quantlab.strategy import (
    band_factor,
    calculate_confidence,
    evaluate,
    rsi_factor,
    trend_factor,
    volatility_factor,
)


# ---------------------------------------------------------------------------
# Helper
# ---------------------------------------------------------------------------

def make_evaluation(
    price: float = 100.0,
    ema: float = 100.0,
    rsi: float = 50.0,
    bb_upper: float = 110.0,
    bb_middle: float = 100.0,
    bb_lower: float = 90.0,
    rsi_oversold: float = 30.0,
    rsi_overbought: float = 70.0,
    confidence_threshold: float = 0.65,
):
    return evaluate(
        price=price,
        ema=ema,
        rsi=rsi,
        bb_upper=bb_upper,
        bb_middle=bb_middle,
        bb_lower=bb_lower,
        rsi_oversold=rsi_oversold,
        rsi_overbought=rsi_overbought,
        confidence_threshold=confidence_threshold,
    )


class TestFactors:
    """Tests for the individual confidence factors."""

    def test_rsi_factor(self):
        assert rsi_factor(15.0, 30.0, 70.0) == pytest.approx(0.5)
        assert rsi_factor(0.0, 30.0, 70.0) == pytest.approx(1.0)
        assert rsi_factor(85.0, 30.0, 70.0) == pytest.approx(0.5)
        assert rsi_factor(100.0, 30.0, 70.0) == pytest.approx(1.0)
        assert rsi_factor(50.0, 30.0, 70.0) == 0.0

    def test_band_factor(self):
        assert band_factor(100.0, 110.0, 90.0) == 0.0
        assert band_factor(85.0, 110.0, 90.0) == pytest.approx(0.25)
        assert band_factor(115.0, 110.0, 90.0) == pytest.approx(0.25)
        assert band_factor(0.0, 110.0, 90.0) == 1.0

    def test_band_factor_zero_width(self):
        assert band_factor(50.0, 100.0, 100.0) == 0.0

    def test_trend_factor(self):
        assert trend_factor(101.0, 100.0) == pytest.approx(0.1)
        assert trend_factor(99.0, 100.0) == pytest.approx(0.1)
        assert trend_factor(150.0, 100.0) == 1.0
        assert trend_factor(100.0, 0.0) == 0.0

    def test_volatility_factor(self):
        assert volatility_factor(101.0, 100.0, 99.0) == pytest.approx(0.4)
        assert volatility_factor(150.0, 100.0, 50.0) == 1.0
        assert volatility_factor(100.0, 100.0, 100.0) == 0.0


class TestCalculateConfidence:
    """Tests for the weighted confidence score."""

    def test_floor(self):
        assert calculate_confidence(0.0, 0.0, 50.0, 0.0, 0.0, 0.0) == pytest.approx(0.5)

    def test_ceiling(self):
        """Every factor saturated maps to 0.95."""
        confidence = calculate_confidence(
            price=70.0, ema=100.0, rsi=0.0, bb_upper=100.0, bb_middle=95.0, bb_lower=90.0
        )
        assert confidence == pytest.approx(0.95)

    def test_weighting(self):
        """RSI factor 1 and volatility factor 1 only: 0.5 + 0.45 * (0.35 + 0.15)."""
        confidence = calculate_confidence(
            price=100.0, ema=100.0, rsi=0.0, bb_upper=110.0, bb_middle=100.0, bb_lower=90.0
        )
        assert confidence == pytest.approx(0.725)

    def test_bounded(self):
        for rsi in (0.0, 10.0, 30.0, 50.0, 70.0, 90.0, 100.0):
            for price in (1.0, 50.0, 100.0, 200.0):
                confidence = calculate_confidence(price, 100.0, rsi, 110.0, 100.0, 90.0)
                assert 0.5 <= confidence <= 0.95


class TestEvaluate:
    """Tests for the RSI-gated decision rule."""

    def test_buy_when_oversold_and_confident(self):
        signal = make_evaluation(
            price=70.0, ema=100.0, rsi=20.0, bb_upper=100.0, bb_middle=95.0, bb_lower=90.0
        )
        assert signal.signal == SignalType.BUY
        assert signal.reason.startswith("BUY: RSI=20 (oversold<30)")
        assert signal.is_actionable

    def test_sell_when_overbought_and_confident(self):
        signal = make_evaluation(
            price=130.0, ema=100.0, rsi=90.0, bb_upper=110.0, bb_middle=105.0, bb_lower=100.0
        )
        assert signal.signal == SignalType.SELL
        assert signal.reason.startswith("SELL: RSI=90 (overbought>70)")
        assert signal.confidence == pytest.approx(0.5 + 0.45 * (0.35 * 2 / 3 + 0.65))

    def test_hold_when_confidence_below_threshold(self):
        signal = make_evaluation(
            price=70.0,
            ema=100.0,
            rsi=20.0,
            bb_upper=100.0,
            bb_middle=95.0,
            bb_lower=90.0,
            confidence_threshold=0.99,
        )
        assert signal.signal == SignalType.HOLD
        assert signal.reason.startswith("HOLD")

    def test_hold_when_rsi_neutral(self):
        """Price far outside the bands does not trade without an RSI extreme."""
        signal = make_evaluation(price=50.0, rsi=50.0, confidence_threshold=0.5)
        assert signal.signal == SignalType.HOLD
        assert not signal.is_actionable

    def test_bands_do_not_veto(self):
        """Oversold RSI with price inside the bands still buys."""
        signal = make_evaluation(price=100.0, ema=100.0, rsi=0.0)
        assert signal.signal == SignalType.BUY
        assert signal.confidence == pytest.approx(0.725)

    def test_thresholds_are_strict(self):
        assert make_evaluation(rsi=30.0, confidence_threshold=0.5).signal == SignalType.HOLD
        assert make_evaluation(rsi=70.0, confidence_threshold=0.5).signal == SignalType.HOLD

    def test_confidence_equal_to_threshold_trades(self):
        confidence = calculate_confidence(100.0, 100.0, 0.0, 110.0, 100.0, 90.0)
        signal = make_evaluation(rsi=0.0, confidence_threshold=confidence)
        assert signal.signal == SignalType.BUY

    def test_custom_rsi_thresholds(self):
        signal = make_evaluation(rsi=35.0, rsi_oversold=40.0, confidence_threshold=0.5)
        assert signal.signal == SignalType.BUY
        assert "oversold<40" in signal.reason

    def test_snapshot_carried_on_signal(self):
        signal = make_evaluation(price=101.0, ema=99.0, rsi=45.0)
        assert signal.price == 101.0
        assert signal.ema == 99.0
        assert signal.rsi == 45.0
        assert (signal.bb_upper, signal.bb_middle, signal.bb_lower) == (110.0, 100.0, 90.0)
