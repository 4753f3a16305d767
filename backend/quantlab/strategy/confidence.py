"""Weighted confidence score and the RSI-gated decision rule.

Confidence blends four normalized factors, each clamped to [0, 1]:

    factor              weight
    RSI extremity       0.35
    band extremity      0.30
    trend deviation     0.20
    volatility regime   0.15

The weighted average is mapped into [0.5, 0.95]. Only the RSI extreme and
the confidence threshold gate BUY/SELL; band position and trend shape the
score but never veto a signal on their own.

This module is pure business logic with no I/O dependencies.
"""

from __future__ import annotations

from quantlab.models.signal import Signal, SignalType

RSI_WEIGHT = 0.35
BAND_WEIGHT = 0.30
TREND_WEIGHT = 0.20
VOLATILITY_WEIGHT = 0.15

# Output range of the confidence score
CONFIDENCE_FLOOR = 0.5
CONFIDENCE_SPAN = 0.45

TREND_SCALE = 10.0
VOLATILITY_SCALE = 20.0


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def rsi_factor(rsi: float, rsi_oversold: float, rsi_overbought: float) -> float:
    """How far RSI sits beyond its oversold/overbought threshold."""
    if rsi <= rsi_oversold:
        if rsi_oversold <= 0:
            return 0.0
        return _clamp((rsi_oversold - rsi) / rsi_oversold)
    if rsi >= rsi_overbought:
        if rsi_overbought >= 100:
            return 0.0
        return _clamp((rsi - rsi_overbought) / (100.0 - rsi_overbought))
    return 0.0


def band_factor(price: float, bb_upper: float, bb_lower: float) -> float:
    """Distance outside the bands, in band widths."""
    width = bb_upper - bb_lower
    if width <= 0:
        return 0.0
    if price < bb_lower:
        return _clamp((bb_lower - price) / width)
    if price > bb_upper:
        return _clamp((price - bb_upper) / width)
    return 0.0


def trend_factor(price: float, ema: float) -> float:
    """Relative deviation of price from the EMA, scaled by 10."""
    if ema <= 0:
        return 0.0
    return _clamp(abs(price - ema) / ema * TREND_SCALE)


def volatility_factor(bb_upper: float, bb_middle: float, bb_lower: float) -> float:
    """Band width as a fraction of the middle band, scaled by 20."""
    width = bb_upper - bb_lower
    if bb_middle <= 0 or width <= 0:
        return 0.0
    return _clamp(width / bb_middle * VOLATILITY_SCALE)


def calculate_confidence(
    price: float,
    ema: float,
    rsi: float,
    bb_upper: float,
    bb_middle: float,
    bb_lower: float,
    rsi_oversold: float = 30.0,
    rsi_overbought: float = 70.0,
) -> float:
    """Return the weighted confidence score in [0.5, 0.95]."""
    weighted = (
        (RSI_WEIGHT, rsi_factor(rsi, rsi_oversold, rsi_overbought)),
        (BAND_WEIGHT, band_factor(price, bb_upper, bb_lower)),
        (TREND_WEIGHT, trend_factor(price, ema)),
        (VOLATILITY_WEIGHT, volatility_factor(bb_upper, bb_middle, bb_lower)),
    )
    total_weight = sum(w for w, _ in weighted)
    total_score = sum(w * score for w, score in weighted)
    average = total_score / total_weight if total_weight > 0 else 0.0
    return CONFIDENCE_FLOOR + average * CONFIDENCE_SPAN


def evaluate(
    price: float,
    ema: float,
    rsi: float,
    bb_upper: float,
    bb_middle: float,
    bb_lower: float,
    rsi_oversold: float,
    rsi_overbought: float,
    confidence_threshold: float,
    timestamp_ns: int | None = None,
) -> Signal:
    """Score the current indicator readings and classify them.

    Precedence: BUY (RSI below oversold), then SELL (RSI above overbought),
    both requiring ``confidence >= confidence_threshold``; otherwise HOLD.
    """
    confidence = calculate_confidence(
        price, ema, rsi, bb_upper, bb_middle, bb_lower, rsi_oversold, rsi_overbought
    )
    pct = int(confidence * 100)

    if rsi < rsi_oversold and confidence >= confidence_threshold:
        signal = SignalType.BUY
        reason = f"BUY: RSI={int(rsi)} (oversold<{rsi_oversold:g}), confidence={pct}%"
    elif rsi > rsi_overbought and confidence >= confidence_threshold:
        signal = SignalType.SELL
        reason = f"SELL: RSI={int(rsi)} (overbought>{rsi_overbought:g}), confidence={pct}%"
    else:
        signal = SignalType.HOLD
        reason = (
            f"HOLD: RSI={int(rsi)}, confidence={pct}% "
            f"(need >={int(confidence_threshold * 100)}% at an RSI extreme)"
        )

    return Signal(
        signal=signal,
        confidence=confidence,
        reason=reason,
        price=price,
        ema=ema,
        rsi=rsi,
        bb_upper=bb_upper,
        bb_middle=bb_middle,
        bb_lower=bb_lower,
        timestamp_ns=timestamp_ns,
    )
