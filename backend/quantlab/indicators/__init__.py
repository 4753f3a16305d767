"""Streaming technical indicators (pure math, no I/O).

Each indicator is a pure ``(state, price) -> (state, value)`` step function
plus a small stateful wrapper exposing ``update / value / is_ready / reset``.
"""

from quantlab.indicators.bollinger import (
    Bands,
    BollingerBands,
    BollingerState,
    bollinger_initial,
    bollinger_step,
    compute_bands,
)
from quantlab.indicators.calculator import IndicatorSet, IndicatorSnapshot
from quantlab.indicators.ema import (
    EmaState,
    RollingEMA,
    ema_initial,
    ema_step,
    smoothing_factor,
)
from quantlab.indicators.rsi import (
    NEUTRAL_RSI,
    RSI,
    RsiState,
    rsi_from_averages,
    rsi_initial,
    rsi_step,
)

__all__ = [
    "Bands",
    "BollingerBands",
    "BollingerState",
    "bollinger_initial",
    "bollinger_step",
    "compute_bands",
    "IndicatorSet",
    "IndicatorSnapshot",
    "EmaState",
    "RollingEMA",
    "ema_initial",
    "ema_step",
    "smoothing_factor",
    "NEUTRAL_RSI",
    "RSI",
    "RsiState",
    "rsi_from_averages",
    "rsi_initial",
    "rsi_step",
]
