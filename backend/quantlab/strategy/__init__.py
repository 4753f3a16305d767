"""Signal scoring and the mean-reversion strategy.

Public API:
- calculate_confidence / evaluate: weighted confidence and decision rule
- MeanReversionStrategy: indicator set + signal generator for one run
"""

from quantlab.strategy.confidence import (
    BAND_WEIGHT,
    RSI_WEIGHT,
    TREND_WEIGHT,
    VOLATILITY_WEIGHT,
    band_factor,
    calculate_confidence,
    evaluate,
    rsi_factor,
    trend_factor,
    volatility_factor,
)
from quantlab.strategy.mean_reversion import (
    DEFAULT_WARMUP_BARS,
    MEAN_REVERSION_STRATEGY_NAME,
    MeanReversionStrategy,
)

__all__ = [
    "BAND_WEIGHT",
    "RSI_WEIGHT",
    "TREND_WEIGHT",
    "VOLATILITY_WEIGHT",
    "band_factor",
    "calculate_confidence",
    "evaluate",
    "rsi_factor",
    "trend_factor",
    "volatility_factor",
    "DEFAULT_WARMUP_BARS",
    "MEAN_REVERSION_STRATEGY_NAME",
    "MeanReversionStrategy",
]
