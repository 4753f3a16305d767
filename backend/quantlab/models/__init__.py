"""Data models shared by indicators, strategy, and backtesting."""

from quantlab.models.bar import Bar, Quote
from quantlab.models.config import StrategyConfig
from quantlab.models.signal import Signal, SignalType
from quantlab.models.trade import Trade, TradeAction

__all__ = [
    "Bar",
    "Quote",
    "StrategyConfig",
    "Signal",
    "SignalType",
    "Trade",
    "TradeAction",
]
