"""Bollinger Bands over a rolling window of closes.

middle = SMA(window)
upper/lower = middle +/- k * population std-dev of the window

Until the window holds ``period`` prices there is no result: the step
returns ``None`` instead of zero-valued bands, so "not ready" can never be
mistaken for a real quote of 0.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True, slots=True)
class Bands:
    """One Bollinger Bands reading."""

    upper: float
    middle: float
    lower: float
    std_dev: float

    @property
    def width(self) -> float:
        return self.upper - self.lower


@dataclass(frozen=True, slots=True)
class BollingerState:
    """Immutable Bollinger accumulator holding the last ``period`` closes."""

    period: int
    k: float
    window: tuple[float, ...] = ()
    bands: Bands | None = None


def bollinger_initial(period: int = 20, k: float = 2.0) -> BollingerState:
    """Create an empty Bollinger state."""
    if period <= 0:
        raise ValueError(f"Bollinger period must be positive, got {period}")
    if k <= 0:
        raise ValueError(f"Bollinger multiplier must be positive, got {k}")
    return BollingerState(period=period, k=k)


def compute_bands(window: tuple[float, ...] | list[float], k: float) -> Bands:
    """Compute bands for a full window."""
    arr = np.asarray(window, dtype=np.float64)
    middle = float(arr.mean())
    std_dev = float(np.sqrt(np.mean((arr - middle) ** 2)))
    return Bands(
        upper=middle + k * std_dev,
        middle=middle,
        lower=middle - k * std_dev,
        std_dev=std_dev,
    )


def bollinger_step(
    state: BollingerState, price: float
) -> tuple[BollingerState, Bands | None]:
    """Push a price into the window. Returns (new_state, bands or None)."""
    window = (state.window + (price,))[-state.period:]
    if len(window) < state.period:
        return BollingerState(period=state.period, k=state.k, window=window), None

    bands = compute_bands(window, state.k)
    return (
        BollingerState(period=state.period, k=state.k, window=window, bands=bands),
        bands,
    )


class BollingerBands:
    """Stateful Bollinger wrapper around :func:`bollinger_step`."""

    def __init__(self, period: int = 20, k: float = 2.0):
        self.period = period
        self.k = k
        self._state = bollinger_initial(period, k)

    @property
    def state(self) -> BollingerState:
        return self._state

    def update(self, price: float) -> Bands | None:
        self._state, bands = bollinger_step(self._state, price)
        return bands

    def value(self) -> Bands | None:
        """Latest bands, or ``None`` while warming up."""
        return self._state.bands

    def is_ready(self) -> bool:
        return self._state.bands is not None

    def reset(self) -> None:
        self._state = bollinger_initial(self.period, self.k)
