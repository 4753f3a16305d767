"""Exponential Moving Average.

EMA_t = alpha * price_t + (1 - alpha) * EMA_{t-1},  alpha = 2 / (period + 1)

The first observation seeds the average directly, so the indicator is
ready after a single update.
"""

from __future__ import annotations

from dataclasses import dataclass, replace


@dataclass(frozen=True, slots=True)
class EmaState:
    """Immutable EMA accumulator."""

    alpha: float
    value: float = 0.0
    initialized: bool = False


def smoothing_factor(period: int) -> float:
    """Return alpha for a given period."""
    if period <= 0:
        raise ValueError(f"EMA period must be positive, got {period}")
    return 2.0 / (period + 1)


def ema_initial(period: int) -> EmaState:
    """Create an uninitialized EMA state."""
    return EmaState(alpha=smoothing_factor(period))


def ema_step(state: EmaState, price: float) -> tuple[EmaState, float]:
    """Advance the EMA by one price. Returns (new_state, ema_value)."""
    if not state.initialized:
        value = price
    else:
        value = state.alpha * price + (1 - state.alpha) * state.value
    return replace(state, value=value, initialized=True), value


class RollingEMA:
    """Stateful EMA wrapper around :func:`ema_step`."""

    def __init__(self, period: int):
        self.period = period
        self._state = ema_initial(period)

    @property
    def state(self) -> EmaState:
        return self._state

    def update(self, price: float) -> float:
        self._state, value = ema_step(self._state, price)
        return value

    def value(self) -> float:
        """Last computed EMA (0.0 before the first update)."""
        return self._state.value

    def is_ready(self) -> bool:
        return self._state.initialized

    def reset(self) -> None:
        self._state = ema_initial(self.period)
