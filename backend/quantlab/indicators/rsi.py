"""Relative Strength Index built on two EMA accumulators.

Average gain and average loss are smoothed with the same EMA used for the
trend filter (alpha = 2 / (period + 1)), not Wilder's RMA.
"""

from __future__ import annotations

from dataclasses import dataclass

from quantlab.indicators.ema import EmaState, ema_initial, ema_step

NEUTRAL_RSI = 50.0


@dataclass(frozen=True, slots=True)
class RsiState:
    """Immutable RSI accumulator."""

    gains: EmaState
    losses: EmaState
    previous_price: float = 0.0
    value: float = NEUTRAL_RSI
    initialized: bool = False


def rsi_initial(period: int = 14) -> RsiState:
    """Create an uninitialized RSI state."""
    return RsiState(gains=ema_initial(period), losses=ema_initial(period))


def rsi_from_averages(avg_gain: float, avg_loss: float) -> float:
    """Map smoothed gain/loss averages to an RSI value in [0, 100]."""
    if avg_gain == 0.0 and avg_loss == 0.0:
        return NEUTRAL_RSI
    if avg_loss == 0.0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


def rsi_step(state: RsiState, price: float) -> tuple[RsiState, float]:
    """Advance the RSI by one price. Returns (new_state, rsi_value).

    The first price only becomes the reference; no delta exists yet, so
    the smoothing EMAs stay untouched and the neutral value is returned.
    """
    if not state.initialized:
        return (
            RsiState(
                gains=state.gains,
                losses=state.losses,
                previous_price=price,
                value=NEUTRAL_RSI,
                initialized=True,
            ),
            NEUTRAL_RSI,
        )

    delta = price - state.previous_price
    gains, avg_gain = ema_step(state.gains, max(delta, 0.0))
    losses, avg_loss = ema_step(state.losses, max(-delta, 0.0))
    value = rsi_from_averages(avg_gain, avg_loss)

    return (
        RsiState(
            gains=gains,
            losses=losses,
            previous_price=price,
            value=value,
            initialized=True,
        ),
        value,
    )


class RSI:
    """Stateful RSI wrapper around :func:`rsi_step`."""

    def __init__(self, period: int = 14):
        self.period = period
        self._state = rsi_initial(period)

    @property
    def state(self) -> RsiState:
        return self._state

    def update(self, price: float) -> float:
        self._state, value = rsi_step(self._state, price)
        return value

    def value(self) -> float:
        return self._state.value

    def is_ready(self) -> bool:
        return self._state.initialized

    def reset(self) -> None:
        self._state = rsi_initial(self.period)
