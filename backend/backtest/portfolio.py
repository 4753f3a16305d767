"""Single-asset cash portfolio for simulated execution.

No margin, no shorting: a buy needs enough cash, a sell needs enough shares.
Requests that cannot be filled are skipped (logged, never raised), so a
run always completes.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field

from quantlab.models.trade import Trade, TradeAction

logger = logging.getLogger(__name__)


class Portfolio(BaseModel):
    """Cash, share position, and the append-only trade ledger."""

    cash: float = Field(default=100_000.0, ge=0.0)
    shares_held: int = Field(default=0, ge=0)
    trade_history: list[Trade] = Field(default_factory=list)

    def total_value(self, price: float) -> float:
        """Cash plus the position marked at ``price``."""
        return self.cash + self.shares_held * price

    def position_value(self, price: float) -> float:
        return self.shares_held * price

    def can_buy(self, price: float, shares: int) -> bool:
        return shares > 0 and self.cash >= price * shares

    def can_sell(self, shares: int) -> bool:
        return 0 < shares <= self.shares_held

    def execute_buy(
        self,
        price: float,
        shares: int,
        confidence: float = 0.0,
        reason: str = "",
        timestamp_ns: int | None = None,
    ) -> bool:
        """Buy ``shares`` at ``price`` if cash allows. Returns True if filled."""
        if not self.can_buy(price, shares):
            logger.debug(
                f"BUY skipped: {shares} @ {price:.2f} needs {price * shares:.2f}, "
                f"cash {self.cash:.2f}"
            )
            return False

        cost = price * shares
        self.cash -= cost
        self.shares_held += shares
        self.trade_history.append(
            Trade(
                action=TradeAction.BUY,
                price=price,
                shares=shares,
                value=cost,
                confidence=confidence,
                reason=reason,
                timestamp_ns=timestamp_ns,
            )
        )
        logger.debug(f"BUY {shares} @ {price:.2f} (cash={self.cash:.2f}, held={self.shares_held})")
        return True

    def execute_sell(
        self,
        price: float,
        shares: int,
        confidence: float = 0.0,
        reason: str = "",
        timestamp_ns: int | None = None,
    ) -> bool:
        """Sell ``shares`` at ``price`` if held. Returns True if filled."""
        if not self.can_sell(shares):
            logger.debug(f"SELL skipped: {shares} requested, {self.shares_held} held")
            return False

        proceeds = price * shares
        self.cash += proceeds
        self.shares_held -= shares
        self.trade_history.append(
            Trade(
                action=TradeAction.SELL,
                price=price,
                shares=shares,
                value=proceeds,
                confidence=confidence,
                reason=reason,
                timestamp_ns=timestamp_ns,
            )
        )
        logger.debug(f"SELL {shares} @ {price:.2f} (cash={self.cash:.2f}, held={self.shares_held})")
        return True
