"""Executed trade record."""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class TradeAction(str, Enum):
    """Side of an executed trade."""

    BUY = "BUY"
    SELL = "SELL"


class Trade(BaseModel):
    """A simulated fill appended to the portfolio ledger."""

    model_config = ConfigDict(frozen=True)

    action: TradeAction
    price: float
    shares: int
    value: float  # price * shares
    confidence: float = 0.0
    reason: str = ""
    timestamp_ns: int | None = None
