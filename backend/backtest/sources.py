"""Bar and quote sources for backtesting and live signals.

The market-data provider itself lives outside this package; anything that
satisfies ``BarSource`` / ``QuoteSource`` can drive a run. In-memory and
CSV implementations are provided for replays and tests.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping, Protocol, Sequence

import pandas as pd

from quantlab.models import Bar, Quote

logger = logging.getLogger(__name__)

NANOS_PER_DAY = 86_400 * 1_000_000_000

BAR_COLUMNS = ["timestamp_ns", "open", "high", "low", "close", "volume"]


class BarSource(Protocol):
    """Protocol for historical bar access."""

    async def get_bars(self, symbol: str, days: int | None = None) -> list[Bar]:
        """Return bars in ascending time order covering the last ``days`` days."""
        ...


class QuoteSource(Protocol):
    """Protocol for latest-quote access."""

    async def get_latest_quote(self, symbol: str) -> Quote | None:
        """Return the latest quote, or None when unavailable."""
        ...


def _tail_days(bars: list[Bar], days: int | None) -> list[Bar]:
    """Keep bars within ``days`` of the newest bar."""
    if days is None or not bars:
        return bars
    cutoff = bars[-1].timestamp_ns - days * NANOS_PER_DAY
    return [b for b in bars if b.timestamp_ns > cutoff]


class InMemoryBarSource:
    """Serve pre-loaded bars per symbol."""

    def __init__(self, bars: Mapping[str, Sequence[Bar]] | None = None):
        self._bars: dict[str, list[Bar]] = {
            symbol: sorted(series, key=lambda b: b.timestamp_ns)
            for symbol, series in (bars or {}).items()
        }

    def add(self, symbol: str, bars: Sequence[Bar]) -> None:
        self._bars[symbol] = sorted(bars, key=lambda b: b.timestamp_ns)

    async def get_bars(self, symbol: str, days: int | None = None) -> list[Bar]:
        return _tail_days(self._bars.get(symbol, []), days)


class InMemoryQuoteSource:
    """Serve fixed quotes per symbol."""

    def __init__(self, quotes: Mapping[str, Quote] | None = None):
        self._quotes = dict(quotes or {})

    def set(self, quote: Quote) -> None:
        self._quotes[quote.symbol] = quote

    async def get_latest_quote(self, symbol: str) -> Quote | None:
        return self._quotes.get(symbol)


class CsvBarSource:
    """Read bars from ``<data_dir>/<SYMBOL>.csv``.

    Expected columns: timestamp_ns, open, high, low, close, volume.
    Rows are sorted by timestamp; a missing file yields no bars.
    """

    def __init__(self, data_dir: str | Path):
        self.data_dir = Path(data_dir)

    def path_for(self, symbol: str) -> Path:
        return self.data_dir / f"{symbol}.csv"

    def load(self, symbol: str) -> list[Bar]:
        path = self.path_for(symbol)
        if not path.exists():
            logger.warning(f"[{symbol}] No bar file at {path}")
            return []

        df = pd.read_csv(path)
        missing = [c for c in BAR_COLUMNS if c not in df.columns]
        if missing:
            raise ValueError(f"{path} is missing columns: {', '.join(missing)}")

        df = df.sort_values("timestamp_ns", kind="stable")
        bars = [
            Bar(
                timestamp_ns=int(row.timestamp_ns),
                open=float(row.open),
                high=float(row.high),
                low=float(row.low),
                close=float(row.close),
                volume=int(row.volume),
            )
            for row in df[BAR_COLUMNS].itertuples(index=False)
        ]
        logger.info(f"[{symbol}] Loaded {len(bars):,} bars from {path}")
        return bars

    async def get_bars(self, symbol: str, days: int | None = None) -> list[Bar]:
        return _tail_days(self.load(symbol), days)


def bars_to_frame(bars: Sequence[Bar]) -> pd.DataFrame:
    """Convert bars to a DataFrame with the CSV column layout."""
    return pd.DataFrame([b.model_dump() for b in bars], columns=BAR_COLUMNS)
