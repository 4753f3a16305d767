"""Backtest-specific configuration.

Run defaults come from environment variables (``QUANTLAB_`` prefix) or a
``.env`` file; each run then carries an explicit ``BacktestConfig``.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from quantlab.models.config import StrategyConfig


class BacktestSettings(BaseSettings):
    """Backtest defaults loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="QUANTLAB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    starting_capital: float = 1_000_000.0
    position_notional: float = 50_000.0  # Dollar exposure per BUY/SELL
    warmup_bars: int = 20
    risk_free_rate: float = 0.02  # Annual, used by the Sharpe ratio
    periods_per_year: int = 252  # Daily bars

    # Parameter sweep
    max_workers: int = 4
    data_dir: str = "data"  # CsvBarSource root


_settings: BacktestSettings | None = None


def get_backtest_settings() -> BacktestSettings:
    """Get cached backtest settings instance."""
    global _settings
    if _settings is None:
        _settings = BacktestSettings()
    return _settings


class BacktestConfig(BaseModel):
    """Configuration for a single backtest run."""

    model_config = ConfigDict(frozen=True)

    strategy: StrategyConfig = Field(default_factory=StrategyConfig)
    starting_capital: float = 1_000_000.0
    position_notional: float = 50_000.0
    warmup_bars: int = 20
    risk_free_rate: float = 0.02
    periods_per_year: int = 252

    @model_validator(mode="after")
    def _validate(self):
        if self.starting_capital <= 0:
            raise ValueError(f"starting_capital must be positive, got {self.starting_capital}")
        if self.position_notional <= 0:
            raise ValueError(f"position_notional must be positive, got {self.position_notional}")
        if self.warmup_bars < 0:
            raise ValueError(f"warmup_bars must be non-negative, got {self.warmup_bars}")
        if self.periods_per_year <= 0:
            raise ValueError(f"periods_per_year must be positive, got {self.periods_per_year}")
        return self

    @classmethod
    def from_settings(
        cls,
        strategy: StrategyConfig | None = None,
        settings: BacktestSettings | None = None,
    ) -> "BacktestConfig":
        """Build a run config from environment defaults."""
        settings = settings or get_backtest_settings()
        return cls(
            strategy=strategy or StrategyConfig(),
            starting_capital=settings.starting_capital,
            position_notional=settings.position_notional,
            warmup_bars=settings.warmup_bars,
            risk_free_rate=settings.risk_free_rate,
            periods_per_year=settings.periods_per_year,
        )
