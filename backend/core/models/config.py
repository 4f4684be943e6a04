"""Indicator engine configuration models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator


class EngineConfig(BaseModel):
    """Indicator and decay parameters for the signal engine."""

    model_config = ConfigDict(frozen=True)

    # MACD periods
    short_period: int = Field(default=12, gt=0)
    long_period: int = Field(default=26, gt=0)

    # Signal line decay window (the signal-line EMA period)
    max_signal_period: int = Field(default=9, gt=0)
    min_signal_period: int = Field(default=2, gt=0)
    decay_per_week: int = Field(default=5, ge=0)  # window shrinks 5 steps per 7 days

    # Trailing MACD points the signal line is computed over
    signal_lookback: int = Field(default=30, gt=0)

    # Exchange calendar for day-keyed caching
    exchange_timezone: str = "America/New_York"

    @model_validator(mode="after")
    def _check_periods(self) -> "EngineConfig":
        if self.short_period >= self.long_period:
            raise ValueError("short_period must be smaller than long_period")
        if self.min_signal_period > self.max_signal_period:
            raise ValueError("min_signal_period must not exceed max_signal_period")
        if self.signal_lookback < self.max_signal_period:
            raise ValueError("signal_lookback must cover max_signal_period")
        return self
