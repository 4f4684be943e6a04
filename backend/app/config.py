"""Application configuration."""

from functools import lru_cache
from typing import Annotated, Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from core.models import EngineConfig


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Redis
    redis_url: str = "redis://localhost:6379/0"
    quote_stream: str = "quotes"           # Inbound {symbol, quote, at} entries
    signal_stream: str = "macd_signals"    # Outbound {key, value} entries
    consumer_block_ms: int = Field(default=5000, gt=0)

    # Watchlist (comma-separated in the environment: EQUITY_WATCHLIST=AAPL,MSFT)
    watchlist: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        validation_alias=AliasChoices("equity_watchlist", "watchlist"),
    )

    # Providers
    historicals_base_url: str = "https://api.robinhood.com"
    alphavantage_base_url: str = "https://www.alphavantage.co"
    alphavantage_api_key: str = ""
    alphavantage_calls_per_minute: int = Field(default=5, gt=0)
    http_timeout: float = Field(default=30.0, gt=0)

    # Runner
    mode: Literal["stream", "reported"] = "stream"
    max_concurrency: int = Field(default=8, gt=0)
    poll_interval_seconds: float = Field(default=300.0, gt=0)  # 5 minutes
    stagger_seconds: float = Field(default=5.0, ge=0)
    market_hours_only: bool = False
    dry_run: bool = False  # In-memory cache and log sink, no Redis

    # Indicator parameters
    exchange_timezone: str = "America/New_York"
    short_period: int = 12
    long_period: int = 26
    max_signal_period: int = 9
    min_signal_period: int = 2
    decay_per_week: int = 5
    signal_lookback: int = 30

    @field_validator("watchlist", mode="before")
    @classmethod
    def _split_watchlist(cls, value: object) -> object:
        if isinstance(value, str):
            value = value.split(",")
        if isinstance(value, (list, tuple)):
            return [s.strip().upper() for s in value if s and s.strip()]
        return value

    def engine_config(self) -> EngineConfig:
        """Build the pure engine configuration."""
        return EngineConfig(
            short_period=self.short_period,
            long_period=self.long_period,
            max_signal_period=self.max_signal_period,
            min_signal_period=self.min_signal_period,
            decay_per_week=self.decay_per_week,
            signal_lookback=self.signal_lookback,
            exchange_timezone=self.exchange_timezone,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
