"""Tests for environment-driven settings."""

import pytest
from pydantic import ValidationError

from app.config import Settings
from core.models import EngineConfig


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("EQUITY_WATCHLIST", raising=False)
        monkeypatch.delenv("WATCHLIST", raising=False)
        settings = Settings(_env_file=None)

        assert settings.mode == "stream"
        assert settings.watchlist == []
        assert settings.poll_interval_seconds == 300.0

    def test_watchlist_from_env(self, monkeypatch):
        """Comma-separated watchlist is split, trimmed and upper-cased."""
        monkeypatch.setenv("EQUITY_WATCHLIST", "aapl, msft,,tsla ")

        settings = Settings(_env_file=None)

        assert settings.watchlist == ["AAPL", "MSFT", "TSLA"]

    def test_watchlist_from_list(self):
        settings = Settings(_env_file=None, watchlist=["abc"])

        assert settings.watchlist == ["ABC"]

    def test_engine_config(self, monkeypatch):
        """Indicator settings flow into the engine config."""
        monkeypatch.setenv("MAX_SIGNAL_PERIOD", "12")
        monkeypatch.setenv("SIGNAL_LOOKBACK", "40")

        config = Settings(_env_file=None).engine_config()

        assert config.max_signal_period == 12
        assert config.signal_lookback == 40
        assert config.long_period == 26

    def test_invalid_mode(self, monkeypatch):
        monkeypatch.setenv("MODE", "batch")

        with pytest.raises(ValidationError):
            Settings(_env_file=None)


class TestEngineConfig:
    """Tests for EngineConfig validation."""

    def test_defaults(self):
        config = EngineConfig()

        assert (config.short_period, config.long_period) == (12, 26)
        assert (config.min_signal_period, config.max_signal_period) == (2, 9)
        assert config.signal_lookback == 30

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"short_period": 26, "long_period": 12},
            {"min_signal_period": 10},
            {"signal_lookback": 5},
            {"short_period": 0},
        ],
    )
    def test_invalid(self, kwargs):
        with pytest.raises(ValidationError):
            EngineConfig(**kwargs)
