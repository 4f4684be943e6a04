"""Exchange calendar helpers.

All day boundaries use the exchange's local timezone, not UTC, so a
"trading day" matches the market session.
"""

from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo

DEFAULT_EXCHANGE_TZ = "America/New_York"


def trading_day(at: datetime, tz: str = DEFAULT_EXCHANGE_TZ) -> date:
    """Get the exchange-local calendar day for a timestamp."""
    if at.tzinfo is None:
        raise ValueError("timestamp must be timezone-aware")
    return at.astimezone(ZoneInfo(tz)).date()


def day_close_key(symbol: str, day: date) -> str:
    """Cache key for a symbol's daily closes, e.g. ``ABC_close_2024_01_05``."""
    return f"{symbol}_close_{day:%Y_%m_%d}"


def market_hours_key(market: str, day: date) -> str:
    """Cache key for an exchange's session hours, e.g. ``XNYS_hours_2024_01_05``."""
    return f"{market}_hours_{day:%Y_%m_%d}"
