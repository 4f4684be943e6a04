"""Alpha Vantage REST client for provider-computed MACD values."""

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation

from app.clients.base import RateLimiter, RestClient
from core.exceptions import MalformedHistoricalData, ProviderRateLimited, ProviderUnavailable
from core.models import ReportedMacd

logger = logging.getLogger(__name__)

MACD_SECTION = "Technical Analysis: MACD"


def pick_entry_key(keys: list[str], now: datetime) -> str | None:
    """Pick today's entry, else yesterday's (UTC dates), else the newest one.

    Entry keys look like "2024-01-05" or "2024-01-05 16:00".
    """
    if not keys:
        return None

    today = now.astimezone(timezone.utc).strftime("%Y-%m-%d")
    yesterday = (now - timedelta(days=1)).astimezone(timezone.utc).strftime("%Y-%m-%d")

    for day in (today, yesterday):
        matches = sorted(k for k in keys if k.startswith(day))
        if matches:
            return matches[-1]

    return max(keys)


class AlphaVantageClient(RestClient):
    """Daily MACD indicator client (IndicatorSource)."""

    BASE_URL = "https://www.alphavantage.co"

    def __init__(self, api_key: str, calls_per_minute: int = 5, **kwargs):
        kwargs.setdefault("rate_limiter", RateLimiter(calls_per_minute))
        super().__init__(**kwargs)
        self.api_key = api_key

    async def fetch_macd(self, symbol: str) -> ReportedMacd:
        """
        Fetch the most recent daily MACD/signal pair for a symbol.

        Args:
            symbol: Ticker (e.g., "AAPL")

        Returns:
            ReportedMacd stamped with the fetch time
        """
        data = await self._request(
            "GET",
            "/query",
            params={
                "function": "MACD",
                "symbol": symbol,
                "interval": "daily",
                "series_type": "close",
                "apikey": self.api_key,
            },
        )

        if not isinstance(data, dict):
            raise MalformedHistoricalData(f"{symbol}: unexpected MACD payload")

        # Throttled calls come back as 200 with a note instead of data
        if "Note" in data or "Information" in data:
            raise ProviderRateLimited(data.get("Note") or data.get("Information"))
        if "Error Message" in data:
            raise ProviderUnavailable(f"{symbol}: {data['Error Message']}")

        now = datetime.now(timezone.utc)
        analysis = data.get(MACD_SECTION)
        if not isinstance(analysis, dict):
            raise MalformedHistoricalData(f"{symbol}: missing '{MACD_SECTION}'")

        key = pick_entry_key(list(analysis.keys()), now)
        if key is None:
            raise MalformedHistoricalData(f"{symbol}: empty MACD series")

        try:
            entry = analysis[key]
            return ReportedMacd(
                symbol=symbol,
                macd=Decimal(entry["MACD"]),
                macd_signal=Decimal(entry["MACD_Signal"]),
                observed_at=now,
            )
        except (KeyError, TypeError, InvalidOperation) as e:
            raise MalformedHistoricalData(f"{symbol}: unparsable MACD entry {key}") from e
