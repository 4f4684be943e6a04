"""Robinhood REST client for daily closes and exchange session hours."""

import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

import orjson

from app.clients.base import RestClient
from core.exceptions import MalformedHistoricalData
from core.models import PricePoint

logger = logging.getLogger(__name__)


class RobinhoodClient(RestClient):
    """Quotes/markets API client (HistoricalPriceSource, MarketHoursSource)."""

    BASE_URL = "https://api.robinhood.com"
    MARKET = "XNYS"

    async def fetch_daily_closes(self, symbol: str) -> list[PricePoint]:
        """
        Fetch the daily close history for a symbol.

        Args:
            symbol: Ticker (e.g., "AAPL")

        Returns:
            List of PricePoint in provider order
        """
        data = await self._request(
            "GET", f"/quotes/historicals/{symbol}/", params={"interval": "day"}
        )

        try:
            rows = data.get("historicals") or []
            points = [
                PricePoint(
                    at=datetime.fromisoformat(row["begins_at"].replace("Z", "+00:00")),
                    close=Decimal(row["close_price"]),
                    # Daily bars begin at midnight UTC of their session date
                    session=date.fromisoformat(row["begins_at"][:10]),
                )
                for row in rows
            ]
        except (AttributeError, KeyError, TypeError, ValueError, InvalidOperation) as e:
            raise MalformedHistoricalData(
                f"Unparsable historicals payload for {symbol}: {e}"
            ) from e

        logger.debug(f"Fetched {len(points)} daily closes for {symbol}")
        return points

    async def fetch_market_hours(self, day: date) -> bytes:
        """
        Fetch the exchange session hours for one day.

        Returns:
            Raw JSON document (cached as-is by MarketHours)
        """
        data = await self._request("GET", f"/markets/{self.MARKET}/hours/{day:%Y-%m-%d}/")
        return orjson.dumps(data)
