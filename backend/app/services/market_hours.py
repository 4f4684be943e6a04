"""Exchange extended-session gate.

The session hours document is fetched once per exchange-local day and
memoised under ``XNYS_hours_{YYYY_MM_DD}``.
"""

import logging
from datetime import datetime

import orjson

from core.exceptions import MalformedHistoricalData
from core.market_calendar import DEFAULT_EXCHANGE_TZ, market_hours_key, trading_day
from core.protocols import Cache, MarketHoursSource

logger = logging.getLogger(__name__)


def _parse_time(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class MarketHours:
    """Answers whether the exchange's extended session is open."""

    def __init__(
        self,
        cache: Cache,
        source: MarketHoursSource,
        market: str = "XNYS",
        exchange_timezone: str = DEFAULT_EXCHANGE_TZ,
    ):
        self.cache = cache
        self.source = source
        self.market = market
        self.exchange_timezone = exchange_timezone

    async def _hours_document(self, now: datetime) -> dict:
        day = trading_day(now, self.exchange_timezone)
        key = market_hours_key(self.market, day)

        raw = await self.cache.get(key)
        if raw is None:
            body = await self.source.fetch_market_hours(day)
            raw = body.decode()
            await self.cache.set_if_absent(key, raw)

        try:
            data = orjson.loads(raw)
        except orjson.JSONDecodeError as e:
            raise MalformedHistoricalData(f"Unparsable market hours under {key}") from e
        return data if isinstance(data, dict) else {}

    async def is_extended_open(self, now: datetime) -> bool:
        """Check if ``now`` falls inside today's extended session.

        Days without extended hours (weekends, holidays) are closed.
        """
        data = await self._hours_document(now)

        opens_at = data.get("extended_opens_at")
        closes_at = data.get("extended_closes_at")
        if not opens_at or not closes_at:
            return False

        try:
            return _parse_time(opens_at) < now < _parse_time(closes_at)
        except (TypeError, ValueError) as e:
            raise MalformedHistoricalData(f"Unparsable extended hours: {opens_at!r}, {closes_at!r}") from e
