"""Price series assembly backed by a day-keyed close cache."""

import logging
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Callable

from core.exceptions import MalformedHistoricalData
from core.market_calendar import DEFAULT_EXCHANGE_TZ, day_close_key, trading_day
from core.models import LatestQuote, PricePoint, PriceSeries
from core.protocols import Cache, HistoricalPriceSource

logger = logging.getLogger(__name__)


def parse_closes(symbol: str, value: str) -> list[Decimal]:
    """Parse a comma-joined close list. Empty fragments are skipped."""
    closes = []
    for part in value.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            close = Decimal(part)
        except InvalidOperation as e:
            raise MalformedHistoricalData(
                f"Unparsable cached close for {symbol}: {part!r}"
            ) from e
        if not close.is_finite():
            raise MalformedHistoricalData(f"Non-finite cached close for {symbol}: {part!r}")
        closes.append(close)
    return closes


def join_closes(closes: list[Decimal]) -> str:
    """Format closes for the cache, without scientific notation."""
    return ",".join(f"{c:f}" for c in closes)


class PriceSeriesAssembler:
    """
    Build the close series for a symbol, ending with the live quote.

    History is fetched from the provider at most once per exchange
    trading day and memoised under ``{SYMBOL}_close_{YYYY_MM_DD}``.
    Only completed sessions at or before the quote time are stored: days
    before both the key's trading day and the quote's trading day. The
    live quote stands for its own session, so that day never appears twice.
    """

    def __init__(
        self,
        cache: Cache,
        source: HistoricalPriceSource,
        exchange_timezone: str = DEFAULT_EXCHANGE_TZ,
        clock: Callable[[], datetime] | None = None,
    ):
        self.cache = cache
        self.source = source
        self.exchange_timezone = exchange_timezone
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def historical_closes(self, symbol: str, quote: LatestQuote) -> list[Decimal]:
        """Get the cached daily closes, fetching and storing them on a miss."""
        today = trading_day(self._clock(), self.exchange_timezone)
        key = day_close_key(symbol, today)

        cached = await self.cache.get(key)
        if cached is not None:
            return parse_closes(symbol, cached)

        points = await self.source.fetch_daily_closes(symbol)
        closes = self._completed_closes(points, quote, today)

        if not closes:
            logger.warning(f"No historical closes for {symbol}, not caching {key}")
            return []

        if await self.cache.set_if_absent(key, join_closes(closes)):
            logger.info(f"Cached {len(closes)} daily closes for {symbol} under {key}")
            return closes

        # Another writer got there first; its value is the day's memo
        stored = await self.cache.get(key)
        return parse_closes(symbol, stored) if stored is not None else closes

    def _completed_closes(
        self,
        points: list[PricePoint],
        quote: LatestQuote,
        today: date,
    ) -> list[Decimal]:
        """Filter, sort and de-duplicate provider points by exchange day."""
        cutoff = min(today, trading_day(quote.at, self.exchange_timezone))
        by_day: dict[date, Decimal] = {}
        for point in sorted(points, key=lambda p: p.at):
            if point.at > quote.at:
                continue  # never use data from after the quote
            day = point.session or trading_day(point.at, self.exchange_timezone)
            if day >= cutoff:
                continue
            by_day[day] = point.close  # last one for a day wins

        return [by_day[day] for day in sorted(by_day)]

    async def assemble(self, symbol: str, quote: LatestQuote) -> PriceSeries:
        """
        Build the series for one evaluation.

        Args:
            symbol: Uppercase ticker
            quote: Latest observed quote

        Returns:
            PriceSeries ending with the quote price
        """
        closes = await self.historical_closes(symbol, quote)
        closes.append(quote.price)
        return PriceSeries(symbol=symbol, closes=closes, observed_at=quote.at)
