"""Indicator and signal-decay engine.

One evaluation per call, strictly sequential:

    assemble series -> decay window -> MACD/signal -> state tracker -> publish

All collaborators are injected, so the engine holds no global state and
can be driven with fakes.
"""

import logging
from datetime import datetime, timezone
from typing import Callable

from app.services.price_series import PriceSeriesAssembler
from app.services.publisher import SignalPublisher
from app.services.signal_tracker import DecayWindowCalculator, SignalStateTracker
from core.exceptions import PublishError
from core.indicators import MacdCalculator
from core.models import EngineConfig, IndicatorSnapshot, LatestQuote
from core.protocols import Cache, EventSink, HistoricalPriceSource, IndicatorSource

logger = logging.getLogger(__name__)


class SignalEngine:
    """Evaluate MACD direction for one symbol at a time."""

    def __init__(
        self,
        cache: Cache,
        sink: EventSink,
        price_source: HistoricalPriceSource | None = None,
        indicator_source: IndicatorSource | None = None,
        config: EngineConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.config = config or EngineConfig()
        self.cache = cache
        self.price_source = price_source
        self.indicator_source = indicator_source
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        self.assembler = (
            PriceSeriesAssembler(
                cache,
                price_source,
                exchange_timezone=self.config.exchange_timezone,
                clock=self._clock,
            )
            if price_source is not None
            else None
        )
        self.calculator = MacdCalculator(
            short_period=self.config.short_period,
            long_period=self.config.long_period,
            signal_lookback=self.config.signal_lookback,
        )
        self.decay = DecayWindowCalculator(
            cache,
            max_period=self.config.max_signal_period,
            min_period=self.config.min_signal_period,
            decay_per_week=self.config.decay_per_week,
        )
        self.tracker = SignalStateTracker(cache)
        self.publisher = SignalPublisher(sink)

    async def evaluate(self, symbol: str, quote: LatestQuote) -> IndicatorSnapshot:
        """
        Compute, track and publish the signal for a symbol's latest quote.

        Args:
            symbol: Ticker (upper-cased here)
            quote: Latest observed quote

        Returns:
            IndicatorSnapshot for this evaluation

        Raises:
            InsufficientHistory, MalformedHistoricalData, ProviderError,
            CacheError: nothing was persisted or published
            PublishError: state was persisted, delivery failed
        """
        if self.assembler is None:
            raise RuntimeError("SignalEngine.evaluate needs a HistoricalPriceSource")

        symbol = symbol.upper()
        now = self._clock()

        series = await self.assembler.assemble(symbol, quote)
        window = await self.decay.window(symbol, now)
        macd, macd_signal = self.calculator.calculate_latest(symbol, series.closes, window)

        change = await self.tracker.update(symbol, macd, macd_signal, now)

        snapshot = IndicatorSnapshot(
            symbol=symbol,
            macd=macd,
            macd_signal=macd_signal,
            observed_at=series.observed_at,
            state=change.state,
            changed=change.changed,
            signal_window=window,
        )
        logger.debug(
            f"{symbol}: macd={macd} signal={macd_signal} window={window} "
            f"points={len(series)} state={change.state.value}"
        )

        await self._publish(snapshot)
        return snapshot

    async def evaluate_reported(self, symbol: str) -> IndicatorSnapshot:
        """
        Track and publish MACD values computed by the IndicatorSource.

        No decay window applies: the provider's signal line is used as-is.
        """
        if self.indicator_source is None:
            raise RuntimeError("SignalEngine.evaluate_reported needs an IndicatorSource")

        symbol = symbol.upper()
        reported = await self.indicator_source.fetch_macd(symbol)
        change = await self.tracker.update(
            symbol, reported.macd, reported.macd_signal, self._clock()
        )

        snapshot = IndicatorSnapshot(
            symbol=symbol,
            macd=reported.macd,
            macd_signal=reported.macd_signal,
            observed_at=reported.observed_at,
            state=change.state,
            changed=change.changed,
        )

        await self._publish(snapshot)
        return snapshot

    async def _publish(self, snapshot: IndicatorSnapshot) -> None:
        try:
            await self.publisher.publish(snapshot)
        except PublishError as e:
            logger.error(
                f"{snapshot.symbol}: publish failed after state was stored "
                f"({snapshot.state.value}): {e}"
            )
            raise
