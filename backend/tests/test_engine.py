"""End-to-end tests for the signal engine with in-memory collaborators."""

import orjson
import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from conftest import FailingSink, FakePriceSource, make_points

from app.services import SignalEngine
from core.exceptions import InsufficientHistory, PublishError
from core.models import EngineConfig, LatestQuote, ReportedMacd, SignalState

T0 = datetime(2024, 3, 15, 15, 0, tzinfo=timezone.utc)


class FakeIndicatorSource:
    """IndicatorSource returning queued MACD pairs."""

    def __init__(self, *pairs: tuple[str, str]):
        self.pairs = list(pairs)

    async def fetch_macd(self, symbol: str) -> ReportedMacd:
        macd, signal = self.pairs.pop(0)
        return ReportedMacd(
            symbol=symbol,
            macd=Decimal(macd),
            macd_signal=Decimal(signal),
            observed_at=T0,
        )


class Clock:
    """Settable clock."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def _engine(cache, sink, closes=range(10, 41), clock=None, **kwargs) -> SignalEngine:
    return SignalEngine(
        cache=cache,
        sink=sink,
        price_source=FakePriceSource(make_points(list(closes))),
        clock=clock or Clock(T0),
        **kwargs,
    )


class TestEvaluate:
    """Tests for SignalEngine.evaluate."""

    @pytest.mark.asyncio
    async def test_end_to_end_abc(self, memory_cache, log_sink):
        """Closes 10..40 plus a quote of 41 produce a published snapshot."""
        engine = _engine(memory_cache, log_sink)
        quote = LatestQuote(quote="41", at=T0)

        snapshot = await engine.evaluate("abc", quote)

        assert snapshot.symbol == "ABC"
        assert snapshot.observed_at == T0
        assert snapshot.state == SignalState.BUY  # rising prices
        assert snapshot.signal_window == 9
        assert snapshot.changed is False

        key, payload = log_sink.published[0]
        message = orjson.loads(payload)
        assert key == "ABC"
        assert set(message) == {"macd", "macd_signal", "at"}
        for field in ("macd", "macd_signal"):
            whole, frac = message[field].split(".")
            assert len(frac) == 2
        assert message["at"] == T0.isoformat()

    @pytest.mark.asyncio
    async def test_first_evaluation_never_resets_marker(self, memory_cache, log_sink):
        """First run stores the state only."""
        await _engine(memory_cache, log_sink).evaluate("ABC", LatestQuote(quote="41", at=T0))

        assert memory_cache.states["ABC"] == SignalState.BUY
        assert memory_cache.markers == {}

    @pytest.mark.asyncio
    async def test_flip_resets_marker_and_narrows_later(self, memory_cache, log_sink):
        """A flip stores SELL, resets the marker; a week later the window is 4."""
        clock = Clock(T0)
        engine = _engine(memory_cache, log_sink, clock=clock)
        await memory_cache.set_state("ABC", SignalState.BUY)

        crash = await engine.evaluate("ABC", LatestQuote(quote="5", at=T0))

        assert crash.state == SignalState.SELL
        assert crash.changed is True
        assert memory_cache.markers["ABC"] == T0

        clock.now = T0 + timedelta(days=7)
        later = await engine.evaluate("ABC", LatestQuote(quote="5", at=clock.now))

        assert later.signal_window == 4
        assert later.changed is False
        assert memory_cache.markers["ABC"] == T0

    @pytest.mark.asyncio
    async def test_history_fetched_once_per_day(self, memory_cache, log_sink):
        """Second evaluation on the same day hits the cache."""
        engine = _engine(memory_cache, log_sink)

        await engine.evaluate("ABC", LatestQuote(quote="41", at=T0))
        await engine.evaluate("ABC", LatestQuote(quote="42", at=T0 + timedelta(minutes=5)))

        assert engine.price_source.calls == ["ABC"]
        assert len(log_sink.published) == 2

    @pytest.mark.asyncio
    async def test_insufficient_history(self, memory_cache, log_sink):
        """Too few closes: typed error, nothing stored or published."""
        engine = _engine(memory_cache, log_sink, closes=range(10, 20))

        with pytest.raises(InsufficientHistory):
            await engine.evaluate("ABC", LatestQuote(quote="21", at=T0))

        assert memory_cache.states == {}
        assert not log_sink.published

    @pytest.mark.asyncio
    async def test_publish_failure_keeps_state(self, memory_cache):
        """State writes survive a failed publish; the error carries the snapshot."""
        engine = _engine(memory_cache, FailingSink())

        with pytest.raises(PublishError) as exc_info:
            await engine.evaluate("ABC", LatestQuote(quote="41", at=T0))

        assert exc_info.value.snapshot is not None
        assert exc_info.value.snapshot.symbol == "ABC"
        assert memory_cache.states["ABC"] == SignalState.BUY

    @pytest.mark.asyncio
    async def test_custom_periods(self, memory_cache, log_sink):
        """Engine honours its configuration."""
        config = EngineConfig(short_period=3, long_period=6, max_signal_period=4, signal_lookback=10)
        engine = _engine(memory_cache, log_sink, closes=range(1, 8), config=config)

        snapshot = await engine.evaluate("ABC", LatestQuote(quote="8", at=T0))

        assert snapshot.signal_window == 4

    @pytest.mark.asyncio
    async def test_requires_price_source(self, memory_cache, log_sink):
        """evaluate() without a HistoricalPriceSource is a wiring error."""
        engine = SignalEngine(cache=memory_cache, sink=log_sink)

        with pytest.raises(RuntimeError):
            await engine.evaluate("ABC", LatestQuote(quote="41", at=T0))


class TestEvaluateReported:
    """Tests for SignalEngine.evaluate_reported."""

    @pytest.mark.asyncio
    async def test_reported_values_tracked_and_published(self, memory_cache, log_sink):
        """Provider MACD values flow through the tracker and publisher."""
        engine = SignalEngine(
            cache=memory_cache,
            sink=log_sink,
            indicator_source=FakeIndicatorSource(("1.234", "1.1"), ("0.9", "1.1")),
            clock=Clock(T0),
        )

        first = await engine.evaluate_reported("abc")
        second = await engine.evaluate_reported("abc")

        assert first.state == SignalState.BUY
        assert first.signal_window is None
        assert second.state == SignalState.SELL
        assert second.changed is True
        assert memory_cache.markers["ABC"] == T0
        assert orjson.loads(log_sink.published[0][1])["macd"] == "1.23"
