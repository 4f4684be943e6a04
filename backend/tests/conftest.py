"""Shared fakes for engine tests."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from app.publishing import LogSink
from app.storage import MemoryCache
from core.exceptions import PublishError
from core.models import PricePoint


class FakePriceSource:
    """HistoricalPriceSource returning a fixed list of points."""

    def __init__(self, points: list[PricePoint] | None = None, error: Exception | None = None):
        self.points = points or []
        self.error = error
        self.calls: list[str] = []

    async def fetch_daily_closes(self, symbol: str) -> list[PricePoint]:
        self.calls.append(symbol)
        if self.error is not None:
            raise self.error
        return list(self.points)


class FailingSink:
    """EventSink that always fails."""

    def __init__(self):
        self.attempts = 0

    async def publish(self, key: str, payload: bytes) -> None:
        self.attempts += 1
        raise PublishError("broker down")


def make_points(
    closes: list,
    start: datetime = datetime(2024, 1, 2, 5, 0, tzinfo=timezone.utc),
) -> list[PricePoint]:
    """One PricePoint per day starting at ``start``."""
    return [
        PricePoint(at=start + timedelta(days=i), close=Decimal(str(c)))
        for i, c in enumerate(closes)
    ]


@pytest.fixture
def memory_cache() -> MemoryCache:
    return MemoryCache()


@pytest.fixture
def log_sink() -> LogSink:
    return LogSink()
