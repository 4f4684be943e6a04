"""Collaborator protocols for the signal engine.

Any backend (Redis, HTTP provider, in-memory fake) can implement these
to be injected into the engine.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Protocol, runtime_checkable

from core.models import PricePoint, ReportedMacd, SignalState


@runtime_checkable
class HistoricalPriceSource(Protocol):
    """Source of daily close history."""

    async def fetch_daily_closes(self, symbol: str) -> list[PricePoint]:
        """Fetch the full daily close series for a symbol.

        Raises:
            ProviderUnavailable, ProviderRateLimited
        """
        ...


@runtime_checkable
class IndicatorSource(Protocol):
    """Source of MACD values computed by an external provider."""

    async def fetch_macd(self, symbol: str) -> ReportedMacd:
        """Fetch the most recent daily MACD/signal pair.

        Raises:
            ProviderUnavailable, ProviderRateLimited
        """
        ...


@runtime_checkable
class MarketHoursSource(Protocol):
    """Source of exchange session hours as a raw JSON document."""

    async def fetch_market_hours(self, day: date) -> bytes:
        """Fetch the session hours document for one exchange-local day."""
        ...


@runtime_checkable
class Cache(Protocol):
    """Key-value store for day-keyed memos and per-symbol signal state."""

    async def get(self, key: str) -> str | None:
        """Get a raw value, or None if absent."""
        ...

    async def set_if_absent(self, key: str, value: str) -> bool:
        """Store a value only if the key is unset. Returns True if written."""
        ...

    async def get_state(self, symbol: str) -> SignalState | None:
        """Get the persisted signal state for a symbol."""
        ...

    async def set_state(self, symbol: str, state: SignalState) -> None:
        """Persist the signal state for a symbol."""
        ...

    async def get_decay_marker(self, symbol: str) -> datetime | None:
        """Get when the symbol's current state started."""
        ...

    async def set_decay_marker(self, symbol: str, at: datetime) -> None:
        """Reset the symbol's decay marker."""
        ...


@runtime_checkable
class EventSink(Protocol):
    """Downstream consumer of formatted signal events."""

    async def publish(self, key: str, payload: bytes) -> None:
        """Deliver one payload, partitioned by key.

        Raises:
            PublishError: delivery failed
        """
        ...
