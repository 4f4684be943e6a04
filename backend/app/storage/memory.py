"""In-process cache for dry runs and tests.

Same contract as RedisCache, state lives only as long as the process.
"""

from __future__ import annotations

from datetime import datetime

from core.models import SignalState


class MemoryCache:
    """Dict-backed Cache protocol implementation."""

    def __init__(self):
        self.values: dict[str, str] = {}
        self.states: dict[str, SignalState] = {}
        self.markers: dict[str, datetime] = {}

    async def get(self, key: str) -> str | None:
        return self.values.get(key)

    async def set_if_absent(self, key: str, value: str) -> bool:
        if key in self.values:
            return False
        self.values[key] = value
        return True

    async def get_state(self, symbol: str) -> SignalState | None:
        return self.states.get(symbol)

    async def set_state(self, symbol: str, state: SignalState) -> None:
        self.states[symbol] = state

    async def get_decay_marker(self, symbol: str) -> datetime | None:
        return self.markers.get(symbol)

    async def set_decay_marker(self, symbol: str, at: datetime) -> None:
        self.markers[symbol] = at
