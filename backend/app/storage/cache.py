"""Redis cache layer for day-keyed memos and per-symbol signal state.

Provides:
- Daily close memos ({SYMBOL}_close_{YYYY_MM_DD}), write-once via SET NX
- Signal state per symbol
- Decay markers per symbol

Uses orjson for structured values.
"""

from __future__ import annotations

import logging
from datetime import datetime

import orjson
import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool

from core.exceptions import CacheError
from core.models import SignalState

logger = logging.getLogger(__name__)


# =============================================================================
# Key prefixes for different data types
# =============================================================================

KEY_PREFIX_STATE = "signal_state:"   # Signal state: signal_state:{symbol}
KEY_PREFIX_DECAY = "decay_marker:"   # Decay marker: decay_marker:{symbol}


def _state_key(symbol: str) -> str:
    return f"{KEY_PREFIX_STATE}{symbol}"


def _decay_key(symbol: str) -> str:
    return f"{KEY_PREFIX_DECAY}{symbol}"


# =============================================================================
# Connection management
# =============================================================================

def create_client(redis_url: str, max_connections: int = 20) -> redis.Redis:
    """Create a Redis client backed by its own connection pool."""
    pool = ConnectionPool.from_url(
        redis_url,
        max_connections=max_connections,
        decode_responses=False,  # We handle encoding ourselves
    )
    return redis.Redis(connection_pool=pool)


class RedisCache:
    """Cache protocol implementation on top of redis.asyncio."""

    def __init__(self, client: redis.Redis):
        self._client = client

    @classmethod
    def from_url(cls, redis_url: str) -> RedisCache:
        return cls(create_client(redis_url))

    @property
    def client(self) -> redis.Redis:
        return self._client

    async def ping(self) -> bool:
        """Check if Redis is responsive."""
        try:
            return bool(await self._client.ping())
        except redis.RedisError:
            return False

    async def close(self) -> None:
        """Close the client and its connection pool."""
        await self._client.aclose()
        logger.info("Redis connection closed")

    # =========================================================================
    # Basic operations
    # =========================================================================

    async def get(self, key: str) -> str | None:
        """Get a value from cache.

        Args:
            key: Cache key

        Returns:
            Decoded string or None if not found
        """
        try:
            data = await self._client.get(key)
        except redis.RedisError as e:
            raise CacheError(f"Redis GET {key} failed: {e}") from e

        if data is None:
            return None
        return data.decode() if isinstance(data, bytes) else data

    async def set_if_absent(self, key: str, value: str) -> bool:
        """Set a value only if the key does not exist yet.

        Args:
            key: Cache key
            value: String to store

        Returns:
            True if this call wrote the value, False if it was already set
        """
        try:
            written = await self._client.set(key, value.encode(), nx=True)
        except redis.RedisError as e:
            raise CacheError(f"Redis SET NX {key} failed: {e}") from e

        if not written:
            logger.debug(f"Key {key} already set, keeping first value")
        return bool(written)

    # =========================================================================
    # Signal state
    # =========================================================================

    async def get_state(self, symbol: str) -> SignalState | None:
        """Get the persisted signal state for a symbol."""
        value = await self.get(_state_key(symbol))
        if value is None:
            return None

        try:
            return SignalState(value)
        except ValueError as e:
            raise CacheError(f"Unknown signal state for {symbol}: {value!r}") from e

    async def set_state(self, symbol: str, state: SignalState) -> None:
        """Persist the signal state for a symbol."""
        try:
            await self._client.set(_state_key(symbol), state.value.encode())
        except redis.RedisError as e:
            raise CacheError(f"Redis SET state for {symbol} failed: {e}") from e

    # =========================================================================
    # Decay markers (JSON via orjson)
    # =========================================================================

    async def get_decay_marker(self, symbol: str) -> datetime | None:
        """Get when the symbol's current state started."""
        value = await self.get(_decay_key(symbol))
        if value is None:
            return None

        try:
            data = orjson.loads(value)
            return datetime.fromisoformat(data["transition_started_at"])
        except (orjson.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise CacheError(f"Malformed decay marker for {symbol}: {value!r}") from e

    async def set_decay_marker(self, symbol: str, at: datetime) -> None:
        """Reset the symbol's decay marker."""
        data = orjson.dumps({"symbol": symbol, "transition_started_at": at.isoformat()})
        try:
            await self._client.set(_decay_key(symbol), data)
        except redis.RedisError as e:
            raise CacheError(f"Redis SET decay marker for {symbol} failed: {e}") from e
