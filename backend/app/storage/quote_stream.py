"""Redis Streams consumer for inbound quote messages.

Each stream entry carries the fields ``symbol``, ``quote`` and ``at``.
Entries are read with XREAD starting after the last seen id, so the
consumer only sees quotes published after it started (unless a start
id is given).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import AsyncIterator

import redis.asyncio as redis
from pydantic import ValidationError

from core.exceptions import CacheError
from core.models import LatestQuote

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuoteMessage:
    """One parsed quote entry."""

    entry_id: str
    symbol: str
    quote: LatestQuote


def _decode(value: bytes | str) -> str:
    return value.decode() if isinstance(value, bytes) else value


def parse_entry(entry_id: bytes | str, fields: dict) -> QuoteMessage | None:
    """Parse a raw stream entry, or None if it is not a valid quote."""
    data = {_decode(k): _decode(v) for k, v in fields.items()}
    symbol = data.get("symbol", "").strip().upper()
    if not symbol:
        logger.warning(f"Quote entry {_decode(entry_id)} has no symbol, skipping")
        return None

    try:
        quote = LatestQuote.model_validate({"quote": data.get("quote"), "at": data.get("at")})
    except ValidationError as e:
        logger.warning(f"Invalid quote entry {_decode(entry_id)} for {symbol}: {e}")
        return None

    return QuoteMessage(entry_id=_decode(entry_id), symbol=symbol, quote=quote)


class RedisQuoteStream:
    """Async iterator over quote messages in a Redis stream."""

    def __init__(
        self,
        client: redis.Redis,
        stream: str,
        block_ms: int = 5000,
        start_id: str = "$",
        count: int = 100,
    ):
        self._client = client
        self.stream = stream
        self.block_ms = block_ms
        self.last_id = start_id
        self.count = count

    async def read(self) -> list[QuoteMessage]:
        """Read the next batch of entries (blocking up to block_ms)."""
        try:
            response = await self._client.xread(
                {self.stream: self.last_id},
                count=self.count,
                block=self.block_ms,
            )
        except redis.RedisError as e:
            raise CacheError(f"Redis XREAD {self.stream} failed: {e}") from e

        messages = []
        for _stream, entries in response or []:
            for entry_id, fields in entries:
                self.last_id = _decode(entry_id)
                message = parse_entry(entry_id, fields)
                if message is not None:
                    messages.append(message)
        return messages

    async def __aiter__(self) -> AsyncIterator[QuoteMessage]:
        while True:
            for message in await self.read():
                yield message
