"""Event sinks for formatted signal events.

RedisStreamSink appends each event to a Redis stream as ``key``/``value``
fields, so consumers can partition by symbol. LogSink only logs, for dry
runs.
"""

from __future__ import annotations

import logging
from collections import deque

import redis.asyncio as redis

from core.exceptions import PublishError

logger = logging.getLogger(__name__)


class RedisStreamSink:
    """EventSink that XADDs to a Redis stream."""

    def __init__(
        self,
        client: redis.Redis,
        stream: str,
        maxlen: int | None = 100_000,
    ):
        self._client = client
        self.stream = stream
        self.maxlen = maxlen

    async def publish(self, key: str, payload: bytes) -> None:
        """Append one event to the stream.

        Raises:
            PublishError: Redis rejected the write
        """
        try:
            entry_id = await self._client.xadd(
                self.stream,
                {"key": key.encode(), "value": payload},
                maxlen=self.maxlen,
                approximate=True,
            )
        except redis.RedisError as e:
            raise PublishError(f"XADD to {self.stream} failed for {key}: {e}") from e

        logger.debug(f"Published {key} to {self.stream} as {entry_id!r}")


class LogSink:
    """EventSink that only logs (dry run).

    The most recent ``history`` events are kept for inspection.
    """

    def __init__(self, history: int = 1000):
        self.published: deque[tuple[str, bytes]] = deque(maxlen=history)

    async def publish(self, key: str, payload: bytes) -> None:
        self.published.append((key, payload))
        logger.info(f"[dry-run] {key} {payload.decode()}")
