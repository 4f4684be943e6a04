"""Outbound event delivery."""

from app.publishing.sinks import LogSink, RedisStreamSink

__all__ = [
    "LogSink",
    "RedisStreamSink",
]
