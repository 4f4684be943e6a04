"""Data storage layer."""

from app.storage.cache import RedisCache, create_client
from app.storage.memory import MemoryCache
from app.storage.quote_stream import QuoteMessage, RedisQuoteStream

__all__ = [
    "RedisCache",
    "create_client",
    "MemoryCache",
    "QuoteMessage",
    "RedisQuoteStream",
]
