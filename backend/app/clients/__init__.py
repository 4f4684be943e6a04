"""Provider clients."""

from app.clients.base import RateLimiter, RestClient
from app.clients.robinhood import RobinhoodClient
from app.clients.alphavantage import AlphaVantageClient

__all__ = [
    "RateLimiter",
    "RestClient",
    "RobinhoodClient",
    "AlphaVantageClient",
]
