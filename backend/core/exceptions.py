"""Error taxonomy for one symbol's evaluation.

Every failure path raises one of these instead of producing a
zero-valued snapshot. Errors are per symbol: the runner catches them
around a single evaluation and moves on.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from core.models.signal import IndicatorSnapshot


class SignalEngineError(Exception):
    """Base class for all engine errors."""


class InsufficientHistory(SignalEngineError):
    """Not enough price points to seed the EMA/signal windows.

    Not retried: the caller should wait for more data to accumulate.
    """

    def __init__(self, symbol: str, available: int, required: int):
        self.symbol = symbol
        self.available = available
        self.required = required
        super().__init__(
            f"{symbol}: insufficient history ({available} points, need {required})"
        )


class MalformedHistoricalData(SignalEngineError):
    """Cache or provider returned a value that cannot be parsed."""


class ProviderError(SignalEngineError):
    """Upstream quote/indicator provider call failed."""


class ProviderUnavailable(ProviderError):
    """Provider unreachable, timed out or answered with an error status."""


class ProviderRateLimited(ProviderError):
    """Provider refused the call because of rate limiting."""


class CacheError(SignalEngineError):
    """Cache backend failed while reading or writing per-symbol state."""


class PublishError(SignalEngineError):
    """Downstream delivery failed after state was already persisted.

    The SignalState/DecayMarker writes for this evaluation are durable;
    callers must not redo them. The computed snapshot is attached.
    """

    def __init__(self, message: str, snapshot: IndicatorSnapshot | None = None):
        self.snapshot = snapshot
        super().__init__(message)
