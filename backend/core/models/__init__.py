"""Core data models."""

from core.models.config import EngineConfig
from core.models.price import LatestQuote, PricePoint, PriceSeries
from core.models.signal import (
    IndicatorSnapshot,
    ReportedMacd,
    SignalState,
    classify,
)

__all__ = [
    "EngineConfig",
    "LatestQuote",
    "PricePoint",
    "PriceSeries",
    "IndicatorSnapshot",
    "ReportedMacd",
    "SignalState",
    "classify",
]
