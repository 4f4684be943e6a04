"""Business services."""

from app.services.engine import SignalEngine
from app.services.market_hours import MarketHours
from app.services.price_series import PriceSeriesAssembler
from app.services.publisher import SignalPublisher, build_message, format_decimal
from app.services.signal_tracker import DecayWindowCalculator, SignalStateTracker, StateChange
from app.services.watcher import Watcher

__all__ = [
    "SignalEngine",
    "MarketHours",
    "PriceSeriesAssembler",
    "SignalPublisher",
    "build_message",
    "format_decimal",
    "DecayWindowCalculator",
    "SignalStateTracker",
    "StateChange",
    "Watcher",
]
