"""Signal state and indicator snapshot models."""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict


class SignalState(str, Enum):
    """Directional state derived from MACD vs. its signal line."""

    BUY = "BUY"
    SELL = "SELL"


def classify(macd: Decimal, macd_signal: Decimal) -> SignalState:
    """Classify a MACD/signal pair.

    Ties classify as SELL.
    """
    if macd > macd_signal:
        return SignalState.BUY
    return SignalState.SELL


class IndicatorSnapshot(BaseModel):
    """Result of one evaluation. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    macd: Decimal
    macd_signal: Decimal
    observed_at: datetime
    state: SignalState
    changed: bool = False
    signal_window: int | None = None  # None when the values came from a provider


class ReportedMacd(BaseModel):
    """MACD values as reported by an external indicator provider."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    macd: Decimal
    macd_signal: Decimal
    observed_at: datetime
