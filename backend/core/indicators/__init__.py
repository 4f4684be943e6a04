"""Technical indicators (pure math, no I/O)."""

from core.indicators.indicators import (
    ema,
    macd_line,
    smoothing_factor,
    MacdCalculator,
)

__all__ = [
    "ema",
    "macd_line",
    "smoothing_factor",
    "MacdCalculator",
]
