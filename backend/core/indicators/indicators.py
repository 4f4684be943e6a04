"""Technical indicators for signal generation.

EMA and MACD computed in exact Decimal arithmetic so results do not
drift between runs or platforms.

Seeding rule (used for every EMA in this module): the first output
equals the first input, and there is no warm-up gap, so the output
always has the same length as the input. The live quote is the last
point of the series and takes part in the full warm-up.
"""

from decimal import Decimal
from typing import Sequence

from core.exceptions import InsufficientHistory


# =============================================================================
# Moving averages
# =============================================================================

def smoothing_factor(period: int) -> Decimal:
    """Get the EMA smoothing factor alpha = 2 / (period + 1)."""
    return Decimal(2) / Decimal(period + 1)


def ema(values: Sequence[Decimal], period: int) -> list[Decimal]:
    """
    Calculate Exponential Moving Average.

    ema[0] = values[0]
    ema[i] = ema[i-1] + alpha * (values[i] - ema[i-1])

    Args:
        values: Sequence of price values, oldest first
        period: EMA period

    Returns:
        List of EMA values (same length as input)
    """
    if period < 1:
        raise ValueError(f"EMA period must be positive, got {period}")
    if not values:
        return []

    alpha = smoothing_factor(period)
    result = [Decimal(values[0])]
    for value in values[1:]:
        prev = result[-1]
        result.append(prev + alpha * (value - prev))

    return result


def macd_line(
    values: Sequence[Decimal],
    short_period: int = 12,
    long_period: int = 26,
) -> list[Decimal]:
    """
    Calculate the MACD line (short EMA minus long EMA).

    Args:
        values: Sequence of close prices, oldest first
        short_period: Fast EMA period
        long_period: Slow EMA period

    Returns:
        List of MACD values, one per input value
    """
    short = ema(values, short_period)
    long = ema(values, long_period)
    return [s - l for s, l in zip(short, long)]


# =============================================================================
# MacdCalculator class
# =============================================================================

class MacdCalculator:
    """Calculator for the current MACD and signal-line values.

    The signal line is an EMA of the trailing ``signal_lookback`` MACD
    points, with a caller-supplied period (the decay window).
    """

    def __init__(
        self,
        short_period: int = 12,
        long_period: int = 26,
        signal_lookback: int = 30,
    ):
        self.short_period = short_period
        self.long_period = long_period
        self.signal_lookback = signal_lookback

    def calculate_all(
        self,
        closes: Sequence[Decimal],
        signal_period: int,
    ) -> dict:
        """
        Calculate the MACD line and the signal line over its trailing slice.

        Returns:
            Dict with "macd" (full line) and "signal" (trailing slice only)
        """
        line = macd_line(closes, self.short_period, self.long_period)
        tail = line[-self.signal_lookback:]
        return {
            "macd": line,
            "signal": ema(tail, signal_period),
        }

    def calculate_latest(
        self,
        symbol: str,
        closes: Sequence[Decimal],
        signal_period: int,
    ) -> tuple[Decimal, Decimal]:
        """
        Calculate the latest (macd, macd_signal) pair.

        Raises:
            InsufficientHistory: series shorter than the long period, or
                MACD slice shorter than the signal period
        """
        if len(closes) < self.long_period:
            raise InsufficientHistory(symbol, len(closes), self.long_period)

        values = self.calculate_all(closes, signal_period)
        if len(values["signal"]) < signal_period:
            raise InsufficientHistory(symbol, len(values["signal"]), signal_period)

        return values["macd"][-1], values["signal"][-1]
