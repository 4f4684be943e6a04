"""Signal-line decay window.

Right after a BUY/SELL flip the signal line is recomputed with a wide
window; as days pass without another flip the window narrows toward a
floor. The window is the period of the signal-line EMA.
"""

from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

SECONDS_PER_DAY = Decimal(86400)
DAYS_PER_WEEK = Decimal(7)


def elapsed_days(since: datetime, now: datetime) -> Decimal:
    """Fractional days between two timestamps."""
    seconds = Decimal(str((now - since).total_seconds()))
    return seconds / SECONDS_PER_DAY


def decay_window(
    marker: datetime | None,
    now: datetime,
    max_period: int = 9,
    min_period: int = 2,
    decay_per_week: int = 5,
) -> int:
    """
    Calculate the signal-line window from the last transition time.

    window = max_period - round(elapsed_days * decay_per_week / 7),
    rounded half away from zero, clamped to [min_period, max_period].

    Args:
        marker: When the current state started (None = just now)
        now: Evaluation time
        max_period: Window right after a transition
        min_period: Floor the window decays to
        decay_per_week: Window steps lost per 7 days

    Returns:
        Window size
    """
    if marker is None:
        return max_period

    decayed = elapsed_days(marker, now) * Decimal(decay_per_week) / DAYS_PER_WEEK
    # ROUND_HALF_UP on Decimal rounds half away from zero
    steps = int(decayed.quantize(Decimal(1), rounding=ROUND_HALF_UP))

    return max(min_period, min(max_period, max_period - steps))
