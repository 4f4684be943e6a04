"""Per-symbol signal state tracking and decay windows."""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from core.decay import decay_window
from core.models import SignalState, classify
from core.protocols import Cache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StateChange:
    """Outcome of comparing a fresh classification with the stored state."""

    state: SignalState
    previous: SignalState | None
    changed: bool


class DecayWindowCalculator:
    """Signal-line window for a symbol, from its decay marker."""

    def __init__(
        self,
        cache: Cache,
        max_period: int = 9,
        min_period: int = 2,
        decay_per_week: int = 5,
    ):
        self.cache = cache
        self.max_period = max_period
        self.min_period = min_period
        self.decay_per_week = decay_per_week

    async def window(self, symbol: str, now: datetime) -> int:
        """Get the window to use for this evaluation.

        A missing marker counts as a transition that just happened.
        """
        marker = await self.cache.get_decay_marker(symbol)
        return decay_window(
            marker,
            now,
            max_period=self.max_period,
            min_period=self.min_period,
            decay_per_week=self.decay_per_week,
        )


class SignalStateTracker:
    """
    Detect BUY/SELL flips against the persisted state.

    - No stored state: store it, no decay reset (no baseline to flip from)
    - Stored state differs: store it and reset the decay marker to ``at``
    - Stored state matches: no writes

    Read-then-write is not atomic; at most one evaluation per symbol may
    run at a time.
    """

    def __init__(self, cache: Cache):
        self.cache = cache

    async def update(
        self,
        symbol: str,
        macd: Decimal,
        macd_signal: Decimal,
        at: datetime,
    ) -> StateChange:
        state = classify(macd, macd_signal)
        previous = await self.cache.get_state(symbol)

        if previous is None:
            await self.cache.set_state(symbol, state)
            logger.info(f"{symbol}: initial state {state.value}")
            return StateChange(state=state, previous=None, changed=False)

        if previous == state:
            return StateChange(state=state, previous=previous, changed=False)

        await self.cache.set_state(symbol, state)
        await self.cache.set_decay_marker(symbol, at)
        logger.info(f"{symbol}: {previous.value} -> {state.value}, decay reset at {at.isoformat()}")
        return StateChange(state=state, previous=previous, changed=True)
