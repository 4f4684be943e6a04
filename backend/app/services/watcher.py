"""Per-symbol evaluation dispatch.

A symbol has at most one worker task, so two evaluations of the same
symbol never overlap (the engine's state tracking relies on that). A shared
semaphore bounds how many symbols are evaluated at once. A failure in
one symbol is logged and never stops the others.
"""

import asyncio
import logging
import random
from collections import Counter
from datetime import datetime, timezone
from typing import AsyncIterable, Awaitable, Callable

from app.services.engine import SignalEngine
from app.services.market_hours import MarketHours
from app.storage.quote_stream import QuoteMessage
from core.exceptions import InsufficientHistory, PublishError, SignalEngineError
from core.models import IndicatorSnapshot, LatestQuote

logger = logging.getLogger(__name__)


class Watcher:
    """Drive the engine for a watchlist of symbols."""

    def __init__(
        self,
        engine: SignalEngine,
        watchlist: list[str] | None = None,
        max_concurrency: int = 8,
        market_hours: MarketHours | None = None,
        poll_interval: float = 300.0,
        stagger: float = 5.0,
        clock: Callable[[], datetime] | None = None,
    ):
        self.engine = engine
        self.watchlist = [s.upper() for s in watchlist or []]
        self.market_hours = market_hours
        self.poll_interval = poll_interval
        self.stagger = stagger
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._pending: dict[str, LatestQuote] = {}
        self._workers: dict[str, asyncio.Task] = {}
        self._busy: set[str] = set()
        self._poll_tasks: list[asyncio.Task] = []

        self.stats: Counter = Counter()

    # ------------------------------------------------------------------
    # Single evaluation
    # ------------------------------------------------------------------

    async def _run(
        self,
        symbol: str,
        evaluate: Callable[..., Awaitable[IndicatorSnapshot]],
        *args,
    ) -> IndicatorSnapshot | None:
        """Run one evaluation, isolating its failure from other symbols."""
        try:
            if self.market_hours is not None:
                if not await self.market_hours.is_extended_open(self._clock()):
                    self.stats["skipped_closed"] += 1
                    logger.debug(f"{symbol}: market closed, skipping")
                    return None

            snapshot = await evaluate(*args)
        except InsufficientHistory as e:
            self.stats["insufficient_history"] += 1
            logger.info(f"{symbol}: {e}")
        except PublishError as e:
            self.stats["publish_failed"] += 1
            logger.error(f"{symbol}: state stored but event not delivered: {e}")
        except SignalEngineError as e:
            self.stats["failed"] += 1
            logger.warning(f"{symbol}: evaluation failed: {type(e).__name__}: {e}")
        except Exception:
            self.stats["failed"] += 1
            logger.exception(f"{symbol}: unexpected evaluation error")
        else:
            self.stats["evaluated"] += 1
            return snapshot
        return None

    async def evaluate_quote(self, symbol: str, quote: LatestQuote) -> IndicatorSnapshot | None:
        """Evaluate one quote within the concurrency bound."""
        async with self._semaphore:
            return await self._run(symbol, self.engine.evaluate, symbol, quote)

    # ------------------------------------------------------------------
    # Quote dispatch (at most one worker per symbol)
    # ------------------------------------------------------------------

    def accepts(self, symbol: str) -> bool:
        """An empty watchlist accepts every symbol."""
        return not self.watchlist or symbol.upper() in self.watchlist

    def dispatch(self, symbol: str, quote: LatestQuote) -> bool:
        """
        Queue a quote for evaluation.

        A newer quote replaces one that has not been picked up yet. The
        symbol's worker is started on demand and exits once nothing is
        pending, so idle symbols hold no tasks.

        Returns:
            False if the symbol is not on the watchlist
        """
        symbol = symbol.upper()
        if not self.accepts(symbol):
            return False

        if symbol in self._pending:
            self.stats["superseded"] += 1
        self._pending[symbol] = quote

        if symbol not in self._workers:
            self._workers[symbol] = asyncio.create_task(
                self._worker(symbol), name=f"watch-{symbol}"
            )
        return True

    async def _worker(self, symbol: str) -> None:
        try:
            while symbol in self._pending:
                quote = self._pending.pop(symbol)
                self._busy.add(symbol)
                try:
                    await self.evaluate_quote(symbol, quote)
                finally:
                    self._busy.discard(symbol)
        finally:
            self._workers.pop(symbol, None)

    async def drain(self) -> None:
        """Wait until every queued quote has been evaluated."""
        while self._pending or self._busy:
            await asyncio.sleep(0.01)

    async def run_stream(self, feed: AsyncIterable[QuoteMessage]) -> None:
        """Dispatch quotes from a feed until it ends or the task is cancelled."""
        logger.info(
            f"Watching quote feed for {', '.join(self.watchlist) or 'all symbols'}"
        )
        async for message in feed:
            if not self.dispatch(message.symbol, message.quote):
                self.stats["ignored"] += 1

    # ------------------------------------------------------------------
    # Scheduled polling of provider-computed MACD
    # ------------------------------------------------------------------

    async def _poll(self, symbol: str, delay: float) -> None:
        await asyncio.sleep(delay)
        while True:
            async with self._semaphore:
                await self._run(symbol, self.engine.evaluate_reported, symbol)
            await asyncio.sleep(self.poll_interval)

    async def run_schedule(self) -> None:
        """
        Evaluate every watched symbol each poll interval.

        The watchlist is shuffled so its configured order carries no
        priority, and start times are staggered to spread provider calls.
        """
        if not self.watchlist:
            raise ValueError("Scheduled mode needs a non-empty watchlist")

        symbols = list(self.watchlist)
        random.shuffle(symbols)
        logger.info(
            f"Polling {len(symbols)} symbols every {self.poll_interval:.0f}s: "
            f"{', '.join(symbols)}"
        )

        self._poll_tasks = [
            asyncio.create_task(self._poll(symbol, i * self.stagger), name=f"poll-{symbol}")
            for i, symbol in enumerate(symbols)
        ]
        await asyncio.gather(*self._poll_tasks)

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    async def stop(self) -> None:
        """Cancel all workers and pollers."""
        tasks = list(self._workers.values()) + self._poll_tasks
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        self._workers.clear()
        self._poll_tasks = []
        logger.info(f"Watcher stopped: {dict(self.stats)}")
