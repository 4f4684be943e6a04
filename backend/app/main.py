"""Main application entry point."""

import asyncio
import logging
import signal
import sys

# Configure logging FIRST, before any other imports
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)

# Reduce noise from third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("asyncio").setLevel(logging.WARNING)

from app.clients import AlphaVantageClient, RobinhoodClient
from app.config import Settings, get_settings
from app.publishing import LogSink, RedisStreamSink
from app.services import MarketHours, SignalEngine, Watcher
from app.storage import MemoryCache, RedisCache, RedisQuoteStream
from core.exceptions import SignalEngineError

logger = logging.getLogger(__name__)


async def run(settings: Settings) -> None:
    """Wire collaborators from settings and run until cancelled."""
    robinhood = RobinhoodClient(
        base_url=settings.historicals_base_url,
        timeout=settings.http_timeout,
    )
    alphavantage = AlphaVantageClient(
        api_key=settings.alphavantage_api_key,
        calls_per_minute=settings.alphavantage_calls_per_minute,
        base_url=settings.alphavantage_base_url,
        timeout=settings.http_timeout,
    )

    redis_cache: RedisCache | None = None
    if settings.dry_run:
        cache = MemoryCache()
        sink = LogSink()
        logger.info("Dry run: in-memory cache, events are only logged")
    else:
        redis_cache = RedisCache.from_url(settings.redis_url)
        if not await redis_cache.ping():
            await redis_cache.close()
            raise RuntimeError(f"Redis not reachable at {settings.redis_url}")
        logger.info(f"Redis connected: {settings.redis_url}")
        cache = redis_cache
        sink = RedisStreamSink(redis_cache.client, settings.signal_stream)

    engine = SignalEngine(
        cache=cache,
        sink=sink,
        price_source=robinhood,
        indicator_source=alphavantage,
        config=settings.engine_config(),
    )
    market_hours = (
        MarketHours(cache, robinhood, exchange_timezone=settings.exchange_timezone)
        if settings.market_hours_only
        else None
    )
    watcher = Watcher(
        engine,
        watchlist=settings.watchlist,
        max_concurrency=settings.max_concurrency,
        market_hours=market_hours,
        poll_interval=settings.poll_interval_seconds,
        stagger=settings.stagger_seconds,
    )

    try:
        if settings.mode == "reported":
            await watcher.run_schedule()
        elif redis_cache is None:
            raise RuntimeError("Stream mode needs Redis; use mode=reported for dry runs")
        else:
            feed = RedisQuoteStream(
                redis_cache.client,
                settings.quote_stream,
                block_ms=settings.consumer_block_ms,
            )
            await watcher.run_stream(feed)
    finally:
        await watcher.stop()
        await robinhood.close()
        await alphavantage.close()
        if redis_cache is not None:
            await redis_cache.close()


async def _main() -> None:
    settings = get_settings()
    task = asyncio.create_task(run(settings))

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, task.cancel)
        except NotImplementedError:
            pass  # Windows

    try:
        await task
    except asyncio.CancelledError:
        logger.info("Shutdown requested")


def main() -> None:
    """Console entry point."""
    try:
        asyncio.run(_main())
    except (RuntimeError, SignalEngineError) as e:
        logger.error(f"Watcher stopped: {type(e).__name__}: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
