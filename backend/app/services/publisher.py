"""Signal event formatting and publication."""

import logging
from decimal import ROUND_HALF_UP, Decimal

import orjson

from core.exceptions import PublishError
from core.models import IndicatorSnapshot
from core.protocols import EventSink

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")


def format_decimal(value: Decimal) -> str:
    """Round half-up to exactly two places, plain notation.

    1.005 -> "1.01", 1.004 -> "1.00", -0.001 -> "0.00"
    """
    rounded = Decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    if rounded.is_zero():
        rounded = abs(rounded)  # no "-0.00"
    return f"{rounded:f}"


def build_message(snapshot: IndicatorSnapshot) -> dict[str, str]:
    """Outbound event: {"macd", "macd_signal", "at"}, all strings."""
    return {
        "macd": format_decimal(snapshot.macd),
        "macd_signal": format_decimal(snapshot.macd_signal),
        "at": snapshot.observed_at.isoformat(),
    }


class SignalPublisher:
    """Hands formatted snapshots to the EventSink, keyed by symbol."""

    def __init__(self, sink: EventSink):
        self.sink = sink

    async def publish(self, snapshot: IndicatorSnapshot) -> bytes:
        """
        Publish one snapshot.

        Returns:
            The serialized payload

        Raises:
            PublishError: the sink failed (snapshot attached)
        """
        payload = orjson.dumps(build_message(snapshot))

        try:
            await self.sink.publish(snapshot.symbol, payload)
        except PublishError as e:
            e.snapshot = snapshot
            raise
        except Exception as e:
            raise PublishError(f"Publishing {snapshot.symbol} failed: {e}", snapshot) from e

        logger.info(f"{snapshot.symbol} {payload.decode()}")
        return payload
