"""Price data models."""

from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _aware(value: datetime) -> datetime:
    """Treat naive timestamps as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class PricePoint(BaseModel):
    """A single daily close.

    ``session`` is the trading day the bar belongs to, when the provider
    states it. Daily bars are often stamped at midnight UTC, which falls
    on the previous evening in the exchange timezone.
    """

    model_config = ConfigDict(frozen=True)

    at: datetime
    close: Decimal
    session: date | None = None

    @field_validator("at")
    @classmethod
    def _aware_at(cls, value: datetime) -> datetime:
        return _aware(value)


class LatestQuote(BaseModel):
    """Most recent observed quote for a symbol.

    Parsed from the inbound quote message ``{"quote": "...", "at": "..."}``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    price: Decimal = Field(alias="quote")
    at: datetime

    @field_validator("price", mode="before")
    @classmethod
    def _parse_price(cls, value: object) -> Decimal:
        # Floats go through repr so the binary value is not carried over
        if isinstance(value, float):
            value = repr(value)
        try:
            price = Decimal(str(value))
        except InvalidOperation as e:
            raise ValueError(f"invalid quote price: {value!r}") from e
        if not price.is_finite():
            raise ValueError(f"invalid quote price: {value!r}")
        return price

    @field_validator("at")
    @classmethod
    def _aware_at(cls, value: datetime) -> datetime:
        return _aware(value)


class PriceSeries(BaseModel):
    """Ordered closes for one symbol, oldest first, ending with the latest quote."""

    symbol: str
    closes: list[Decimal] = Field(default_factory=list)
    observed_at: datetime

    @property
    def latest(self) -> Decimal:
        """Get the most recent close (the live quote)."""
        return self.closes[-1]

    def __len__(self) -> int:
        return len(self.closes)
