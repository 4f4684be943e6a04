"""Tests for EMA and MACD calculation."""

import pytest
from decimal import Decimal

from core.exceptions import InsufficientHistory
from core.indicators import MacdCalculator, ema, macd_line, smoothing_factor


def _closes(n: int, start: int = 10) -> list[Decimal]:
    return [Decimal(start + i) for i in range(n)]


class TestEMA:
    """Tests for EMA calculation."""

    def test_smoothing_factor(self):
        """alpha = 2 / (period + 1)."""
        assert smoothing_factor(9) == Decimal(2) / Decimal(10)
        assert smoothing_factor(1) == Decimal(1)

    def test_ema_same_length_as_input(self):
        """Output has one value per input value."""
        values = _closes(40)
        for period in (2, 9, 12, 26):
            assert len(ema(values, period)) == len(values)

    def test_ema_seeds_from_first_value(self):
        """First EMA value equals the first input."""
        values = [Decimal("101.5"), Decimal("99"), Decimal("100")]
        assert ema(values, 12)[0] == Decimal("101.5")

    def test_ema_recursive_relation(self):
        """ema[i] = ema[i-1] + alpha * (x[i] - ema[i-1]) for every i > 0."""
        values = [Decimal(v) for v in ["10", "12.5", "11", "14.25", "13", "15", "9.75", "20"]]
        period = 5
        alpha = smoothing_factor(period)
        result = ema(values, period)

        for i in range(1, len(values)):
            assert result[i] == result[i - 1] + alpha * (values[i] - result[i - 1])

    def test_ema_constant_series(self):
        """EMA of a constant series is that constant."""
        values = [Decimal("42")] * 20
        assert all(v == Decimal("42") for v in ema(values, 9))

    def test_ema_tracks_uptrend_below_price(self):
        """In a steady uptrend the EMA lags below the latest price."""
        values = _closes(30)
        result = ema(values, 5)
        assert result[-1] < values[-1]
        assert result[-1] > result[-2]

    def test_ema_empty_input(self):
        """Empty input gives empty output."""
        assert ema([], 9) == []

    def test_ema_invalid_period(self):
        """Period must be positive."""
        with pytest.raises(ValueError):
            ema(_closes(5), 0)


class TestMACD:
    """Tests for MACD line and calculator."""

    def test_macd_line_is_short_minus_long(self):
        """MACD = EMA(12) - EMA(26) pointwise."""
        values = _closes(35)
        line = macd_line(values, 12, 26)
        short = ema(values, 12)
        long = ema(values, 26)

        assert len(line) == len(values)
        assert line[0] == Decimal(0)
        assert all(line[i] == short[i] - long[i] for i in range(len(values)))

    def test_macd_positive_in_uptrend(self):
        """The fast EMA sits above the slow EMA in a rising market."""
        line = macd_line(_closes(40), 12, 26)
        assert line[-1] > 0

    def test_calculate_latest_uses_trailing_slice(self):
        """Signal line is an EMA over the trailing lookback of the MACD line."""
        calc = MacdCalculator(short_period=12, long_period=26, signal_lookback=30)
        values = _closes(50)

        macd, signal = calc.calculate_latest("ABC", values, signal_period=9)

        line = macd_line(values, 12, 26)
        assert macd == line[-1]
        assert signal == ema(line[-30:], 9)[-1]

    def test_shorter_signal_period_follows_macd_closer(self):
        """A narrow window puts the signal line nearer the MACD line."""
        calc = MacdCalculator()
        values = _closes(40) + [Decimal(v) for v in range(50, 30, -1)]

        macd, wide = calc.calculate_latest("ABC", values, signal_period=9)
        _, narrow = calc.calculate_latest("ABC", values, signal_period=2)

        assert abs(macd - narrow) < abs(macd - wide)

    def test_insufficient_history_below_long_period(self):
        """Fewer points than the long period cannot seed the MACD."""
        calc = MacdCalculator()
        with pytest.raises(InsufficientHistory) as exc_info:
            calc.calculate_latest("ABC", _closes(25), signal_period=9)

        assert exc_info.value.symbol == "ABC"
        assert exc_info.value.available == 25
        assert exc_info.value.required == 26

    def test_insufficient_history_for_signal_period(self):
        """MACD slice shorter than the signal period is rejected."""
        calc = MacdCalculator(short_period=2, long_period=4, signal_lookback=30)
        with pytest.raises(InsufficientHistory):
            calc.calculate_latest("ABC", _closes(5), signal_period=9)

    def test_exactly_enough_history(self):
        """Long period worth of points is enough with a small window."""
        calc = MacdCalculator()
        macd, signal = calc.calculate_latest("ABC", _closes(26), signal_period=9)
        assert isinstance(macd, Decimal)
        assert isinstance(signal, Decimal)
