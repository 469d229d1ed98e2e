"""Property-based tests for technical indicators.

**Feature: crypto-signals**
"""

import math

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from cryptosignals.indicators import (
    calculate_ema,
    calculate_ema_zero_seed,
    calculate_hlc3,
    calculate_rsi,
    calculate_sma,
    calculate_wavetrend,
    is_valid,
)
from cryptosignals.models import Candle


# Strategy for generating realistic price series
@st.composite
def price_series(draw, min_length: int = 50, max_length: int = 200):
    """Generate a realistic price series with positive values and varied movements."""
    length = draw(st.integers(min_value=min_length, max_value=max_length))

    base_price = draw(st.floats(min_value=50.0, max_value=500.0))

    changes = draw(st.lists(
        st.sampled_from([-0.05, -0.03, -0.01, -0.005, 0.0,
                         0.005, 0.01, 0.03, 0.05]),
        min_size=length - 1,
        max_size=length - 1
    ))

    prices = [base_price]
    for change in changes:
        prices.append(max(0.01, prices[-1] * (1 + change)))

    return prices


def make_candles(closes: list[float], spread: float = 1.0) -> list[Candle]:
    return [
        Candle(
            open_time=1_700_000_000_000 + i * 60_000,
            open=c,
            high=c + spread,
            low=c - spread,
            close=c,
        )
        for i, c in enumerate(closes)
    ]


class TestSMA:
    """Simple moving average."""

    def test_warmup_and_values(self):
        result = calculate_sma([1.0, 2.0, 3.0, 4.0, 5.0], 3)

        assert [is_valid(v) for v in result] == [False, False, True, True, True]
        assert result[2:] == [2.0, 3.0, 4.0]

    def test_short_input_is_all_nan(self):
        result = calculate_sma([1.0, 2.0], 3)

        assert len(result) == 2
        assert not any(is_valid(v) for v in result)


class TestEMA:
    """
    *For any* series, the SMA-seeded EMA is aligned with its input, undefined
    before ``period - 1`` and seeded with the SMA of the first window.
    """

    @given(prices=price_series(min_length=30, max_length=120),
           period=st.integers(min_value=2, max_value=25))
    @settings(max_examples=50, deadline=None)
    def test_alignment_and_seed(self, prices: list[float], period: int):
        result = calculate_ema(prices, period)

        assert len(result) == len(prices)
        assert not any(is_valid(v) for v in result[:period - 1])
        assert math.isclose(result[period - 1], sum(prices[:period]) / period)
        assert all(is_valid(v) for v in result[period - 1:])

    def test_recurrence(self):
        values = [2.0, 4.0, 6.0, 8.0]
        result = calculate_ema(values, 3)
        k = 2 / 4

        assert result[2] == 4.0
        assert math.isclose(result[3], 8.0 * k + 4.0 * (1 - k))

    def test_leading_nan_run_is_skipped(self):
        nan = float("nan")
        result = calculate_ema([nan, nan, 1.0, 2.0, 3.0, 4.0], 3)

        assert not any(is_valid(v) for v in result[:4])
        assert result[4] == 2.0
        assert is_valid(result[5])

    def test_zero_seed_starts_at_first_value(self):
        result = calculate_ema_zero_seed([10.0, 20.0, 30.0], 3)

        assert result[0] == 10.0
        assert math.isclose(result[1], 15.0)
        assert math.isclose(result[2], 22.5)

    def test_variants_differ(self):
        values = [float(i % 7) for i in range(40)]

        assert calculate_ema(values, 5)[10] != calculate_ema_zero_seed(values, 5)[10]


class TestRSI:
    """
    *For any* price series, RSI is undefined for the first ``period``
    positions and stays within [0, 100] afterwards.
    """

    @given(prices=price_series(min_length=30, max_length=200))
    @settings(max_examples=100, deadline=None)
    def test_rsi_range(self, prices: list[float]):
        for epsilon in (None, 0.001):
            rsi = calculate_rsi(prices, 14, zero_loss_epsilon=epsilon)

            assert len(rsi) == len(prices)
            assert not any(is_valid(v) for v in rsi[:14])
            for value in rsi[14:]:
                assert 0.0 <= value <= 100.0

    def test_only_gains_gives_100(self):
        prices = [float(i) for i in range(1, 40)]

        rsi = calculate_rsi(prices, 14)

        assert rsi[14:] == [100.0] * (len(prices) - 14)

    def test_only_gains_with_epsilon_is_below_100(self):
        prices = [float(i) for i in range(1, 40)]

        rsi = calculate_rsi(prices, 14, zero_loss_epsilon=0.001)

        # avg gain 1.0 over the epsilon loss
        assert rsi[14] == pytest.approx(100 - 100 / (1 + 1 / 0.001))
        assert rsi[14] < 100.0

    def test_only_losses_gives_zero(self):
        prices = [100.0 - i for i in range(40)]

        assert calculate_rsi(prices, 14)[20] == 0.0

    def test_short_input_is_all_nan(self):
        rsi = calculate_rsi([1.0] * 14, 14)

        assert len(rsi) == 14
        assert not any(is_valid(v) for v in rsi)

    def test_nan_delta_propagates(self):
        prices = [100.0 + (i % 3) for i in range(20)] + [float("nan")] + [101.0] * 10

        rsi = calculate_rsi(prices, 14)

        assert not is_valid(rsi[20])
        assert not any(is_valid(v) for v in rsi[21:])


class TestWaveTrend:
    """WaveTrend oscillator."""

    def test_hlc3(self):
        candle = Candle(open_time=0, open=1.0, high=3.0, low=1.0, close=2.0)

        assert calculate_hlc3([candle]) == [2.0]

    @given(prices=price_series(min_length=60, max_length=150))
    @settings(max_examples=30, deadline=None)
    def test_alignment(self, prices: list[float]):
        candles = make_candles(prices)

        for zero_seed in (False, True):
            wt1, wt2 = calculate_wavetrend(candles, zero_seed=zero_seed)
            assert len(wt1) == len(wt2) == len(candles)
            assert all(is_valid(v) for v in wt1[-10:])

    def test_wt2_is_three_point_mean(self):
        closes = [100 + 5 * math.sin(i / 4) for i in range(80)]

        wt1, wt2 = calculate_wavetrend(make_candles(closes))

        assert wt2[60] == pytest.approx((wt1[60] + wt1[59] + wt1[58]) / 3)

    def test_zero_seed_defined_from_start(self):
        closes = [100 + (i % 5) for i in range(30)]

        wt1, wt2 = calculate_wavetrend(make_candles(closes), zero_seed=True)

        assert all(is_valid(v) for v in wt1)
        assert wt2[0] == wt1[0]

