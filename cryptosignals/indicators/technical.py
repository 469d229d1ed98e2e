"""Technical indicator calculations for signal detection.

All functions are pure and operate on plain lists. Every returned series
is aligned index-for-index with its input; positions that have not warmed
up yet hold ``float('nan')``. NaN never raises: any comparison against it
is simply false, which is how malformed candle fields are absorbed.
"""

from typing import Sequence

from cryptosignals.models import Candle

NAN = float("nan")


def is_valid(value: float) -> bool:
    """Check if a value is defined (not NaN)."""
    return value == value  # NaN != NaN


def _first_valid_index(values: Sequence[float]) -> int:
    """Index of the first defined value, or ``len(values)`` if there is none."""
    for i, value in enumerate(values):
        if is_valid(value):
            return i
    return len(values)


def calculate_sma(values: Sequence[float], period: int) -> list[float]:
    """Calculate Simple Moving Average.

    Args:
        values: List of values (typically close prices)
        period: Number of periods for the moving average

    Returns:
        List of SMA values. First (period-1) values will be NaN.
    """
    if len(values) < period or period < 1:
        return [NAN] * len(values)

    result = [NAN] * (period - 1)

    for i in range(period - 1, len(values)):
        window = values[i - period + 1:i + 1]
        result.append(sum(window) / period)

    return result


def calculate_ema(values: Sequence[float], period: int) -> list[float]:
    """Calculate an SMA-seeded Exponential Moving Average.

    A leading run of NaN (another indicator's warm-up) is skipped: the seed
    is the SMA of the first *period* defined values, placed on the last of
    them. Subsequent values follow ``ema = value * k + prev * (1 - k)``
    with ``k = 2 / (period + 1)``.

    Args:
        values: List of values
        period: Number of periods for the EMA

    Returns:
        List of EMA values, NaN before the seed index.
    """
    n = len(values)
    start = _first_valid_index(values)
    if period < 1 or n - start < period:
        return [NAN] * n

    k = 2 / (period + 1)
    result = [NAN] * n

    seed_index = start + period - 1
    result[seed_index] = sum(values[start:seed_index + 1]) / period

    for i in range(seed_index + 1, n):
        result[i] = values[i] * k + result[i - 1] * (1 - k)

    return result


def calculate_ema_zero_seed(values: Sequence[float], period: int) -> list[float]:
    """Calculate a first-value-seeded Exponential Moving Average.

    Unlike :func:`calculate_ema` there is no warm-up gap: the first defined
    value is the seed. Only the live WaveTrend uses this variant, because it
    must produce readings over very short histories. The two variants detect
    different historical crossovers and are not interchangeable.
    """
    n = len(values)
    start = _first_valid_index(values)
    if period < 1 or start == n:
        return [NAN] * n

    k = 2 / (period + 1)
    result = [NAN] * n
    result[start] = values[start]

    for i in range(start + 1, n):
        result[i] = values[i] * k + result[i - 1] * (1 - k)

    return result


def calculate_rsi(
    values: Sequence[float],
    period: int = 14,
    zero_loss_epsilon: float | None = None,
) -> list[float]:
    """Calculate Wilder's Relative Strength Index.

    Algorithm:
        1. delta = value[i] - value[i-1]
        2. Seed average gain/loss = arithmetic mean of the first *period* deltas.
        3. Subsequent: avg = (prev_avg * (period-1) + current) / period
        4. RSI = 100 - 100 / (1 + avg_gain / avg_loss)

    When the average loss is exactly zero the result is 100, unless
    *zero_loss_epsilon* is given, in which case the epsilon stands in for
    the zero denominator (the formula used by the persisted detectors).

    Args:
        values: List of values (typically close prices)
        period: RSI period (default 14)
        zero_loss_epsilon: Optional substitute for a zero average loss

    Returns:
        List of RSI values (0-100). First `period` values will be NaN.
    """
    n = len(values)
    if n < period + 1 or period < 1:
        return [NAN] * n

    deltas = [values[i] - values[i - 1] for i in range(1, n)]
    # written so that a NaN delta stays NaN in both lists
    gains = [0.0 if d < 0 else d for d in deltas]
    losses = [0.0 if d > 0 else -d for d in deltas]

    def _rsi_from_avgs(avg_gain: float, avg_loss: float) -> float:
        if avg_loss == 0:
            if zero_loss_epsilon is None:
                return 100.0
            avg_loss = zero_loss_epsilon
        rs = avg_gain / avg_loss
        return 100.0 - 100.0 / (1.0 + rs)

    result = [NAN] * n

    avg_gain = sum(gains[:period]) / period
    avg_loss = sum(losses[:period]) / period
    result[period] = _rsi_from_avgs(avg_gain, avg_loss)

    for i in range(period, len(deltas)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period
        # deltas are offset by one against the input
        result[i + 1] = _rsi_from_avgs(avg_gain, avg_loss)

    return result


def calculate_hlc3(candles: Sequence[Candle]) -> list[float]:
    """Typical price ``(high + low + close) / 3`` per candle."""
    return [(c.high + c.low + c.close) / 3 for c in candles]


def calculate_wavetrend(
    candles: Sequence[Candle],
    channel_length: int = 13,
    avg_length: int = 21,
    zero_seed: bool = False,
) -> tuple[list[float], list[float]]:
    """Calculate the WaveTrend oscillator pair.

    Steps on ``hlc3``:
        esa = EMA(hlc3, channel_length)
        d   = EMA(|hlc3 - esa|, channel_length)
        ci  = (hlc3 - esa) / (0.015 * d)      (0 where d is exactly 0)
        wt1 = EMA(ci, avg_length)
        wt2 = mean(wt1[i], wt1[i-1], wt1[i-2]) (wt1[i] for i < 2)

    Args:
        candles: Candle series
        channel_length: Channel EMA length (default 13)
        avg_length: Average EMA length (default 21)
        zero_seed: Use the first-value-seeded EMA instead of the SMA-seeded one

    Returns:
        Tuple of (wt1, wt2)
    """
    ema = calculate_ema_zero_seed if zero_seed else calculate_ema

    hlc3 = calculate_hlc3(candles)
    esa = ema(hlc3, channel_length)
    d = ema([abs(h - e) for h, e in zip(hlc3, esa)], channel_length)

    ci = []
    for h, e, dev in zip(hlc3, esa, d):
        if dev == 0:
            ci.append(0.0)
        else:
            ci.append((h - e) / (0.015 * dev))

    wt1 = ema(ci, avg_length)
    wt2 = []
    for i in range(len(wt1)):
        if i < 2:
            wt2.append(wt1[i])
        else:
            wt2.append((wt1[i] + wt1[i - 1] + wt1[i - 2]) / 3)

    return wt1, wt2
