"""WaveTrend crossover signal detection.

Buys on wt1 crossing above wt2, sells on the opposite cross. Crosses in
the extreme band get their own tag, upgraded to strong when RSI agrees
that the market is stretched.
"""

from collections.abc import Sequence

from cryptosignals.indicators.technical import (
    calculate_ema,
    calculate_hlc3,
    calculate_rsi,
    calculate_wavetrend,
)
from cryptosignals.models import Candle, LiveSignal, Signal, SignalType, Strength
from cryptosignals.signals.base import (
    crossed_above,
    crossed_below,
    live_entry,
    make_signal,
    now_ms,
    require_candles,
)

MIN_CANDLES = 50
LIVE_MIN_CANDLES = 21

EXTREME_LEVEL = 40.0
LIVE_EXTREME_LEVEL = 60.0

RSI_PERIOD = 21
RSI_EMA_PERIOD = 13
RSI_ZERO_LOSS_EPSILON = 0.001


def detect_signals(candles: Sequence[Candle]) -> list[Signal]:
    """Scan the whole series for WaveTrend crossovers.

    Args:
        candles: Candle series, ascending by open time.

    Returns:
        Every crossover as ``wavetrend-crossover`` (medium), plus a
        ``wavetrend`` / ``wavetrend+rsi`` signal for crosses inside the
        extreme band. Empty when fewer than 50 candles are supplied.
    """
    require_candles(candles)
    if len(candles) < MIN_CANDLES:
        return []

    created_at = now_ms()
    wt1, wt2 = calculate_wavetrend(candles)

    # RSI context on the typical price
    rsi = calculate_rsi(
        calculate_hlc3(candles), RSI_PERIOD, zero_loss_epsilon=RSI_ZERO_LOSS_EPSILON
    )
    rsi_ema = calculate_ema(rsi, RSI_EMA_PERIOD)

    signals: list[Signal] = []
    for i in range(1, len(candles)):
        candle = candles[i]

        if crossed_above(wt1, wt2, i):
            signals.append(make_signal(
                candle, SignalType.BUY, "wavetrend-crossover", Strength.MEDIUM, created_at
            ))
            if wt2[i] <= -EXTREME_LEVEL:
                oversold = rsi[i] < 30 and rsi[i] < rsi_ema[i]
                signals.append(make_signal(
                    candle,
                    SignalType.BUY,
                    "wavetrend+rsi" if oversold else "wavetrend",
                    Strength.STRONG if oversold else Strength.MEDIUM,
                    created_at,
                ))

        if crossed_below(wt1, wt2, i):
            signals.append(make_signal(
                candle, SignalType.SELL, "wavetrend-crossover", Strength.MEDIUM, created_at
            ))
            if wt2[i] >= EXTREME_LEVEL:
                overbought = rsi[i] > 70 and rsi[i] > rsi_ema[i]
                signals.append(make_signal(
                    candle,
                    SignalType.SELL,
                    "wavetrend+rsi" if overbought else "wavetrend",
                    Strength.STRONG if overbought else Strength.MEDIUM,
                    created_at,
                ))

    return signals


def latest_signal(candles: Sequence[Candle]) -> LiveSignal:
    """Most recent WaveTrend cross inside the live extreme band.

    Uses the zero-seed EMA so that short histories still produce readings.
    """
    require_candles(candles)
    if len(candles) < LIVE_MIN_CANDLES:
        return LiveSignal()

    wt1, wt2 = calculate_wavetrend(candles, zero_seed=True)

    for i in range(len(candles) - 1, 0, -1):
        if crossed_above(wt1, wt2, i) and wt2[i] <= -LIVE_EXTREME_LEVEL:
            return live_entry(candles, i, SignalType.BUY)
        if crossed_below(wt1, wt2, i) and wt2[i] >= LIVE_EXTREME_LEVEL:
            return live_entry(candles, i, SignalType.SELL)

    return LiveSignal()
