"""Moving-average crossover signal detection.

Golden/death crosses (SMA50 vs SMA200), EMA20 vs EMA50 crosses and the
close crossing EMA20.
"""

from collections.abc import Sequence

from cryptosignals.indicators.technical import calculate_ema, calculate_sma
from cryptosignals.models import Candle, LiveSignal, Signal, SignalType, Strength
from cryptosignals.signals.base import (
    crossed_above,
    crossed_below,
    live_entry,
    make_signal,
    now_ms,
    require_candles,
)

MIN_CANDLES = 100
# SMA200 needs a full window before any cross is considered
SCAN_START = 200

LIVE_EMA_PERIOD = 21
LIVE_EMA_MIN_CANDLES = LIVE_EMA_PERIOD + 1
LIVE_FAST_PERIOD = 20
LIVE_SLOW_PERIOD = 50
LIVE_CROSSOVER_MIN_CANDLES = LIVE_SLOW_PERIOD + 1


def detect_signals(candles: Sequence[Candle]) -> list[Signal]:
    """Scan the whole series for moving-average crosses.

    Crosses are only looked for from index 200 onwards, once SMA200 is
    defined, so a series of 100 to 200 candles yields nothing.

    Args:
        candles: Candle series, ascending by open time.

    Returns:
        ``golden-cross``/``death-cross`` (strong), ``ema-crossover``
        (medium) and ``price-ema-cross`` (weak) signals. Empty when fewer
        than 100 candles.
    """
    require_candles(candles)
    if len(candles) < MIN_CANDLES:
        return []

    created_at = now_ms()
    closes = [c.close for c in candles]

    sma50 = calculate_sma(closes, 50)
    sma200 = calculate_sma(closes, 200)
    ema20 = calculate_ema(closes, 20)
    ema50 = calculate_ema(closes, 50)

    signals: list[Signal] = []
    for i in range(SCAN_START, len(candles)):
        candle = candles[i]

        if crossed_above(sma50, sma200, i):
            signals.append(make_signal(
                candle, SignalType.BUY, "golden-cross", Strength.STRONG, created_at
            ))
        if crossed_below(sma50, sma200, i):
            signals.append(make_signal(
                candle, SignalType.SELL, "death-cross", Strength.STRONG, created_at
            ))

        if crossed_above(ema20, ema50, i):
            signals.append(make_signal(
                candle, SignalType.BUY, "ema-crossover", Strength.MEDIUM, created_at
            ))
        if crossed_below(ema20, ema50, i):
            signals.append(make_signal(
                candle, SignalType.SELL, "ema-crossover", Strength.MEDIUM, created_at
            ))

        if crossed_above(closes, ema20, i):
            signals.append(make_signal(
                candle, SignalType.BUY, "price-ema-cross", Strength.WEAK, created_at
            ))
        if crossed_below(closes, ema20, i):
            signals.append(make_signal(
                candle, SignalType.SELL, "price-ema-cross", Strength.WEAK, created_at
            ))

    return signals


def _latest_cross(
    candles: Sequence[Candle], fast: Sequence[float], slow: Sequence[float]
) -> LiveSignal:
    for i in range(len(candles) - 1, 0, -1):
        if crossed_above(fast, slow, i):
            return live_entry(candles, i, SignalType.BUY)
        if crossed_below(fast, slow, i):
            return live_entry(candles, i, SignalType.SELL)
    return LiveSignal()


def latest_price_ema_signal(candles: Sequence[Candle]) -> LiveSignal:
    """Most recent close crossing EMA21."""
    require_candles(candles)
    if len(candles) < LIVE_EMA_MIN_CANDLES:
        return LiveSignal()

    closes = [c.close for c in candles]
    return _latest_cross(candles, closes, calculate_ema(closes, LIVE_EMA_PERIOD))


def latest_signal(candles: Sequence[Candle]) -> LiveSignal:
    """Most recent EMA20/EMA50 crossover."""
    require_candles(candles)
    if len(candles) < LIVE_CROSSOVER_MIN_CANDLES:
        return LiveSignal()

    closes = [c.close for c in candles]
    return _latest_cross(
        candles,
        calculate_ema(closes, LIVE_FAST_PERIOD),
        calculate_ema(closes, LIVE_SLOW_PERIOD),
    )
