"""RSI signal detection.

Detects oversold/overbought hooks, RSI crossing its own EMA and simple
price/RSI divergences.
"""

from collections.abc import Sequence
from typing import Optional

from cryptosignals.indicators.technical import calculate_ema, calculate_rsi
from cryptosignals.models import Candle, LiveSignal, Signal, SignalType, Strength
from cryptosignals.signals.base import live_entry, make_signal, now_ms, require_candles

MIN_CANDLES = 50

RSI_PERIOD = 14
RSI_EMA_PERIOD = 9
RSI_ZERO_LOSS_EPSILON = 0.001
DIVERGENCE_LOOKBACK = 5

OVERSOLD = 30.0
OVERBOUGHT = 70.0
EXTREME_OVERSOLD = 20.0
EXTREME_OVERBOUGHT = 80.0

LIVE_RSI_PERIOD = 21
LIVE_MIN_CANDLES = LIVE_RSI_PERIOD + 1


def check_divergence(
    closes: Sequence[float],
    rsi: Sequence[float],
    i: int,
    lookback: int = DIVERGENCE_LOOKBACK,
) -> Optional[tuple[SignalType, Strength]]:
    """Compare price and RSI against *lookback* candles earlier.

    Bullish: lower close but higher RSI. Bearish: higher close but lower RSI.

    Returns:
        ``(direction, strength)`` or None when there is no divergence.
    """
    if i < lookback:
        return None

    past = i - lookback
    if closes[i] < closes[past] and rsi[i] > rsi[past]:
        return SignalType.BUY, Strength.STRONG if rsi[i] < 40 else Strength.MEDIUM
    if closes[i] > closes[past] and rsi[i] < rsi[past]:
        return SignalType.SELL, Strength.STRONG if rsi[i] > 60 else Strength.MEDIUM
    return None


def detect_signals(candles: Sequence[Candle]) -> list[Signal]:
    """Scan the whole series for RSI events.

    Args:
        candles: Candle series, ascending by open time.

    Returns:
        ``rsi-oversold``, ``rsi-overbought``, ``rsi-crossover`` and
        ``rsi-divergence`` signals. Empty when fewer than 50 candles.
    """
    require_candles(candles)
    if len(candles) < MIN_CANDLES:
        return []

    created_at = now_ms()
    closes = [c.close for c in candles]
    rsi = calculate_rsi(closes, RSI_PERIOD, zero_loss_epsilon=RSI_ZERO_LOSS_EPSILON)
    rsi_ema = calculate_ema(rsi, RSI_EMA_PERIOD)

    signals: list[Signal] = []
    for i in range(1, len(candles)):
        candle = candles[i]
        current, previous = rsi[i], rsi[i - 1]

        # Oversold hook: still below 30 but turning up
        if current < OVERSOLD and previous < OVERSOLD and current > previous:
            signals.append(make_signal(
                candle,
                SignalType.BUY,
                "rsi-oversold",
                Strength.STRONG if current < EXTREME_OVERSOLD else Strength.MEDIUM,
                created_at,
            ))

        if current > OVERBOUGHT and previous > OVERBOUGHT and current < previous:
            signals.append(make_signal(
                candle,
                SignalType.SELL,
                "rsi-overbought",
                Strength.STRONG if current > EXTREME_OVERBOUGHT else Strength.MEDIUM,
                created_at,
            ))

        if previous < rsi_ema[i - 1] and current > rsi_ema[i] and current < 50:
            signals.append(make_signal(
                candle, SignalType.BUY, "rsi-crossover", Strength.MEDIUM, created_at
            ))

        if previous > rsi_ema[i - 1] and current < rsi_ema[i] and current > 50:
            signals.append(make_signal(
                candle, SignalType.SELL, "rsi-crossover", Strength.MEDIUM, created_at
            ))

        divergence = check_divergence(closes, rsi, i)
        if divergence:
            direction, strength = divergence
            signals.append(make_signal(
                candle, direction, "rsi-divergence", strength, created_at
            ))

    return signals


def latest_signal(candles: Sequence[Candle]) -> LiveSignal:
    """Most recent RSI(21) exit from the oversold or overbought region."""
    require_candles(candles)
    if len(candles) < LIVE_MIN_CANDLES:
        return LiveSignal()

    rsi = calculate_rsi([c.close for c in candles], LIVE_RSI_PERIOD)

    for i in range(len(candles) - 1, 0, -1):
        if rsi[i - 1] < OVERSOLD and rsi[i] >= OVERSOLD:
            return live_entry(candles, i, SignalType.BUY)
        if rsi[i - 1] > OVERBOUGHT and rsi[i] <= OVERBOUGHT:
            return live_entry(candles, i, SignalType.SELL)

    return LiveSignal()
