"""Shared helpers for the signal detectors."""

import time
from collections.abc import Sequence
from typing import Any, Optional

from cryptosignals.models import Candle, LiveSignal, Signal, SignalType, Strength


def now_ms() -> int:
    """Current wall-clock time in milliseconds."""
    return int(time.time() * 1000)


def require_candles(candles) -> Sequence[Candle]:
    """Reject anything that is not a sequence of candles.

    A short series is a normal data condition; a wrong type is a caller
    bug and fails fast.

    Raises:
        TypeError: If *candles* is not a list/tuple of ``Candle``.
    """
    if not isinstance(candles, (list, tuple)):
        raise TypeError(
            f"candles must be a list of Candle, got {type(candles).__name__}"
        )
    for candle in candles:
        if not isinstance(candle, Candle):
            raise TypeError(
                f"candles must contain Candle objects, got {type(candle).__name__}"
            )
    return candles


def crossed_above(fast: Sequence[float], slow: Sequence[float], i: int) -> bool:
    """*fast* goes from <= *slow* at ``i-1`` to > *slow* at ``i``."""
    return fast[i - 1] <= slow[i - 1] and fast[i] > slow[i]


def crossed_below(fast: Sequence[float], slow: Sequence[float], i: int) -> bool:
    """*fast* goes from >= *slow* at ``i-1`` to < *slow* at ``i``."""
    return fast[i - 1] >= slow[i - 1] and fast[i] < slow[i]


def make_signal(
    candle: Candle,
    signal_type: SignalType,
    indicator: str,
    strength: Strength,
    created_at: int,
    meta: Optional[dict[str, Any]] = None,
) -> Signal:
    """Build a signal anchored on *candle*'s close and open time."""
    return Signal(
        type=signal_type,
        price=candle.close,
        timestamp=candle.open_time,
        created_at=created_at,
        indicator=indicator,
        strength=strength,
        meta=meta,
    )


def pct_change_since(
    candles: Sequence[Candle], idx: int, signal_type: SignalType
) -> Optional[float]:
    """Percentage move from ``candles[idx]`` to the last close.

    Positive means the market moved in the signal's direction.
    """
    trigger = candles[idx].close
    if trigger == 0:
        return None
    change = (candles[-1].close - trigger) / trigger * 100
    return change if signal_type == SignalType.BUY else -change


def live_entry(
    candles: Sequence[Candle],
    idx: Optional[int],
    signal_type: Optional[SignalType],
) -> LiveSignal:
    """Wrap a trigger index into a ``LiveSignal`` (empty if nothing fired)."""
    if idx is None or signal_type is None:
        return LiveSignal()
    return LiveSignal(
        signal=signal_type,
        triggered_at=candles[idx].open_time,
        pct_change=pct_change_since(candles, idx, signal_type),
        idx=idx,
    )
