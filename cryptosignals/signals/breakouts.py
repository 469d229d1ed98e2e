"""Support/resistance breakout detection.

Pivots are grouped into zones; a close pushing through a zone by more
than the confirmation margin is a breakout.
"""

from collections.abc import Iterator, Sequence

from cryptosignals.indicators.technical import is_valid
from cryptosignals.models import (
    Candle,
    LiveSignal,
    PivotPoint,
    Signal,
    SignalType,
    Strength,
    Zone,
    ZoneType,
)
from cryptosignals.signals.base import live_entry, make_signal, now_ms, require_candles

MIN_CANDLES = 50
PIVOT_LOOKBACK = 5
ZONE_TOLERANCE = 0.005
CONFIRMATION = 0.005
RECENT_CANDLES = 10
MIN_ZONE_COUNT = 2
STRONG_ZONE_COUNT = 3


def find_pivot_points(
    candles: Sequence[Candle], lookback: int = PIVOT_LOOKBACK
) -> list[PivotPoint]:
    """Identify pivot highs and lows.

    A candle is a resistance pivot when no other candle within *lookback*
    on either side has a strictly greater high (equal highs do not
    disqualify it). Support pivots mirror this on lows. A single candle
    can be both. A candle whose high (or low) is NaN is never a pivot on
    that side.
    """
    pivots: list[PivotPoint] = []
    if len(candles) < 2 * lookback + 1:
        return pivots

    for i in range(lookback, len(candles) - lookback):
        current = candles[i]
        window = [candles[j] for j in range(i - lookback, i + lookback + 1) if j != i]

        if is_valid(current.high) and not any(other.high > current.high for other in window):
            pivots.append(PivotPoint(
                type=ZoneType.RESISTANCE,
                level=current.high,
                index=i,
                timestamp=current.open_time,
            ))
        if is_valid(current.low) and not any(other.low < current.low for other in window):
            pivots.append(PivotPoint(
                type=ZoneType.SUPPORT,
                level=current.low,
                index=i,
                timestamp=current.open_time,
            ))

    return pivots


def group_pivot_levels(
    pivots: Sequence[PivotPoint], tolerance: float = ZONE_TOLERANCE
) -> list[Zone]:
    """Cluster nearby pivot levels into zones.

    Levels are sorted ascending and a group keeps growing while the next
    level is within *tolerance* (relative) of the group's last member.
    The zone type is the majority pivot type, resistance on a tie.
    """
    if not pivots:
        return []

    sorted_pivots = sorted(pivots, key=lambda p: p.level)
    groups: list[list[PivotPoint]] = []
    current_group = [sorted_pivots[0]]

    for pivot in sorted_pivots[1:]:
        last = current_group[-1]
        if abs(pivot.level - last.level) <= tolerance * abs(last.level):
            current_group.append(pivot)
        else:
            groups.append(current_group)
            current_group = [pivot]
    groups.append(current_group)

    zones = []
    for group in groups:
        supports = sum(1 for p in group if p.type == ZoneType.SUPPORT)
        zones.append(Zone(
            type=ZoneType.SUPPORT if supports > len(group) / 2 else ZoneType.RESISTANCE,
            level=sum(p.level for p in group) / len(group),
            strength=min(1.0, len(group) / 3),
            count=len(group),
            pivots=tuple(group),
        ))
    return zones


def _scan_breakouts(
    candles: Sequence[Candle], created_at: int
) -> Iterator[tuple[int, Signal]]:
    """Yield ``(candle index, signal)`` for breakouts in the recent window."""
    zones = [
        zone
        for zone in group_pivot_levels(find_pivot_points(candles))
        if zone.count >= MIN_ZONE_COUNT
    ]

    start = max(1, len(candles) - RECENT_CANDLES + 1)
    for i in range(start, len(candles)):
        prev_close = candles[i - 1].close
        candle = candles[i]

        for zone in zones:
            strength = Strength.STRONG if zone.count >= STRONG_ZONE_COUNT else Strength.MEDIUM
            meta = {"level": zone.level, "touches": zone.count}

            if (
                zone.type == ZoneType.RESISTANCE
                and prev_close < zone.level
                and candle.close > zone.level * (1 + CONFIRMATION)
            ):
                yield i, make_signal(
                    candle, SignalType.BUY, "resistance-breakout", strength, created_at, meta
                )

            if (
                zone.type == ZoneType.SUPPORT
                and prev_close > zone.level
                and candle.close < zone.level * (1 - CONFIRMATION)
            ):
                yield i, make_signal(
                    candle, SignalType.SELL, "support-breakout", strength, created_at, meta
                )


def detect_signals(candles: Sequence[Candle]) -> list[Signal]:
    """Detect breakouts through multi-touch zones over the last 10 candles.

    Returns:
        ``resistance-breakout`` buys and ``support-breakout`` sells, strong
        when the zone has 3 or more pivots. Empty when fewer than 50 candles.
    """
    require_candles(candles)
    if len(candles) < MIN_CANDLES:
        return []

    return [signal for _, signal in _scan_breakouts(candles, now_ms())]


def latest_signal(candles: Sequence[Candle]) -> LiveSignal:
    """Most recent breakout within the recent window."""
    require_candles(candles)
    if len(candles) < MIN_CANDLES:
        return LiveSignal()

    latest = None
    for i, signal in _scan_breakouts(candles, now_ms()):
        latest = (i, signal.type)

    if latest is None:
        return LiveSignal()
    return live_entry(candles, *latest)
