"""Signal aggregation.

Combines the per-detector outputs and synthesizes composite signals:
time-proximity clusters for the persisted signal log, and pairwise
agreement entries for the live view.
"""

import logging
from collections.abc import Iterable, Sequence
from typing import Optional

from cryptosignals.models import Candle, LiveSignal, Signal, SignalType, Strength
from cryptosignals.signals import breakouts, ma_crossover, rsi, wavetrend
from cryptosignals.signals.base import live_entry, now_ms, require_candles

logger = logging.getLogger(__name__)

MIN_CANDLES = 50
LIVE_MIN_CANDLES = 30

DEFAULT_CANDLE_PERIOD_MS = 5 * 60 * 1000
PERIOD_SAMPLE_SIZE = 10
CLUSTER_WINDOW_CANDLES = 5
CLUSTER_MIN_SIGNALS = 3

AGREEMENT_MAX_GAP = 3
LIVE_CLUSTER_MIN_AGREEING = 2

LIVE_DETECTORS = ("wavetrend", "rsi", "ema", "ma_crossover", "breakout")
LIVE_COMPOSITES = ("wt_ema", "rsi_ema", "wt_rsi", "cluster")
LIVE_KEYS = LIVE_DETECTORS + LIVE_COMPOSITES


def estimate_candle_period_ms(candles: Sequence[Candle]) -> int:
    """Mean positive open-time gap over the first 10 candles.

    Falls back to 5 minutes when the gap cannot be estimated.
    """
    if len(candles) < 2:
        return DEFAULT_CANDLE_PERIOD_MS

    diffs = [
        candles[i].open_time - candles[i - 1].open_time
        for i in range(1, min(PERIOD_SAMPLE_SIZE, len(candles)))
    ]
    diffs = [d for d in diffs if d > 0]
    if not diffs:
        return DEFAULT_CANDLE_PERIOD_MS
    return round(sum(diffs) / len(diffs))


def group_signals_by_time(
    signals: Sequence[Signal], max_time_diff: int
) -> list[list[Signal]]:
    """Greedily group time-sorted signals.

    A signal joins the current group while it lies within *max_time_diff*
    of the group's first member; otherwise it starts a new group.
    """
    groups: list[list[Signal]] = []
    for signal in signals:
        if groups and signal.timestamp - groups[-1][0].timestamp <= max_time_diff:
            groups[-1].append(signal)
        else:
            groups.append([signal])
    return groups


def _unique_indicators(group: Iterable[Signal]) -> list[str]:
    seen: list[str] = []
    for signal in group:
        if signal.indicator not in seen:
            seen.append(signal.indicator)
    return seen


def detect_cluster_signals(
    signals: Sequence[Signal], candles: Sequence[Candle]
) -> list[Signal]:
    """Synthesize ``cluster`` signals from same-direction signal bursts.

    Signals are split by direction, sorted by timestamp and grouped within
    five estimated candle periods; each group of three or more becomes one
    strong cluster at its last member's price and timestamp. Existing
    cluster signals never feed a new cluster.

    Args:
        signals: Detector signals for one candle series.
        candles: The series they were detected on.

    Returns:
        List of cluster signals, buys first.
    """
    window = CLUSTER_WINDOW_CANDLES * estimate_candle_period_ms(candles)
    created_at = now_ms()

    clusters: list[Signal] = []
    for signal_type in (SignalType.BUY, SignalType.SELL):
        same_side = sorted(
            (s for s in signals if s.type == signal_type and s.indicator != "cluster"),
            key=lambda s: s.timestamp,
        )
        if len(same_side) < CLUSTER_MIN_SIGNALS:
            continue

        for group in group_signals_by_time(same_side, window):
            if len(group) < CLUSTER_MIN_SIGNALS:
                continue
            latest = group[-1]
            clusters.append(Signal(
                type=signal_type,
                price=latest.price,
                timestamp=latest.timestamp,
                created_at=created_at,
                indicator="cluster",
                strength=Strength.STRONG,
                meta={
                    "count": len(group),
                    "indicators": _unique_indicators(group),
                },
            ))

    return clusters


def detect_all_signals(candles: Sequence[Candle]) -> list[Signal]:
    """Run every detector over the full history and add cluster signals.

    Args:
        candles: Candle series for one symbol/interval, ascending.

    Returns:
        Detector signals followed by cluster signals. Empty when fewer
        than 50 candles are supplied.

    Raises:
        TypeError: If *candles* is not a list of ``Candle``.
    """
    require_candles(candles)
    if len(candles) < MIN_CANDLES:
        logger.debug("Skipping detection: %d candles < %d", len(candles), MIN_CANDLES)
        return []

    detected = [
        *wavetrend.detect_signals(candles),
        *rsi.detect_signals(candles),
        *ma_crossover.detect_signals(candles),
        *breakouts.detect_signals(candles),
    ]
    clusters = detect_cluster_signals(detected, candles)

    logger.debug(
        "Detected %d signals and %d clusters over %d candles",
        len(detected), len(clusters), len(candles),
    )
    return detected + clusters


# ==================== Live mode ====================


def _agreeing_entry(
    candles: Sequence[Candle], entries: Sequence[LiveSignal]
) -> LiveSignal:
    """Composite for entries that all fired in the same direction."""
    if not all(e.is_active for e in entries):
        return LiveSignal()
    direction = entries[0].signal
    if any(e.signal != direction for e in entries):
        return LiveSignal()
    return live_entry(candles, max(e.idx for e in entries), direction)


def agree_within(
    candles: Sequence[Candle],
    entries: Sequence[LiveSignal],
    max_gap: int = AGREEMENT_MAX_GAP,
) -> LiveSignal:
    """Like an agreement composite, but the triggers must be close together."""
    if not all(e.is_active for e in entries):
        return LiveSignal()
    indices = [e.idx for e in entries]
    if max(indices) - min(indices) > max_gap:
        return LiveSignal()
    return _agreeing_entry(candles, entries)


def _live_cluster(
    candles: Sequence[Candle], entries: Sequence[LiveSignal]
) -> LiveSignal:
    active = [e for e in entries if e.is_active]
    for direction in (SignalType.BUY, SignalType.SELL):
        agreeing = [e for e in active if e.signal == direction]
        if len(agreeing) >= LIVE_CLUSTER_MIN_AGREEING:
            return live_entry(candles, max(e.idx for e in agreeing), direction)
    return LiveSignal()


def combine_live_signals(
    entries: dict[str, LiveSignal], candles: Sequence[Candle]
) -> dict[str, LiveSignal]:
    """Build the live composite entries from the per-detector ones.

    Args:
        entries: Live entries keyed by detector name (see ``LIVE_DETECTORS``).
        candles: The series the entries were computed on.

    Returns:
        ``wt_ema``, ``rsi_ema``, ``wt_rsi`` and ``cluster`` entries.
    """
    empty = LiveSignal()
    wt = entries.get("wavetrend", empty)
    rsi_entry = entries.get("rsi", empty)
    ema = entries.get("ema", empty)

    return {
        "wt_ema": _agreeing_entry(candles, [wt, ema]),
        "rsi_ema": _agreeing_entry(candles, [rsi_entry, ema]),
        "wt_rsi": agree_within(candles, [wt, rsi_entry]),
        "cluster": _live_cluster(
            candles, [entries.get(name, empty) for name in LIVE_DETECTORS]
        ),
    }


def get_live_signals(candles: Sequence[Candle]) -> dict[str, LiveSignal]:
    """Most recent signal per live detector plus the composite entries.

    Args:
        candles: Candle series, ascending.

    Returns:
        Mapping with every key of ``LIVE_KEYS``; all entries are empty when
        fewer than 30 candles are supplied.
    """
    require_candles(candles)
    if len(candles) < LIVE_MIN_CANDLES:
        return {key: LiveSignal() for key in LIVE_KEYS}

    entries = {
        "wavetrend": wavetrend.latest_signal(candles),
        "rsi": rsi.latest_signal(candles),
        "ema": ma_crossover.latest_price_ema_signal(candles),
        "ma_crossover": ma_crossover.latest_signal(candles),
        "breakout": breakouts.latest_signal(candles),
    }
    entries.update(combine_live_signals(entries, candles))
    return entries


def select_active(
    live: dict[str, LiveSignal], active_signals: Optional[Iterable[str]] = None
) -> dict[str, LiveSignal]:
    """Project the live mapping onto the tags the caller wants to show.

    Unknown tags are ignored; None selects everything.
    """
    if active_signals is None:
        return dict(live)
    wanted = list(active_signals)
    return {key: live[key] for key in wanted if key in live}
