"""Signal detectors and aggregation."""

from cryptosignals.signals.aggregator import (
    LIVE_KEYS,
    detect_all_signals,
    detect_cluster_signals,
    get_live_signals,
    select_active,
)

__all__ = [
    "LIVE_KEYS",
    "detect_all_signals",
    "detect_cluster_signals",
    "get_live_signals",
    "select_active",
]
