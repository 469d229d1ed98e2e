"""Data models for CryptoSignals."""

from cryptosignals.models.candle import Candle
from cryptosignals.models.signal import LiveSignal, Signal, SignalType, Strength
from cryptosignals.models.structure import PivotPoint, Zone, ZoneType

__all__ = [
    "Candle",
    "LiveSignal",
    "PivotPoint",
    "Signal",
    "SignalType",
    "Strength",
    "Zone",
    "ZoneType",
]
