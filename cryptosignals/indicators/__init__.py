"""Technical indicators module."""

from cryptosignals.indicators.technical import (
    calculate_ema,
    calculate_ema_zero_seed,
    calculate_hlc3,
    calculate_rsi,
    calculate_sma,
    calculate_wavetrend,
    is_valid,
)

__all__ = [
    "calculate_ema",
    "calculate_ema_zero_seed",
    "calculate_hlc3",
    "calculate_rsi",
    "calculate_sma",
    "calculate_wavetrend",
    "is_valid",
]
