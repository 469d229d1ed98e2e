"""Configuration loading for CryptoSignals.

Settings live in ``~/.config/cryptosignals/config.toml`` and are merged
over the defaults below, so every key is optional.
"""

import copy
from pathlib import Path
from typing import Optional

import toml

from cryptosignals.errors import ConfigError

CONFIG_DIR = Path.home() / ".config" / "cryptosignals"
DEFAULT_CONFIG_PATH = CONFIG_DIR / "config.toml"
DEFAULT_DB_PATH = CONFIG_DIR / "cryptosignals.db"

SUPPORTED_INTERVALS = ["1m", "5m", "15m", "30m", "1h", "4h", "1d"]

DEFAULTS: dict = {
    "binance": {
        "base_url": "https://api.binance.com/api/v3",
        "batch_size": 500,
        "request_delay": 0.7,
        "timeout": 10.0,
    },
    "signals": {
        "symbols": ["BTCUSDT", "ETHUSDT"],
        "intervals": ["5m", "15m", "1h", "4h", "1d"],
        "limit": 500,
        "active": ["wavetrend", "rsi", "ema", "wt_ema", "rsi_ema", "wt_rsi", "cluster"],
    },
    "database": {
        "path": str(DEFAULT_DB_PATH),
    },
    "logging": {
        "level": "WARNING",
    },
}


def _merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into a copy of *base*."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: Optional[Path] = None) -> dict:
    """Load configuration, falling back to defaults.

    Args:
        config_path: Path to a TOML file (default: ``DEFAULT_CONFIG_PATH``).

    Returns:
        Configuration dictionary with every default key present.

    Raises:
        ConfigError: If the file exists but is not valid TOML or uses an
            unsupported interval.
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    if not path.exists():
        return copy.deepcopy(DEFAULTS)

    try:
        user_config = toml.load(path)
    except (toml.TomlDecodeError, OSError) as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e

    config = _merge(DEFAULTS, user_config)

    unknown = [i for i in config["signals"]["intervals"] if i not in SUPPORTED_INTERVALS]
    if unknown:
        raise ConfigError(
            f"Unsupported interval(s) in {path}: {', '.join(unknown)}. "
            f"Choose from {', '.join(SUPPORTED_INTERVALS)}"
        )

    return config


def get_data_store(config: dict):
    """Open the data store configured in *config*."""
    from cryptosignals.db.store import DataStore

    return DataStore(Path(config["database"]["path"]).expanduser())
