"""Exceptions raised by the CryptoSignals collaborators.

The detection core never raises for data conditions; these cover the
parts that talk to the outside world.
"""


class CryptoSignalsError(Exception):
    """Base class for CryptoSignals errors."""


class ConfigError(CryptoSignalsError):
    """The configuration file exists but cannot be used."""


class KlineFetchError(CryptoSignalsError):
    """Candle data could not be fetched from the exchange."""
