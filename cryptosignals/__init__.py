"""CryptoSignals - technical-analysis signal engine for crypto candle series."""

__version__ = "0.1.0"
