"""CLI commands for CryptoSignals.

This package provides the command-line interface for CryptoSignals,
including candle fetching, signal scanning and the live signal view.
"""

from cryptosignals.cli.main import cli, main

__all__ = ["cli", "main"]
