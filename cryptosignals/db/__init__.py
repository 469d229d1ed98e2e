"""Persistence layer for CryptoSignals."""

from cryptosignals.db.store import DataStore

__all__ = ["DataStore"]
