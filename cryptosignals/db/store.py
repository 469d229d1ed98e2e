"""SQLite data store for CryptoSignals."""

import json
import logging
import sqlite3
from pathlib import Path
from typing import Optional

from cryptosignals.models import Candle, Signal, SignalType, Strength
from cryptosignals.signals.base import now_ms

logger = logging.getLogger(__name__)

# Signals created within this window are replaced on re-detection
REPLACE_WINDOW_MS = 24 * 60 * 60 * 1000


class DataStore:
    """SQLite-based store for candles and detected signals."""

    REQUIRED_TABLES = [
        "candles",
        "signals",
    ]

    def __init__(self, db_path: Path):
        """Initialize the data store.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = Path(db_path)
        self._ensure_db_dir()
        self._init_schema()

    def _ensure_db_dir(self) -> None:
        """Ensure the database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_schema(self) -> None:
        """Initialize database schema on first run."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS candles (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    symbol TEXT NOT NULL,
                    interval TEXT NOT NULL,
                    open_time INTEGER NOT NULL,
                    open REAL,
                    high REAL,
                    low REAL,
                    close REAL,
                    volume REAL,
                    UNIQUE(symbol, interval, open_time)
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS signals (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    symbol TEXT NOT NULL,
                    interval TEXT NOT NULL,
                    type TEXT NOT NULL,
                    price REAL,
                    timestamp INTEGER NOT NULL,
                    created_at INTEGER NOT NULL,
                    indicator TEXT NOT NULL,
                    strength TEXT NOT NULL,
                    meta TEXT
                )
            """)

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_signals_series
                ON signals (symbol, interval, created_at)
            """)

            conn.commit()
        finally:
            conn.close()

    def get_tables(self) -> list[str]:
        """Get list of all tables in the database."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'"
            )
            return [row["name"] for row in cursor.fetchall()]
        finally:
            conn.close()

    # ==================== Candles ====================

    def save_candles(self, symbol: str, interval: str, candles: list[Candle]) -> None:
        """Save candles, replacing any existing row with the same open time.

        Args:
            symbol: Trading pair (e.g., 'BTCUSDT').
            interval: Candle interval (e.g., '1h').
            candles: List of candles to save.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.executemany(
                """
                INSERT OR REPLACE INTO candles
                (symbol, interval, open_time, open, high, low, close, volume)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        symbol,
                        interval,
                        candle.open_time,
                        candle.open,
                        candle.high,
                        candle.low,
                        candle.close,
                        candle.volume,
                    )
                    for candle in candles
                ],
            )
            conn.commit()
        finally:
            conn.close()
        logger.info("Cached %d %s %s candles", len(candles), symbol, interval)

    def get_candles(
        self, symbol: str, interval: str, limit: Optional[int] = None
    ) -> list[Candle]:
        """Get cached candles in ascending open-time order.

        Args:
            symbol: Trading pair.
            interval: Candle interval.
            limit: Optional number of most recent candles to return.

        Returns:
            List of candles.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            query = """
                SELECT open_time, open, high, low, close, volume
                FROM candles
                WHERE symbol = ? AND interval = ?
                ORDER BY open_time DESC
            """
            params: tuple = (symbol, interval)
            if limit is not None:
                query += " LIMIT ?"
                params += (limit,)
            cursor.execute(query, params)
            rows = cursor.fetchall()
        finally:
            conn.close()

        # SQLite stores NaN as NULL
        def _num(value) -> float:
            return float("nan") if value is None else value

        return [
            Candle(
                open_time=row["open_time"],
                open=_num(row["open"]),
                high=_num(row["high"]),
                low=_num(row["low"]),
                close=_num(row["close"]),
                volume=_num(row["volume"]),
            )
            for row in reversed(rows)
        ]

    # ==================== Signals ====================

    def replace_recent_signals(
        self,
        symbol: str,
        interval: str,
        signals: list[Signal],
        now: Optional[int] = None,
    ) -> int:
        """Replace the signal log of one series for the trailing 24 hours.

        Signals of ``(symbol, interval)`` created within the last 24h are
        deleted, then *signals* are inserted, so re-running detection over
        an unchanged series does not duplicate rows.

        Args:
            symbol: Trading pair.
            interval: Candle interval.
            signals: Freshly detected signals.
            now: Reference time in ms (defaults to the current time).

        Returns:
            Number of rows deleted.
        """
        cutoff = (now if now is not None else now_ms()) - REPLACE_WINDOW_MS
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                DELETE FROM signals
                WHERE symbol = ? AND interval = ? AND created_at >= ?
                """,
                (symbol, interval, cutoff),
            )
            deleted = cursor.rowcount
            cursor.executemany(
                """
                INSERT INTO signals
                (symbol, interval, type, price, timestamp, created_at, indicator, strength, meta)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        symbol,
                        interval,
                        signal.type.value,
                        signal.price,
                        signal.timestamp,
                        signal.created_at,
                        signal.indicator,
                        signal.strength.value,
                        json.dumps(signal.model_dump()["meta"]) if signal.meta is not None else None,
                    )
                    for signal in signals
                ],
            )
            conn.commit()
        finally:
            conn.close()

        logger.info(
            "Stored %d signals for %s %s (replaced %d)",
            len(signals), symbol, interval, deleted,
        )
        return deleted

    @staticmethod
    def _row_to_signal(row: sqlite3.Row) -> dict:
        signal = Signal(
            type=SignalType(row["type"]),
            price=float("nan") if row["price"] is None else row["price"],
            timestamp=row["timestamp"],
            created_at=row["created_at"],
            indicator=row["indicator"],
            strength=Strength(row["strength"]),
            meta=json.loads(row["meta"]) if row["meta"] else None,
        )
        return {"symbol": row["symbol"], "interval": row["interval"], "signal": signal}

    def get_signals(
        self,
        symbol: Optional[str] = None,
        interval: Optional[str] = None,
        limit: int = 20,
    ) -> list[dict]:
        """Get stored signals, newest first.

        Args:
            symbol: Optional trading pair filter.
            interval: Optional interval filter.
            limit: Maximum number of signals to return.

        Returns:
            List of ``{"symbol", "interval", "signal"}`` records.
        """
        conditions = []
        params: list = []
        if symbol:
            conditions.append("symbol = ?")
            params.append(symbol)
        if interval:
            conditions.append("interval = ?")
            params.append(interval)

        query = "SELECT * FROM signals"
        if conditions:
            query += " WHERE " + " AND ".join(conditions)
        query += " ORDER BY timestamp DESC, id DESC LIMIT ?"
        params.append(limit)

        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return [self._row_to_signal(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def get_intervals(self) -> list[str]:
        """Intervals that have at least one stored signal."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("SELECT DISTINCT interval FROM signals ORDER BY interval")
            return [row["interval"] for row in cursor.fetchall()]
        finally:
            conn.close()

    def get_recent_signals(self, limit: int = 5) -> dict[str, list[dict]]:
        """Newest signals grouped by interval.

        Args:
            limit: Number of signals per interval.

        Returns:
            Mapping of interval to its newest signal records.
        """
        return {
            interval: self.get_signals(interval=interval, limit=limit)
            for interval in self.get_intervals()
        }
