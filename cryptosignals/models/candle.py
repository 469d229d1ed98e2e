"""Candle (OHLCV) data model."""

from datetime import datetime, timezone

from pydantic import BaseModel, Field


def _to_float(value) -> float:
    """Parse a numeric field, mapping anything unparsable to NaN."""
    try:
        return float(value)
    except (TypeError, ValueError):
        return float("nan")


class Candle(BaseModel):
    """Represents a single OHLCV candle.

    Prices are deliberately unconstrained so that a malformed upstream
    field can travel through the indicator math as NaN.
    """

    open_time: int = Field(..., description="Candle open time (ms since epoch)")
    open: float = Field(..., description="Opening price")
    high: float = Field(..., description="High price")
    low: float = Field(..., description="Low price")
    close: float = Field(..., description="Closing price")
    volume: float = Field(default=0.0, description="Traded base volume")

    model_config = {"frozen": True}

    @classmethod
    def from_kline(cls, row) -> "Candle":
        """Build a candle from an exchange kline row.

        Args:
            row: Sequence of ``[open_time, open, high, low, close, volume, ...]``.

        Returns:
            Candle with named fields.

        Raises:
            TypeError: If the row is not a sequence with at least five fields.
            ValueError: If the open time is not an integer.
        """
        if isinstance(row, (str, bytes)) or not hasattr(row, "__getitem__"):
            raise TypeError(f"Kline row must be a sequence, got {type(row).__name__}")
        if len(row) < 5:
            raise TypeError(f"Kline row needs at least 5 fields, got {len(row)}")

        return cls(
            open_time=int(row[0]),
            open=_to_float(row[1]),
            high=_to_float(row[2]),
            low=_to_float(row[3]),
            close=_to_float(row[4]),
            volume=_to_float(row[5]) if len(row) > 5 else 0.0,
        )

    @property
    def opened_at(self) -> datetime:
        """Open time as an aware UTC datetime."""
        return datetime.fromtimestamp(self.open_time / 1000, tz=timezone.utc)
