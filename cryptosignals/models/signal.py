"""Signal data models."""

from enum import Enum
from types import MappingProxyType
from typing import Any, Optional

from pydantic import BaseModel, Field, field_serializer, field_validator


class SignalType(str, Enum):
    """Direction of a trading signal."""

    BUY = "buy"
    SELL = "sell"


class Strength(str, Enum):
    """Confidence bucket attached to a signal."""

    WEAK = "weak"
    MEDIUM = "medium"
    STRONG = "strong"


class Signal(BaseModel):
    """A discrete buy/sell event emitted by a detector or the aggregator."""

    type: SignalType = Field(..., description="Buy or sell")
    price: float = Field(..., description="Close price of the triggering candle")
    timestamp: int = Field(..., description="Open time of the triggering candle (ms)")
    created_at: int = Field(..., description="Detection wall-clock time (ms)")
    indicator: str = Field(..., min_length=1, description="Detector tag")
    strength: Strength = Field(..., description="Signal strength")
    meta: Optional[dict[str, Any]] = Field(default=None, description="Detector payload")

    model_config = {"frozen": True}

    @field_validator("meta")
    @classmethod
    def _freeze_meta(cls, meta):
        """Store meta read-only, with lists held as tuples."""
        if meta is None:
            return None
        return MappingProxyType({
            key: tuple(value) if isinstance(value, list) else value
            for key, value in meta.items()
        })

    @field_serializer("meta")
    def _serialize_meta(self, meta) -> Optional[dict[str, Any]]:
        if meta is None:
            return None
        return {
            key: list(value) if isinstance(value, tuple) else value
            for key, value in meta.items()
        }

    def identity(self) -> tuple:
        """Everything that defines the signal except its detection time."""
        meta = None
        if self.meta is not None:
            meta = tuple(
                (key, value) for key, value in sorted(self.meta.items())
            )
        return (
            self.type.value,
            self.price,
            self.timestamp,
            self.indicator,
            self.strength.value,
            meta,
        )


class LiveSignal(BaseModel):
    """Most recent qualifying event of one live detector.

    ``idx`` is the index of the triggering candle. It only exists so that
    composite entries can be correlated and is dropped for display.
    """

    signal: Optional[SignalType] = None
    triggered_at: Optional[int] = Field(default=None, description="Trigger open time (ms)")
    pct_change: Optional[float] = Field(
        default=None, description="Direction-adjusted move since the trigger (%)"
    )
    idx: Optional[int] = None

    model_config = {"frozen": True}

    @property
    def is_active(self) -> bool:
        return self.signal is not None and self.idx is not None

    def to_display(self) -> dict:
        """Presentation payload without the internal correlation index."""
        return self.model_dump(exclude={"idx"}, mode="json")
