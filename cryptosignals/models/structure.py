"""Price-structure models: pivots and support/resistance zones."""

from enum import Enum

from pydantic import BaseModel, Field


class ZoneType(str, Enum):
    """Side of the market a level acts on."""

    SUPPORT = "support"
    RESISTANCE = "resistance"


class PivotPoint(BaseModel):
    """A local extremum over a symmetric lookback window."""

    type: ZoneType
    level: float
    index: int = Field(..., ge=0)
    timestamp: int

    model_config = {"frozen": True}


class Zone(BaseModel):
    """A price band formed by grouping nearby pivots."""

    type: ZoneType
    level: float = Field(..., description="Average pivot level")
    strength: float = Field(..., ge=0, le=1, description="Pivot count normalized to [0, 1]")
    count: int = Field(..., ge=1)
    pivots: tuple[PivotPoint, ...]

    model_config = {"frozen": True}
