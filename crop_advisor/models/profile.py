"""
Query input and output models.

``VillageProfile`` is built fresh for every request and never persisted.
``CropRecommendation`` and the confidence models are derived per query and
never cached — recomputing them against an unchanged store yields equal
objects.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class VillageProfile(BaseModel):
    """Location, soil and rainfall description of the village being advised.

    Attributes:
        village: Village name (display only).
        latitude: Decimal degrees.
        longitude: Decimal degrees.
        soil_type: Soil label, e.g. ``"black_soil"`` or ``"Alluvial"``.
        annual_rainfall: Target annual rainfall in mm.
        crops_current: Crops currently grown in the village.
        groundwater_depth: Depth to groundwater in metres.
        flood_history: Free-text flood history.
    """

    model_config = ConfigDict(frozen=True, allow_inf_nan=False, str_strip_whitespace=True)

    village: str
    latitude: float = 0.0
    longitude: float = 0.0
    soil_type: str
    annual_rainfall: float
    crops_current: tuple[str, ...] = ()
    groundwater_depth: float = 0.0
    flood_history: str = ""

    @field_validator("annual_rainfall")
    @classmethod
    def validate_rainfall(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"annual_rainfall must be non-negative, got {v}.")
        return v

    @field_validator("crops_current")
    @classmethod
    def drop_blank_crops(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(c.strip() for c in v if c.strip())


class CropRecommendation(BaseModel):
    """One recommended crop with its agronomic guidance labels."""

    model_config = ConfigDict(frozen=True)

    name: str
    planting_date: str
    irrigation_schedule: str
    expected_yield_improvement: str
    risk_factor: str


class DataQuality(BaseModel):
    """Per-dimension data sufficiency, each a percentage in [0, 100]."""

    model_config = ConfigDict(frozen=True)

    rainfall: float = Field(ge=0.0, le=100.0)
    soil: float = Field(ge=0.0, le=100.0)
    crops: float = Field(ge=0.0, le=100.0)


class ConfidenceValidation(BaseModel):
    """Result of ``validate_prediction_confidence``."""

    model_config = ConfigDict(frozen=True)

    confidence: int
    is_high_confidence: bool
    recommendations: list[str]
    data_quality: DataQuality


class DimensionScore(BaseModel):
    model_config = ConfigDict(frozen=True)

    score: int
    description: str


class ConfidenceBreakdown(BaseModel):
    """Overall confidence plus a described score per data dimension."""

    model_config = ConfigDict(frozen=True)

    overall: int
    rainfall: DimensionScore
    soil: DimensionScore
    crops: DimensionScore
