"""
Historical record models held by the ``RecordStore``.

Four record types exist, one per dataset file:

  - ``AgriculturalRecord`` — village-level crop outcome with yield, ROI and
    a 1–5 success rating. Drives the tolerance-ladder matcher.
  - ``CropTrialRecord``    — soil-nutrient / climate trial labelled with the
    crop grown. Drives the strict matcher.
  - ``FertilizerRecord``   — fertilizer used for a crop on a soil type.
  - ``RainfallRecord``     — one station-year of monthly rainfall.

All models are frozen and reject NaN / infinity: a record is immutable once
loaded and every numeric field is a finite number.
"""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, ConfigDict, field_validator

_RECORD_CONFIG = ConfigDict(frozen=True, allow_inf_nan=False, str_strip_whitespace=True)


class AgriculturalRecord(BaseModel):
    """Historical outcome of one crop in one village and season.

    Attributes:
        season: Cropping season as recorded (``"Kharif"``, ``"Rabi"`` ...).
        crop: Crop name as recorded.
        soil_type: Soil label as recorded.
        annual_rainfall_mm: Annual rainfall for the record's year.
        roi_percent: Return on investment, percent.
        success_rating: Outcome quality on a 1–5 scale.
    """

    model_config = _RECORD_CONFIG

    COLUMNS: ClassVar[tuple[str, ...]] = (
        "state", "district", "village", "latitude", "longitude", "year",
        "season", "crop", "area", "soil_type", "soil_ph", "soil_moisture",
        "annual_rainfall_mm", "avg_temperature_c", "climate_risk",
        "drought_occurrence", "flood_occurrence", "irrigation_type",
        "input_cost", "yield_kg_per_hectare", "market_price", "roi_percent",
        "success_rating", "farmer_feedback",
    )

    state: str
    district: str
    village: str
    latitude: float
    longitude: float
    year: int
    season: str
    crop: str
    area: float
    soil_type: str
    soil_ph: float
    soil_moisture: float
    annual_rainfall_mm: float
    avg_temperature_c: float
    climate_risk: str
    drought_occurrence: bool
    flood_occurrence: bool
    irrigation_type: str
    input_cost: float
    yield_kg_per_hectare: float
    market_price: float
    roi_percent: float
    success_rating: float
    farmer_feedback: str = ""

    @field_validator("crop", "soil_type")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("Field must not be empty.")
        return v

    @field_validator("success_rating")
    @classmethod
    def validate_rating_range(cls, v: float) -> float:
        if not 1.0 <= v <= 5.0:
            raise ValueError(f"success_rating must be in [1, 5], got {v}.")
        return v


class CropTrialRecord(BaseModel):
    """One labelled crop trial: soil nutrients, climate and the crop grown."""

    model_config = _RECORD_CONFIG

    COLUMNS: ClassVar[tuple[str, ...]] = (
        "N", "P", "K", "temperature", "humidity", "ph", "rainfall", "label",
    )

    N: float
    P: float
    K: float
    temperature: float
    humidity: float
    ph: float
    rainfall: float
    label: str

    @field_validator("label")
    @classmethod
    def validate_label(cls, v: str) -> str:
        if not v:
            raise ValueError("label must not be empty.")
        return v


class FertilizerRecord(BaseModel):
    """Fertilizer applied to a crop type on a soil type."""

    model_config = _RECORD_CONFIG

    COLUMNS: ClassVar[tuple[str, ...]] = (
        "temperature", "humidity", "moisture", "soil_type", "crop_type",
        "nitrogen", "potassium", "phosphorous", "fertilizer_name",
    )

    temperature: float
    humidity: float
    moisture: float
    soil_type: str
    crop_type: str
    nitrogen: float
    potassium: float
    phosphorous: float
    fertilizer_name: str


MONTHS: tuple[str, ...] = (
    "jan", "feb", "mar", "apr", "may", "jun",
    "jul", "aug", "sep", "oct", "nov", "dec",
)


class RainfallRecord(BaseModel):
    """One station-year of monthly rainfall in millimetres.

    The source file carries four seasonal aggregate columns between
    ``annual`` and ``latitude``; they are redundant and not kept.
    """

    model_config = _RECORD_CONFIG

    # Positions of the kept fields in the 22-column source row.
    COLUMN_INDEX: ClassVar[dict[str, int]] = {
        "name": 0, "subdivision": 1, "year": 2,
        **{m: 3 + i for i, m in enumerate(MONTHS)},
        "annual": 15, "latitude": 20, "longitude": 21,
    }
    COLUMN_COUNT: ClassVar[int] = 22

    name: str
    subdivision: str
    year: int
    jan: float
    feb: float
    mar: float
    apr: float
    may: float
    jun: float
    jul: float
    aug: float
    sep: float
    oct: float
    nov: float
    dec: float
    annual: float
    latitude: float
    longitude: float

    def monthly(self) -> dict[str, float]:
        """Return ``{month: rainfall_mm}`` in calendar order."""
        return {m: getattr(self, m) for m in MONTHS}
