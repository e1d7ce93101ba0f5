"""
Shared pytest fixtures for the Village Crop Advisor test suite.

Provides:
  - ``make_record`` / ``make_trial`` / ``make_fertilizer`` / ``make_rainfall``:
    record factories with sensible defaults; override any field by keyword.
  - ``app_config``: the default ``AppConfig``.
  - ``empty_store`` and ``black_soil_store``: record stores for engine tests.
  - ``cotton_profile``: the black-soil, 900 mm village profile.
"""

from __future__ import annotations

import pytest

from crop_advisor.config import AppConfig
from crop_advisor.models.profile import VillageProfile
from crop_advisor.models.records import (
    MONTHS,
    AgriculturalRecord,
    CropTrialRecord,
    FertilizerRecord,
    RainfallRecord,
)
from crop_advisor.store.record_store import RecordStore


# ── Record factories ──────────────────────────────────────────────────────────

def make_record(**overrides) -> AgriculturalRecord:
    """A valid ``AgriculturalRecord``; keyword arguments replace defaults."""
    fields = dict(
        state="Maharashtra",
        district="Wardha",
        village="Seloo",
        latitude=20.8,
        longitude=78.6,
        year=2020,
        season="Kharif",
        crop="Cotton",
        area=2.5,
        soil_type="Black",
        soil_ph=7.2,
        soil_moisture=32.0,
        annual_rainfall_mm=900.0,
        avg_temperature_c=27.5,
        climate_risk="Medium",
        drought_occurrence=False,
        flood_occurrence=False,
        irrigation_type="Drip",
        input_cost=42000.0,
        yield_kg_per_hectare=2500.0,
        market_price=6200.0,
        roi_percent=40.0,
        success_rating=4.0,
        farmer_feedback="Good season",
    )
    fields.update(overrides)
    return AgriculturalRecord(**fields)


def make_trial(**overrides) -> CropTrialRecord:
    fields = dict(N=90, P=42, K=43, temperature=25.0, humidity=80.0, ph=6.5,
                  rainfall=200.0, label="rice")
    fields.update(overrides)
    return CropTrialRecord(**fields)


def make_fertilizer(**overrides) -> FertilizerRecord:
    fields = dict(temperature=26.0, humidity=52.0, moisture=38.0, soil_type="Sandy",
                  crop_type="Maize", nitrogen=37.0, potassium=0.0, phosphorous=0.0,
                  fertilizer_name="Urea")
    fields.update(overrides)
    return FertilizerRecord(**fields)


def make_rainfall(**overrides) -> RainfallRecord:
    fields = dict(name="Wardha", subdivision="Vidarbha", year=2010,
                  annual=1000.0, latitude=20.8, longitude=78.6)
    fields.update({m: 10.0 for m in MONTHS})
    fields.update(overrides)
    return RainfallRecord(**fields)


# ── Config / store fixtures ───────────────────────────────────────────────────

@pytest.fixture
def app_config() -> AppConfig:
    """Default configuration (degrade policy)."""
    return AppConfig()


@pytest.fixture
def strict_config() -> AppConfig:
    config = AppConfig()
    return config.model_copy(
        update={"engine": config.engine.model_copy(update={"policy": "strict"})}
    )


@pytest.fixture
def empty_store() -> RecordStore:
    return RecordStore()


@pytest.fixture
def black_soil_store() -> RecordStore:
    """Three black-soil cotton/soybean records near 900 mm plus noise."""
    return RecordStore(
        agricultural=(
            make_record(crop="Cotton", annual_rainfall_mm=850.0, success_rating=4.0),
            make_record(crop="Soybean", annual_rainfall_mm=950.0, success_rating=3.5,
                        roi_percent=30.0, yield_kg_per_hectare=1800.0),
            make_record(crop="Cotton", annual_rainfall_mm=1000.0, success_rating=4.5),
            make_record(crop="Rice", soil_type="Alluvial", annual_rainfall_mm=1600.0,
                        success_rating=5.0, roi_percent=60.0),
            make_record(crop="Wheat", soil_type="Black", annual_rainfall_mm=900.0,
                        success_rating=2.0),
        ),
    )


@pytest.fixture
def cotton_profile() -> VillageProfile:
    return VillageProfile(
        village="Seloo",
        latitude=20.8,
        longitude=78.6,
        soil_type="black_soil",
        annual_rainfall=900.0,
        crops_current=("cotton", "jowar"),
        groundwater_depth=12.0,
        flood_history="Minor flooding in 2019",
    )
