"""
Agronomic lookup tables used by the matcher and scorer.

Every table is plain data keyed by a normalised slug so it can be tuned or
tested without touching the matching code:

  - ``SOIL_SIMILARITY``      — soil slug → group of soils treated as similar.
  - ``CROP_CATEGORIES``      — category → member crop slugs.
  - ``SEASON_PLANTING``      — cropping season → planting window label.
  - ``IRRIGATION_BANDS``     — rainfall deficit thresholds → schedule label.
  - ``YIELD_BANDS``          — average yield thresholds → improvement band.
  - ``DEFAULT_RECOMMENDATIONS`` — the hard-coded last-resort crop list.

This module has NO imports from any other ``crop_advisor`` package.
"""

from __future__ import annotations

from enum import StrEnum


class Season(StrEnum):
    """Indian cropping seasons as they appear in the historical records."""

    KHARIF = "kharif"
    """Monsoon crop, sown with the first rains."""

    RABI = "rabi"
    """Winter crop, sown after the monsoon retreats."""

    ZAID = "zaid"
    """Short summer crop between rabi harvest and kharif sowing."""


class RiskLevel(StrEnum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


# ── Soil similarity ───────────────────────────────────────────────────────────

SOIL_SIMILARITY: dict[str, frozenset[str]] = {
    "black":    frozenset({"black", "red", "alluvial"}),
    "red":      frozenset({"red", "black", "laterite"}),
    "alluvial": frozenset({"alluvial", "loamy", "black"}),
    "sandy":    frozenset({"sandy", "loamy", "red"}),
    "loamy":    frozenset({"loamy", "alluvial", "sandy"}),
    "clay":     frozenset({"clay", "black", "alluvial"}),
    "laterite": frozenset({"laterite", "red", "sandy"}),
}

DEFAULT_SIMILAR_SOILS: frozenset[str] = frozenset({"black", "red", "alluvial"})

_SOIL_SUFFIXES = ("_soil", " soil", "-soil")


def normalize_soil(soil_type: str) -> str:
    """Lower-case a soil label and strip a trailing "soil" word.

    ``"Black_Soil"``, ``"black soil"`` and ``"Black"`` all normalise to
    ``"black"``.
    """
    slug = soil_type.strip().lower()
    for suffix in _SOIL_SUFFIXES:
        if slug.endswith(suffix):
            slug = slug[: -len(suffix)]
            break
    return slug.strip()


def similar_soils(soil_type: str) -> frozenset[str]:
    """Return the normalised soil group for ``soil_type``.

    Unknown soils map to ``{itself, black, red, alluvial}``.
    """
    slug = normalize_soil(soil_type)
    group = SOIL_SIMILARITY.get(slug)
    if group is not None:
        return group
    return DEFAULT_SIMILAR_SOILS | {slug}


# ── Crop categories ───────────────────────────────────────────────────────────

CROP_CATEGORIES: dict[str, frozenset[str]] = {
    "cereal": frozenset({"rice", "wheat", "maize"}),
    "cash":   frozenset({"cotton", "sugarcane"}),
    "pulse":  frozenset({"soybean"}),
}

CATEGORY_HIT_POINTS = 3
CATEGORY_BASELINE_POINTS = 2


def crop_categories_for(crop: str) -> list[str]:
    """Return every category whose member list contains ``crop``."""
    slug = crop.strip().lower()
    return [name for name, members in CROP_CATEGORIES.items() if slug in members]


# ── Season → planting window ─────────────────────────────────────────────────

SEASON_PLANTING: dict[str, str] = {
    Season.KHARIF: "June-July",
    Season.RABI:   "November-December",
    Season.ZAID:   "March-April",
}
DEFAULT_PLANTING_WINDOW = "March-April"


def planting_window(season: str) -> str:
    return SEASON_PLANTING.get(season.strip().lower(), DEFAULT_PLANTING_WINDOW)


# Wettest pre-monsoon month at nearby stations → sowing window for rain-fed
# paddy. Only January–June are considered.
ONSET_PLANTING: dict[str, str] = {
    "jan": "December-January",
    "feb": "January-February",
    "mar": "February-March",
    "apr": "March-April",
    "may": "April-May",
    "jun": "May-June",
}


# ── Irrigation / yield / risk bands ──────────────────────────────────────────

# (exclusive lower bound on deficit in mm, label); first match wins.
IRRIGATION_BANDS: list[tuple[float, str]] = [
    (200.0, "Daily irrigation required"),
    (100.0, "Irrigation every 2-3 days"),
    (0.0,   "Weekly irrigation"),
]
MINIMAL_IRRIGATION = "Minimal irrigation needed"

# (exclusive lower bound on average yield in kg/ha, band); first match wins.
YIELD_BANDS: list[tuple[float, str]] = [
    (4000.0, "20-30%"),
    (3000.0, "15-25%"),
    (2000.0, "10-20%"),
]
BASE_YIELD_BAND = "5-15%"

# (max relative rainfall deviation, min average rating, level); first match wins.
RISK_RULES: list[tuple[float, float, RiskLevel]] = [
    (0.2, 4.0, RiskLevel.LOW),
    (0.4, 3.0, RiskLevel.MEDIUM),
]


# ── Hard default ─────────────────────────────────────────────────────────────

DEFAULT_RECOMMENDATIONS: list[dict[str, str]] = [
    {
        "name": "Rice",
        "planting_date": "June-July",
        "irrigation_schedule": "Weekly irrigation",
        "expected_yield_improvement": "10-15%",
        "risk_factor": "Medium",
    },
    {
        "name": "Wheat",
        "planting_date": "November-December",
        "irrigation_schedule": "Irrigation every 2-3 days",
        "expected_yield_improvement": "10-15%",
        "risk_factor": "Medium",
    },
    {
        "name": "Maize",
        "planting_date": "June-July",
        "irrigation_schedule": "Weekly irrigation",
        "expected_yield_improvement": "5-15%",
        "risk_factor": "Low",
    },
]


# ── Confidence labels ────────────────────────────────────────────────────────

PROMPT_CONFIDENCE_LEVELS: list[tuple[int, str]] = [
    (80, "VERY HIGH"),
    (60, "HIGH"),
    (40, "MODERATE"),
]


def prompt_confidence_level(confidence: int) -> str:
    for threshold, label in PROMPT_CONFIDENCE_LEVELS:
        if confidence >= threshold:
            return label
    return "LOW"


def reliability_label(confidence: int) -> str:
    """Short label used in the templated fallback plan."""
    if confidence >= 80:
        return "High"
    if confidence >= 60:
        return "Good"
    return "Low"
