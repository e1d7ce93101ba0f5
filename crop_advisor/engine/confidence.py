"""
Confidence scoring: how well the historical data covers a village profile.

Three sub-scores, each normalised to [0, 1], are blended::

    weighted = rainfall * 0.60 + soil * 0.25 + crops * 0.15
    confidence = round(weighted * 100)

Degrade policy (``ladder_confidence``, agricultural records)
-------------------------------------------------------------
rainfall:
    Records within ±200 mm; widened to ±400 mm if fewer than 5, then to
    ±600 mm if still fewer than 3. ``min(count / 20, 1)``.
soil:
    Exact soil matches, or similar-soil-group matches if there are none.
    ``min(count / 10, 1)``.
crops:
    Sum over current crops of ``2 * exact + partial`` (substring either
    way). If zero, a category heuristic: +2 per input crop and +3 per
    crop-category hit. ``min(points / 15, 1)``.
The result is clamped to [25, 95].

Strict policy (``strict_confidence``, crop trials + fertilizer rows)
---------------------------------------------------------------------
Rainfall within ±50 mm (at least 10 matches, ``/ 50``), soil substring
matches against fertilizer rows (at least one, ``/ 8``), crop history over
trial labels (at least one point, ``/ 20``). Any shortfall, or a final
score under 40, raises ``InsufficientDataError``. Only the 95 ceiling is
applied.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from crop_advisor.config import ConfidenceConfig, EngineConfig
from crop_advisor.engine.errors import InsufficientDataError
from crop_advisor.engine.scorer import round_half_up
from crop_advisor.models.profile import VillageProfile
from crop_advisor.models.records import (
    AgriculturalRecord,
    CropTrialRecord,
    FertilizerRecord,
)
from crop_advisor.taxonomy.agronomy_taxonomy import (
    CATEGORY_BASELINE_POINTS,
    CATEGORY_HIT_POINTS,
    crop_categories_for,
    normalize_soil,
    similar_soils,
)

logger = logging.getLogger(__name__)

# Rainfall tolerance widens when the count falls below these.
_WIDEN_TO_SECOND_BELOW = 5
_WIDEN_TO_THIRD_BELOW = 3

# Strict-policy saturation counts.
_STRICT_RAINFALL_FULL = 50
_STRICT_SOIL_FULL = 8
_STRICT_CROP_FULL = 20


@dataclass
class ConfidenceScores:
    """Sub-scores and match counts behind one confidence figure.

    Attributes:
        rainfall_matches:    Records inside the rainfall tolerance used.
        rainfall_tolerance:  Tolerance (mm) the rainfall count was taken at.
        soil_matches:        Soil matches counted.
        soil_mode:           ``"exact"``, ``"similar"`` or ``"substring"``.
        crop_points:         Crop-history points.
        crop_from_categories: True when the category heuristic supplied them.
        rainfall_score:      Normalised rainfall sub-score, 0–1.
        soil_score:          Normalised soil sub-score, 0–1.
        crop_score:          Normalised crop-history sub-score, 0–1.
        confidence:          Final clamped percentage.
    """

    rainfall_matches:     int
    rainfall_tolerance:   float
    soil_matches:         int
    soil_mode:            str
    crop_points:          int
    crop_from_categories: bool
    rainfall_score:       float
    soil_score:           float
    crop_score:           float
    confidence:           int = 0


def weighted_score(scores: ConfidenceScores, config: ConfidenceConfig) -> float:
    return (
        scores.rainfall_score * config.rainfall_weight
        + scores.soil_score   * config.soil_weight
        + scores.crop_score   * config.crop_weight
    )


def _saturate(count: float, full: float) -> float:
    return min(count / full, 1.0)


def _crop_history_points(labels: Sequence[str], current_crops: Sequence[str]) -> int:
    """``2 * exact + partial`` summed over the current crops."""
    lowered = [label.strip().lower() for label in labels]
    points = 0
    for crop in current_crops:
        c = crop.strip().lower()
        if not c:
            continue
        exact = sum(1 for label in lowered if label == c)
        partial = sum(1 for label in lowered if c in label or label in c)
        points += 2 * exact + partial
    return points


def category_points(current_crops: Sequence[str]) -> int:
    """Heuristic crop-history points when no historical crop matches exist."""
    points = 0
    for crop in current_crops:
        points += CATEGORY_BASELINE_POINTS
        points += CATEGORY_HIT_POINTS * len(crop_categories_for(crop))
    return points


# ── Degrade policy ────────────────────────────────────────────────────────────

def count_rainfall_matches(
    records: Sequence[AgriculturalRecord],
    target: float,
    tolerances: Sequence[float],
) -> tuple[int, float]:
    """Count records near ``target``, widening through ``tolerances``.

    Returns:
        ``(count, tolerance_used)``.
    """
    def count_within(tolerance: float) -> int:
        return sum(1 for r in records if abs(r.annual_rainfall_mm - target) <= tolerance)

    first, second, third = tolerances
    count, used = count_within(first), first
    if count < _WIDEN_TO_SECOND_BELOW:
        count, used = count_within(second), second
        if count < _WIDEN_TO_THIRD_BELOW:
            count, used = count_within(third), third
    return count, used


def count_soil_matches(
    records: Sequence[AgriculturalRecord],
    soil_type: str,
) -> tuple[int, str]:
    """Exact soil matches, else similar-group matches.

    Returns:
        ``(count, mode)`` where mode is ``"exact"`` or ``"similar"``.
    """
    target = normalize_soil(soil_type)
    exact = sum(1 for r in records if normalize_soil(r.soil_type) == target)
    if exact:
        return exact, "exact"
    group = similar_soils(soil_type)
    return sum(1 for r in records if normalize_soil(r.soil_type) in group), "similar"


def ladder_confidence(
    records: Sequence[AgriculturalRecord],
    profile: VillageProfile,
    config: ConfidenceConfig,
) -> ConfidenceScores:
    """Confidence over agricultural records; never raises for thin data."""
    rain_count, tolerance = count_rainfall_matches(
        records, profile.annual_rainfall, config.rainfall_tolerances_mm
    )
    soil_count, soil_mode = count_soil_matches(records, profile.soil_type)

    crop_points = _crop_history_points([r.crop for r in records], profile.crops_current)
    from_categories = False
    if crop_points == 0:
        crop_points = category_points(profile.crops_current)
        from_categories = True

    scores = ConfidenceScores(
        rainfall_matches=rain_count,
        rainfall_tolerance=tolerance,
        soil_matches=soil_count,
        soil_mode=soil_mode,
        crop_points=crop_points,
        crop_from_categories=from_categories,
        rainfall_score=_saturate(rain_count, config.rainfall_full_count),
        soil_score=_saturate(soil_count, config.soil_full_count),
        crop_score=_saturate(crop_points, config.crop_full_points),
    )
    raw = round_half_up(weighted_score(scores, config) * 100)
    scores.confidence = max(config.floor, min(raw, config.ceiling))
    logger.debug(
        "Confidence %d%% (raw %d) | rainfall=%d@±%.0f soil=%d(%s) crops=%d%s",
        scores.confidence, raw, rain_count, tolerance, soil_count, soil_mode,
        crop_points, " [categories]" if from_categories else "",
    )
    return scores


# ── Strict policy ─────────────────────────────────────────────────────────────

def strict_confidence(
    trials: Sequence[CropTrialRecord],
    fertilizers: Sequence[FertilizerRecord],
    profile: VillageProfile,
    engine: EngineConfig,
    config: ConfidenceConfig,
) -> ConfidenceScores:
    """Confidence over crop trials and fertilizer rows.

    Raises:
        InsufficientDataError: On too few rainfall matches, no soil or crop
            history matches, or a final score below ``config.strict_floor``.
    """
    target = profile.annual_rainfall
    rain_count = sum(1 for t in trials if abs(t.rainfall - target) <= engine.strict_rainfall_mm)
    if rain_count < engine.strict_min_rainfall_matches:
        raise InsufficientDataError(
            f"Insufficient rainfall data matches ({rain_count} found, minimum "
            f"{engine.strict_min_rainfall_matches} required). "
            "Cannot provide reliable recommendations.",
            found=rain_count,
            required=engine.strict_min_rainfall_matches,
        )

    soil = profile.soil_type.strip().lower()
    soil_count = sum(
        1 for f in fertilizers
        if soil in f.soil_type.lower() or f.soil_type.lower() in soil
    )
    if soil_count == 0:
        raise InsufficientDataError(
            f'No soil data matches found for "{profile.soil_type}". '
            "Cannot provide reliable recommendations.",
            found=0,
            required=1,
        )

    crop_points = _crop_history_points([t.label for t in trials], profile.crops_current)
    if crop_points == 0:
        raise InsufficientDataError(
            "No historical crop data found for current crops: "
            f"{', '.join(profile.crops_current)}. Cannot provide reliable recommendations.",
            found=0,
            required=1,
        )

    scores = ConfidenceScores(
        rainfall_matches=rain_count,
        rainfall_tolerance=engine.strict_rainfall_mm,
        soil_matches=soil_count,
        soil_mode="substring",
        crop_points=crop_points,
        crop_from_categories=False,
        rainfall_score=_saturate(rain_count, _STRICT_RAINFALL_FULL),
        soil_score=_saturate(soil_count, _STRICT_SOIL_FULL),
        crop_score=_saturate(crop_points, _STRICT_CROP_FULL),
    )
    raw = round_half_up(weighted_score(scores, config) * 100)
    if raw < config.strict_floor:
        raise InsufficientDataError(
            f"Data quality insufficient ({raw}% confidence). "
            f"Minimum {config.strict_floor}% required for reliable recommendations.",
            found=raw,
            required=config.strict_floor,
        )
    scores.confidence = min(raw, config.ceiling)
    return scores
