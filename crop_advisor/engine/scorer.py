"""
Crop scoring: turns matched historical records into ranked recommendations.

Score formula (per crop, over that crop's matched records)
----------------------------------------------------------
    rainfall_score = 100 - min(mean |rainfall - target|, 100)
    total          = avg_rating * 20 + avg_roi * 0.5 + rainfall_score * 0.3

Crops are sorted by ``total`` descending with a stable sort, so crops with
equal totals keep the order in which they first appear among the candidates.

Derived labels
--------------
planting_date:
    Majority ``season`` among the crop's records (first seen wins ties),
    mapped through ``SEASON_PLANTING``.
irrigation_schedule:
    deficit = mean matched rainfall - target rainfall, bucketed by
    ``IRRIGATION_BANDS``.
expected_yield_improvement:
    Average yield bucketed by ``YIELD_BANDS``.
risk_factor:
    Relative rainfall deviation (mean |deviation| / target) combined with
    the average rating through ``RISK_RULES``.
"""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass
from typing import Iterable, Sequence

from crop_advisor.models.profile import CropRecommendation
from crop_advisor.models.records import AgriculturalRecord
from crop_advisor.taxonomy.agronomy_taxonomy import (
    BASE_YIELD_BAND,
    DEFAULT_RECOMMENDATIONS,
    IRRIGATION_BANDS,
    MINIMAL_IRRIGATION,
    RISK_RULES,
    YIELD_BANDS,
    RiskLevel,
    planting_window,
)

_RATING_WEIGHT = 20.0
_ROI_WEIGHT = 0.5
_RAINFALL_WEIGHT = 0.3


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives.

    ``round()`` uses banker's rounding (``round(62.5) == 62``); scores are
    reported with the conventional rule (``63``).
    """
    return math.floor(value + 0.5)


@dataclass
class CropScore:
    """Aggregated metrics for one crop across its matched records.

    Attributes:
        crop:               Crop name as first seen among the candidates.
        record_count:       Number of matched records for this crop.
        avg_yield:          Mean yield, kg/ha.
        avg_roi:            Mean ROI, percent.
        avg_rating:         Mean success rating (1–5).
        mean_rainfall:      Mean annual rainfall of the matched records, mm.
        mean_abs_deviation: Mean |record rainfall - target|, mm.
        majority_season:    Most frequent season among the records.
    """

    crop:               str
    record_count:       int
    avg_yield:          float
    avg_roi:            float
    avg_rating:         float
    mean_rainfall:      float
    mean_abs_deviation: float
    majority_season:    str

    @property
    def rainfall_score(self) -> float:
        return 100.0 - min(self.mean_abs_deviation, 100.0)

    @property
    def total(self) -> float:
        return (
            self.avg_rating      * _RATING_WEIGHT
            + self.avg_roi       * _ROI_WEIGHT
            + self.rainfall_score * _RAINFALL_WEIGHT
        )


def aggregate_by_crop(
    candidates: Iterable[AgriculturalRecord],
    target_rainfall: float,
) -> list[CropScore]:
    """Group candidates by crop (case-insensitive) and average their metrics.

    Groups are returned in first-seen order.
    """
    groups: dict[str, list[AgriculturalRecord]] = {}
    for record in candidates:
        groups.setdefault(record.crop.strip().lower(), []).append(record)

    scores: list[CropScore] = []
    for records in groups.values():
        n = len(records)
        seasons = Counter(r.season.strip().lower() for r in records)
        scores.append(
            CropScore(
                crop=records[0].crop,
                record_count=n,
                avg_yield=sum(r.yield_kg_per_hectare for r in records) / n,
                avg_roi=sum(r.roi_percent for r in records) / n,
                avg_rating=sum(r.success_rating for r in records) / n,
                mean_rainfall=sum(r.annual_rainfall_mm for r in records) / n,
                mean_abs_deviation=sum(
                    abs(r.annual_rainfall_mm - target_rainfall) for r in records
                ) / n,
                majority_season=seasons.most_common(1)[0][0],
            )
        )
    return scores


def rank_crops(
    candidates: Sequence[AgriculturalRecord],
    target_rainfall: float,
    limit: int = 3,
) -> list[CropScore]:
    """Return the ``limit`` best crops by total score."""
    scores = aggregate_by_crop(candidates, target_rainfall)
    scores.sort(key=lambda s: s.total, reverse=True)
    return scores[:limit]


# ── Label derivation ──────────────────────────────────────────────────────────

def irrigation_schedule(mean_rainfall: float, target_rainfall: float) -> str:
    deficit = mean_rainfall - target_rainfall
    for lower_bound, label in IRRIGATION_BANDS:
        if deficit > lower_bound:
            return label
    return MINIMAL_IRRIGATION


def yield_improvement(avg_yield: float) -> str:
    for lower_bound, band in YIELD_BANDS:
        if avg_yield > lower_bound:
            return band
    return BASE_YIELD_BAND


def relative_deviation(mean_abs_deviation: float, target_rainfall: float) -> float:
    """Mean rainfall deviation as a fraction of the target.

    A zero target makes any deviation infinitely large (and none zero).
    """
    if target_rainfall > 0:
        return mean_abs_deviation / target_rainfall
    return 0.0 if mean_abs_deviation == 0 else math.inf


def risk_factor(deviation: float, avg_rating: float) -> RiskLevel:
    for max_deviation, min_rating, level in RISK_RULES:
        if deviation < max_deviation and avg_rating >= min_rating:
            return level
    return RiskLevel.HIGH


def to_recommendation(score: CropScore, target_rainfall: float) -> CropRecommendation:
    deviation = relative_deviation(score.mean_abs_deviation, target_rainfall)
    return CropRecommendation(
        name=score.crop,
        planting_date=planting_window(score.majority_season),
        irrigation_schedule=irrigation_schedule(score.mean_rainfall, target_rainfall),
        expected_yield_improvement=yield_improvement(score.avg_yield),
        risk_factor=risk_factor(deviation, score.avg_rating).value,
    )


def default_recommendations() -> list[CropRecommendation]:
    """The fixed Rice / Wheat / Maize list used when no record can be matched."""
    return [CropRecommendation(**entry) for entry in DEFAULT_RECOMMENDATIONS]
