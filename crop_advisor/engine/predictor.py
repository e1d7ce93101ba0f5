"""
Query interface over a loaded ``RecordStore``.

Two predictors implement the same queries; ``build_predictor`` picks one
from ``EngineConfig.policy``:

  - ``LadderPredictor`` (``"degrade"``) — tolerance ladder over
    agricultural records. Never raises for thin data: it widens tolerances
    and finally returns the built-in Rice / Wheat / Maize list.
  - ``StrictPredictor`` (``"strict"``) — single fixed-tolerance match over
    crop trials. Raises ``InsufficientDataError`` instead of relaxing.

Every query is a pure read over the store's tables. Predictors hold no
mutable state, so the same instance may serve concurrent callers, and
repeating a query against an unchanged store returns an equal result.

Usage::

    store = RecordStore()
    store.load(config.data)
    predictor = build_predictor(store, config)
    crops = predictor.predict_optimal_crops(profile)
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from crop_advisor.config import AppConfig
from crop_advisor.engine.confidence import (
    ConfidenceScores,
    ladder_confidence,
    strict_confidence,
)
from crop_advisor.engine.matcher import match_candidates, strict_match
from crop_advisor.engine.rainfall_context import (
    RainfallSummary,
    onset_planting_window,
    summarize_rainfall,
)
from crop_advisor.engine.scorer import (
    default_recommendations,
    rank_crops,
    round_half_up,
    to_recommendation,
)
from crop_advisor.models.plan import Strategy
from crop_advisor.models.profile import (
    ConfidenceBreakdown,
    ConfidenceValidation,
    CropRecommendation,
    DataQuality,
    DimensionScore,
    VillageProfile,
)
from crop_advisor.models.records import CropTrialRecord
from crop_advisor.store.record_store import RecordStore
from crop_advisor.taxonomy.agronomy_taxonomy import (
    MINIMAL_IRRIGATION,
    RiskLevel,
    normalize_soil,
)

logger = logging.getLogger(__name__)

_MAX_FERTILIZERS = 3
_NO_MATCH_SUCCESS_RATE = 30
_SUCCESS_RATE_FLOOR = 25
_SUCCESS_RATE_CEILING = 90

# Advice thresholds for validate_prediction_confidence.
_ADVICE_LEVELS: list[tuple[int, str]] = [
    (80, "High data confidence - proceed with implementation"),
    (70, "Good data confidence - consider pilot testing first"),
    (60, "Moderate data confidence - gather additional historical data"),
]
_LOW_ADVICE = "Insufficient data quality - expand data collection before implementation"
_FEW_RAINFALL_MATCHES = 20
_FEW_SOIL_MATCHES = 3


def _names_overlap(a: str, b: str) -> bool:
    a, b = a.strip().lower(), b.strip().lower()
    return bool(a and b) and (a in b or b in a)


class CropPredictor(ABC):
    """Queries shared by both matching policies.

    Subclasses implement ``predict_optimal_crops``, ``confidence_scores``
    and ``get_historical_success_rate``; the confidence report and
    fertilizer lookups are built on top of those here.
    """

    policy: str  # Override in subclass

    def __init__(self, store: RecordStore, config: AppConfig) -> None:
        self.store = store
        self.config = config

    @abstractmethod
    def predict_optimal_crops(self, profile: VillageProfile) -> list[CropRecommendation]:
        ...

    @abstractmethod
    def confidence_scores(self, profile: VillageProfile) -> ConfidenceScores:
        ...

    @abstractmethod
    def get_historical_success_rate(self, strategy: Strategy, profile: VillageProfile) -> int:
        ...

    def calculate_confidence_score(self, profile: VillageProfile) -> int:
        return self.confidence_scores(profile).confidence

    def validate_prediction_confidence(self, profile: VillageProfile) -> ConfidenceValidation:
        """Confidence, high-confidence flag, advice and per-dimension data quality."""
        scores = self.confidence_scores(profile)
        confidence = scores.confidence

        advice = next(
            (text for threshold, text in _ADVICE_LEVELS if confidence >= threshold),
            _LOW_ADVICE,
        )
        recommendations = [advice]
        if scores.rainfall_matches < _FEW_RAINFALL_MATCHES:
            recommendations.append(
                "Limited rainfall pattern matches - adjust irrigation plans accordingly"
            )
        if scores.soil_matches < _FEW_SOIL_MATCHES:
            recommendations.append(
                "Limited soil-specific data - use general agricultural practices"
            )

        return ConfidenceValidation(
            confidence=confidence,
            is_high_confidence=confidence >= self.config.confidence.high_confidence_threshold,
            recommendations=recommendations,
            data_quality=DataQuality(
                rainfall=scores.rainfall_score * 100,
                soil=scores.soil_score * 100,
                crops=scores.crop_score * 100,
            ),
        )

    def get_confidence_breakdown(self, profile: VillageProfile) -> ConfidenceBreakdown:
        scores = self.confidence_scores(profile)
        if scores.crop_from_categories:
            crop_text = "No direct crop history; estimated from crop categories"
        else:
            crop_text = f"{scores.crop_points} historical crop match points"
        return ConfidenceBreakdown(
            overall=scores.confidence,
            rainfall=DimensionScore(
                score=round_half_up(scores.rainfall_score * 100),
                description=(
                    f"{scores.rainfall_matches} rainfall pattern matches "
                    f"within ±{scores.rainfall_tolerance:.0f}mm"
                ),
            ),
            soil=DimensionScore(
                score=round_half_up(scores.soil_score * 100),
                description=f"{scores.soil_matches} soil type matches ({scores.soil_mode})",
            ),
            crops=DimensionScore(
                score=round_half_up(scores.crop_score * 100),
                description=crop_text,
            ),
        )

    def get_fertilizer_recommendations(self, crop_type: str, soil_type: str) -> list[str]:
        """Up to three distinct fertilizer names used on this crop or soil.

        A fertilizer row matches when its crop type contains ``crop_type``
        or its soil type contains ``soil_type`` (case-insensitive). Names
        keep file order.
        """
        crop = crop_type.strip().lower()
        soil = soil_type.strip().lower()
        names: list[str] = []
        for row in self.store.fertilizers:
            if (crop and crop in row.crop_type.lower()) or (soil and soil in row.soil_type.lower()):
                if row.fertilizer_name not in names:
                    names.append(row.fertilizer_name)
                    if len(names) == _MAX_FERTILIZERS:
                        break
        return names

    def regional_rainfall(self, profile: VillageProfile) -> RainfallSummary:
        nearby = self.store.find_similar_locations(profile.latitude, profile.longitude)
        return summarize_rainfall(nearby)


class LadderPredictor(CropPredictor):
    """Graceful-degradation predictor over agricultural records."""

    policy = "degrade"

    def predict_optimal_crops(self, profile: VillageProfile) -> list[CropRecommendation]:
        """Return 1–3 recommendations; never raises for thin data."""
        engine = self.config.engine
        match = match_candidates(self.store.agricultural, profile, engine)
        if match.is_default:
            return default_recommendations()

        ranked = rank_crops(match.candidates, profile.annual_rainfall, engine.max_recommendations)
        logger.debug(
            "Tier %d (%s) ranked: %s",
            match.tier, match.label,
            ", ".join(f"{s.crop}={s.total:.1f}" for s in ranked),
        )
        return [to_recommendation(s, profile.annual_rainfall) for s in ranked]

    def confidence_scores(self, profile: VillageProfile) -> ConfidenceScores:
        return ladder_confidence(self.store.agricultural, profile, self.config.confidence)

    def get_historical_success_rate(self, strategy: Strategy, profile: VillageProfile) -> int:
        """Success likelihood in [25, 90] from comparable historical outcomes.

        Comparable records grow one of the strategy's crops, share the
        village's soil and lie within ±300 mm of its rainfall. With none,
        the rate is 30.
        """
        names = [c.name for c in strategy.crops]
        soil = normalize_soil(profile.soil_type)
        tolerance = self.config.engine.success_rate_rainfall_mm
        matches = [
            r for r in self.store.agricultural
            if any(_names_overlap(r.crop, n) for n in names)
            and normalize_soil(r.soil_type) == soil
            and abs(r.annual_rainfall_mm - profile.annual_rainfall) <= tolerance
        ]
        if not matches:
            return _NO_MATCH_SUCCESS_RATE

        avg_rating = sum(r.success_rating for r in matches) / len(matches)
        avg_roi = sum(r.roi_percent for r in matches) / len(matches)
        rate = round_half_up(avg_rating / 5 * 60 + min(avg_roi * 0.4, 40))
        return min(max(rate, _SUCCESS_RATE_FLOOR), _SUCCESS_RATE_CEILING)


class StrictPredictor(CropPredictor):
    """Fail-fast predictor over crop trials and fertilizer rows."""

    policy = "strict"

    def predict_optimal_crops(self, profile: VillageProfile) -> list[CropRecommendation]:
        """Top crops among trials matching the fixed tolerances.

        Each trial is scored ``(100 - |rainfall - target|) + temperature
        score + pH score``; the best trial per crop label is kept.

        Raises:
            InsufficientDataError: If fewer than ``min_candidates`` trials match.
        """
        target = profile.annual_rainfall
        matched = strict_match(self.store.crop_trials, profile, self.config.engine)

        def trial_score(t: CropTrialRecord) -> float:
            temp_score = 100 if 20 <= t.temperature <= 30 else 70
            ph_score = 100 if 6.0 <= t.ph <= 7.5 else 80
            return (100 - abs(t.rainfall - target)) + temp_score + ph_score

        ranked = sorted(matched, key=trial_score, reverse=True)
        best: dict[str, CropTrialRecord] = {}
        for trial in ranked:
            best.setdefault(trial.label.strip().lower(), trial)
            if len(best) == self.config.engine.max_recommendations:
                break

        onset_window = onset_planting_window(self.regional_rainfall(profile))
        return [self._to_recommendation(t, target, onset_window) for t in best.values()]

    @staticmethod
    def _to_recommendation(trial: CropTrialRecord, target: float, onset_window: str) -> CropRecommendation:
        deficit = trial.rainfall - target
        if deficit > 100:
            irrigation = "Daily irrigation required"
        elif deficit > 50:
            irrigation = "Irrigation every 2-3 days"
        elif deficit > 0:
            irrigation = "Weekly irrigation"
        else:
            irrigation = MINIMAL_IRRIGATION

        deviation = abs(deficit) / trial.rainfall if trial.rainfall > 0 else 1.0
        if deviation < 0.2:
            risk = RiskLevel.LOW
        elif deviation < 0.4:
            risk = RiskLevel.MEDIUM
        else:
            risk = RiskLevel.HIGH

        return CropRecommendation(
            name=trial.label,
            planting_date=onset_window if "rice" in trial.label.lower() else "March-April",
            irrigation_schedule=irrigation,
            expected_yield_improvement="15-25%" if abs(deficit) <= 50 else "5-15%",
            risk_factor=risk.value,
        )

    def confidence_scores(self, profile: VillageProfile) -> ConfidenceScores:
        return strict_confidence(
            self.store.crop_trials,
            self.store.fertilizers,
            profile,
            self.config.engine,
            self.config.confidence,
        )

    def get_historical_success_rate(self, strategy: Strategy, profile: VillageProfile) -> int:
        """Success likelihood in [25, 90] from crop-trial coverage.

        crop share (up to 50) + soil bonus (15 if fertilizer rows cover the
        soil, else 5) + rainfall bonus (5–20 by how close the matching
        trials' mean rainfall is to the village's).
        """
        names = [c.name.strip().lower() for c in strategy.crops]
        labels = [t.label.lower() for t in self.store.crop_trials]

        covered = [n for n in names if any(n in label for label in labels)]
        crop_rate = len(covered) / len(names) * 50 if covered else 20

        soil_bonus = 5
        if any(_names_overlap(profile.soil_type, f.soil_type) for f in self.store.fertilizers):
            soil_bonus = 15

        matching = [
            t for t in self.store.crop_trials
            if any(n in t.label.lower() for n in names)
        ]
        rainfall_bonus = 5
        if matching:
            mean_rain = sum(t.rainfall for t in matching) / len(matching)
            diff = abs(mean_rain - profile.annual_rainfall)
            if diff <= 50:
                rainfall_bonus = 20
            elif diff <= 100:
                rainfall_bonus = 15
            elif diff <= 200:
                rainfall_bonus = 10

        rate = round_half_up(crop_rate + soil_bonus + rainfall_bonus)
        return min(max(rate, _SUCCESS_RATE_FLOOR), _SUCCESS_RATE_CEILING)


_PREDICTORS: dict[str, type[CropPredictor]] = {
    LadderPredictor.policy: LadderPredictor,
    StrictPredictor.policy: StrictPredictor,
}


def build_predictor(store: RecordStore, config: AppConfig) -> CropPredictor:
    """Return the predictor for ``config.engine.policy``."""
    return _PREDICTORS[config.engine.policy](store, config)
