"""
Candidate matching: selects historical records similar to a village profile.

Two policies exist.

Tolerance ladder (``match_candidates``) — each tier is tried only if the
previous one produced fewer than ``min_candidates`` records:

    tier  rainfall   soil constraint       min rating
    ----  --------   ---------------       ----------
    1     ±200 mm    exact                 3
    2     ±400 mm    exact                 3
    3     ±400 mm    similar-soil group    3
    4     ±600 mm    none                  4
    5     ignored    none                  4   (top 10 by rating, only if 1–4 found nothing)
    6     —          —                     —   (hard-coded defaults)

If no ladder tier reaches the threshold but some found records, the tier
with the most records is used (earliest tier on ties). Tiers 1–4 come from
``EngineConfig.ladder`` so the rungs can be retuned without code changes.

Strict (``strict_match``) — one fixed filter over crop trials
(rainfall ±50 mm, temperature 15–40 °C, pH 5.0–8.5); fewer than
``min_candidates`` matches raises ``InsufficientDataError``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

from crop_advisor.config import EngineConfig, ToleranceTier
from crop_advisor.engine.errors import InsufficientDataError
from crop_advisor.models.profile import VillageProfile
from crop_advisor.models.records import AgriculturalRecord, CropTrialRecord
from crop_advisor.taxonomy.agronomy_taxonomy import normalize_soil, similar_soils

logger = logging.getLogger(__name__)

_LADDER_LABELS = ("strict", "relaxed_rainfall", "similar_soil", "very_relaxed")


@dataclass(frozen=True)
class MatchResult:
    """Candidates selected for a profile and the tier that produced them.

    Attributes:
        tier: 1-based tier number. ``len(ladder) + 1`` is the top-performer
            tier and ``len(ladder) + 2`` the hard-coded default.
        label: Short tier name for logs and reports.
        candidates: Matched records; empty only for the default tier.
        is_default: True when the caller must use the built-in crop list.
    """

    tier: int
    label: str
    candidates: tuple[AgriculturalRecord, ...]
    is_default: bool = False


def soil_matches(record_soil: str, target_soil: str, mode: str) -> bool:
    """Apply a ladder soil constraint.

    ``mode`` is ``"exact"`` (case-insensitive, ignoring a trailing "soil"),
    ``"similar"`` (record soil in the target's similarity group) or
    ``"any"``.
    """
    if mode == "any":
        return True
    if mode == "exact":
        return normalize_soil(record_soil) == normalize_soil(target_soil)
    if mode == "similar":
        return normalize_soil(record_soil) in similar_soils(target_soil)
    raise ValueError(f"Unknown soil match mode '{mode}'.")


def filter_tier(
    records: Iterable[AgriculturalRecord],
    profile: VillageProfile,
    tier: ToleranceTier,
) -> list[AgriculturalRecord]:
    """Return the records satisfying one ladder tier, in source order."""
    target = profile.annual_rainfall
    return [
        r for r in records
        if abs(r.annual_rainfall_mm - target) <= tier.rainfall_mm
        and r.success_rating >= tier.min_rating
        and soil_matches(r.soil_type, profile.soil_type, tier.soil)
    ]


def top_performers(
    records: Iterable[AgriculturalRecord],
    min_rating: float,
    limit: int,
) -> list[AgriculturalRecord]:
    """Highest-rated records regardless of rainfall and soil.

    Sorting is stable, so equally rated records keep source order.
    """
    rated = [r for r in records if r.success_rating >= min_rating]
    rated.sort(key=lambda r: r.success_rating, reverse=True)
    return rated[:limit]


def match_candidates(
    records: Sequence[AgriculturalRecord],
    profile: VillageProfile,
    config: EngineConfig,
) -> MatchResult:
    """Walk the tolerance ladder until enough candidates are found.

    Never raises for thin data: an empty ``records`` sequence returns the
    default tier.
    """
    ladder = config.ladder
    top_tier = len(ladder) + 1
    default_tier = len(ladder) + 2

    if not records:
        logger.info("No agricultural records loaded — using default crops")
        return MatchResult(default_tier, "default", (), is_default=True)

    best: MatchResult | None = None
    for number, tier in enumerate(ladder, start=1):
        label = _LADDER_LABELS[number - 1] if number <= len(_LADDER_LABELS) else f"tier_{number}"
        found = filter_tier(records, profile, tier)
        logger.debug(
            "Tier %d (%s) ±%.0fmm soil=%s rating>=%.1f → %d candidates",
            number, label, tier.rainfall_mm, tier.soil, tier.min_rating, len(found),
        )
        result = MatchResult(number, label, tuple(found))
        if len(found) >= config.min_candidates:
            logger.info("Matched %d records at tier %d (%s)", len(found), number, label)
            return result
        if found and (best is None or len(found) > len(best.candidates)):
            best = result

    if best is not None:
        logger.info(
            "No tier reached %d candidates; using tier %d (%s) with %d",
            config.min_candidates, best.tier, best.label, len(best.candidates),
        )
        return best

    performers = top_performers(
        records, config.top_performer_min_rating, config.top_performer_limit
    )
    if performers:
        logger.info("Falling back to %d top-performing records", len(performers))
        return MatchResult(top_tier, "top_performers", tuple(performers))

    logger.info("No record rated >= %.1f — using default crops", config.top_performer_min_rating)
    return MatchResult(default_tier, "default", (), is_default=True)


def strict_match(
    trials: Sequence[CropTrialRecord],
    profile: VillageProfile,
    config: EngineConfig,
) -> list[CropTrialRecord]:
    """Fixed-tolerance match over crop trials.

    Raises:
        InsufficientDataError: If fewer than ``config.min_candidates`` trials match.
    """
    t_lo, t_hi = config.strict_temperature_range
    ph_lo, ph_hi = config.strict_ph_range
    target = profile.annual_rainfall

    matched = [
        t for t in trials
        if abs(t.rainfall - target) <= config.strict_rainfall_mm
        and t_lo <= t.temperature <= t_hi
        and ph_lo <= t.ph <= ph_hi
    ]
    if len(matched) < config.min_candidates:
        raise InsufficientDataError(
            f"Insufficient crop matches found ({len(matched)} suitable crops). "
            f"Need minimum {config.min_candidates} matches for reliable recommendations.",
            found=len(matched),
            required=config.min_candidates,
        )
    return matched
