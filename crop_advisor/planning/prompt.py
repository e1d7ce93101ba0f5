"""
Prompt construction for the generative plan service.

The prompt carries every figure the engine computed so the model's prose
stays anchored to the data: recommended crops with their labels, the
confidence score and level, fertilizer suggestions, the advice lines from
``validate_prediction_confidence`` and the regional rainfall summary.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from crop_advisor.engine.rainfall_context import RainfallSummary
from crop_advisor.models.profile import (
    ConfidenceValidation,
    CropRecommendation,
    VillageProfile,
)
from crop_advisor.taxonomy.agronomy_taxonomy import prompt_confidence_level

STRATEGY_BRIEFS: list[tuple[str, str]] = [
    ("Conservation First", "Low-risk, proven traditional methods with data-backed crops"),
    ("Climate Transition", "Moderate-risk transition to climate-adapted varieties"),
    ("Infrastructure Heavy", "Higher-risk but potentially high-reward infrastructure solutions"),
]


@dataclass
class PlanInputs:
    """Engine output handed to the plan composer for one profile."""

    profile: VillageProfile
    crops: list[CropRecommendation]
    validation: ConfidenceValidation
    fertilizers: list[str]
    rainfall: RainfallSummary

    @property
    def confidence(self) -> int:
        return self.validation.confidence


def _rainfall_lines(summary: RainfallSummary) -> list[str]:
    if summary.mean_annual_mm is None:
        return ["- No rainfall stations within range of this location"]
    lines = [
        f"- Nearby station-years: {summary.station_years}",
        f"- Regional mean annual rainfall: {summary.mean_annual_mm:.0f}mm",
    ]
    if summary.wettest_onset_month:
        lines.append(f"- Wettest pre-monsoon month: {summary.wettest_onset_month.capitalize()}")
    return lines


def _crop_lines(crops: Sequence[CropRecommendation]) -> list[str]:
    return [
        f"- {c.name}: Plant {c.planting_date}, {c.irrigation_schedule}, "
        f"Expected improvement: {c.expected_yield_improvement}, Risk: {c.risk_factor}"
        for c in crops
    ]


def build_prompt(inputs: PlanInputs, strategy_count: int = 3) -> str:
    """Render the plan request for ``inputs``."""
    p = inputs.profile
    score = inputs.confidence
    level = prompt_confidence_level(score)
    crop_names = ", ".join(c.name for c in inputs.crops)
    fertilizers = ", ".join(inputs.fertilizers) or "none found in data"
    briefs = STRATEGY_BRIEFS[:strategy_count]

    lines = [
        "You are the 'Generative Resilience Agent (GRA)', providing realistic "
        "climate adaptation analysis.",
        f"Your mission is to turn climate uncertainty into local, actionable plans for: {p.village}.",
        "",
        "Regional Context:",
        f"- Geo: {p.latitude}, {p.longitude}",
        f"- Soil Profile: {p.soil_type}",
        f"- Rainfall Dynamics: {p.annual_rainfall:g}mm",
        f"- Current Farming: {', '.join(p.crops_current) or 'none reported'}",
        f"- Hydro-Context: {p.groundwater_depth:g}m groundwater, History: {p.flood_history or 'none reported'}",
        "",
        "Historical Rainfall Stations:",
        *_rainfall_lines(inputs.rainfall),
        "",
        f"REALISTIC DATA ANALYSIS ({score}% confidence - {level} CONFIDENCE):",
        "",
        "Data-Driven Crop Recommendations:",
        *_crop_lines(inputs.crops),
        "",
        f"Recommended Fertilizers: {fertilizers}",
        "",
        f"AI Assessment: {'; '.join(inputs.validation.recommendations)}",
        "",
        f"Generate {len(briefs)} Hyper-Local Strategies with REALISTIC confidence levels:",
        *(f"{i}. '{label}' (Focus: {focus})" for i, (label, focus) in enumerate(briefs, start=1)),
        "",
        "Technical Requirements:",
        f"- Base recommendations on the {score}% confidence analysis",
        f"- Use data-recommended crops: {crop_names}",
        f"- Include realistic fertilizer recommendations: {fertilizers}",
        "- Structures MUST include realistic cost estimates in INR",
        "- Blueprints MUST include a visual_type property set to one of: "
        "'pond', 'dam', 'drainage', or 'layout'",
        f"- Mention the actual confidence score ({score}%) and level ({level}) "
        "in your regional_context",
        "",
        f"IMPORTANT: All recommendations must reflect the realistic {score}% confidence level.",
    ]
    return "\n".join(lines)
