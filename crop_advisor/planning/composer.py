"""
Plan composer: engine figures in, adaptation plan out.

Flow for ``PlanComposer.compose(profile)``:

  1. Ask the predictor for crops, the confidence validation, fertilizer
     suggestions (for the first current crop, or rice) and the regional
     rainfall summary.
  2. Build the prompt and call the generative plan service.
  3. On success, stamp the plan id/time/profile and set each strategy's
     ``confidence_score`` from the historical success rate.
  4. On ``PlanServiceError`` (or ``offline=True``, or no API key), return
     the templated fallback plan instead.

``InsufficientDataError`` from a strict predictor is NOT caught here: it is
a user-facing answer, not a service failure.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from crop_advisor.config import PlannerConfig
from crop_advisor.engine.errors import PlanServiceError
from crop_advisor.engine.predictor import CropPredictor
from crop_advisor.models.plan import (
    AdaptationPlan,
    Blueprint,
    MaterialItem,
    Strategy,
    Structure,
)
from crop_advisor.models.profile import CropRecommendation, VillageProfile
from crop_advisor.planning.gemini_client import GeminiPlanClient
from crop_advisor.planning.prompt import PlanInputs, build_prompt
from crop_advisor.taxonomy.agronomy_taxonomy import reliability_label
from crop_advisor.utils.time_utils import epoch_millis, utcnow

logger = logging.getLogger(__name__)

_DEFAULT_FERTILIZER_CROP = "rice"

# Confidence at or above which the fallback plan uses its larger template.
FALLBACK_GOOD_CONFIDENCE = 60


class PlanComposer:
    """Builds adaptation plans from predictor output.

    Args:
        predictor: Predictor bound to a loaded record store.
        config:    Planner settings.
        client:    Plan service client; defaults to ``GeminiPlanClient(config)``.
    """

    def __init__(
        self,
        predictor: CropPredictor,
        config: PlannerConfig,
        client: Optional[GeminiPlanClient] = None,
    ) -> None:
        self.predictor = predictor
        self.config = config
        self.client = client or GeminiPlanClient(config)

    def gather_inputs(self, profile: VillageProfile) -> PlanInputs:
        fertilizer_crop = profile.crops_current[0] if profile.crops_current else _DEFAULT_FERTILIZER_CROP
        return PlanInputs(
            profile=profile,
            crops=self.predictor.predict_optimal_crops(profile),
            validation=self.predictor.validate_prediction_confidence(profile),
            fertilizers=self.predictor.get_fertilizer_recommendations(
                fertilizer_crop, profile.soil_type
            ),
            rainfall=self.predictor.regional_rainfall(profile),
        )

    def compose(
        self,
        profile: VillageProfile,
        offline: bool = False,
        now: Optional[datetime] = None,
    ) -> AdaptationPlan:
        """Return a plan for ``profile``; never raises for service failures.

        Args:
            profile: Village to plan for.
            offline: Skip the service and return the templated plan.
            now:     Creation time (defaults to the current UTC time).

        Raises:
            InsufficientDataError: Under the strict policy when the data
                cannot support a recommendation.
        """
        now = now or utcnow()
        inputs = self.gather_inputs(profile)

        if offline:
            logger.info("Offline mode — using templated plan for %s", profile.village)
            return build_fallback_plan(inputs, now)
        if not self.client.has_credentials:
            logger.warning(
                "%s not set — using templated plan for %s",
                self.config.api_key_env, profile.village,
            )
            return build_fallback_plan(inputs, now)

        prompt = build_prompt(inputs, self.config.strategy_count)
        try:
            generated = self.client.generate_plan(prompt)
        except PlanServiceError as exc:
            logger.error("Plan service failed for %s: %s", profile.village, exc)
            return build_fallback_plan(inputs, now)

        strategies = [
            s.model_copy(update={
                "confidence_score": self.predictor.get_historical_success_rate(s, profile),
            })
            for s in generated.strategies
        ]
        logger.info(
            "Generated plan for %s with %d strategies", profile.village, len(strategies)
        )
        return AdaptationPlan(
            id=f"plan_{epoch_millis(now)}",
            generated_at=now,
            strategies=strategies,
            regional_context=generated.regional_context,
            village_data=profile,
        )


# ── Templated fallback ────────────────────────────────────────────────────────

def build_fallback_plan(inputs: PlanInputs, now: datetime) -> AdaptationPlan:
    """Deterministic single-strategy plan sized by the confidence tier.

    Confidence >= 60 selects the larger template (INR 85,000 total, 10,000 L
    storage); otherwise the basic one (INR 45,000, 5,000 L). The
    strategy's ``confidence_score`` is the confidence itself.
    """
    score = inputs.confidence
    good = score >= FALLBACK_GOOD_CONFIDENCE
    level = reliability_label(score)
    profile = inputs.profile

    crops = list(inputs.crops) or [
        CropRecommendation(
            name="Rice",
            planting_date="June-July",
            irrigation_schedule="Optimized weekly irrigation" if good else "Standard irrigation",
            expected_yield_improvement="10-20%" if good else "5-15%",
            risk_factor="Medium" if good else "High",
        )
    ]

    strategy = Strategy(
        id="fallback_strategy_1",
        label="Data-Based Crop Strategy",
        focus=f"{score}% confidence recommendations",
        summary=(
            "Crops and practices selected based on realistic data analysis "
            f"with {score}% confidence level"
        ),
        crops=crops,
        structures=[
            Structure(
                name="Optimized Rainwater Harvesting" if good else "Basic Water Storage",
                purpose="Water management based on data confidence",
                location_type="Field area",
                estimated_cost=45000 if good else 25000,
            )
        ],
        blueprints=[
            Blueprint(
                id="fallback_blueprint_1",
                title=f"{level} Confidence Water System",
                description=(
                    f"Water management system designed with {score}% confidence "
                    "from available data"
                ),
                visual_type="pond",
                technical_specs=[
                    f"{'10000L' if good else '5000L'} capacity based on data analysis",
                    "Reinforced construction" if good else "Standard construction",
                    "Smart monitoring system" if good else "Basic monitoring",
                ],
                estimated_timeline="4 weeks" if good else "2 weeks",
                material_list=[
                    MaterialItem(name="Cement", quantity="20 bags" if good else "10 bags"),
                    MaterialItem(
                        name="Sand",
                        quantity="4 cubic meters" if good else "2 cubic meters",
                    ),
                    MaterialItem(
                        name="Monitoring equipment",
                        quantity="1 set" if good else "Basic tools",
                    ),
                ],
            )
        ],
        total_investment=85000 if good else 45000,
        confidence_score=score,
    )

    return AdaptationPlan(
        id=f"fallback_{epoch_millis(now)}",
        generated_at=now,
        strategies=[strategy],
        regional_context=(
            f"Realistic data-driven analysis for {profile.village} ({score}% confidence - "
            f"{level} reliability). Based on available historical patterns and data "
            "quality assessment."
        ),
        village_data=profile,
        is_fallback=True,
    )
