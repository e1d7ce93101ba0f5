"""
Adaptation plan models exchanged with the generative plan service.

A plan bundles several ``Strategy`` objects, each combining recommended
crops, water structures and construction blueprints with a total
investment in INR. The same models validate the JSON returned by the model
and the templated fallback plan, so consumers never see a difference in
shape between the two.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from crop_advisor.models.profile import CropRecommendation, VillageProfile

VisualType = Literal["pond", "dam", "drainage", "layout"]


class MaterialItem(BaseModel):
    name: str
    quantity: str


class Blueprint(BaseModel):
    """Construction blueprint for one structure."""

    id: str
    title: str
    description: str
    technical_specs: list[str]
    estimated_timeline: str
    material_list: list[MaterialItem]
    visual_type: Optional[VisualType] = None


class Structure(BaseModel):
    name: str
    purpose: str
    location_type: str
    estimated_cost: float = Field(ge=0.0)


class Strategy(BaseModel):
    """A named bundle of crops, structures and cost blueprint.

    ``confidence_score`` is filled in by the composer from the historical
    success rate; the model service never sets it.
    """

    id: str
    label: str
    focus: str
    summary: str
    crops: list[CropRecommendation]
    structures: list[Structure]
    blueprints: list[Blueprint]
    total_investment: float = Field(ge=0.0)
    confidence_score: Optional[int] = None


class AdaptationPlan(BaseModel):
    """Complete plan returned to callers of ``PlanComposer.compose``.

    Attributes:
        id: ``plan_<millis>`` for model plans, ``fallback_<millis>`` otherwise.
        generated_at: UTC creation time.
        strategies: Strategy options, most conservative first.
        regional_context: Narrative summary of the village situation.
        village_data: Profile the plan was generated for.
        is_fallback: True when the templated plan replaced the model output.
    """

    model_config = ConfigDict(frozen=False)

    id: str
    generated_at: datetime
    strategies: list[Strategy]
    regional_context: str
    village_data: VillageProfile
    is_fallback: bool = False

    @field_validator("strategies")
    @classmethod
    def validate_strategies_present(cls, v: list[Strategy]) -> list[Strategy]:
        if not v:
            raise ValueError("A plan must contain at least one strategy.")
        return v


class GeneratedPlan(BaseModel):
    """The subset of ``AdaptationPlan`` the model service is asked to produce."""

    regional_context: str
    strategies: list[Strategy]
