"""Tests for crop_advisor.models.profile and crop_advisor.models.plan."""

from __future__ import annotations

import math
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from crop_advisor.models.plan import AdaptationPlan, Blueprint, GeneratedPlan, Structure
from crop_advisor.models.profile import DataQuality, VillageProfile


class TestVillageProfile:
    def test_defaults(self):
        profile = VillageProfile(village="Test", soil_type="red", annual_rainfall=700)
        assert profile.latitude == 0.0
        assert profile.crops_current == ()
        assert profile.flood_history == ""

    def test_negative_rainfall_rejected(self):
        with pytest.raises(ValidationError, match="non-negative"):
            VillageProfile(village="Test", soil_type="red", annual_rainfall=-1)

    def test_nan_rejected(self):
        with pytest.raises(ValidationError):
            VillageProfile(village="Test", soil_type="red", annual_rainfall=math.nan)

    def test_blank_crops_dropped(self):
        profile = VillageProfile(
            village="Test", soil_type="red", annual_rainfall=700,
            crops_current=["cotton", "  ", " jowar "],
        )
        assert profile.crops_current == ("cotton", "jowar")

    def test_hashable(self):
        profile = VillageProfile(village="Test", soil_type="red", annual_rainfall=700)
        assert hash(profile) == hash(profile.model_copy())


class TestDataQuality:
    def test_percentage_bounds(self):
        with pytest.raises(ValidationError):
            DataQuality(rainfall=101.0, soil=0.0, crops=0.0)


class TestPlanModels:
    def test_blueprint_visual_type(self):
        with pytest.raises(ValidationError):
            Blueprint(
                id="b", title="t", description="d", technical_specs=[],
                estimated_timeline="1 week", material_list=[], visual_type="tower",
            )

    def test_structure_cost_non_negative(self):
        with pytest.raises(ValidationError):
            Structure(name="Pond", purpose="p", location_type="l", estimated_cost=-5)

    def test_plan_requires_strategy(self, cotton_profile):
        with pytest.raises(ValidationError, match="at least one strategy"):
            AdaptationPlan(
                id="plan_1",
                generated_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
                strategies=[],
                regional_context="",
                village_data=cotton_profile,
            )

    def test_generated_plan_from_json(self):
        plan = GeneratedPlan.model_validate_json('{"regional_context": "x", "strategies": []}')
        assert plan.strategies == []
