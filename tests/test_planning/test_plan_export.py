"""Tests for crop_advisor.planning.export."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

from crop_advisor.engine.rainfall_context import summarize_rainfall
from crop_advisor.models.profile import ConfidenceValidation, DataQuality
from crop_advisor.planning.composer import build_fallback_plan
from crop_advisor.planning.export import export_plan_json, plan_to_dict
from crop_advisor.planning.prompt import PlanInputs

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _plan(profile):
    inputs = PlanInputs(
        profile=profile,
        crops=[],
        validation=ConfidenceValidation(
            confidence=65,
            is_high_confidence=False,
            recommendations=[],
            data_quality=DataQuality(rainfall=50.0, soil=50.0, crops=50.0),
        ),
        fertilizers=[],
        rainfall=summarize_rainfall([]),
    )
    return build_fallback_plan(inputs, NOW)


def test_plan_to_dict_includes_budget(cotton_profile) -> None:
    data = plan_to_dict(_plan(cotton_profile))
    budget = data["strategies"][0]["budget"]
    assert budget["total_investment"] == 85000
    assert sum(line["total"] for line in budget["lines"]) == 85000
    assert data["village_data"]["village"] == "Seloo"
    assert data["generated_at"].startswith("2024-01-01T00:00:00")


def test_plan_to_dict_without_budget(cotton_profile) -> None:
    data = plan_to_dict(_plan(cotton_profile), include_budget=False)
    assert "budget" not in data["strategies"][0]


def test_export_plan_json_creates_parents(tmp_path: Path, cotton_profile) -> None:
    out = tmp_path / "nested" / "plan.json"
    result = export_plan_json(_plan(cotton_profile), out)

    assert result == out
    loaded = json.loads(out.read_text(encoding="utf-8"))
    assert loaded["id"] == "fallback_1704067200000"
    assert loaded["is_fallback"] is True
    assert loaded["strategies"][0]["confidence_score"] == 65
