"""
Tests for crop_advisor.engine.scorer.

What we test
------------
aggregate_by_crop() / CropScore:
  - Groups case-insensitively, first-seen order, averaged metrics.
  - rainfall_score caps the deviation at 100.
  - total follows rating*20 + roi*0.5 + rainfall_score*0.3.

rank_crops():
  - Sorted by total descending, capped at the limit, stable on ties.

Label helpers:
  - irrigation_schedule(), yield_improvement(), risk_factor() band edges.
  - to_recommendation() for the black-soil scenario.
  - default_recommendations() exact values.
"""

from __future__ import annotations

import math

import pytest

from crop_advisor.engine.scorer import (
    CropScore,
    aggregate_by_crop,
    default_recommendations,
    irrigation_schedule,
    rank_crops,
    relative_deviation,
    risk_factor,
    round_half_up,
    to_recommendation,
    yield_improvement,
)
from crop_advisor.taxonomy.agronomy_taxonomy import RiskLevel

from conftest import make_record


def _score(**overrides) -> CropScore:
    fields = dict(
        crop="Cotton", record_count=1, avg_yield=2500.0, avg_roi=40.0,
        avg_rating=4.0, mean_rainfall=900.0, mean_abs_deviation=0.0,
        majority_season="kharif",
    )
    fields.update(overrides)
    return CropScore(**fields)


# ── round_half_up ──────────────────────────────────────────────────────────────

class TestRoundHalfUp:
    def test_half_rounds_up(self):
        assert round_half_up(62.5) == 63
        assert round_half_up(0.5) == 1

    def test_below_half(self):
        assert round_half_up(62.49) == 62


# ── aggregate_by_crop ──────────────────────────────────────────────────────────

class TestAggregate:
    def test_groups_case_insensitively(self):
        records = [make_record(crop="Cotton"), make_record(crop="cotton "), make_record(crop="Rice")]
        scores = aggregate_by_crop(records, 900.0)
        assert [s.crop for s in scores] == ["Cotton", "Rice"]
        assert scores[0].record_count == 2

    def test_averages(self):
        records = [
            make_record(annual_rainfall_mm=850.0, success_rating=4.0, roi_percent=30.0,
                        yield_kg_per_hectare=2000.0),
            make_record(annual_rainfall_mm=1000.0, success_rating=5.0, roi_percent=50.0,
                        yield_kg_per_hectare=3000.0),
        ]
        s = aggregate_by_crop(records, 900.0)[0]
        assert s.avg_rating == pytest.approx(4.5)
        assert s.avg_roi == pytest.approx(40.0)
        assert s.avg_yield == pytest.approx(2500.0)
        assert s.mean_rainfall == pytest.approx(925.0)
        assert s.mean_abs_deviation == pytest.approx(75.0)

    def test_majority_season(self):
        records = [
            make_record(season="Rabi"),
            make_record(season="Kharif"),
            make_record(season="rabi"),
        ]
        assert aggregate_by_crop(records, 900.0)[0].majority_season == "rabi"

    def test_majority_season_tie_first_seen(self):
        records = [make_record(season="Zaid"), make_record(season="Kharif")]
        assert aggregate_by_crop(records, 900.0)[0].majority_season == "zaid"


class TestCropScoreTotal:
    def test_formula(self):
        s = _score(avg_rating=4.25, avg_roi=40.0, mean_abs_deviation=75.0)
        assert s.rainfall_score == pytest.approx(25.0)
        assert s.total == pytest.approx(4.25 * 20 + 40.0 * 0.5 + 25.0 * 0.3)

    def test_rainfall_score_floor(self):
        assert _score(mean_abs_deviation=450.0).rainfall_score == 0.0


# ── rank_crops ─────────────────────────────────────────────────────────────────

class TestRankCrops:
    def test_black_soil_order(self, black_soil_store, cotton_profile):
        tier1 = black_soil_store.agricultural[:3]
        ranked = rank_crops(tier1, cotton_profile.annual_rainfall)
        assert [s.crop for s in ranked] == ["Cotton", "Soybean"]
        assert ranked[0].total == pytest.approx(112.5)
        assert ranked[1].total == pytest.approx(100.0)

    def test_limit(self):
        records = [make_record(crop=c) for c in ("A", "B", "C", "D", "E")]
        assert len(rank_crops(records, 900.0, limit=3)) == 3

    def test_equal_totals_keep_source_order(self):
        records = [make_record(crop=c) for c in ("Jowar", "Bajra", "Ragi")]
        assert [s.crop for s in rank_crops(records, 900.0)] == ["Jowar", "Bajra", "Ragi"]


# ── Labels ─────────────────────────────────────────────────────────────────────

class TestIrrigationSchedule:
    @pytest.mark.parametrize("mean_rainfall,expected", [
        (1150.0, "Daily irrigation required"),
        (1100.0, "Irrigation every 2-3 days"),
        (1050.0, "Irrigation every 2-3 days"),
        (1000.0, "Weekly irrigation"),
        (901.0, "Weekly irrigation"),
        (900.0, "Minimal irrigation needed"),
        (600.0, "Minimal irrigation needed"),
    ])
    def test_bands(self, mean_rainfall, expected):
        assert irrigation_schedule(mean_rainfall, 900.0) == expected


class TestYieldImprovement:
    @pytest.mark.parametrize("avg_yield,expected", [
        (4500.0, "20-30%"),
        (4000.0, "15-25%"),
        (3500.0, "15-25%"),
        (2500.0, "10-20%"),
        (2000.0, "5-15%"),
        (500.0, "5-15%"),
    ])
    def test_bands(self, avg_yield, expected):
        assert yield_improvement(avg_yield) == expected


class TestRiskFactor:
    def test_low(self):
        assert risk_factor(0.1, 4.0) == RiskLevel.LOW

    def test_good_rating_but_deviation_medium(self):
        assert risk_factor(0.3, 4.5) == RiskLevel.MEDIUM

    def test_low_deviation_mediocre_rating(self):
        assert risk_factor(0.1, 3.5) == RiskLevel.MEDIUM

    def test_high(self):
        assert risk_factor(0.5, 5.0) == RiskLevel.HIGH
        assert risk_factor(0.1, 2.5) == RiskLevel.HIGH

    def test_relative_deviation_zero_target(self):
        assert relative_deviation(0.0, 0.0) == 0.0
        assert math.isinf(relative_deviation(10.0, 0.0))


class TestToRecommendation:
    def test_cotton_fields(self, black_soil_store, cotton_profile):
        best = rank_crops(black_soil_store.agricultural[:3], 900.0)[0]
        rec = to_recommendation(best, 900.0)
        assert rec.name == "Cotton"
        assert rec.planting_date == "June-July"
        assert rec.irrigation_schedule == "Weekly irrigation"
        assert rec.expected_yield_improvement == "10-20%"
        assert rec.risk_factor == "Low"

    def test_unknown_season_defaults(self):
        rec = to_recommendation(_score(majority_season="whole year"), 900.0)
        assert rec.planting_date == "March-April"


class TestDefaults:
    def test_exact_values(self):
        recs = default_recommendations()
        assert [r.name for r in recs] == ["Rice", "Wheat", "Maize"]
        assert recs[0].planting_date == "June-July"
        assert recs[1].planting_date == "November-December"
        assert recs[1].irrigation_schedule == "Irrigation every 2-3 days"
        assert recs[2].expected_yield_improvement == "5-15%"
        assert recs[2].risk_factor == "Low"

    def test_fresh_list_each_call(self):
        first = default_recommendations()
        first.pop()
        assert len(default_recommendations()) == 3
