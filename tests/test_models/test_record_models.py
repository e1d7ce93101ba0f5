"""Tests for crop_advisor.models.records."""

from __future__ import annotations

import math

import pytest
from pydantic import ValidationError

from crop_advisor.models.records import MONTHS, AgriculturalRecord, RainfallRecord

from conftest import make_rainfall, make_record, make_trial


class TestAgriculturalRecord:
    def test_valid(self):
        record = make_record()
        assert record.crop == "Cotton"
        assert record.drought_occurrence is False

    def test_columns_match_fields(self):
        assert set(AgriculturalRecord.COLUMNS) == set(AgriculturalRecord.model_fields)
        assert len(AgriculturalRecord.COLUMNS) == 24

    def test_whitespace_stripped(self):
        assert make_record(crop="  Rice ").crop == "Rice"

    @pytest.mark.parametrize("rating", [0.5, 5.5])
    def test_rating_range(self, rating):
        with pytest.raises(ValidationError, match="success_rating"):
            make_record(success_rating=rating)

    def test_empty_crop_rejected(self):
        with pytest.raises(ValidationError):
            make_record(crop="   ")

    def test_nan_rejected(self):
        with pytest.raises(ValidationError):
            make_record(annual_rainfall_mm=math.nan)

    def test_frozen(self):
        with pytest.raises(ValidationError):
            make_record().crop = "Rice"


class TestCropTrialRecord:
    def test_empty_label_rejected(self):
        with pytest.raises(ValidationError):
            make_trial(label="")

    def test_inf_rejected(self):
        with pytest.raises(ValidationError):
            make_trial(rainfall=math.inf)


class TestRainfallRecord:
    def test_column_index_covers_fields(self):
        assert set(RainfallRecord.COLUMN_INDEX) == set(RainfallRecord.model_fields)
        assert RainfallRecord.COLUMN_INDEX["jan"] == 3
        assert RainfallRecord.COLUMN_INDEX["dec"] == 14
        assert max(RainfallRecord.COLUMN_INDEX.values()) < RainfallRecord.COLUMN_COUNT

    def test_monthly_order(self):
        monthly = make_rainfall(mar=55.0).monthly()
        assert tuple(monthly) == MONTHS
        assert monthly["mar"] == 55.0
