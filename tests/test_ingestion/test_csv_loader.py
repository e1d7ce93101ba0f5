"""
Tests for crop_advisor.ingestion.csv_loader — positional dataset parsing.

Covers:
  - parse_records_text(): happy path per record type, malformed rows are
    dropped (field count, non-numeric, NaN, empty label, rating range),
    rows the csv module rejects, blank lines, empty and header-only text
  - parse_records(): missing file raises, BOM-prefixed file parses, a
    non-UTF-8 file raises
"""

from __future__ import annotations

from pathlib import Path

import pytest

from crop_advisor.engine.errors import RowParseError
from crop_advisor.ingestion.csv_loader import parse_records, parse_records_text
from crop_advisor.models.records import (
    AgriculturalRecord,
    CropTrialRecord,
    FertilizerRecord,
    RainfallRecord,
)


# ── Helpers ────────────────────────────────────────────────────────────────────

TRIAL_HEADER = "N,P,K,temperature,humidity,ph,rainfall,label\n"

AGRI_HEADER = ",".join(AgriculturalRecord.COLUMNS) + "\n"
AGRI_ROW = (
    "Maharashtra,Wardha,Seloo,20.8,78.6,2020,Kharif,Cotton,2.5,Black,7.2,32,"
    "900,27.5,Medium,No,Yes,Drip,42000,2500,6200,40,4,Good season"
)

RAIN_HEADER = (
    "NAME,SUBDIVISION,YEAR,JAN,FEB,MAR,APR,MAY,JUN,JUL,AUG,SEP,OCT,NOV,DEC,"
    "ANNUAL,Jan-Feb,Mar-May,Jun-Sep,Oct-Dec,LATITUDE,LONGITUDE\n"
)
RAIN_ROW = (
    "Wardha,Vidarbha,2010,5,3,8,6,12,150,300,280,170,40,10,6,"
    "990,8,26,900,56,20.8,78.6"
)


def _write_csv(tmp_path: Path, content: str, name: str = "data.csv") -> Path:
    p = tmp_path / name
    p.write_text(content, encoding="utf-8")
    return p


# ── Happy path ─────────────────────────────────────────────────────────────────

class TestParseValid:
    def test_crop_trials_parsed(self):
        text = TRIAL_HEADER + "90,42,43,20.8,82.0,6.5,202.9,rice\n85,58,41,21.7,80.3,7.0,226.6,rice\n"
        result = parse_records_text(text, CropTrialRecord)
        assert len(result.records) == 2
        assert result.dropped == 0
        assert result.records[0].rainfall == pytest.approx(202.9)
        assert result.records[1].label == "rice"

    def test_agricultural_record_fields_by_position(self):
        result = parse_records_text(AGRI_HEADER + AGRI_ROW + "\n", AgriculturalRecord)
        rec = result.records[0]
        assert rec.crop == "Cotton"
        assert rec.soil_type == "Black"
        assert rec.annual_rainfall_mm == pytest.approx(900.0)
        assert rec.success_rating == pytest.approx(4.0)
        assert rec.drought_occurrence is False
        assert rec.flood_occurrence is True
        assert rec.year == 2020

    def test_fertilizer_record(self):
        text = (
            "Temparature,Humidity,Moisture,Soil Type,Crop Type,Nitrogen,Potassium,Phosphorous,Fertilizer Name\n"
            "26,52,38,Sandy,Maize,37,0,0,Urea\n"
        )
        rec = parse_records_text(text, FertilizerRecord).records[0]
        assert rec.crop_type == "Maize"
        assert rec.fertilizer_name == "Urea"

    def test_rainfall_skips_seasonal_columns(self):
        rec = parse_records_text(RAIN_HEADER + RAIN_ROW + "\n", RainfallRecord).records[0]
        assert rec.jun == pytest.approx(150.0)
        assert rec.annual == pytest.approx(990.0)
        assert rec.latitude == pytest.approx(20.8)
        assert rec.longitude == pytest.approx(78.6)

    def test_whitespace_trimmed(self):
        text = TRIAL_HEADER + "90,42,43,20.8,82.0,6.5,202.9, maize \n"
        assert parse_records_text(text, CropTrialRecord).records[0].label == "maize"

    def test_blank_lines_ignored(self):
        text = TRIAL_HEADER + "90,42,43,20.8,82.0,6.5,202.9,rice\n\n,,,,,,,\n"
        result = parse_records_text(text, CropTrialRecord)
        assert len(result.records) == 1
        assert result.dropped == 0


# ── Malformed rows ─────────────────────────────────────────────────────────────

class TestParseMalformed:
    def test_wrong_field_count_dropped(self):
        text = TRIAL_HEADER + "90,42,43,20.8,82.0,6.5,rice\n85,58,41,21.7,80.3,7.0,226.6,rice\n"
        result = parse_records_text(text, CropTrialRecord)
        assert len(result.records) == 1
        assert result.dropped == 1
        assert isinstance(result.errors[0], RowParseError)
        assert result.errors[0].line_no == 2

    def test_non_numeric_dropped(self):
        text = TRIAL_HEADER + "abc,42,43,20.8,82.0,6.5,202.9,rice\n"
        result = parse_records_text(text, CropTrialRecord)
        assert result.records == []
        assert result.dropped == 1

    def test_nan_and_infinity_dropped(self):
        text = (
            TRIAL_HEADER
            + "90,42,43,20.8,82.0,nan,202.9,rice\n"
            + "90,42,43,20.8,82.0,6.5,inf,rice\n"
        )
        result = parse_records_text(text, CropTrialRecord)
        assert result.records == []
        assert result.dropped == 2

    def test_empty_label_dropped(self):
        text = TRIAL_HEADER + "90,42,43,20.8,82.0,6.5,202.9,  \n"
        assert parse_records_text(text, CropTrialRecord).dropped == 1

    def test_rating_out_of_range_dropped(self):
        row = AGRI_ROW.replace(",40,4,Good season", ",40,7,Good season")
        result = parse_records_text(AGRI_HEADER + row + "\n", AgriculturalRecord)
        assert result.records == []
        assert result.dropped == 1

    def test_error_message_names_field(self):
        text = TRIAL_HEADER + "90,42,43,hot,82.0,6.5,202.9,rice\n"
        err = parse_records_text(text, CropTrialRecord).errors[0]
        assert "temperature" in str(err)

    def test_load_continues_after_bad_rows(self):
        good = "90,42,43,20.8,82.0,6.5,202.9,rice\n"
        text = TRIAL_HEADER + good + "bad\n" + good + "x,y,z,1,2,3,4,rice\n" + good
        result = parse_records_text(text, CropTrialRecord)
        assert len(result.records) == 3
        assert result.dropped == 2

    def test_oversized_field_dropped(self):
        good = "90,42,43,20.8,82.0,6.5,202.9,rice\n"
        huge = "90,42,43,20.8,82.0,6.5,202.9," + "x" * 200_000 + "\n"
        result = parse_records_text(TRIAL_HEADER + good + huge + good, CropTrialRecord)
        assert len(result.records) == 2
        assert result.dropped == 1
        assert result.errors[0].line_no == 3
        assert "malformed CSV" in str(result.errors[0])

    def test_oversized_header_yields_nothing(self):
        text = "x" * 200_000 + "\n90,42,43,20.8,82.0,6.5,202.9,rice\n"
        result = parse_records_text(text, CropTrialRecord)
        assert result.records == []
        assert result.dropped == 0


# ── Empty inputs ───────────────────────────────────────────────────────────────

class TestParseEmpty:
    def test_empty_text(self):
        result = parse_records_text("", CropTrialRecord)
        assert result.records == []
        assert result.dropped == 0

    def test_header_only(self):
        result = parse_records_text(TRIAL_HEADER, CropTrialRecord)
        assert result.records == []
        assert result.dropped == 0


# ── parse_records (file) ───────────────────────────────────────────────────────

class TestParseRecordsFile:
    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            parse_records(tmp_path / "missing.csv", CropTrialRecord)

    def test_reads_file(self, tmp_path):
        path = _write_csv(tmp_path, TRIAL_HEADER + "90,42,43,20.8,82.0,6.5,202.9,rice\n")
        assert len(parse_records(path, CropTrialRecord).records) == 1

    def test_utf8_bom_header(self, tmp_path):
        path = tmp_path / "bom.csv"
        path.write_bytes(
            ("\ufeff" + TRIAL_HEADER + "90,42,43,20.8,82.0,6.5,202.9,rice\n").encode("utf-8")
        )
        assert len(parse_records(path, CropTrialRecord).records) == 1

    def test_non_utf8_file_raises(self, tmp_path):
        path = tmp_path / "latin1.csv"
        path.write_bytes((TRIAL_HEADER + "90,42,43,20.8,82.0,6.5,202.9,caf\xe9\n").encode("latin-1"))
        with pytest.raises(UnicodeDecodeError):
            parse_records(path, CropTrialRecord)
