"""
Regional rainfall context from nearby rainfall stations.

Used in two places: the strict predictor picks a paddy sowing window from
the wettest pre-monsoon month, and the plan prompt quotes the regional
mean annual rainfall.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence

from crop_advisor.models.records import MONTHS, RainfallRecord
from crop_advisor.taxonomy.agronomy_taxonomy import DEFAULT_PLANTING_WINDOW, ONSET_PLANTING

ONSET_MONTHS: tuple[str, ...] = MONTHS[:6]


@dataclass
class RainfallSummary:
    """Averages over the station-years near a village.

    Attributes:
        station_years:      Number of rainfall rows averaged.
        mean_annual_mm:     Mean annual rainfall, or None with no rows.
        monthly_means:      ``{month: mean_mm}`` in calendar order.
        wettest_onset_month: Wettest of January–June, or None with no rows.
    """

    station_years: int
    mean_annual_mm: Optional[float]
    monthly_means: dict[str, float] = field(default_factory=dict)
    wettest_onset_month: Optional[str] = None


def summarize_rainfall(records: Sequence[RainfallRecord]) -> RainfallSummary:
    if not records:
        return RainfallSummary(station_years=0, mean_annual_mm=None)

    n = len(records)
    monthly = {m: sum(getattr(r, m) for r in records) / n for m in MONTHS}
    # max() keeps the earliest month on ties.
    wettest = max(ONSET_MONTHS, key=lambda m: monthly[m])
    return RainfallSummary(
        station_years=n,
        mean_annual_mm=sum(r.annual for r in records) / n,
        monthly_means=monthly,
        wettest_onset_month=wettest,
    )


def onset_planting_window(summary: RainfallSummary) -> str:
    if summary.wettest_onset_month is None:
        return DEFAULT_PLANTING_WINDOW
    return ONSET_PLANTING.get(summary.wettest_onset_month, DEFAULT_PLANTING_WINDOW)
