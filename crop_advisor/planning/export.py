"""
Plan export helpers.

All functions write to disk and return the written ``Path``.
"""

from __future__ import annotations

import json
from pathlib import Path

from crop_advisor.models.plan import AdaptationPlan
from crop_advisor.planning.budget import budget_breakdown


def plan_to_dict(plan: AdaptationPlan, include_budget: bool = True) -> dict:
    """JSON-ready dict of ``plan``, optionally with a budget per strategy."""
    data = plan.model_dump(mode="json")
    if include_budget:
        for strategy, out in zip(plan.strategies, data["strategies"]):
            breakdown = budget_breakdown(strategy)
            out["budget"] = {
                "total_investment": breakdown.total_investment,
                "category_totals": breakdown.category_totals,
                "lines": [vars(line) for line in breakdown.lines],
            }
    return data


def export_plan_json(
    plan: AdaptationPlan,
    path: Path,
    include_budget: bool = True,
) -> Path:
    """Write ``plan`` as pretty-printed JSON (parent dirs created if missing)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(plan_to_dict(plan, include_budget), indent=2, default=str),
        encoding="utf-8",
    )
    return path
