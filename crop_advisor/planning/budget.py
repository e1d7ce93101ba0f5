"""
Budget breakdown of a strategy's total investment.

Shares of ``total_investment``::

    infrastructure  45%   split evenly over the strategy's structures
    materials       25%
    labour          20%
    equipment        7%
    seeds           remainder (~3%), split evenly over the strategy's crops

Each share is rounded to whole rupees; seeds take whatever is left so the
line items always sum to the total.
"""

from __future__ import annotations

from dataclasses import dataclass

from crop_advisor.engine.scorer import round_half_up
from crop_advisor.models.plan import Strategy

_SHARES: dict[str, float] = {
    "infrastructure": 0.45,
    "materials":      0.25,
    "labour":         0.20,
    "equipment":      0.07,
}


@dataclass
class BudgetLine:
    """One line of a budget breakdown."""

    category: str
    item: str
    quantity: str
    unit_price: int
    total: int


@dataclass
class BudgetBreakdown:
    total_investment: int
    category_totals: dict[str, int]
    lines: list[BudgetLine]


def budget_breakdown(strategy: Strategy) -> BudgetBreakdown:
    target = round_half_up(strategy.total_investment)
    totals = {category: round_half_up(target * share) for category, share in _SHARES.items()}
    totals["seeds"] = target - sum(totals.values())

    lines: list[BudgetLine] = []

    crop_count = max(len(strategy.crops), 1)
    per_crop = round_half_up(totals["seeds"] / crop_count)
    for i, crop in enumerate(strategy.crops):
        kg = 20 + i * 10
        lines.append(BudgetLine(
            category="seeds",
            item=f"{crop.name} seeds (certified)",
            quantity=f"{kg} kg",
            unit_price=round_half_up(per_crop / kg),
            total=per_crop,
        ))

    structure_count = max(len(strategy.structures), 1)
    per_structure = round_half_up(totals["infrastructure"] / structure_count)
    for structure in strategy.structures:
        lines.append(BudgetLine(
            category="infrastructure",
            item=structure.name,
            quantity="1 unit",
            unit_price=per_structure,
            total=per_structure,
        ))

    for category in ("materials", "labour", "equipment"):
        lines.append(BudgetLine(
            category=category,
            item=category.capitalize(),
            quantity="lump sum",
            unit_price=totals[category],
            total=totals[category],
        ))

    return BudgetBreakdown(total_investment=target, category_totals=totals, lines=lines)
