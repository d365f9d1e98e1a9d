from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from .calculator import ItemEmissionResult
from .config import (
    DEFAULT_REDUCTION,
    EQUIVALENTS,
    MAX_EQUIVALENTS,
    REDUCTION_TIERS,
    UNKNOWN_CATEGORY_LABEL,
)

logger = logging.getLogger(__name__)

_EQUIVALENT_TEMPLATES = {
    "driving": "Equivalent to driving {n} miles in a gas-powered car",
    "phone_charges": "Same as charging a smartphone {n} times",
    "tree_days": "Would take a tree {n} days to absorb this CO2",
    "electricity_kwh": "Equal to {n} kWh of electricity from the grid",
}


@dataclass(frozen=True)
class BasketSummary:
    highest_impact_category: str
    reduction_potential_kg: float
    improvement_score: int


@dataclass(frozen=True)
class BasketResult:
    items: tuple[ItemEmissionResult, ...]
    total_kg: float
    equivalents: tuple[str, ...]
    summary: BasketSummary
    by_category: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": [item.to_dict() for item in self.items],
            "total_kg": round(self.total_kg, 2),
            "equivalents": list(self.equivalents),
            "summary": {
                "highest_impact_category": self.summary.highest_impact_category,
                "reduction_potential_kg": self.summary.reduction_potential_kg,
                "improvement_score": self.summary.improvement_score,
            },
            "by_category": dict(self.by_category),
        }


def reduction_coefficient(category_id: str) -> float:
    for categories, coefficient in REDUCTION_TIERS:
        if category_id in categories:
            return coefficient
    return DEFAULT_REDUCTION


def generate_equivalents(total_kg: float) -> list[str]:
    """
    Human-scale comparisons for a kg CO2e total, in fixed preference order.
    Comparisons that round to zero are skipped.
    """
    out: list[str] = []
    for key, kg_per_unit in EQUIVALENTS:
        n = round(total_kg / kg_per_unit)
        if n > 0:
            out.append(_EQUIVALENT_TEMPLATES[key].format(n=n))
        if len(out) >= MAX_EQUIVALENTS:
            break
    return out


def aggregate(items: Iterable[ItemEmissionResult]) -> BasketResult:
    items = tuple(items)

    total_kg = sum(item.total_kg for item in items)

    # dict keeps first-seen order, so max() resolves ties to the earliest category
    by_category: dict[str, float] = {}
    for item in items:
        by_category[item.category] = by_category.get(item.category, 0.0) + item.total_kg

    if by_category:
        highest = max(by_category, key=by_category.__getitem__)
    else:
        highest = UNKNOWN_CATEGORY_LABEL

    reduction = sum(item.total_kg * reduction_coefficient(item.category_id) for item in items)

    if items:
        improvement_score = round(sum(item.confidence for item in items) / len(items) * 100)
    else:
        improvement_score = 0

    result = BasketResult(
        items=items,
        total_kg=total_kg,
        equivalents=tuple(generate_equivalents(total_kg)),
        summary=BasketSummary(
            highest_impact_category=highest,
            reduction_potential_kg=round(reduction, 2),
            improvement_score=int(improvement_score),
        ),
        by_category={k: round(v, 3) for k, v in by_category.items()},
    )
    logger.info("Aggregated %d items: %.2f kg CO2e", len(items), total_kg)
    return result
