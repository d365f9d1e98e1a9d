from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any

from .classifier import classify
from .config import (
    BASE_CONFIDENCE,
    DEFAULT_CATEGORY,
    DETAILED_NAME_BONUS,
    IMPORTED_TRANSPORT_FACTOR,
    KNOWN_CATEGORY_BONUS,
    LOCAL_TRANSPORT_FACTOR,
    MAX_ITEM_CONFIDENCE,
    MAX_SUGGESTIONS,
    MODIFIER_BONUS,
)
from .factors import EmissionFactor, FactorTable, load_default_factors
from .modifiers import Modifiers, extract_modifiers
from .quantity import clean_product_name, parse_quantity

logger = logging.getLogger(__name__)

PLANT_SWAP_CATEGORIES = frozenset({"beef", "lamb"})
DAIRY_SWAP_CATEGORIES = frozenset({"milk", "cheese"})
ORGANIC_ELIGIBLE_CATEGORIES = frozenset(
    {
        "beef", "lamb", "pork", "chicken", "cheese", "milk", "eggs",
        "potatoes", "tomatoes", "bananas", "apples", "berries", "leafy_greens",
    }
)

SUGGEST_PLANT_BASED = "Consider plant-based alternatives to reduce emissions by up to 90%"
SUGGEST_PLANT_DAIRY = "Try plant-based dairy alternatives like oat or almond milk"
SUGGEST_LOCAL = "Choose local or regional alternatives when available"
SUGGEST_SEASONAL = "Buy seasonal produce to reduce transport emissions"
SUGGEST_PACKAGING = "Look for bulk options or minimal packaging alternatives"
SUGGEST_EFFICIENCY = "Choose energy-efficient models and extend product lifespan"
SUGGEST_ORGANIC = "Consider organic options for potentially lower environmental impact"


@dataclass(frozen=True)
class EmissionBreakdown:
    production: float = 0.0
    packaging: float = 0.0
    transport: float = 0.0
    use: float = 0.0
    disposal: float = 0.0

    @property
    def total(self) -> float:
        return self.production + self.packaging + self.transport + self.use + self.disposal

    def rounded(self, ndigits: int = 2) -> EmissionBreakdown:
        return EmissionBreakdown(
            production=round(self.production, ndigits),
            packaging=round(self.packaging, ndigits),
            transport=round(self.transport, ndigits),
            use=round(self.use, ndigits),
            disposal=round(self.disposal, ndigits),
        )

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class ItemEmissionResult:
    name: str
    raw_name: str
    category: str
    category_id: str
    quantity: float
    unit: str
    breakdown: EmissionBreakdown
    total_kg: float
    suggestions: tuple[str, ...] = ()
    confidence: float = 0.0
    modifiers: Modifiers = field(default_factory=Modifiers)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "raw_name": self.raw_name,
            "category": self.category,
            "category_id": self.category_id,
            "quantity": self.quantity,
            "unit": self.unit,
            "breakdown": self.breakdown.as_dict(),
            "total_kg": self.total_kg,
            "suggestions": list(self.suggestions),
            "confidence": self.confidence,
            "modifiers": self.modifiers.active(),
        }


def modifier_factor(factor: EmissionFactor, modifiers: Modifiers) -> float:
    """Product of the category multipliers of every active modifier."""
    combined = 1.0
    for name in modifiers.active():
        combined *= factor.modifier(name)
    return combined


def transport_factor(modifiers: Modifiers) -> float:
    if modifiers.imported:
        return IMPORTED_TRANSPORT_FACTOR
    if modifiers.local:
        return LOCAL_TRANSPORT_FACTOR
    return 1.0


def compute_breakdown(factor: EmissionFactor, quantity: float, modifiers: Modifiers) -> EmissionBreakdown:
    return EmissionBreakdown(
        production=factor.production * quantity * modifier_factor(factor, modifiers),
        packaging=factor.packaging * quantity,
        transport=factor.transport * quantity * transport_factor(modifiers),
        use=factor.use * quantity,
        disposal=factor.disposal * quantity,
    )


def generate_suggestions(category: str, modifiers: Modifiers, breakdown: EmissionBreakdown) -> list[str]:
    suggestions: list[str] = []
    total = breakdown.total

    if total > 0:
        if breakdown.production / total > 0.6:
            if category in PLANT_SWAP_CATEGORIES:
                suggestions.append(SUGGEST_PLANT_BASED)
            elif category in DAIRY_SWAP_CATEGORIES:
                suggestions.append(SUGGEST_PLANT_DAIRY)

        if breakdown.transport / total > 0.3:
            if modifiers.imported:
                suggestions.append(SUGGEST_LOCAL)
            suggestions.append(SUGGEST_SEASONAL)

        if breakdown.packaging / total > 0.2:
            suggestions.append(SUGGEST_PACKAGING)

    if breakdown.use > 0:
        suggestions.append(SUGGEST_EFFICIENCY)

    if not modifiers.organic and category in ORGANIC_ELIGIBLE_CATEGORIES:
        suggestions.append(SUGGEST_ORGANIC)

    return suggestions[:MAX_SUGGESTIONS]


def calculate_confidence(category: str, raw_name: str, modifiers: Modifiers) -> float:
    confidence = BASE_CONFIDENCE
    if category != DEFAULT_CATEGORY:
        confidence += KNOWN_CATEGORY_BONUS
    if len(raw_name.split()) > 2:
        confidence += DETAILED_NAME_BONUS
    if modifiers.any():
        confidence += MODIFIER_BONUS
    return round(min(confidence, MAX_ITEM_CONFIDENCE), 2)


def _safe_quantity(value: Any) -> float:
    try:
        q = float(value)
    except (TypeError, ValueError):
        return 1.0
    if not math.isfinite(q) or q < 0:
        return 0.0
    return q


def calculate(
    raw_name: str,
    purchased_quantity: float = 1,
    merchant: str | None = None,
    location: str | None = None,
    purchase_date: date | None = None,
    factors: FactorTable | None = None,
) -> ItemEmissionResult:
    """
    Estimates lifecycle emissions for one product line.

    Never raises on odd input: unknown products fall back to the default
    factor and unparseable quantities count as one item, both reflected in a
    lower confidence.
    """
    factors = factors if factors is not None else load_default_factors()
    name = "" if raw_name is None else str(raw_name)

    factor = factors.lookup(classify(name))
    modifiers = extract_modifiers(name, merchant=merchant, location=location, purchase_date=purchase_date)
    parsed = parse_quantity(name)
    quantity = _safe_quantity(purchased_quantity) * parsed.amount

    raw_breakdown = compute_breakdown(factor, quantity, modifiers)
    breakdown = raw_breakdown.rounded()
    total_kg = round(breakdown.total, 2)

    result = ItemEmissionResult(
        name=clean_product_name(name),
        raw_name=name,
        category=factor.display_name,
        category_id=factor.category,
        quantity=quantity,
        unit=parsed.unit,
        breakdown=breakdown,
        total_kg=total_kg,
        suggestions=tuple(generate_suggestions(factor.category, modifiers, raw_breakdown)),
        confidence=calculate_confidence(factor.category, name, modifiers),
        modifiers=modifiers,
    )
    logger.debug(
        "Estimated %r: category=%s qty=%.3f %s total=%.2f kg",
        name, result.category_id, quantity, parsed.unit, total_kg,
    )
    return result
