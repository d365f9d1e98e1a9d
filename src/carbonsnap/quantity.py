from __future__ import annotations

import re
from dataclasses import dataclass

from .config import KG_PER_G, KG_PER_LB, KG_PER_OZ, L_PER_ML

_NUMBER = r"(\d+(?:\.\d+)?)"


@dataclass(frozen=True)
class Quantity:
    amount: float = 1.0
    unit: str = "item"  # kg, L or item


# (pattern, multiplier, normalized unit). Evaluated in order, first match wins.
QUANTITY_PATTERNS: tuple[tuple[re.Pattern[str], float, str], ...] = (
    (re.compile(_NUMBER + r"\s*(?:lbs?|pounds?)\b", re.IGNORECASE), KG_PER_LB, "kg"),
    (re.compile(_NUMBER + r"\s*(?:kg|kgs|kilograms?)\b", re.IGNORECASE), 1.0, "kg"),
    (re.compile(_NUMBER + r"\s*(?:oz|ounces?)\b", re.IGNORECASE), KG_PER_OZ, "kg"),
    (re.compile(_NUMBER + r"\s*(?:g|grams?)\b", re.IGNORECASE), KG_PER_G, "kg"),
    (re.compile(_NUMBER + r"\s*(?:l|liters?|litres?)\b", re.IGNORECASE), 1.0, "L"),
    (re.compile(_NUMBER + r"\s*(?:ml|milliliters?|millilitres?)\b", re.IGNORECASE), L_PER_ML, "L"),
    (re.compile(r"(\d+)\s*(?:pk|pack)\b", re.IGNORECASE), 1.0, "item"),
    (re.compile(r"(\d+)\s*(?:ct|count)\b", re.IGNORECASE), 1.0, "item"),
)

_QUANTITY_TEXT_RE = re.compile(
    r"\d+(?:\.\d+)?\s*(?:lbs?|pounds?|kgs?|kilograms?|oz|ounces?|g|grams?|ml|milliliters?"
    r"|millilitres?|l|liters?|litres?|pk|pack|ct|count)\b",
    re.IGNORECASE,
)
_multi_space = re.compile(r"\s+")


def parse_quantity(raw_name: str) -> Quantity:
    """
    Pulls the first recognizable amount out of a product string, normalized
    to kg or L. Strings without one count as a single item.
    """
    text = "" if raw_name is None else str(raw_name)
    for pattern, multiplier, unit in QUANTITY_PATTERNS:
        m = pattern.search(text)
        if m:
            return Quantity(amount=float(m.group(1)) * multiplier, unit=unit)
    return Quantity()


def clean_product_name(raw_name: str) -> str:
    text = "" if raw_name is None else str(raw_name)
    text = _QUANTITY_TEXT_RE.sub("", text)
    return _multi_space.sub(" ", text).strip()
