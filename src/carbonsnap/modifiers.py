from __future__ import annotations

import re
from dataclasses import astuple, dataclass, fields
from datetime import date
from typing import Callable, Optional


@dataclass(frozen=True)
class Modifiers:
    organic: bool = False
    imported: bool = False
    frozen: bool = False
    grass_fed: bool = False
    local: bool = False
    bulk: bool = False
    seasonal: bool = False

    def active(self) -> list[str]:
        return [f.name for f in fields(self) if getattr(self, f.name)]

    def any(self) -> bool:
        return any(astuple(self))


@dataclass(frozen=True)
class PurchaseContext:
    """Everything a modifier predicate may look at besides the product name."""

    merchant: Optional[str] = None
    location: Optional[str] = None
    purchase_date: Optional[date] = None


_ORGANIC_RE = re.compile(r"organic|\bbio\b", re.IGNORECASE)
_IMPORTED_RE = re.compile(r"imported|international|exotic", re.IGNORECASE)
_FROZEN_RE = re.compile(r"frozen|freeze", re.IGNORECASE)
_GRASS_FED_RE = re.compile(r"grass.*fed|pasture.*raised", re.IGNORECASE)
_LOCAL_NAME_RE = re.compile(r"local|farm.*fresh|farmers.*market", re.IGNORECASE)
_LOCAL_STORE_RE = re.compile(r"farmers.*market|local|co-op|farm.*stand", re.IGNORECASE)
_BULK_RE = re.compile(r"bulk|family.*size|large|\bxl\b", re.IGNORECASE)
_SEASONAL_RE = re.compile(r"seasonal|in season", re.IGNORECASE)

_TROPICAL_FRUIT_RE = re.compile(r"banana|mango|pineapple|coconut|avocado", re.IGNORECASE)
_NON_TROPICAL_LOCATION_RE = re.compile(
    r"\b(?:usa|us|united states|canada|ca|uk|united kingdom|europe)\b", re.IGNORECASE
)

# product keywords -> months (1-12) in which they are in season
SEASONAL_MONTHS: dict[tuple[str, ...], tuple[int, ...]] = {
    ("berry", "berries"): (5, 6, 7, 8, 9),
    ("apple",): (8, 9, 10, 11),
    ("tomato",): (6, 7, 8, 9),
}


def is_likely_imported(product: str, location: str | None) -> bool:
    """
    Guess: tropical fruit bought in a temperate region was shipped in.
    Applies to any tropical produce keyword, not only to a product category.
    """
    if not location:
        return False
    return bool(_NON_TROPICAL_LOCATION_RE.search(location) and _TROPICAL_FRUIT_RE.search(product))


def is_local_store(merchant: str | None) -> bool:
    if not merchant:
        return False
    return bool(_LOCAL_STORE_RE.search(merchant))


def is_in_season(product: str, on: date | None) -> bool:
    if on is None:
        return False
    name = product.lower()
    return any(
        on.month in months and any(key in name for key in keys)
        for keys, months in SEASONAL_MONTHS.items()
    )


def _organic(name: str, ctx: PurchaseContext) -> bool:
    return bool(_ORGANIC_RE.search(name))


def _imported(name: str, ctx: PurchaseContext) -> bool:
    return bool(_IMPORTED_RE.search(name)) or is_likely_imported(name, ctx.location)


def _frozen(name: str, ctx: PurchaseContext) -> bool:
    return bool(_FROZEN_RE.search(name))


def _grass_fed(name: str, ctx: PurchaseContext) -> bool:
    return bool(_GRASS_FED_RE.search(name))


def _local(name: str, ctx: PurchaseContext) -> bool:
    return bool(_LOCAL_NAME_RE.search(name)) or is_local_store(ctx.merchant)


def _bulk(name: str, ctx: PurchaseContext) -> bool:
    return bool(_BULK_RE.search(name))


def _seasonal(name: str, ctx: PurchaseContext) -> bool:
    return bool(_SEASONAL_RE.search(name)) or is_in_season(name, ctx.purchase_date)


MODIFIER_PREDICATES: dict[str, Callable[[str, PurchaseContext], bool]] = {
    "organic": _organic,
    "imported": _imported,
    "frozen": _frozen,
    "grass_fed": _grass_fed,
    "local": _local,
    "bulk": _bulk,
    "seasonal": _seasonal,
}


def extract_modifiers(
    raw_name: str,
    merchant: str | None = None,
    location: str | None = None,
    purchase_date: date | None = None,
) -> Modifiers:
    """
    Evaluates every modifier predicate independently. Imported and local are
    mutually exclusive; when both fire, imported is kept.
    """
    name = "" if raw_name is None else str(raw_name)
    ctx = PurchaseContext(merchant=merchant, location=location, purchase_date=purchase_date)
    flags = {key: predicate(name, ctx) for key, predicate in MODIFIER_PREDICATES.items()}
    if flags["imported"]:
        flags["local"] = False
    return Modifiers(**flags)
