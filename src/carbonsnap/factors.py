from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType

import pandas as pd

from .config import DEFAULT_CATEGORY, LIFECYCLE_STAGES, MODIFIER_NAMES, Paths

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmissionFactor:
    """Per-unit kg CO2e for each lifecycle stage of one product category."""

    category: str
    display_name: str
    unit: str
    production: float
    packaging: float
    transport: float
    use: float
    disposal: float
    modifiers: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for stage, value in zip(LIFECYCLE_STAGES, self.stage_values()):
            if value < 0:
                raise ValueError(f"{self.category}: {stage} factor must be >= 0, got {value}")
        object.__setattr__(self, "modifiers", MappingProxyType(dict(self.modifiers)))

    def stage_values(self) -> tuple[float, float, float, float, float]:
        return (self.production, self.packaging, self.transport, self.use, self.disposal)

    def modifier(self, name: str) -> float:
        # Modifiers a category does not define are neutral
        return float(self.modifiers.get(name, 1.0))


class FactorTable(Mapping[str, EmissionFactor]):
    """
    Read-only category -> EmissionFactor map.
    Must contain the `default` category, which `lookup` falls back to.
    """

    def __init__(self, factors: Mapping[str, EmissionFactor] | list[EmissionFactor]):
        if isinstance(factors, Mapping):
            entries = dict(factors)
        else:
            entries = {f.category: f for f in factors}
        if DEFAULT_CATEGORY not in entries:
            raise ValueError(f"Emission factor table must define a '{DEFAULT_CATEGORY}' category")
        self._entries = MappingProxyType(entries)

    def __getitem__(self, category: str) -> EmissionFactor:
        return self._entries[category]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def default(self) -> EmissionFactor:
        return self._entries[DEFAULT_CATEGORY]

    def lookup(self, category: str) -> EmissionFactor:
        return self._entries.get(category, self.default)


def load_emission_factors(path: Path) -> FactorTable:
    """
    Loads a CSV with columns:
      category, display_name, unit, production, packaging, transport, use, disposal
    plus one optional column per modifier (organic, imported, ...). Blank modifier
    cells mean the modifier does not apply to that category.
    """
    df = pd.read_csv(path)
    required = ["category", "display_name", "unit", *LIFECYCLE_STAGES]
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ValueError(f"{path} is missing columns: {', '.join(missing)}")

    df["category"] = df["category"].astype(str).str.strip()
    for stage in LIFECYCLE_STAGES:
        df[stage] = pd.to_numeric(df[stage], errors="coerce")
    df = df.dropna(subset=list(LIFECYCLE_STAGES))

    modifier_cols = [m for m in MODIFIER_NAMES if m in df.columns]
    for col in modifier_cols:
        df[col] = pd.to_numeric(df[col], errors="coerce")

    factors: list[EmissionFactor] = []
    for _, row in df.iterrows():
        modifiers = {m: float(row[m]) for m in modifier_cols if pd.notna(row[m])}
        factors.append(
            EmissionFactor(
                category=row["category"],
                display_name=str(row["display_name"]).strip(),
                unit=str(row["unit"]).strip(),
                production=float(row["production"]),
                packaging=float(row["packaging"]),
                transport=float(row["transport"]),
                use=float(row["use"]),
                disposal=float(row["disposal"]),
                modifiers=modifiers,
            )
        )

    table = FactorTable(factors)
    logger.debug("Loaded %d emission factors from %s", len(table), path)
    return table


@lru_cache(maxsize=1)
def load_default_factors() -> FactorTable:
    return load_emission_factors(Paths().factors_csv)
