from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


PACKAGE_DIR = Path(__file__).resolve().parent

DATA_DIR = PACKAGE_DIR / "data"

DEFAULT_FACTORS_CSV = DATA_DIR / "emission_factors.csv"

# Category used when no classification rule matches
DEFAULT_CATEGORY = "default"

LIFECYCLE_STAGES = ("production", "packaging", "transport", "use", "disposal")

MODIFIER_NAMES = ("organic", "imported", "frozen", "grass_fed", "local", "bulk", "seasonal")

# Unit conversion constants
KG_PER_LB = 0.453592
KG_PER_OZ = 0.0283495
KG_PER_G = 0.001
L_PER_ML = 0.001

# Transport multipliers
IMPORTED_TRANSPORT_FACTOR = 1.5
LOCAL_TRANSPORT_FACTOR = 0.5

# Item confidence heuristic
BASE_CONFIDENCE = 0.6
KNOWN_CATEGORY_BONUS = 0.2
DETAILED_NAME_BONUS = 0.1
MODIFIER_BONUS = 0.1
MAX_ITEM_CONFIDENCE = 0.95

MAX_SUGGESTIONS = 3

# kg CO2e per unit of each everyday equivalent, in preference order
EQUIVALENTS = (
    ("driving", 0.404),
    ("phone_charges", 0.008),
    ("tree_days", 0.022),
    ("electricity_kwh", 0.5),
)
MAX_EQUIVALENTS = 2

# Share of an item's emissions a shopper could plausibly avoid
REDUCTION_TIERS = (
    (frozenset({"beef", "lamb"}), 0.8),
    (frozenset({"milk", "cheese", "pork"}), 0.6),
)
DEFAULT_REDUCTION = 0.3

UNKNOWN_CATEGORY_LABEL = "Unknown"

# Lines containing any of these tokens are not purchasable items
JUNK_KEYWORDS = [
    "SUBTOTAL",
    "TOTAL",
    "TAX",
    "BALANCE",
    "VISA",
    "MASTERCARD",
    "AMEX",
    "DISCOVER",
    "DEBIT",
    "CREDIT",
    "AUTH",
    "APPROVAL",
    "APPROVED",
    "CHANGE",
    "CASHIER",
    "REGISTER",
    "TERMINAL",
    "TRANSACTION",
    "REFERENCE",
    "VOID",
    "RETURN",
]

RECEIPT_THRESHOLD = 0.4

LOG_LEVEL_ENV = "CARBONSNAP_LOG_LEVEL"
FACTORS_CSV_ENV = "CARBONSNAP_FACTORS_CSV"


def _factors_csv_from_env() -> Path:
    override = os.environ.get(FACTORS_CSV_ENV)
    return Path(override) if override else DEFAULT_FACTORS_CSV


@dataclass(frozen=True)
class Paths:
    factors_csv: Path = field(default_factory=_factors_csv_from_env)


@dataclass(frozen=True)
class PipelineConfig:
    """Parameters of the blur -> contrast -> grayscale -> threshold chain."""

    blur_radius: int = 1
    contrast_factor: float = 1.4
    grayscale_blend: float = 0.7
    threshold_window: int = 15
    threshold_bias: float = 10.0


@dataclass(frozen=True)
class DetectorConfig:
    edge_magnitude: float = 30.0
    edge_scale: float = 8.0
    tall_aspect: float = 1.1
    wide_aspect_score: float = 0.3
    text_dark_luma: float = 180.0
    text_min_fraction: float = 0.10
    text_max_fraction: float = 0.80
    text_row_step: int = 3
    brightness_variance_scale: float = 5000.0
    color_variance_scale: float = 3000.0
    weight_edge: float = 0.30
    weight_aspect: float = 0.20
    weight_text: float = 0.25
    weight_brightness: float = 0.15
    weight_color: float = 0.10
    low_edge: float = 0.3
    low_text: float = 0.3
    low_brightness: float = 0.5
