from __future__ import annotations

import logging
from datetime import date
from typing import Any, Iterable, Mapping

import numpy as np
import pandas as pd

from .aggregator import BasketResult, aggregate
from .calculator import ItemEmissionResult, calculate
from .config import LIFECYCLE_STAGES, DetectorConfig, PipelineConfig
from .detector import ReceiptQualityResult, detect_receipt
from .factors import FactorTable, load_default_factors
from .filters import as_pixel_buffer, preprocess_for_ocr
from .receipt_cleaning import is_junk_line, normalize_text

logger = logging.getLogger(__name__)


def estimate_item(
    raw_name: str,
    quantity: float = 1,
    merchant: str | None = None,
    location: str | None = None,
    purchase_date: date | None = None,
    factors: FactorTable | None = None,
) -> ItemEmissionResult:
    return calculate(
        raw_name,
        purchased_quantity=quantity,
        merchant=merchant,
        location=location,
        purchase_date=purchase_date,
        factors=factors,
    )


def estimate_basket(
    items: Iterable[Mapping[str, Any]],
    merchant: str | None = None,
    location: str | None = None,
    purchase_date: date | None = None,
    factors: FactorTable | None = None,
) -> BasketResult:
    """
    items: mappings with `raw_name` (or `text`) and an optional `quantity`.
    Merchant, location and date apply to every item of the basket.
    """
    factors = factors if factors is not None else load_default_factors()
    results = []
    for item in items:
        raw_name = item.get("raw_name", item.get("text", ""))
        quantity = item.get("quantity")
        results.append(
            calculate(
                raw_name,
                purchased_quantity=1 if quantity is None else quantity,
                merchant=merchant,
                location=location,
                purchase_date=purchase_date,
                factors=factors,
            )
        )
    return aggregate(results)


def enhance_receipt_image(
    pixels: Any,
    width: int,
    height: int,
    pipeline: PipelineConfig | None = None,
) -> np.ndarray:
    """Runs the OCR preprocessing chain and returns the enhanced RGBA buffer."""
    buf = as_pixel_buffer(pixels, width, height)
    return preprocess_for_ocr(buf, pipeline)


def assess_receipt_image(
    pixels: Any,
    width: int,
    height: int,
    enhance: bool = True,
    pipeline: PipelineConfig | None = None,
    detector: DetectorConfig | None = None,
) -> ReceiptQualityResult:
    """
    Decides whether an RGBA capture is usable as a receipt scan.
    Raises ValueError when the buffer does not match width x height x 4.
    """
    buf = as_pixel_buffer(pixels, width, height)
    if enhance:
        buf = preprocess_for_ocr(buf, pipeline)
    result = detect_receipt(buf, detector)
    logger.info(
        "Receipt image %dx%d: detected=%s confidence=%.3f",
        width, height, result.is_receipt_detected, result.confidence,
    )
    return result


def estimate_dataframe(
    df: pd.DataFrame,
    merchant: str | None = None,
    location: str | None = None,
    purchase_date: date | None = None,
    factors: FactorTable | None = None,
    drop_junk: bool = True,
) -> dict[str, Any]:
    """
    df must have a `text` column; `quantity` and `price` are optional.
    Returns dict with the scored items DataFrame and the basket result.
    """
    if "text" not in df.columns:
        raise ValueError("Input df must have a text column")

    df = df.copy()
    df["text"] = df["text"].astype(str).map(normalize_text)
    if "quantity" in df.columns:
        df["quantity"] = pd.to_numeric(df["quantity"], errors="coerce").fillna(1.0)
    else:
        df["quantity"] = 1.0

    if drop_junk:
        df = df[~df["text"].map(is_junk_line).astype(bool)].copy()

    basket = estimate_basket(
        ({"raw_name": row["text"], "quantity": float(row["quantity"])} for _, row in df.iterrows()),
        merchant=merchant,
        location=location,
        purchase_date=purchase_date,
        factors=factors,
    )

    columns = ["text", "name", "category", "quantity", "unit", "total_kg", "confidence"]
    rows = [
        {
            "text": item.raw_name,
            "name": item.name,
            "category": item.category,
            "quantity": item.quantity,
            "unit": item.unit,
            "total_kg": item.total_kg,
            "confidence": item.confidence,
            **item.breakdown.as_dict(),
        }
        for item in basket.items
    ]
    out_df = pd.DataFrame(rows, columns=[*columns, *LIFECYCLE_STAGES])
    if "price" in df.columns:
        out_df["price"] = pd.to_numeric(df["price"], errors="coerce").fillna(0.0).to_numpy()

    return {
        "items": out_df,
        "basket": basket,
        "total_kg": round(basket.total_kg, 3),
        "by_category": basket.by_category,
        "num_lines_scored": int(len(out_df)),
        "drop_junk": drop_junk,
    }
