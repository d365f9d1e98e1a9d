from datetime import date

import numpy as np
import pandas as pd
import pytest

from carbonsnap.config import PipelineConfig
from carbonsnap.engine import (
    assess_receipt_image,
    enhance_receipt_image,
    estimate_basket,
    estimate_dataframe,
    estimate_item,
)


def _gray_rgba(h, w, value=128):
    buf = np.full((h, w, 4), value, dtype=np.uint8)
    buf[..., 3] = 255
    return buf


def test_estimate_item_passes_context_through():
    plain = estimate_item("Strawberries 1kg")
    in_season = estimate_item("Strawberries 1kg", purchase_date=date(2024, 7, 1))
    assert not plain.modifiers.seasonal
    assert in_season.modifiers.seasonal
    # seasonal berries have a lower production multiplier
    assert in_season.breakdown.production < plain.breakdown.production

    market = estimate_item("Carrots 1kg", merchant="Downtown Farmers Market")
    assert market.modifiers.local


def test_estimate_basket_accepts_text_or_raw_name_keys():
    basket = estimate_basket(
        [
            {"raw_name": "Beef 1kg", "quantity": 1},
            {"text": "Spinach 200g"},
        ]
    )
    assert [i.category for i in basket.items] == ["Beef", "Leafy Greens"]
    assert basket.total_kg == pytest.approx(30.56)


def test_estimate_dataframe_end_to_end():
    df = pd.DataFrame(
        [
            {"text": "WHOLE MILK 1L", "quantity": 1, "price": 3.49},
            {"text": "BANANAS", "quantity": 2, "price": 1.98},
            {"text": "TOTAL 5.47", "quantity": None, "price": 5.47},
        ]
    )

    out = estimate_dataframe(df=df, drop_junk=True)

    assert out["num_lines_scored"] == 2  # TOTAL line dropped
    items = out["items"]
    assert set(items.columns) >= {"text", "name", "category", "total_kg", "confidence", "price", "production"}
    assert items["price"].tolist() == [3.49, 1.98]
    assert items["category"].tolist() == ["Dairy", "Bananas"]
    assert out["by_category"] == {"Dairy": pytest.approx(3.65), "Bananas": pytest.approx(6.54)}
    assert out["total_kg"] == pytest.approx(10.19)


def test_estimate_dataframe_keep_junk_and_missing_quantity():
    df = pd.DataFrame({"text": ["MILK 1L", "TOTAL 5.47"]})
    out = estimate_dataframe(df=df, drop_junk=False)
    assert out["num_lines_scored"] == 2
    assert out["items"]["quantity"].tolist() == [1.0, 1.0]
    assert "price" not in out["items"].columns


def test_estimate_dataframe_requires_text_column():
    with pytest.raises(ValueError):
        estimate_dataframe(df=pd.DataFrame({"name": ["MILK"]}))


def test_assess_receipt_image_from_bytes():
    raw = _gray_rgba(100, 200).tobytes()
    result = assess_receipt_image(raw, width=200, height=100)
    assert result.confidence == pytest.approx(0.31)
    assert not result.is_receipt_detected
    assert result.suggestions


@pytest.mark.parametrize("width, height", [(0, 100), (200, 0), (199, 100), (-200, -100)])
def test_assess_receipt_image_rejects_bad_dimensions(width, height):
    with pytest.raises(ValueError):
        assess_receipt_image(_gray_rgba(100, 200).tobytes(), width=width, height=height)


def test_assess_receipt_image_without_enhancement():
    result = assess_receipt_image(_gray_rgba(100, 200), 200, 100, enhance=False)
    assert result.confidence == pytest.approx(0.31)


def test_enhance_receipt_image_keeps_shape():
    out = enhance_receipt_image(_gray_rgba(30, 20, 90).tobytes(), 20, 30, PipelineConfig(blur_radius=2))
    assert out.shape == (30, 20, 4)
    assert set(np.unique(out[..., :3])) <= {0, 255}


def test_assess_receipt_image_is_deterministic():
    buf = np.random.default_rng(21).integers(0, 256, size=(90, 60, 4), dtype=np.uint8)
    first = assess_receipt_image(buf, 60, 90)
    second = assess_receipt_image(buf.copy(), 60, 90)
    assert first == second
    assert first.is_receipt_detected == second.is_receipt_detected
