import json

import numpy as np
import pytest
from PIL import Image

from carbonsnap.cli import main


def _json_tail(out: str):
    return json.loads(out[out.index("{"):])


def test_item_command(capsys):
    main(["item", "Organic Ground Beef 2 lbs", "--quantity", "2"])
    data = json.loads(capsys.readouterr().out)

    assert data["category"] == "Beef"
    assert data["modifiers"] == ["organic"]
    assert data["quantity"] == pytest.approx(1.814368)
    assert set(data["breakdown"]) == {"production", "packaging", "transport", "use", "disposal"}


def test_item_command_with_context(capsys):
    main(["item", "Bananas", "--location", "Toronto, Canada", "--date", "2024-07-01"])
    data = json.loads(capsys.readouterr().out)
    assert "imported" in data["modifiers"]
    assert data["breakdown"]["transport"] == pytest.approx(3.75)


def test_basket_from_ocr_text(tmp_path, capsys):
    receipt = tmp_path / "receipt.txt"
    receipt.write_text("FRESH MART\nWHOLE MILK 1L $3.49\n2 x BANANAS 1.98\nTOTAL 5.47\n", encoding="utf-8")
    out_items = tmp_path / "out" / "items.csv"

    main(["basket", "--ocr-text", str(receipt), "--out-items", str(out_items)])
    data = _json_tail(capsys.readouterr().out)

    assert data["num_lines_scored"] == 2
    assert data["total_kg"] == pytest.approx(10.19)
    assert data["summary"]["highest_impact_category"] == "Bananas"
    assert out_items.exists()


def test_basket_from_csv(tmp_path, capsys):
    csv_path = tmp_path / "lines.csv"
    csv_path.write_text("text,price\nBEEF 1KG,12.00\nSUBTOTAL,12.00\n", encoding="utf-8")

    main(["basket", "--csv", str(csv_path)])
    data = json.loads(capsys.readouterr().out)
    assert data["num_lines_scored"] == 1
    assert data["by_category"] == {"Beef": pytest.approx(29.8)}


def test_basket_needs_an_input():
    with pytest.raises(SystemExit):
        main(["basket"])


def test_assess_image_command(tmp_path, capsys):
    img_path = tmp_path / "wide.png"
    Image.fromarray(np.full((100, 200, 3), 128, dtype=np.uint8)).save(img_path)
    enhanced = tmp_path / "enhanced.png"

    main(["assess-image", str(img_path), "--save-enhanced", str(enhanced)])
    data = _json_tail(capsys.readouterr().out)

    assert data["is_receipt_detected"] is False
    assert data["confidence"] == pytest.approx(0.31)
    assert data["suggestions"]
    assert enhanced.exists()
    with Image.open(enhanced) as im:
        assert im.size == (200, 100)


def test_log_level_is_case_insensitive(capsys):
    main(["--log-level", "debug", "item", "Beef 1kg"])
    assert json.loads(capsys.readouterr().out)["category"] == "Beef"


def test_unknown_log_level_is_rejected(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["--log-level", "verbose", "item", "Beef 1kg"])
    assert exc.value.code == 2
    assert "invalid choice" in capsys.readouterr().err
