from carbonsnap.receipt_cleaning import extract_line_items, is_junk_line, normalize_text


def test_normalize_text_basic():
    assert normalize_text("  HELLO\tWORLD  ") == "HELLO WORLD"
    assert normalize_text(None) == ""


def test_is_junk_line():
    assert is_junk_line("TOTAL 12.34")
    assert is_junk_line("SUBTOTAL 10.00")
    assert is_junk_line("   ")
    assert not is_junk_line("2% MILK 1GAL 4.29")
    # keywords only count as whole words
    assert not is_junk_line("TAXI MODEL CAR 9.99")


def test_is_junk_line_custom_keywords():
    assert is_junk_line("LOYALTY POINTS 120", junk_keywords=["LOYALTY"])
    assert not is_junk_line("TOTAL 12.34", junk_keywords=["LOYALTY"])


def test_extract_line_items():
    text = "FRESH MART\nWHOLE MILK 1L $3.49\n2 x BANANAS 1.98\nTOTAL 5.47\nTHANK YOU\n"
    lines = extract_line_items(text)

    assert lines == [
        {"text": "WHOLE MILK 1L", "quantity": 1.0, "price": 3.49},
        {"text": "BANANAS", "quantity": 2.0, "price": 1.98},
        {"text": "TOTAL", "quantity": 1.0, "price": 5.47},
    ]


def test_extract_line_items_empty():
    assert extract_line_items("") == []
    assert extract_line_items(None) == []
