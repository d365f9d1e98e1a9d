from __future__ import annotations

import re
from typing import Iterable, Union

from .config import JUNK_KEYWORDS


_multi_space = re.compile(r"\s+")
_nonprint = re.compile(r"[^\x20-\x7E]+")

_AMOUNT_RE = re.compile(r"(?<!\d)(\d{1,3}(?:,\d{3})*\.\d{2})(?!\d)")
_CURRENCY_RE = re.compile(r"[$€£]\s*")
# "2 x MILK", "3 @ APPLES"
_LEADING_COUNT_RE = re.compile(r"^(\d{1,3})\s*[xX@]\s+")

LineItem = dict[str, Union[float, str]]


def normalize_text(text: str) -> str:
    """
    Normalizes OCR-ish receipt text to reduce noise.
    """
    t = "" if text is None else str(text)
    t = _nonprint.sub(" ", t)
    t = t.strip()
    t = _multi_space.sub(" ", t)
    return t


def _keyword_re(keywords: Iterable[str]) -> re.Pattern[str]:
    return re.compile(r"\b(?:" + "|".join(re.escape(k) for k in keywords) + r")\b")


_JUNK_RE = _keyword_re(JUNK_KEYWORDS)


def is_junk_line(text: str, junk_keywords: Iterable[str] = JUNK_KEYWORDS) -> bool:
    """
    Returns True if the line looks like receipt metadata (TOTAL, TAX, AUTH, etc.).
    """
    t = normalize_text(text).upper()
    if not t:
        return True
    pattern = _JUNK_RE if junk_keywords is JUNK_KEYWORDS else _keyword_re(junk_keywords)
    return bool(pattern.search(t))


def extract_line_items(ocr_text: str) -> list[LineItem]:
    """Convert OCR text into candidate receipt line items.

    Heuristic:
    - For each line, find the *last* currency amount like 12.34 and treat it as price
    - A leading count like "2 x" becomes the purchased quantity
    - Remaining text is the raw item name
    """
    lines_out: list[LineItem] = []
    for raw in (ocr_text or "").splitlines():
        line = normalize_text(raw)
        if not line or len(line) < 3:
            continue

        # Remove currency symbols to simplify parsing
        cleaned = _CURRENCY_RE.sub("", line)

        amounts = list(_AMOUNT_RE.finditer(cleaned))
        if not amounts:
            continue

        price = float(amounts[-1].group(1).replace(",", ""))

        start, end = amounts[-1].span()
        item_text = normalize_text((cleaned[:start] + cleaned[end:]).strip(" -"))

        quantity = 1.0
        m = _LEADING_COUNT_RE.match(item_text)
        if m:
            quantity = float(m.group(1))
            item_text = item_text[m.end():]

        if not item_text:
            continue

        lines_out.append({"text": item_text, "quantity": quantity, "price": price})

    return lines_out
