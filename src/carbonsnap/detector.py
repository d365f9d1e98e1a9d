from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any

import numpy as np

from .config import RECEIPT_THRESHOLD, DetectorConfig
from .filters import check_buffer, laplacian_variance, luma

logger = logging.getLogger(__name__)

HINT_VERTICAL = "Hold the receipt vertically for better detection"
HINT_LIGHTING = "Ensure good lighting and focus on the receipt"
HINT_TEXT = "Make sure text is clearly visible"
HINT_SHADOWS = "Avoid shadows and ensure even lighting"
HINT_FRAMING = "Position the entire receipt within the frame"


@dataclass(frozen=True)
class QualitySignals:
    edge: float
    aspect: float
    text: float
    brightness: float
    color: float
    aspect_ratio: float
    sharpness: float


@dataclass(frozen=True)
class ReceiptQualityResult:
    confidence: float
    suggestions: tuple[str, ...]
    signals: QualitySignals

    @property
    def is_receipt_detected(self) -> bool:
        return self.confidence > RECEIPT_THRESHOLD

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_receipt_detected": self.is_receipt_detected,
            "confidence": self.confidence,
            "suggestions": list(self.suggestions),
            "signals": asdict(self.signals),
        }


def edge_ratio(buf: np.ndarray, magnitude: float = 30.0) -> float:
    """Fraction of interior pixels whose Sobel magnitude (red channel) exceeds `magnitude`."""
    h, w = buf.shape[:2]
    if h < 3 or w < 3:
        return 0.0
    c = buf[..., 0].astype(np.float32)

    tl, tm, tr = c[:-2, :-2], c[:-2, 1:-1], c[:-2, 2:]
    ml, mr = c[1:-1, :-2], c[1:-1, 2:]
    bl, bm, br = c[2:, :-2], c[2:, 1:-1], c[2:, 2:]

    gx = (tr + 2 * mr + br) - (tl + 2 * ml + bl)
    gy = (bl + 2 * bm + br) - (tl + 2 * tm + tr)
    edges = np.hypot(gx, gy) > magnitude
    return float(edges.mean())


def count_text_lines(buf: np.ndarray, config: DetectorConfig) -> int:
    """
    Counts sampled rows that look like printed text: partly dark, but neither
    blank nor a solid block.
    """
    width = buf.shape[1]
    rows = luma(buf[:: config.text_row_step])
    dark = (rows < config.text_dark_luma).sum(axis=1)
    lo = width * config.text_min_fraction
    hi = width * config.text_max_fraction
    return int(((dark > lo) & (dark < hi)).sum())


def brightness_variance(buf: np.ndarray) -> float:
    return float(luma(buf).var(dtype=np.float64))


def color_variance(buf: np.ndarray) -> float:
    """Mean of the R, G and B population variances."""
    return float(np.mean([buf[..., c].var(dtype=np.float64) for c in range(3)]))


def compute_signals(buf: np.ndarray, config: DetectorConfig) -> QualitySignals:
    h, w = buf.shape[:2]

    edge_score = min(1.0, edge_ratio(buf, config.edge_magnitude) * config.edge_scale)

    aspect_ratio = h / w
    if aspect_ratio > config.tall_aspect:
        aspect_score = min(1.0, aspect_ratio / 3)
    else:
        aspect_score = config.wide_aspect_score

    lines_per_100px = count_text_lines(buf, config) / h * 100
    text_score = min(1.0, lines_per_100px / 10)

    brightness_score = 1 - min(1.0, brightness_variance(buf) / config.brightness_variance_scale)
    color_score = 1 - min(1.0, color_variance(buf) / config.color_variance_scale)

    return QualitySignals(
        edge=edge_score,
        aspect=aspect_score,
        text=text_score,
        brightness=brightness_score,
        color=color_score,
        aspect_ratio=aspect_ratio,
        sharpness=laplacian_variance(buf),
    )


def remediation_hints(signals: QualitySignals, config: DetectorConfig) -> list[str]:
    hints: list[str] = []
    if signals.aspect_ratio < config.tall_aspect:
        hints.append(HINT_VERTICAL)
    if signals.edge < config.low_edge:
        hints.append(HINT_LIGHTING)
    if signals.text < config.low_text:
        hints.append(HINT_TEXT)
    if signals.brightness < config.low_brightness:
        hints.append(HINT_SHADOWS)
    hints.append(HINT_FRAMING)
    return hints


def detect_receipt(buf: np.ndarray, config: DetectorConfig | None = None) -> ReceiptQualityResult:
    """
    Scores how much a buffer looks like a usable receipt scan. Run it on the
    output of filters.preprocess_for_ocr for the intended behaviour.
    """
    check_buffer(buf)
    config = config or DetectorConfig()
    signals = compute_signals(buf, config)

    confidence = (
        signals.edge * config.weight_edge
        + signals.aspect * config.weight_aspect
        + signals.text * config.weight_text
        + signals.brightness * config.weight_brightness
        + signals.color * config.weight_color
    )
    confidence = float(min(1.0, max(0.0, confidence)))

    suggestions: list[str] = []
    if confidence <= RECEIPT_THRESHOLD:
        suggestions = remediation_hints(signals, config)

    logger.debug("Receipt detection signals=%s confidence=%.3f", signals, confidence)
    return ReceiptQualityResult(confidence=confidence, suggestions=tuple(suggestions), signals=signals)
