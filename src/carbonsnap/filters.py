"""
Pixel filters over RGBA buffers.

A buffer is a uint8 numpy array shaped (height, width, 4). Every filter
returns a new array of the same shape and leaves its input untouched.

Intermediate planes are single-channel float32 and are updated in place,
so a filter call needs a small constant multiple of the input size on top
of its output buffer. Photos straight off a phone camera are 12+ MP.
"""
from __future__ import annotations

import logging
from typing import Any

import numpy as np

from .config import PipelineConfig

logger = logging.getLogger(__name__)

LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float32)


def as_pixel_buffer(pixels: Any, width: int, height: int) -> np.ndarray:
    """
    Validates raw RGBA data against its declared dimensions and returns it as
    a (height, width, 4) uint8 array. Raises ValueError on any mismatch.
    """
    width, height = int(width), int(height)
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")

    if isinstance(pixels, (bytes, bytearray, memoryview)):
        arr = np.frombuffer(pixels, dtype=np.uint8)
    else:
        arr = np.asarray(pixels)

    expected = width * height * 4
    if arr.size != expected:
        raise ValueError(
            f"Pixel buffer has {arr.size} values, expected {expected} for {width}x{height} RGBA"
        )
    if arr.ndim not in (1, 3) or (arr.ndim == 3 and arr.shape != (height, width, 4)):
        raise ValueError(f"Pixel buffer shape {arr.shape} does not match {height}x{width}x4")
    if arr.dtype != np.uint8:
        if arr.size and (arr.min() < 0 or arr.max() > 255):
            raise ValueError("Pixel values must be within 0..255")
        arr = arr.astype(np.uint8)

    return arr.reshape(height, width, 4).copy()


def check_buffer(buf: np.ndarray) -> None:
    if not isinstance(buf, np.ndarray) or buf.ndim != 3 or buf.shape[2] != 4:
        raise ValueError("Expected an RGBA buffer shaped (height, width, 4)")
    if buf.shape[0] <= 0 or buf.shape[1] <= 0:
        raise ValueError(f"Image dimensions must be positive, got {buf.shape[1]}x{buf.shape[0]}")


def _round_clip(values: np.ndarray) -> np.ndarray:
    """Round half-to-even and clamp to 0..255, in place."""
    np.rint(values, out=values)
    np.clip(values, 0, 255, out=values)
    return values


def _axis_slice(axis: int, start: int | None, stop: int | None) -> tuple[slice, ...]:
    if axis == 0:
        return (slice(start, stop),)
    return (slice(None), slice(start, stop))


def _along(values: np.ndarray, axis: int) -> np.ndarray:
    """Reshape a 1-D per-row/per-column array so it broadcasts along `axis`."""
    return values[:, None] if axis == 0 else values[None, :]


def luma(buf: np.ndarray) -> np.ndarray:
    """Rec. 601 luma of each pixel as float32, shape (height, width)."""
    # explicit dtype: uint8 * float32 scalar would otherwise resolve to float16 on numpy 1.x
    out = np.multiply(buf[..., 0], LUMA_WEIGHTS[0], dtype=np.float32)
    tmp = np.empty_like(out)
    for c in (1, 2):
        np.multiply(buf[..., c], LUMA_WEIGHTS[c], out=tmp, dtype=np.float32)
        out += tmp
    return out


def gaussian_taps(radius: int) -> np.ndarray:
    """1-D Gaussian of length 2r+1 with sigma r/3; the 2-D kernel is its outer product."""
    offsets = np.arange(-radius, radius + 1, dtype=np.float64)
    sigma = radius / 3
    taps = np.exp(-(offsets * offsets) / (2 * sigma * sigma))
    return (taps / taps.sum()).astype(np.float32)


def _blur_axis(plane: np.ndarray, taps: np.ndarray, axis: int) -> np.ndarray:
    n = plane.shape[axis]
    radius = len(taps) // 2
    acc = np.zeros_like(plane)
    tmp = np.empty_like(plane)
    weight_sum = np.zeros(n, dtype=np.float32)

    for k, weight in enumerate(taps):
        d = k - radius
        lo, hi = max(0, -d), min(n, n - d)
        if lo >= hi:
            continue
        dst = _axis_slice(axis, lo, hi)
        np.multiply(plane[_axis_slice(axis, lo + d, hi + d)], weight, out=tmp[dst])
        acc[dst] += tmp[dst]
        weight_sum[lo:hi] += weight

    acc /= _along(weight_sum, axis)
    return acc


def gaussian_blur(buf: np.ndarray, radius: int = 1) -> np.ndarray:
    """
    Full 2D Gaussian blur (kernel 2r+1, sigma r/3) on all four channels.
    Near the borders only in-bounds taps are used and re-normalized.

    Runs as a vertical then a horizontal 1-D pass per channel. The in-bounds
    tap set is a product of row and column ranges, so normalizing each pass
    separately gives the same result as normalizing the 2-D kernel.
    """
    check_buffer(buf)
    radius = int(radius)
    if radius < 0:
        raise ValueError(f"Blur radius must be >= 0, got {radius}")
    if radius == 0:
        return buf.copy()

    taps = gaussian_taps(radius)
    out = np.empty_like(buf)
    for c in range(buf.shape[2]):
        plane = buf[..., c].astype(np.float32)
        vertical = _blur_axis(plane, taps, axis=0)
        del plane
        blurred = _blur_axis(vertical, taps, axis=1)
        del vertical
        out[..., c] = _round_clip(blurred)
    return out


def to_grayscale(buf: np.ndarray, blend: float = 0.7) -> np.ndarray:
    """Blend each colour channel toward luma; blend=1 is full desaturation."""
    check_buffer(buf)
    gray = luma(buf)
    gray *= np.float32(blend)
    keep = np.float32(1 - blend)

    out = buf.copy()
    tmp = np.empty_like(gray)
    for c in range(3):
        np.multiply(buf[..., c], keep, out=tmp, dtype=np.float32)
        tmp += gray
        out[..., c] = _round_clip(tmp)
    return out


def enhance_contrast(buf: np.ndarray, factor: float = 1.4) -> np.ndarray:
    """Histogram-equalize luma, then stretch it around mid-gray by `factor`."""
    check_buffer(buf)
    gray = luma(buf)
    gray += 0.5
    np.floor(gray, out=gray)
    np.clip(gray, 0, 255, out=gray)
    levels = gray.astype(np.uint8)
    del gray

    histogram = np.bincount(levels.ravel(), minlength=256)
    cdf = np.floor(np.cumsum(histogram) / levels.size * 255 + 0.5)
    # 256-entry lookup table: equalized level -> stretched output level
    lut = _round_clip((cdf - 128) * factor + 128).astype(np.uint8)

    out = buf.copy()
    out[..., :3] = lut[levels][..., None]
    return out


def _box_mean_axis(values: np.ndarray, window: int, axis: int) -> np.ndarray:
    n = values.shape[axis]
    half = window // 2

    padded = list(values.shape)
    padded[axis] += 1
    csum = np.zeros(padded, dtype=np.float32)
    np.cumsum(values, axis=axis, dtype=np.float32, out=csum[_axis_slice(axis, 1, None)])

    idx = np.arange(n)
    lo = np.clip(idx - half, 0, n)
    hi = np.clip(idx + half + 1, 0, n)
    sums = np.take(csum, hi, axis=axis)
    sums -= np.take(csum, lo, axis=axis)
    sums /= _along((hi - lo).astype(np.float32), axis)
    return sums


def local_mean(values: np.ndarray, window: int) -> np.ndarray:
    """
    Mean over a window x window neighbourhood, clipped at the borders.
    The clipped window is a row range times a column range, so it is computed
    as a column mean of row means, each from a running sum.
    """
    return _box_mean_axis(_box_mean_axis(values, window, axis=0), window, axis=1)


def adaptive_threshold(buf: np.ndarray, window: int = 15, bias: float = 10.0) -> np.ndarray:
    """
    Binarize to pure black/white: a pixel is white when its luma exceeds the
    local mean minus `bias`. Alpha is set opaque.
    """
    check_buffer(buf)
    window = int(window)
    if window <= 0 or window % 2 == 0:
        raise ValueError(f"Threshold window must be a positive odd number, got {window}")

    values = luma(buf)
    cutoff = local_mean(values, window)
    cutoff -= np.float32(bias)
    binary = (values > cutoff).astype(np.uint8)
    binary *= 255
    del values, cutoff

    out = np.empty_like(buf)
    out[..., :3] = binary[..., None]
    out[..., 3] = 255
    return out


def laplacian_variance(buf: np.ndarray) -> float:
    """Sharpness: mean squared 4-neighbour Laplacian of luma over interior pixels."""
    check_buffer(buf)
    g = luma(buf)
    if g.shape[0] < 3 or g.shape[1] < 3:
        return 0.0
    lap = g[1:-1, 1:-1] * np.float32(4)
    lap -= g[:-2, 1:-1]
    lap -= g[2:, 1:-1]
    lap -= g[1:-1, :-2]
    lap -= g[1:-1, 2:]
    np.square(lap, out=lap)
    return float(lap.mean(dtype=np.float64))


def preprocess_for_ocr(buf: np.ndarray, config: PipelineConfig | None = None) -> np.ndarray:
    """Blur -> contrast -> grayscale -> adaptive threshold, always in that order."""
    check_buffer(buf)
    config = config or PipelineConfig()
    h, w = buf.shape[:2]
    logger.debug("Preprocessing %dx%d buffer with %s", w, h, config)

    out = gaussian_blur(buf, config.blur_radius)
    out = enhance_contrast(out, config.contrast_factor)
    out = to_grayscale(out, config.grayscale_blend)
    out = adaptive_threshold(out, config.threshold_window, config.threshold_bias)
    return out
