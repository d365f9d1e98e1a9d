from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image

from .filters import check_buffer

logger = logging.getLogger(__name__)

ImageSource = Union[str, Path, bytes]


def load_pixels(source: ImageSource) -> np.ndarray:
    """Decode an image file path or raw file bytes into a (height, width, 4) uint8 buffer."""
    if isinstance(source, bytes):
        img = Image.open(io.BytesIO(source))
    else:
        img = Image.open(source)
    with img:
        rgba = img.convert("RGBA")
        buf = np.array(rgba, dtype=np.uint8)
    logger.debug("Loaded %dx%d image", buf.shape[1], buf.shape[0])
    return buf


def to_image(buf: np.ndarray) -> Image.Image:
    check_buffer(buf)
    return Image.fromarray(np.ascontiguousarray(buf, dtype=np.uint8))


def save_pixels(buf: np.ndarray, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    img = to_image(buf)
    # JPEG has no alpha channel
    if path.suffix.lower() in (".jpg", ".jpeg"):
        img = img.convert("RGB")
    img.save(path)
