"""Layer compositing in premultiplied-alpha space."""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple

import cv2
import numpy as np

from .errors import EmptyCompositeError
from .models import CompositeLayer, ProcessedImage
from .utils import to_uint8

logger = logging.getLogger(__name__)


def premultiply(pixels: np.ndarray) -> np.ndarray:
    """RGBA8 -> float32 premultiplied RGBA in [0, 1]."""
    out = pixels.astype(np.float32) / 255.0
    out[..., :3] *= out[..., 3:4]
    return out


def unpremultiply(buffer: np.ndarray) -> np.ndarray:
    """float32 premultiplied RGBA -> RGBA8, transparent pixels become (0,0,0,0)."""
    alpha = np.clip(buffer[..., 3], 0.0, 1.0)
    rgb = np.zeros(buffer.shape[:2] + (3,), dtype=np.float32)
    visible = alpha > 0
    rgb[visible] = buffer[visible, :3] / alpha[visible, None]
    out = np.empty(buffer.shape[:2] + (4,), dtype=np.uint8)
    out[..., :3] = to_uint8(rgb)
    out[..., 3] = to_uint8(alpha)
    out[out[..., 3] == 0, :3] = 0
    return out


def fit_size(width: int, height: int, bounds: Optional[Tuple[int, int]]) -> Tuple[int, int]:
    """Largest size inside ``bounds`` with the same aspect ratio, never upscaled."""
    if bounds is None:
        return width, height
    if width <= 0 or height <= 0:
        return 0, 0
    max_w, max_h = bounds
    scale = min(1.0, max_w / float(width), max_h / float(height))
    if scale >= 1.0:
        return width, height
    return max(0, int(round(width * scale))), max(0, int(round(height * scale)))


def placement(layer: CompositeLayer, width: int, height: int) -> Tuple[int, int]:
    """Top-left canvas position of a layer already scaled to ``width`` x ``height``."""
    x, y = int(layer.anchor[0]), int(layer.anchor[1])
    if layer.bounds is not None:
        box_w, box_h = layer.bounds
        x += (int(box_w) - width) // 2
        y += (int(box_h) - height) // 2
    if layer.band is not None:
        top, band_h = layer.band
        y = int(top) + (int(band_h) - height) // 2
    return x, y


def _scaled_premultiplied(layer: CompositeLayer) -> np.ndarray:
    src = premultiply(layer.image.pixels)
    width, height = fit_size(layer.image.width, layer.image.height, layer.bounds)
    if width == 0 or height == 0:
        return src[:0, :0]
    if (width, height) != (layer.image.width, layer.image.height):
        # resizing premultiplied values keeps transparent neighbours from tinting edges
        src = cv2.resize(src, (width, height), interpolation=cv2.INTER_AREA)
    return src


def blend_over(canvas: np.ndarray, src: np.ndarray, x: int, y: int) -> None:
    """Paint premultiplied ``src`` over ``canvas`` at (x, y), clipped to the canvas."""
    canvas_h, canvas_w = canvas.shape[:2]
    src_h, src_w = src.shape[:2]
    x0, y0 = max(0, x), max(0, y)
    x1, y1 = min(canvas_w, x + src_w), min(canvas_h, y + src_h)
    if x1 <= x0 or y1 <= y0:
        return
    patch = src[y0 - y:y1 - y, x0 - x:x1 - x]
    region = canvas[y0:y1, x0:x1]
    region *= 1.0 - patch[..., 3:4]
    region += patch


def composite(layers: Sequence[CompositeLayer]) -> ProcessedImage:
    """Merge layers in order, later layers painted over earlier ones.

    The first layer defines the canvas size and is placed at the origin.
    """
    layers = list(layers or [])
    if not layers:
        raise EmptyCompositeError()

    base = layers[0].image
    if len(layers) == 1:
        return ProcessedImage(base.pixels.copy())

    canvas = premultiply(base.pixels)
    for index, layer in enumerate(layers[1:], start=1):
        src = _scaled_premultiplied(layer)
        if src.size == 0:
            logger.debug("composite: layer %d has an empty placement, skipped", index)
            continue
        x, y = placement(layer, src.shape[1], src.shape[0])
        blend_over(canvas, src, x, y)

    return ProcessedImage(unpremultiply(canvas))
