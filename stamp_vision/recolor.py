"""Recoloring: turn a foreground mask plus source colors into RGBA output."""

from __future__ import annotations

from typing import Optional

import cv2
import numpy as np

from . import config
from .binarization import luminance
from .config import RGB, parse_color
from .errors import InternalInvariantViolation
from .models import ProcessedImage
from .utils import to_float_mask, to_uint8


def ink_density(lum: np.ndarray, contrast_factor: float) -> np.ndarray:
    """How much ink a pixel carries, 0 (paper) to 1 (solid), deepened by contrast."""
    return np.clip((1.0 - lum / 255.0) * contrast_factor, 0.0, 1.0)


def deepen(rgb: np.ndarray, contrast_factor: float) -> np.ndarray:
    """Push colors away from white so faint ink reads darker."""
    return np.clip(255.0 - (255.0 - rgb) * contrast_factor, 0.0, 255.0)


def recolor(rgb: np.ndarray, mask: np.ndarray, ink_color: Optional[RGB] = None,
            contrast_factor: float = 1.8, fill_radius: int = 0) -> np.ndarray:
    """Produce RGBA8 pixels from source colors and an opacity mask.

    With ``ink_color`` every visible pixel takes that color and the stroke
    density of the source survives as an alpha gradient. Without it the
    source color is kept and deepened by ``contrast_factor``.

    ``fill_radius`` widens the color sampling so that pixels bridged by the
    cleanup stage pick up neighbouring ink instead of paper white.
    """
    if rgb.ndim != 3 or rgb.shape[2] != 3:
        raise InternalInvariantViolation(f"recolor expects HxWx3 colors, got {rgb.shape}")
    if mask.shape != rgb.shape[:2]:
        raise InternalInvariantViolation(
            f"mask {mask.shape} does not match image {rgb.shape[:2]}"
        )

    source = rgb.astype(np.float32)
    if fill_radius > 0:
        size = 2 * fill_radius + 1
        kernel = cv2.getStructuringElement(cv2.MORPH_ELLIPSE, (size, size))
        source = cv2.erode(source, kernel)

    mask = to_float_mask(mask)
    if ink_color is not None:
        density = ink_density(luminance(source), contrast_factor)
        alpha = mask * (config.DENSITY_FLOOR + (1.0 - config.DENSITY_FLOOR) * density)
        color = np.empty_like(source)
        color[...] = np.asarray(ink_color, dtype=np.float32)
    else:
        alpha = mask
        color = deepen(source, contrast_factor)

    out = np.empty(mask.shape + (4,), dtype=np.uint8)
    out[..., :3] = np.round(color).astype(np.uint8)
    out[..., 3] = to_uint8(alpha)
    # fully transparent pixels carry black so later blends never sample stray color
    out[out[..., 3] == 0, :3] = 0
    return out


def apply_seal_color(image: ProcessedImage, color) -> ProcessedImage:
    """Repaint an already processed image in a seal color, keeping its alpha.

    Pixels with alpha below 10 are left untouched.
    """
    target = parse_color(color)
    if target is None:
        return ProcessedImage(image.pixels.copy())
    pixels = image.pixels.copy()
    visible = pixels[..., 3] >= 10
    pixels[visible, :3] = np.asarray(target, dtype=np.uint8)
    return ProcessedImage.from_rgba(pixels)
