"""Blank-signature check.

A real signature introduces entropy: its PNG is noticeably larger than an
empty canvas and it has a minimum number of visible pixels.
"""

from __future__ import annotations

import numpy as np

from .errors import StampVisionError
from .loader import normalize
from .models import ProcessedImage

MIN_ENCODED_BYTES = 600
MIN_INK_PIXELS = 50
SIGNATURE_VALIDATION_ERROR = "The signature must contain a real stroke; blank signatures are not allowed."


def ink_pixel_count(image: ProcessedImage) -> int:
    return int(np.count_nonzero(image.alpha))


def has_ink(image: ProcessedImage, min_pixels: int = MIN_INK_PIXELS) -> bool:
    return ink_pixel_count(image) >= min_pixels


def is_valid_signature(png: bytes, min_pixels: int = MIN_INK_PIXELS) -> bool:
    if not png or len(png) < MIN_ENCODED_BYTES:
        return False
    try:
        raw = normalize(png, "image/png")
    except StampVisionError:
        return False
    return has_ink(ProcessedImage(raw.pixels), min_pixels)
