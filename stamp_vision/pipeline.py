"""End-to-end stamp pipeline: binarize -> cleanup -> recolor."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .binarization import binarize, flatten_on_paper
from .cleanup import bridge_radius, cleanup
from .config import ProcessingParams, default_params
from .errors import InternalInvariantViolation
from .models import ProcessedImage, RawImage
from .recolor import recolor

logger = logging.getLogger(__name__)


@dataclass
class PipelineOutputs:
    """Intermediate and final results of one run."""

    raw_mask: np.ndarray
    mask: np.ndarray
    image: ProcessedImage


def _check_mask(mask: np.ndarray, pixels: np.ndarray, stage: str) -> None:
    if mask.shape != pixels.shape[:2]:
        raise InternalInvariantViolation(
            f"{stage} produced a {mask.shape} mask for a {pixels.shape[:2]} image"
        )
    if mask.size and (float(mask.min()) < 0.0 or float(mask.max()) > 1.0):
        raise InternalInvariantViolation(f"{stage} produced mask values outside [0, 1]")


def run(raw: RawImage, params: Optional[ProcessingParams] = None) -> PipelineOutputs:
    """Run every stage on a private copy of the image pixels.

    Flow:
        1) Binarization: adaptive threshold against the local paper tone,
           optional rejection of saturated seal smears.
        2) Cleanup: component removal, directional closing, thickness,
           edge smoothing, in that order.
        3) Recolor: target ink color or deepened source color, alpha from
           the cleaned mask.
    """
    params = params or default_params
    pixels = np.array(raw.pixels, copy=True)
    try:
        raw_mask = binarize(pixels, params)
        _check_mask(raw_mask, pixels, "binarize")
        mask = cleanup(raw_mask, params)
        _check_mask(mask, pixels, "cleanup")
        fill = bridge_radius(params.stroke_strength) + max(0, params.stroke_thickness)
        rgba = recolor(flatten_on_paper(pixels), mask, params.ink_color, params.contrast_factor, fill_radius=fill)
    except InternalInvariantViolation:
        logger.exception("Invariant violated while processing a %dx%d image", raw.width, raw.height)
        raise

    image = ProcessedImage.from_rgba(rgba)
    logger.debug("process: %dx%d foreground=%d", raw.width, raw.height, int(np.count_nonzero(mask)))
    return PipelineOutputs(raw_mask=raw_mask, mask=mask, image=image)


def process(raw: RawImage, params: Optional[ProcessingParams] = None) -> ProcessedImage:
    """Pure function: the same image and parameters always give the same bytes."""
    return run(raw, params).image
