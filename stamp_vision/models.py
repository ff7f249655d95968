"""Shared image containers for the stamp pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import cv2
import numpy as np

from .config import ProcessingParams
from .errors import InternalInvariantViolation


def _require_rgba(pixels: np.ndarray) -> None:
    if not isinstance(pixels, np.ndarray) or pixels.ndim != 3 or pixels.shape[2] != 4:
        shape = getattr(pixels, "shape", None)
        raise InternalInvariantViolation(f"expected an HxWx4 RGBA buffer, got shape {shape}")
    if pixels.dtype != np.uint8:
        raise InternalInvariantViolation(f"expected uint8 pixels, got {pixels.dtype}")


def _frozen(pixels: np.ndarray) -> np.ndarray:
    out = np.ascontiguousarray(pixels).copy()
    out.flags.writeable = False
    return out


@dataclass(frozen=True, eq=False)
class RawImage:
    """Decoded input image (RGBA8, display orientation)."""

    pixels: np.ndarray
    source_format: str

    def __post_init__(self):
        _require_rgba(self.pixels)
        object.__setattr__(self, "pixels", _frozen(self.pixels))

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])


@dataclass(frozen=True, eq=False)
class ProcessedImage:
    """Final RGBA8 output; identity is its byte content."""

    pixels: np.ndarray

    def __post_init__(self):
        _require_rgba(self.pixels)
        object.__setattr__(self, "pixels", _frozen(self.pixels))

    @classmethod
    def from_rgba(cls, pixels: np.ndarray) -> "ProcessedImage":
        """Build an output image, forcing RGB=(0,0,0) where alpha is 0."""
        _require_rgba(pixels)
        out = pixels.copy()
        out[out[..., 3] == 0, :3] = 0
        return cls(out)

    @classmethod
    def blank(cls, width: int, height: int) -> "ProcessedImage":
        return cls(np.zeros((max(0, height), max(0, width), 4), dtype=np.uint8))

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def alpha(self) -> np.ndarray:
        return self.pixels[..., 3]

    def to_png(self) -> bytes:
        """Lossless, alpha-preserving PNG encoding."""
        ok, encoded = cv2.imencode(".png", cv2.cvtColor(self.pixels, cv2.COLOR_RGBA2BGRA))
        if not ok:
            raise InternalInvariantViolation("PNG encoder rejected the buffer")
        return encoded.tobytes()

    def __eq__(self, other):
        if not isinstance(other, ProcessedImage):
            return NotImplemented
        return self.pixels.shape == other.pixels.shape and bool(np.array_equal(self.pixels, other.pixels))

    __hash__ = None


@dataclass(frozen=True)
class CompositeLayer:
    """A processed image plus its placement on the composite canvas.

    Attributes:
        image: the layer pixels.
        anchor: top-left corner (x, y) of the placement box.
        bounds: optional (width, height) box the image is shrunk to fit,
            preserving aspect ratio. The image is centered in the box.
        band: optional (top, height) band the image is vertically centered in.
    """

    image: ProcessedImage
    anchor: Tuple[int, int] = (0, 0)
    bounds: Optional[Tuple[int, int]] = None
    band: Optional[Tuple[int, int]] = None


@dataclass(frozen=True)
class Preset:
    name: str
    label: str
    params: ProcessingParams
