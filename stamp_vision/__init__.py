"""Signature and seal stamp pipeline.

Turns a photographed or scanned signature/seal into a transparent,
recolorable stamp image and composites stamps onto each other.
"""

from stamp_vision.compositing import composite
from stamp_vision.config import ProcessingParams, default_params
from stamp_vision.errors import (
    EmptyCompositeError,
    ImageTooLargeError,
    InternalInvariantViolation,
    StampVisionError,
    UnsupportedFormatError,
    user_message,
)
from stamp_vision.loader import load_path, normalize
from stamp_vision.models import CompositeLayer, Preset, ProcessedImage, RawImage
from stamp_vision.pipeline import process
from stamp_vision.presets import ParameterModel, list_presets

__all__ = [
    "composite",
    "load_path",
    "list_presets",
    "normalize",
    "process",
    "user_message",
    "CompositeLayer",
    "ParameterModel",
    "Preset",
    "ProcessedImage",
    "ProcessingParams",
    "RawImage",
    "default_params",
    "EmptyCompositeError",
    "ImageTooLargeError",
    "InternalInvariantViolation",
    "StampVisionError",
    "UnsupportedFormatError",
]
