"""Signature presets and the preset/custom parameter model."""

from __future__ import annotations

import enum
from typing import Any, Dict, List

from . import config
from .config import ProcessingParams, clamp
from .models import Preset

CUSTOM = "personalizado"

# Available processing presets
SIGNATURE_PRESETS: Dict[str, ProcessingParams] = {
    # faint ballpoint or pencil: low cut, strong gap bridging
    "clara": ProcessingParams(
        threshold=30, stroke_strength=55, edge_smoothness=35,
        noise_removal=25, saturation_filter=20,
    ),
    # heavy marker: higher cut, little bridging
    "oscura": ProcessingParams(
        threshold=65, stroke_strength=15, edge_smoothness=30,
        noise_removal=35, saturation_filter=10,
    ),
    # paper scans: aggressive speckle removal, rejects colored seal smears
    "escaneada": ProcessingParams(
        threshold=40, stroke_strength=50, edge_smoothness=45,
        noise_removal=70, saturation_filter=35,
    ),
    # tablet/PDF exports: already clean
    "digital": ProcessingParams(
        threshold=55, stroke_strength=0, edge_smoothness=20,
        noise_removal=10, saturation_filter=0,
    ),
    CUSTOM: ProcessingParams(),
}

PRESET_LABELS = {
    "clara": "Firma clara",
    "oscura": "Firma oscura",
    "escaneada": "Escaneada",
    "digital": "Digital",
    CUSTOM: "Personalizado",
}


def get_preset(name: str) -> ProcessingParams:
    """Parameter vector of a preset; unknown names raise ``KeyError``."""
    return SIGNATURE_PRESETS[name]


def list_presets() -> List[Preset]:
    return [Preset(name=name, label=PRESET_LABELS[name], params=params)
            for name, params in SIGNATURE_PRESETS.items()]


def apply_fine_tune(params: ProcessingParams, fine_tune: float) -> ProcessingParams:
    """Shift ``threshold`` by ``(fine_tune - 50) * 1.2``; other fields untouched."""
    fine_tune = clamp(float(fine_tune), 0.0, 100.0)
    delta = (fine_tune - config.FINE_TUNE_NEUTRAL) * config.FINE_TUNE_SLOPE
    return params.with_field("threshold", clamp(params.threshold + delta, 0.0, 100.0))


class ModelState(enum.Enum):
    PRESET = "preset"
    CUSTOM = "custom"


class ParameterModel:
    """Active parameters of an editing session.

    Two states: a preset is selected (its name is the identity) or the
    vector is custom. Editing any field always drops the preset identity;
    the fine-tune knob never does.
    """

    def __init__(self):
        self._params = SIGNATURE_PRESETS[CUSTOM]
        self._preset = CUSTOM
        self._state = ModelState.CUSTOM
        self._fine_tune = config.FINE_TUNE_NEUTRAL
        self.advanced = False

    @property
    def params(self) -> ProcessingParams:
        return self._params

    @property
    def preset(self) -> str:
        return self._preset

    @property
    def state(self) -> ModelState:
        return self._state

    @property
    def fine_tune(self) -> float:
        return self._fine_tune

    def select_preset(self, name: str) -> ProcessingParams:
        self._params = get_preset(name)
        self._preset = name
        self._state = ModelState.PRESET
        self._fine_tune = config.FINE_TUNE_NEUTRAL
        return self._params

    def edit_field(self, key: str, value: Any) -> ProcessingParams:
        self._params = self._params.with_field(key, value)
        self._preset = CUSTOM
        self._state = ModelState.CUSTOM
        return self._params

    def set_fine_tune(self, value: float) -> None:
        self._fine_tune = clamp(float(value), 0.0, 100.0)

    def set_advanced(self, flag: bool) -> None:
        self.advanced = bool(flag)

    def effective_params(self) -> ProcessingParams:
        """Vector to render with: stored in advanced mode, fine-tuned in simple mode."""
        if self.advanced:
            return self._params
        return apply_fine_tune(self._params, self._fine_tune)
