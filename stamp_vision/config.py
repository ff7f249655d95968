from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Mapping, Optional, Tuple, Union

RGB = Tuple[int, int, int]

# loader
MAX_PIXELS = 4096 * 4096
MIN_SOURCE_ALPHA = 50  # below this the source pixel counts as background

# binarization
BACKGROUND_WINDOW_MIN = 15
BACKGROUND_WINDOW_MAX = 75
CUT_MIN = 0.02
CUT_MAX = 0.60
BAND_MIN = 0.02
BAND_MAX = 0.25
SATURATION_WEIGHT = 1.0

# cleanup
COMPONENT_CUTOFF = 0.0
NOISE_MIN_SIZE_FLOOR = 64
NOISE_AREA_FRACTION = 0.0025
MAX_BRIDGE_RADIUS = 4
MAX_EDGE_SIGMA = 1.5
MIN_EDGE_SIGMA = 0.3
THICKEN_FALLOFF = 0.85
MASK_EPSILON = 1.0 / 510.0

# recolor
DENSITY_FLOOR = 0.4

# simple mode
FINE_TUNE_NEUTRAL = 50.0
FINE_TUNE_SLOPE = 1.2

NAMED_INK_COLORS = {
    "black": (0, 0, 0),
    "dark_blue": (0, 51, 102),
}

# (low, high) for every numeric knob
PARAM_RANGES = {
    "threshold": (0.0, 100.0),
    "stroke_strength": (0.0, 100.0),
    "edge_smoothness": (0.0, 100.0),
    "noise_removal": (0.0, 100.0),
    "saturation_filter": (0.0, 100.0),
    "stroke_thickness": (-2, 2),
    "contrast_factor": (1.0, 3.0),
}

# keys used by the web client
_CAMEL_KEYS = {
    "strokeStrength": "stroke_strength",
    "edgeSmoothness": "edge_smoothness",
    "noiseRemoval": "noise_removal",
    "saturationFilter": "saturation_filter",
    "inkColor": "ink_color",
    "strokeThickness": "stroke_thickness",
    "contrastFactor": "contrast_factor",
}


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def parse_color(value: Union[None, str, RGB, list]) -> Optional[RGB]:
    """Coerce ``#rrggbb``, a named ink or an RGB sequence to a clamped tuple.

    ``None`` means "keep the source color".
    """
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip().lower()
        if text in NAMED_INK_COLORS:
            return NAMED_INK_COLORS[text]
        if text.startswith("#"):
            text = text[1:]
        if len(text) == 3:
            text = "".join(ch * 2 for ch in text)
        if len(text) != 6:
            raise ValueError(f"Invalid color: {value!r}")
        try:
            return tuple(int(text[i:i + 2], 16) for i in (0, 2, 4))
        except ValueError:
            raise ValueError(f"Invalid color: {value!r}") from None
    channels = tuple(value)
    if len(channels) != 3:
        raise ValueError(f"Invalid color: {value!r}")
    return tuple(int(round(clamp(float(c), 0, 255))) for c in channels)


@dataclass(frozen=True)
class ProcessingParams:
    """Knobs for one processing run.

    Every value is clamped into ``PARAM_RANGES`` on construction so that a
    slider at an extreme never produces an error.
    """

    threshold: float = 50.0
    stroke_strength: float = 30.0
    edge_smoothness: float = 40.0
    noise_removal: float = 30.0
    saturation_filter: float = 20.0
    ink_color: Optional[RGB] = None
    stroke_thickness: int = 0
    contrast_factor: float = 1.8

    def __post_init__(self):
        for name, (low, high) in PARAM_RANGES.items():
            value = clamp(getattr(self, name), low, high)
            if name == "stroke_thickness":
                value = int(round(value))
            else:
                value = float(value)
            object.__setattr__(self, name, value)
        object.__setattr__(self, "ink_color", parse_color(self.ink_color))

    def with_field(self, key: str, value: Any) -> "ProcessingParams":
        if key not in {f.name for f in fields(self)}:
            raise KeyError(key)
        return replace(self, **{key: value})

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ProcessingParams":
        names = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            key = _CAMEL_KEYS.get(key, key)
            if key in names:
                kwargs[key] = value
        return cls(**kwargs)


# A single shared default instance for simple use-cases
default_params = ProcessingParams()
