"""Medical seal templates: a system-drawn seal and seal + signature stacking."""

from __future__ import annotations

import unicodedata
from typing import Optional

import cv2
import numpy as np

from .compositing import composite, fit_size
from .config import RGB, parse_color
from .models import CompositeLayer, ProcessedImage

SEAL_COLORS_RECOMMENDED = [
    {"name": "Azul oscuro", "hex": "#003366", "rgb": (0, 51, 102)},
    {"name": "Negro", "hex": "#000000", "rgb": (0, 0, 0)},
    {"name": "Rojo oscuro", "hex": "#8B0000", "rgb": (139, 0, 0)},
    {"name": "Verde oscuro", "hex": "#006400", "rgb": (0, 100, 0)},
]

DEFAULT_SEAL_COLOR: RGB = SEAL_COLORS_RECOMMENDED[0]["rgb"]
DEFAULT_SEAL_TITLE = "MÉDICO OCUPACIONAL"

SEAL_WIDTH = 280
SEAL_HEIGHT = 170
SEAL_BORDER_INSET = 8
SIGNATURE_ZONE_TOP = 95
SIGNATURE_ZONE_MARGIN = 12
SIGNATURE_MAX_WIDTH = 120
SIGNATURE_MAX_HEIGHT = 50
STACK_GAP = 12


def _ascii(text: str) -> str:
    # Hershey fonts only cover ASCII
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).encode("ascii", "replace").decode()


def _put_centered(canvas: np.ndarray, text: str, center_x: int, baseline: int, scale: float) -> None:
    font = cv2.FONT_HERSHEY_SIMPLEX
    (width, _), _ = cv2.getTextSize(text, font, scale, 1)
    cv2.putText(canvas, text, (center_x - width // 2, baseline), font, scale, 255, 1, cv2.LINE_AA)


def _ink_to_rgba(ink: np.ndarray, color: RGB) -> np.ndarray:
    rgba = np.zeros(ink.shape + (4,), dtype=np.uint8)
    rgba[..., :3] = np.asarray(color, dtype=np.uint8)
    rgba[..., 3] = ink
    return rgba


def render_system_seal(name: str, cmp: str, title: Optional[str] = None,
                       signature: Optional[ProcessedImage] = None,
                       color=None) -> ProcessedImage:
    """Draw the standard rectangular seal on a transparent 280x170 canvas.

    Lines: the upper-cased name, the title and ``C.M.P <cmp>``. A signature,
    when given, is fitted to 120 px wide and centered in the band below the
    text.
    """
    seal_color = parse_color(color) or DEFAULT_SEAL_COLOR
    ink = np.zeros((SEAL_HEIGHT, SEAL_WIDTH), dtype=np.uint8)
    inset = SEAL_BORDER_INSET
    cv2.rectangle(ink, (inset, inset), (SEAL_WIDTH - inset - 1, SEAL_HEIGHT - inset - 1), 255, 2)

    center = SEAL_WIDTH // 2
    _put_centered(ink, _ascii((name or "").upper()), center, 32, 0.42)
    _put_centered(ink, _ascii((title or DEFAULT_SEAL_TITLE).upper()), center, 50, 0.36)
    _put_centered(ink, _ascii(f"C.M.P {cmp or ''}"), center, 68, 0.36)

    seal = ProcessedImage.from_rgba(_ink_to_rgba(ink, seal_color))
    if signature is None:
        return seal

    band_height = SEAL_HEIGHT - SIGNATURE_ZONE_TOP - SIGNATURE_ZONE_MARGIN
    box_x = (SEAL_WIDTH - SIGNATURE_MAX_WIDTH) // 2
    layer = CompositeLayer(
        image=signature,
        anchor=(box_x, SIGNATURE_ZONE_TOP),
        bounds=(SIGNATURE_MAX_WIDTH, band_height),
        band=(SIGNATURE_ZONE_TOP, band_height),
    )
    return composite([CompositeLayer(seal), layer])


def stack_seal_and_signature(seal: ProcessedImage, signature: ProcessedImage,
                             background=None) -> ProcessedImage:
    """Seal on top (max 280 px wide), signature 12 px below it, centered.

    ``background`` fills the canvas with an opaque color; transparent by default.
    """
    seal_w, seal_h = fit_size(seal.width, seal.height, (SEAL_WIDTH, max(1, seal.height)))
    sig_w, sig_h = fit_size(signature.width, signature.height,
                            (SIGNATURE_MAX_WIDTH, SIGNATURE_MAX_HEIGHT))
    width = seal_w
    height = seal_h + STACK_GAP + sig_h

    fill = parse_color(background)
    base = ProcessedImage.blank(width, height)
    if fill is not None:
        pixels = np.empty((height, width, 4), dtype=np.uint8)
        pixels[..., :3] = np.asarray(fill, dtype=np.uint8)
        pixels[..., 3] = 255
        base = ProcessedImage(pixels)

    return composite([
        CompositeLayer(base),
        CompositeLayer(seal, anchor=(0, 0), bounds=(seal_w, seal_h)),
        CompositeLayer(signature, anchor=(0, seal_h + STACK_GAP), bounds=(width, sig_h)),
    ])
