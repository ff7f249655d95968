"""Decode PNG/JPEG bytes into a canonical RGBA8 ``RawImage``."""

from __future__ import annotations

import logging
from typing import Optional, Tuple

import cv2
import numpy as np

from . import config
from .errors import ImageTooLargeError, UnsupportedFormatError
from .models import RawImage
from .utils import guess_mime, read_bytes_any_path

logger = logging.getLogger(__name__)

SUPPORTED_MIME_TYPES = {
    "image/png": "png",
    "png": "png",
    "image/jpeg": "jpeg",
    "image/jpg": "jpeg",
    "image/pjpeg": "jpeg",
    "jpeg": "jpeg",
    "jpg": "jpeg",
}

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
JPEG_SIGNATURE = b"\xff\xd8\xff"

# start-of-frame markers carry the frame size
_JPEG_SOF = {0xC0, 0xC1, 0xC2, 0xC3, 0xC5, 0xC6, 0xC7, 0xC9, 0xCA, 0xCB, 0xCD, 0xCE, 0xCF}


def resolve_format(mime_type: str) -> str:
    key = (mime_type or "").split(";", 1)[0].strip().lower()
    fmt = SUPPORTED_MIME_TYPES.get(key)
    if fmt is None:
        raise UnsupportedFormatError(
            f"Unsupported image type {mime_type!r}; allowed formats are PNG and JPEG"
        )
    return fmt


def _png_size(data: bytes) -> Optional[Tuple[int, int]]:
    if len(data) < 24 or data[12:16] != b"IHDR":
        return None
    return int.from_bytes(data[16:20], "big"), int.from_bytes(data[20:24], "big")


def _jpeg_size(data: bytes) -> Optional[Tuple[int, int]]:
    i, n = 2, len(data)
    while i + 4 <= n:
        if data[i] != 0xFF:
            i += 1
            continue
        marker = data[i + 1]
        if marker == 0xFF:
            i += 1
            continue
        if marker == 0x01 or 0xD0 <= marker <= 0xD8:
            i += 2
            continue
        if marker in (0xD9, 0xDA):
            break
        length = int.from_bytes(data[i + 2:i + 4], "big")
        if marker in _JPEG_SOF and i + 9 <= n:
            height = int.from_bytes(data[i + 5:i + 7], "big")
            width = int.from_bytes(data[i + 7:i + 9], "big")
            return width, height
        i += 2 + length
    return None


def _check_size(width: int, height: int, max_pixels: int) -> None:
    if width * height > max_pixels:
        raise ImageTooLargeError(width, height, max_pixels)


def _to_rgba(decoded: np.ndarray) -> np.ndarray:
    if decoded.dtype == np.uint16:
        decoded = ((decoded.astype(np.uint32) + 128) // 257).astype(np.uint8)
    elif decoded.dtype != np.uint8:
        raise UnsupportedFormatError(f"Unsupported sample type {decoded.dtype}")

    if decoded.ndim == 2:
        return cv2.cvtColor(decoded, cv2.COLOR_GRAY2RGBA)
    channels = decoded.shape[2]
    if channels == 1:
        return cv2.cvtColor(decoded[..., 0], cv2.COLOR_GRAY2RGBA)
    if channels == 2:
        gray, alpha = decoded[..., 0], decoded[..., 1]
        return np.dstack([gray, gray, gray, alpha])
    if channels == 3:
        return cv2.cvtColor(decoded, cv2.COLOR_BGR2RGBA)
    if channels == 4:
        return cv2.cvtColor(decoded, cv2.COLOR_BGRA2RGBA)
    raise UnsupportedFormatError(f"Unsupported channel count {channels}")


def normalize(data: bytes, mime_type: str, max_pixels: Optional[int] = None) -> RawImage:
    """Decode encoded image bytes into a display-oriented RGBA8 image.

    Args:
        data: encoded PNG or JPEG bytes.
        mime_type: declared type, e.g. ``image/png``.
        max_pixels: pixel-count cap, defaults to ``config.MAX_PIXELS``.

    Raises:
        UnsupportedFormatError: the type is not PNG/JPEG, or the bytes do not
            decode as the declared type.
        ImageTooLargeError: the image exceeds the pixel cap. The image is
            never downsampled here.
    """
    fmt = resolve_format(mime_type)
    limit = config.MAX_PIXELS if max_pixels is None else int(max_pixels)
    data = bytes(data or b"")

    if fmt == "png":
        if not data.startswith(PNG_SIGNATURE):
            raise UnsupportedFormatError("Declared PNG but the content is not a PNG image")
        header_size = _png_size(data)
        flag = cv2.IMREAD_UNCHANGED
    else:
        if not data.startswith(JPEG_SIGNATURE):
            raise UnsupportedFormatError("Declared JPEG but the content is not a JPEG image")
        header_size = _jpeg_size(data)
        # IMREAD_COLOR applies the EXIF orientation tag
        flag = cv2.IMREAD_COLOR

    if header_size is not None:
        _check_size(header_size[0], header_size[1], limit)

    decoded = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), flag)
    if decoded is None or decoded.size == 0:
        raise UnsupportedFormatError(f"Could not decode the {fmt.upper()} image")

    rgba = _to_rgba(decoded)
    height, width = rgba.shape[:2]
    _check_size(width, height, limit)
    logger.debug("Decoded %s image %dx%d", fmt, width, height)
    return RawImage(pixels=rgba, source_format=fmt)


def load_path(path: str, max_pixels: Optional[int] = None) -> RawImage:
    """Read and normalize an image file; the MIME type comes from the extension."""
    data = read_bytes_any_path(path)
    if data is None:
        raise FileNotFoundError(f"Failed to read: {path}")
    return normalize(data, guess_mime(path), max_pixels=max_pixels)
