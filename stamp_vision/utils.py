from __future__ import annotations

import mimetypes
from pathlib import Path
from typing import Optional

import numpy as np

_EXTENSION_MIME = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
}


def read_bytes_any_path(path: str) -> Optional[bytes]:
    """Read a file supporting non-ASCII paths.

    Returns the raw bytes or None if failed.
    """
    try:
        return np.fromfile(path, dtype=np.uint8).tobytes()
    except OSError:
        return None


def save_bytes_any_path(path: str, data: bytes) -> bool:
    """Write bytes to path supporting non-ASCII characters."""
    try:
        target = Path(path)
        if target.parent and not target.parent.exists():
            target.parent.mkdir(parents=True, exist_ok=True)
        np.frombuffer(data, dtype=np.uint8).tofile(str(target))
        return True
    except OSError:
        return False


def guess_mime(path: str) -> str:
    """MIME type from the file extension; empty string when unknown."""
    ext = Path(path).suffix.lower()
    if ext in _EXTENSION_MIME:
        return _EXTENSION_MIME[ext]
    mime, _ = mimetypes.guess_type(path)
    return mime or ""


def to_float_mask(image: np.ndarray) -> np.ndarray:
    """Convert uint8 images to float32 in [0, 1]."""
    if image.dtype == np.uint8:
        return image.astype(np.float32) / 255.0
    return np.clip(image.astype(np.float32), 0.0, 1.0)


def to_uint8(image: np.ndarray) -> np.ndarray:
    """Convert float images in [0, 1] to uint8."""
    image = np.clip(image, 0.0, 1.0)
    return (image * 255.0).round().astype(np.uint8)
