"""Synthetic test images shared by the test modules."""

import cv2
import numpy as np

from stamp_vision.loader import normalize
from stamp_vision.models import ProcessedImage, RawImage


def paper(height, width, value=255):
    img = np.full((height, width, 4), value, dtype=np.uint8)
    img[..., 3] = 255
    return img


def encode_png(rgba):
    ok, buf = cv2.imencode(".png", cv2.cvtColor(rgba, cv2.COLOR_RGBA2BGRA))
    assert ok
    return buf.tobytes()


def encode_jpeg(rgb, quality=95):
    ok, buf = cv2.imencode(".jpg", cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR), [cv2.IMWRITE_JPEG_QUALITY, quality])
    assert ok
    return buf.tobytes()


def jpeg_with_orientation(rgb, orientation):
    """JPEG carrying a big-endian Exif APP1 segment with a single Orientation tag."""
    tiff = b"MM\x00\x2a" + (8).to_bytes(4, "big") + (1).to_bytes(2, "big")
    tiff += (0x0112).to_bytes(2, "big") + (3).to_bytes(2, "big") + (1).to_bytes(4, "big")
    tiff += orientation.to_bytes(2, "big") + b"\x00\x00" + (0).to_bytes(4, "big")
    payload = b"Exif\x00\x00" + tiff
    app1 = b"\xff\xe1" + (len(payload) + 2).to_bytes(2, "big") + payload
    jpeg = encode_jpeg(rgb)
    return jpeg[:2] + app1 + jpeg[2:]


def raw_from(rgba):
    return RawImage(pixels=rgba, source_format="png")


def solid_layer(width, height, color, alpha=255):
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    pixels[..., :3] = color
    pixels[..., 3] = alpha
    return ProcessedImage.from_rgba(pixels)


def scanned_signature():
    """400x150 scan: faint pencil stroke with a 3 px break, plus one ink blot.

    Stroke rows 74-75 from x=20 to x=379, break at x=200..202.
    Blot: filled circle of radius 2 centered at (300, 20).
    """
    img = paper(150, 400)
    img[74:76, 20:200, :3] = 140
    img[74:76, 203:380, :3] = 140
    cv2.circle(img, (300, 20), 2, (30, 30, 30, 255), -1)
    return raw_from(img)


def scanned_signature_png():
    return encode_png(np.array(scanned_signature().pixels))


def reference_signature():
    """Deterministic handwriting-like sample."""
    img = paper(120, 300)
    pts = np.array([[20, 80], [60, 30], [90, 90], [130, 40], [170, 85], [210, 35], [260, 70]], np.int32)
    cv2.polylines(img, [pts], False, (40, 40, 60, 255), 3, cv2.LINE_AA)
    cv2.line(img, (30, 100), (270, 100), (110, 110, 120, 255), 1, cv2.LINE_AA)
    img[10:14, 280:284, :3] = 20
    # uneven lighting on the right third
    img[:, 200:, :3] = (img[:, 200:, :3].astype(np.float32) * 0.85).astype(np.uint8)
    return normalize(encode_png(img), "image/png")


def reference_stroke():
    """40x40 paper with a solid black 20x4 bar at rows 18-21, columns 10-29."""
    img = paper(40, 40)
    img[18:22, 10:30, :3] = 0
    return raw_from(img)
