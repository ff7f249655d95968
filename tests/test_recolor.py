"""
测试recolor.py模块
"""

import os
import sys

# 添加项目根目录到Python路径
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import numpy as np
import pytest

from stamp_vision.errors import InternalInvariantViolation
from stamp_vision.models import ProcessedImage
from stamp_vision.recolor import apply_seal_color, recolor


def _colors(*values):
    return np.array([[[v, v, v] for v in values]], dtype=np.float32)


def test_ink_color_keeps_density_as_alpha():
    rgb = _colors(0, 200)
    out = recolor(rgb, np.ones((1, 2), np.float32), ink_color=(0, 51, 102))
    assert out.dtype == np.uint8
    assert np.all(out[0, :, :3] == (0, 51, 102))
    assert out[0, 0, 3] == 255
    assert out[0, 1, 3] == 161


def test_preserve_mode_deepens_source_color():
    out = recolor(_colors(200, 255), np.ones((1, 2), np.float32), contrast_factor=1.8)
    assert tuple(out[0, 0]) == (156, 156, 156, 255)
    assert tuple(out[0, 1]) == (255, 255, 255, 255)


def test_mask_scales_alpha():
    out = recolor(_colors(0, 0), np.array([[0.5, 0.0]], np.float32))
    assert out[0, 0, 3] == 128


def test_transparent_pixels_carry_black():
    out = recolor(_colors(200, 90), np.zeros((1, 2), np.float32), ink_color=(255, 0, 0))
    assert not out.any()


def test_fill_radius_samples_neighbouring_ink():
    rgb = np.zeros((5, 5, 3), np.float32)
    rgb[2, 2] = 255
    plain = recolor(rgb, np.ones((5, 5), np.float32))
    filled = recolor(rgb, np.ones((5, 5), np.float32), fill_radius=1)
    assert tuple(plain[2, 2, :3]) == (255, 255, 255)
    assert tuple(filled[2, 2, :3]) == (0, 0, 0)


def test_shape_mismatch_raises():
    with pytest.raises(InternalInvariantViolation):
        recolor(np.zeros((4, 4, 3), np.float32), np.zeros((4, 5), np.float32))
    with pytest.raises(InternalInvariantViolation):
        recolor(np.zeros((4, 4), np.float32), np.zeros((4, 4), np.float32))


def test_apply_seal_color():
    pixels = np.zeros((1, 3, 4), np.uint8)
    pixels[0, 0] = (10, 20, 30, 200)
    pixels[0, 1] = (10, 20, 30, 5)
    image = ProcessedImage(pixels)

    red = apply_seal_color(image, "#8B0000")
    assert tuple(red.pixels[0, 0]) == (139, 0, 0, 200)
    assert tuple(red.pixels[0, 1]) == (10, 20, 30, 5)
    assert tuple(red.pixels[0, 2]) == (0, 0, 0, 0)

    assert apply_seal_color(image, None) == image
    with pytest.raises(ValueError):
        apply_seal_color(image, "#12")
