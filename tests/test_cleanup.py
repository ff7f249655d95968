"""
测试cleanup.py模块
"""

import os
import sys

# 添加项目根目录到Python路径
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import numpy as np
import pytest

from stamp_vision import cleanup
from stamp_vision.binarization import binarize
from stamp_vision.config import ProcessingParams
from stamp_vision.errors import InternalInvariantViolation
from synthetic import reference_signature


def test_min_component_size_scales_with_area():
    assert cleanup.min_component_size(0, (100, 100)) == 0
    assert cleanup.min_component_size(100, (100, 100)) == 64
    assert cleanup.min_component_size(100, (400, 400)) == 400
    assert cleanup.min_component_size(50, (100, 100)) == 16


def test_remove_small_components():
    mask = np.zeros((100, 100), np.float32)
    mask[10:13, 10:13] = 1.0
    mask[50:70, 50:70] = 0.7
    out = cleanup.remove_small_components(mask, 100)
    assert not out[10:13, 10:13].any()
    assert np.all(out[50:70, 50:70] == np.float32(0.7))

    untouched = cleanup.remove_small_components(mask, 0)
    assert np.array_equal(untouched, mask)


def test_bridge_gaps_joins_broken_stroke_without_thickening():
    mask = np.zeros((21, 50), np.float32)
    mask[10, 5:21] = 1.0
    mask[10, 24:41] = 1.0
    bridged = cleanup.bridge_gaps(mask, 100)
    assert np.all(bridged[10, 5:41] == 1.0)
    assert not bridged[9].any()
    assert not bridged[11].any()

    assert np.array_equal(cleanup.bridge_gaps(mask, 0), mask)


def test_adjust_thickness():
    mask = np.zeros((21, 21), np.float32)
    mask[10, 10] = 1.0
    thick = cleanup.adjust_thickness(mask, 1)
    assert thick[10, 10] == 1.0
    assert thick[10, 11] == pytest.approx(0.85)
    assert thick[10, 13] == 0.0

    block = np.zeros((21, 21), np.float32)
    block[9:12, 9:12] = 1.0
    thin = cleanup.adjust_thickness(block, -1)
    assert thin.sum() == pytest.approx(1.0)
    assert thin[10, 10] == 1.0


def test_smooth_edges():
    mask = np.zeros((21, 21), np.float32)
    mask[8:13, 8:13] = 1.0
    assert np.array_equal(cleanup.smooth_edges(mask, 0), mask)
    assert np.array_equal(cleanup.smooth_edges(mask, 15), mask)
    soft = cleanup.smooth_edges(mask, 100)
    assert 0.0 < soft[10, 7] < 1.0
    assert soft[10, 10] < 1.0
    assert soft.max() <= 1.0


def test_reach_radius():
    assert cleanup.reach_radius(ProcessingParams()) == 4
    wide = ProcessingParams(stroke_strength=100, stroke_thickness=2, edge_smoothness=100)
    assert cleanup.reach_radius(wide) == 12
    assert cleanup.reach_radius(ProcessingParams(stroke_strength=0, edge_smoothness=0)) == 0


def test_cleanup_stays_within_reach():
    mask = np.zeros((41, 41), np.float32)
    mask[20, 20] = 1.0
    params = ProcessingParams(noise_removal=0, stroke_strength=100, stroke_thickness=2, edge_smoothness=100)
    out = cleanup.cleanup(mask, params)
    radius = cleanup.reach_radius(params)
    ys, xs = np.nonzero(out)
    assert len(ys) > 1
    assert np.all(np.abs(ys - 20) <= radius)
    assert np.all(np.abs(xs - 20) <= radius)
    assert out.min() >= 0.0 and out.max() <= 1.0


def test_noise_removal_runs_before_gap_bridging():
    # a 2x2 blot two pixels past the end of a stroke
    mask = np.zeros((60, 80), np.float32)
    mask[29:31, 10:50] = 1.0
    mask[29:31, 52:54] = 1.0
    params = ProcessingParams(noise_removal=100, stroke_strength=100, edge_smoothness=0)

    out = cleanup.cleanup(mask, params)
    assert np.all(out[29:31, 10:50] == 1.0)
    assert not out[29:31, 50:].any()

    # bridging first would merge the blot into the stroke and keep it
    reversed_order = cleanup.remove_small_components(cleanup.bridge_gaps(mask, 100), 100)
    assert reversed_order[29:31, 52:54].min() > 0


def test_more_noise_removal_never_adds_foreground():
    raw_mask = binarize(np.array(reference_signature().pixels), ProcessingParams())
    light = cleanup.cleanup(raw_mask, ProcessingParams(noise_removal=20))
    heavy = cleanup.cleanup(raw_mask, ProcessingParams(noise_removal=90))
    assert np.all(heavy <= light)


def test_tiny_values_are_zeroed():
    mask = np.full((10, 10), 1.0 / 1000, np.float32)
    params = ProcessingParams(noise_removal=0, stroke_strength=0, edge_smoothness=0)
    assert not cleanup.cleanup(mask, params).any()


def test_rejects_non_2d_mask():
    with pytest.raises(InternalInvariantViolation):
        cleanup.cleanup(np.zeros((4, 4, 1), np.float32), ProcessingParams())
