"""
测试presets.py与config.py模块
"""

import os
import sys

# 添加项目根目录到Python路径
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from stamp_vision.config import ProcessingParams, default_params, parse_color
from stamp_vision.presets import (
    CUSTOM,
    PRESET_LABELS,
    SIGNATURE_PRESETS,
    ModelState,
    ParameterModel,
    apply_fine_tune,
    get_preset,
    list_presets,
)


def test_initial_state_is_custom_defaults():
    model = ParameterModel()
    assert model.preset == CUSTOM
    assert model.state is ModelState.CUSTOM
    assert model.params == default_params
    assert model.fine_tune == 50
    assert model.advanced is False


def test_select_preset_loads_vector_and_resets_fine_tune():
    model = ParameterModel()
    model.set_fine_tune(80)
    model.select_preset("clara")
    assert model.preset == "clara"
    assert model.state is ModelState.PRESET
    assert model.params == SIGNATURE_PRESETS["clara"]
    assert model.fine_tune == 50


def test_edit_field_drops_preset_identity():
    model = ParameterModel()
    model.select_preset("oscura")
    model.edit_field("noise_removal", 12)
    assert model.preset == CUSTOM
    assert model.state is ModelState.CUSTOM
    assert model.params.noise_removal == 12
    assert model.params.threshold == SIGNATURE_PRESETS["oscura"].threshold


def test_fine_tune_keeps_preset_identity():
    model = ParameterModel()
    model.select_preset("escaneada")
    model.set_fine_tune(10)
    assert model.preset == "escaneada"
    assert model.state is ModelState.PRESET


def test_fine_tune_shifts_threshold_in_simple_mode():
    model = ParameterModel()
    model.select_preset("clara")
    model.set_fine_tune(75)
    # 30 + (75 - 50) * 1.2
    assert model.effective_params().threshold == pytest.approx(60.0)
    assert model.effective_params().stroke_strength == SIGNATURE_PRESETS["clara"].stroke_strength

    model.set_advanced(True)
    assert model.effective_params() == SIGNATURE_PRESETS["clara"]


def test_fine_tune_is_clamped():
    params = ProcessingParams(threshold=90)
    assert apply_fine_tune(params, 100).threshold == 100.0
    assert apply_fine_tune(ProcessingParams(threshold=10), 0).threshold == 0.0
    assert apply_fine_tune(params, 50) == params
    assert apply_fine_tune(ProcessingParams(threshold=30), 150).threshold == pytest.approx(90.0)


def test_unknown_preset_or_field():
    model = ParameterModel()
    with pytest.raises(KeyError):
        model.select_preset("acuarela")
    with pytest.raises(KeyError):
        get_preset("acuarela")
    with pytest.raises(KeyError):
        model.edit_field("gamma", 1)
    assert model.preset == CUSTOM


def test_list_presets_has_labels_and_custom_last():
    presets = list_presets()
    assert [p.name for p in presets] == ["clara", "oscura", "escaneada", "digital", CUSTOM]
    assert all(p.label == PRESET_LABELS[p.name] for p in presets)


def test_params_are_clamped_on_construction():
    params = ProcessingParams(threshold=150, noise_removal=-5, stroke_thickness=7, contrast_factor=0.2)
    assert params.threshold == 100.0
    assert params.noise_removal == 0.0
    assert params.stroke_thickness == 2
    assert params.contrast_factor == 1.0
    with pytest.raises(Exception):
        params.threshold = 10


def test_from_mapping_accepts_camel_case():
    params = ProcessingParams.from_mapping({
        "threshold": 40,
        "strokeStrength": 70,
        "inkColor": "#003366",
        "unknown": 1,
    })
    assert params.threshold == 40.0
    assert params.stroke_strength == 70.0
    assert params.ink_color == (0, 51, 102)
    assert params.noise_removal == default_params.noise_removal


@pytest.mark.parametrize("value,expected", [
    ("#003366", (0, 51, 102)),
    ("003366", (0, 51, 102)),
    ("#fff", (255, 255, 255)),
    ("black", (0, 0, 0)),
    ("Dark_Blue", (0, 51, 102)),
    ((300, -4, 12.6), (255, 0, 13)),
    (None, None),
])
def test_parse_color(value, expected):
    assert parse_color(value) == expected


@pytest.mark.parametrize("value", ["#12345", "#gggggg", (1, 2), "purple"])
def test_parse_color_rejects_garbage(value):
    with pytest.raises(ValueError):
        parse_color(value)
