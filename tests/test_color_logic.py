import numpy as np
import pytest

from babyvision.domain.interfaces import ColorModel, PipelineContext
from babyvision.domain.presets import AGE_PRESETS
from babyvision.features.color.logic import (
    apply_color_vision,
    remap_infant_color,
    remap_lms_color,
)
from babyvision.features.color.processor import ColorVisionProcessor


def _lin(rgb):
    return np.array([[rgb]], dtype=np.float32)


def test_saturated_red_at_one_month():
    out = remap_infant_color(_lin((1.0, 0.0, 0.0)), AGE_PRESETS[1], 1)[0, 0]
    desat = 0.85 * 0.2126
    assert out[0] == pytest.approx(desat + 0.6 * 0.25, abs=1e-4)
    assert out[1] == pytest.approx(desat * 0.4, abs=1e-4)
    assert out[2] == pytest.approx(desat * 0.15, abs=1e-4)
    assert out[0] > 4 * out[1] > 4 * out[2]


def test_saturated_red_frame_at_one_month(make_frame):
    out = apply_color_vision(make_frame(32, 32, (255, 0, 0)), AGE_PRESETS[1], 1)
    r, g, b, a = out.pixel(16, 16)
    assert r > g > b
    assert a == 255
    assert np.all(out.rgb == out.rgb[0, 0])


def test_gray_cast_follows_cone_order():
    out = remap_infant_color(_lin((0.2158, 0.2158, 0.2158)), AGE_PRESETS[1], 1)[0, 0]
    assert out[0] == pytest.approx(0.2158, abs=1e-3)
    assert out[1] == pytest.approx(0.0734, abs=1e-3)
    assert out[2] == pytest.approx(0.0275, abs=1e-3)


def test_two_months_caps_blue():
    out = remap_infant_color(_lin((0.0, 0.0, 1.0)), AGE_PRESETS[2], 2)[0, 0]
    assert out[2] == pytest.approx(0.0722 * 0.3, abs=1e-4)


def test_three_months_is_per_channel_scaling():
    out = remap_infant_color(_lin((0.5, 0.5, 1.0)), AGE_PRESETS[3], 3)[0, 0]
    assert np.allclose(out, [0.475, 0.425, 0.7], atol=1e-5)


def test_remap_clamped():
    rng = np.random.default_rng(11)
    lin = rng.random((8, 8, 3)).astype(np.float32)
    for age, preset in AGE_PRESETS.items():
        for fn in (remap_infant_color, remap_lms_color):
            out = fn(lin, preset, age)
            assert out.shape == lin.shape
            assert np.all((out >= 0.0) & (out <= 1.0))


def test_lms_model_matures_toward_white():
    white = _lin((1.0, 1.0, 1.0))
    young = remap_lms_color(white, AGE_PRESETS[1], 1)[0, 0]
    older = remap_lms_color(white, AGE_PRESETS[3], 3)[0, 0]
    assert older[1] > young[1]
    assert older[2] > young[2]
    # Missing M/S response leaves a red cast
    assert young[0] > young[1] > young[2]


def test_processor_uses_context_model(make_frame):
    frame = make_frame(4, 4, (120, 160, 200))
    infant = PipelineContext(age=2)
    lms = PipelineContext(age=2, color_model=ColorModel.LMS)
    a = ColorVisionProcessor().process(frame, infant)
    b = ColorVisionProcessor().process(frame, lms)
    assert a.pixel(0, 0) != b.pixel(0, 0)
    assert a.pixel(0, 0) == apply_color_vision(frame, AGE_PRESETS[2], 2).pixel(0, 0)
