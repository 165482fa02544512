import numpy as np

from babyvision.domain.buffer import PixelBuffer
from babyvision.domain.constants import PIPELINE_CONSTANTS
from babyvision.domain.interfaces import ColorModel
from babyvision.domain.presets import AgePreset
from babyvision.domain.types import ImageBuffer
from babyvision.kernel.image.color import (
    apply_cone_sensitivity,
    apply_von_kries,
    linear_to_srgb,
    lms_to_rgb,
    rgb_to_lms,
    srgb_to_linear,
    von_kries_factor,
)
from babyvision.kernel.image.logic import clamp01, float_to_uint8, get_luminance, uint8_to_float32
from babyvision.kernel.system.performance import time_function


def remap_infant_color(lin: ImageBuffer, preset: AgePreset, age: int) -> ImageBuffer:
    """
    Cone-maturation color remap in linear light.

    L-cones mature first, M-cones gradually, S-cones last. At one month the
    signal is a desaturated luminance image with a residual red channel; from
    two months each channel is scaled by its cone sensitivity, with blue
    still capped against luminance at two months.
    """
    c = PIPELINE_CONSTANTS
    cones = preset.cone_sensitivity
    lum = get_luminance(lin)
    r, g, b = lin[..., 0], lin[..., 1], lin[..., 2]

    if age <= 1:
        desaturated = lum * c["infant_desaturation"]
        out_r = desaturated + r * cones.L * c["infant_red_gain"]
        out_g = desaturated * cones.M
        out_b = desaturated * cones.S
    else:
        out_r = r * cones.L
        out_g = g * cones.M
        out_b = b * cones.S
        if age == 2:
            out_b = np.minimum(out_b, lum * c["stage2_blue_cap"])

    return clamp01(np.stack([out_r, out_g, out_b], axis=-1))


def remap_lms_color(lin: ImageBuffer, preset: AgePreset, age: int) -> ImageBuffer:
    """
    Cone-space formulation: RGB -> LMS, per-cone gain, incomplete von Kries
    adaptation, then back to RGB.
    """
    lms = apply_cone_sensitivity(rgb_to_lms(lin), preset.cone_sensitivity)
    lms = apply_von_kries(lms, von_kries_factor(age))
    return clamp01(lms_to_rgb(lms))


@time_function
def apply_color_vision(
    buffer: PixelBuffer,
    preset: AgePreset,
    age: int,
    model: ColorModel = ColorModel.INFANT,
) -> PixelBuffer:
    lin = srgb_to_linear(uint8_to_float32(buffer.rgb))

    if model == ColorModel.LMS:
        remapped = remap_lms_color(lin, preset, age)
    else:
        remapped = remap_infant_color(lin, preset, age)

    out = PixelBuffer.blank(buffer.width, buffer.height)
    out.rgb[...] = float_to_uint8(linear_to_srgb(remapped))
    return out
