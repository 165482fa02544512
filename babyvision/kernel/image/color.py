"""
sRGB transfer functions and cone (LMS) space conversions.
"""

import numpy as np

from babyvision.domain.constants import PIPELINE_CONSTANTS
from babyvision.domain.presets import ConeSensitivity
from babyvision.domain.types import ImageBuffer
from babyvision.kernel.image.validation import ensure_image

# Hunt-Pointer-Estevez style matrices. Each is the other's approximate inverse.
RGB_TO_LMS = np.array(
    [
        [0.31399, 0.63951, 0.0465],
        [0.15537, 0.75789, 0.08674],
        [0.01775, 0.10945, 0.8728],
    ],
    dtype=np.float32,
)

LMS_TO_RGB = np.array(
    [
        [5.47221, -4.64196, 0.16975],
        [-1.1248, 2.29317, -0.16837],
        [0.0298, -0.19318, 1.16338],
    ],
    dtype=np.float32,
)


def srgb_to_linear(v: np.ndarray) -> ImageBuffer:
    """
    IEC 61966-2-1 decoding, values in [0, 1].
    """
    v = np.asarray(v, dtype=np.float32)
    low = v / 12.92
    high = np.power((np.maximum(v, 0.04045) + 0.055) / 1.055, 2.4)
    return ensure_image(np.where(v <= 0.04045, low, high))


def linear_to_srgb(v: np.ndarray) -> ImageBuffer:
    """
    IEC 61966-2-1 encoding, values in [0, 1].
    """
    v = np.asarray(v, dtype=np.float32)
    low = 12.92 * v
    high = 1.055 * np.power(np.maximum(v, 0.0031308), 1.0 / 2.4) - 0.055
    return ensure_image(np.where(v <= 0.0031308, low, high))


def rgb_to_lms(rgb_linear: ImageBuffer) -> ImageBuffer:
    return ensure_image(rgb_linear @ RGB_TO_LMS.T)


def lms_to_rgb(lms: ImageBuffer) -> ImageBuffer:
    return ensure_image(lms @ LMS_TO_RGB.T)


def apply_cone_sensitivity(lms: ImageBuffer, cones: ConeSensitivity) -> ImageBuffer:
    return ensure_image(lms * np.array(cones.as_tuple(), dtype=np.float32))


def von_kries_factor(age: int) -> float:
    """
    Adaptation completeness for an age stage (1.0 = fully adapted).
    """
    c = PIPELINE_CONSTANTS
    return c["von_kries_base"] + c["von_kries_span"] * age / c["reference_age"]


def apply_von_kries(lms: ImageBuffer, factor: float) -> ImageBuffer:
    """
    Pulls each cone channel toward the neutral point by (1 - factor).
    """
    neutral = PIPELINE_CONSTANTS["von_kries_neutral"]
    return ensure_image(lms * factor + (1.0 - factor) * neutral)
