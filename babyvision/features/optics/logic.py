from typing import Tuple

import numpy as np

from babyvision.domain.buffer import PixelBuffer
from babyvision.domain.constants import PIPELINE_CONSTANTS, EPSILON
from babyvision.domain.types import Kernel1D
from babyvision.kernel.image.convolution import separable_convolve
from babyvision.kernel.image.logic import float_to_uint8, uint8_to_float32
from babyvision.kernel.system.performance import time_function

# (red_y, red_x, blue_y, blue_x) integer sampling coordinates
AberrationMaps = Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]


def scatter_sigma(scattering_factor: float) -> float:
    return scattering_factor * PIPELINE_CONSTANTS["scatter_blur_px"]


def aberration_strength(age: int) -> float:
    """
    Radial channel displacement in pixels at the image corners.
    Shrinks with age and vanishes at the reference stage.
    """
    c = PIPELINE_CONSTANTS
    return max(0.0, (c["reference_age"] - age) * c["aberration_px_per_stage"])


def screen_blend(base: np.ndarray, layer: np.ndarray, alpha: float) -> np.ndarray:
    """
    Screen composite of layer over base at the given opacity, values in [0, 1].
    """
    screened = base + layer - base * layer
    return base * (1.0 - alpha) + screened * alpha


@time_function
def apply_scatter(buffer: PixelBuffer, kernel: Kernel1D, scattering_factor: float) -> PixelBuffer:
    """
    Intraocular scatter as a soft glow: a blurred copy screened over the frame.
    """
    alpha = min(1.0, scattering_factor)
    if alpha <= 0:
        return buffer.copy()

    base = uint8_to_float32(buffer.rgb)
    glow = separable_convolve(base, kernel)

    out = PixelBuffer.blank(buffer.width, buffer.height)
    out.rgb[...] = float_to_uint8(screen_blend(base, np.clip(glow, 0.0, 1.0), alpha))
    return out


def build_aberration_maps(width: int, height: int, strength: float) -> AberrationMaps:
    """
    Nearest-neighbor sampling coordinates for lateral chromatic aberration.

    Red samples inward and blue outward along the radial direction by
    strength * r / r_max pixels, r_max being the half-diagonal. Coordinates
    are rounded half up and clamped to the frame.
    """
    cx, cy = width / 2.0, height / 2.0
    max_r = max(float(np.hypot(cx, cy)), EPSILON)

    ys, xs = np.mgrid[0:height, 0:width].astype(np.float64)
    dx = xs - cx
    dy = ys - cy
    dist = np.hypot(dx, dy)
    r_norm = np.minimum(1.0, dist / max_r)

    # The exact center has no radial direction
    safe = np.where(dist > 0, dist, 1.0)
    ux = np.where(dist > 0, dx / safe, 0.0)
    uy = np.where(dist > 0, dy / safe, 0.0)

    shift = strength * r_norm

    def _sample(offset: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        sx = np.clip(np.floor(xs + ux * offset + 0.5), 0, width - 1).astype(np.intp)
        sy = np.clip(np.floor(ys + uy * offset + 0.5), 0, height - 1).astype(np.intp)
        return sy, sx

    red_y, red_x = _sample(-shift)
    blue_y, blue_x = _sample(shift)
    return red_y, red_x, blue_y, blue_x


@time_function
def apply_chromatic_aberration(buffer: PixelBuffer, maps: AberrationMaps) -> PixelBuffer:
    red_y, red_x, blue_y, blue_x = maps
    src = buffer.data

    out = buffer.copy()
    out.data[:, :, 0] = src[red_y, red_x, 0]
    out.data[:, :, 2] = src[blue_y, blue_x, 2]
    out.alpha[...] = 255
    return out
