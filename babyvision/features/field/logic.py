import numpy as np

from babyvision.domain.buffer import PixelBuffer
from babyvision.domain.constants import PIPELINE_CONSTANTS
from babyvision.domain.types import ImageBuffer
from babyvision.kernel.image.logic import float_to_uint8
from babyvision.kernel.image.validation import ensure_image, validate_unit
from babyvision.kernel.system.performance import time_function

# Minimum spacing between gradient stops, keeps np.interp's xp increasing
_STOP_GAP = 1e-3


def vignette_stops(
    central_radius_px: float, half_diagonal_px: float, suppression: float
) -> tuple[np.ndarray, np.ndarray]:
    """
    Radii and transmission of the three gradient stops:
    full transmission up to half the central radius, 1 - 0.4 s at the
    central radius, 1 - s at the half-diagonal.
    """
    s = validate_unit(suppression)
    r0 = max(1.0, central_radius_px * 0.5)
    r1 = max(central_radius_px, r0 + _STOP_GAP)
    r2 = max(half_diagonal_px, r1 + _STOP_GAP)

    radii = np.array([r0, r1, r2], dtype=np.float64)
    gains = np.array(
        [1.0, 1.0 - s * PIPELINE_CONSTANTS["vignette_mid_suppression"], 1.0 - s],
        dtype=np.float64,
    )
    return radii, gains


def build_vignette_mask(
    width: int, height: int, central_radius_px: float, suppression: float
) -> ImageBuffer:
    """
    (H, W) multiplicative gain, radially symmetric about the frame center.
    """
    cx, cy = width / 2.0, height / 2.0
    ys, xs = np.mgrid[0:height, 0:width].astype(np.float64)
    dist = np.hypot(xs - cx, ys - cy)

    radii, gains = vignette_stops(central_radius_px, float(np.hypot(cx, cy)), suppression)
    # np.interp holds the end values outside the stops
    return ensure_image(np.interp(dist, radii, gains))


@time_function
def apply_vignette(buffer: PixelBuffer, mask: ImageBuffer) -> PixelBuffer:
    """
    Multiplies the gain over RGB so the periphery darkens toward black.
    """
    out = PixelBuffer.blank(buffer.width, buffer.height)
    out.rgb[...] = float_to_uint8(buffer.rgb.astype(np.float32) * mask[..., None], scale=1.0)
    return out
