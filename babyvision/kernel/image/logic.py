import math

import numpy as np

from babyvision.domain.types import ImageBuffer, FrameArray, LUMA_COEFFS
from babyvision.kernel.image.validation import ensure_image, validate_hfov

DEFAULT_CAMERA_HFOV_DEG = 60.0
# Aspect assumed when the frame has no usable dimensions yet
FALLBACK_ASPECT = 16.0 / 9.0


def estimate_pixels_per_degree(
    width: int, height: int, hfov_deg: float = DEFAULT_CAMERA_HFOV_DEG
) -> float:
    """
    Pixels per degree of visual angle for a frame seen through a camera
    of the given horizontal field of view.

    Vertical FOV follows from the aspect ratio, vfov = 2 * atan(tan(hfov / 2) / aspect).
    The smaller of the two axis densities wins, clamped to at least 1.
    Raises ConfigurationError for a FOV outside (0, 180).
    """
    hfov_deg = validate_hfov(hfov_deg)
    aspect = width / height if width > 0 and height > 0 else FALLBACK_ASPECT
    hfov_rad = math.radians(hfov_deg)
    vfov_deg = math.degrees(2.0 * math.atan(math.tan(hfov_rad / 2.0) / aspect))
    ppd_x = width / hfov_deg
    ppd_y = height / vfov_deg
    return max(1.0, min(ppd_x, ppd_y))


def uint8_to_float32(arr: FrameArray) -> ImageBuffer:
    return ensure_image(arr.astype(np.float32) / 255.0)


def float_to_uint8(arr: np.ndarray, scale: float = 255.0) -> FrameArray:
    """
    Quantizes to uint8, rounding half up and clamping to [0, 255].
    NaN collapses to 0.
    """
    scaled = np.nan_to_num(np.asarray(arr, dtype=np.float32) * scale, nan=0.0)
    return np.clip(np.floor(scaled + 0.5), 0, 255).astype(np.uint8)


def get_luminance(img: ImageBuffer) -> ImageBuffer:
    """
    Rec.709 luminance of an (H, W, 3) image, in the same units as the input.
    """
    return ensure_image(np.dot(img[..., :3], LUMA_COEFFS))


def clamp01(arr: np.ndarray) -> ImageBuffer:
    return ensure_image(np.clip(arr, 0.0, 1.0))
