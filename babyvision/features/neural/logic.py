import numpy as np

from babyvision.domain.buffer import PixelBuffer
from babyvision.domain.constants import PIPELINE_CONSTANTS
from babyvision.domain.types import Kernel1D
from babyvision.kernel.image.convolution import separable_convolve
from babyvision.kernel.image.logic import float_to_uint8, get_luminance
from babyvision.kernel.system.performance import time_function


def surround_sigma(lateral_inhibition: float) -> float:
    """
    Surround widens as inhibition weakens (less mature receptive fields).
    """
    c = PIPELINE_CONSTANTS
    alpha = min(1.0, lateral_inhibition)
    return c["dog_surround_base_px"] + c["dog_surround_span_px"] * (1.0 - alpha)


@time_function
def apply_photoreceptor_noise(
    buffer: PixelBuffer, noise_level: float, rng: np.random.Generator
) -> PixelBuffer:
    """
    Signal-dependent noise: sigma = sqrt(max(1, L)) * level * 0.6 with L the
    0-255 luminance, so brighter pixels carry more absolute noise as with
    photon shot noise. Each channel gets an independent uniform draw in
    [-sigma, sigma].
    """
    if noise_level <= 0:
        return buffer.copy()

    rgb = buffer.rgb.astype(np.float32)
    lum = get_luminance(rgb)
    sigma = np.sqrt(np.maximum(1.0, lum)) * (noise_level * PIPELINE_CONSTANTS["noise_scale"])

    noise = rng.uniform(-1.0, 1.0, size=rgb.shape).astype(np.float32) * sigma[..., None]

    out = PixelBuffer.blank(buffer.width, buffer.height)
    out.rgb[...] = float_to_uint8(rgb + noise, scale=1.0)
    return out


@time_function
def apply_lateral_inhibition(
    buffer: PixelBuffer,
    lateral_inhibition: float,
    center_kernel: Kernel1D,
    surround_kernel: Kernel1D,
) -> PixelBuffer:
    """
    Center-surround sharpening: out = in - 0.5 * alpha * (center - surround).
    """
    alpha = min(1.0, lateral_inhibition)
    if alpha <= 0:
        return buffer.copy()

    rgb = buffer.rgb.astype(np.float32)
    center = separable_convolve(rgb, center_kernel)
    surround = separable_convolve(rgb, surround_kernel)
    dog = center - surround

    k = PIPELINE_CONSTANTS["dog_gain"] * alpha
    out = PixelBuffer.blank(buffer.width, buffer.height)
    out.rgb[...] = float_to_uint8(rgb - k * dog, scale=1.0)
    return out
