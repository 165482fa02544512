import numpy as np

from babyvision.domain.buffer import PixelBuffer
from babyvision.domain.presets import AgePreset
from babyvision.domain.types import ImageBuffer, Kernel1D
from babyvision.features.spatial.models import KernelMode
from babyvision.kernel.image.color import linear_to_srgb, srgb_to_linear
from babyvision.kernel.image.convolution import separable_convolve
from babyvision.kernel.image.kernels import csf_kernel, gaussian_kernel, sigma_from_cutoff
from babyvision.kernel.image.logic import clamp01, float_to_uint8, get_luminance
from babyvision.kernel.image.validation import ensure_image, validate_unit
from babyvision.kernel.system.performance import time_function


def build_spatial_kernel(
    preset: AgePreset, pixels_per_degree: float, mode: KernelMode = KernelMode.GAUSSIAN
) -> Kernel1D:
    if mode == KernelMode.CSF:
        return csf_kernel(preset, pixels_per_degree)
    return gaussian_kernel(sigma_from_cutoff(preset.spatial_cutoff_cpd, pixels_per_degree))


def compress_contrast(img: ImageBuffer, slope: float) -> ImageBuffer:
    """
    Blends each linear-light channel toward Rec.709 luminance.
    slope 1.0 keeps the input, 0.0 flattens to luminance.
    Input and output are sRGB-encoded [0, 1].
    """
    slope = validate_unit(slope, 1.0)
    if slope >= 1.0:
        return ensure_image(img)

    lin = srgb_to_linear(img)
    lum = get_luminance(lin)[..., None]
    compressed = clamp01(lum + (lin - lum) * slope)
    return linear_to_srgb(compressed)


@time_function
def apply_spatial_filter(
    buffer: PixelBuffer, kernel: Kernel1D, contrast_slope: float = 1.0
) -> PixelBuffer:
    """
    Low-pass at the infant acuity limit, then global contrast compression.
    """
    blurred = separable_convolve(buffer.rgb.astype(np.float32), kernel) / 255.0
    result = compress_contrast(clamp01(blurred), contrast_slope)

    out = PixelBuffer.blank(buffer.width, buffer.height)
    out.rgb[...] = float_to_uint8(result)
    return out
