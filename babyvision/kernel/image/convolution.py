import numpy as np
from numba import njit, prange  # type: ignore

from babyvision.domain.buffer import PixelBuffer
from babyvision.domain.types import ImageBuffer, Kernel1D
from babyvision.kernel.image.logic import float_to_uint8
from babyvision.kernel.image.validation import ensure_image


@njit(parallel=True, cache=True)
def _convolve_horizontal_jit(src: np.ndarray, kernel: np.ndarray) -> np.ndarray:
    """
    One horizontal 1-D pass. Samples past the border replicate the edge
    pixel and keep their full weight (no renormalization).
    """
    h, w, c = src.shape
    radius = kernel.shape[0] // 2
    out = np.empty_like(src)
    for y in prange(h):
        for x in range(w):
            for ch in range(c):
                acc = 0.0
                for k in range(-radius, radius + 1):
                    sx = x + k
                    if sx < 0:
                        sx = 0
                    elif sx > w - 1:
                        sx = w - 1
                    acc += src[y, sx, ch] * kernel[k + radius]
                out[y, x, ch] = acc
    return out


@njit(parallel=True, cache=True)
def _convolve_vertical_jit(src: np.ndarray, kernel: np.ndarray) -> np.ndarray:
    h, w, c = src.shape
    radius = kernel.shape[0] // 2
    out = np.empty_like(src)
    for y in prange(h):
        for x in range(w):
            for ch in range(c):
                acc = 0.0
                for k in range(-radius, radius + 1):
                    sy = y + k
                    if sy < 0:
                        sy = 0
                    elif sy > h - 1:
                        sy = h - 1
                    acc += src[sy, x, ch] * kernel[k + radius]
                out[y, x, ch] = acc
    return out


def separable_convolve(img: ImageBuffer, kernel: Kernel1D) -> ImageBuffer:
    """
    2-D filtering as a horizontal pass into a temporary followed by a
    vertical pass, O(n * k) per pixel instead of O(n * k^2).
    """
    if kernel.ndim != 1 or kernel.shape[0] % 2 == 0:
        raise ValueError(f"Kernel must be 1-D with odd length, got shape {kernel.shape}")

    src = np.ascontiguousarray(img, dtype=np.float32)
    squeeze = src.ndim == 2
    if squeeze:
        src = src[:, :, None]

    k = np.ascontiguousarray(kernel, dtype=np.float32)
    temp = _convolve_horizontal_jit(src, k)
    out = _convolve_vertical_jit(temp, k)

    return ensure_image(out[:, :, 0] if squeeze else out)


def blur_buffer(buffer: PixelBuffer, kernel: Kernel1D) -> PixelBuffer:
    """
    Separable blur of the color channels of an RGBA frame; alpha stays opaque.
    """
    blurred = separable_convolve(buffer.rgb.astype(np.float32), kernel)
    out = PixelBuffer.blank(buffer.width, buffer.height)
    out.rgb[...] = float_to_uint8(blurred, scale=1.0)
    return out
