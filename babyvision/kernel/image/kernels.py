"""
1-D kernel construction for separable filtering.
"""

import math

import numpy as np

from babyvision.domain.constants import PIPELINE_CONSTANTS, EPSILON
from babyvision.domain.presets import AgePreset
from babyvision.domain.types import Kernel1D


def get_contrast_sensitivity(frequency_cpd: float, preset: AgePreset) -> float:
    """
    Closed-form infant CSF: a low-frequency ramp up to the peak times a
    parabolic high-frequency roll-off reaching zero at the cutoff.
    """
    peak = preset.peak_sensitivity_cpd
    cutoff = preset.spatial_cutoff_cpd

    if frequency_cpd > cutoff:
        return 0.0

    low_freq = min(1.0, frequency_cpd / max(peak, EPSILON))
    span = max(cutoff - peak, EPSILON)
    high_freq = max(0.0, 1.0 - ((frequency_cpd - peak) / span) ** 2)

    return preset.contrast_sensitivity_peak * low_freq * high_freq


def sigma_from_cutoff(cutoff_cpd: float, pixels_per_degree: float) -> float:
    """
    Gaussian sigma (px) whose half-power point sits at the cutoff frequency:
    sigma = sqrt(ln 2) / (2 * pi * f_c), f_c in cycles/pixel.
    """
    cutoff = max(PIPELINE_CONSTANTS["min_cutoff_cpd"], cutoff_cpd)
    cycles_per_px = cutoff / max(pixels_per_degree, EPSILON)
    sigma = math.sqrt(math.log(2.0)) / (2.0 * math.pi * cycles_per_px)
    return max(PIPELINE_CONSTANTS["min_sigma_px"], sigma)


def kernel_radius(sigma: float) -> int:
    return max(1, int(math.floor(sigma * PIPELINE_CONSTANTS["kernel_sigma_span"])))


def _normalize(weights: np.ndarray) -> Kernel1D:
    total = float(weights.sum())
    if not math.isfinite(total) or total <= EPSILON:
        # Degenerate envelope: fall back to identity
        out = np.zeros_like(weights, dtype=np.float32)
        out[len(out) // 2] = 1.0
        return out
    return (weights / total).astype(np.float32)


def gaussian_kernel(sigma: float) -> Kernel1D:
    """
    Sampled Gaussian, radius floor(3 * sigma) (at least 1), normalized to sum 1.
    """
    if not math.isfinite(sigma) or sigma <= 0:
        raise ValueError(f"Gaussian sigma must be positive, got {sigma}")

    radius = kernel_radius(sigma)
    taps = np.arange(-radius, radius + 1, dtype=np.float64)
    weights = np.exp(-(taps * taps) / (2.0 * sigma * sigma))
    return _normalize(weights)


def csf_kernel(preset: AgePreset, pixels_per_degree: float) -> Kernel1D:
    """
    Gaussian envelope shaped by the contrast sensitivity curve.

    The kernel spans one period of the cutoff frequency on each side. Tap i
    stands for frequency cutoff * |i| / radius and is weighted by the
    envelope times (1 + CSF(f) / peak gain), so frequencies the infant is
    most sensitive to keep the most weight.
    """
    cutoff = max(PIPELINE_CONSTANTS["min_cutoff_cpd"], preset.spatial_cutoff_cpd)
    sigma = sigma_from_cutoff(cutoff, pixels_per_degree)
    radius = max(1, int(math.ceil(pixels_per_degree / cutoff)))

    peak_gain = max(preset.contrast_sensitivity_peak, EPSILON)
    taps = np.arange(-radius, radius + 1, dtype=np.float64)
    envelope = np.exp(-(taps * taps) / (2.0 * sigma * sigma))
    shaping = np.array(
        [
            1.0 + get_contrast_sensitivity(cutoff * abs(i) / radius, preset) / peak_gain
            for i in taps
        ]
    )
    return _normalize(envelope * shaping)
