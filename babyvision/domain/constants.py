from typing import Dict, Any

# Centralized multipliers and model constants shared by the stages
PIPELINE_CONSTANTS: Dict[str, Any] = {
    # Spatial filtering
    "min_cutoff_cpd": 0.5,  # Lower bound on the cutoff before deriving sigma
    "min_sigma_px": 0.5,  # Smallest blur that still yields a usable kernel
    "kernel_sigma_span": 3.0,  # Kernel radius in sigmas
    # Color vision, stage 1
    "infant_desaturation": 0.85,  # Fraction of luminance kept as achromatic signal
    "infant_red_gain": 0.25,  # Weight of the L-cone driven red term
    "stage2_blue_cap": 0.3,  # Blue ceiling as a fraction of luminance
    # Von Kries adaptation: factor = base + span * age / reference_age
    "von_kries_base": 0.8,
    "von_kries_span": 0.2,
    "von_kries_neutral": 0.5,
    # Optics
    "scatter_blur_px": 8.0,  # Blur sigma per unit of scattering factor
    "aberration_px_per_stage": 0.6,  # Radial shift at the border per stage below reference
    "reference_age": 3,  # Stage at which chromatic aberration vanishes
    # Peripheral field
    "vignette_mid_suppression": 0.4,  # Fraction of suppression reached at the central radius
    # Neural
    "noise_scale": 0.6,
    "dog_center_sigma_px": 0.8,
    "dog_surround_base_px": 2.0,
    "dog_surround_span_px": 2.0,
    "dog_gain": 0.5,
    # Temporal integration
    "temporal_min_tau_ms": 10.0,
    "temporal_first_dt_ms": 16.0,
}

# Guards against zero denominators in closed-form curves
EPSILON = 1e-6
