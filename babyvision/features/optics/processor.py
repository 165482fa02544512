from babyvision.domain.buffer import PixelBuffer
from babyvision.domain.interfaces import IProcessor, PipelineContext
from babyvision.features.optics.logic import (
    aberration_strength,
    apply_chromatic_aberration,
    apply_scatter,
    build_aberration_maps,
    scatter_sigma,
)
from babyvision.kernel.image.kernels import gaussian_kernel


class OpticalEffectsProcessor(IProcessor):
    """
    Light scatter followed by lateral chromatic aberration.
    """

    def process(self, buffer: PixelBuffer, context: PipelineContext) -> PixelBuffer:
        preset = context.preset
        cache = context.kernel_cache
        img = buffer

        # 1. Scatter
        sigma = scatter_sigma(preset.scattering_factor)
        if sigma > 0:
            kernel = cache.get_or_build(("scatter", sigma), lambda: gaussian_kernel(sigma))
            img = apply_scatter(img, kernel, preset.scattering_factor)

        # 2. Chromatic aberration
        strength = aberration_strength(context.age)
        context.metrics["aberration_px"] = strength
        if strength > 0:
            w, h = img.width, img.height
            maps = cache.get_or_build(
                ("aberration", w, h, strength),
                lambda: build_aberration_maps(w, h, strength),
            )
            img = apply_chromatic_aberration(img, maps)

        return img
