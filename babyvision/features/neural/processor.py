from babyvision.domain.buffer import PixelBuffer
from babyvision.domain.constants import PIPELINE_CONSTANTS
from babyvision.domain.interfaces import IProcessor, PipelineContext
from babyvision.features.neural.logic import (
    apply_lateral_inhibition,
    apply_photoreceptor_noise,
    surround_sigma,
)
from babyvision.kernel.image.kernels import gaussian_kernel


class NeuralEffectsProcessor(IProcessor):
    """
    Photoreceptor noise, then lateral inhibition on the noisy signal.
    """

    def process(self, buffer: PixelBuffer, context: PipelineContext) -> PixelBuffer:
        preset = context.preset
        img = buffer

        # 1. Photoreceptor noise
        if preset.photoreceptor_noise > 0:
            img = apply_photoreceptor_noise(img, preset.photoreceptor_noise, context.rng)

        # 2. Lateral inhibition (DoG)
        if preset.lateral_inhibition > 0:
            cache = context.kernel_cache
            sigma_c = PIPELINE_CONSTANTS["dog_center_sigma_px"]
            sigma_s = surround_sigma(preset.lateral_inhibition)
            center = cache.get_or_build(("dog", sigma_c), lambda: gaussian_kernel(sigma_c))
            surround = cache.get_or_build(("dog", sigma_s), lambda: gaussian_kernel(sigma_s))
            img = apply_lateral_inhibition(img, preset.lateral_inhibition, center, surround)

        return img
