from babyvision.domain.buffer import PixelBuffer
from babyvision.domain.interfaces import IProcessor, PipelineContext
from babyvision.features.spatial.models import SpatialConfig
from babyvision.features.spatial.logic import apply_spatial_filter, build_spatial_kernel


class SpatialFilterProcessor(IProcessor):
    """
    CSF-limited blur and contrast compression.
    """

    def __init__(self, config: SpatialConfig = SpatialConfig()):
        self.config = config

    def process(self, buffer: PixelBuffer, context: PipelineContext) -> PixelBuffer:
        preset = context.preset
        ppd = context.pixels_per_degree
        mode = self.config.kernel_mode

        cache_key = (
            "spatial",
            mode.value,
            preset.spatial_cutoff_cpd,
            preset.peak_sensitivity_cpd,
            preset.contrast_sensitivity_peak,
            ppd,
        )
        kernel = context.kernel_cache.get_or_build(
            cache_key, lambda: build_spatial_kernel(preset, ppd, mode)
        )
        context.metrics["spatial_kernel_radius"] = len(kernel) // 2

        slope = preset.contrast_slope if self.config.contrast_compression else 1.0
        return apply_spatial_filter(buffer, kernel, slope)
