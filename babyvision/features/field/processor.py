from babyvision.domain.buffer import PixelBuffer
from babyvision.domain.interfaces import IProcessor, PipelineContext
from babyvision.features.field.logic import apply_vignette, build_vignette_mask


class FieldVignetteProcessor(IProcessor):
    """
    Peripheral suppression outside the central visual field.
    """

    def process(self, buffer: PixelBuffer, context: PipelineContext) -> PixelBuffer:
        if not context.peripheral_vignette:
            return buffer

        preset = context.preset
        suppression = preset.peripheral_suppression
        if suppression <= 0:
            return buffer

        central_px = preset.central_field_radius_deg * context.pixels_per_degree
        w, h = buffer.width, buffer.height
        mask = context.kernel_cache.get_or_build(
            ("vignette", w, h, central_px, suppression),
            lambda: build_vignette_mask(w, h, central_px, suppression),
        )
        return apply_vignette(buffer, mask)
