from babyvision.domain.buffer import PixelBuffer
from babyvision.domain.interfaces import IProcessor, PipelineContext
from babyvision.features.color.logic import apply_color_vision


class ColorVisionProcessor(IProcessor):
    def process(self, buffer: PixelBuffer, context: PipelineContext) -> PixelBuffer:
        return apply_color_vision(buffer, context.preset, context.age, context.color_model)
