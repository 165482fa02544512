import time

from babyvision.domain.buffer import PixelBuffer
from babyvision.domain.interfaces import IProcessor, PipelineContext
from babyvision.features.temporal.logic import apply_temporal_integration


class TemporalIntegrationProcessor(IProcessor):
    def process(self, buffer: PixelBuffer, context: PipelineContext) -> PixelBuffer:
        now_ms = context.frame_time_ms
        if now_ms is None:
            now_ms = time.perf_counter() * 1000.0
        return apply_temporal_integration(
            buffer, context.temporal, context.preset.temporal_integration_ms, now_ms
        )
