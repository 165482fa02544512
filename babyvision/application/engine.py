from enum import Enum
from typing import Any, List, Optional, Tuple

import numpy as np

from babyvision.domain.buffer import PixelBuffer, validate_dimensions
from babyvision.domain.interfaces import IProcessor, PipelineContext
from babyvision.domain.presets import get_preset
from babyvision.features.color.processor import ColorVisionProcessor
from babyvision.features.field.processor import FieldVignetteProcessor
from babyvision.features.neural.processor import NeuralEffectsProcessor
from babyvision.features.optics.processor import OpticalEffectsProcessor
from babyvision.features.spatial.models import SpatialConfig
from babyvision.features.spatial.processor import SpatialFilterProcessor
from babyvision.features.temporal.processor import TemporalIntegrationProcessor
from babyvision.kernel.image.logic import estimate_pixels_per_degree
from babyvision.kernel.system.logging import get_logger

logger = get_logger(__name__)


class EngineState(Enum):
    IDLE = "idle"
    ARMED = "armed"
    RUNNING = "running"


def coerce_frame(frame: Any) -> PixelBuffer:
    """
    Validates an incoming frame without copying pixel data when it is
    already a PixelBuffer. Raises before any pipeline buffer is touched.
    """
    if isinstance(frame, PixelBuffer):
        validate_dimensions(frame.width, frame.height)
        return frame
    if isinstance(frame, np.ndarray):
        if frame.ndim != 3:
            raise ValueError(f"Expected (H, W, C) frame, got shape {frame.shape}")
        validate_dimensions(frame.shape[1], frame.shape[0])
        if frame.shape[2] == 4 and frame.dtype == np.uint8:
            return PixelBuffer(frame)
        return PixelBuffer.from_array(frame)
    raise TypeError(f"Expected PixelBuffer or numpy.ndarray, got {type(frame)}")


class VisionEngine:
    """
    Runs the infant vision chain once per tick over a fixed set of stage buffers.

    IDLE -> ARMED when buffers are sized (start, or the first tick),
    ARMED -> RUNNING for the duration of a tick, back to IDLE on stop.
    """

    def __init__(
        self,
        context: Optional[PipelineContext] = None,
        spatial_config: SpatialConfig = SpatialConfig(),
    ) -> None:
        self.context = context if context is not None else PipelineContext()
        self.state = EngineState.IDLE
        self.frame_count = 0
        self._pending_age: Optional[int] = None

        # Fixed order: frequency -> color -> optical -> field -> neural
        self._stages: List[Tuple[str, IProcessor]] = [
            ("frequency", SpatialFilterProcessor(spatial_config)),
            ("color", ColorVisionProcessor()),
            ("optical", OpticalEffectsProcessor()),
            ("field", FieldVignetteProcessor()),
            ("final", NeuralEffectsProcessor()),
        ]
        self._temporal = TemporalIntegrationProcessor()

    @property
    def age(self) -> int:
        return self._pending_age if self._pending_age is not None else self.context.age

    def start(self, width: int, height: int) -> None:
        validate_dimensions(width, height)
        self._arm(width, height)

    def stop(self) -> None:
        self.context.release()
        self.state = EngineState.IDLE
        logger.info(f"Session stopped after {self.frame_count} frames")

    def select_age(self, age: int) -> None:
        """
        Queues an age switch for the next tick. Unknown ages fail immediately.
        """
        get_preset(age, self.context.presets)
        self._pending_age = age

    def _arm(self, width: int, height: int) -> None:
        previous = self.context.dimensions
        self.context.resize(width, height)
        self.state = EngineState.ARMED
        if previous is None:
            logger.info(
                f"Buffers armed at {width}x{height} "
                f"({self.context.pixels_per_degree:.2f} px/deg)"
            )
        else:
            logger.info(
                f"Resolution changed {previous[1]}x{previous[0]} -> {width}x{height}, "
                "kernels invalidated"
            )

    def _sync_geometry(self) -> None:
        # The assumed FOV may be changed between ticks
        ctx = self.context
        h, w = ctx.dimensions  # type: ignore[misc]
        ppd = estimate_pixels_per_degree(w, h, ctx.hfov_deg)
        if ppd != ctx.pixels_per_degree:
            ctx.pixels_per_degree = ppd
            ctx.kernel_cache.rebind(ppd)

    def _ingest(self, frame: PixelBuffer) -> PixelBuffer:
        target = self.context.buffers["input"]
        if self.context.mirror:
            np.copyto(target.data, frame.data[:, ::-1])
        else:
            np.copyto(target.data, frame.data)
        target.alpha[...] = 255
        return target

    def tick(self, frame: Any, timestamp_ms: Optional[float] = None) -> PixelBuffer:
        """
        Processes one frame through every stage and returns a new output buffer.
        """
        buf = coerce_frame(frame)
        ctx = self.context

        if self.state == EngineState.IDLE or ctx.dimensions != buf.size:
            self._arm(buf.width, buf.height)

        if self._pending_age is not None:
            get_preset(self._pending_age, ctx.presets)
            if self._pending_age != ctx.age:
                logger.info(f"Age stage {ctx.age} -> {self._pending_age}")
            ctx.age = self._pending_age
            self._pending_age = None

        self._sync_geometry()
        ctx.frame_time_ms = timestamp_ms

        self.state = EngineState.RUNNING
        try:
            current = self._ingest(buf)
            for name, stage in self._stages:
                result = stage.process(current, ctx)
                target = ctx.buffers[name]
                if result is not target:
                    target.overwrite(result)
                current = target

            if ctx.temporal_integration:
                ctx.buffers["final"].overwrite(self._temporal.process(current, ctx))
        finally:
            self.state = EngineState.ARMED

        self.frame_count += 1
        if self.frame_count == 1:
            logger.info("First frame processed")
        return ctx.buffers["final"].copy()
