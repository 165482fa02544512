from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Protocol, runtime_checkable

import numpy as np

from babyvision.domain.buffer import PixelBuffer, validate_dimensions
from babyvision.domain.presets import AGE_PRESETS, DEFAULT_AGE, AgePreset, get_preset
from babyvision.domain.types import Dimensions, ImageBuffer
from babyvision.kernel.caching.manager import KernelCache
from babyvision.kernel.image.logic import estimate_pixels_per_degree
from babyvision.kernel.image.validation import validate_hfov
from babyvision.kernel.system.config import APP_CONFIG

# One buffer per stage output, in chain order
STAGE_BUFFERS = ("input", "frequency", "color", "optical", "field", "final")


class ColorModel(Enum):
    # Stage-specific linear-light formulas
    INFANT = "infant"
    # Full LMS round trip with von Kries adaptation
    LMS = "lms"


@dataclass
class TemporalState:
    """
    Running average for the optional temporal integration stage.
    """

    buffer: Optional[ImageBuffer] = None
    last_ts_ms: Optional[float] = None

    def reset(self) -> None:
        self.buffer = None
        self.last_ts_ms = None


@dataclass
class PipelineContext:
    """
    Per-session state passed explicitly through every stage.
    """

    age: int = DEFAULT_AGE
    # Mirroring normally happens in capture; set only when frames arrive unmirrored
    mirror: bool = False
    peripheral_vignette: bool = True
    hfov_deg: float = field(default_factory=lambda: APP_CONFIG.default_hfov_deg)
    color_model: ColorModel = ColorModel.INFANT
    temporal_integration: bool = False
    presets: Mapping[int, AgePreset] = field(default_factory=lambda: dict(AGE_PRESETS))
    rng: np.random.Generator = field(default_factory=np.random.default_rng)

    kernel_cache: KernelCache = field(default_factory=KernelCache)
    temporal: TemporalState = field(default_factory=TemporalState)
    buffers: Dict[str, PixelBuffer] = field(default_factory=dict)
    dimensions: Optional[Dimensions] = None
    pixels_per_degree: float = 1.0
    # Timestamp of the frame being processed, for temporal integration
    frame_time_ms: Optional[float] = None
    metrics: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Fail fast: presets and FOV change every stage's math
        get_preset(self.age, self.presets)
        self.hfov_deg = validate_hfov(self.hfov_deg)

    @property
    def preset(self) -> AgePreset:
        return get_preset(self.age, self.presets)

    def resize(self, width: int, height: int) -> None:
        """
        Sizes the stage buffers for a frame and re-derives the angular scale.
        Kernels and the temporal history belong to the old geometry and are dropped.
        """
        validate_dimensions(width, height)

        self.dimensions = (height, width)
        self.pixels_per_degree = estimate_pixels_per_degree(width, height, self.hfov_deg)
        self.kernel_cache.clear()
        self.kernel_cache.rebind(self.pixels_per_degree)
        self.temporal.reset()
        self.buffers = {name: PixelBuffer.blank(width, height) for name in STAGE_BUFFERS}

    def release(self) -> None:
        self.buffers = {}
        self.dimensions = None
        self.kernel_cache.clear()
        self.temporal.reset()


@runtime_checkable
class IProcessor(Protocol):
    """
    Interface for any per-frame processing stage.
    """

    def process(self, buffer: PixelBuffer, context: PipelineContext) -> PixelBuffer: ...
