import numpy as np

from babyvision.domain.buffer import PixelBuffer
from babyvision.domain.constants import PIPELINE_CONSTANTS
from babyvision.domain.interfaces import TemporalState
from babyvision.kernel.image.logic import float_to_uint8


def integration_alpha(dt_ms: float, temporal_integration_ms: float) -> float:
    """
    Weight of the newest frame for an exponential moving average with time
    constant tau: min(1, dt / tau).
    """
    tau = max(PIPELINE_CONSTANTS["temporal_min_tau_ms"], temporal_integration_ms)
    return min(1.0, dt_ms / tau)


def apply_temporal_integration(
    buffer: PixelBuffer,
    state: TemporalState,
    temporal_integration_ms: float,
    now_ms: float,
) -> PixelBuffer:
    """
    Blends the frame into the persistent history, modeling slow infant
    temporal summation. The history restarts whenever the frame size changes.
    """
    if state.last_ts_ms is None:
        dt = PIPELINE_CONSTANTS["temporal_first_dt_ms"]
    else:
        dt = max(1.0, now_ms - state.last_ts_ms)
    alpha = integration_alpha(dt, temporal_integration_ms)

    curr = buffer.rgb.astype(np.float32)
    if state.buffer is None or state.buffer.shape != curr.shape:
        state.buffer = curr.copy()

    state.buffer = state.buffer * (1.0 - alpha) + curr * alpha
    state.last_ts_ms = now_ms

    out = PixelBuffer.blank(buffer.width, buffer.height)
    out.rgb[...] = float_to_uint8(state.buffer, scale=1.0)
    return out
