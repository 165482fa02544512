from typing import Any, cast
import numpy as np
from babyvision.domain.errors import ConfigurationError
from babyvision.domain.types import ImageBuffer


def ensure_image(arr: Any) -> ImageBuffer:
    """
    Ensures the input is a float32 numpy array and returns it as an ImageBuffer.
    This is preferred over a raw cast because it performs runtime validation.
    """
    if not isinstance(arr, np.ndarray):
        raise TypeError(f"Expected numpy.ndarray, got {type(arr)}")

    if arr.dtype != np.float32:
        arr = arr.astype(np.float32)

    return cast(ImageBuffer, arr)


def validate_float(val: Any, default: float = 0.0) -> float:
    """Ensures a value is a float, providing a default if None."""
    if val is None:
        return default
    try:
        return float(val)
    except (TypeError, ValueError):
        return default


def validate_unit(val: Any, default: float = 0.0) -> float:
    """Coerces a value to float and clamps it to [0, 1]."""
    v = validate_float(val, default)
    if not np.isfinite(v):
        return default
    return min(1.0, max(0.0, v))


def validate_hfov(hfov_deg: Any) -> float:
    """
    Horizontal field of view in degrees, strictly inside (0, 180).
    Raises ConfigurationError otherwise.
    """
    try:
        v = float(hfov_deg)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Field of view must be a number, got {hfov_deg!r}") from None
    if not np.isfinite(v) or v <= 0.0 or v >= 180.0:
        raise ConfigurationError(f"Field of view must be in (0, 180) degrees, got {hfov_deg!r}")
    return v
