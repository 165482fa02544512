from dataclasses import dataclass
from typing import Any

import numpy as np

from babyvision.domain.errors import FrameDimensionError
from babyvision.domain.types import CHANNELS, OPAQUE, FrameArray, Dimensions


def validate_dimensions(width: int, height: int) -> None:
    if width <= 0 or height <= 0:
        raise FrameDimensionError(f"Invalid frame dimensions: {width}x{height}")


@dataclass
class PixelBuffer:
    """
    Row-major RGBA8 frame.

    Wraps an (H, W, 4) uint8 array so stages address pixels through
    width/height and channel views instead of flat 4-byte stride arithmetic.
    """

    data: FrameArray

    def __post_init__(self) -> None:
        if not isinstance(self.data, np.ndarray):
            raise TypeError(f"Expected numpy.ndarray, got {type(self.data)}")
        if self.data.dtype != np.uint8:
            raise TypeError(f"Expected uint8 pixels, got {self.data.dtype}")
        if self.data.ndim != 3 or self.data.shape[2] != CHANNELS:
            raise ValueError(f"Expected (H, W, 4) RGBA array, got {self.data.shape}")

    @classmethod
    def blank(cls, width: int, height: int) -> "PixelBuffer":
        validate_dimensions(width, height)
        data = np.zeros((height, width, CHANNELS), dtype=np.uint8)
        data[:, :, 3] = OPAQUE
        return cls(data)

    @classmethod
    def from_array(cls, arr: Any) -> "PixelBuffer":
        """
        Copies an RGB or RGBA uint8 array into a new opaque buffer.
        """
        if not isinstance(arr, np.ndarray):
            raise TypeError(f"Expected numpy.ndarray, got {type(arr)}")
        if arr.ndim != 3 or arr.shape[2] not in (3, CHANNELS):
            raise ValueError(f"Expected (H, W, 3|4) array, got {arr.shape}")
        validate_dimensions(arr.shape[1], arr.shape[0])
        if arr.dtype != np.uint8:
            raise TypeError(f"Expected uint8 pixels, got {arr.dtype}")

        buf = cls.blank(arr.shape[1], arr.shape[0])
        buf.rgb[...] = arr[:, :, :3]
        return buf

    @classmethod
    def from_bytes(cls, raw: bytes, width: int, height: int) -> "PixelBuffer":
        validate_dimensions(width, height)
        expected = width * height * CHANNELS
        if len(raw) != expected:
            raise ValueError(f"Expected {expected} bytes for {width}x{height} RGBA, got {len(raw)}")
        data = np.frombuffer(raw, dtype=np.uint8).reshape(height, width, CHANNELS).copy()
        return cls(data)

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    @property
    def size(self) -> Dimensions:
        return (self.height, self.width)

    @property
    def shape(self) -> tuple[int, ...]:
        return tuple(self.data.shape)

    @property
    def rgb(self) -> FrameArray:
        """Writable view on the color channels."""
        return self.data[:, :, :3]

    @property
    def alpha(self) -> FrameArray:
        return self.data[:, :, 3]

    def channel(self, index: int) -> FrameArray:
        return self.data[:, :, index]

    def pixel(self, x: int, y: int) -> tuple[int, int, int, int]:
        r, g, b, a = self.data[y, x]
        return (int(r), int(g), int(b), int(a))

    def copy(self) -> "PixelBuffer":
        return PixelBuffer(self.data.copy())

    def overwrite(self, other: "PixelBuffer") -> None:
        """
        Replaces every sample with those of a same-sized buffer.
        """
        if other.size != self.size:
            raise ValueError(f"Size mismatch: {other.size} into {self.size}")
        np.copyto(self.data, other.data)

    def to_bytes(self) -> bytes:
        return self.data.tobytes()
