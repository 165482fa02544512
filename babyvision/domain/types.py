from typing import TypeAlias, Tuple
import numpy as np
import numpy.typing as npt


# Image Types
# Floating point image 0.0 - 1.0 (Height, Width, Channels)
ImageBuffer: TypeAlias = npt.NDArray[np.float32]
# Raw 8-bit frame as handed over by capture (Height, Width, 4) RGBA
FrameArray: TypeAlias = npt.NDArray[np.uint8]
# 1-D normalized convolution weights
Kernel1D: TypeAlias = npt.NDArray[np.float32]

# (Height, Width)
Dimensions: TypeAlias = Tuple[int, int]

# https://en.wikipedia.org/wiki/Luma_(video)
LUMA_COEFFS = np.array([0.2126, 0.7152, 0.0722], dtype=np.float32)

CHANNELS = 4
OPAQUE = 255
