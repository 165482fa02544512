import os

os.environ.setdefault("NUMBA_THREADING_LAYER", "workqueue")

import dataclasses

import numpy as np
import pytest

from babyvision.domain.buffer import PixelBuffer
from babyvision.domain.presets import AGE_PRESETS


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def quiet_presets():
    """Built-in presets without photoreceptor noise, for exact comparisons."""
    return {
        age: dataclasses.replace(p, photoreceptor_noise=0.0) for age, p in AGE_PRESETS.items()
    }


def solid_frame(width, height, rgb):
    data = np.zeros((height, width, 4), dtype=np.uint8)
    data[:, :, :3] = rgb
    data[:, :, 3] = 255
    return PixelBuffer(data)


@pytest.fixture
def gray_frame():
    return solid_frame(32, 24, (128, 128, 128))


@pytest.fixture
def make_frame():
    return solid_frame
