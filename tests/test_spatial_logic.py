import numpy as np
import pytest

from babyvision.domain.buffer import PixelBuffer
from babyvision.domain.interfaces import PipelineContext
from babyvision.domain.presets import AGE_PRESETS
from babyvision.features.spatial.logic import (
    apply_spatial_filter,
    build_spatial_kernel,
    compress_contrast,
)
from babyvision.features.spatial.models import KernelMode, SpatialConfig
from babyvision.features.spatial.processor import SpatialFilterProcessor
from babyvision.kernel.image.kernels import gaussian_kernel, sigma_from_cutoff


def test_compress_contrast_identity_at_full_slope():
    rng = np.random.default_rng(3)
    img = rng.random((4, 4, 3)).astype(np.float32)
    assert np.array_equal(compress_contrast(img, 1.0), img)


def test_compress_contrast_flattens_to_luminance():
    img = np.array([[[1.0, 0.0, 0.0], [0.2, 0.6, 0.9]]], dtype=np.float32)
    out = compress_contrast(img, 0.0)
    assert np.allclose(out[..., 0], out[..., 1], atol=1e-6)
    assert np.allclose(out[..., 1], out[..., 2], atol=1e-6)


def test_compress_contrast_keeps_gray():
    img = np.full((2, 2, 3), 0.5, dtype=np.float32)
    assert np.allclose(compress_contrast(img, 0.65), 0.5, atol=1e-5)


def test_compress_contrast_desaturates():
    img = np.array([[[0.8, 0.2, 0.2]]], dtype=np.float32)
    out = compress_contrast(img, 0.65)
    assert out[0, 0, 0] < 0.8
    assert out[0, 0, 1] > 0.2
    assert np.all((out >= 0.0) & (out <= 1.0))


def test_build_spatial_kernel_modes():
    p = AGE_PRESETS[1]
    gauss = build_spatial_kernel(p, 20.0, KernelMode.GAUSSIAN)
    assert np.array_equal(gauss, gaussian_kernel(sigma_from_cutoff(1.5, 20.0)))
    csf = build_spatial_kernel(p, 20.0, KernelMode.CSF)
    assert len(csf) // 2 == 14
    assert abs(float(csf.sum()) - 1.0) < 1e-4


def test_uniform_frame_stays_uniform(make_frame):
    frame = make_frame(16, 16, (128, 128, 128))
    out = apply_spatial_filter(frame, gaussian_kernel(3.0), 0.65)
    assert np.all(np.abs(out.rgb.astype(int) - 128) <= 1)
    assert np.all(out.alpha == 255)


def test_step_edge_through_stage():
    data = np.zeros((64, 64, 4), dtype=np.uint8)
    data[:, 32:, :3] = 255
    data[:, :, 3] = 255
    kernel = gaussian_kernel(sigma_from_cutoff(1.5, 32.0))
    radius = len(kernel) // 2

    out = apply_spatial_filter(PixelBuffer(data), kernel, 1.0)

    row = out.rgb[10, :, 0].astype(int)
    assert np.all(row[: 32 - radius] == 0)
    assert np.all(row[32 + radius :] == 255)
    assert 0 < row[31] < 255
    assert 0 < row[32] < 255


def test_processor_caches_kernel(make_frame):
    ctx = PipelineContext(age=1)
    ctx.resize(32, 32)
    stage = SpatialFilterProcessor(SpatialConfig())
    frame = make_frame(32, 32, (90, 90, 90))

    stage.process(frame, ctx)
    stage.process(frame, ctx)

    assert ctx.kernel_cache.misses == 1
    assert ctx.kernel_cache.hits == 1
    assert ctx.metrics["spatial_kernel_radius"] >= 1


def test_processor_without_compression(make_frame):
    ctx = PipelineContext(age=1)
    ctx.resize(8, 8)
    frame = make_frame(8, 8, (200, 40, 40))
    plain = SpatialFilterProcessor(SpatialConfig(contrast_compression=False)).process(frame, ctx)
    compressed = SpatialFilterProcessor(SpatialConfig()).process(frame, ctx)
    assert plain.pixel(4, 4)[:3] == pytest.approx((200, 40, 40), abs=1)
    assert compressed.pixel(4, 4)[0] < plain.pixel(4, 4)[0]
