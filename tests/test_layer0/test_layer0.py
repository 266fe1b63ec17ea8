"""Tests for Layer 0 transforms — intensity field and Sobel gradient."""

import numpy as np
import pytest

import palmsight.engine.layer0.t0_01_intensity_field
import palmsight.engine.layer0.t0_02_gradient_magnitude

from palmsight.engine.context import PipelineContext, RasterImage
from palmsight.engine.errors import InvalidImageError
from palmsight.engine.layer0.t0_01_intensity_field import to_intensity
from palmsight.engine.layer0.t0_02_gradient_magnitude import sobel_magnitude
from palmsight.engine.pipeline import Pipeline
from palmsight.engine.registry import Layer, get_registry
from tests.conftest import blank_canvas, draw_rect


def test_layer0_registers_2_transforms():
    reg = get_registry()
    layer0 = reg.get_layer(Layer.PREPROCESSING)
    assert [s.id for s in layer0] == ["T0.01", "T0.02"]


def test_intensity_range():
    pixels = RasterImage.from_array(draw_rect(blank_canvas(20, 20, 200), 5, 5, 10, 10, 40)).pixels
    field = to_intensity(pixels)
    assert field.min() == pytest.approx(0.0)
    assert field.max() == pytest.approx(1.0)


def test_intensity_without_stretch_is_luma():
    pixels = np.zeros((2, 2, 4), dtype=np.uint8)
    pixels[..., 0] = 255  # pure red
    field = to_intensity(pixels, contrast_stretch=False)
    assert np.allclose(field, 0.299)


def test_intensity_constant_image_is_finite():
    pixels = RasterImage.from_array(blank_canvas(10, 10, 128)).pixels
    field = to_intensity(pixels)
    assert np.all(np.isfinite(field))
    assert np.all(field == 0.0)


def test_sobel_uniform_is_zero():
    field = np.full((30, 40), 0.37)
    assert not np.any(sobel_magnitude(field))


def test_sobel_step_edge():
    field = np.zeros((10, 10))
    field[:, 5:] = 1.0
    mag = sobel_magnitude(field)
    # Interior pixels on either side of the step respond with |gx| = 4
    assert mag[5, 4] == pytest.approx(4.0)
    assert mag[5, 5] == pytest.approx(4.0)
    assert mag[5, 2] == 0.0
    # Border stays zero
    assert not np.any(mag[0]) and not np.any(mag[:, 0])


def test_sobel_tiny_image():
    assert not np.any(sobel_magnitude(np.ones((2, 5))))


def test_uniform_image_pipeline(uniform_image):
    ctx = PipelineContext.from_image(uniform_image)
    Pipeline().run_layer(ctx, Layer.PREPROCESSING)
    assert ctx.gradient is not None
    assert ctx.gradient.shape == (uniform_image.height, uniform_image.width)
    assert not np.any(ctx.gradient)


def test_raster_rejects_empty_image():
    with pytest.raises(InvalidImageError):
        RasterImage(width=0, height=10, pixels=np.zeros((10, 0, 4), dtype=np.uint8))


def test_raster_from_buffer_size_mismatch():
    with pytest.raises(InvalidImageError):
        RasterImage.from_buffer(4, 4, b"\x00" * 10)


def test_raster_from_buffer():
    image = RasterImage.from_buffer(2, 3, bytes(range(24)))
    assert image.pixels.shape == (3, 2, 4)
    assert image.pixels[1, 0, 0] == 8
