"""
Tests for export.py and pipeline.apply_crop.
"""

import io
import logging

import pytest
from PIL import Image

from shape_crop_tool.errors import DegenerateScale, EmptySourceRegion, InvalidGeometry
from shape_crop_tool.export import encode_output, output_filename, save_output
from shape_crop_tool.models import CropRect, ImageBuffer, OutputBuffer, OutputSpec, Shape
from shape_crop_tool.pipeline import apply_crop


@pytest.fixture
def buffer_1000x800(noise_image):
    return ImageBuffer(image=noise_image((1000, 800), seed=11), display_w=500, display_h=400)


def test_output_filename():
    spec = OutputSpec(50, 75, Shape.RECTANGLE)
    assert output_filename(spec) == "cropped-image-50x75.png"
    assert output_filename(spec, "JPEG") == "cropped-image-50x75.jpg"
    with pytest.raises(ValueError, match="Unsupported output format"):
        output_filename(spec, "GIF")


def test_encode_png_keeps_size_and_alpha():
    buf = OutputBuffer(image=Image.new("RGBA", (40, 30), (1, 2, 3, 255)), shape=Shape.RECTANGLE)
    with Image.open(io.BytesIO(encode_output(buf))) as img:
        assert img.format == "PNG"
        assert img.mode == "RGBA"
        assert img.size == (40, 30)


def test_encode_jpeg_flattens_to_rgb():
    buf = OutputBuffer(image=Image.new("RGBA", (16, 16), (255, 255, 255, 255)), shape=Shape.SQUARE)
    with Image.open(io.BytesIO(encode_output(buf, "JPEG"))) as img:
        assert img.format == "JPEG"
        assert img.mode == "RGB"


def test_save_output_never_overwrites(tmp_path):
    spec = OutputSpec(50, 50)
    first = save_output(b"one", spec, tmp_path / "out")
    second = save_output(b"two", spec, tmp_path / "out")
    assert first.name == "cropped-image-50x50.png"
    assert second.name == "cropped-image-50x50-01.png"
    assert first.read_bytes() == b"one"
    assert second.read_bytes() == b"two"


def test_apply_crop_documented_scenario(buffer_1000x800):
    result = apply_crop(buffer_1000x800, CropRect(50, 40, 200, 200), OutputSpec(100, 100, Shape.SQUARE))

    assert result.buffer.size == (100, 100)
    assert result.filename == "cropped-image-100x100.png"
    assert result.fmt == "PNG"
    assert result.size_kb == len(result.data) / 1024
    assert not result.over_limit
    assert result.size_label.endswith("KB")
    with Image.open(io.BytesIO(result.data)) as img:
        assert img.size == (100, 100)


def test_apply_crop_flags_oversized_result(buffer_1000x800, caplog):
    with caplog.at_level(logging.WARNING, logger="shape_crop_tool.pipeline"):
        result = apply_crop(
            buffer_1000x800, CropRect(0, 0, 400, 400), OutputSpec(200, 200, Shape.CIRCLE),
            max_output_mb=0.001,
        )
    assert result.over_limit
    assert "exceeds the limit" in caplog.text


def test_apply_crop_enforces_rectangle_aspect(buffer_1000x800):
    # A square drag is reshaped to the 2:3 output ratio while clamping
    result = apply_crop(buffer_1000x800, CropRect(0, 0, 600, 600), OutputSpec(50, 75, Shape.RECTANGLE))
    assert result.buffer.size == (50, 75)


def test_apply_crop_empty_region(buffer_1000x800):
    with pytest.raises(EmptySourceRegion):
        apply_crop(buffer_1000x800, CropRect(10, 10, 0, 0), OutputSpec(100, 100))


def test_apply_crop_degenerate_display(noise_image):
    buf = ImageBuffer(image=noise_image(), display_w=0, display_h=0)
    with pytest.raises(DegenerateScale):
        apply_crop(buf, CropRect(0, 0, 10, 10), OutputSpec(10, 10))


def test_apply_crop_rejects_in_bounds_crop_with_wrong_aspect(buffer_1000x800):
    # A 1:1 selection must not be stretched into a 2:3 output
    with pytest.raises(InvalidGeometry, match="aspect ratio"):
        apply_crop(buffer_1000x800, CropRect(0, 0, 200, 200), OutputSpec(50, 75, Shape.RECTANGLE))


@pytest.mark.parametrize("shape", [Shape.CIRCLE, Shape.SQUARE])
def test_apply_crop_rejects_non_square_crop_for_unit_shapes(buffer_1000x800, shape):
    with pytest.raises(InvalidGeometry):
        apply_crop(buffer_1000x800, CropRect(0, 0, 200, 100), OutputSpec(100, 100, shape))


def test_apply_crop_accepts_matching_rectangle(buffer_1000x800):
    result = apply_crop(buffer_1000x800, CropRect(10, 10, 100, 150), OutputSpec(50, 75, Shape.RECTANGLE))
    assert result.buffer.size == (50, 75)
