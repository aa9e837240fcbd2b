"""
Tests for mapping.py: display → source scaling and the zoom helpers.
"""

import pytest
from PIL import Image

from shape_crop_tool.errors import DegenerateScale, InvalidGeometry
from shape_crop_tool.mapping import (
    display_to_zoomed, map_crop, scale_factors, to_source_space, zoomed_to_display,
)
from shape_crop_tool.models import CropRect, CropUnit, ImageBuffer, SourceRect


@pytest.fixture
def buffer_1000x800():
    return ImageBuffer(image=Image.new("RGB", (1000, 800)), display_w=500, display_h=400)


def test_scale_factors(buffer_1000x800):
    assert scale_factors(buffer_1000x800) == (2.0, 2.0)


def test_scale_factors_are_independent_per_axis():
    buf = ImageBuffer(image=Image.new("RGB", (900, 300)), display_w=300, display_h=150)
    assert scale_factors(buf) == (3.0, 2.0)


@pytest.mark.parametrize("dw, dh", [(0, 400), (500, 0), (0, 0)])
def test_zero_display_size_is_degenerate(dw, dh):
    buf = ImageBuffer(image=Image.new("RGB", (10, 10)), display_w=dw, display_h=dh)
    with pytest.raises(DegenerateScale):
        scale_factors(buf)
    with pytest.raises(DegenerateScale):
        map_crop(buf, CropRect(0, 0, 5, 5))


def test_documented_scenario(buffer_1000x800):
    crop = CropRect(50, 40, 200, 200)
    assert to_source_space(crop, 2.0, 2.0) == SourceRect(100, 80, 400, 400)
    assert map_crop(buffer_1000x800, crop) == SourceRect(100, 80, 400, 400)


def test_mapping_is_linear_in_scale():
    crop = CropRect(12.5, 7, 30, 45)
    base = to_source_space(crop, 1.5, 0.75)
    doubled = to_source_space(crop, 3.0, 0.75)
    assert doubled.x == pytest.approx(2 * base.x)
    assert doubled.w == pytest.approx(2 * base.w)
    assert doubled.y == base.y
    assert doubled.h == base.h


def test_axes_scale_independently():
    src = to_source_space(CropRect(10, 10, 20, 20), 2.0, 3.0)
    assert src == SourceRect(20, 30, 40, 60)


@pytest.mark.parametrize("sx, sy", [(0, 1), (1, -1), (float("inf"), 1), (1, float("nan"))])
def test_bad_scale_is_degenerate(sx, sy):
    with pytest.raises(DegenerateScale):
        to_source_space(CropRect(0, 0, 1, 1), sx, sy)


def test_percent_crop_must_be_converted_first():
    with pytest.raises(InvalidGeometry):
        to_source_space(CropRect(10, 10, 50, 50, CropUnit.PERCENT), 2.0, 2.0)


def test_map_crop_clamps_out_of_range_drag(buffer_1000x800):
    src = map_crop(buffer_1000x800, CropRect(-10, 350, 100, 100))
    assert src == SourceRect(0, 600, 200, 200)


def test_map_crop_accepts_percent_units(buffer_1000x800):
    src = map_crop(buffer_1000x800, CropRect(10, 10, 40, 50, CropUnit.PERCENT))
    assert src == SourceRect(100, 80, 400, 400)


# =============================================================================
# Zoom is applied once, at presentation
# =============================================================================
def test_zoom_round_trip():
    center = (250, 200)
    for zoom in (1.0, 1.5, 2.0, 3.0):
        zx, zy = display_to_zoomed(123.0, 45.0, zoom, center)
        assert zoomed_to_display(zx, zy, zoom, center) == pytest.approx((123.0, 45.0))


def test_zoom_one_is_identity():
    assert display_to_zoomed(10, 20, 1.0, (250, 200)) == (10, 20)


def test_crop_drawn_while_zoomed_maps_without_zoom(buffer_1000x800):
    """A selection made on a 2× magnified view is stored and mapped unzoomed."""
    center = (250, 200)
    zoom = 2.0
    # Pointer positions on the magnified view
    x0, y0 = zoomed_to_display(150, 120, zoom, center)
    x1, y1 = zoomed_to_display(350, 320, zoom, center)
    crop = CropRect(x0, y0, x1 - x0, y1 - y0)
    assert crop == CropRect(200, 160, 100, 100)

    # Only the display→natural scale (2×) is applied, not the zoom again
    assert map_crop(buffer_1000x800, crop) == SourceRect(400, 320, 200, 200)


@pytest.mark.parametrize("zoom", [0, -1.0, float("nan")])
def test_bad_zoom_rejected(zoom):
    with pytest.raises(InvalidGeometry):
        display_to_zoomed(0, 0, zoom, (0, 0))
    with pytest.raises(InvalidGeometry):
        zoomed_to_display(0, 0, zoom, (0, 0))


def test_map_crop_checks_aspect_of_in_bounds_crop(buffer_1000x800):
    assert map_crop(buffer_1000x800, CropRect(0, 0, 100, 150), 2 / 3) == SourceRect(0, 0, 200, 300)
    with pytest.raises(InvalidGeometry):
        map_crop(buffer_1000x800, CropRect(0, 0, 100, 100), 2 / 3)


def test_map_crop_leaves_zero_size_crop_to_the_compositor(buffer_1000x800):
    assert map_crop(buffer_1000x800, CropRect(10, 10, 0, 0), 1.0) == SourceRect(20, 20, 0, 0)
