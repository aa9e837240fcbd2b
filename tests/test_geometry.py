"""
Tests for geometry.py (initial_crop, clamp_crop, check_aspect).
"""

import math

import pytest

from shape_crop_tool.errors import InvalidGeometry
from shape_crop_tool.geometry import check_aspect, clamp_crop, initial_crop
from shape_crop_tool.models import CropRect, CropUnit, OutputSpec, Shape

DISPLAYS = [(500, 400), (100, 1000), (1000, 100), (1, 1), (333.3, 77.7), (1920, 1080)]
ASPECTS = [0.1, 0.5, 1.0, 50 / 75, 16 / 9, 10.0]


@pytest.mark.parametrize("display", DISPLAYS)
@pytest.mark.parametrize("aspect", ASPECTS)
def test_initial_crop_keeps_aspect_and_fits(display, aspect):
    dw, dh = display
    crop = initial_crop(dw, dh, aspect)

    assert crop.unit == CropUnit.PIXELS
    assert crop.w > 0 and crop.h > 0
    assert math.isclose(crop.w / crop.h, aspect, rel_tol=1e-9)
    assert crop.x >= 0 and crop.y >= 0
    assert crop.x + crop.w <= dw + 1e-9
    assert crop.y + crop.h <= dh + 1e-9


def test_initial_crop_width_fit():
    crop = initial_crop(500, 400, 16 / 9)
    assert crop.w == pytest.approx(450)
    assert crop.h == pytest.approx(253.125)
    assert crop.x == pytest.approx(25)
    assert crop.y == pytest.approx(73.4375)


def test_initial_crop_falls_back_to_height_fit():
    # 90% of 500 is 450, which would need 450 of height; only 400 is available
    crop = initial_crop(500, 400, 1.0)
    assert (crop.x, crop.y, crop.w, crop.h) == pytest.approx((50, 0, 400, 400))


@pytest.mark.parametrize("dw, dh", [(0, 400), (500, 0), (-1, 400), (math.inf, 400), (500, math.nan)])
def test_initial_crop_rejects_bad_display(dw, dh):
    with pytest.raises(InvalidGeometry):
        initial_crop(dw, dh, 1.0)


@pytest.mark.parametrize("aspect", [0, -1.0, math.inf, math.nan])
def test_initial_crop_rejects_bad_aspect(aspect):
    with pytest.raises(InvalidGeometry):
        initial_crop(500, 400, aspect)


def test_rectangle_requires_output_aspect():
    spec = OutputSpec(50, 75, Shape.RECTANGLE)
    crop = initial_crop(500, 400, 50 / 75, spec)
    assert math.isclose(crop.w / crop.h, 50 / 75, rel_tol=1e-9)

    with pytest.raises(InvalidGeometry):
        initial_crop(500, 400, 1.0, spec)


@pytest.mark.parametrize("shape", [Shape.CIRCLE, Shape.SQUARE])
def test_circle_and_square_require_unit_aspect(shape):
    spec = OutputSpec(50, 75, shape)
    initial_crop(500, 400, 1.0, spec)
    with pytest.raises(InvalidGeometry):
        initial_crop(500, 400, 50 / 75, spec)


def test_check_aspect_tolerates_float_noise():
    spec = OutputSpec(50, 75, Shape.RECTANGLE)
    check_aspect(spec, 0.6666666666666666)
    check_aspect(spec, 2 / 3 * (1 + 1e-9))
    with pytest.raises(InvalidGeometry):
        check_aspect(spec, 0.67)


# =============================================================================
# clamp_crop
# =============================================================================
def test_clamp_leaves_valid_crop_alone():
    crop = CropRect(50, 40, 200, 200)
    assert clamp_crop(crop, 500, 400) == crop


def test_clamp_translates_into_bounds():
    assert clamp_crop(CropRect(-20, -5, 100, 100), 500, 400) == CropRect(0, 0, 100, 100)
    assert clamp_crop(CropRect(480, 350, 100, 100), 500, 400) == CropRect(400, 300, 100, 100)


def test_clamp_shrinks_preserving_ratio():
    clamped = clamp_crop(CropRect(0, 0, 600, 600), 500, 400)
    assert (clamped.w, clamped.h) == pytest.approx((400, 400))
    assert clamped.x + clamped.w <= 500
    assert clamped.y + clamped.h <= 400


def test_clamp_imposes_requested_aspect_when_shrinking():
    clamped = clamp_crop(CropRect(0, 0, 1000, 10), 500, 400, aspect=1.0)
    assert (clamped.w, clamped.h) == pytest.approx((400, 400))


def test_clamp_converts_percent_units():
    crop = CropRect(10, 10, 50, 50, CropUnit.PERCENT)
    assert clamp_crop(crop, 500, 400) == CropRect(50, 40, 250, 200)


def test_clamp_keeps_zero_size_crop_degenerate():
    clamped = clamp_crop(CropRect(600, 500, 0, 0), 500, 400)
    assert clamped == CropRect(500, 400, 0, 0)


def test_clamp_treats_negative_size_as_zero():
    clamped = clamp_crop(CropRect(10, 10, -50, 30), 500, 400)
    assert clamped.w == 0
    assert clamped.h == 30


@pytest.mark.parametrize("dw, dh", [(0, 400), (500, -3)])
def test_clamp_rejects_bad_display(dw, dh):
    with pytest.raises(InvalidGeometry):
        clamp_crop(CropRect(0, 0, 10, 10), dw, dh)


@pytest.mark.parametrize("aspect", [0, -2.0, math.nan, math.inf])
def test_clamp_rejects_bad_aspect(aspect):
    with pytest.raises(InvalidGeometry):
        clamp_crop(CropRect(0, 0, 10, 10), 500, 400, aspect)


def test_clamp_rejects_non_finite_coordinates():
    with pytest.raises(InvalidGeometry):
        clamp_crop(CropRect(math.nan, 0, 10, 10), 500, 400)
