"""
Crop-geometry utilities in display space.

``initial_crop`` places the first selection when an image is opened and
``clamp_crop`` sanitizes whatever the editor hands back before it is mapped
to source pixels.  Both work on the image's display size and never see the
zoom factor.
"""

import math

from shape_crop_tool.config import ASPECT_TOLERANCE, INITIAL_CROP_PERCENT
from shape_crop_tool.errors import InvalidGeometry
from shape_crop_tool.models import CropRect, OutputSpec


# =============================================================================
# Validation
# =============================================================================
def _check_display(display_w: float, display_h: float) -> None:
    if not (math.isfinite(display_w) and math.isfinite(display_h)):
        raise InvalidGeometry(f"display size must be finite, got {display_w}x{display_h}")
    if display_w <= 0 or display_h <= 0:
        raise InvalidGeometry(f"display size must be positive, got {display_w}x{display_h}")


def _check_aspect_value(aspect: float) -> None:
    if not math.isfinite(aspect) or aspect <= 0:
        raise InvalidGeometry(f"aspect ratio must be positive and finite, got {aspect!r}")


def check_aspect(output_spec: OutputSpec, aspect: float) -> None:
    """Raise InvalidGeometry unless *aspect* is the one *output_spec* requires."""
    _check_aspect_value(aspect)
    required = output_spec.aspect_ratio
    if not math.isclose(aspect, required, rel_tol=ASPECT_TOLERANCE):
        raise InvalidGeometry(
            f"{output_spec.shape.value} output {output_spec.output_w}x{output_spec.output_h} "
            f"requires aspect ratio {required:.6g}, got {aspect:.6g}"
        )


def check_crop_aspect(crop: CropRect, aspect: float) -> None:
    """Raise InvalidGeometry unless *crop* (in pixels) has the width/height ratio *aspect*.

    Zero-size crops are left for the compositor to reject.
    """
    _check_aspect_value(aspect)
    if crop.w <= 0 or crop.h <= 0:
        return
    actual = crop.w / crop.h
    if not math.isclose(actual, aspect, rel_tol=ASPECT_TOLERANCE):
        raise InvalidGeometry(
            f"crop {crop.w:.6g}x{crop.h:.6g} has aspect ratio {actual:.6g}, expected {aspect:.6g}"
        )


# =============================================================================
# Crop math
# =============================================================================
def calculate_initial_size(display_w: float, display_h: float, aspect: float) -> tuple[float, float]:
    """Size of the initial crop: 90% of the width, falling back to full height."""
    # Try the width fit first
    crop_w = display_w * INITIAL_CROP_PERCENT / 100.0
    crop_h = crop_w / aspect
    if crop_h <= display_h:
        return crop_w, crop_h
    # Height is the binding constraint
    crop_h = display_h
    crop_w = crop_h * aspect
    return min(crop_w, display_w), crop_h


def center_crop(display_w: float, display_h: float, crop_w: float, crop_h: float) -> CropRect:
    """Return a centered crop rectangle."""
    x = (display_w - crop_w) / 2
    y = (display_h - crop_h) / 2
    return CropRect(x, y, crop_w, crop_h)


def initial_crop(
    display_w: float,
    display_h: float,
    aspect: float,
    output_spec: OutputSpec | None = None,
) -> CropRect:
    """Centered crop with the requested aspect ratio, in display pixels.

    When *output_spec* is given, *aspect* must match the ratio its shape
    requires (1 for circle and square, ``output_w / output_h`` for
    rectangle).
    """
    _check_display(display_w, display_h)
    _check_aspect_value(aspect)
    if output_spec is not None:
        check_aspect(output_spec, aspect)
    cw, ch = calculate_initial_size(display_w, display_h, aspect)
    return center_crop(display_w, display_h, cw, ch)


def clamp_crop(
    crop: CropRect,
    display_w: float,
    display_h: float,
    aspect: float | None = None,
) -> CropRect:
    """Shrink and translate *crop* so it lies inside the display bounds.

    Shrinking keeps *aspect* (or the rectangle's own ratio when omitted).
    Negative sizes count as zero, and a zero-size rectangle is returned as
    such; the compositor rejects it.
    """
    _check_display(display_w, display_h)
    if aspect is not None:
        _check_aspect_value(aspect)

    px = crop.to_pixels(display_w, display_h)
    if not all(math.isfinite(v) for v in (px.x, px.y, px.w, px.h)):
        raise InvalidGeometry(f"crop coordinates must be finite, got {px}")

    w = max(0.0, px.w)
    h = max(0.0, px.h)

    if w > display_w or h > display_h:
        if w > 0 and h > 0:
            if aspect is not None:
                h = w / aspect
            factor = min(1.0, display_w / w, display_h / h)
            w = min(w * factor, display_w)
            h = min(h * factor, display_h)
        else:
            w = min(w, display_w)
            h = min(h, display_h)

    x = max(0.0, min(px.x, display_w - w))
    y = max(0.0, min(px.y, display_h - h))
    return CropRect(x, y, w, h)
