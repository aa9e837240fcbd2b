"""
Display-space → source-space coordinate mapping.

A ``CropRect`` recorded by the editor is always relative to the image's
unzoomed display layout.  Zoom magnifies the picture on screen only, so it
is undone by the editor (``zoomed_to_display``) as soon as a pointer
position is read and never enters ``to_source_space``.
"""

import logging
import math

from shape_crop_tool.errors import DegenerateScale, InvalidGeometry
from shape_crop_tool.geometry import check_crop_aspect, clamp_crop
from shape_crop_tool.models import CropRect, CropUnit, ImageBuffer, SourceRect

logger = logging.getLogger(__name__)


# =============================================================================
# Display ↔ source
# =============================================================================
def scale_factors(image: ImageBuffer) -> tuple[float, float]:
    """Return ``(natural_w / display_w, natural_h / display_h)``."""
    dw, dh = image.display_w, image.display_h
    if not (math.isfinite(dw) and math.isfinite(dh)) or dw <= 0 or dh <= 0:
        raise DegenerateScale(f"image has no usable display size ({dw}x{dh})")
    return image.natural_w / dw, image.natural_h / dh


def to_source_space(crop: CropRect, scale_x: float, scale_y: float) -> SourceRect:
    """Scale a display-pixel crop into natural source pixels.

    X axis values are multiplied by *scale_x* and Y axis values by
    *scale_y*; the two are independent.
    """
    if crop.unit != CropUnit.PIXELS:
        raise InvalidGeometry("crop must be in display pixels before mapping; call to_pixels() first")
    for name, val in (("scale_x", scale_x), ("scale_y", scale_y)):
        if not math.isfinite(val) or val <= 0:
            raise DegenerateScale(f"{name} must be positive and finite, got {val!r}")
    return SourceRect(
        x=crop.x * scale_x,
        y=crop.y * scale_y,
        w=crop.w * scale_x,
        h=crop.h * scale_y,
    )


def map_crop(image: ImageBuffer, crop: CropRect, aspect: float | None = None) -> SourceRect:
    """Clamp an editor crop to the display bounds and map it to source pixels.

    With *aspect*, the clamped crop must keep that width/height ratio; a
    mismatch raises InvalidGeometry instead of being stretched into the output.
    """
    sx, sy = scale_factors(image)
    clamped = clamp_crop(crop, image.display_w, image.display_h, aspect)
    if aspect is not None:
        check_crop_aspect(clamped, aspect)
    source = to_source_space(clamped, sx, sy)
    logger.debug(
        "Mapped display crop (%.1f, %.1f, %.1f×%.1f) → source (%.1f, %.1f, %.1f×%.1f) at scale %.4g×%.4g",
        clamped.x, clamped.y, clamped.w, clamped.h,
        source.x, source.y, source.w, source.h, sx, sy,
    )
    return source


# =============================================================================
# Presentation (zoom) helpers
# =============================================================================
def _check_zoom(zoom: float) -> None:
    if not math.isfinite(zoom) or zoom <= 0:
        raise InvalidGeometry(f"zoom must be positive and finite, got {zoom!r}")


def display_to_zoomed(dx: float, dy: float, zoom: float, center: tuple[float, float]) -> tuple[float, float]:
    """Where a display-space point appears once the view is magnified about *center*."""
    _check_zoom(zoom)
    cx, cy = center
    return cx + (dx - cx) * zoom, cy + (dy - cy) * zoom


def zoomed_to_display(zx: float, zy: float, zoom: float, center: tuple[float, float]) -> tuple[float, float]:
    """Inverse of ``display_to_zoomed``: undo the magnification of an on-screen point."""
    _check_zoom(zoom)
    cx, cy = center
    return cx + (zx - cx) / zoom, cy + (zy - cy) / zoom
