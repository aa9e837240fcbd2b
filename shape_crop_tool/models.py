"""
Data models shared by the crop engine, the editor widget and the exporter.

``CropRect`` lives in display space (the image as laid out on screen, before
zoom); ``SourceRect`` lives in the decoded image's natural pixel space.
``ImageBuffer`` carries both sets of dimensions so the two spaces can be
related, and ``OutputSpec`` / ``OutputBuffer`` describe the rendered result.
"""

import math
from dataclasses import dataclass
from enum import Enum

from PIL import Image

from shape_crop_tool.config import ZOOM_MIN, ZOOM_MAX
from shape_crop_tool.errors import InvalidGeometry


# =============================================================================
# Enums
# =============================================================================
class Shape(str, Enum):
    CIRCLE = "circle"
    SQUARE = "square"
    RECTANGLE = "rectangle"


class CropUnit(str, Enum):
    PIXELS = "px"
    PERCENT = "%"


# =============================================================================
# Data classes
# =============================================================================
@dataclass
class CropRect:
    """Crop rectangle in display coordinates (never zoomed)."""
    x: float = 0.0
    y: float = 0.0
    w: float = 0.0
    h: float = 0.0
    unit: CropUnit = CropUnit.PIXELS

    def to_pixels(self, display_w: float, display_h: float) -> "CropRect":
        """Return this rectangle in absolute display pixels."""
        if self.unit == CropUnit.PIXELS:
            return CropRect(self.x, self.y, self.w, self.h)
        sx = display_w / 100.0
        sy = display_h / 100.0
        return CropRect(self.x * sx, self.y * sy, self.w * sx, self.h * sy)

    def to_percent(self, display_w: float, display_h: float) -> "CropRect":
        """Return this rectangle as percentages of the display size."""
        if self.unit == CropUnit.PERCENT:
            return CropRect(self.x, self.y, self.w, self.h, CropUnit.PERCENT)
        if display_w <= 0 or display_h <= 0:
            raise InvalidGeometry(f"display size must be positive, got {display_w}x{display_h}")
        sx = 100.0 / display_w
        sy = 100.0 / display_h
        return CropRect(self.x * sx, self.y * sy, self.w * sx, self.h * sy, CropUnit.PERCENT)


@dataclass(frozen=True)
class SourceRect:
    """Rectangle in natural (decoded) image pixels."""
    x: float
    y: float
    w: float
    h: float

    @property
    def box(self) -> tuple[float, float, float, float]:
        """``(left, top, right, bottom)`` as used by Pillow."""
        return (self.x, self.y, self.x + self.w, self.y + self.h)


@dataclass(frozen=True)
class ImageBuffer:
    """Decoded source image plus the size it is laid out at on screen."""
    image: Image.Image
    display_w: float
    display_h: float

    @property
    def natural_w(self) -> int:
        return self.image.width

    @property
    def natural_h(self) -> int:
        return self.image.height


@dataclass(frozen=True)
class OutputSpec:
    """Target raster size and clipping shape."""
    output_w: int
    output_h: int
    shape: Shape = Shape.SQUARE

    def __post_init__(self):
        for name in ("output_w", "output_h"):
            val = getattr(self, name)
            if isinstance(val, bool) or not isinstance(val, int) or val <= 0:
                raise InvalidGeometry(f"{name} must be a positive integer, got {val!r}")
        try:
            object.__setattr__(self, "shape", Shape(self.shape))
        except ValueError:
            raise InvalidGeometry(f"unknown shape {self.shape!r}") from None

    @property
    def aspect_ratio(self) -> float:
        """Aspect ratio the crop selection must keep for this output."""
        if self.shape in (Shape.CIRCLE, Shape.SQUARE):
            return 1.0
        return self.output_w / self.output_h


@dataclass(frozen=True)
class OutputBuffer:
    """Rendered RGBA raster, exactly ``output_w × output_h``."""
    image: Image.Image
    shape: Shape

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    @property
    def size(self) -> tuple[int, int]:
        return self.image.size

    def tobytes(self) -> bytes:
        return self.image.tobytes()


# =============================================================================
# Zoom
# =============================================================================
def clamp_zoom(zoom: float) -> float:
    """Pin a zoom factor to the supported range."""
    if not math.isfinite(zoom):
        return ZOOM_MIN
    return max(ZOOM_MIN, min(zoom, ZOOM_MAX))
