"""
Shape clipping for the output raster.

A pixel belongs to the mask when its center lies inside the shape.  The
mask is hard-edged: every excluded pixel ends up exactly the background
color.
"""

from typing import Callable

import numpy as np
from PIL import Image

from shape_crop_tool.errors import InvalidGeometry
from shape_crop_tool.models import Shape

MaskFn = Callable[[int, int], bool]


def _check_size(output_w: int, output_h: int) -> None:
    if output_w <= 0 or output_h <= 0:
        raise InvalidGeometry(f"output size must be positive, got {output_w}x{output_h}")


def _diameter(output_w: int, output_h: int) -> int:
    """Diameter of the disk inscribed in the output bounds."""
    return min(output_w, output_h)


def clip_region(shape: Shape, output_w: int, output_h: int) -> MaskFn:
    """Return a predicate telling whether output pixel ``(x, y)`` is drawn."""
    _check_size(output_w, output_h)
    if Shape(shape) != Shape.CIRCLE:
        return lambda x, y: 0 <= x < output_w and 0 <= y < output_h

    d2 = _diameter(output_w, output_h) ** 2

    def inside(x: int, y: int) -> bool:
        # Distances doubled so pixel centers stay on integers
        dx = 2 * x + 1 - output_w
        dy = 2 * y + 1 - output_h
        return dx * dx + dy * dy <= d2

    return inside


def mask_image(shape: Shape, output_w: int, output_h: int) -> Image.Image:
    """The clip region as an ``L`` image: 255 where drawn, 0 elsewhere."""
    _check_size(output_w, output_h)
    if Shape(shape) != Shape.CIRCLE:
        return Image.new("L", (output_w, output_h), 255)

    d2 = _diameter(output_w, output_h) ** 2
    dx2 = (2 * np.arange(output_w, dtype=np.int64) + 1 - output_w) ** 2
    dy2 = (2 * np.arange(output_h, dtype=np.int64) + 1 - output_h) ** 2
    # Only the boolean grid is full size
    inside = dx2[np.newaxis, :] <= (d2 - dy2)[:, np.newaxis]
    return Image.fromarray(inside.view(np.uint8) * np.uint8(255))
