"""
Render a mapped source region into a fixed-size output raster.

The pipeline owns its pixel buffers and has no drawing-context state:
allocate a background → resample the source region onto it → clip to the
shape mask.  The source rectangle always maps exactly onto the full output,
so the result is ``output_w × output_h`` whatever the region's size.
"""

import logging
import math

from PIL import Image

from shape_crop_tool.config import BACKGROUND_COLOR, RESAMPLE_FILTER
from shape_crop_tool.errors import EmptySourceRegion, InvalidGeometry
from shape_crop_tool.mask import mask_image
from shape_crop_tool.models import ImageBuffer, OutputBuffer, OutputSpec, SourceRect

logger = logging.getLogger(__name__)


def _visible_part(
    source_rect: SourceRect, img_w: int, img_h: int, out_w: int, out_h: int,
) -> tuple[tuple[float, float, float, float], tuple[int, int, int, int]] | None:
    """Overlap of *source_rect* with the image, and where it lands in the output.

    Returns ``(source_box, dest_box)`` or None when nothing overlaps.
    """
    left, top, right, bottom = source_rect.box
    il, it = max(left, 0.0), max(top, 0.0)
    ir, ib = min(right, float(img_w)), min(bottom, float(img_h))
    if ir <= il or ib <= it:
        return None

    # Output pixels per source pixel
    kx = out_w / source_rect.w
    ky = out_h / source_rect.h
    dl = round((il - left) * kx)
    dt = round((it - top) * ky)
    dr = round((ir - left) * kx)
    db = round((ib - top) * ky)
    if dr <= dl or db <= dt:
        return None
    return (il, it, ir, ib), (dl, dt, dr, db)


def render(
    image: ImageBuffer,
    source_rect: SourceRect,
    output_spec: OutputSpec,
    background: tuple[int, int, int, int] = BACKGROUND_COLOR,
    resample: Image.Resampling = RESAMPLE_FILTER,
) -> OutputBuffer:
    """Resample *source_rect* of *image* into a new ``OutputBuffer``.

    Areas where the source is transparent or absent show *background*; so
    does everything outside the circle for circular outputs.
    """
    if not (source_rect.w > 0 and source_rect.h > 0):
        logger.error(
            "Empty source region %.3f×%.3f reached the compositor; "
            "the crop should have been rejected during geometry resolution",
            source_rect.w, source_rect.h,
        )
        raise EmptySourceRegion(f"source region has no area ({source_rect.w}x{source_rect.h})")
    if not all(math.isfinite(v) for v in source_rect.box):
        raise InvalidGeometry(f"source region must be finite, got {source_rect}")

    out_w, out_h = output_spec.output_w, output_spec.output_h
    base = Image.new("RGBA", (out_w, out_h), background)

    src = image.image
    if src.mode != "RGBA":
        src = src.convert("RGBA")

    part = _visible_part(source_rect, src.width, src.height, out_w, out_h)
    if part is not None:
        src_box, (dl, dt, dr, db) = part
        resized = src.resize((dr - dl, db - dt), resample, box=src_box)
        layer = Image.new("RGBA", (out_w, out_h), (0, 0, 0, 0))
        layer.paste(resized, (dl, dt))
        base.alpha_composite(layer)
    else:
        logger.debug("Source region %s lies outside the image; output is background only", source_rect)

    mask = mask_image(output_spec.shape, out_w, out_h)
    plain = Image.new("RGBA", (out_w, out_h), background)
    result = Image.composite(base, plain, mask)

    logger.debug(
        "Rendered %s %dx%d from source box (%.1f, %.1f, %.1f, %.1f)",
        output_spec.shape.value, out_w, out_h, *source_rect.box,
    )
    return OutputBuffer(image=result, shape=output_spec.shape)
