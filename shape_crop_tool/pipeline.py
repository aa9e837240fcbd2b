"""
One "apply crop" run: clamp → map → render → encode (Qt-free).

Each call is independent and has no side effects beyond logging; a failure
raises one of the ``errors`` kinds and leaves any previous ``CropResult``
owned by the caller untouched.
"""

import logging
from dataclasses import dataclass

from shape_crop_tool.compositor import render
from shape_crop_tool.config import MAX_OUTPUT_MB, OUTPUT_FORMAT_DEFAULT
from shape_crop_tool.export import encode_output, output_filename
from shape_crop_tool.mapping import map_crop
from shape_crop_tool.models import CropRect, ImageBuffer, OutputBuffer, OutputSpec
from shape_crop_tool.size_report import exceeds_limit, format_size, size_in_kb

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CropResult:
    output_spec: OutputSpec
    buffer: OutputBuffer
    data: bytes
    fmt: str
    filename: str
    size_kb: float
    over_limit: bool

    @property
    def size_label(self) -> str:
        return format_size(self.size_kb)


def apply_crop(
    image: ImageBuffer,
    crop: CropRect,
    output_spec: OutputSpec,
    fmt: str = OUTPUT_FORMAT_DEFAULT,
    max_output_mb: float = MAX_OUTPUT_MB,
) -> CropResult:
    """Render the committed display-space *crop* of *image* and encode it."""
    source = map_crop(image, crop, output_spec.aspect_ratio)
    buffer = render(image, source, output_spec)
    data = encode_output(buffer, fmt)

    size_kb = size_in_kb(len(data))
    over = exceeds_limit(size_kb, max_output_mb)
    if over:
        logger.warning(
            "Cropped image is %s, which exceeds the limit of %gMB",
            format_size(size_kb), max_output_mb,
        )
    else:
        logger.info("Cropped image ready (%s)", format_size(size_kb))

    return CropResult(
        output_spec=output_spec,
        buffer=buffer,
        data=data,
        fmt=fmt,
        filename=output_filename(output_spec, fmt),
        size_kb=size_kb,
        over_limit=over,
    )
