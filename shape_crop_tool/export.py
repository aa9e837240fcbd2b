"""
Encoding and saving of rendered crops (Qt-free).

``encode_output`` turns an ``OutputBuffer`` into file bytes; ``save_output``
writes them under the conventional ``cropped-image-{w}x{h}.{ext}`` name
without overwriting anything already there.
"""

import io
import logging
from pathlib import Path

from shape_crop_tool.config import (
    JPEG_QUALITY_DEFAULT, OUTPUT_FILENAME_PREFIX, OUTPUT_FORMATS,
    OUTPUT_FORMAT_DEFAULT, PNG_COMPRESS_LEVEL,
)
from shape_crop_tool.image_io import unique_path
from shape_crop_tool.models import OutputBuffer, OutputSpec

logger = logging.getLogger(__name__)


def _check_format(fmt: str) -> str:
    if fmt not in OUTPUT_FORMATS:
        raise ValueError(f"Unsupported output format {fmt!r}; expected one of {', '.join(OUTPUT_FORMATS)}")
    return fmt


def output_filename(output_spec: OutputSpec, fmt: str = OUTPUT_FORMAT_DEFAULT) -> str:
    """``cropped-image-{output_w}x{output_h}.{ext}``"""
    ext = OUTPUT_FORMATS[_check_format(fmt)]
    return f"{OUTPUT_FILENAME_PREFIX}-{output_spec.output_w}x{output_spec.output_h}.{ext}"


def encode_output(
    buffer: OutputBuffer,
    fmt: str = OUTPUT_FORMAT_DEFAULT,
    jpeg_quality: int = JPEG_QUALITY_DEFAULT,
) -> bytes:
    """Encode *buffer* as PNG (lossless, keeps RGBA) or JPEG (flattened to RGB)."""
    out = io.BytesIO()
    if _check_format(fmt) == "JPEG":
        buffer.image.convert("RGB").save(out, "JPEG", quality=jpeg_quality, optimize=True, subsampling=0)
    else:
        buffer.image.save(out, "PNG", compress_level=PNG_COMPRESS_LEVEL)
    data = out.getvalue()
    logger.debug("Encoded %dx%d %s result: %d bytes", buffer.width, buffer.height, fmt, len(data))
    return data


def save_output(
    data: bytes,
    output_spec: OutputSpec,
    out_dir: Path,
    fmt: str = OUTPUT_FORMAT_DEFAULT,
) -> Path:
    """Write encoded bytes to *out_dir* and return the path actually used."""
    out_dir.mkdir(parents=True, exist_ok=True)
    out_path = unique_path(out_dir / output_filename(output_spec, fmt))
    out_path.write_bytes(data)
    logger.info("Saved cropped image to %s (%d bytes)", out_path, len(data))
    return out_path
