"""
Qt-free image I/O utilities.

Provides upload validation, helpers to open images (including PSD), build the
``ImageBuffer`` handed to the crop engine, and generate unique file paths.
"""

import logging
import mimetypes
from pathlib import Path

from PIL import Image, ImageOps
from psd_tools import PSDImage

from shape_crop_tool.config import ACCEPTED_EXTENSIONS, ACCEPTED_MIME_TYPES, MAX_UPLOAD_MB
from shape_crop_tool.errors import UploadRejected
from shape_crop_tool.models import ImageBuffer

logger = logging.getLogger(__name__)


def validate_upload(path: Path, max_size_mb: float = MAX_UPLOAD_MB) -> None:
    """
    Reject files the crop engine should never see.

    Raises UploadRejected for an unsupported extension or MIME type, or for
    a file larger than *max_size_mb*.  Raises OSError if the file cannot be
    read.
    """
    ext = path.suffix.lower()
    mime, _ = mimetypes.guess_type(path.name)
    if ext not in ACCEPTED_EXTENSIONS or (mime is not None and not mime.startswith("image/")):
        accepted = " or ".join(sorted(ACCEPTED_MIME_TYPES))
        raise UploadRejected(f"File type not supported. Please upload {accepted}")

    size = path.stat().st_size
    if size > max_size_mb * 1024 * 1024:
        raise UploadRejected(f"File is too large. Maximum size is {max_size_mb:g}MB")
    logger.debug("Accepted upload %s (%s, %d bytes)", path.name, mime or ext, size)


def open_image(path: Path) -> Image.Image:
    """Open an image file, using psd-tools for PSD and Pillow for the rest.

    EXIF orientation is applied so the pixels match what a viewer shows.
    """
    if path.suffix.lower() == ".psd":
        psd = PSDImage.open(str(path))
        return psd.composite()
    with Image.open(path) as img:
        img.load()
        return ImageOps.exif_transpose(img)


def fit_display_size(natural_w: int, natural_h: int, box_w: float, box_h: float) -> tuple[float, float]:
    """Size an image is laid out at when fitted (letterboxed) into a box."""
    if natural_w <= 0 or natural_h <= 0 or box_w <= 0 or box_h <= 0:
        return 0.0, 0.0
    scale = min(box_w / natural_w, box_h / natural_h)
    return natural_w * scale, natural_h * scale


def load_image_buffer(
    path: Path,
    display_w: float | None = None,
    display_h: float | None = None,
) -> ImageBuffer:
    """Validate, decode and wrap *path* for the crop engine.

    The display size defaults to the natural size (a 1:1 layout).
    """
    validate_upload(path)
    img = open_image(path)
    if display_w is None or display_h is None:
        display_w, display_h = img.width, img.height
    logger.info(
        "Loaded %s: %dx%d natural, %.1fx%.1f display",
        path.name, img.width, img.height, display_w, display_h,
    )
    return ImageBuffer(image=img, display_w=display_w, display_h=display_h)


def unique_path(out_path: Path) -> Path:
    """Return a unique path by appending -01, -02, etc. if file already exists."""
    if not out_path.exists():
        return out_path
    stem = out_path.stem
    suffix = out_path.suffix
    parent = out_path.parent
    counter = 1
    while True:
        candidate = parent / f"{stem}-{counter:02d}{suffix}"
        if not candidate.exists():
            return candidate
        counter += 1
