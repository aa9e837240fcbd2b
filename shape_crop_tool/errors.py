"""
Error kinds raised by the crop engine.

All of them derive from ``CropError`` so callers can abort the current crop
with a single ``except`` clause.  Each one also subclasses the builtin that
best describes it, so plain ``ValueError`` handlers keep working.
"""


class CropError(Exception):
    """Base class for every crop-engine failure."""


class InvalidGeometry(CropError, ValueError):
    """Non-positive or non-finite dimensions or aspect ratio."""


class DegenerateScale(CropError, ValueError):
    """Display dimensions are zero, so no display→source scale exists."""


class EmptySourceRegion(CropError, RuntimeError):
    """The mapped source rectangle has no area.

    Geometry resolution guarantees non-degenerate rectangles, so reaching
    this means an upstream invariant was broken.
    """


class UploadRejected(CropError, ValueError):
    """The file is of an unsupported type or too large."""
