"""
Application constants and configuration.

DEFAULT_PRESETS provides the built-in output-size presets. Runtime presets
are loaded from presets.json via the presets module. All other constants
control crop geometry, rendering, upload validation and editor behaviour.

The ``config_dir()`` helper returns the platform-appropriate config
directory and is shared by all persistence modules.
"""

import os
import sys
from pathlib import Path

from PIL import Image

# =============================================================================
# APP IDENTITY & CONFIG DIRECTORY
# =============================================================================
APP_NAME = "shape-crop-tool"


def config_dir() -> Path:
    """Return the platform-appropriate config directory, creating it if needed."""
    if sys.platform == "win32":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    directory = base / APP_NAME
    directory.mkdir(parents=True, exist_ok=True)
    return directory

# =============================================================================
# DEFAULT PRESETS: built-in fallback when presets.json is missing or corrupt
# =============================================================================
DEFAULT_PRESETS = [
    {"name": "50 × 50", "width": 50, "height": 50, "shape": "square"},
    {"name": "50 × 75", "width": 50, "height": 75, "shape": "rectangle"},
    {"name": "100 × 100", "width": 100, "height": 100, "shape": "square"},
    {"name": "200 × 200", "width": 200, "height": 200, "shape": "square"},
]

# Output used on first launch
DEFAULT_OUTPUT_W = 200
DEFAULT_OUTPUT_H = 200
DEFAULT_SHAPE = "square"

# ---------------------------------------------------------------------------
# Crop geometry
# ---------------------------------------------------------------------------
# Width of the initial crop as a percentage of the displayed image width
INITIAL_CROP_PERCENT = 90

# Relative tolerance when comparing aspect ratios
ASPECT_TOLERANCE = 1e-6

# Zoom slider range (presentation-only magnification)
ZOOM_MIN = 1.0
ZOOM_MAX = 3.0
ZOOM_STEP = 0.1

# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------
# Opaque white shows through transparent sources and outside the circle mask
BACKGROUND_COLOR = (255, 255, 255, 255)

RESAMPLE_FILTER = Image.Resampling.LANCZOS

# ---------------------------------------------------------------------------
# Upload validation
# ---------------------------------------------------------------------------
ACCEPTED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".psd"}
ACCEPTED_MIME_TYPES = {"image/jpeg", "image/png", "image/vnd.adobe.photoshop"}
MAX_UPLOAD_MB = 5

# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------
# Results above this size are flagged to the user
MAX_OUTPUT_MB = 2

# PNG compression level (0-9, 9 = maximum compression)
PNG_COMPRESS_LEVEL = 9

JPEG_QUALITY_DEFAULT = 95

# Output format options, mapped to file extensions
OUTPUT_FORMATS = {"PNG": "png", "JPEG": "jpg"}
OUTPUT_FORMAT_DEFAULT = "PNG"

OUTPUT_FILENAME_PREFIX = "cropped-image"

# ---------------------------------------------------------------------------
# Crop editor
# ---------------------------------------------------------------------------
# Nudge amounts (display pixels)
NUDGE_SMALL = 1
NUDGE_LARGE = 10

# Minimum crop size while dragging (display pixels)
MIN_CROP_SIZE = 10

# Handle size for resize corners (pixels in screen coordinates)
HANDLE_SIZE = 8
