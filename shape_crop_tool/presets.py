"""
Output-size presets: load and validate preset configuration.

Runtime presets are stored in a JSON file in the user's config directory
(provided by ``config.config_dir()``).  On first launch (or if the file
is missing/corrupt), the file is created from DEFAULT_PRESETS.  This
module is Qt-free.

The on-disk format uses a versioned envelope::

    {"version": 1, "presets": [ ... ]}

Each preset names an output size and the shape selected along with it,
e.g. ``{"name": "50 × 75", "width": 50, "height": 75, "shape": "rectangle"}``.
"""

import json
import logging
from copy import deepcopy
from pathlib import Path

from shape_crop_tool.config import DEFAULT_PRESETS, config_dir
from shape_crop_tool.models import Shape

logger = logging.getLogger(__name__)

_PRESETS_FILENAME = "presets.json"
_FORMAT_VERSION = 1

_REQUIRED_KEYS = {"name", "width", "height", "shape"}
_INT_KEYS = ("width", "height")
_SHAPES = {s.value for s in Shape}


# =============================================================================
# Helpers
# =============================================================================
def _presets_path() -> Path:
    """Return the full path to presets.json."""
    return config_dir() / _PRESETS_FILENAME


def preset_for_size(presets: list[dict], width: int, height: int) -> dict | None:
    """Return the preset with exactly this output size, or None (custom)."""
    for preset in presets:
        if preset["width"] == width and preset["height"] == height:
            return preset
    return None


def parse_dimension(text: str) -> int | None:
    """Parse a custom width/height entry; only positive integers are accepted."""
    try:
        value = int(str(text).strip())
    except ValueError:
        return None
    return value if value > 0 else None


# =============================================================================
# Validation
# =============================================================================
def validate_presets(data: object) -> list[str]:
    """
    Validate a presets data structure.

    Returns a list of error strings (empty means valid).
    """
    errors: list[str] = []

    if not isinstance(data, list):
        errors.append("Presets data must be a list")
        return errors

    sizes_seen: dict[tuple[int, int], str] = {}  # (width, height) -> preset name

    for i, preset in enumerate(data):
        prefix = f"Preset #{i + 1}"

        if not isinstance(preset, dict):
            errors.append(f"{prefix}: must be a dict")
            continue

        missing = _REQUIRED_KEYS - preset.keys()
        if missing:
            errors.append(f"{prefix}: missing keys: {', '.join(sorted(missing))}")
            continue

        name = preset.get("name", "")
        if not isinstance(name, str) or not name.strip():
            errors.append(f"{prefix}: name must be a non-empty string")

        valid_size = True
        for key in _INT_KEYS:
            val = preset.get(key)
            if isinstance(val, bool) or not isinstance(val, int) or val <= 0:
                errors.append(f"{prefix}: {key} must be a positive integer, got {val!r}")
                valid_size = False

        shape = preset.get("shape")
        if shape not in _SHAPES:
            errors.append(f"{prefix}: shape must be one of {', '.join(sorted(_SHAPES))}, got {shape!r}")

        # One preset per output size
        if valid_size:
            size = (preset["width"], preset["height"])
            if size in sizes_seen:
                errors.append(
                    f"{prefix} ('{name}'): size {size[0]}x{size[1]} "
                    f"duplicates preset '{sizes_seen[size]}'"
                )
            else:
                sizes_seen[size] = name

    return errors


# =============================================================================
# Load / Save
# =============================================================================
def load_presets() -> list[dict]:
    """
    Load presets from presets.json.

    If the file is missing, corrupt, or fails validation, writes the
    defaults and returns them.
    """
    path = _presets_path()

    if not path.exists():
        logger.info("presets.json not found, creating with defaults at %s", path)
        _write_defaults(path)
        return deepcopy(DEFAULT_PRESETS)

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Failed to read presets.json (%s), restoring defaults", exc)
        _write_defaults(path)
        return deepcopy(DEFAULT_PRESETS)

    if not isinstance(raw, dict) or raw.get("version") != _FORMAT_VERSION or "presets" not in raw:
        logger.warning("presets.json missing version envelope, restoring defaults")
        _write_defaults(path)
        return deepcopy(DEFAULT_PRESETS)

    data = raw["presets"]
    errors = validate_presets(data)
    if errors:
        logger.warning(
            "presets.json validation failed:\n  %s\nRestoring defaults.",
            "\n  ".join(errors),
        )
        _write_defaults(path)
        return deepcopy(DEFAULT_PRESETS)

    return data


def _write_defaults(path: Path) -> None:
    """Write DEFAULT_PRESETS to the given path in versioned envelope."""
    try:
        envelope = {"version": _FORMAT_VERSION, "presets": deepcopy(DEFAULT_PRESETS)}
        path.write_text(json.dumps(envelope, indent=2, ensure_ascii=False), encoding="utf-8")
    except OSError as exc:
        logger.error("Could not write default presets to %s: %s", path, exc)
