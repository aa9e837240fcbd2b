"""Shared fixtures: synthetic source images and an isolated config directory."""

import os

import numpy as np
import pytest
from PIL import Image

# Widget tests run without a display
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


@pytest.fixture
def solid_image():
    """Factory for a single-color image."""

    def make(size=(100, 100), color=(200, 30, 60), mode="RGB"):
        return Image.new(mode, size, color)

    return make


@pytest.fixture
def noise_image():
    """Factory for a reproducible random RGB image."""

    def make(size=(120, 90), seed=0):
        rng = np.random.default_rng(seed)
        w, h = size
        return Image.fromarray(rng.integers(0, 256, (h, w, 3), dtype=np.uint8))

    return make


@pytest.fixture
def config_home(tmp_path, monkeypatch):
    """Point every persistence module at a temporary config directory."""
    from shape_crop_tool import presets

    monkeypatch.setattr(presets, "config_dir", lambda: tmp_path)
    return tmp_path
