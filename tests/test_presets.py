"""
Tests for presets.py: validation and presets.json persistence.
"""

import json

import pytest

from shape_crop_tool.config import DEFAULT_PRESETS
from shape_crop_tool.presets import (
    load_presets, parse_dimension, preset_for_size, validate_presets,
)


def test_defaults_are_valid():
    assert validate_presets(DEFAULT_PRESETS) == []


def test_load_creates_defaults_when_missing(config_home):
    presets = load_presets()
    assert presets == DEFAULT_PRESETS
    raw = json.loads((config_home / "presets.json").read_text(encoding="utf-8"))
    assert raw == {"version": 1, "presets": DEFAULT_PRESETS}


def test_load_returns_a_copy_of_defaults(config_home):
    presets = load_presets()
    presets[0]["width"] = 999
    assert DEFAULT_PRESETS[0]["width"] == 50


@pytest.mark.parametrize("content", [
    "{not json",
    json.dumps([{"name": "x", "width": 1, "height": 1, "shape": "square"}]),
    json.dumps({"version": 1, "presets": [{"name": "bad", "width": 0, "height": 1, "shape": "square"}]}),
    json.dumps({"version": 99, "presets": []}),
])
def test_load_restores_defaults_on_bad_file(config_home, content):
    (config_home / "presets.json").write_text(content, encoding="utf-8")
    assert load_presets() == DEFAULT_PRESETS
    raw = json.loads((config_home / "presets.json").read_text(encoding="utf-8"))
    assert raw["presets"] == DEFAULT_PRESETS


def test_load_reads_user_presets(config_home):
    custom = [
        {"name": "Avatar", "width": 256, "height": 256, "shape": "circle"},
        {"name": "Banner", "width": 1500, "height": 500, "shape": "rectangle"},
    ]
    (config_home / "presets.json").write_text(
        json.dumps({"version": 1, "presets": custom}), encoding="utf-8"
    )
    assert load_presets() == custom


def test_validate_reports_each_problem():
    errors = validate_presets([
        {"name": "A", "width": 10, "height": 10, "shape": "square"},
        {"name": "B", "width": 10, "height": 10, "shape": "square"},
        {"name": "C", "width": -1, "height": True, "shape": "hexagon"},
        {"name": "D"},
        "E",
    ])
    assert any("duplicates preset 'A'" in e for e in errors)
    assert any("width must be a positive integer" in e for e in errors)
    assert any("height must be a positive integer" in e for e in errors)
    assert any("shape must be one of" in e for e in errors)
    assert any("missing keys" in e for e in errors)
    assert any("must be a dict" in e for e in errors)
    assert validate_presets({"name": "x"}) == ["Presets data must be a list"]


def test_preset_for_size():
    assert preset_for_size(DEFAULT_PRESETS, 50, 75)["shape"] == "rectangle"
    assert preset_for_size(DEFAULT_PRESETS, 200, 200)["shape"] == "square"
    assert preset_for_size(DEFAULT_PRESETS, 75, 50) is None


@pytest.mark.parametrize("text, expected", [
    ("12", 12), (" 7 ", 7), ("0", None), ("-3", None), ("abc", None), ("", None), ("1.5", None),
])
def test_parse_dimension(text, expected):
    assert parse_dimension(text) == expected
