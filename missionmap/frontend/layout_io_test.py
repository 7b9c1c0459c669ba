"""Tests for layout_io save/load helpers."""

import json

import pytest
from PIL import Image

from missionmap.engine import EditorSession, MalformedSnapshot

from .layout_io import (
    METADATA_KEY,
    load_scene,
    load_scene_json,
    load_scene_png,
    png_bytes,
    save_scene_json,
    save_scene_png,
    snapshot_from_png_bytes,
)


@pytest.fixture
def snapshot():
    session = EditorSession()
    session.add_deployment_zone("attacker")
    session.set_text("Attacker DZ")
    session.add_objective_marker((100.0, 100.0))
    return session.snapshot()


def test_save_and_load_png_roundtrip(tmp_path, snapshot):
    """Save a scene in a PNG, load it back, and verify equality."""
    img = Image.new("RGB", (100, 100), "green")
    path = str(tmp_path / "scene.png")

    save_scene_png(img, snapshot, path)
    loaded = load_scene_png(path)

    assert loaded == snapshot


def test_png_is_still_an_image(tmp_path, snapshot):
    img = Image.new("RGBA", (40, 30), "white")
    path = tmp_path / "scene.png"
    save_scene_png(img, snapshot, str(path))
    with Image.open(path) as reopened:
        assert reopened.size == (40, 30)
        assert METADATA_KEY in reopened.text


def test_load_png_missing_chunk(tmp_path):
    """A plain PNG without metadata raises MalformedSnapshot."""
    img = Image.new("RGB", (100, 100), "red")
    path = str(tmp_path / "plain.png")
    img.save(path)

    with pytest.raises(MalformedSnapshot) as exc:
        load_scene_png(path)
    assert METADATA_KEY in str(exc.value)


def test_png_bytes_without_snapshot():
    data = png_bytes(Image.new("RGB", (10, 10)))
    assert data[:8] == b"\x89PNG\r\n\x1a\n"
    with pytest.raises(MalformedSnapshot):
        snapshot_from_png_bytes(data)


def test_not_a_png():
    with pytest.raises(MalformedSnapshot):
        snapshot_from_png_bytes(b"hello")


def test_load_json_roundtrip(tmp_path, snapshot):
    """Write a JSON file and load it back."""
    path = str(tmp_path / "scene.json")
    save_scene_json(snapshot, path)
    assert load_scene_json(path) == snapshot
    with open(path) as f:
        assert json.load(f) == snapshot


def test_load_json_invalid(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{nope")
    with pytest.raises(MalformedSnapshot):
        load_scene_json(str(path))


def test_load_dispatches_png(tmp_path, snapshot):
    path = str(tmp_path / "scene.PNG")
    save_scene_png(Image.new("RGB", (10, 10)), snapshot, path)
    assert load_scene(path) == snapshot


def test_load_dispatches_json(tmp_path, snapshot):
    path = str(tmp_path / "scene.json")
    save_scene_json(snapshot, path)
    assert load_scene(path) == snapshot


def test_load_unsupported_extension(tmp_path):
    """Unsupported file extensions raise ValueError."""
    with pytest.raises(ValueError, match="Unsupported file extension"):
        load_scene(str(tmp_path / "scene.txt"))


def test_loaded_png_restores_session(tmp_path, snapshot):
    path = str(tmp_path / "scene.png")
    save_scene_png(Image.new("RGB", (10, 10)), snapshot, path)
    session = EditorSession()
    session.load_snapshot(load_scene(path))
    assert session.snapshot() == snapshot
