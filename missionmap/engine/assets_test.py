"""Tests for icon loading and the abort-on-failure guarantee."""

import pytest
from PIL import Image

from missionmap.engine.assets import ICON_KEYS, IconLibrary
from missionmap.engine.config import EditorConfig
from missionmap.engine.editor import EditorSession
from missionmap.engine.errors import AssetLoadFailure


class TestBuiltinIcons:
    def test_every_key_has_an_icon(self):
        lib = IconLibrary()
        for key in ICON_KEYS:
            asset = lib.load(key)
            assert asset.size == (64, 64)
            assert asset.image.mode == "RGBA"

    def test_unknown_key(self):
        with pytest.raises(AssetLoadFailure) as exc:
            IconLibrary().load("dragon")
        assert exc.value.key == "dragon"

    def test_cached(self):
        lib = IconLibrary()
        assert lib.load("objective") is lib.load("objective")


class TestIconPaths:
    def test_loads_from_disk(self, tmp_path):
        path = tmp_path / "obj.png"
        Image.new("RGB", (30, 10), "purple").save(path)
        lib = IconLibrary({"objective": str(path)})
        asset = lib.load("objective")
        assert asset.size == (30, 10)
        assert asset.image.mode == "RGBA"

    def test_missing_file(self, tmp_path):
        lib = IconLibrary({"objective": str(tmp_path / "nope.png")})
        with pytest.raises(AssetLoadFailure):
            lib.load("objective")
        assert lib.get("objective") is None

    def test_not_an_image(self, tmp_path):
        path = tmp_path / "bad.png"
        path.write_text("definitely not a png")
        lib = IconLibrary({"strike_force": str(path)})
        with pytest.raises(AssetLoadFailure):
            lib.load("strike_force")


class TestInsertionAborts:
    def test_failed_icon_leaves_scene_unchanged(self, tmp_path):
        cfg = EditorConfig(icon_paths={"objective": str(tmp_path / "gone.png")})
        session = EditorSession(cfg)
        session.add_measurement()
        before = list(session.scene.objects)
        with pytest.raises(AssetLoadFailure):
            session.add_objective_marker()
        assert session.scene.objects == before

    def test_objective_scale_follows_icon(self, tmp_path):
        path = tmp_path / "wide.png"
        Image.new("RGBA", (80, 40)).save(path)
        session = EditorSession(EditorConfig(icon_paths={"objective": str(path)}))
        marker = session.add_objective_marker()
        x0, y0, x1, y1 = marker.bounds()
        assert x1 - x0 == pytest.approx(40.0)
        assert y1 - y0 == pytest.approx(20.0)
