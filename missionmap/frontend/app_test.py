"""Unit tests for the non-GUI helpers in frontend/app.py."""

import json

import pytest

pytest.importorskip("PIL.ImageTk")

from missionmap.engine import ClosurePolicy

from missionmap.engine.config import EditorConfig
from missionmap.engine.factories import ObjectFactory
from missionmap.engine.types import Interactivity

from .app import build_parser, keyboard_resize_handle, load_config

# ---------------------------------------------------------------------------
# build_parser
# ---------------------------------------------------------------------------


class TestBuildParser:
    def test_defaults(self):
        args = build_parser().parse_args([])
        assert args.preset is None
        assert args.config is None
        assert args.debug is False

    def test_all_flags(self):
        args = build_parser().parse_args(
            ["--preset", "quick_draw", "--config", "cfg.json", "--debug"]
        )
        assert args.preset == "quick_draw"
        assert args.config == "cfg.json"
        assert args.debug

    def test_unknown_preset_rejected(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--preset", "nope"])


# ---------------------------------------------------------------------------
# load_config
# ---------------------------------------------------------------------------


class TestLoadConfig:
    def test_no_arguments(self):
        cfg = load_config()
        assert cfg.closure_policy == ClosurePolicy.EXPLICIT_CLOSE

    def test_preset_only(self):
        cfg = load_config("quick_draw")
        assert cfg.closure_policy == ClosurePolicy.AUTO_CLOSE

    def test_file_overrides_preset(self, tmp_path):
        path = tmp_path / "cfg.json"
        path.write_text(json.dumps({"auto_close_points": 5, "grid_unit": 10}))
        cfg = load_config("quick_draw", str(path))
        assert cfg.closure_policy == ClosurePolicy.AUTO_CLOSE
        assert cfg.auto_close_points == 5
        assert cfg.grid_unit == 10

    def test_preset_named_in_file(self, tmp_path):
        path = tmp_path / "cfg.json"
        path.write_text(json.dumps({"preset": "night"}))
        cfg = load_config(config_path=str(path))
        assert cfg.background == "#2A2A2A"


# ---------------------------------------------------------------------------
# keyboard_resize_handle
# ---------------------------------------------------------------------------


class TestKeyboardResizeHandle:
    def test_corner_for_free_objects(self):
        factory = ObjectFactory(EditorConfig())
        for obj in (
            factory.objective_marker(),
            factory.strike_force_marker(),
            factory.unit_icon("attacker"),
            factory.deployment_zone("defender"),
        ):
            assert keyboard_resize_handle(obj.interactivity) == "br"

    def test_axis_handle_for_measurements(self):
        factory = ObjectFactory(EditorConfig())
        horizontal = factory.measurement_aid("horizontal")
        vertical = factory.measurement_aid("vertical")
        assert keyboard_resize_handle(horizontal.interactivity) == "mr"
        assert keyboard_resize_handle(vertical.interactivity) == "mb"

    def test_no_handles(self):
        assert keyboard_resize_handle(Interactivity.inert()) is None
