"""Tests for object construction defaults."""

import pytest

from missionmap.engine.config import EditorConfig, StyleTheme
from missionmap.engine.errors import InvalidGeometry, MalformedColor
from missionmap.engine.factories import ObjectFactory, format_inches
from missionmap.engine.geometry import bounding_box
from missionmap.engine.types import ObjectKind


@pytest.fixture
def factory():
    return ObjectFactory(EditorConfig())


class TestZones:
    def test_zone_keeps_click_order(self, factory):
        pts = [(0.0, 0.0), (100.0, 0.0), (100.0, 100.0)]
        zone = factory.zone_from_points(pts, "attacker")
        assert zone.kind == ObjectKind.ATTACKER_ZONE
        assert zone.world_points() == pts
        assert zone.position == (50.0, 50.0)

    def test_palette_colors(self, factory):
        pts = [(0.0, 0.0), (20.0, 0.0), (20.0, 20.0)]
        assert factory.zone_from_points(pts, "attacker").fill == "#FF0000"
        assert factory.zone_from_points(pts, "defender").fill == "#00FF00"
        custom = factory.zone_from_points(pts, "custom", color="#abcdef", opacity=0.6)
        assert custom.fill == "#ABCDEF"
        assert custom.opacity == pytest.approx(0.6)

    def test_too_few_points(self, factory):
        with pytest.raises(InvalidGeometry):
            factory.zone_from_points([(0.0, 0.0), (1.0, 1.0)], "attacker")

    def test_bad_color(self, factory):
        pts = [(0.0, 0.0), (20.0, 0.0), (20.0, 20.0)]
        with pytest.raises(MalformedColor):
            factory.zone_from_points(pts, "custom", color="blue-ish")

    def test_deployment_is_twelve_by_six(self, factory):
        zone = factory.deployment_zone("defender")
        x0, y0, x1, y1 = zone.bounds()
        assert x1 - x0 == pytest.approx(240.0)
        assert y1 - y0 == pytest.approx(120.0)
        assert zone.position == (600.0, 440.0)
        assert zone.rectangle

    def test_preview_is_half_opacity_and_inert(self, factory):
        pts = [(0.0, 0.0), (20.0, 0.0), (20.0, 20.0)]
        preview = factory.zone_preview(pts, "#123456", 0.8)
        assert preview.kind == ObjectKind.ZONE_PREVIEW
        assert preview.opacity == pytest.approx(0.4)
        assert not preview.interactivity.selectable


# ---------------------------------------------------------------------------
# Icons
# ---------------------------------------------------------------------------


class TestIcons:
    def test_objective_is_two_units(self, factory):
        marker = factory.objective_marker()
        x0, y0, x1, y1 = marker.bounds()
        assert max(x1 - x0, y1 - y0) == pytest.approx(40.0)
        assert marker.position == (600.0, 440.0)

    def test_strike_force_half_scale(self, factory):
        marker = factory.strike_force_marker((100.0, 100.0))
        assert marker.transform.a == pytest.approx(0.5)
        assert marker.transform.d == pytest.approx(0.5)
        assert marker.position == (100.0, 100.0)

    def test_unit_icon_opaque(self, factory):
        unit = factory.unit_icon("defender")
        assert unit.kind == ObjectKind.DEFENDER_UNIT
        assert unit.opacity == 1.0

    def test_unknown_side(self, factory):
        with pytest.raises(ValueError):
            factory.unit_icon("neutral")


# ---------------------------------------------------------------------------
# Measurement and theme
# ---------------------------------------------------------------------------


class TestMeasurement:
    def test_horizontal_defaults(self, factory):
        aid = factory.measurement_aid("horizontal")
        inter = aid.interactivity
        assert aid.length == pytest.approx(100.0)
        assert aid.text == '5.0"'
        assert inter.lock_rotation
        assert inter.lock_scaling_y
        assert not inter.lock_scaling_x
        assert inter.visible_handles() == ["ml", "mr"]

    def test_vertical_defaults(self, factory):
        aid = factory.measurement_aid("vertical")
        inter = aid.interactivity
        assert inter.lock_scaling_x
        assert not inter.lock_scaling_y
        assert inter.visible_handles() == ["mt", "mb"]
        a, b = aid.endpoints()
        assert a[0] == b[0]

    def test_bad_orientation(self, factory):
        with pytest.raises(ValueError):
            factory.measurement_aid("diagonal")

    def test_format_inches(self):
        assert format_inches(130, 20) == '6.5"'


class TestTheme:
    def test_theme_applied_per_factory(self):
        themed = ObjectFactory(
            EditorConfig(theme=StyleTheme(corner_style="rect", corner_color="#333333"))
        )
        plain = ObjectFactory(EditorConfig())
        a = themed.deployment_zone("attacker").interactivity
        b = plain.deployment_zone("attacker").interactivity
        assert (a.corner_style, a.corner_color) == ("rect", "#333333")
        assert (b.corner_style, b.corner_color) == ("circle", "#0000FF")

    def test_drawing_artifacts_inert(self, factory):
        assert not factory.drawing_marker((0.0, 0.0)).interactivity.selectable
        line = factory.drawing_line((0.0, 0.0), (20.0, 0.0))
        assert not line.interactivity.evented
        assert bounding_box(line.outline()) == (0.0, 0.0, 20.0, 0.0)
