"""Tests for SceneGraph ordering, events and the background layer."""

import pytest

from missionmap.engine.config import EditorConfig
from missionmap.engine.factories import ObjectFactory
from missionmap.engine.scene import SceneGraph
from missionmap.engine.types import ObjectKind


@pytest.fixture
def scene():
    return SceneGraph(EditorConfig())


@pytest.fixture
def factory():
    return ObjectFactory(EditorConfig())


class TestBackground:
    def test_grid_covers_canvas(self, scene):
        minor = [g for g in scene.grid_lines if not g.major]
        # 61 vertical + 45 horizontal lines at one-inch spacing
        assert len(minor) == 61 + 45

    def test_major_lines_every_four_inches(self, scene):
        major = [g for g in scene.grid_lines if g.major]
        assert len(major) == 16 + 12

    def test_center_marker_at_center(self, scene):
        assert scene.center_marker.position == (600.0, 440.0)
        assert scene.center_marker_visible

    def test_background_not_in_objects(self, scene):
        assert len(scene) == 0
        assert scene.user_objects() == []
        assert scene.all()[-1] is scene.center_marker

    def test_background_cannot_be_added(self, scene):
        with pytest.raises(ValueError):
            scene.add(scene.center_marker)

    def test_toggle_center_marker(self, scene):
        scene.set_center_marker_visible(False)
        assert not scene.center_marker_visible
        assert not scene.center_marker.visible

    def test_toggle_grid(self, scene):
        scene.set_grid_visible(False)
        assert not scene.grid_visible
        assert all(not g.visible for g in scene.grid_lines)


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------


class TestOrdering:
    def test_insertion_order_is_z_order(self, scene, factory):
        a = factory.measurement_aid("horizontal")
        b = factory.measurement_aid("vertical")
        scene.add(a)
        scene.add(b)
        assert scene.objects == [a, b]

    def test_add_twice_rejected(self, scene, factory):
        a = factory.measurement_aid()
        scene.add(a)
        with pytest.raises(ValueError):
            scene.add(a)

    def test_zone_goes_below_overlays(self, scene, factory):
        marker = factory.objective_marker()
        scene.add(marker)
        zone = factory.deployment_zone("attacker")
        scene.add(zone)
        assert scene.objects == [zone, marker]

    def test_overlays_keep_relative_order(self, scene, factory):
        m1 = factory.objective_marker()
        m2 = factory.measurement_aid()
        m3 = factory.unit_icon("attacker")
        for o in (m1, m2, m3):
            scene.add(o)
        zone = factory.deployment_zone("defender")
        scene.add(zone)
        assert scene.objects == [zone, m1, m2, m3]

    def test_drawing_artifacts_stay_on_top(self, scene, factory):
        marker = factory.drawing_marker((0.0, 0.0))
        scene.add(marker)
        overlay = factory.objective_marker()
        scene.add(overlay)
        zone = factory.deployment_zone("attacker")
        scene.add(zone)
        assert scene.objects == [zone, overlay, marker]

    def test_bring_to_front(self, scene, factory):
        a = factory.deployment_zone("attacker")
        b = factory.deployment_zone("defender")
        scene.add(a)
        scene.add(b)
        scene.bring_to_front(a)
        assert scene.objects == [b, a]

    def test_insert_many_raises_overlays_once(self, scene, factory):
        top = scene.add(factory.deployment_zone("defender"))
        zone = factory.deployment_zone("attacker")
        marker = factory.objective_marker()
        scene.insert_many(0, [zone, marker])
        assert scene.objects == [zone, top, marker]

    def test_insert_many_checks_before_inserting(self, scene, factory):
        a = scene.add(factory.measurement_aid())
        b = factory.measurement_aid("vertical")
        with pytest.raises(ValueError):
            scene.insert_many(0, [b, a])
        assert scene.objects == [a]

    def test_index_of_missing(self, scene, factory):
        with pytest.raises(ValueError):
            scene.index_of(factory.measurement_aid())


# ---------------------------------------------------------------------------
# Queries and events
# ---------------------------------------------------------------------------


class TestHitTest:
    def test_topmost_wins(self, scene, factory):
        lower = factory.deployment_zone("attacker")
        upper = factory.deployment_zone("defender")
        scene.add(lower)
        scene.add(upper)
        assert scene.hit_test((600, 440)) is upper

    def test_empty_space(self, scene, factory):
        scene.add(factory.deployment_zone("attacker"))
        assert scene.hit_test((5, 5)) is None

    def test_inert_objects_ignored(self, scene, factory):
        scene.add(factory.drawing_marker((600.0, 440.0)))
        assert scene.hit_test((600, 440)) is None

    def test_hidden_objects_ignored(self, scene, factory):
        zone = factory.deployment_zone("attacker")
        zone.visible = False
        scene.add(zone)
        assert scene.hit_test((600, 440)) is None


class TestEvents:
    def test_listener_sees_mutations(self, scene, factory):
        events = []
        scene.subscribe(lambda event, obj: events.append((event, obj)))
        zone = factory.deployment_zone("attacker")
        scene.add(zone)
        scene.remove(zone)
        assert events == [("added", zone), ("removed", zone)]

    def test_unsubscribe(self, scene, factory):
        events = []
        unsubscribe = scene.subscribe(lambda e, o: events.append(e))
        unsubscribe()
        scene.add(factory.measurement_aid())
        assert events == []

    def test_remove_clears_active(self, scene, factory):
        zone = scene.add(factory.deployment_zone("attacker"))
        scene.set_active(zone)
        scene.remove(zone)
        assert scene.active is None

    def test_find_by_uid(self, scene, factory):
        zone = scene.add(factory.deployment_zone("attacker"))
        assert scene.find(zone.uid) is zone
        assert scene.find("missing") is None

    def test_disposed_rejects_adds(self, scene, factory):
        scene.dispose()
        with pytest.raises(RuntimeError):
            scene.add(factory.measurement_aid())

    def test_clear_keeps_background(self, scene, factory):
        scene.add(factory.deployment_zone("attacker"))
        scene.clear()
        assert len(scene) == 0
        assert scene.center_marker in scene.all()
