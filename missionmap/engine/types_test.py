"""Tests for scene object types, transforms and their dict schema."""

import numpy as np
import pytest

from missionmap.engine.types import (
    DRAWING_KINDS,
    GROUP_KINDS,
    ZONE_KINDS,
    Group,
    Interactivity,
    Label,
    MeasurementAid,
    ObjectKind,
    Transform,
    UnitIcon,
    Zone,
    object_from_dict,
)


def _zone(kind=ObjectKind.ATTACKER_ZONE, at=(100.0, 100.0)):
    return Zone(
        kind=kind,
        transform=Transform.at(*at),
        points=[(-10.0, -10.0), (10.0, -10.0), (10.0, 10.0)],
        fill="#FF0000",
    )


class TestObjectKind:
    def test_name_is_kind_value(self):
        assert _zone().name == "attacker_zone"
        assert ObjectKind.MEASUREMENT.value == "measurement_group"

    def test_sets_are_disjoint(self):
        assert not (ZONE_KINDS & GROUP_KINDS)
        assert not (ZONE_KINDS & DRAWING_KINDS)


# ---------------------------------------------------------------------------
# Transform
# ---------------------------------------------------------------------------


class TestTransform:
    def test_identity(self):
        assert np.allclose(Transform().matrix(), np.eye(3))

    def test_inverse(self):
        t = Transform(a=2.0, b=0.5, c=-0.3, d=1.5, tx=10.0, ty=-4.0)
        assert np.allclose(t.matrix() @ t.inverse_matrix(), np.eye(3))

    def test_singular_raises(self):
        with pytest.raises(ValueError):
            Transform(a=0.0, d=0.0).inverse_matrix()

    def test_from_matrix_roundtrip(self):
        t = Transform(a=0.8, b=0.6, c=-0.6, d=0.8, tx=3.0, ty=4.0)
        assert Transform.from_matrix(t.matrix()) == t

    def test_dict_roundtrip(self):
        t = Transform.at(5.0, 6.0, scale=0.5)
        assert t.to_dict() == {"matrix": [0.5, 0.0, 0.0, 0.5, 5.0, 6.0]}
        assert Transform.from_dict(t.to_dict()) == t

    def test_missing_dict_is_identity(self):
        assert Transform.from_dict(None) == Transform()


class TestInteractivity:
    def test_inert_exposes_nothing(self):
        i = Interactivity.inert()
        assert not i.selectable
        assert i.visible_handles() == []

    def test_controls_dict_roundtrip(self):
        i = Interactivity(controls={"ml": True, "mr": True})
        again = Interactivity.from_dict(i.to_dict())
        assert again.visible_handles() == ["ml", "mr"]


# ---------------------------------------------------------------------------
# Objects
# ---------------------------------------------------------------------------


class TestZone:
    def test_world_points_apply_transform(self):
        z = _zone()
        assert z.world_points() == [(90.0, 90.0), (110.0, 90.0), (110.0, 110.0)]

    def test_zone_kind(self):
        assert _zone(ObjectKind.DEFENDER_ZONE).zone_kind == "defender"
        assert _zone(ObjectKind.CUSTOM_ZONE).zone_kind == "custom"

    def test_dict_roundtrip(self):
        z = _zone()
        again = object_from_dict(z.to_dict())
        assert isinstance(again, Zone)
        assert again.uid == z.uid
        assert again.points == z.points
        assert again.world_points() == z.world_points()


class TestGroup:
    def test_outline_spans_children(self):
        a = _zone(at=(0.0, 0.0))
        b = _zone(at=(100.0, 0.0))
        g = Group(kind=ObjectKind.GROUP, children=[a, b])
        assert g.bounds() == (-10.0, -10.0, 110.0, 10.0)

    def test_zone_and_label_accessors(self):
        z = _zone()
        lbl = Label(kind=ObjectKind.ZONE_LABEL, text="Hi")
        g = Group(kind=ObjectKind.ZONE_TEXT_GROUP, children=[z, lbl])
        assert g.zone() is z
        assert g.label() is lbl

    def test_clone_renews_all_uids(self):
        z = _zone()
        g = Group(kind=ObjectKind.GROUP, children=[z])
        dup = g.clone()
        assert dup.uid != g.uid
        assert dup.children[0].uid != z.uid
        assert dup.children[0] is not z

    def test_nested_dict_roundtrip(self):
        lbl = Label(kind=ObjectKind.ZONE_LABEL, text="Objective A")
        g = Group(kind=ObjectKind.ZONE_TEXT_GROUP, children=[_zone(), lbl])
        again = object_from_dict(g.to_dict())
        assert again.kind == ObjectKind.ZONE_TEXT_GROUP
        assert again.label().text == "Objective A"
        assert isinstance(again.zone(), Zone)


class TestMeasurementAid:
    def test_horizontal_endpoints(self):
        m = MeasurementAid(
            kind=ObjectKind.MEASUREMENT, transform=Transform.at(100.0, 50.0)
        )
        assert m.endpoints() == ((50.0, 50.0), (150.0, 50.0))

    def test_vertical_endpoints(self):
        m = MeasurementAid(
            kind=ObjectKind.MEASUREMENT,
            orientation="vertical",
            length=40.0,
        )
        assert m.endpoints() == ((0.0, -20.0), (0.0, 20.0))

    def test_bad_orientation_rejected(self):
        d = MeasurementAid(kind=ObjectKind.MEASUREMENT).to_dict()
        d["orientation"] = "diagonal"
        with pytest.raises(ValueError):
            object_from_dict(d)


class TestObjectFromDict:
    def test_unit_side(self):
        u = UnitIcon(kind=ObjectKind.DEFENDER_UNIT, icon="defender_unit")
        again = object_from_dict(u.to_dict())
        assert isinstance(again, UnitIcon)
        assert again.side == "defender"

    def test_unknown_name(self):
        with pytest.raises(ValueError):
            object_from_dict({"name": "teapot", "uid": "x"})

    def test_drawing_artifacts_not_loadable(self):
        with pytest.raises(ValueError):
            object_from_dict({"name": "drawing_marker", "uid": "x"})

    def test_missing_key(self):
        d = _zone().to_dict()
        del d["points"]
        with pytest.raises(KeyError):
            object_from_dict(d)
