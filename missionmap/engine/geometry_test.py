"""Tests for grid snapping, color parsing and affine helpers."""

import math

import numpy as np
import pytest

from missionmap.engine.errors import MalformedColor
from missionmap.engine.geometry import (
    apply_matrix,
    bbox_center,
    bounding_box,
    distance,
    hex_to_rgb,
    parse_color,
    point_in_polygon,
    rgba,
    rotation,
    scaling,
    snap,
    translation,
    within_one_unit,
)


class TestSnap:
    def test_already_on_grid(self):
        assert snap((40, 60), 20) == (40.0, 60.0)

    def test_rounds_to_nearest(self):
        assert snap((29, 31), 20) == (20.0, 40.0)

    def test_half_rounds_up(self):
        assert snap((10, 30), 20) == (20.0, 40.0)

    def test_negative_coordinates(self):
        assert snap((-9, -11), 20) == (0.0, -20.0)

    def test_idempotent(self):
        p = snap((123.4, 77.7), 20)
        assert snap(p, 20) == p

    def test_result_is_multiple_of_grid(self):
        for x in range(-50, 50, 7):
            sx, sy = snap((x * 1.3, x * 0.7), 20)
            assert sx % 20 == 0
            assert sy % 20 == 0


class TestDistance:
    def test_pythagorean(self):
        assert distance((0, 0), (3, 4)) == pytest.approx(5.0)

    def test_within_one_unit_both_axes(self):
        assert within_one_unit((0, 0), (19, 19), 20)

    def test_not_within_one_unit_on_one_axis(self):
        assert not within_one_unit((0, 0), (20, 0), 20)
        assert not within_one_unit((0, 0), (0, 25), 20)


# ---------------------------------------------------------------------------
# Colors
# ---------------------------------------------------------------------------


class TestColors:
    def test_hex_to_rgb(self):
        assert hex_to_rgb("#FF8000") == (255, 128, 0)

    def test_hex_without_hash(self):
        assert hex_to_rgb("00ff00") == (0, 255, 0)

    def test_malformed_returns_none(self):
        assert hex_to_rgb("#GG0000") is None
        assert hex_to_rgb("#FFF") is None
        assert hex_to_rgb("") is None
        assert hex_to_rgb(None) is None

    def test_parse_color_normalizes(self):
        assert parse_color("ff00aa") == "#FF00AA"

    def test_parse_color_raises(self):
        with pytest.raises(MalformedColor):
            parse_color("not a color")

    def test_malformed_color_is_value_error(self):
        with pytest.raises(ValueError):
            parse_color("#12345")

    def test_rgba_clamps_opacity(self):
        assert rgba("#000000", 2.0) == (0, 0, 0, 255)
        assert rgba("#000000", -1.0) == (0, 0, 0, 0)

    def test_rgba_falls_back(self):
        assert rgba("bogus", 1.0, fallback="#0000FF") == (0, 0, 255, 255)


# ---------------------------------------------------------------------------
# Bounding boxes and containment
# ---------------------------------------------------------------------------


class TestBoundingBox:
    def test_bounds(self):
        assert bounding_box([(1, 5), (-2, 3), (4, -1)]) == (-2, -1, 4, 5)

    def test_center(self):
        assert bbox_center([(0, 0), (100, 0), (100, 50)]) == (50, 25)

    def test_empty_raises(self):
        with pytest.raises(ValueError):
            bounding_box([])


class TestPointInPolygon:
    SQUARE = [(0, 0), (10, 0), (10, 10), (0, 10)]

    def test_inside(self):
        assert point_in_polygon((5, 5), self.SQUARE)

    def test_outside(self):
        assert not point_in_polygon((15, 5), self.SQUARE)

    def test_boundary_counts(self):
        assert point_in_polygon((10, 5), self.SQUARE)

    def test_tolerance(self):
        assert not point_in_polygon((11, 5), self.SQUARE)
        assert point_in_polygon((11, 5), self.SQUARE, tolerance=2.0)

    def test_degenerate(self):
        assert not point_in_polygon((0, 0), [(0, 0), (1, 1)])


# ---------------------------------------------------------------------------
# Affine transforms
# ---------------------------------------------------------------------------


class TestAffine:
    def test_translation(self):
        assert apply_matrix(translation(5, -3), [(1, 1)]) == [(6.0, -2.0)]

    def test_scaling(self):
        assert apply_matrix(scaling(2, 3), [(1, 1)]) == [(2.0, 3.0)]

    def test_rotation_90(self):
        (x, y), = apply_matrix(rotation(90), [(1, 0)])
        assert x == pytest.approx(0.0, abs=1e-9)
        assert y == pytest.approx(1.0)

    def test_compose_and_invert(self):
        m = translation(10, 20) @ rotation(30) @ scaling(2, 0.5)
        pts = [(1.0, 2.0), (-3.0, 4.0)]
        back = apply_matrix(np.linalg.inv(m), apply_matrix(m, pts))
        for (x0, y0), (x1, y1) in zip(pts, back):
            assert x1 == pytest.approx(x0)
            assert y1 == pytest.approx(y0)

    def test_empty(self):
        assert apply_matrix(rotation(45), []) == []

    def test_rotation_preserves_length(self):
        (x, y), = apply_matrix(rotation(37), [(3, 4)])
        assert math.hypot(x, y) == pytest.approx(5.0)
