"""Grid snapping, distances, colors and 2D affine helpers.

Everything here is pure. Points are ``(x, y)`` tuples in canvas pixels.
Affine transforms are 3x3 numpy matrices acting on column vectors
``[x, y, 1]``; ``types.Transform`` stores the six meaningful entries.
"""

from __future__ import annotations

import math
import re

import numpy as np
from shapely.geometry import Point as ShapelyPoint
from shapely.geometry import Polygon as ShapelyPolygon

from .errors import MalformedColor

Point = tuple[float, float]

_HEX_RE = re.compile(r"^#?([0-9a-fA-F]{2})([0-9a-fA-F]{2})([0-9a-fA-F]{2})$")


# ---------------------------------------------------------------------------
# Grid
# ---------------------------------------------------------------------------


def snap(p: Point, grid_unit: float = 20) -> Point:
    """Round each coordinate to the nearest multiple of ``grid_unit``.

    Halves round up (10 -> 20 with a 20 px grid), not to even.
    """
    x, y = p
    return (
        float(math.floor(x / grid_unit + 0.5) * grid_unit),
        float(math.floor(y / grid_unit + 0.5) * grid_unit),
    )


def distance(a: Point, b: Point) -> float:
    return math.hypot(b[0] - a[0], b[1] - a[1])


def within_one_unit(a: Point, b: Point, grid_unit: float) -> bool:
    """True if ``a`` is closer than one grid unit to ``b`` on both axes."""
    return abs(a[0] - b[0]) < grid_unit and abs(a[1] - b[1]) < grid_unit


# ---------------------------------------------------------------------------
# Colors
# ---------------------------------------------------------------------------


def hex_to_rgb(value: str) -> tuple[int, int, int] | None:
    """Parse ``#RRGGBB`` (``#`` optional). Returns None if malformed."""
    if not isinstance(value, str):
        return None
    m = _HEX_RE.match(value.strip())
    if m is None:
        return None
    return tuple(int(g, 16) for g in m.groups())  # type: ignore[return-value]


def parse_color(value: str) -> str:
    """Normalize a hex color to ``#RRGGBB`` or raise ``MalformedColor``."""
    rgb = hex_to_rgb(value)
    if rgb is None:
        raise MalformedColor(f"Not a 6-digit hex color: {value!r}")
    return rgb_to_hex(rgb)


def rgb_to_hex(rgb: tuple[int, int, int]) -> str:
    r, g, b = rgb
    return f"#{r:02X}{g:02X}{b:02X}"


def rgba(value: str, opacity: float, fallback: str = "#000000"):
    """Return an ``(r, g, b, a)`` tuple for Pillow drawing."""
    rgb = hex_to_rgb(value) or hex_to_rgb(fallback) or (0, 0, 0)
    alpha = int(round(max(0.0, min(1.0, opacity)) * 255))
    return (*rgb, alpha)


def rgba_string(value: str, opacity: float, fallback: str = "#000000") -> str:
    """CSS-style ``rgba(r, g, b, a)`` string, used in snapshots."""
    r, g, b, _ = rgba(value, opacity, fallback)
    return f"rgba({r}, {g}, {b}, {opacity:g})"


# ---------------------------------------------------------------------------
# Bounding boxes
# ---------------------------------------------------------------------------


def bounding_box(points: list[Point]) -> tuple[float, float, float, float]:
    """Return (min_x, min_y, max_x, max_y). Raises ValueError if empty."""
    if not points:
        raise ValueError("bounding_box of an empty point list")
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    return min(xs), min(ys), max(xs), max(ys)


def bbox_center(points: list[Point]) -> Point:
    x0, y0, x1, y1 = bounding_box(points)
    return ((x0 + x1) / 2, (y0 + y1) / 2)


def point_in_polygon(p: Point, polygon: list[Point], tolerance=0.0) -> bool:
    """Containment test used for hit testing. Boundary points count."""
    if len(polygon) < 3:
        return False
    poly = ShapelyPolygon(polygon)
    if not poly.is_valid:
        # Self-intersecting click paths still need to be clickable
        poly = poly.buffer(0)
    return poly.buffer(tolerance).covers(ShapelyPoint(p))


# ---------------------------------------------------------------------------
# Affine transforms
# ---------------------------------------------------------------------------


def translation(tx: float, ty: float) -> np.ndarray:
    return np.array([[1.0, 0.0, tx], [0.0, 1.0, ty], [0.0, 0.0, 1.0]])


def scaling(sx: float, sy: float) -> np.ndarray:
    return np.array([[sx, 0.0, 0.0], [0.0, sy, 0.0], [0.0, 0.0, 1.0]])


def rotation(degrees: float) -> np.ndarray:
    rad = math.radians(degrees)
    cos_r = math.cos(rad)
    sin_r = math.sin(rad)
    return np.array([[cos_r, -sin_r, 0.0], [sin_r, cos_r, 0.0], [0.0, 0.0, 1.0]])


def apply_matrix(m: np.ndarray, points: list[Point]) -> list[Point]:
    """Transform a list of points by a 3x3 affine matrix."""
    if not points:
        return []
    arr = np.array([[x, y, 1.0] for x, y in points], dtype=np.float64)
    out = arr @ m.T
    return [(float(x), float(y)) for x, y, _ in out]
