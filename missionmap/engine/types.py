"""Scene object types and their snapshot dict schema.

Every object on the canvas is a ``SceneObject`` subclass tagged with an
``ObjectKind``. The kind's string value is the object's ``name``, which is
the sole discriminant used by save/load and by the UI to decide which
contextual actions apply. Code branches on the kind (or the sets below),
never on substrings of the name.

Geometry is stored in local coordinates; ``transform`` maps local space to
the parent's space (the canvas for top-level objects, the group's local space
for group children).
"""

from __future__ import annotations

import copy
import enum
import uuid
from dataclasses import dataclass, field

import numpy as np

from .geometry import Point, apply_matrix, bounding_box


class ObjectKind(enum.Enum):
    GRID_LINE = "grid_line"
    CENTER_MARKER = "center_marker"
    ATTACKER_ZONE = "attacker_zone"
    DEFENDER_ZONE = "defender_zone"
    CUSTOM_ZONE = "custom_zone"
    ZONE_LABEL = "zone_label"
    TEXT_LABEL = "text_label"
    OBJECTIVE_MARKER = "objective_marker"
    STRIKE_FORCE_MARKER = "strike_force_marker"
    ATTACKER_UNIT = "attacker_unit"
    DEFENDER_UNIT = "defender_unit"
    MEASUREMENT = "measurement_group"
    GROUP = "group"
    ZONE_TEXT_GROUP = "zone_text_group"
    DRAWING_MARKER = "drawing_marker"
    DRAWING_LINE = "drawing_line"
    ZONE_PREVIEW = "zone_preview"


ZONE_KINDS = frozenset(
    {ObjectKind.ATTACKER_ZONE, ObjectKind.DEFENDER_ZONE, ObjectKind.CUSTOM_ZONE}
)
LABEL_KINDS = frozenset({ObjectKind.ZONE_LABEL, ObjectKind.TEXT_LABEL})
MARKER_KINDS = frozenset(
    {ObjectKind.OBJECTIVE_MARKER, ObjectKind.STRIKE_FORCE_MARKER}
)
UNIT_KINDS = frozenset({ObjectKind.ATTACKER_UNIT, ObjectKind.DEFENDER_UNIT})
GROUP_KINDS = frozenset({ObjectKind.GROUP, ObjectKind.ZONE_TEXT_GROUP})
# Kept above every zone in the z-order
OVERLAY_KINDS = MARKER_KINDS | UNIT_KINDS | {ObjectKind.MEASUREMENT}
BACKGROUND_KINDS = frozenset({ObjectKind.GRID_LINE, ObjectKind.CENTER_MARKER})
DRAWING_KINDS = frozenset(
    {
        ObjectKind.DRAWING_MARKER,
        ObjectKind.DRAWING_LINE,
        ObjectKind.ZONE_PREVIEW,
    }
)

HANDLES = ("tl", "tr", "bl", "br", "ml", "mr", "mt", "mb", "mtr")


def new_uid() -> str:
    return uuid.uuid4().hex


def _points_from(raw) -> list[Point]:
    return [(float(p["x"]), float(p["y"])) for p in raw]


def _points_to(points: list[Point]) -> list[dict]:
    return [{"x": x, "y": y} for x, y in points]


# ---------------------------------------------------------------------------
# Transform and interactivity
# ---------------------------------------------------------------------------


@dataclass
class Transform:
    """2D affine transform ``[[a, c, tx], [b, d, ty], [0, 0, 1]]``."""

    a: float = 1.0
    b: float = 0.0
    c: float = 0.0
    d: float = 1.0
    tx: float = 0.0
    ty: float = 0.0

    @property
    def position(self) -> Point:
        return (self.tx, self.ty)

    def matrix(self) -> np.ndarray:
        return np.array(
            [
                [self.a, self.c, self.tx],
                [self.b, self.d, self.ty],
                [0.0, 0.0, 1.0],
            ]
        )

    def inverse_matrix(self) -> np.ndarray:
        det = self.a * self.d - self.b * self.c
        if det == 0:
            raise ValueError("Transform is not invertible")
        ia = self.d / det
        ib = -self.b / det
        ic = -self.c / det
        id_ = self.a / det
        itx = -(ia * self.tx + ic * self.ty)
        ity = -(ib * self.tx + id_ * self.ty)
        return np.array([[ia, ic, itx], [ib, id_, ity], [0.0, 0.0, 1.0]])

    @staticmethod
    def from_matrix(m: np.ndarray) -> Transform:
        return Transform(
            a=float(m[0, 0]),
            b=float(m[1, 0]),
            c=float(m[0, 1]),
            d=float(m[1, 1]),
            tx=float(m[0, 2]),
            ty=float(m[1, 2]),
        )

    @staticmethod
    def at(x: float, y: float, scale: float = 1.0) -> Transform:
        return Transform(a=scale, d=scale, tx=x, ty=y)

    @staticmethod
    def from_dict(d: dict | None) -> Transform:
        if not d:
            return Transform()
        a, b, c, dd, tx, ty = (float(v) for v in d["matrix"])
        return Transform(a=a, b=b, c=c, d=dd, tx=tx, ty=ty)

    def to_dict(self) -> dict:
        return {"matrix": [self.a, self.b, self.c, self.d, self.tx, self.ty]}


@dataclass
class Interactivity:
    selectable: bool = True
    evented: bool = True
    has_controls: bool = True
    lock_rotation: bool = False
    lock_scaling_x: bool = False
    lock_scaling_y: bool = False
    controls: dict[str, bool] = field(
        default_factory=lambda: {h: True for h in HANDLES}
    )
    # Cosmetic handle styling copied from the session theme
    corner_style: str = "circle"
    corner_color: str = "#0000FF"
    corner_size: int = 8
    transparent_corners: bool = False
    border_color: str = "#0000FF"
    padding: int = 0

    def visible_handles(self) -> list[str]:
        return [h for h in HANDLES if self.controls.get(h, False)]

    @staticmethod
    def inert() -> Interactivity:
        return Interactivity(
            selectable=False,
            evented=False,
            has_controls=False,
            controls={h: False for h in HANDLES},
        )

    @staticmethod
    def from_dict(d: dict | None) -> Interactivity:
        if not d:
            return Interactivity()
        i = Interactivity()
        for key, value in d.items():
            if key == "controls":
                i.controls = {h: bool(value.get(h, False)) for h in HANDLES}
            elif hasattr(i, key):
                setattr(i, key, value)
        return i

    def to_dict(self) -> dict:
        return {
            "selectable": self.selectable,
            "evented": self.evented,
            "has_controls": self.has_controls,
            "lock_rotation": self.lock_rotation,
            "lock_scaling_x": self.lock_scaling_x,
            "lock_scaling_y": self.lock_scaling_y,
            "controls": dict(self.controls),
            "corner_style": self.corner_style,
            "corner_color": self.corner_color,
            "corner_size": self.corner_size,
            "transparent_corners": self.transparent_corners,
            "border_color": self.border_color,
            "padding": self.padding,
        }


# ---------------------------------------------------------------------------
# Scene objects
# ---------------------------------------------------------------------------


@dataclass(eq=False)
class SceneObject:
    kind: ObjectKind
    uid: str = field(default_factory=new_uid)
    transform: Transform = field(default_factory=Transform)
    interactivity: Interactivity = field(default_factory=Interactivity)
    visible: bool = True

    @property
    def name(self) -> str:
        return self.kind.value

    @property
    def position(self) -> Point:
        return self.transform.position

    def local_outline(self) -> list[Point]:
        """Outline of the object in its own coordinate space."""
        raise NotImplementedError

    def outline(self, parent: np.ndarray | None = None) -> list[Point]:
        """Outline in the parent's space (canvas space by default)."""
        m = self.transform.matrix()
        if parent is not None:
            m = parent @ m
        return apply_matrix(m, self.local_outline())

    def bounds(self, parent: np.ndarray | None = None):
        return bounding_box(self.outline(parent))

    def clone(self) -> SceneObject:
        """Deep copy with fresh uids (children included)."""
        dup = copy.deepcopy(self)
        dup._renew_uids()
        return dup

    def _renew_uids(self) -> None:
        self.uid = new_uid()

    def to_dict(self) -> dict:
        d = {
            "name": self.name,
            "uid": self.uid,
            "transform": self.transform.to_dict(),
            "interactivity": self.interactivity.to_dict(),
            "visible": self.visible,
        }
        d.update(self._state_dict())
        return d

    def _state_dict(self) -> dict:
        return {}

    @classmethod
    def _common(cls, d: dict) -> dict:
        return {
            "kind": ObjectKind(d["name"]),
            "uid": str(d["uid"]),
            "transform": Transform.from_dict(d.get("transform")),
            "interactivity": Interactivity.from_dict(d.get("interactivity")),
            "visible": bool(d.get("visible", True)),
        }


@dataclass(eq=False)
class GridLine(SceneObject):
    start: Point = (0.0, 0.0)
    end: Point = (0.0, 0.0)
    major: bool = False
    stroke: str = "#DDDDDD"
    width: int = 1

    def local_outline(self) -> list[Point]:
        return [self.start, self.end]


@dataclass(eq=False)
class CenterMarker(SceneObject):
    radius: float = 10.0
    arm: float = 15.0
    stroke: str = "#FF4444"
    width: int = 2

    def local_outline(self) -> list[Point]:
        a = self.arm
        return [(-a, -a), (a, -a), (a, a), (-a, a)]


@dataclass(eq=False)
class Zone(SceneObject):
    """Filled polygon. ``points`` are local and kept in click order."""

    points: list[Point] = field(default_factory=list)
    fill: str = "#0000FF"
    opacity: float = 0.3
    stroke: str | None = None
    rectangle: bool = False

    @property
    def zone_kind(self) -> str:
        if self.kind == ObjectKind.ATTACKER_ZONE:
            return "attacker"
        if self.kind == ObjectKind.DEFENDER_ZONE:
            return "defender"
        return "custom"

    def local_outline(self) -> list[Point]:
        return list(self.points)

    def world_points(self, parent: np.ndarray | None = None) -> list[Point]:
        return self.outline(parent)

    def _state_dict(self) -> dict:
        return {
            "points": _points_to(self.points),
            "fill": self.fill,
            "opacity": self.opacity,
            "stroke": self.stroke,
            "rectangle": self.rectangle,
        }

    @classmethod
    def from_dict(cls, d: dict) -> Zone:
        return cls(
            **cls._common(d),
            points=_points_from(d["points"]),
            fill=str(d["fill"]),
            opacity=float(d["opacity"]),
            stroke=d.get("stroke"),
            rectangle=bool(d.get("rectangle", False)),
        )


@dataclass(eq=False)
class Label(SceneObject):
    text: str = ""
    font_size: int = 16
    fill: str = "#000000"
    background: str | None = None
    editable: bool = True

    def local_outline(self) -> list[Point]:
        # Approximate text box, centered on the origin
        lines = self.text.split("\n") or [""]
        w = max(len(line) for line in lines) * self.font_size * 0.6
        h = len(lines) * self.font_size * 1.2
        w = max(w, self.font_size * 0.6)
        return [(-w / 2, -h / 2), (w / 2, -h / 2), (w / 2, h / 2), (-w / 2, h / 2)]

    def _state_dict(self) -> dict:
        return {
            "text": self.text,
            "font_size": self.font_size,
            "fill": self.fill,
            "background": self.background,
            "editable": self.editable,
        }

    @classmethod
    def from_dict(cls, d: dict) -> Label:
        return cls(
            **cls._common(d),
            text=str(d["text"]),
            font_size=int(d.get("font_size", 16)),
            fill=str(d.get("fill", "#000000")),
            background=d.get("background"),
            editable=bool(d.get("editable", True)),
        )


@dataclass(eq=False)
class IconObject(SceneObject):
    """Image-backed object. ``icon_size`` is the source image size in px."""

    icon: str = ""
    icon_size: tuple[int, int] = (1, 1)
    opacity: float = 1.0

    def local_outline(self) -> list[Point]:
        hw = self.icon_size[0] / 2
        hh = self.icon_size[1] / 2
        return [(-hw, -hh), (hw, -hh), (hw, hh), (-hw, hh)]

    def _state_dict(self) -> dict:
        return {
            "icon": self.icon,
            "icon_size": list(self.icon_size),
            "opacity": self.opacity,
        }

    @classmethod
    def from_dict(cls, d: dict) -> IconObject:
        w, h = d["icon_size"]
        return cls(
            **cls._common(d),
            icon=str(d["icon"]),
            icon_size=(int(w), int(h)),
            opacity=float(d.get("opacity", 1.0)),
        )


@dataclass(eq=False)
class Marker(IconObject):
    """Objective or strike-force marker with a uniform scale."""


@dataclass(eq=False)
class UnitIcon(IconObject):
    @property
    def side(self) -> str:
        return "attacker" if self.kind == ObjectKind.ATTACKER_UNIT else "defender"


@dataclass(eq=False)
class MeasurementAid(SceneObject):
    """Dashed segment with arrowheads at both ends and a length label.

    The segment runs along the local x axis (horizontal) or y axis
    (vertical), centered on the origin. The axis is fixed at creation and
    is mirrored in ``interactivity`` so only that axis can be resized.
    """

    orientation: str = "horizontal"
    length: float = 100.0  # local px
    stroke: str = "#0000FF"
    stroke_width: int = 1
    dash: tuple[int, int] = (5, 5)
    arrow_size: float = 8.0
    text: str = ""
    auto_text: bool = True
    font_size: int = 14

    @property
    def is_vertical(self) -> bool:
        return self.orientation == "vertical"

    def local_endpoints(self) -> tuple[Point, Point]:
        h = self.length / 2
        if self.is_vertical:
            return (0.0, -h), (0.0, h)
        return (-h, 0.0), (h, 0.0)

    def endpoints(self, parent: np.ndarray | None = None):
        m = self.transform.matrix()
        if parent is not None:
            m = parent @ m
        a, b = apply_matrix(m, list(self.local_endpoints()))
        return a, b

    def label_offset(self) -> Point:
        """Local position of the label anchor."""
        if self.is_vertical:
            return (self.arrow_size + 10, 0.0)
        return (0.0, -(self.arrow_size + 17))

    def local_outline(self) -> list[Point]:
        h = self.length / 2
        s = self.arrow_size
        if self.is_vertical:
            return [(-s, -h), (s, -h), (s, h), (-s, h)]
        return [(-h, -s), (h, -s), (h, s), (-h, s)]

    def _state_dict(self) -> dict:
        return {
            "orientation": self.orientation,
            "length": self.length,
            "stroke": self.stroke,
            "stroke_width": self.stroke_width,
            "dash": list(self.dash),
            "arrow_size": self.arrow_size,
            "text": self.text,
            "auto_text": self.auto_text,
            "font_size": self.font_size,
        }

    @classmethod
    def from_dict(cls, d: dict) -> MeasurementAid:
        orientation = str(d["orientation"])
        if orientation not in ("horizontal", "vertical"):
            raise ValueError(f"Unknown orientation {orientation!r}")
        dash = d.get("dash", [5, 5])
        return cls(
            **cls._common(d),
            orientation=orientation,
            length=float(d["length"]),
            stroke=str(d.get("stroke", "#0000FF")),
            stroke_width=int(d.get("stroke_width", 1)),
            dash=(int(dash[0]), int(dash[1])),
            arrow_size=float(d.get("arrow_size", 8.0)),
            text=str(d.get("text", "")),
            auto_text=bool(d.get("auto_text", True)),
            font_size=int(d.get("font_size", 14)),
        )


@dataclass(eq=False)
class Group(SceneObject):
    """Rigid composite. Child transforms are relative to the group."""

    children: list[SceneObject] = field(default_factory=list)

    def local_outline(self) -> list[Point]:
        pts: list[Point] = []
        for child in self.children:
            pts.extend(child.outline())
        if not pts:
            return []
        x0, y0, x1, y1 = bounding_box(pts)
        return [(x0, y0), (x1, y0), (x1, y1), (x0, y1)]

    def zone(self) -> Zone | None:
        for child in self.children:
            if isinstance(child, Zone):
                return child
        return None

    def label(self) -> Label | None:
        for child in self.children:
            if isinstance(child, Label):
                return child
        return None

    def _renew_uids(self) -> None:
        super()._renew_uids()
        for child in self.children:
            child._renew_uids()

    def _state_dict(self) -> dict:
        return {"children": [c.to_dict() for c in self.children]}

    @classmethod
    def from_dict(cls, d: dict) -> Group:
        return cls(
            **cls._common(d),
            children=[object_from_dict(c) for c in d["children"]],
        )


@dataclass(eq=False)
class DrawingMarker(SceneObject):
    """Temporary vertex marker shown while a polygon is being drawn."""

    radius: float = 5.0
    fill: str = "#FFFFFF"
    stroke: str = "#FF0000"
    width: int = 2

    def local_outline(self) -> list[Point]:
        r = self.radius
        return [(-r, -r), (r, -r), (r, r), (-r, r)]


@dataclass(eq=False)
class DrawingLine(SceneObject):
    start: Point = (0.0, 0.0)
    end: Point = (0.0, 0.0)
    stroke: str = "#FF0000"
    width: int = 2

    def local_outline(self) -> list[Point]:
        return [self.start, self.end]


# Serializable kinds -> class; background and drawing kinds are absent.
_CLASS_BY_KIND: dict[ObjectKind, type] = {
    **{k: Zone for k in ZONE_KINDS},
    **{k: Label for k in LABEL_KINDS},
    **{k: Marker for k in MARKER_KINDS},
    **{k: UnitIcon for k in UNIT_KINDS},
    ObjectKind.MEASUREMENT: MeasurementAid,
    **{k: Group for k in GROUP_KINDS},
}


def object_from_dict(d: dict) -> SceneObject:
    """Rebuild a user-placed object from its snapshot dict.

    Raises KeyError/ValueError/TypeError on malformed input; the codec turns
    those into ``MalformedSnapshot``.
    """
    kind = ObjectKind(d["name"])
    cls = _CLASS_BY_KIND.get(kind)
    if cls is None:
        raise ValueError(f"{kind.value!r} objects are not part of a snapshot")
    return cls.from_dict(d)
