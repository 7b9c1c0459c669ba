"""Ordered scene graph with a fixed background layer.

The graph keeps two lists:

  * ``background``: grid lines and the center marker, built once from the
    config. They are never serialized, never selectable, and always sit
    below user content.
  * ``objects``: everything else (user content and drawing artifacts), in
    z-order from bottom to top. Insertion order is the initial z-order.

Listeners registered with ``subscribe`` receive ``(event, obj)`` for every
mutation; ``selection.Selection`` uses this to drop removed objects so no
dangling reference survives a delete.
"""

from __future__ import annotations

import logging
from typing import Callable

from .config import EditorConfig
from .geometry import Point, point_in_polygon
from .types import (
    DRAWING_KINDS,
    OVERLAY_KINDS,
    ZONE_KINDS,
    CenterMarker,
    GridLine,
    Group,
    Interactivity,
    ObjectKind,
    SceneObject,
    Transform,
)

logger = logging.getLogger(__name__)

Listener = Callable[[str, "SceneObject | None"], None]


def _is_zone_like(obj: SceneObject) -> bool:
    return obj.kind in ZONE_KINDS or obj.kind == ObjectKind.ZONE_TEXT_GROUP


class SceneGraph:
    def __init__(self, config: EditorConfig | None = None):
        self.config = config or EditorConfig()
        self.objects: list[SceneObject] = []
        self.grid_visible = True
        self.active: SceneObject | None = None
        self._listeners: list[Listener] = []
        self._disposed = False
        self.grid_lines = self._build_grid()
        self.center_marker = CenterMarker(
            kind=ObjectKind.CENTER_MARKER,
            transform=Transform.at(*self.config.center),
            interactivity=Interactivity.inert(),
        )

    # -- background --

    def _build_grid(self) -> list[GridLine]:
        cfg = self.config
        w, h, g = cfg.canvas_width, cfg.canvas_height, cfg.grid_unit
        major = cfg.major_grid_every * g
        lines: list[GridLine] = []
        for step, is_major in ((g, False), (major, True)):
            stroke = "#999999" if is_major else "#DDDDDD"
            width = 2 if is_major else 1
            for x in range(0, w + 1, step):
                lines.append(
                    GridLine(
                        kind=ObjectKind.GRID_LINE,
                        interactivity=Interactivity.inert(),
                        start=(float(x), 0.0),
                        end=(float(x), float(h)),
                        major=is_major,
                        stroke=stroke,
                        width=width,
                    )
                )
            for y in range(0, h + 1, step):
                lines.append(
                    GridLine(
                        kind=ObjectKind.GRID_LINE,
                        interactivity=Interactivity.inert(),
                        start=(0.0, float(y)),
                        end=(float(w), float(y)),
                        major=is_major,
                        stroke=stroke,
                        width=width,
                    )
                )
        return lines

    @property
    def background(self) -> list[SceneObject]:
        return [*self.grid_lines, self.center_marker]

    @property
    def center_marker_visible(self) -> bool:
        return self.center_marker.visible

    def set_center_marker_visible(self, visible: bool) -> None:
        self.center_marker.visible = visible
        self._emit("changed", self.center_marker)

    def set_grid_visible(self, visible: bool) -> None:
        self.grid_visible = visible
        for line in self.grid_lines:
            line.visible = visible
        self._emit("changed", None)

    # -- events --

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a mutation listener. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: str, obj: SceneObject | None) -> None:
        for listener in list(self._listeners):
            listener(event, obj)

    # -- queries --

    def all(self) -> list[SceneObject]:
        """Everything in z-order, bottom to top, background first."""
        return [*self.background, *self.objects]

    def user_objects(self) -> list[SceneObject]:
        """User content only (no background, no drawing artifacts)."""
        return [o for o in self.objects if o.kind not in DRAWING_KINDS]

    def __len__(self) -> int:
        return len(self.objects)

    def __contains__(self, obj: SceneObject) -> bool:
        return any(o is obj for o in self.objects)

    def index_of(self, obj: SceneObject) -> int:
        for i, o in enumerate(self.objects):
            if o is obj:
                return i
        raise ValueError(f"{obj.name} {obj.uid} is not in the scene")

    def find(self, uid: str) -> SceneObject | None:
        for o in self.objects:
            if o.uid == uid:
                return o
        return None

    def hit_test(self, point: Point) -> SceneObject | None:
        """Topmost selectable object whose outline contains ``point``."""
        for obj in reversed(self.objects):
            if not (obj.visible and obj.interactivity.selectable):
                continue
            if point_in_polygon(point, obj.outline(), tolerance=2.0):
                return obj
        return None

    # -- mutations --

    def _check_insertable(self, obj: SceneObject) -> None:
        if self._disposed:
            raise RuntimeError("Scene graph has been disposed")
        if obj.kind in (ObjectKind.GRID_LINE, ObjectKind.CENTER_MARKER):
            raise ValueError("Background objects cannot be added")
        if obj in self:
            raise ValueError(f"{obj.name} {obj.uid} is already in the scene")

    def add(self, obj: SceneObject) -> SceneObject:
        self._check_insertable(obj)
        self.objects.append(obj)
        logger.debug("Added %s %s", obj.name, obj.uid)
        self._emit("added", obj)
        if _is_zone_like(obj):
            self.raise_overlays()
        return obj

    def insert(self, index: int, obj: SceneObject) -> SceneObject:
        self._check_insertable(obj)
        self.objects.insert(index, obj)
        self._emit("added", obj)
        if _is_zone_like(obj):
            self.raise_overlays()
        return obj

    def insert_many(self, index: int, objs: list[SceneObject]) -> None:
        """Insert ``objs`` in order starting at ``index``, raising overlays once."""
        for obj in objs:
            self._check_insertable(obj)
        self.objects[index:index] = objs
        for obj in objs:
            self._emit("added", obj)
        if any(_is_zone_like(o) for o in objs):
            self.raise_overlays()

    def remove(self, obj: SceneObject) -> None:
        idx = self.index_of(obj)
        del self.objects[idx]
        logger.debug("Removed %s %s", obj.name, obj.uid)
        if self.active is obj:
            self.active = None
            self._emit("active", None)
        self._emit("removed", obj)

    def bring_to_front(self, obj: SceneObject) -> None:
        idx = self.index_of(obj)
        self.objects.append(self.objects.pop(idx))
        self._emit("reordered", obj)

    def raise_overlays(self) -> None:
        """Move markers/measurements, then drawing artifacts, to the top.

        Relative order within each moved class is preserved.
        """
        rest = []
        overlays = []
        drawing = []
        for o in self.objects:
            if o.kind in DRAWING_KINDS:
                drawing.append(o)
            elif _is_overlay(o):
                overlays.append(o)
            else:
                rest.append(o)
        self.objects[:] = rest + overlays + drawing

    def set_active(self, obj: SceneObject | None) -> None:
        if obj is not None and obj not in self:
            raise ValueError(f"{obj.name} {obj.uid} is not in the scene")
        self.active = obj
        self._emit("active", obj)

    def clear(self) -> None:
        self.objects.clear()
        self.active = None
        self._emit("cleared", None)

    def replace_contents(self, other: SceneGraph) -> None:
        """Adopt another graph's objects and layer toggles (used by load)."""
        self.objects = list(other.objects)
        self.active = None
        self.set_grid_visible(other.grid_visible)
        self.center_marker.visible = other.center_marker.visible
        self._emit("cleared", None)

    def dispose(self) -> None:
        self.objects.clear()
        self.active = None
        self._listeners.clear()
        self._disposed = True


def _is_overlay(obj: SceneObject) -> bool:
    if obj.kind in OVERLAY_KINDS:
        return True
    if isinstance(obj, Group) and obj.kind == ObjectKind.GROUP:
        return bool(obj.children) and all(_is_overlay(c) for c in obj.children)
    return False
