"""Group/ungroup, duplication and constrained transforms.

Grouping re-expresses each member's transform relative to the new group so
nothing moves on screen; ungrouping composes them back. Transforms are full
affine matrices, so a rotated or non-uniformly scaled group still ungroups
to exactly the placement its children had.

Measurement aids are locked to one axis at creation: only the two handles on
that axis are exposed, rotation is forbidden, and resizing changes the
segment length rather than scaling the whole object, so the perpendicular
extent (arrowheads, stroke) never changes. A group inherits the locks of
its members, so wrapping an aid in a group cannot bypass them.
"""

from __future__ import annotations

import logging

import numpy as np

from .errors import InvalidSelection, TransformLocked
from .factories import ObjectFactory, format_inches
from .geometry import bbox_center, bounding_box, rotation, scaling, translation
from .scene import SceneGraph
from .selection import Selection
from .types import (
    GROUP_KINDS,
    UNIT_KINDS,
    ZONE_KINDS,
    Group,
    Label,
    MeasurementAid,
    ObjectKind,
    SceneObject,
    Transform,
    Zone,
)

logger = logging.getLogger(__name__)

# handle -> which edge moves: (x sign, y sign); 0 = axis untouched
_HANDLE_DIRS = {
    "tl": (-1, -1),
    "tr": (1, -1),
    "bl": (-1, 1),
    "br": (1, 1),
    "ml": (-1, 0),
    "mr": (1, 0),
    "mt": (0, -1),
    "mb": (0, 1),
}


# ---------------------------------------------------------------------------
# Grouping
# ---------------------------------------------------------------------------


def group(
    scene: SceneGraph,
    selection: Selection,
    factory: ObjectFactory,
    kind: ObjectKind = ObjectKind.GROUP,
) -> Group:
    """Replace a multi-object selection with one Group.

    The group takes the z-position of the topmost member. Raises
    ``InvalidSelection`` unless the selection holds at least two objects.
    """
    if not selection.is_multi:
        raise InvalidSelection("Grouping needs a multi-object selection")
    chosen = {id(o) for o in selection.objects}
    members = [o for o in scene.objects if id(o) in chosen]
    if len(members) < 2:
        raise InvalidSelection("Selected objects are no longer in the scene")
    top_index = max(scene.index_of(m) for m in members)
    insert_at = top_index - (len(members) - 1)

    points = []
    for m in members:
        points.extend(m.outline())
    grp = factory.group([], kind=kind)
    grp.transform = Transform.at(*bbox_center(points))
    inv = grp.transform.inverse_matrix()
    for m in members:
        scene.remove(m)
        m.transform = Transform.from_matrix(inv @ m.transform.matrix())
        grp.children.append(m)
    _inherit_locks(grp, members)
    scene.insert(insert_at, grp)
    selection.select(grp)
    logger.debug("Grouped %d objects into %s", len(members), grp.uid)
    return grp


def _inherit_locks(grp: Group, members: list[SceneObject]) -> None:
    """Carry the members' axis and rotation locks up to the group."""
    inter = grp.interactivity
    for m in members:
        inter.lock_rotation |= m.interactivity.lock_rotation
        inter.lock_scaling_x |= m.interactivity.lock_scaling_x
        inter.lock_scaling_y |= m.interactivity.lock_scaling_y
    for handle, (dir_x, dir_y) in _HANDLE_DIRS.items():
        if (dir_x and inter.lock_scaling_x) or (dir_y and inter.lock_scaling_y):
            inter.controls[handle] = False
    if inter.lock_rotation:
        inter.controls["mtr"] = False


def ungroup(
    scene: SceneGraph, selection: Selection, grp: SceneObject
) -> list[SceneObject]:
    """Dissolve ``grp`` into top-level objects at its former index."""
    if not isinstance(grp, Group) or grp.kind not in GROUP_KINDS:
        raise InvalidSelection(f"{grp.name} is not a group")
    idx = scene.index_of(grp)
    m = grp.transform.matrix()
    children = list(grp.children)
    scene.remove(grp)
    grp.children = []
    for child in children:
        child.transform = Transform.from_matrix(m @ child.transform.matrix())
    scene.insert_many(idx, children)
    selection.select_many(children)
    logger.debug("Ungrouped %s into %d objects", grp.uid, len(children))
    return children


def duplicate(
    scene: SceneGraph, selection: Selection, obj: SceneObject, offset: float
) -> SceneObject:
    """Deep copy ``obj`` shifted by ``offset`` on both axes; select it."""
    if obj not in scene:
        raise InvalidSelection(f"{obj.name} {obj.uid} is not in the scene")
    dup = obj.clone()
    dup.transform.tx += offset
    dup.transform.ty += offset
    scene.add(dup)
    selection.select(dup)
    return dup


def delete(scene: SceneGraph, selection: Selection) -> int:
    """Remove every selected object. Returns how many were removed."""
    doomed = [o for o in selection.objects if o in scene]
    for obj in doomed:
        scene.remove(obj)
    selection.clear()
    return len(doomed)


# ---------------------------------------------------------------------------
# Transforms
# ---------------------------------------------------------------------------


def move_by(obj: SceneObject, dx: float, dy: float) -> None:
    obj.transform.tx += dx
    obj.transform.ty += dy


def _local_anchor(obj: SceneObject, handle: str):
    x0, y0, x1, y1 = bounding_box(obj.local_outline())
    sx, sy = _HANDLE_DIRS[handle]
    ax = x0 if sx > 0 else x1 if sx < 0 else (x0 + x1) / 2
    ay = y0 if sy > 0 else y1 if sy < 0 else (y0 + y1) / 2
    return ax, ay


def resize(
    obj: SceneObject,
    handle: str,
    sx: float,
    sy: float = 1.0,
    grid_unit: float = 20,
) -> None:
    """Scale ``obj`` by dragging ``handle``; the opposite edge stays put.

    Side handles only scale their own axis. Raises ``TransformLocked`` for
    handles the object does not expose.
    """
    if handle not in _HANDLE_DIRS:
        raise ValueError(f"Unknown resize handle {handle!r}")
    inter = obj.interactivity
    if not inter.has_controls or not inter.controls.get(handle, False):
        raise TransformLocked(f"{obj.name} does not expose the {handle!r} handle")
    if sx <= 0 or sy <= 0:
        raise ValueError("Scale factors must be positive")
    dir_x, dir_y = _HANDLE_DIRS[handle]
    if dir_x == 0 or inter.lock_scaling_x:
        sx = 1.0
    if dir_y == 0 or inter.lock_scaling_y:
        sy = 1.0

    if isinstance(obj, MeasurementAid):
        _resize_measurement(obj, dir_x, dir_y, sx, sy, grid_unit)
        return

    ax, ay = _local_anchor(obj, handle)
    local = translation(ax, ay) @ scaling(sx, sy) @ translation(-ax, -ay)
    obj.transform = Transform.from_matrix(obj.transform.matrix() @ local)


def _resize_measurement(aid: MeasurementAid, dir_x, dir_y, sx, sy, grid_unit):
    if aid.is_vertical:
        factor, sign = sy, dir_y
    else:
        factor, sign = sx, dir_x
    old = aid.length
    aid.length = old * factor
    # Keep the opposite endpoint fixed by shifting the center along the axis
    shift = sign * (aid.length - old) / 2
    local_vec = np.array([0.0, shift]) if aid.is_vertical else np.array([shift, 0.0])
    world_vec = aid.transform.matrix()[:2, :2] @ local_vec
    aid.transform.tx += float(world_vec[0])
    aid.transform.ty += float(world_vec[1])
    if aid.auto_text:
        aid.text = format_inches(measured_length(aid), grid_unit)


def measured_length(aid: MeasurementAid) -> float:
    """Length of the segment on the canvas, in px."""
    a, b = aid.endpoints()
    return float(np.hypot(b[0] - a[0], b[1] - a[1]))


def rotate(obj: SceneObject, degrees: float) -> None:
    """Rotate about the object's position. Raises ``TransformLocked``."""
    inter = obj.interactivity
    if inter.lock_rotation or not inter.controls.get("mtr", False):
        raise TransformLocked(f"{obj.name} cannot be rotated")
    px, py = obj.transform.position
    m = translation(px, py) @ rotation(degrees) @ translation(-px, -py)
    obj.transform = Transform.from_matrix(m @ obj.transform.matrix())


# ---------------------------------------------------------------------------
# Text and opacity
# ---------------------------------------------------------------------------


def _center_label(grp: Group, label: Label) -> None:
    zone = grp.zone()
    if zone is None:
        return
    cx, cy = bbox_center(zone.outline())
    label.transform.tx = cx
    label.transform.ty = cy


def set_zone_text(
    scene: SceneGraph,
    selection: Selection,
    factory: ObjectFactory,
    target: SceneObject,
    text: str,
) -> SceneObject:
    """Attach or edit the text on a zone (or a measurement's label).

    A bare zone is wrapped with a new label into a ``zone_text_group``; an
    existing zone-text group has its label replaced in place.
    """
    if target.kind in ZONE_KINDS:
        idx = scene.index_of(target)
        grp = factory.group([], kind=ObjectKind.ZONE_TEXT_GROUP)
        grp.transform = Transform.at(*bbox_center(target.outline()))
        target.transform = Transform.from_matrix(
            grp.transform.inverse_matrix() @ target.transform.matrix()
        )
        label = factory.label(text)
        grp.children = [target, label]
        _center_label(grp, label)
        scene.remove(target)
        scene.insert(idx, grp)
        selection.select(grp)
        return grp

    if isinstance(target, Group) and target.kind == ObjectKind.ZONE_TEXT_GROUP:
        label = target.label()
        if label is None:
            label = factory.label(text)
            target.children.append(label)
        else:
            label.text = text
        _center_label(target, label)
        return target

    if isinstance(target, MeasurementAid):
        target.text = text
        target.auto_text = False
        return target

    raise InvalidSelection(f"{target.name} does not carry text")


def set_opacity(obj: SceneObject, value: float) -> float:
    """Set a unit icon's or zone's opacity, clamped to [0, 1]."""
    value = max(0.0, min(1.0, float(value)))
    if obj.kind in UNIT_KINDS or isinstance(obj, Zone):
        obj.opacity = value  # type: ignore[attr-defined]
        return value
    raise InvalidSelection(f"{obj.name} has no adjustable opacity")
