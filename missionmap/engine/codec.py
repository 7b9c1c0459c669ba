"""Scene <-> snapshot conversion.

A snapshot is a JSON-compatible dict::

    {
        "format": "missionmap",
        "version": 1,
        "canvas": {"grid_unit": 20, "width_inches": 60, "height_inches": 44},
        "grid_visible": true,
        "center_marker_visible": true,
        "objects": [ {"name": "attacker_zone", "uid": ..., ...}, ... ]
    }

``objects`` holds user content in z-order; grid lines, the center marker and
drawing artifacts are never written, so reloading cannot duplicate them.
Each entry's ``name`` selects the class that rebuilds it (see
``types.object_from_dict``).

``deserialize`` builds a brand-new ``SceneGraph`` and only returns once every
object parsed, so a bad snapshot can never leave a half-loaded scene.
"""

from __future__ import annotations

import json
import logging

from .config import EditorConfig
from .errors import MalformedSnapshot
from .scene import SceneGraph
from .types import DRAWING_KINDS, Group, SceneObject, Zone, object_from_dict

logger = logging.getLogger(__name__)

FORMAT_NAME = "missionmap"
FORMAT_VERSION = 1
# canvas key -> largest accepted value
_CANVAS_LIMITS = {"grid_unit": 200, "width_inches": 240, "height_inches": 240}


def serialize(scene: SceneGraph) -> dict:
    cfg = scene.config
    return {
        "format": FORMAT_NAME,
        "version": FORMAT_VERSION,
        "canvas": {
            "grid_unit": cfg.grid_unit,
            "width_inches": cfg.width_inches,
            "height_inches": cfg.height_inches,
        },
        "grid_visible": scene.grid_visible,
        "center_marker_visible": scene.center_marker_visible,
        "objects": [o.to_dict() for o in scene.user_objects()],
    }


def _validate(objects: list[SceneObject]) -> None:
    seen: set[str] = set()
    stack = list(objects)
    while stack:
        obj = stack.pop()
        if obj.uid in seen:
            raise MalformedSnapshot(f"Duplicate object uid {obj.uid!r}")
        seen.add(obj.uid)
        if obj.kind in DRAWING_KINDS:
            raise MalformedSnapshot(f"{obj.name} is not saveable content")
        if isinstance(obj, Zone) and len(obj.points) < 3:
            raise MalformedSnapshot(f"Zone {obj.uid!r} has fewer than 3 vertices")
        if isinstance(obj, Group):
            stack.extend(obj.children)


def _canvas_config(canvas) -> EditorConfig:
    if not isinstance(canvas, dict):
        raise MalformedSnapshot("Snapshot canvas must be a JSON object")
    values = {}
    for key, limit in _CANVAS_LIMITS.items():
        if key not in canvas:
            continue
        v = canvas[key]
        if isinstance(v, bool) or not isinstance(v, int) or not 0 < v <= limit:
            raise MalformedSnapshot(
                f"Canvas {key} must be an integer in 1..{limit}, got {v!r}"
            )
        values[key] = v
    return EditorConfig.from_dict(values)


def deserialize(snapshot: dict, config: EditorConfig | None = None) -> SceneGraph:
    """Rebuild a scene from a snapshot. Raises ``MalformedSnapshot``."""
    if not isinstance(snapshot, dict):
        raise MalformedSnapshot("Snapshot must be a JSON object")
    if snapshot.get("format", FORMAT_NAME) != FORMAT_NAME:
        raise MalformedSnapshot(f"Unknown snapshot format {snapshot.get('format')!r}")
    version = snapshot.get("version", FORMAT_VERSION)
    if not isinstance(version, int) or version > FORMAT_VERSION or version < 1:
        raise MalformedSnapshot(f"Unsupported snapshot version {version!r}")
    raw_objects = snapshot.get("objects")
    if not isinstance(raw_objects, list):
        raise MalformedSnapshot("Snapshot has no 'objects' list")

    try:
        objects = [object_from_dict(d) for d in raw_objects]
    except (KeyError, ValueError, TypeError, AttributeError) as e:
        raise MalformedSnapshot(f"Invalid object in snapshot: {e!r}") from e
    _validate(objects)

    if config is None:
        config = _canvas_config(snapshot.get("canvas") or {})

    scene = SceneGraph(config)
    scene.objects = objects
    scene.set_grid_visible(bool(snapshot.get("grid_visible", True)))
    scene.center_marker.visible = bool(snapshot.get("center_marker_visible", True))
    logger.debug("Deserialized %d top-level objects", len(objects))
    return scene


def dumps(scene: SceneGraph) -> bytes:
    """Serialize to UTF-8 JSON bytes."""
    return json.dumps(serialize(scene), indent=2).encode("utf-8")


def loads(data: bytes | str, config: EditorConfig | None = None) -> SceneGraph:
    """Parse bytes produced by ``dumps``. Raises ``MalformedSnapshot``."""
    try:
        snapshot = json.loads(data)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedSnapshot(f"Snapshot is not valid JSON: {e}") from e
    return deserialize(snapshot, config)
