"""One editing session: the entry point UI events are routed through.

``EditorSession`` owns the scene graph, selection, drawing machine and
object factory for a single canvas, and exposes one method per user action
(the buttons and pointer events of the desktop shell). Actions that cannot
apply to the current selection raise ``InvalidSelection``; the capability
queries (``can_group`` etc.) let a UI disable those buttons up front.

Rendering is not part of the core: ``export_png`` delegates to the
``exporter`` callable the shell supplies (``frontend.renderer``).
"""

from __future__ import annotations

import logging
from typing import Callable

from . import codec, transform
from .assets import IconLibrary
from .config import EditorConfig
from .drawing import DrawingMachine, DrawingState, ZoneOutcome
from .errors import InvalidSelection, MalformedSnapshot
from .factories import ObjectFactory
from .geometry import Point
from .scene import SceneGraph
from .selection import Selection
from .types import SceneObject, Zone

logger = logging.getLogger(__name__)

Exporter = Callable[[SceneGraph], bytes]


class EditorSession:
    def __init__(
        self,
        config: EditorConfig | None = None,
        icons: IconLibrary | None = None,
        exporter: Exporter | None = None,
    ):
        self.config = config or EditorConfig()
        self.icons = icons or IconLibrary(self.config.icon_paths)
        self.scene = SceneGraph(self.config)
        self.selection = Selection(self.scene)
        self.factory = ObjectFactory(self.config, self.icons)
        self.drawing = DrawingMachine(
            self.scene, self.selection, self.factory, self.config
        )
        self.exporter = exporter

    # -- drawing --

    @property
    def drawing_state(self) -> DrawingState:
        return self.drawing.state

    def start_drawing_zone(self) -> None:
        self.drawing.start()

    def click(self, point: Point, additive: bool = False) -> SceneObject | None:
        """Route a canvas click: to the drawing machine, else to selection."""
        if self.drawing.is_drawing:
            self.drawing.click(point)
            return None
        return self.select_at(point, additive)

    def classify_zone(self, outcome: ZoneOutcome | str) -> Zone | None:
        return self.drawing.classify(outcome)

    def set_custom_color(self, value: str) -> str:
        return self.drawing.set_color(value)

    def set_custom_opacity(self, value: float) -> float:
        return self.drawing.set_opacity(value)

    def confirm_custom_zone(self) -> Zone:
        return self.drawing.confirm()

    def cancel_drawing(self) -> None:
        self.drawing.cancel()

    # -- object creation --

    def _place(self, obj: SceneObject) -> SceneObject:
        self.scene.add(obj)
        self.selection.select(obj)
        logger.info("Placed %s", obj.name)
        return obj

    def add_deployment_zone(self, zone_kind: str, points=None) -> Zone:
        return self._place(self.factory.deployment_zone(zone_kind, points))  # type: ignore[return-value]

    def add_objective_marker(self, position: Point | None = None):
        return self._place(self.factory.objective_marker(position))

    def add_strike_force_marker(self, position: Point | None = None):
        return self._place(self.factory.strike_force_marker(position))

    def add_unit_icon(self, side: str, position: Point | None = None):
        return self._place(self.factory.unit_icon(side, position))

    def add_measurement(self, orientation: str = "horizontal", position=None):
        return self._place(self.factory.measurement_aid(orientation, position))

    # -- selection --

    def select_at(self, point: Point, additive: bool = False) -> SceneObject | None:
        hit = self.scene.hit_test(point)
        if hit is None:
            if not additive:
                self.selection.clear()
            return None
        self.selection.select(hit, additive=additive)
        return hit

    @property
    def selected(self) -> SceneObject | None:
        return self.selection.primary

    def _require_primary(self) -> SceneObject:
        obj = self.selection.primary
        if obj is None:
            raise InvalidSelection("Select a single object first")
        return obj

    def can_group(self) -> bool:
        return not self.drawing.is_drawing and self.selection.can_group()

    def can_ungroup(self) -> bool:
        return not self.drawing.is_drawing and self.selection.can_ungroup()

    def can_edit_text(self) -> bool:
        return self.selection.can_edit_text()

    def can_set_opacity(self) -> bool:
        return self.selection.can_set_opacity()

    def can_delete(self) -> bool:
        return self.selection.can_delete()

    # -- editing --

    def group_selected(self):
        return transform.group(self.scene, self.selection, self.factory)

    def ungroup_selected(self):
        return transform.ungroup(self.scene, self.selection, self._require_primary())

    def duplicate_selected(self):
        return transform.duplicate(
            self.scene,
            self.selection,
            self._require_primary(),
            self.config.grid_unit,
        )

    def delete_selected(self) -> int:
        return transform.delete(self.scene, self.selection)

    def bring_selected_to_front(self) -> None:
        for obj in list(self.selection.objects):
            self.scene.bring_to_front(obj)
        self.scene.raise_overlays()

    def set_text(self, text: str):
        return transform.set_zone_text(
            self.scene, self.selection, self.factory, self._require_primary(), text
        )

    def set_opacity(self, value: float) -> float:
        return transform.set_opacity(self._require_primary(), value)

    def move_selected(self, dx: float, dy: float) -> None:
        for obj in self.selection.objects:
            transform.move_by(obj, dx, dy)

    def resize_selected(self, handle: str, sx: float, sy: float = 1.0) -> None:
        transform.resize(
            self._require_primary(), handle, sx, sy, self.config.grid_unit
        )

    def rotate_selected(self, degrees: float) -> None:
        transform.rotate(self._require_primary(), degrees)

    # -- layers --

    def toggle_center_marker(self) -> bool:
        visible = not self.scene.center_marker_visible
        self.scene.set_center_marker_visible(visible)
        return visible

    def toggle_grid(self) -> bool:
        visible = not self.scene.grid_visible
        self.scene.set_grid_visible(visible)
        return visible

    # -- persistence --

    def snapshot(self) -> dict:
        return codec.serialize(self.scene)

    def save_bytes(self) -> bytes:
        return codec.dumps(self.scene)

    def load_snapshot(self, snapshot: dict) -> None:
        """Replace the scene. On ``MalformedSnapshot`` nothing changes."""
        try:
            loaded = codec.deserialize(snapshot, self.config)
        except MalformedSnapshot as e:
            logger.warning("Load aborted: %s", e)
            raise
        self._adopt(loaded)

    def load_bytes(self, data: bytes) -> None:
        try:
            loaded = codec.loads(data, self.config)
        except MalformedSnapshot as e:
            logger.warning("Load aborted: %s", e)
            raise
        self._adopt(loaded)

    def _adopt(self, loaded: SceneGraph) -> None:
        self.drawing.cancel()
        self.selection.clear()
        self.scene.replace_contents(loaded)
        loaded.dispose()
        logger.info("Loaded scene with %d objects", len(self.scene))

    def export_png(self) -> bytes:
        if self.exporter is None:
            raise RuntimeError("No exporter configured for this session")
        return self.exporter(self.scene)

    def clear(self) -> None:
        self.drawing.cancel()
        self.scene.clear()

    def dispose(self) -> None:
        self.drawing.cancel()
        self.selection.detach()
        self.scene.dispose()
