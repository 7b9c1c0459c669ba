"""Point-by-point polygon capture.

State flow::

    IDLE --start--> PLACING_POINTS --closure--> AWAITING_ZONE_CLASSIFICATION
    AWAITING_ZONE_CLASSIFICATION --attacker/defender--> IDLE (zone created)
    AWAITING_ZONE_CLASSIFICATION --custom--> AWAITING_COLOR_SELECTION
    AWAITING_COLOR_SELECTION --confirm--> IDLE (zone created)
    any drawing state --cancel--> IDLE (nothing created)

Every click is snapped to the grid and shown as a temporary marker, with a
temporary segment back to the previous point. Those artifacts (and the
custom-color preview polygon) live in the scene graph while drawing and are
all removed on every exit path, so the scene ends up holding exactly what it
held before ``start`` plus, at most, the one new zone.

How a loop closes is set by ``EditorConfig.closure_policy``:

  * ``EXPLICIT_CLOSE``: with at least 3 points buffered, a click within one
    grid unit of the first point (on both axes) closes the loop. The
    closing click is not added as a vertex.
  * ``AUTO_CLOSE``: the loop closes as soon as ``auto_close_points``
    points are buffered.
"""

from __future__ import annotations

import enum
import logging
from typing import Callable

from .config import ClosurePolicy, EditorConfig
from .errors import InvalidGeometry, MalformedColor
from .factories import ObjectFactory
from .geometry import Point, parse_color, snap, within_one_unit
from .scene import SceneGraph
from .selection import Selection
from .types import SceneObject, Zone

logger = logging.getLogger(__name__)

MIN_ZONE_POINTS = 3


class DrawingState(enum.Enum):
    IDLE = "idle"
    PLACING_POINTS = "placing_points"
    AWAITING_ZONE_CLASSIFICATION = "awaiting_zone_classification"
    AWAITING_COLOR_SELECTION = "awaiting_color_selection"


class ZoneOutcome(enum.Enum):
    ATTACKER = "attacker"
    DEFENDER = "defender"
    CUSTOM = "custom"
    CANCEL = "cancel"


StateListener = Callable[[DrawingState, DrawingState], None]


class DrawingMachine:
    def __init__(
        self,
        scene: SceneGraph,
        selection: Selection,
        factory: ObjectFactory,
        config: EditorConfig | None = None,
    ):
        self.scene = scene
        self.selection = selection
        self.factory = factory
        self.config = config or scene.config
        self.state = DrawingState.IDLE
        self.points: list[Point] = []
        self._artifacts: list[SceneObject] = []
        self._preview: Zone | None = None
        custom = self.config.palette.custom
        self.custom_color = custom.color
        self.custom_opacity = custom.opacity
        self._listeners: list[StateListener] = []

    # -- plumbing --

    def subscribe(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def _transition(self, new_state: DrawingState) -> None:
        old = self.state
        self.state = new_state
        logger.debug("Drawing state %s -> %s", old.value, new_state.value)
        for listener in list(self._listeners):
            listener(old, new_state)

    def _add_artifact(self, obj: SceneObject) -> None:
        self.scene.add(obj)
        self._artifacts.append(obj)

    def _discard_artifacts(self) -> None:
        self._remove_preview()
        for obj in self._artifacts:
            if obj in self.scene:
                self.scene.remove(obj)
        self._artifacts = []

    def _remove_preview(self) -> None:
        if self._preview is not None and self._preview in self.scene:
            self.scene.remove(self._preview)
        self._preview = None

    def _finish(self) -> None:
        self._discard_artifacts()
        self.points = []
        self.selection.set_enabled(True)
        self._transition(DrawingState.IDLE)

    @property
    def is_drawing(self) -> bool:
        return self.state != DrawingState.IDLE

    # -- events --

    def start(self) -> None:
        """Begin a new polygon, abandoning any drawing in progress."""
        if self.is_drawing:
            self._discard_artifacts()
        self.points = []
        custom = self.config.palette.custom
        self.custom_color = custom.color
        self.custom_opacity = custom.opacity
        self.selection.set_enabled(False)
        self._transition(DrawingState.PLACING_POINTS)

    def click(self, point: Point) -> DrawingState:
        """Handle a pointer click; ignored outside ``PLACING_POINTS``."""
        if self.state != DrawingState.PLACING_POINTS:
            return self.state
        g = self.config.grid_unit
        p = snap(point, g)

        if (
            self.config.closure_policy == ClosurePolicy.EXPLICIT_CLOSE
            and len(self.points) >= MIN_ZONE_POINTS
            and within_one_unit(p, self.points[0], g)
        ):
            self._add_artifact(self.factory.drawing_line(self.points[-1], self.points[0]))
            self._transition(DrawingState.AWAITING_ZONE_CLASSIFICATION)
            return self.state

        self._add_artifact(self.factory.drawing_marker(p))
        if self.points:
            self._add_artifact(self.factory.drawing_line(self.points[-1], p))
        self.points.append(p)

        if (
            self.config.closure_policy == ClosurePolicy.AUTO_CLOSE
            and len(self.points) >= max(MIN_ZONE_POINTS, self.config.auto_close_points)
        ):
            self._add_artifact(self.factory.drawing_line(p, self.points[0]))
            self._transition(DrawingState.AWAITING_ZONE_CLASSIFICATION)
        return self.state

    def classify(self, outcome: ZoneOutcome | str) -> Zone | None:
        """Resolve the classification dialog.

        Returns the created zone for attacker/defender, else None. Raises
        ``InvalidGeometry`` (leaving everything as it was) if fewer than 3
        points are buffered.
        """
        if self.state != DrawingState.AWAITING_ZONE_CLASSIFICATION:
            raise RuntimeError(f"Cannot classify a zone while {self.state.value}")
        outcome = ZoneOutcome(outcome)
        if outcome == ZoneOutcome.CANCEL:
            self.cancel()
            return None
        if outcome == ZoneOutcome.CUSTOM:
            self._transition(DrawingState.AWAITING_COLOR_SELECTION)
            self._refresh_preview()
            return None
        return self._create_zone(outcome.value)

    def _create_zone(self, zone_kind: str, color=None, opacity=None) -> Zone:
        if len(self.points) < MIN_ZONE_POINTS:
            raise InvalidGeometry(
                f"A zone needs at least {MIN_ZONE_POINTS} points, got {len(self.points)}"
            )
        zone = self.factory.zone_from_points(
            self.points, zone_kind, color=color, opacity=opacity
        )
        self._discard_artifacts()
        self.scene.add(zone)
        logger.info("Created %s with %d vertices", zone.name, len(self.points))
        self._finish()
        return zone

    # -- custom color --

    def set_color(self, value: str) -> str:
        """Set the custom color; a malformed value keeps the last good one.

        Returns the color now in effect.
        """
        try:
            self.custom_color = parse_color(value)
        except MalformedColor as e:
            logger.warning("%s; keeping %s", e, self.custom_color)
        self._refresh_preview()
        return self.custom_color

    def set_opacity(self, value: float) -> float:
        self.custom_opacity = max(0.0, min(1.0, float(value)))
        self._refresh_preview()
        return self.custom_opacity

    def _refresh_preview(self) -> None:
        if self.state != DrawingState.AWAITING_COLOR_SELECTION:
            return
        self._remove_preview()
        self._preview = self.factory.zone_preview(
            self.points, self.custom_color, self.custom_opacity
        )
        self.scene.add(self._preview)

    def confirm(self) -> Zone:
        """Create the custom zone with the chosen color and opacity."""
        if self.state != DrawingState.AWAITING_COLOR_SELECTION:
            raise RuntimeError(f"Nothing to confirm while {self.state.value}")
        return self._create_zone(
            "custom", color=self.custom_color, opacity=self.custom_opacity
        )

    def cancel(self) -> None:
        """Abandon the drawing; removes every temporary artifact."""
        if not self.is_drawing:
            return
        logger.debug("Drawing canceled with %d points", len(self.points))
        self._finish()
