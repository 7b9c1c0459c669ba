"""Constructors for every placeable object variant.

Each factory method returns a fully configured object but does not add it
to the scene; ``editor.EditorSession`` does that. Objects are placed at the
canvas center unless explicit points are given, and get the session theme's
control styling instead of any process-wide default.

Defaults:
  * deployment rectangles are 12x6 inches;
  * objective markers are scaled so the icon's longest side is two grid
    units; strike-force markers use a fixed 0.5 scale;
  * unit icons start fully opaque;
  * measurement aids are 5 inches long and locked to their axis.
"""

from __future__ import annotations

import logging

from .assets import IconLibrary
from .config import EditorConfig
from .errors import InvalidGeometry
from .geometry import Point, bbox_center, parse_color
from .types import (
    HANDLES,
    DrawingLine,
    DrawingMarker,
    Group,
    Interactivity,
    Label,
    Marker,
    MeasurementAid,
    ObjectKind,
    Transform,
    UnitIcon,
    Zone,
)

logger = logging.getLogger(__name__)

DEPLOYMENT_WIDTH_INCHES = 12
DEPLOYMENT_DEPTH_INCHES = 6
STRIKE_FORCE_SCALE = 0.5
DEFAULT_MEASUREMENT_INCHES = 5

_ZONE_KIND = {
    "attacker": ObjectKind.ATTACKER_ZONE,
    "defender": ObjectKind.DEFENDER_ZONE,
    "custom": ObjectKind.CUSTOM_ZONE,
}
_UNIT_KIND = {
    "attacker": ObjectKind.ATTACKER_UNIT,
    "defender": ObjectKind.DEFENDER_UNIT,
}


def format_inches(length_px: float, grid_unit: float) -> str:
    return f'{length_px / grid_unit:.1f}"'


class ObjectFactory:
    def __init__(self, config: EditorConfig, icons: IconLibrary | None = None):
        self.config = config
        self.icons = icons or IconLibrary(config.icon_paths)

    def _interactive(self, **overrides) -> Interactivity:
        t = self.config.theme
        i = Interactivity(
            corner_style=t.corner_style,
            corner_color=t.corner_color,
            corner_size=t.corner_size,
            transparent_corners=t.transparent_corners,
            border_color=t.border_color,
            padding=t.padding,
        )
        for key, value in overrides.items():
            setattr(i, key, value)
        return i

    def _position(self, position: Point | None) -> Point:
        return position if position is not None else self.config.center

    # -- zones --

    def zone_from_points(
        self,
        points: list[Point],
        zone_kind: str,
        color: str | None = None,
        opacity: float | None = None,
        rectangle: bool = False,
    ) -> Zone:
        """Zone whose vertices are ``points`` (canvas space, click order).

        Raises ``InvalidGeometry`` for fewer than 3 points.
        """
        if zone_kind not in _ZONE_KIND:
            raise ValueError(f"Unknown zone kind {zone_kind!r}")
        if len(points) < 3:
            raise InvalidGeometry(
                f"A zone needs at least 3 points, got {len(points)}"
            )
        style = self.config.palette.zone_style(zone_kind)
        fill = parse_color(color) if color is not None else style.color
        alpha = style.opacity if opacity is None else opacity
        cx, cy = bbox_center(points)
        zone = Zone(
            kind=_ZONE_KIND[zone_kind],
            transform=Transform.at(cx, cy),
            interactivity=self._interactive(),
            points=[(x - cx, y - cy) for x, y in points],
            fill=fill,
            opacity=max(0.0, min(1.0, float(alpha))),
            rectangle=rectangle,
        )
        logger.debug("Built %s with %d vertices", zone.name, len(points))
        return zone

    def deployment_zone(
        self, zone_kind: str, points: list[Point] | None = None
    ) -> Zone:
        """12x6 inch rectangle centered on the canvas, or at ``points``."""
        if points is None:
            g = self.config.grid_unit
            cx, cy = self.config.center
            hw = DEPLOYMENT_WIDTH_INCHES * g / 2
            hh = DEPLOYMENT_DEPTH_INCHES * g / 2
            points = [
                (cx - hw, cy - hh),
                (cx + hw, cy - hh),
                (cx + hw, cy + hh),
                (cx - hw, cy + hh),
            ]
        return self.zone_from_points(points, zone_kind, rectangle=True)

    def zone_preview(
        self, points: list[Point], color: str, opacity: float
    ) -> Zone:
        """Non-interactive preview drawn at half the chosen opacity."""
        cx, cy = bbox_center(points)
        return Zone(
            kind=ObjectKind.ZONE_PREVIEW,
            transform=Transform.at(cx, cy),
            interactivity=Interactivity.inert(),
            points=[(x - cx, y - cy) for x, y in points],
            fill=color,
            opacity=max(0.0, min(1.0, opacity)) / 2,
        )

    # -- icons --

    def objective_marker(self, position: Point | None = None) -> Marker:
        asset = self.icons.load("objective")
        w, h = asset.size
        scale = 2 * self.config.grid_unit / max(w, h)
        return Marker(
            kind=ObjectKind.OBJECTIVE_MARKER,
            transform=Transform.at(*self._position(position), scale=scale),
            interactivity=self._interactive(),
            icon=asset.key,
            icon_size=(w, h),
        )

    def strike_force_marker(self, position: Point | None = None) -> Marker:
        asset = self.icons.load("strike_force")
        return Marker(
            kind=ObjectKind.STRIKE_FORCE_MARKER,
            transform=Transform.at(
                *self._position(position), scale=STRIKE_FORCE_SCALE
            ),
            interactivity=self._interactive(),
            icon=asset.key,
            icon_size=asset.size,
        )

    def unit_icon(self, side: str, position: Point | None = None) -> UnitIcon:
        if side not in _UNIT_KIND:
            raise ValueError(f"Unknown unit side {side!r}")
        key = f"{side}_unit"
        asset = self.icons.load(key)
        w, h = asset.size
        # Units occupy the same footprint as an objective
        scale = 2 * self.config.grid_unit / max(w, h)
        return UnitIcon(
            kind=_UNIT_KIND[side],
            transform=Transform.at(*self._position(position), scale=scale),
            interactivity=self._interactive(),
            icon=asset.key,
            icon_size=(w, h),
            opacity=1.0,
        )

    # -- measurement and text --

    def measurement_aid(
        self,
        orientation: str = "horizontal",
        position: Point | None = None,
        length_inches: float = DEFAULT_MEASUREMENT_INCHES,
    ) -> MeasurementAid:
        """Axis-locked measurement line; the lock is permanent."""
        if orientation not in ("horizontal", "vertical"):
            raise ValueError(f"Unknown orientation {orientation!r}")
        vertical = orientation == "vertical"
        allowed = ("mt", "mb") if vertical else ("ml", "mr")
        interactivity = self._interactive(
            lock_rotation=True,
            lock_scaling_x=vertical,
            lock_scaling_y=not vertical,
            controls={h: h in allowed for h in HANDLES},
            corner_color=self.config.palette.measurement,
            padding=10,
        )
        length = length_inches * self.config.grid_unit
        return MeasurementAid(
            kind=ObjectKind.MEASUREMENT,
            transform=Transform.at(*self._position(position)),
            interactivity=interactivity,
            orientation=orientation,
            length=length,
            stroke=self.config.palette.measurement,
            text=format_inches(length, self.config.grid_unit),
        )

    def label(
        self,
        text: str,
        position: Point = (0.0, 0.0),
        kind: ObjectKind = ObjectKind.ZONE_LABEL,
    ) -> Label:
        return Label(
            kind=kind,
            transform=Transform.at(*position),
            interactivity=self._interactive(),
            text=text,
            fill=self.config.palette.label,
            background="#FFFFFF",
        )

    def group(self, children, kind: ObjectKind = ObjectKind.GROUP) -> Group:
        return Group(kind=kind, interactivity=self._interactive(), children=children)

    # -- drawing artifacts --

    def drawing_marker(self, point: Point) -> DrawingMarker:
        return DrawingMarker(
            kind=ObjectKind.DRAWING_MARKER,
            transform=Transform.at(*point),
            interactivity=Interactivity.inert(),
        )

    def drawing_line(self, start: Point, end: Point) -> DrawingLine:
        return DrawingLine(
            kind=ObjectKind.DRAWING_LINE,
            interactivity=Interactivity.inert(),
            start=start,
            end=end,
        )
