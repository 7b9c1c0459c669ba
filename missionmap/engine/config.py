"""Per-session configuration for the scene editor.

Pure data module with no UI dependencies. An ``EditorConfig`` is passed into
every component that needs canvas dimensions, palette colors, the polygon
closure policy or default control styling, so none of them read ambient
global state.

All lengths are in canvas pixels unless the field name says inches. The
default canvas is a Strike Force table: 60x44 inches at 20 px per inch.

``PRESETS`` holds the named configurations the editor ships with. They differ
only in closure policy, color-picker behaviour and cosmetic defaults.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from typing import Any

# Table dimensions for Strike Force (standard matched play)
_TABLE_W = 60  # inches
_TABLE_D = 44  # inches
_PPI = 20  # pixels per inch


class ClosurePolicy(enum.Enum):
    """How the drawing state machine decides a polygon is closed."""

    EXPLICIT_CLOSE = "explicit_close"  # click back near the first point
    AUTO_CLOSE = "auto_close"  # close once N points are buffered


@dataclass
class ZoneStyle:
    color: str
    opacity: float = 0.3

    @staticmethod
    def from_dict(d: dict) -> ZoneStyle:
        return ZoneStyle(color=d["color"], opacity=d.get("opacity", 0.3))

    def to_dict(self) -> dict:
        return {"color": self.color, "opacity": self.opacity}


@dataclass
class Palette:
    attacker: ZoneStyle = field(
        default_factory=lambda: ZoneStyle("#FF0000", 0.3)
    )
    defender: ZoneStyle = field(
        default_factory=lambda: ZoneStyle("#00FF00", 0.3)
    )
    custom: ZoneStyle = field(
        default_factory=lambda: ZoneStyle("#0000FF", 0.3)
    )
    measurement: str = "#0000FF"
    label: str = "#000000"

    def zone_style(self, zone_kind: str) -> ZoneStyle:
        if zone_kind == "attacker":
            return self.attacker
        if zone_kind == "defender":
            return self.defender
        return self.custom

    @staticmethod
    def from_dict(d: dict) -> Palette:
        p = Palette()
        for kind in ("attacker", "defender", "custom"):
            if kind in d:
                setattr(p, kind, ZoneStyle.from_dict(d[kind]))
        p.measurement = d.get("measurement", p.measurement)
        p.label = d.get("label", p.label)
        return p

    def to_dict(self) -> dict:
        return {
            "attacker": self.attacker.to_dict(),
            "defender": self.defender.to_dict(),
            "custom": self.custom.to_dict(),
            "measurement": self.measurement,
            "label": self.label,
        }


@dataclass
class StyleTheme:
    """Control-handle styling applied by the factories to new objects."""

    corner_style: str = "circle"
    corner_color: str = "#0000FF"
    corner_size: int = 8
    transparent_corners: bool = False
    border_color: str = "#0000FF"
    padding: int = 0

    @staticmethod
    def from_dict(d: dict) -> StyleTheme:
        t = StyleTheme()
        for key, value in d.items():
            if hasattr(t, key):
                setattr(t, key, value)
        return t

    def to_dict(self) -> dict:
        return {
            "corner_style": self.corner_style,
            "corner_color": self.corner_color,
            "corner_size": self.corner_size,
            "transparent_corners": self.transparent_corners,
            "border_color": self.border_color,
            "padding": self.padding,
        }


@dataclass
class EditorConfig:
    grid_unit: int = _PPI
    width_inches: int = _TABLE_W
    height_inches: int = _TABLE_D
    major_grid_every: int = 4  # inches between major grid lines
    closure_policy: ClosurePolicy = ClosurePolicy.EXPLICIT_CLOSE
    auto_close_points: int = 3
    palette: Palette = field(default_factory=Palette)
    theme: StyleTheme = field(default_factory=StyleTheme)
    background: str = "#FFF8E7"  # cream
    # icon key -> image path; keys not listed use the built-in icons
    icon_paths: dict[str, str] = field(default_factory=dict)

    @property
    def canvas_width(self) -> int:
        return self.width_inches * self.grid_unit

    @property
    def canvas_height(self) -> int:
        return self.height_inches * self.grid_unit

    @property
    def center(self) -> tuple[float, float]:
        return (self.canvas_width / 2, self.canvas_height / 2)

    @staticmethod
    def from_dict(d: dict[str, Any]) -> EditorConfig:
        """Build a config from a JSON-style dict; missing keys keep defaults."""
        cfg = EditorConfig()
        if "preset" in d:
            cfg = preset(d["preset"])
        return replace(
            cfg,
            grid_unit=d.get("grid_unit", cfg.grid_unit),
            width_inches=d.get("width_inches", cfg.width_inches),
            height_inches=d.get("height_inches", cfg.height_inches),
            major_grid_every=d.get("major_grid_every", cfg.major_grid_every),
            closure_policy=ClosurePolicy(
                d.get("closure_policy", cfg.closure_policy.value)
            ),
            auto_close_points=d.get(
                "auto_close_points", cfg.auto_close_points
            ),
            palette=(
                Palette.from_dict(d["palette"]) if "palette" in d
                else cfg.palette
            ),
            theme=(
                StyleTheme.from_dict(d["theme"]) if "theme" in d
                else cfg.theme
            ),
            background=d.get("background", cfg.background),
            icon_paths=dict(d.get("icon_paths", cfg.icon_paths)),
        )

    def to_dict(self) -> dict:
        return {
            "grid_unit": self.grid_unit,
            "width_inches": self.width_inches,
            "height_inches": self.height_inches,
            "major_grid_every": self.major_grid_every,
            "closure_policy": self.closure_policy.value,
            "auto_close_points": self.auto_close_points,
            "palette": self.palette.to_dict(),
            "theme": self.theme.to_dict(),
            "background": self.background,
            "icon_paths": dict(self.icon_paths),
        }


# name -> config dict understood by EditorConfig.from_dict
PRESETS: dict[str, dict[str, Any]] = {
    "classic": {
        "closure_policy": "explicit_close",
    },
    "quick_draw": {
        "closure_policy": "auto_close",
        "auto_close_points": 3,
    },
    "tournament": {
        "closure_policy": "explicit_close",
        "palette": {
            "attacker": {"color": "#C62828", "opacity": 0.35},
            "defender": {"color": "#1565C0", "opacity": 0.35},
            "custom": {"color": "#6A1B9A", "opacity": 0.3},
        },
        "theme": {"corner_style": "rect", "corner_color": "#333333"},
    },
    "night": {
        "closure_policy": "auto_close",
        "auto_close_points": 3,
        "background": "#2A2A2A",
        "palette": {"measurement": "#4FC3F7", "label": "#FFFFFF"},
        "theme": {"corner_color": "#FFD700", "border_color": "#FFD700"},
    },
}


def preset(name: str) -> EditorConfig:
    """Return a fresh config for a named preset. Raises KeyError if unknown."""
    d = dict(PRESETS[name])
    return EditorConfig.from_dict(d)
