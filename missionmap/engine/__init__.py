"""UI-free scene-editing core.

The public entry point is ``EditorSession``; ``codec`` provides the
snapshot primitives used for save/load.
"""

from .config import PRESETS, ClosurePolicy, EditorConfig, preset
from .drawing import DrawingState, ZoneOutcome
from .editor import EditorSession
from .errors import (
    AssetLoadFailure,
    InvalidGeometry,
    InvalidSelection,
    MalformedColor,
    MalformedSnapshot,
    MissionMapError,
    TransformLocked,
)

__all__ = [
    "PRESETS",
    "AssetLoadFailure",
    "ClosurePolicy",
    "DrawingState",
    "EditorConfig",
    "EditorSession",
    "InvalidGeometry",
    "InvalidSelection",
    "MalformedColor",
    "MalformedSnapshot",
    "MissionMapError",
    "TransformLocked",
    "ZoneOutcome",
    "preset",
]
