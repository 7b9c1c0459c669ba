"""Error kinds raised by the scene-editing core.

Every failure in the core is local and recoverable: the session keeps
running and the user can retry the action. Callers (the Tk shell, tests)
catch ``MissionMapError`` subclasses and report them.
"""

from __future__ import annotations


class MissionMapError(Exception):
    """Base class for all scene-editor errors."""


class InvalidGeometry(MissionMapError, ValueError):
    """A zone was finalized with fewer than 3 vertices."""


class MalformedColor(MissionMapError, ValueError):
    """A color string could not be parsed as ``#RRGGBB``."""


class AssetLoadFailure(MissionMapError, RuntimeError):
    """An icon image could not be loaded; the insertion was aborted."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"Could not load icon {key!r}: {reason}")
        self.key = key
        self.reason = reason


class MalformedSnapshot(MissionMapError, ValueError):
    """Save data is corrupt or from an incompatible version."""


class TransformLocked(MissionMapError, ValueError):
    """A transform was attempted that the object's constraints forbid."""


class InvalidSelection(MissionMapError, ValueError):
    """An action was invoked on a selection it does not apply to."""
