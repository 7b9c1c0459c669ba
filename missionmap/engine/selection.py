"""Current selection, exposed to the UI as a capability object.

The selection can hold several objects (shift-click), but contextual actions
such as editing text or changing opacity only apply when exactly one object
is selected. The capability queries (``can_group`` etc.) are what the shell
uses to enable or disable its buttons.
"""

from __future__ import annotations

import logging

from .scene import SceneGraph
from .types import (
    GROUP_KINDS,
    UNIT_KINDS,
    ZONE_KINDS,
    ObjectKind,
    SceneObject,
)

logger = logging.getLogger(__name__)


class Selection:
    def __init__(self, scene: SceneGraph):
        self.scene = scene
        self.objects: list[SceneObject] = []
        self.enabled = True
        self._unsubscribe = scene.subscribe(self._on_scene_event)

    def _on_scene_event(self, event, obj):
        if event == "removed" and obj is not None:
            self.objects = [o for o in self.objects if o is not obj]
        elif event == "cleared":
            self.objects = []

    # -- mutation --

    def select(self, obj: SceneObject | None, additive: bool = False) -> None:
        """Select ``obj`` (None clears). ``additive`` toggles membership."""
        if not self.enabled:
            return
        if obj is None:
            self.clear()
            return
        if not obj.interactivity.selectable:
            return
        if additive:
            if any(o is obj for o in self.objects):
                self.objects = [o for o in self.objects if o is not obj]
            else:
                self.objects.append(obj)
        else:
            self.objects = [obj]
        self.scene.set_active(self.primary)
        logger.debug("Selection now holds %d object(s)", len(self.objects))

    def select_many(self, objs: list[SceneObject]) -> None:
        if not self.enabled:
            return
        self.objects = [o for o in objs if o.interactivity.selectable]
        self.scene.set_active(self.primary)

    def clear(self) -> None:
        self.objects = []
        if self.scene.active is not None:
            self.scene.set_active(None)

    def set_enabled(self, enabled: bool) -> None:
        """Disable while drawing; disabling drops the current selection."""
        self.enabled = enabled
        if not enabled:
            self.clear()

    def detach(self) -> None:
        self._unsubscribe()

    # -- queries --

    @property
    def primary(self) -> SceneObject | None:
        """The single selected object, or None for empty/multi selections."""
        if len(self.objects) == 1:
            return self.objects[0]
        return None

    @property
    def is_multi(self) -> bool:
        return len(self.objects) > 1

    def __len__(self) -> int:
        return len(self.objects)

    def can_group(self) -> bool:
        return self.is_multi

    def can_ungroup(self) -> bool:
        obj = self.primary
        return obj is not None and obj.kind in GROUP_KINDS

    def can_edit_text(self) -> bool:
        obj = self.primary
        if obj is None:
            return False
        if obj.kind in ZONE_KINDS:
            return True
        return obj.kind in (ObjectKind.ZONE_TEXT_GROUP, ObjectKind.MEASUREMENT)

    def can_set_opacity(self) -> bool:
        obj = self.primary
        return obj is not None and obj.kind in UNIT_KINDS

    def can_delete(self) -> bool:
        return bool(self.objects)
