"""Icon images for image-backed objects (objectives, strike force, units).

Icons are loaded before anything touches the scene: factories call
``IconLibrary.load`` first and only build the object once the image is in
hand, so a failed load leaves the scene exactly as it was.

Keys with a path in ``EditorConfig.icon_paths`` are read from disk; the rest
fall back to small icons drawn here with Pillow.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from PIL import Image, ImageDraw, UnidentifiedImageError

from .errors import AssetLoadFailure

logger = logging.getLogger(__name__)

ICON_KEYS = ("objective", "strike_force", "attacker_unit", "defender_unit")

_BUILTIN_SIZE = 64
_SKULL_BG = "#111111"


@dataclass
class IconAsset:
    key: str
    image: Image.Image

    @property
    def size(self) -> tuple[int, int]:
        return self.image.size


def _draw_skull(draw, cx, cy, marker_radius):
    """Simple white skull inside a dark disc."""
    s = marker_radius * 0.6
    white = "#ffffff"

    head_r = s * 0.55
    draw.ellipse(
        [
            cx - head_r,
            cy - s * 0.35 - head_r,
            cx + head_r,
            cy - s * 0.35 + head_r,
        ],
        fill=white,
    )

    eye_r = s * 0.12
    eye_y = cy - s * 0.4
    for ex in [cx - s * 0.22, cx + s * 0.22]:
        draw.ellipse(
            [ex - eye_r, eye_y - eye_r, ex + eye_r, eye_y + eye_r],
            fill=_SKULL_BG,
        )

    jaw_w = s * 0.35
    jaw_h = s * 0.2
    jaw_y = cy + s * 0.1
    draw.rectangle([cx - jaw_w, jaw_y, cx + jaw_w, jaw_y + jaw_h], fill=white)
    gap = s * 0.12
    for gx in [cx - gap, cx + gap]:
        draw.line(
            [(gx, jaw_y), (gx, jaw_y + jaw_h)],
            fill=_SKULL_BG,
            width=max(1, int(s * 0.06)),
        )


def _builtin_icon(key: str) -> Image.Image:
    n = _BUILTIN_SIZE
    img = Image.new("RGBA", (n, n), (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)
    c = n / 2
    r = n / 2 - 2
    if key == "objective":
        draw.ellipse([c - r, c - r, c + r, c + r], fill=_SKULL_BG)
        _draw_skull(draw, c, c, r)
    elif key == "strike_force":
        # Chevron on a shield-ish square
        draw.rectangle([2, 2, n - 3, n - 3], fill="#FFD54F", outline="#333333", width=3)
        draw.line(
            [(n * 0.2, n * 0.65), (c, n * 0.35), (n * 0.8, n * 0.65)],
            fill="#333333",
            width=6,
        )
    elif key in ("attacker_unit", "defender_unit"):
        fill = "#D32F2F" if key == "attacker_unit" else "#388E3C"
        draw.ellipse([c - r, c - r, c + r, c + r], fill=fill, outline="#111111", width=3)
        draw.polygon(
            [(c, n * 0.25), (n * 0.75, n * 0.7), (n * 0.25, n * 0.7)],
            fill="#FFFFFF",
        )
    else:
        raise AssetLoadFailure(key, "no built-in icon with that key")
    return img


class IconLibrary:
    """Loads and caches icon images by key."""

    def __init__(self, paths: dict[str, str] | None = None):
        self.paths = dict(paths or {})
        self._cache: dict[str, IconAsset] = {}

    def load(self, key: str) -> IconAsset:
        """Return the icon for ``key``. Raises ``AssetLoadFailure``."""
        if key in self._cache:
            return self._cache[key]
        path = self.paths.get(key)
        if path is None:
            image = _builtin_icon(key)
        else:
            try:
                with Image.open(path) as src:
                    image = src.convert("RGBA")
            except (OSError, UnidentifiedImageError) as e:
                logger.warning("Icon %r failed to load from %s: %s", key, path, e)
                raise AssetLoadFailure(key, str(e)) from e
        asset = IconAsset(key, image)
        self._cache[key] = asset
        logger.debug("Loaded icon %r (%dx%d)", key, *asset.size)
        return asset

    def get(self, key: str) -> Image.Image | None:
        """Image for rendering; None if it cannot be loaded."""
        try:
            return self.load(key).image
        except AssetLoadFailure:
            return None
