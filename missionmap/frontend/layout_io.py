"""Save and load scenes as JSON or as PNG with the snapshot embedded.

The PNG format stores the rendered map with the full snapshot JSON in a PNG
tEXt chunk (key: ``missionmap_scene``), so one file is both a shareable
image and a complete scene that can be loaded back into the editor. Plain
JSON files hold the snapshot alone.

Everything here works on snapshot dicts from ``engine.codec``; turning a
dict into a scene (and rejecting bad ones) is the codec's job. Any
unreadable or structurally wrong file raises ``MalformedSnapshot``.

Used by ``app.py`` for its Save/Load/Export buttons.
"""

import io
import json

from PIL import Image, UnidentifiedImageError
from PIL.PngImagePlugin import PngInfo

from ..engine.errors import MalformedSnapshot

METADATA_KEY = "missionmap_scene"


def png_bytes(img: Image.Image, snapshot: dict | None = None) -> bytes:
    """Encode an image as PNG, embedding ``snapshot`` when given."""
    buf = io.BytesIO()
    if snapshot is None:
        img.save(buf, format="PNG")
    else:
        info = PngInfo()
        info.add_text(METADATA_KEY, json.dumps(snapshot))
        img.save(buf, format="PNG", pnginfo=info)
    return buf.getvalue()


def save_scene_png(img: Image.Image, snapshot: dict, path: str) -> None:
    """Save a rendered scene with the snapshot JSON in a tEXt chunk."""
    with open(path, "wb") as f:
        f.write(png_bytes(img, snapshot))


def save_scene_json(snapshot: dict, path: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(snapshot, f, indent=2)
        f.write("\n")


def snapshot_from_png_bytes(data: bytes) -> dict:
    """Extract the snapshot from PNG bytes.

    Raises MalformedSnapshot if the data is not a PNG or has no scene chunk.
    """
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (OSError, UnidentifiedImageError) as e:
        raise MalformedSnapshot(f"Not a readable PNG: {e}") from e
    text_data = getattr(img, "text", None)
    if not text_data or METADATA_KEY not in text_data:
        raise MalformedSnapshot(
            f"PNG file does not contain scene metadata (missing '{METADATA_KEY}' chunk)"
        )
    try:
        return json.loads(text_data[METADATA_KEY])
    except json.JSONDecodeError as e:
        raise MalformedSnapshot(f"Scene metadata is not valid JSON: {e}") from e


def load_scene_png(path: str) -> dict:
    """Load a snapshot dict from a PNG file's tEXt metadata."""
    with open(path, "rb") as f:
        return snapshot_from_png_bytes(f.read())


def load_scene_json(path: str) -> dict:
    """Load a snapshot dict from a JSON file."""
    with open(path, "rb") as f:
        data = f.read()
    try:
        return json.loads(data)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedSnapshot(f"Snapshot is not valid JSON: {e}") from e


def load_scene(path: str) -> dict:
    """Load a snapshot from a file, dispatching by extension.

    Supports .png (reads embedded metadata) and .json (reads raw JSON).
    Raises ValueError for unsupported extensions.
    """
    lower = path.lower()
    if lower.endswith(".png"):
        return load_scene_png(path)
    elif lower.endswith(".json"):
        return load_scene_json(path)
    else:
        raise ValueError(f"Unsupported file extension: {path}")
