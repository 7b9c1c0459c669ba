"""Rasterize a scene graph with Pillow.

``SceneRenderer`` draws the whole scene (background, grid, center marker,
user content, drawing artifacts) in z-order onto an RGBA image. It is used
both for the on-screen canvas in ``app.py`` and for PNG export, so an export
matches what is displayed: the grid and the center marker appear exactly
when they are currently visible.

Translucent fills are drawn on a scratch layer and alpha-composited, since
``ImageDraw`` overwrites rather than blends RGBA pixels.

Like the table renderer this grew out of, drawing can be supersampled
(``supersample=4``) and downsampled with LANCZOS to hide the jagged edges of
Pillow's non-antialiased primitives.
"""

from __future__ import annotations

import math

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from ..engine.assets import IconLibrary
from ..engine.geometry import apply_matrix, bounding_box, rgba
from ..engine.scene import SceneGraph
from ..engine.types import (
    CenterMarker,
    DrawingLine,
    DrawingMarker,
    GridLine,
    Group,
    IconObject,
    Label,
    MeasurementAid,
    SceneObject,
    Zone,
)
from .layout_io import png_bytes

HIGHLIGHT_COLOR = "#FFD700"
LABEL_PADDING = 4


def _font(size: int):
    try:
        return ImageFont.truetype("DejaVuSans.ttf", size)
    except OSError:
        return ImageFont.load_default(size=size)


class SceneRenderer:
    """Renders a ``SceneGraph`` to a Pillow image."""

    def __init__(self, icons: IconLibrary, scale: float = 1.0, line_scale=1):
        self.icons = icons
        self.scale = scale
        self.line_scale = line_scale

    def _lw(self, base_width):
        """Scale a pixel width by the supersample factor."""
        return max(1, round(base_width * self.line_scale))

    def _view(self) -> np.ndarray:
        return np.array(
            [[self.scale, 0.0, 0.0], [0.0, self.scale, 0.0], [0.0, 0.0, 1.0]]
        )

    def render(self, scene: SceneGraph, selected=None) -> Image.Image:
        cfg = scene.config
        w = int(cfg.canvas_width * self.scale)
        h = int(cfg.canvas_height * self.scale)
        img = Image.new("RGBA", (w, h), cfg.background)
        view = self._view()
        for obj in scene.all():
            if obj.visible:
                self._draw(img, obj, view)
        for obj in selected or []:
            if obj in scene:
                self._draw_selection(img, obj, view)
        return img

    # -- dispatch --

    def _draw(self, img: Image.Image, obj: SceneObject, parent: np.ndarray):
        m = parent @ obj.transform.matrix()
        if isinstance(obj, Group):
            for child in obj.children:
                if child.visible:
                    self._draw(img, child, m)
        elif isinstance(obj, Zone):
            self._draw_zone(img, obj, m)
        elif isinstance(obj, Label):
            self._draw_label(img, obj, m)
        elif isinstance(obj, IconObject):
            self._draw_icon(img, obj, m)
        elif isinstance(obj, MeasurementAid):
            self._draw_measurement(img, obj, m)
        elif isinstance(obj, GridLine):
            self._draw_segment(img, obj.start, obj.end, m, obj.stroke, obj.width)
        elif isinstance(obj, DrawingLine):
            self._draw_segment(img, obj.start, obj.end, m, obj.stroke, obj.width)
        elif isinstance(obj, DrawingMarker):
            self._draw_drawing_marker(img, obj, m)
        elif isinstance(obj, CenterMarker):
            self._draw_center_marker(img, obj, m)

    # -- primitives --

    def _draw_segment(self, img, start, end, m, color, width):
        a, b = apply_matrix(m, [start, end])
        ImageDraw.Draw(img).line([a, b], fill=color, width=self._lw(width))

    def _blend(self, img, x0, y0, layer):
        """Alpha-composite ``layer`` at (x0, y0), clipped to the image."""
        left = max(0, x0)
        top = max(0, y0)
        right = min(img.width, x0 + layer.width)
        bottom = min(img.height, y0 + layer.height)
        if right <= left or bottom <= top:
            return
        part = layer.crop((left - x0, top - y0, right - x0, bottom - y0))
        img.alpha_composite(part, (left, top))

    def _draw_zone(self, img, zone: Zone, m):
        pts = apply_matrix(m, zone.points)
        bx0, by0, bx1, by1 = bounding_box(pts)
        x0 = math.floor(bx0)
        y0 = math.floor(by0)
        size = (math.ceil(bx1) - x0 + 1, math.ceil(by1) - y0 + 1)
        layer = Image.new("RGBA", size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(layer)
        outline = rgba(zone.stroke, 1.0) if zone.stroke else None
        draw.polygon(
            [(x - x0, y - y0) for x, y in pts],
            fill=rgba(zone.fill, zone.opacity),
            outline=outline,
        )
        self._blend(img, x0, y0, layer)

    def _draw_label(self, img, label: Label, m):
        cx, cy = apply_matrix(m, [(0.0, 0.0)])[0]
        sy = math.hypot(m[0, 1], m[1, 1])
        font = _font(max(6, int(label.font_size * sy)))
        draw = ImageDraw.Draw(img)
        box = draw.multiline_textbbox((cx, cy), label.text, font=font, anchor="mm")
        if label.background:
            pad = LABEL_PADDING * self.line_scale
            draw.rectangle(
                [box[0] - pad, box[1] - pad, box[2] + pad, box[3] + pad],
                fill=rgba(label.background, 1.0),
            )
        draw.multiline_text((cx, cy), label.text, fill=label.fill, font=font, anchor="mm", align="center")

    def _draw_icon(self, img, obj: IconObject, m):
        icon = self.icons.get(obj.icon)
        if icon is None:
            return
        sx = math.hypot(m[0, 0], m[1, 0])
        sy = math.hypot(m[0, 1], m[1, 1])
        angle = math.degrees(math.atan2(m[1, 0], m[0, 0]))
        w = max(1, round(obj.icon_size[0] * sx))
        h = max(1, round(obj.icon_size[1] * sy))
        sprite = icon.resize((w, h), Image.Resampling.LANCZOS)
        if angle:
            sprite = sprite.rotate(-angle, expand=True, resample=Image.Resampling.BICUBIC)
        if obj.opacity < 1.0:
            alpha = sprite.getchannel("A").point(lambda a: int(a * obj.opacity))
            sprite.putalpha(alpha)
        cx, cy = m[0, 2], m[1, 2]
        self._blend(
            img,
            round(cx - sprite.width / 2),
            round(cy - sprite.height / 2),
            sprite,
        )

    def _draw_measurement(self, img, aid: MeasurementAid, m):
        a, b = apply_matrix(m, list(aid.local_endpoints()))
        draw = ImageDraw.Draw(img)
        self._draw_dashed(draw, a, b, aid.stroke, aid.stroke_width, aid.dash)
        s = aid.arrow_size * self.scale
        self._draw_arrowhead(draw, b, a, s, aid.stroke)
        self._draw_arrowhead(draw, a, b, s, aid.stroke)
        anchor = apply_matrix(m, [aid.label_offset()])[0]
        font = _font(max(6, int(aid.font_size * self.scale)))
        box = draw.textbbox(anchor, aid.text, font=font, anchor="mm")
        pad = LABEL_PADDING * self.line_scale
        draw.rectangle(
            [box[0] - pad, box[1] - pad, box[2] + pad, box[3] + pad],
            fill=(255, 255, 255, 255),
        )
        draw.text(anchor, aid.text, fill=aid.stroke, font=font, anchor="mm")

    def _draw_dashed(self, draw, a, b, color, width, dash):
        length = math.hypot(b[0] - a[0], b[1] - a[1])
        if length == 0:
            return
        on, off = (d * self.scale for d in dash)
        ux = (b[0] - a[0]) / length
        uy = (b[1] - a[1]) / length
        t = 0.0
        while t < length:
            t1 = min(t + on, length)
            draw.line(
                [(a[0] + ux * t, a[1] + uy * t), (a[0] + ux * t1, a[1] + uy * t1)],
                fill=color,
                width=self._lw(width),
            )
            t = t1 + off

    def _draw_arrowhead(self, draw, tail, tip, size, color):
        """Filled triangle at ``tip`` pointing away from ``tail``."""
        angle = math.atan2(tip[1] - tail[1], tip[0] - tail[0])
        spread = math.radians(25)
        left = (
            tip[0] - size * math.cos(angle - spread),
            tip[1] - size * math.sin(angle - spread),
        )
        right = (
            tip[0] - size * math.cos(angle + spread),
            tip[1] - size * math.sin(angle + spread),
        )
        draw.polygon([tip, left, right], fill=color)

    def _draw_drawing_marker(self, img, marker: DrawingMarker, m):
        cx, cy = m[0, 2], m[1, 2]
        r = marker.radius * self.scale
        ImageDraw.Draw(img).ellipse(
            [cx - r, cy - r, cx + r, cy + r],
            fill=marker.fill,
            outline=marker.stroke,
            width=self._lw(marker.width),
        )

    def _draw_center_marker(self, img, marker: CenterMarker, m):
        cx, cy = m[0, 2], m[1, 2]
        r = marker.radius * self.scale
        arm = marker.arm * self.scale
        lw = self._lw(marker.width)
        draw = ImageDraw.Draw(img)
        draw.ellipse([cx - r, cy - r, cx + r, cy + r], outline=marker.stroke, width=lw)
        draw.line([(cx - arm, cy), (cx + arm, cy)], fill=marker.stroke, width=lw)
        draw.line([(cx, cy - arm), (cx, cy + arm)], fill=marker.stroke, width=lw)

    def _draw_selection(self, img, obj: SceneObject, view):
        pts = obj.outline(view)
        if not pts:
            return
        x0, y0, x1, y1 = bounding_box(pts)
        inter = obj.interactivity
        draw = ImageDraw.Draw(img)
        draw.rectangle([x0, y0, x1, y1], outline=HIGHLIGHT_COLOR, width=self._lw(2))
        if not inter.has_controls:
            return
        mx, my = (x0 + x1) / 2, (y0 + y1) / 2
        spots = {
            "tl": (x0, y0), "tr": (x1, y0), "bl": (x0, y1), "br": (x1, y1),
            "ml": (x0, my), "mr": (x1, my), "mt": (mx, y0), "mb": (mx, y1),
            "mtr": (mx, y0 - 20 * self.scale),
        }
        r = inter.corner_size / 2 * self.scale
        fill = None if inter.transparent_corners else inter.corner_color
        for handle in inter.visible_handles():
            hx, hy = spots[handle]
            box = [hx - r, hy - r, hx + r, hy + r]
            if inter.corner_style == "circle":
                draw.ellipse(box, fill=fill, outline=inter.corner_color)
            else:
                draw.rectangle(box, fill=fill, outline=inter.corner_color)


def render_antialiased(
    scene: SceneGraph, icons: IconLibrary, scale: float = 1.0, selected=None
) -> Image.Image:
    """Render at 4x and downsample with LANCZOS."""
    supersample = 4
    renderer = SceneRenderer(icons, scale * supersample, line_scale=supersample)
    img = renderer.render(scene, selected=selected)
    size = (
        int(scene.config.canvas_width * scale),
        int(scene.config.canvas_height * scale),
    )
    return img.resize(size, Image.Resampling.LANCZOS)


def export_png(scene: SceneGraph, icons: IconLibrary) -> bytes:
    """Canvas pixels at 1:1 as PNG bytes."""
    return png_bytes(render_antialiased(scene, icons))
