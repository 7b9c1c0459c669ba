"""Tkinter GUI for the mission map editor.

This is the desktop shell. It owns one ``EditorSession`` and turns button
presses, canvas clicks and key presses into session calls; all editing
semantics live in ``engine``. The major classes are:

  * ``ControlPanel``: the left sidebar with one button per editor action
    (place objectives, deployment zones, units and measurements, draw a
    zone, group/ungroup, text, opacity, layers, save/load/export). Buttons
    that do not apply to the current selection are disabled using the
    session's capability queries.
  * ``App``: the top-level window. Renders the scene onto a Tk Canvas via
    ``renderer.render_antialiased``, maps canvas pixels back to scene
    coordinates, shows the zone classification and custom color popups
    while a polygon is being drawn, and reports ``MissionMapError``
    failures in message boxes.

Persistence (PNG with embedded JSON, or plain JSON) is handled by
``layout_io.py``. Run with ``python -m missionmap`` or the ``missionmap``
console script; ``--preset``, ``--config`` and ``--debug`` select the
editor configuration and log level.
"""

import argparse
import json
import logging
import time
import tkinter as tk
from tkinter import colorchooser, filedialog, messagebox, simpledialog, ttk

from PIL import ImageTk

from ..engine import (
    PRESETS,
    DrawingState,
    EditorConfig,
    EditorSession,
    MissionMapError,
    preset,
)
from ..engine.types import Group, MeasurementAid, ObjectKind
from .layout_io import load_scene, save_scene_json, save_scene_png
from .renderer import export_png, render_antialiased

logger = logging.getLogger(__name__)

WINDOW_BG = "#2b2b2b"
RESIZE_STEP = 1.1
ROTATE_STEP = 15.0

_STATUS_HINTS = {
    DrawingState.IDLE: "Click an object to select it; shift-click to add to the selection.",
    DrawingState.PLACING_POINTS: "Click to place points. Esc cancels.",
    DrawingState.AWAITING_ZONE_CLASSIFICATION: "Choose what kind of zone this is.",
    DrawingState.AWAITING_COLOR_SELECTION: "Pick a color and opacity, then Confirm.",
}


class Tooltip:
    """Lightweight hover tooltip for any tkinter widget."""

    _DELAY_MS = 400

    def __init__(self, widget, text):
        self.widget = widget
        self.text = text
        self._tip_window = None
        self._after_id = None
        widget.bind("<Enter>", self._schedule, add="+")
        widget.bind("<Leave>", self._cancel, add="+")

    def _schedule(self, _event=None):
        self._cancel()
        self._after_id = self.widget.after(self._DELAY_MS, self._show)

    def _cancel(self, _event=None):
        if self._after_id:
            self.widget.after_cancel(self._after_id)
            self._after_id = None
        self._hide()

    def _show(self):
        if self._tip_window:
            return
        x = self.widget.winfo_rootx() + self.widget.winfo_width() + 4
        y = self.widget.winfo_rooty()
        tw = tk.Toplevel(self.widget)
        tw.wm_overrideredirect(True)
        tw.wm_geometry(f"+{x}+{y}")
        tk.Label(
            tw,
            text=self.text,
            background="#ffffe0",
            foreground="#000000",
            relief="solid",
            borderwidth=1,
            padx=4,
            pady=2,
            wraplength=300,
        ).pack()
        self._tip_window = tw

    def _hide(self):
        if self._tip_window:
            self._tip_window.destroy()
            self._tip_window = None


# ---------------------------------------------------------------------------
# Control panel
# ---------------------------------------------------------------------------


class ControlPanel(ttk.Frame):
    """Sidebar with one button per editor action.

    ``actions`` maps an action name to the callable that performs it; the
    panel only lays out widgets and never talks to the session itself.
    """

    def __init__(self, parent, actions, on_opacity):
        super().__init__(parent, padding=10)
        self.actions = actions
        self.on_opacity = on_opacity
        self.buttons: dict[str, ttk.Button] = {}
        self.opacity_var = tk.DoubleVar(value=1.0)
        self.opacity_scale: ttk.Scale = None
        self._build()

    def _build(self):
        row = 0
        row = self._section(row, "Place")
        row = self._button(row, "objective", "Objective", "Objective marker at the table center")
        row = self._button(row, "strike_force", "Strike Force", "Strike force marker at the table center")
        row = self._button(row, "attacker_zone", "Attacker Deployment", "12x6\" attacker deployment zone")
        row = self._button(row, "defender_zone", "Defender Deployment", "12x6\" defender deployment zone")
        row = self._button(row, "draw_zone", "Draw Zone", "Click points on the grid to outline a zone")
        row = self._button(row, "horizontal", "Horizontal Measure", "5\" measurement, resizable left/right only")
        row = self._button(row, "vertical", "Vertical Measure", "5\" measurement, resizable up/down only")
        row = self._button(row, "attacker_unit", "Attacker Unit", "Attacker unit icon")
        row = self._button(row, "defender_unit", "Defender Unit", "Defender unit icon")

        row = self._sep(row)
        row = self._section(row, "Selection")
        row = self._button(row, "text", "Add/Edit Text", "Label a zone or change a measurement's text")
        row = self._button(row, "group", "Group", "Combine the selected objects")
        row = self._button(row, "ungroup", "Ungroup", "Split the selected group")
        row = self._button(row, "duplicate", "Duplicate", "Copy the selected object")
        row = self._button(row, "delete", "Delete", "Remove the selected objects")
        row = self._button(row, "front", "Bring to Front", "Raise the selection above other content")
        lbl = ttk.Label(self, text="Unit opacity:")
        lbl.grid(row=row, column=0, sticky="w", pady=(6, 2))
        row += 1
        self.opacity_scale = ttk.Scale(
            self,
            from_=0.0,
            to=1.0,
            variable=self.opacity_var,
            command=lambda _v: self.on_opacity(self.opacity_var.get()),
        )
        self.opacity_scale.grid(row=row, column=0, sticky="ew", pady=2)
        Tooltip(lbl, "Opacity of the selected unit icon")
        row += 1

        row = self._sep(row)
        row = self._section(row, "Layers")
        row = self._button(row, "toggle_center", "Toggle Center", "Show or hide the center marker")
        row = self._button(row, "toggle_grid", "Toggle Grid", "Show or hide the grid")

        row = self._sep(row)
        row = self._section(row, "File")
        row = self._button(row, "save", "Save", "Save as PNG (with embedded scene) or JSON")
        row = self._button(row, "load", "Load", "Load a saved PNG or JSON scene")
        row = self._button(row, "export", "Export PNG", "Export the map image only")
        row = self._button(row, "clear", "Clear", "Remove all placed objects")

    def _section(self, row, title):
        ttk.Label(self, text=title, font=("", 11, "bold")).grid(
            row=row, column=0, pady=(8, 4), sticky="w"
        )
        return row + 1

    def _button(self, row, name, text, tooltip=None):
        btn = ttk.Button(self, text=text, command=self.actions[name])
        btn.grid(row=row, column=0, sticky="ew", pady=2)
        self.buttons[name] = btn
        if tooltip:
            Tooltip(btn, tooltip)
        return row + 1

    def _sep(self, row):
        ttk.Separator(self, orient="horizontal").grid(
            row=row, column=0, sticky="ew", pady=8
        )
        return row + 1

    def set_enabled(self, name, enabled):
        self.buttons[name].state(["!disabled"] if enabled else ["disabled"])

    def set_opacity_enabled(self, enabled, value=None):
        if value is not None:
            self.opacity_var.set(value)
        self.opacity_scale.state(["!disabled"] if enabled else ["disabled"])


# ---------------------------------------------------------------------------
# Main application
# ---------------------------------------------------------------------------


class App:
    def __init__(self, config: EditorConfig | None = None):
        self.root = tk.Tk()
        self.root.title("Mission Map Editor")
        self.root.geometry("1500x950")
        self.root.resizable(True, True)
        self.root.configure(bg=WINDOW_BG)

        style = ttk.Style()
        style.theme_use("clam")

        self.session = EditorSession(config)
        self.session.exporter = lambda scene: export_png(scene, self.session.icons)
        self.session.drawing.subscribe(self._on_drawing_state)

        self.controls = ControlPanel(
            self.root,
            actions={
                "objective": lambda: self._run(self.session.add_objective_marker),
                "strike_force": lambda: self._run(self.session.add_strike_force_marker),
                "attacker_zone": lambda: self._run(self.session.add_deployment_zone, "attacker"),
                "defender_zone": lambda: self._run(self.session.add_deployment_zone, "defender"),
                "draw_zone": lambda: self._run(self.session.start_drawing_zone),
                "horizontal": lambda: self._run(self.session.add_measurement, "horizontal"),
                "vertical": lambda: self._run(self.session.add_measurement, "vertical"),
                "attacker_unit": lambda: self._run(self.session.add_unit_icon, "attacker"),
                "defender_unit": lambda: self._run(self.session.add_unit_icon, "defender"),
                "text": self._on_edit_text,
                "group": lambda: self._run(self.session.group_selected),
                "ungroup": lambda: self._run(self.session.ungroup_selected),
                "duplicate": lambda: self._run(self.session.duplicate_selected),
                "delete": lambda: self._run(self.session.delete_selected),
                "front": lambda: self._run(self.session.bring_selected_to_front),
                "toggle_center": lambda: self._run(self.session.toggle_center_marker),
                "toggle_grid": lambda: self._run(self.session.toggle_grid),
                "save": self._on_save,
                "load": self._on_load,
                "export": self._on_export,
                "clear": lambda: self._run(self.session.clear),
            },
            on_opacity=self._on_opacity,
        )
        self.controls.pack(side=tk.LEFT, fill=tk.Y)

        self.left_panel = ttk.Frame(self.root)
        self.left_panel.pack(side=tk.LEFT, fill=tk.BOTH, expand=True, padx=5, pady=5)

        self.canvas = tk.Canvas(self.left_panel, bg=WINDOW_BG, highlightthickness=0)
        self.canvas.pack(side=tk.TOP, fill=tk.BOTH, expand=True)

        self.status_label = ttk.Label(self.left_panel, text="", padding=(5, 2))
        self.status_label.pack(side=tk.BOTTOM, fill=tk.X)

        # Rendering context for coordinate conversion
        self._scale = 1.0
        self._img_offset_x = 0.0
        self._img_offset_y = 0.0
        self._photo = None  # prevent GC of the PhotoImage
        self._drag_from = None

        self._popup_window_id = None
        self._popup_frame = None
        self._color_entry_var = tk.StringVar()
        self._custom_opacity_var = tk.DoubleVar()

        self.canvas.bind("<Configure>", lambda _e: self._render())
        self.canvas.bind("<ButtonPress-1>", self._on_canvas_press)
        self.canvas.bind("<B1-Motion>", self._on_canvas_drag)
        self.canvas.bind("<ButtonRelease-1>", self._on_canvas_release)
        self.root.bind("<Escape>", lambda _e: self._run(self.session.cancel_drawing))
        self.root.bind("<Delete>", lambda _e: self._run(self.session.delete_selected))
        self.root.bind("<plus>", lambda _e: self._on_resize_key(RESIZE_STEP))
        self.root.bind("<equal>", lambda _e: self._on_resize_key(RESIZE_STEP))
        self.root.bind("<minus>", lambda _e: self._on_resize_key(1 / RESIZE_STEP))
        self.root.bind("<q>", lambda _e: self._on_rotate_key(-ROTATE_STEP))
        self.root.bind("<e>", lambda _e: self._on_rotate_key(ROTATE_STEP))
        self.root.protocol("WM_DELETE_WINDOW", self._on_close)

        self._refresh_controls()
        self.root.after(50, self._render)

    # -- action plumbing --

    def _run(self, action, *args):
        """Invoke a session action, report failures, then redraw."""
        try:
            result = action(*args)
        except MissionMapError as e:
            logger.warning("%s failed: %s", getattr(action, "__name__", action), e)
            messagebox.showerror("Mission Map", str(e))
            result = None
        self._refresh_controls()
        self._render()
        return result

    def _refresh_controls(self):
        s = self.session
        drawing = s.drawing.is_drawing
        self.controls.set_enabled("group", s.can_group())
        self.controls.set_enabled("ungroup", s.can_ungroup())
        self.controls.set_enabled("text", not drawing and s.can_edit_text())
        self.controls.set_enabled("duplicate", not drawing and s.selected is not None)
        self.controls.set_enabled("delete", not drawing and s.can_delete())
        self.controls.set_enabled("front", not drawing and s.can_delete())
        for name in ("save", "load", "export", "clear"):
            self.controls.set_enabled(name, not drawing)
        if s.can_set_opacity():
            self.controls.set_opacity_enabled(True, s.selected.opacity)
        else:
            self.controls.set_opacity_enabled(False)
        self.status_label.config(text=_STATUS_HINTS[s.drawing_state])

    # -- rendering --

    def _render(self):
        cw = self.canvas.winfo_width()
        ch = self.canvas.winfo_height()
        if cw < 20 or ch < 20:
            return
        cfg = self.session.config
        margin = 20
        scale = min(
            (cw - 2 * margin) / cfg.canvas_width,
            (ch - 2 * margin) / cfg.canvas_height,
        )
        if scale <= 0:
            return
        self._scale = scale
        img = render_antialiased(
            self.session.scene,
            self.session.icons,
            scale,
            selected=self.session.selection.objects,
        )
        self._img_offset_x = cw / 2 - img.width / 2
        self._img_offset_y = ch / 2 - img.height / 2
        self._photo = ImageTk.PhotoImage(img)
        self.canvas.delete("scene")
        self.canvas.create_image(
            self._img_offset_x,
            self._img_offset_y,
            image=self._photo,
            anchor="nw",
            tags="scene",
        )
        self.canvas.tag_lower("scene")

    def _to_scene(self, event):
        return (
            (event.x - self._img_offset_x) / self._scale,
            (event.y - self._img_offset_y) / self._scale,
        )

    # -- canvas events --

    def _on_canvas_press(self, event):
        point = self._to_scene(event)
        additive = bool(event.state & 0x0001)  # shift
        was_drawing = self.session.drawing.is_drawing
        hit = self._run(self.session.click, point, additive)
        if not was_drawing and hit is not None and not additive:
            self._drag_from = point

    def _on_canvas_drag(self, event):
        if self._drag_from is None:
            return
        x, y = self._to_scene(event)
        fx, fy = self._drag_from
        self.session.move_selected(x - fx, y - fy)
        self._drag_from = (x, y)
        self._render()

    def _on_canvas_release(self, _event):
        self._drag_from = None

    def _on_resize_key(self, factor):
        obj = self.session.selected
        if obj is None or self.session.drawing.is_drawing:
            return
        handle = keyboard_resize_handle(obj.interactivity)
        if handle is None:
            return
        self._run(self.session.resize_selected, handle, factor, factor)

    def _on_rotate_key(self, degrees):
        if self.session.selected is None or self.session.drawing.is_drawing:
            return
        self._run(self.session.rotate_selected, degrees)

    # -- selection actions --

    def _on_edit_text(self):
        obj = self.session.selected
        if obj is None:
            return
        initial = ""
        if isinstance(obj, Group) and obj.label() is not None:
            initial = obj.label().text
        elif isinstance(obj, MeasurementAid):
            initial = obj.text
        prompt = "Measurement text:" if obj.kind == ObjectKind.MEASUREMENT else "Zone text:"
        text = simpledialog.askstring("Text", prompt, initialvalue=initial, parent=self.root)
        if text is None:
            return
        self._run(self.session.set_text, text)

    def _on_opacity(self, value):
        if not self.session.can_set_opacity():
            return
        try:
            self.session.set_opacity(value)
        except MissionMapError as e:
            logger.warning("Opacity change failed: %s", e)
            return
        self._render()

    # -- drawing popups --

    def _on_drawing_state(self, _old, new):
        self._dismiss_popup()
        if new == DrawingState.AWAITING_ZONE_CLASSIFICATION:
            self.root.after_idle(self._show_classification_popup)
        elif new == DrawingState.AWAITING_COLOR_SELECTION:
            self.root.after_idle(self._show_color_popup)

    def _popup_button(self, frame, text, command, bg, active_bg):
        btn = tk.Button(
            frame,
            text=text,
            command=command,
            bg=bg,
            fg="white",
            activebackground=active_bg,
            activeforeground="white",
            padx=8,
            pady=2,
        )
        btn.pack(side=tk.LEFT, padx=2, pady=4)
        return btn

    def _show_classification_popup(self):
        self._dismiss_popup()
        frame = tk.Frame(self.canvas, bg="#333333", relief="raised", borderwidth=2)
        for text, outcome, bg, active_bg in (
            ("Attacker", "attacker", "#cc3333", "#ff4444"),
            ("Defender", "defender", "#339933", "#44bb44"),
            ("Custom", "custom", "#336699", "#4488bb"),
            ("Cancel", "cancel", "#555555", "#777777"),
        ):
            self._popup_button(
                frame,
                text,
                lambda o=outcome: self._run(self.session.classify_zone, o),
                bg,
                active_bg,
            )
        self._place_popup(frame)

    def _show_color_popup(self):
        self._dismiss_popup()
        drawing = self.session.drawing
        frame = tk.Frame(self.canvas, bg="#333333", relief="raised", borderwidth=2)
        self._color_entry_var.set(drawing.custom_color)
        entry = tk.Entry(frame, textvariable=self._color_entry_var, width=9)
        entry.pack(side=tk.LEFT, padx=(4, 2), pady=4)
        entry.bind("<Return>", lambda _e: self._on_custom_color(self._color_entry_var.get()))
        self._popup_button(frame, "Pick...", self._on_pick_color, "#996633", "#bb8844")
        self._custom_opacity_var.set(drawing.custom_opacity)
        tk.Scale(
            frame,
            from_=0.0,
            to=1.0,
            resolution=0.05,
            orient=tk.HORIZONTAL,
            variable=self._custom_opacity_var,
            command=lambda _v: self._on_custom_opacity(self._custom_opacity_var.get()),
            bg="#333333",
            fg="white",
            highlightthickness=0,
            length=120,
        ).pack(side=tk.LEFT, padx=2, pady=4)
        self._popup_button(
            frame,
            "Confirm",
            self._on_confirm_custom,
            "#339933",
            "#44bb44",
        )
        self._popup_button(
            frame,
            "Cancel",
            lambda: self._run(self.session.cancel_drawing),
            "#555555",
            "#777777",
        )
        self._place_popup(frame)

    def _on_pick_color(self):
        _rgb, value = colorchooser.askcolor(
            color=self.session.drawing.custom_color, parent=self.root
        )
        if value:
            self._on_custom_color(value)

    def _on_custom_color(self, value):
        self._color_entry_var.set(self.session.set_custom_color(value))
        self._render()

    def _on_custom_opacity(self, value):
        self.session.set_custom_opacity(value)
        self._render()

    def _on_confirm_custom(self):
        # Pick up a typed color the user did not submit with Return
        self.session.set_custom_color(self._color_entry_var.get())
        self._run(self.session.confirm_custom_zone)

    def _place_popup(self, frame):
        """Anchor a popup near the top-left of the table image."""
        x = max(0, self._img_offset_x + 10)
        y = max(0, self._img_offset_y + 10)
        self._popup_window_id = self.canvas.create_window(x, y, window=frame, anchor="nw")
        self._popup_frame = frame

    def _dismiss_popup(self):
        """Remove popup widget and canvas window item if present."""
        if self._popup_window_id is not None:
            self.canvas.delete(self._popup_window_id)
            self._popup_window_id = None
        if self._popup_frame is not None:
            self._popup_frame.destroy()
            self._popup_frame = None

    # -- file actions --

    def _on_save(self):
        path = filedialog.asksaveasfilename(
            defaultextension=".png",
            filetypes=[("PNG files", "*.png"), ("JSON files", "*.json")],
            initialfile=f"mission_{time.strftime('%Y-%m-%d_%H-%M-%S')}.png",
        )
        if not path:
            return
        snapshot = self.session.snapshot()
        try:
            if path.lower().endswith(".json"):
                save_scene_json(snapshot, path)
            else:
                img = render_antialiased(self.session.scene, self.session.icons)
                save_scene_png(img, snapshot, path)
        except OSError as e:
            messagebox.showerror("Save Error", str(e))
            return
        logger.info("Saved scene to %s", path)

    def _on_load(self):
        path = filedialog.askopenfilename(
            filetypes=[
                ("Scene files", "*.png *.json"),
                ("PNG files", "*.png"),
                ("JSON files", "*.json"),
            ],
        )
        if not path:
            return
        try:
            snapshot = load_scene(path)
            self.session.load_snapshot(snapshot)
        except (OSError, ValueError) as e:
            # MissionMapError subclasses used here are ValueErrors
            messagebox.showerror("Load Error", str(e))
            return
        self._refresh_controls()
        self._render()

    def _on_export(self):
        path = filedialog.asksaveasfilename(
            defaultextension=".png",
            filetypes=[("PNG files", "*.png")],
            initialfile=f"mission_{time.strftime('%Y-%m-%d_%H-%M-%S')}.png",
        )
        if not path:
            return
        try:
            with open(path, "wb") as f:
                f.write(self.session.export_png())
        except OSError as e:
            messagebox.showerror("Export Error", str(e))
            return
        logger.info("Exported map to %s", path)

    def _on_close(self):
        self.session.dispose()
        self.root.destroy()

    def run(self):
        self.root.mainloop()


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def keyboard_resize_handle(interactivity):
    """Handle the +/- keys drag: the corner when exposed, else an axis handle."""
    exposed = interactivity.visible_handles()
    for handle in ("br", "mr", "mb"):
        if handle in exposed:
            return handle
    return None


def setup_logging(debug: bool = False):
    """Configure console logging for the application."""
    level = logging.DEBUG if debug else logging.INFO
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)
    logger.info("Logging initialized at %s level", "DEBUG" if debug else "INFO")


def load_config(preset_name=None, config_path=None) -> EditorConfig:
    """Build the session config from a preset name and/or a JSON file.

    Keys in the file override the preset; a ``preset`` key in the file is
    used when no preset name is given.
    """
    d = {}
    if config_path:
        with open(config_path, encoding="utf-8") as f:
            d = json.load(f)
    if preset_name:
        d["preset"] = preset_name
    if not d:
        return EditorConfig()
    if set(d) == {"preset"}:
        return preset(d["preset"])
    return EditorConfig.from_dict(d)


def build_parser():
    parser = argparse.ArgumentParser(description="Mission map editor")
    parser.add_argument(
        "--preset",
        choices=sorted(PRESETS),
        help="Named editor configuration",
    )
    parser.add_argument("--config", help="Path to a JSON config file")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_logging(args.debug)
    config = load_config(args.preset, args.config)
    logger.info(
        "Starting editor (%s, %dx%d in)",
        config.closure_policy.value,
        config.width_inches,
        config.height_inches,
    )
    App(config).run()


if __name__ == "__main__":
    main()
