"""Matplotlib (Agg) raster canvas, the concrete drawing surface for frames.

The axes span the whole figure with the y axis inverted, so data
coordinates are screen pixels. Every artist gets its own increasing zorder
so primitives stack in call order, like a raster canvas.

SRC_ATOP compositing is realised by clipping to the first filled shape drawn
into the canvas, which is how the painter uses it: a sector is filled first,
then the sun or moon is drawn on top of it only.
"""

import math
from functools import lru_cache
from pathlib import Path as FilePath

import numpy as np
from matplotlib import patheffects
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure
from matplotlib.font_manager import FontProperties, findfont
from matplotlib.image import imsave
from matplotlib.lines import Line2D
from matplotlib.patches import PathPatch
from matplotlib.path import Path

from stylin247.geometry import Box, Point, arc_path, oval_path, square_box, wedge_path
from stylin247.palette import Compositing, Paint, Shadow, Style

# Power of two: width / dpi * dpi round-trips exactly.
_DPI = 64
_GLOW_STEPS = 4
_FALLBACK_FONT = "DejaVu Sans"


def _points(pixels: float) -> float:
    return pixels * 72 / _DPI


def _stroke_pixels(paint: Paint) -> float:
    # Zero width is a hairline.
    return paint.stroke_width if paint.stroke_width > 0 else 1.0


@lru_cache(maxsize=None)
def _font_family(typeface: str | None) -> str:
    if typeface is None:
        return _FALLBACK_FONT
    try:
        findfont(FontProperties(family=typeface), fallback_to_default=False)
    except ValueError:
        return _FALLBACK_FONT
    return typeface


def _glow(shadow: Shadow, base_pixels: float) -> list[patheffects.AbstractPathEffect]:
    """Concentric translucent strokes approximating a blurred shadow layer."""
    effects: list[patheffects.AbstractPathEffect] = []
    for step in range(_GLOW_STEPS, 0, -1):
        width = base_pixels + 2 * shadow.radius * step / _GLOW_STEPS
        effects.append(
            patheffects.Stroke(
                linewidth=_points(width),
                foreground=shadow.color,
                alpha=shadow.color[3] / (_GLOW_STEPS + 1),
            )
        )
    effects.append(patheffects.Normal())
    return effects


class MatplotlibCanvas:
    """Canvas implementation backed by an offscreen Agg figure."""

    def __init__(self, width: int, height: int) -> None:
        self._width = int(width)
        self._height = int(height)
        self._figure = Figure(figsize=(self._width / _DPI, self._height / _DPI), dpi=_DPI)
        FigureCanvasAgg(self._figure)
        self._figure.patch.set_alpha(0.0)
        self._ax = self._figure.add_axes((0, 0, 1, 1))
        self._ax.set_xlim(0, self._width)
        self._ax.set_ylim(self._height, 0)
        self._ax.set_autoscale_on(False)
        self._ax.axis("off")
        self._ax.patch.set_visible(False)
        self._zorder = 0
        self._coverage: Path | None = None
        self._array: np.ndarray | None = None

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    # --- output ---

    def to_array(self) -> np.ndarray:
        """Rendered RGBA pixels, shape (height, width, 4), dtype uint8."""
        if self._array is None:
            self._figure.canvas.draw()
            self._array = np.asarray(self._figure.canvas.buffer_rgba()).copy()
        return self._array

    def save(self, output_path: FilePath) -> FilePath:
        """Write the frame as a PNG file.

        Returns:
            Path to the saved file.
        """
        output_path.parent.mkdir(parents=True, exist_ok=True)
        imsave(output_path, self.to_array(), format="png")
        return output_path

    # --- primitives ---

    def fill(self, paint: Paint) -> None:
        w, h = self._width, self._height
        rect = Path([(0, 0), (w, 0), (w, h), (0, h), (0, 0)], closed=True)
        self._add_patch(rect, paint, filled=True)

    def draw_line(self, start: Point, end: Point, paint: Paint) -> None:
        pixels = _stroke_pixels(paint)
        line = Line2D(
            [start[0], end[0]],
            [start[1], end[1]],
            color=paint.color,
            linewidth=_points(pixels),
            solid_capstyle=paint.cap.value,
            antialiased=paint.anti_alias,
        )
        if paint.shadow is not None:
            line.set_path_effects(_glow(paint.shadow, pixels))
        if self._place(line, paint):
            self._ax.add_line(line)

    def draw_circle(self, centre: Point, radius: float, paint: Paint) -> None:
        self.draw_oval(square_box(centre, radius), paint)

    def draw_oval(self, box: Box, paint: Paint) -> None:
        self.draw_path(oval_path(box), paint)

    def draw_arc(self, box: Box, start: float, sweep: float, use_centre: bool,
                 paint: Paint) -> None:
        path = wedge_path(box, start, sweep) if use_centre else arc_path(box, start, sweep)
        self.draw_path(path, paint)

    def draw_path(self, path: Path, paint: Paint) -> None:
        self._add_patch(path, paint, filled=paint.style is Style.FILL)

    def draw_text_on_path(self, text: str, path: Path, h_offset: float, v_offset: float,
                          paint: Paint) -> None:
        (x0, y0), (x1, y1) = path.vertices[0], path.vertices[1]
        length = math.hypot(x1 - x0, y1 - y0)
        ux, uy = (x1 - x0) / length, (y1 - y0) / length
        # Right-hand normal of the direction of travel, in y-down coordinates.
        x = (x0 + x1) / 2 + ux * h_offset - uy * v_offset
        y = (y0 + y1) / 2 + uy * h_offset + ux * v_offset
        label = self._ax.text(
            x,
            y,
            text,
            color=paint.color,
            fontsize=_points(paint.text_size),
            family=_font_family(paint.typeface),
            ha="center",
            va="baseline",
            rotation=-math.degrees(math.atan2(uy, ux)),
            rotation_mode="anchor",
        )
        if not self._place(label, paint):
            label.remove()

    def new_layer(self, width: int, height: int) -> "MatplotlibCanvas":
        return MatplotlibCanvas(width, height)

    def blit(self, layer: "MatplotlibCanvas", x: float, y: float) -> None:
        self._zorder += 1
        self._array = None
        self._ax.imshow(
            layer.to_array(),
            extent=(x, x + layer.width, y + layer.height, y),
            origin="upper",
            interpolation="none",
            aspect="auto",
            zorder=self._zorder,
        )

    # --- internals ---

    def _add_patch(self, path: Path, paint: Paint, filled: bool) -> None:
        pixels = 0.0 if filled else _stroke_pixels(paint)
        patch = PathPatch(
            path,
            facecolor=paint.color if filled else "none",
            edgecolor="none" if filled else paint.color,
            linewidth=_points(pixels),
            capstyle=paint.cap.value,
            antialiased=paint.anti_alias,
        )
        if paint.shadow is not None:
            patch.set_path_effects(_glow(paint.shadow, pixels))
        if not self._place(patch, paint):
            return
        self._ax.add_patch(patch)
        if filled and paint.compositing is Compositing.NORMAL and self._coverage is None:
            self._coverage = path

    def _place(self, artist, paint: Paint) -> bool:
        """Stack the artist above everything so far; False if SRC_ATOP has nothing to land on."""
        if paint.compositing is Compositing.SRC_ATOP:
            if self._coverage is None:
                return False
            artist.set_clip_path(self._coverage, self._ax.transData)
        self._zorder += 1
        artist.set_zorder(self._zorder)
        self._array = None
        return True
