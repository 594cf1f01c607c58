"""Raster collaborator interface consumed by the painter.

Paths are matplotlib `Path` objects in screen coordinates (y down). Arc
angles are in degrees, 0 at three o'clock, increasing clockwise on screen.
"""

from typing import Protocol

from matplotlib.path import Path

from stylin247.geometry import Box, Point
from stylin247.palette import Paint


class Canvas(Protocol):
    @property
    def width(self) -> int: ...

    @property
    def height(self) -> int: ...

    def fill(self, paint: Paint) -> None:
        """Cover the whole canvas with the paint's colour."""

    def draw_line(self, start: Point, end: Point, paint: Paint) -> None: ...

    def draw_circle(self, centre: Point, radius: float, paint: Paint) -> None: ...

    def draw_oval(self, box: Box, paint: Paint) -> None: ...

    def draw_arc(self, box: Box, start: float, sweep: float, use_centre: bool,
                 paint: Paint) -> None:
        """Arc of the ellipse in `box`; a pie slice when `use_centre` is set."""

    def draw_path(self, path: Path, paint: Paint) -> None: ...

    def draw_text_on_path(self, text: str, path: Path, h_offset: float, v_offset: float,
                          paint: Paint) -> None:
        """Text centred along the path's first segment.

        `v_offset` moves the baseline perpendicular to the path, positive to
        the right of the direction of travel (down for a left-to-right path).
        """

    def new_layer(self, width: int, height: int) -> "Canvas":
        """Transparent offscreen canvas of the given size."""

    def blit(self, layer: "Canvas", x: float, y: float) -> None:
        """Composite a finished layer with its top-left corner at (x, y)."""
