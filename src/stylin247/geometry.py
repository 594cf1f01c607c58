"""Face geometry: polar conversion and matplotlib path construction.

Screen coordinates: x grows to the right, y grows downwards.

Two angle conventions are in play:
  polar   0 deg points up (twelve o'clock on a 12-hour dial), clockwise.
  arc     0 deg points right (three o'clock), clockwise on screen; this is
          the raster library's convention for arcs and wedges.
"""

import math

import numpy as np
from matplotlib.path import Path

Point = tuple[float, float]
Box = tuple[float, float, float, float]  # left, top, right, bottom

_DEGREES_PER_SEGMENT = 2.0


def polar(origin: Point, angle: float, radius: float) -> Point:
    """Convert a polar angle (degrees, 0 = up, clockwise) and radius to a point."""
    x = origin[0] + math.sin(math.radians(angle)) * radius
    y = origin[1] - math.cos(math.radians(angle)) * radius
    return x, y


def scaled(face_radius: float, unit: float) -> float:
    """Absolute length of a dimension given as a fraction of the face radius."""
    return face_radius * unit


def square_box(centre: Point, radius: float) -> Box:
    return (centre[0] - radius, centre[1] - radius, centre[0] + radius, centre[1] + radius)


def box_centre(box: Box) -> Point:
    return (box[0] + box[2]) / 2, (box[1] + box[3]) / 2


def arc_points(box: Box, start: float, sweep: float) -> np.ndarray:
    """Points along the ellipse inscribed in `box`, in arc degrees.

    Returns:
        (n, 2) array from `start` to `start + sweep` inclusive.
    """
    cx, cy = box_centre(box)
    rx = (box[2] - box[0]) / 2
    ry = (box[3] - box[1]) / 2
    count = max(2, int(math.ceil(abs(sweep) / _DEGREES_PER_SEGMENT)) + 1)
    theta = np.radians(np.linspace(start, start + sweep, count))
    return np.column_stack([cx + rx * np.cos(theta), cy + ry * np.sin(theta)])


def _closed(vertices: np.ndarray) -> Path:
    codes = [Path.MOVETO] + [Path.LINETO] * (len(vertices) - 1) + [Path.CLOSEPOLY]
    return Path(np.vstack([vertices, vertices[:1]]), codes)


def oval_path(box: Box) -> Path:
    """Closed ellipse inscribed in `box`."""
    return _closed(arc_points(box, 0.0, 360.0)[:-1])


def wedge_path(box: Box, start: float, sweep: float) -> Path:
    """Pie slice: centre, then the arc, then back to the centre."""
    centre = np.array([box_centre(box)])
    return _closed(np.vstack([centre, arc_points(box, start, sweep)]))


def arc_path(box: Box, start: float, sweep: float) -> Path:
    """Open arc, for stroking."""
    return Path(arc_points(box, start, sweep))


def line_path(start: Point, end: Point) -> Path:
    return Path(np.array([start, end], dtype=float))


def sun_ray_path(centre: Point, tip_angle: float, base_radius: float, tip_radius: float,
                 width: float) -> Path:
    """Triangular ray: a tip on `tip_angle` and a curved base `width` degrees wide.

    Args:
        centre: Centre of the sun.
        tip_angle: Polar degrees of the ray's axis.
        base_radius: Distance of the curved base from the centre.
        tip_radius: Distance of the tip from the centre.
        width: Angular width of the base in degrees.
    """
    tip = np.array([polar(centre, tip_angle, tip_radius)])
    # Polar angles sit 90 degrees ahead of arc angles.
    base = arc_points(square_box(centre, base_radius), tip_angle - width / 2 - 90, width)
    return _closed(np.vstack([tip, base]))
