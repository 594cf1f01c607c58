"""Render pipeline: background disc, ticks and numerals, then hands.

All dimensions are fractions of the face radius until the moment they are
drawn. The 24-hour dial has midnight at the bottom and noon at the top.
"""

import logging
import math
import time
from dataclasses import dataclass
from datetime import datetime, timedelta

from pytz import utc

from stylin247 import astronomy
from stylin247.canvas import Canvas
from stylin247.geometry import (
    Point,
    line_path,
    oval_path,
    polar,
    scaled,
    square_box,
    sun_ray_path,
    wedge_path,
)
from stylin247.models import Bounds, Coordinate, HandAngles, Options, Sectors
from stylin247.palette import Paint, Palette, Style

logger = logging.getLogger(__name__)

HOUR_DISC_RADIUS = 0.667
SUN_AND_MOON_CENTRE_OFFSET = 0.3
SUN_AND_MOON_RADIUS = 0.15
SUN_RAY_COUNT = 12
SUN_RAY_WIDTH_DEGREES = 20.0
SUN_RAY_LENGTH = 0.35  # Fraction of the sun's radius
SUN_RAY_OFFSET = 0.2  # Fraction of the sun's radius

NUMBER_OUTER_RADIUS = 0.84
NUMBER_ARC_HALF_WIDTH_DEGREES = 7.5
UPRIGHT_NUMBER_PATH_LENGTH = 0.4  # Fraction of NUMBER_OUTER_RADIUS
UBUNTU_REGULAR_BASELINE_RATIO = 0.3  # Typeface metric

HOUR_HAND_LENGTH = 0.525
MINUTE_HAND_LENGTH = 0.9
SECOND_HAND_LENGTH = 0.9
HAND_CAP_RADIUS = 0.03
LARGE_TICK_LENGTH = 0.11
SMALL_TICK_LENGTH = 0.05
MINUTE_TICK_OUTER_RADIUS = 1.0

# A crescent narrower than this many pixels is drawn as a plain disc.
MINIMUM_CRESCENT_WIDTH = 0.25

BACKGROUND_TTL = timedelta(hours=1)


def day_night_sectors(
    when: datetime, location: Coordinate | None
) -> Sectors:
    """Angles of the day and night sectors of the hour disc.

    Solar noon is expressed in the zone `when` carries. Without a location the
    day is twelve hours long, centred on local noon.
    """
    if location is not None:
        day_length = astronomy.solar_day_length(location.latitude, when)
        noon = astronomy.solar_noon(location.longitude, when, when.tzinfo or utc)
        day_length_fraction = day_length.total_seconds() / astronomy.SECONDS_PER_DAY
        noon_offset_fraction = astronomy.seconds_of_day(noon) / astronomy.SECONDS_PER_DAY
    else:
        day_length_fraction = 0.5
        noon_offset_fraction = 0.5

    sunrise_offset_fraction = noon_offset_fraction - day_length_fraction / 2
    day_start = 90 + sunrise_offset_fraction * 360
    day_sweep = day_length_fraction * 360
    if day_length_fraction == 0:
        kind = "polar_night"
    elif day_length_fraction == 1:
        kind = "polar_day"
    else:
        kind = "split"
    return Sectors(
        kind=kind,
        day_start=day_start,
        day_sweep=day_sweep,
        night_start=day_start + day_sweep,
        night_sweep=360 - day_sweep,
        noon_angle=(noon_offset_fraction * 360 + 180) % 360,
        day_length_fraction=day_length_fraction,
        noon_offset_fraction=noon_offset_fraction,
    )


def hand_angles(when: datetime, options: Options) -> HandAngles:
    """Rotation of each hand.

    The minute hand only creeps between minutes when a second hand is shown;
    otherwise it jumps once a minute. The hour hand turns 15 degrees per hour
    and points down at midnight.
    """
    partial_second = when.microsecond / 1_000_000 if options.animate_second_hand_smoothly else 0
    seconds_rotation = (when.second + partial_second) * 6
    partial_minute = when.second / 60 if options.show_second_hand else 0
    minutes_rotation = (when.minute + partial_minute) * 6
    hours_rotation = ((when.hour + when.minute / 60) * 15 + 180) % 360
    return HandAngles(hours=hours_rotation, minutes=minutes_rotation, seconds=seconds_rotation)


@dataclass(frozen=True)
class MoonShape:
    """How to draw a moon of a given pixel radius at a given phase."""

    curve_offset: float  # Half-width of the terminator ellipse
    draw_curve: bool
    mostly_lit: bool
    full_moon: bool
    lit_on_right: bool
    curve_goes_right: bool


def moon_shape(radius: float, phase: float) -> MoonShape:
    curve_offset = abs(math.cos(phase * 2 * math.pi)) * radius
    crescent_width = radius - curve_offset
    draw_curve = crescent_width >= MINIMUM_CRESCENT_WIDTH
    mostly_lit = 0.25 < phase < 0.75
    # Waxing moons are lit on the right, as seen from the northern hemisphere.
    lit_on_right = phase < 0.5
    return MoonShape(
        curve_offset=curve_offset,
        draw_curve=draw_curve,
        mostly_lit=mostly_lit,
        full_moon=not draw_curve and mostly_lit,
        lit_on_right=lit_on_right,
        curve_goes_right=lit_on_right != mostly_lit,
    )


class BackgroundCache:
    """One cached background layer, reused while its inputs are unchanged.

    Entries expire after `ttl` even when the key still matches, so slow
    astronomical drift still shows up.
    """

    def __init__(self, ttl: timedelta = BACKGROUND_TTL, clock=time.monotonic) -> None:
        self._ttl = ttl.total_seconds()
        self._clock = clock
        self._key: tuple | None = None
        self._layer: Canvas | None = None
        self._created = 0.0

    def get(self, key: tuple) -> Canvas | None:
        if self._layer is None or key != self._key:
            return None
        if self._clock() - self._created >= self._ttl:
            logger.debug("Background cache expired")
            self.invalidate()
            return None
        return self._layer

    def put(self, key: tuple, layer: Canvas) -> None:
        self._key = key
        self._layer = layer
        self._created = self._clock()

    def invalidate(self) -> None:
        self._key = None
        self._layer = None


class Painter:
    """Draws complete frames. Holds no state besides what callers pass in."""

    def draw(
        self,
        canvas: Canvas,
        bounds: Bounds,
        palette: Palette,
        when: datetime,
        location: Coordinate | None,
        options: Options,
        cache: BackgroundCache | None = None,
    ) -> None:
        """Draw one frame.

        Args:
            canvas: Target surface.
            bounds: Pixel rectangle of the face; its width sets the face radius.
            palette: Paints for the current mode.
            when: Civil time (aware datetime in the display time zone).
            location: Observer position, or None to draw a 12-hour day.
            options: User options for this frame.
            cache: Optional background cache owned by the caller.
        """
        centre = (bounds.left + bounds.width / 2, bounds.top + bounds.height / 2)
        face_radius = bounds.width / 2

        key = (
            int(when.timestamp() // 60),
            (bounds.width, bounds.height),
            str(when.tzinfo),
            palette,
            options,
            location,
        )
        background = cache.get(key) if cache is not None else None
        if background is None:
            background = canvas.new_layer(bounds.width, bounds.height)
            local_centre = (bounds.width / 2, bounds.height / 2)
            self._draw_background(background, palette, local_centre, face_radius, when,
                                  location, options)
            if cache is not None:
                cache.put(key, background)
        else:
            logger.debug("Reusing cached background")
        canvas.blit(background, bounds.left, bounds.top)

        self._draw_ticks(canvas, palette, centre, face_radius, options)
        self._draw_hands(canvas, palette, centre, face_radius, when, options)

    # --- phase 1: background ---

    def _draw_background(
        self,
        canvas: Canvas,
        palette: Palette,
        centre: Point,
        face_radius: float,
        when: datetime,
        location: Coordinate | None,
        options: Options,
    ) -> None:
        canvas.fill(palette.background)

        hour_disc = square_box(centre, scaled(face_radius, HOUR_DISC_RADIUS))
        sectors = day_night_sectors(when, location)

        if sectors.kind == "polar_day":
            day_path, night_path = oval_path(hour_disc), None
        elif sectors.kind == "polar_night":
            day_path, night_path = None, oval_path(hour_disc)
        else:
            day_path = wedge_path(hour_disc, sectors.day_start, sectors.day_sweep)
            night_path = wedge_path(hour_disc, sectors.night_start, sectors.night_sweep)

        body_offset = scaled(face_radius, SUN_AND_MOON_CENTRE_OFFSET)
        body_radius = scaled(face_radius, SUN_AND_MOON_RADIUS)

        if day_path is not None:
            layer = canvas.new_layer(canvas.width, canvas.height)
            self._begin_sector(layer, day_path, palette.day_sector, palette)
            self._draw_sun(layer, palette, polar(centre, sectors.noon_angle, body_offset),
                           body_radius, options.draw_realistic_sun)
            self._end_sector(layer, day_path, palette.day_sector)
            canvas.blit(layer, 0, 0)
        if night_path is not None:
            layer = canvas.new_layer(canvas.width, canvas.height)
            self._begin_sector(layer, night_path, palette.night_sector, palette)
            self._draw_moon(layer, palette, polar(centre, sectors.noon_angle + 180, body_offset),
                            body_radius, astronomy.lunar_phase(when))
            self._end_sector(layer, night_path, palette.night_sector)
            canvas.blit(layer, 0, 0)

    @staticmethod
    def _begin_sector(canvas: Canvas, path, paint: Paint, palette: Palette) -> None:
        canvas.draw_path(path, paint)
        if paint.style is Style.STROKE:
            # An outlined sector still needs a filled area for the sun or moon to land on.
            canvas.draw_path(path, palette.background)

    @staticmethod
    def _end_sector(canvas: Canvas, path, paint: Paint) -> None:
        if paint.style is Style.STROKE:
            canvas.draw_path(path, paint)

    def _draw_sun(self, canvas: Canvas, palette: Palette, centre: Point, radius: float,
                  realistic: bool) -> None:
        if realistic:
            canvas.draw_circle(centre, radius, palette.realistic_sun)
            return

        paint = palette.cartoon_sun
        canvas.draw_circle(centre, radius, paint)
        base_radius = radius + radius * SUN_RAY_OFFSET
        tip_radius = base_radius + radius * SUN_RAY_LENGTH
        for ray in range(SUN_RAY_COUNT):
            angle = ray * 360 / SUN_RAY_COUNT
            canvas.draw_path(
                sun_ray_path(centre, angle, base_radius, tip_radius, SUN_RAY_WIDTH_DEGREES),
                paint,
            )

    def _draw_moon(self, canvas: Canvas, palette: Palette, centre: Point, radius: float,
                   phase: float) -> None:
        shape = moon_shape(radius, phase)
        disc = square_box(centre, radius)

        canvas.draw_circle(centre, radius,
                           palette.moon_lit if shape.full_moon else palette.moon_dark)
        if shape.draw_curve:
            terminator = (centre[0] - shape.curve_offset, centre[1] - radius,
                          centre[0] + shape.curve_offset, centre[1] + radius)
            canvas.draw_arc(disc, 270 if shape.lit_on_right else 90, 180, True,
                            palette.moon_lit)
            canvas.draw_oval(terminator,
                             palette.moon_lit if shape.mostly_lit else palette.moon_dark)
            canvas.draw_arc(terminator, 270 if shape.curve_goes_right else 90, 180, False,
                            palette.moon_line)
        canvas.draw_circle(centre, radius, palette.moon_line)

    # --- phase 2: ticks and numerals ---

    def _draw_ticks(self, canvas: Canvas, palette: Palette, centre: Point, face_radius: float,
                    options: Options) -> None:
        large = scaled(face_radius, LARGE_TICK_LENGTH)
        small = scaled(face_radius, SMALL_TICK_LENGTH)

        minute_radius = scaled(face_radius, MINUTE_TICK_OUTER_RADIUS)
        for minute in range(60):
            angle = minute * 6.0
            if minute % 5 == 0:
                self._draw_tick(canvas, centre, angle, minute_radius, large, palette.large_tick)
            elif options.show_single_minute_ticks:
                self._draw_tick(canvas, centre, angle, minute_radius, small, palette.small_tick)

        hour_radius = scaled(face_radius, HOUR_DISC_RADIUS)
        number_radius = scaled(face_radius, NUMBER_OUTER_RADIUS)
        for hour in range(24):
            angle = float((hour * 15 + 180) % 360)
            if hour % 3 != 0:
                self._draw_tick(canvas, centre, angle, hour_radius, small, palette.small_tick)
                continue
            self._draw_tick(canvas, centre, angle, hour_radius, large, palette.large_tick)
            if not options.show_hour_numbers:
                continue
            if options.angle_hour_numbers:
                self._draw_angled_number(canvas, centre, str(hour), angle, number_radius,
                                         palette.number)
            else:
                self._draw_upright_number(canvas, centre, str(hour), angle, number_radius,
                                          palette.number)

    @staticmethod
    def _draw_tick(canvas: Canvas, centre: Point, angle: float, outer_radius: float,
                   length: float, paint: Paint) -> None:
        canvas.draw_line(polar(centre, angle, outer_radius - length),
                         polar(centre, angle, outer_radius), paint)

    @staticmethod
    def _draw_angled_number(canvas: Canvas, centre: Point, text: str, angle: float,
                            outer_radius: float, paint: Paint) -> None:
        # Numbers on the lower half run the other way so they are not upside down.
        flip = 90 < angle < 270
        direction = -1 if flip else 1
        start = polar(centre, angle - direction * NUMBER_ARC_HALF_WIDTH_DEGREES, outer_radius)
        end = polar(centre, angle + direction * NUMBER_ARC_HALF_WIDTH_DEGREES, outer_radius)
        baseline_height = paint.text_size * UBUNTU_REGULAR_BASELINE_RATIO
        vertical_offset = 0.0 if flip else paint.text_size - baseline_height
        canvas.draw_text_on_path(text, line_path(start, end), 0.0, vertical_offset, paint)

    @staticmethod
    def _draw_upright_number(canvas: Canvas, centre: Point, text: str, angle: float,
                             outer_radius: float, paint: Paint) -> None:
        baseline_height = paint.text_size * UBUNTU_REGULAR_BASELINE_RATIO
        vertical_offset = (paint.text_size - baseline_height) / 2
        half_length = UPRIGHT_NUMBER_PATH_LENGTH * outer_radius / 2
        x, y = polar(centre, angle, outer_radius - vertical_offset)
        canvas.draw_text_on_path(text, line_path((x - half_length, y), (x + half_length, y)),
                                 0.0, vertical_offset, paint)

    # --- phase 3: hands ---

    def _draw_hands(self, canvas: Canvas, palette: Palette, centre: Point, face_radius: float,
                    when: datetime, options: Options) -> None:
        angles = hand_angles(when, options)
        hour_tip = polar(centre, angles.hours, scaled(face_radius, HOUR_HAND_LENGTH))
        minute_tip = polar(centre, angles.minutes, scaled(face_radius, MINUTE_HAND_LENGTH))
        canvas.draw_line(centre, hour_tip, palette.hour_hand)
        canvas.draw_line(centre, minute_tip, palette.minute_hand)
        if options.show_second_hand:
            second_tip = polar(centre, angles.seconds, scaled(face_radius, SECOND_HAND_LENGTH))
            canvas.draw_line(centre, second_tip, palette.second_hand)
        canvas.draw_circle(centre, scaled(face_radius, HAND_CAP_RADIUS), palette.hand_cap)
