"""Palettes: immutable paint descriptors for every drawable slot of the face.

A palette is built once per face radius and mode and never changed
afterwards. Switching mode, ambient flags or mute state swaps in a different
palette instance.
"""

from dataclasses import dataclass, replace
from enum import Enum

from matplotlib.colors import hsv_to_rgb, to_rgba

from stylin247.models import PaletteMode

Color = tuple[float, float, float, float]  # RGBA, 0..1

# Fractions of the face radius.
HOUR_HAND_WIDTH = 0.04
MINUTE_HAND_WIDTH = 0.03
SECOND_HAND_WIDTH = 0.01
HAND_SHADOW_WIDTH = 0.01
LARGE_TICK_WIDTH = 0.025
SMALL_TICK_WIDTH = 0.02
NUMBER_TEXT_SIZE = 0.175
SOLAR_CORONA_WIDTH = 0.1
AMBIENT_HOUR_DISC_STROKE_WIDTH = 0.015

NUMBER_TYPEFACE = "Ubuntu"

MUTED_HAND_ALPHA = 100
MUTED_SECOND_HAND_ALPHA = 80

BLACK: Color = to_rgba("#000000")
WHITE: Color = to_rgba("#ffffff")
TRANSPARENT: Color = (0.0, 0.0, 0.0, 0.0)
DARK_GREY: Color = to_rgba("#444444")
GREY: Color = to_rgba("#888888")
LIGHT_GREY: Color = to_rgba("#cccccc")


def hsv(hue: float, saturation: float, value: float) -> Color:
    """Opaque colour from hue in degrees and saturation/value in 0..1."""
    r, g, b = hsv_to_rgb((hue / 360, saturation, value))
    return float(r), float(g), float(b), 1.0


class Style(Enum):
    FILL = "fill"
    STROKE = "stroke"


class Cap(Enum):
    ROUND = "round"
    BUTT = "butt"


class Compositing(Enum):
    NORMAL = "normal"
    SRC_ATOP = "src_atop"  # Draw only where the destination is already covered


@dataclass(frozen=True)
class Shadow:
    radius: float  # Blur radius in pixels
    color: Color


@dataclass(frozen=True)
class Paint:
    """How a single primitive is drawn. A zero stroke width means a one-pixel hairline."""

    color: Color = BLACK
    style: Style = Style.FILL
    stroke_width: float = 0.0
    cap: Cap = Cap.BUTT
    shadow: Shadow | None = None
    compositing: Compositing = Compositing.NORMAL
    anti_alias: bool = True
    text_size: float = 0.0
    typeface: str | None = None

    @property
    def alpha(self) -> int:
        return round(self.color[3] * 255)

    def with_alpha(self, alpha: int) -> "Paint":
        r, g, b, _ = self.color
        return replace(self, color=(r, g, b, alpha / 255))


@dataclass(frozen=True)
class Palette:
    """Paint for every slot of the face, for one mode and one face radius."""

    mode: PaletteMode
    face_radius: float
    hour_hand: Paint
    minute_hand: Paint
    second_hand: Paint
    hand_cap: Paint
    small_tick: Paint
    large_tick: Paint
    number: Paint
    background: Paint
    day_sector: Paint
    night_sector: Paint
    cartoon_sun: Paint
    realistic_sun: Paint
    moon_lit: Paint
    moon_dark: Paint
    moon_line: Paint
    low_bit_ambient: bool = False
    burn_in_protection: bool = False
    dimmed: bool = False

    def dim(self) -> "Palette":
        """Copy with translucent hands, for the host's mute (do-not-disturb) mode."""
        if self.dimmed:
            return self
        return replace(
            self,
            hour_hand=self.hour_hand.with_alpha(MUTED_HAND_ALPHA),
            minute_hand=self.minute_hand.with_alpha(MUTED_HAND_ALPHA),
            second_hand=self.second_hand.with_alpha(MUTED_SECOND_HAND_ALPHA),
            dimmed=True,
        )


def _common_paints(face_radius: float) -> dict[str, Paint]:
    atop = Compositing.SRC_ATOP
    return {
        "hour_hand": Paint(style=Style.STROKE, cap=Cap.ROUND,
                           stroke_width=HOUR_HAND_WIDTH * face_radius),
        "minute_hand": Paint(style=Style.STROKE, cap=Cap.ROUND,
                             stroke_width=MINUTE_HAND_WIDTH * face_radius),
        "second_hand": Paint(style=Style.STROKE, cap=Cap.ROUND,
                             stroke_width=SECOND_HAND_WIDTH * face_radius),
        "hand_cap": Paint(),
        "large_tick": Paint(style=Style.STROKE, cap=Cap.BUTT,
                            stroke_width=LARGE_TICK_WIDTH * face_radius),
        "small_tick": Paint(style=Style.STROKE, cap=Cap.BUTT,
                            stroke_width=SMALL_TICK_WIDTH * face_radius),
        "number": Paint(text_size=NUMBER_TEXT_SIZE * face_radius, typeface=NUMBER_TYPEFACE),
        "background": Paint(),
        "day_sector": Paint(),
        "night_sector": Paint(),
        "cartoon_sun": Paint(compositing=atop),
        "realistic_sun": Paint(compositing=atop),
        "moon_lit": Paint(compositing=atop),
        "moon_dark": Paint(compositing=atop),
        "moon_line": Paint(style=Style.STROKE, compositing=atop),
    }


def _build(
    mode: PaletteMode,
    face_radius: float,
    paints: dict[str, Paint],
    low_bit_ambient: bool,
    burn_in_protection: bool,
) -> Palette:
    sun_style = Style.STROKE if burn_in_protection else Style.FILL
    paints["cartoon_sun"] = replace(paints["cartoon_sun"], style=sun_style)
    paints["realistic_sun"] = replace(paints["realistic_sun"], style=sun_style)
    paints["moon_lit"] = paints["moon_lit"].with_alpha(0 if burn_in_protection else 255)

    sun = paints["realistic_sun"]
    if low_bit_ambient:
        paints["realistic_sun"] = replace(sun, shadow=None)
    else:
        corona = Shadow(SOLAR_CORONA_WIDTH * face_radius, sun.color)
        paints["realistic_sun"] = replace(sun, shadow=corona)

    paints = {slot: replace(paint, anti_alias=not low_bit_ambient) for slot, paint in paints.items()}
    return Palette(
        mode=mode,
        face_radius=face_radius,
        low_bit_ambient=low_bit_ambient,
        burn_in_protection=burn_in_protection,
        **paints,
    )


def _interactive_paints(face_radius: float) -> dict[str, Paint]:
    paints = _common_paints(face_radius)
    shadow = Shadow(HAND_SHADOW_WIDTH * face_radius, BLACK)
    paints["day_sector"] = replace(paints["day_sector"], style=Style.FILL)
    paints["night_sector"] = replace(paints["night_sector"], style=Style.FILL)
    paints["moon_line"] = replace(paints["moon_line"], color=TRANSPARENT)
    paints["hour_hand"] = replace(paints["hour_hand"], color=BLACK, shadow=shadow)
    paints["minute_hand"] = replace(paints["minute_hand"], color=BLACK, shadow=shadow)
    paints["second_hand"] = replace(paints["second_hand"], color=hsv(0, 0.75, 0.75), shadow=shadow)
    paints["hand_cap"] = replace(paints["hand_cap"], color=BLACK, shadow=shadow)
    paints["moon_lit"] = replace(paints["moon_lit"], color=WHITE)
    paints["moon_dark"] = replace(paints["moon_dark"], color=BLACK)
    paints["background"] = replace(paints["background"], color=hsv(0, 0, 0.3))
    paints["large_tick"] = replace(paints["large_tick"], color=BLACK)
    paints["small_tick"] = replace(paints["small_tick"], color=BLACK)
    paints["number"] = replace(paints["number"], color=hsv(0, 0, 0.1))
    return paints


def muted_palette(
    face_radius: float, low_bit_ambient: bool = False, burn_in_protection: bool = False
) -> Palette:
    """Soft, desaturated day and night colours. The default scheme."""
    paints = _interactive_paints(face_radius)
    paints["day_sector"] = replace(paints["day_sector"], color=hsv(200, 0.25, 0.6))
    paints["night_sector"] = replace(paints["night_sector"], color=hsv(230, 0.25, 0.25))
    paints["cartoon_sun"] = replace(paints["cartoon_sun"], color=hsv(45, 0.3, 1))
    paints["realistic_sun"] = replace(paints["realistic_sun"], color=hsv(45, 0.3, 1))
    return _build(PaletteMode.MUTED, face_radius, paints, low_bit_ambient, burn_in_protection)


def vivid_palette(
    face_radius: float, low_bit_ambient: bool = False, burn_in_protection: bool = False
) -> Palette:
    """Saturated cyan day and deep blue night."""
    paints = _interactive_paints(face_radius)
    paints["day_sector"] = replace(paints["day_sector"], color=hsv(185, 1, 1))
    paints["night_sector"] = replace(paints["night_sector"], color=hsv(217, 0.9, 0.5))
    paints["cartoon_sun"] = replace(paints["cartoon_sun"], color=hsv(45, 0.5, 1))
    paints["realistic_sun"] = replace(paints["realistic_sun"], color=hsv(45, 0.5, 1))
    return _build(PaletteMode.VIVID, face_radius, paints, low_bit_ambient, burn_in_protection)


def ambient_palette(
    face_radius: float, low_bit_ambient: bool = False, burn_in_protection: bool = False
) -> Palette:
    """Outline-only, mostly black palette for the host's low-power mode.

    Args:
        face_radius: Pixel radius of the face.
        low_bit_ambient: Host can only show a few colours; disables
            anti-aliasing everywhere and drops the solar corona.
        burn_in_protection: Host wants few lit pixels; suns become outlines
            and the lit part of the moon is cleared.
    """
    paints = _common_paints(face_radius)
    outline = AMBIENT_HOUR_DISC_STROKE_WIDTH * face_radius
    paints["background"] = replace(paints["background"], color=BLACK)
    paints["day_sector"] = replace(paints["day_sector"], color=DARK_GREY, style=Style.STROKE,
                                   stroke_width=outline)
    paints["night_sector"] = replace(paints["night_sector"], color=DARK_GREY, style=Style.STROKE,
                                     stroke_width=outline)
    paints["cartoon_sun"] = replace(paints["cartoon_sun"], color=DARK_GREY, stroke_width=outline)
    paints["realistic_sun"] = replace(paints["realistic_sun"], color=DARK_GREY, stroke_width=outline)
    paints["moon_line"] = replace(paints["moon_line"], color=DARK_GREY, stroke_width=outline)
    paints["moon_lit"] = replace(paints["moon_lit"], color=DARK_GREY)
    paints["moon_dark"] = replace(paints["moon_dark"], color=BLACK)
    paints["hour_hand"] = replace(paints["hour_hand"], color=LIGHT_GREY)
    paints["minute_hand"] = replace(paints["minute_hand"], color=LIGHT_GREY)
    paints["second_hand"] = replace(paints["second_hand"], color=LIGHT_GREY)
    paints["hand_cap"] = replace(paints["hand_cap"], color=LIGHT_GREY)
    paints["large_tick"] = replace(paints["large_tick"], color=GREY)
    paints["small_tick"] = replace(paints["small_tick"], color=GREY)
    paints["number"] = replace(paints["number"], color=GREY)
    return _build(PaletteMode.AMBIENT, face_radius, paints, low_bit_ambient, burn_in_protection)
