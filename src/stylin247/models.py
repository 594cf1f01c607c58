"""Data model definitions — explicit boundaries between settings, astronomy, and render layers."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class ColourScheme(Enum):
    """User-selectable interactive colour scheme."""

    MUTED = "muted"
    VIVID = "vivid"


class PaletteMode(Enum):
    """Palette tag. Ambient is chosen by the host, never by the user."""

    MUTED = "muted"
    VIVID = "vivid"
    AMBIENT = "ambient"


@dataclass(frozen=True)
class Coordinate:
    """A geographic position reported by a location provider."""

    latitude: float  # Decimal degrees, [-90, 90]
    longitude: float  # Decimal degrees, [-180, 180]
    accuracy: float | None = None  # Metres
    timestamp: datetime | None = None  # When the fix was taken


@dataclass(frozen=True)
class Options:
    """Snapshot of the user's watch-face settings."""

    use_location: bool = False
    draw_realistic_sun: bool = False
    show_hour_numbers: bool = False
    angle_hour_numbers: bool = False
    show_single_minute_ticks: bool = False
    show_second_hand: bool = False
    animate_second_hand_smoothly: bool = False
    colour_scheme: ColourScheme = ColourScheme.MUTED


@dataclass
class EngineState:
    """Mutable engine state, written only by orchestrator callbacks."""

    ambient: bool = False
    low_bit_ambient: bool = False
    burn_in_protection: bool = False
    mute_mode: bool = False
    visible: bool = False
    time_zone: str = "UTC"
    face_radius: float = 0.0


@dataclass(frozen=True)
class Bounds:
    """Pixel rectangle of the drawing surface."""

    left: int
    top: int
    right: int
    bottom: int

    @property
    def width(self) -> int:
        return self.right - self.left

    @property
    def height(self) -> int:
        return self.bottom - self.top

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0


@dataclass(frozen=True)
class Sectors:
    """Day and night sectors of the hour disc, in raster arc degrees."""

    kind: str  # "split", "polar_day" or "polar_night"
    day_start: float  # 0 = three o'clock, clockwise
    day_sweep: float
    night_start: float
    night_sweep: float
    noon_angle: float  # Polar degrees (0 = up), where the sun is drawn
    day_length_fraction: float
    noon_offset_fraction: float


@dataclass(frozen=True)
class HandAngles:
    """Hand rotations in polar degrees (0 = up, clockwise)."""

    hours: float
    minutes: float
    seconds: float
