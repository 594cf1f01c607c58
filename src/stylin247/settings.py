"""Configuration layer — options, observer location, and time zone from the environment.

Values are read from `STYLIN247_*` environment variables, which a `.env`
file may supply through python-dotenv.
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pytz import UnknownTimeZoneError
from timezonefinder import TimezoneFinder

from stylin247.astronomy import resolve_time_zone
from stylin247.errors import ConfigurationError
from stylin247.models import ColourScheme, Coordinate, Options

logger = logging.getLogger(__name__)

PREFIX = "STYLIN247_"
DEFAULT_TIME_ZONE = "UTC"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}

_BOOLEAN_OPTIONS = (
    "use_location",
    "draw_realistic_sun",
    "show_hour_numbers",
    "angle_hour_numbers",
    "show_single_minute_ticks",
    "show_second_hand",
    "animate_second_hand_smoothly",
)


@dataclass(frozen=True)
class Settings:
    """Everything the face needs from configuration."""

    options: Options
    location: Coordinate | None
    time_zone: str


@lru_cache(maxsize=1)
def _timezone_finder() -> TimezoneFinder:
    return TimezoneFinder()


def env_key(option: str) -> str:
    return PREFIX + option.upper()


def parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ConfigurationError(f"{name}: expected a boolean, got {value!r}")


def parse_colour_scheme(value: str) -> ColourScheme:
    """Colour scheme by name; unknown names fall back to Muted."""
    try:
        return ColourScheme(value.strip().lower())
    except ValueError:
        logger.warning("Unknown colour scheme %r; using muted", value)
        return ColourScheme.MUTED


def options_from_env(environ: Mapping[str, str]) -> Options:
    values: dict[str, object] = {}
    for option in _BOOLEAN_OPTIONS:
        key = env_key(option)
        if key in environ:
            values[option] = parse_bool(key, environ[key])
    scheme = environ.get(env_key("colour_scheme"))
    if scheme is not None:
        values["colour_scheme"] = parse_colour_scheme(scheme)
    return Options(**values)


def location_from_env(environ: Mapping[str, str]) -> Coordinate | None:
    """Fixed observer position, or None when neither coordinate is set.

    Raises:
        ConfigurationError: If only one coordinate is set, or either is out of range.
    """
    lat_key, lng_key = env_key("latitude"), env_key("longitude")
    raw_lat, raw_lng = environ.get(lat_key), environ.get(lng_key)
    if raw_lat is None and raw_lng is None:
        return None
    if raw_lat is None or raw_lng is None:
        raise ConfigurationError(f"{lat_key} and {lng_key} must be set together")
    try:
        latitude, longitude = float(raw_lat), float(raw_lng)
    except ValueError as e:
        raise ConfigurationError(f"invalid coordinate: {e}") from e
    return make_coordinate(latitude, longitude)


def make_coordinate(latitude: float, longitude: float) -> Coordinate:
    if not -90 <= latitude <= 90:
        raise ConfigurationError(f"latitude {latitude} outside [-90, 90]")
    if not -180 <= longitude <= 180:
        raise ConfigurationError(f"longitude {longitude} outside [-180, 180]")
    return Coordinate(latitude=latitude, longitude=longitude)


def resolve_zone_name(explicit: str | None, location: Coordinate | None) -> str:
    """Pick the display time zone.

    An explicit zone wins over the one at the location, which wins over UTC.
    """
    if explicit:
        try:
            resolve_time_zone(explicit)
        except UnknownTimeZoneError as e:
            raise ConfigurationError(f"unknown time zone {explicit!r}") from e
        return explicit
    if location is not None:
        zone = _timezone_finder().timezone_at(lat=location.latitude, lng=location.longitude)
        if zone is not None:
            return zone
        logger.warning("No time zone at %s; using %s", location, DEFAULT_TIME_ZONE)
    return DEFAULT_TIME_ZONE


def settings_from_env(environ: Mapping[str, str]) -> Settings:
    location = location_from_env(environ)
    return Settings(
        options=options_from_env(environ),
        location=location,
        time_zone=resolve_zone_name(environ.get(env_key("time_zone")), location),
    )


def load_settings(env_file: Path | None = None) -> Settings:
    """Load `.env` (if present) into the process environment, then read settings."""
    load_dotenv(env_file)
    return settings_from_env(os.environ)
