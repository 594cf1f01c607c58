"""Astronomy computation layer — lunar phase, solar declination, day length, and solar noon.

These are low-precision approximations, good to a few minutes, which is all a
watch face can show. Nothing here keeps state; every function is pure.
"""

import calendar
import math
from datetime import datetime, time, timedelta, tzinfo

from pytz import timezone, utc

from stylin247.models import Coordinate

MAXIMUM_SUN_DECLINATION = 23.5  # Degrees
LUNAR_CYCLE = timedelta(days=29, hours=12, minutes=44, seconds=2)
KNOWN_NEW_MOON = datetime(2021, 1, 13, 5, 0, 0, tzinfo=utc)
VERNAL_EQUINOX_DAY_OF_YEAR = 31 + 28 + 21  # 21 March of a common year
SECONDS_PER_DAY = 24 * 60 * 60

_PHASE_NAMES = (
    "new moon",
    "waxing crescent",
    "first quarter",
    "waxing gibbous",
    "full moon",
    "waning gibbous",
    "last quarter",
    "waning crescent",
)


def resolve_time_zone(time_zone: str | tzinfo) -> tzinfo:
    """Return a tzinfo for an IANA name, or the tzinfo itself.

    Raises:
        pytz.UnknownTimeZoneError: If the name is not in the tz database.
    """
    if isinstance(time_zone, str):
        return timezone(time_zone)
    return time_zone


def _as_utc(when: datetime) -> datetime:
    # Naive datetimes are taken to be UTC instants.
    if when.tzinfo is None:
        return when.replace(tzinfo=utc)
    return when.astimezone(utc)


def civil_time(instant: datetime | float, time_zone: str | tzinfo) -> datetime:
    """Interpret an instant (aware datetime or POSIX seconds) in a time zone.

    Args:
        instant: Absolute time. Naive datetimes are read as UTC.
        time_zone: IANA zone name or tzinfo.

    Returns:
        Timezone-aware datetime carrying the zone's civil fields.
    """
    if isinstance(instant, (int, float)):
        instant = datetime.fromtimestamp(instant, tz=utc)
    return _as_utc(instant).astimezone(resolve_time_zone(time_zone))


def day_of_year(when: datetime) -> int:
    return when.timetuple().tm_yday


def days_in_year(when: datetime) -> int:
    """Actual maximum day-of-year of the year containing `when`."""
    return 366 if calendar.isleap(when.year) else 365


def seconds_of_day(moment: time) -> int:
    return moment.hour * 3600 + moment.minute * 60 + moment.second


def lunar_phase(when: datetime) -> float:
    """Approximate phase of the moon at an instant.

    The result is a fraction 0 <= x < 1 of the synodic cycle: 0 is a new moon,
    0.5 a full moon, and 0.9 a waning crescent. Instants before the reference
    new moon wrap around to a positive phase.
    """
    elapsed_seconds = math.floor((_as_utc(when) - KNOWN_NEW_MOON).total_seconds())
    cycle_seconds = int(LUNAR_CYCLE.total_seconds())
    return (elapsed_seconds % cycle_seconds) / cycle_seconds


def lunar_phase_name(phase: float) -> str:
    """Conventional name of the phase, each name covering an eighth of the cycle."""
    return _PHASE_NAMES[int(phase * 8 + 0.5) % 8]


def solar_declination(when: datetime) -> float:
    """Degrees north (positive) or south (negative) of the equator the sun stands on a civil date."""
    year_length = days_in_year(when)
    days_since_equinox = (day_of_year(when) - VERNAL_EQUINOX_DAY_OF_YEAR) % year_length
    return MAXIMUM_SUN_DECLINATION * math.sin(2 * math.pi * days_since_equinox / year_length)


def solar_day_length(latitude: float, when: datetime) -> timedelta:
    """Approximate time between sunrise and sunset at a latitude on a civil date.

    Inside the polar circles near a solstice the sun either never sets or
    never rises; the day is then a full 24 hours or nothing at all. Invalid
    latitudes fall through to the same rule instead of raising.

    Source: http://www.jgiesen.de/astro/solarday.htm

    Args:
        latitude: Decimal degrees, north positive.
        when: Civil time; only its date matters.

    Returns:
        Whole-second duration in [0, 24h].
    """
    declination = solar_declination(when)
    if math.isfinite(latitude):
        cos_hour_angle = -math.tan(math.radians(latitude)) * math.tan(math.radians(declination))
    else:
        cos_hour_angle = math.nan
    if math.isnan(cos_hour_angle) or not -1.0 <= cos_hour_angle <= 1.0:
        # Polar night when the observer and the sun are in opposite hemispheres.
        if (latitude > 0) != (declination > 0):
            return timedelta(0)
        return timedelta(days=1)
    hour_angle = math.acos(cos_hour_angle) / math.pi
    return timedelta(seconds=int(SECONDS_PER_DAY * hour_angle))


def solar_noon(longitude: float, when: datetime, time_zone: str | tzinfo) -> time:
    """Approximate civil time, in `time_zone`, of astronomical noon at a longitude.

    The zone is not derived from the longitude because people often keep the
    time of a neighbouring zone. A non-finite longitude is treated as the
    zone's own meridian.

    Returns:
        Time of day, reduced modulo 24 hours.
    """
    offset = _as_utc(when).astimezone(resolve_time_zone(time_zone)).utcoffset()
    offset_seconds = int(offset.total_seconds()) if offset is not None else 0
    if math.isfinite(longitude):
        astronomical_offset = math.floor(longitude / 360 * SECONDS_PER_DAY)
    else:
        astronomical_offset = 0
    seconds = (12 * 3600 + offset_seconds - astronomical_offset) % SECONDS_PER_DAY
    return time(seconds // 3600, seconds // 60 % 60, seconds % 60)


def sunrise_sunset(
    location: Coordinate, when: datetime, time_zone: str | tzinfo
) -> tuple[time | None, time | None]:
    """Civil sunrise and sunset, symmetric about solar noon.

    Returns:
        (sunrise, sunset), or (None, None) during polar day or night.
    """
    day_length = int(solar_day_length(location.latitude, when).total_seconds())
    if day_length in (0, SECONDS_PER_DAY):
        return None, None
    noon = seconds_of_day(solar_noon(location.longitude, when, time_zone))
    rise = (noon - day_length // 2) % SECONDS_PER_DAY
    set_ = (noon + day_length // 2) % SECONDS_PER_DAY
    return (
        time(rise // 3600, rise // 60 % 60, rise % 60),
        time(set_ // 3600, set_ // 60 % 60, set_ % 60),
    )
