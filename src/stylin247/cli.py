"""Command-line entry point: render a frame, print astronomy figures, or run the face live.

Examples:
    stylin247 render face.png --lat 35.18 --lon 129.08 --at 2024-06-21T21:00
    stylin247 astro --lat 35.18 --lon 129.08
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from datetime import datetime
from pathlib import Path

from pytz import utc
from pytz.exceptions import InvalidTimeError

from stylin247 import astronomy
from stylin247.errors import ConfigurationError
from stylin247.host import PngHost
from stylin247.models import Bounds
from stylin247.orchestrator import WatchFace
from stylin247.renderers.matplotlib_canvas import MatplotlibCanvas
from stylin247.settings import Settings, load_settings, make_coordinate, resolve_zone_name

logger = logging.getLogger(__name__)

_DEFAULT_SIZE = 400


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("--lat", type=float, help="latitude in decimal degrees (north positive)")
    p.add_argument("--lon", type=float, help="longitude in decimal degrees (east positive)")
    p.add_argument("--tz", help="IANA time zone (default: from env, else from location, else UTC)")
    p.add_argument("--env-file", type=Path, help=".env file with STYLIN247_* settings")


def _settings(p: argparse.ArgumentParser, args: argparse.Namespace) -> Settings:
    """Environment settings with command-line overrides applied."""
    try:
        settings = load_settings(args.env_file)
        options = settings.options
        location = settings.location
        if args.lat is not None or args.lon is not None:
            if args.lat is None or args.lon is None:
                p.error("--lat and --lon must be given together")
            location = make_coordinate(args.lat, args.lon)
            # A location given on the command line is also drawn.
            options = replace(options, use_location=True)
        time_zone = settings.time_zone
        if args.tz or location is not settings.location:
            time_zone = resolve_zone_name(args.tz, location)
    except ConfigurationError as e:
        p.error(str(e))
    return Settings(options=options, location=location, time_zone=time_zone)


def _parse_when(p: argparse.ArgumentParser, value: str | None, time_zone: str) -> datetime:
    """ISO timestamp; a naive one is read in `time_zone`. Defaults to now."""
    if value is None:
        return datetime.now(utc)
    try:
        dt = datetime.fromisoformat(value)
    except ValueError:
        p.error(f"invalid --at timestamp: {value!r}")
    if dt.tzinfo is not None:
        return dt
    try:
        return astronomy.resolve_time_zone(time_zone).localize(dt, is_dst=None)
    except InvalidTimeError as e:
        p.error(f"--at {value!r} is ambiguous or skipped in {time_zone}: {e!r}")


def cmd_render(argv: list[str]) -> int:
    p = argparse.ArgumentParser(prog="stylin247 render", description="Render one frame to a PNG file")
    p.add_argument("output", type=Path, help="destination PNG")
    p.add_argument("--size", type=int, default=_DEFAULT_SIZE, help="edge length in pixels")
    p.add_argument("--at", help="ISO timestamp (default: now)")
    p.add_argument("--ambient", action="store_true", help="draw the low-power palette")
    p.add_argument("--low-bit", action="store_true", help="ambient without anti-aliasing")
    p.add_argument("--burn-in", action="store_true", help="ambient with burn-in protection")
    p.add_argument("--muted", action="store_true", help="dim the hands (do-not-disturb)")
    _add_common(p)
    args = p.parse_args(argv)

    settings = _settings(p, args)
    when = _parse_when(p, args.at, settings.time_zone)

    host = _SnapshotHost(settings.time_zone)
    loop = asyncio.new_event_loop()
    try:
        face = WatchFace(host, loop, lambda: settings.options, settings.location,
                         clock=when.timestamp)
        face.on_surface_changed(args.size, args.size)
        face.on_properties_changed(args.low_bit, args.burn_in)
        face.on_ambient_mode_changed(args.ambient)
        face.on_interruption_filter_changed(args.muted)
        canvas = MatplotlibCanvas(args.size, args.size)
        face.on_draw(canvas, Bounds(0, 0, args.size, args.size))
        path = canvas.save(args.output)
    finally:
        loop.close()
    print(f"Saved: {path}")
    return 0


def cmd_astro(argv: list[str]) -> int:
    p = argparse.ArgumentParser(prog="stylin247 astro",
                                description="Print solar and lunar figures for a place and time")
    p.add_argument("--at", help="ISO timestamp (default: now)")
    _add_common(p)
    args = p.parse_args(argv)

    settings = _settings(p, args)
    location = settings.location
    if location is None:
        p.error("a location is required (--lat/--lon or STYLIN247_LATITUDE/LONGITUDE)")
    when = astronomy.civil_time(_parse_when(p, args.at, settings.time_zone), settings.time_zone)

    day_length = int(astronomy.solar_day_length(location.latitude, when).total_seconds())
    sunrise, sunset = astronomy.sunrise_sunset(location, when, settings.time_zone)
    phase = astronomy.lunar_phase(when)

    print(f"Location    = {location.latitude:.4f}, {location.longitude:.4f}")
    print(f"Time zone   = {settings.time_zone}")
    print(f"Civil time  = {when.isoformat()}")
    print(f"Declination = {astronomy.solar_declination(when):+.2f} deg")
    print(f"Solar noon  = {astronomy.solar_noon(location.longitude, when, settings.time_zone)}")
    print(f"Day length  = {day_length // 3600:02d}:{day_length // 60 % 60:02d}:{day_length % 60:02d}")
    print(f"Sunrise     = {sunrise if sunrise is not None else '-'}")
    print(f"Sunset      = {sunset if sunset is not None else '-'}")
    print(f"Lunar phase = {phase:.4f} ({astronomy.lunar_phase_name(phase)})")
    return 0


def cmd_live(argv: list[str]) -> int:
    p = argparse.ArgumentParser(prog="stylin247 live",
                                description="Keep re-rendering a PNG file at the face's tick rate")
    p.add_argument("output", type=Path, help="destination PNG, rewritten on every tick")
    p.add_argument("--size", type=int, default=_DEFAULT_SIZE, help="edge length in pixels")
    p.add_argument("--ambient", action="store_true", help="run in low-power mode")
    p.add_argument("--low-bit", action="store_true", help="ambient without anti-aliasing")
    p.add_argument("--burn-in", action="store_true", help="ambient with burn-in protection")
    p.add_argument("--duration", type=float, help="stop after this many seconds (default: run until interrupted)")
    _add_common(p)
    args = p.parse_args(argv)

    settings = _settings(p, args)
    try:
        frames = asyncio.run(_live(args, settings))
    except KeyboardInterrupt:
        return 0
    print(f"Wrote {frames} frames to {args.output}")
    return 0


async def _live(args: argparse.Namespace, settings: Settings) -> int:
    loop = asyncio.get_running_loop()
    host = PngHost(loop, args.output, args.size, settings.time_zone)
    face = WatchFace(host, loop, lambda: settings.options, settings.location)
    host.attach(face)
    face.on_properties_changed(args.low_bit, args.burn_in)
    face.on_ambient_mode_changed(args.ambient)
    face.on_visibility_changed(True)
    host.start()
    logger.info("Rendering to %s", args.output)
    try:
        if args.duration is None:
            await asyncio.Event().wait()
        else:
            await asyncio.sleep(args.duration)
    finally:
        face.destroy()
        host.stop()
    return host.frames


class _SnapshotHost:
    """Host for a single frame: no redraws and no zone changes."""

    def __init__(self, time_zone: str) -> None:
        self._time_zone = time_zone

    def invalidate(self) -> None:
        pass

    def default_time_zone(self) -> str:
        return self._time_zone

    def register_time_zone_listener(self, listener) -> None:
        pass

    def unregister_time_zone_listener(self, listener) -> None:
        pass


_COMMANDS = {
    "render": cmd_render,
    "astro": cmd_astro,
    "live": cmd_live,
}


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    p = argparse.ArgumentParser(prog="stylin247", description="24-hour astronomical watch face.")
    p.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = p.add_subparsers(dest="cmd", required=True)
    sub.add_parser("render", help="Render one frame to a PNG file", add_help=False)
    sub.add_parser("astro", help="Print solar noon, day length and moon phase", add_help=False)
    sub.add_parser("live", help="Keep re-rendering a PNG at the face's tick rate", add_help=False)
    args, rest = p.parse_known_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    return _COMMANDS[args.cmd](rest)


if __name__ == "__main__":
    raise SystemExit(main())
