"""Frame orchestrator. Owns engine state and turns host events into frames.

The host adapter implements `WatchFaceHost` and forwards its lifecycle
callbacks to a `WatchFace`. Everything runs on the host's event loop.
"""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import replace
from typing import Protocol

from stylin247 import astronomy
from stylin247.canvas import Canvas
from stylin247.errors import SurfaceUnavailableError, TimeSourceError
from stylin247.models import Bounds, ColourScheme, Coordinate, EngineState, Options, PaletteMode
from stylin247.painter import BackgroundCache, Painter
from stylin247.palette import Palette, ambient_palette, muted_palette, vivid_palette
from stylin247.scheduler import TickScheduler

logger = logging.getLogger(__name__)


class WatchFaceHost(Protocol):
    def invalidate(self) -> None:
        """Request a redraw; the host later calls `WatchFace.on_draw`."""

    def default_time_zone(self) -> str:
        """IANA name of the system's current time zone."""

    def register_time_zone_listener(self, listener: Callable[[], None]) -> None: ...

    def unregister_time_zone_listener(self, listener: Callable[[], None]) -> None: ...


class WatchFace:
    """State owner for one watch-face instance."""

    def __init__(
        self,
        host: WatchFaceHost,
        loop: asyncio.AbstractEventLoop,
        options_source: Callable[[], Options],
        location: Coordinate | None = None,
        clock: Callable[[], float] = time.time,
        painter: Painter | None = None,
    ) -> None:
        self._host = host
        self._options_source = options_source
        self._options = options_source()
        self._location = location
        self._clock = clock
        self._painter = painter or Painter()
        self._state = EngineState(time_zone=host.default_time_zone())
        self._palettes: dict[PaletteMode, Palette] = {}
        self._cache = BackgroundCache()
        self._scheduler = TickScheduler(loop, host.invalidate, clock)
        self._listening = False
        self._last_instant: float | None = None

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def options(self) -> Options:
        return self._options

    @property
    def scheduler(self) -> TickScheduler:
        return self._scheduler

    @property
    def cache(self) -> BackgroundCache:
        return self._cache

    # --- host callbacks ---

    def on_surface_changed(self, width: int, height: int) -> None:
        # Ignore insets: the face is centred on the whole screen.
        self._state.face_radius = width / 2
        self._create_palettes()
        self._cache.invalidate()
        logger.info("Surface %dx%d, face radius %.1f", width, height, self._state.face_radius)

    def on_visibility_changed(self, visible: bool) -> None:
        self._state.visible = visible
        if visible:
            self._register_time_zone_listener()
            # The zone may have changed while hidden.
            self._state.time_zone = self._host.default_time_zone()
            self._options = self._options_source()
            self._host.invalidate()
        else:
            self._unregister_time_zone_listener()
        self._scheduler.update(self._state, self._options)

    def on_ambient_mode_changed(self, ambient: bool) -> None:
        self._state.ambient = ambient
        self._cache.invalidate()
        self._scheduler.update(self._state, self._options)

    def on_properties_changed(self, low_bit_ambient: bool, burn_in_protection: bool) -> None:
        self._state.low_bit_ambient = low_bit_ambient
        self._state.burn_in_protection = burn_in_protection
        if self._state.face_radius > 0:
            self._palettes[PaletteMode.AMBIENT] = ambient_palette(
                self._state.face_radius, low_bit_ambient, burn_in_protection
            )
        self._cache.invalidate()

    def on_interruption_filter_changed(self, muted: bool) -> None:
        if muted == self._state.mute_mode:
            return
        self._state.mute_mode = muted
        self._cache.invalidate()
        self._host.invalidate()

    def on_time_zone_changed(self) -> None:
        self._state.time_zone = self._host.default_time_zone()
        logger.info("Time zone changed to %s", self._state.time_zone)
        self._cache.invalidate()
        self._host.invalidate()

    def on_time_tick(self) -> None:
        self._host.invalidate()

    def on_tap(self, x: int, y: int) -> None:
        self._host.invalidate()

    def on_options_changed(self) -> None:
        self._options = self._options_source()
        self._cache.invalidate()
        self._scheduler.update(self._state, self._options)

    def on_location_changed(self, location: Coordinate | None) -> None:
        self._location = location
        self._cache.invalidate()
        self._host.invalidate()

    def destroy(self) -> None:
        self._scheduler.cancel()
        self._unregister_time_zone_listener()

    def on_draw(self, canvas: Canvas, bounds: Bounds) -> bool:
        """Draw a frame; returns False when the draw was skipped."""
        try:
            self._check_surface(bounds)
        except SurfaceUnavailableError as e:
            logger.debug("Skipping draw: %s", e)
            return False
        try:
            instant = self._read_clock()
        except TimeSourceError as e:
            if self._last_instant is None:
                logger.warning("Skipping draw: %s", e)
                return False
            logger.warning("%s; redrawing the last frame", e)
            instant = self._last_instant

        # Snapshots: nothing below reads mutable state again.
        options = self.frame_options()
        location = self._location if options.use_location else None
        when = astronomy.civil_time(instant, self._state.time_zone)
        self._painter.draw(canvas, bounds, self.current_palette(), when, location, options,
                           self._cache)
        self._last_instant = instant
        return True

    # --- derived state ---

    def frame_options(self) -> Options:
        """Options as drawn: no second hand in ambient mode, no smoothing without one."""
        options = self._options
        show_second_hand = options.show_second_hand and not self._state.ambient
        return replace(
            options,
            show_second_hand=show_second_hand,
            animate_second_hand_smoothly=show_second_hand and options.animate_second_hand_smoothly,
        )

    def current_palette(self) -> Palette:
        if self._state.ambient:
            palette = self._palettes[PaletteMode.AMBIENT]
        elif self._options.colour_scheme is ColourScheme.VIVID:
            palette = self._palettes[PaletteMode.VIVID]
        else:
            palette = self._palettes[PaletteMode.MUTED]
        return palette.dim() if self._state.mute_mode else palette

    # --- internals ---

    def _create_palettes(self) -> None:
        radius = self._state.face_radius
        self._palettes = {
            PaletteMode.MUTED: muted_palette(radius),
            PaletteMode.VIVID: vivid_palette(radius),
            PaletteMode.AMBIENT: ambient_palette(
                radius, self._state.low_bit_ambient, self._state.burn_in_protection
            ),
        }

    def _check_surface(self, bounds: Bounds) -> None:
        if not self._palettes:
            raise SurfaceUnavailableError("surface size not known yet")
        if bounds.is_empty:
            raise SurfaceUnavailableError(f"empty bounds {bounds}")

    def _read_clock(self) -> float:
        try:
            return self._clock()
        except (OSError, ValueError, OverflowError) as e:
            raise TimeSourceError(f"clock failed: {e}") from e

    def _register_time_zone_listener(self) -> None:
        if self._listening:
            return
        self._listening = True
        self._host.register_time_zone_listener(self.on_time_zone_changed)

    def _unregister_time_zone_listener(self) -> None:
        if not self._listening:
            return
        self._listening = False
        self._host.unregister_time_zone_listener(self.on_time_zone_changed)
