"""Asyncio host that renders every requested frame to a PNG file.

Stands in for a watch's surface: it owns the event loop, answers redraw
requests, delivers the per-minute time tick the face relies on in ambient
mode, and relays time-zone changes.
"""

import asyncio
import logging
import time
from collections.abc import Callable
from pathlib import Path

from stylin247.models import Bounds
from stylin247.orchestrator import WatchFace
from stylin247.renderers.matplotlib_canvas import MatplotlibCanvas
from stylin247.scheduler import MINUTE_UPDATE_RATE, delay_until_next

logger = logging.getLogger(__name__)


class PngHost:
    """`WatchFaceHost` that writes frames to `output`."""

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        output: Path,
        size: int,
        time_zone: str,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._loop = loop
        self._output = output
        self._size = size
        self._time_zone = time_zone
        self._clock = clock
        self._listeners: list[Callable[[], None]] = []
        self._face: WatchFace | None = None
        self._draw_pending = False
        self._minute_handle: asyncio.TimerHandle | None = None
        self.frames = 0

    def attach(self, face: WatchFace) -> None:
        self._face = face
        face.on_surface_changed(self._size, self._size)

    def start(self) -> None:
        self._arm_minute_tick()

    def stop(self) -> None:
        if self._minute_handle is not None:
            self._minute_handle.cancel()
            self._minute_handle = None

    # --- WatchFaceHost ---

    def invalidate(self) -> None:
        if self._draw_pending:
            return
        self._draw_pending = True
        self._loop.call_soon(self._draw)

    def default_time_zone(self) -> str:
        return self._time_zone

    def register_time_zone_listener(self, listener: Callable[[], None]) -> None:
        self._listeners.append(listener)

    def unregister_time_zone_listener(self, listener: Callable[[], None]) -> None:
        self._listeners.remove(listener)

    def set_time_zone(self, name: str) -> None:
        """Change the system zone and broadcast it to registered listeners."""
        self._time_zone = name
        for listener in list(self._listeners):
            listener()

    # --- internals ---

    def _draw(self) -> None:
        self._draw_pending = False
        if self._face is None:
            return
        canvas = MatplotlibCanvas(self._size, self._size)
        if self._face.on_draw(canvas, Bounds(0, 0, self._size, self._size)):
            canvas.save(self._output)
            self.frames += 1
            logger.debug("Frame %d written to %s", self.frames, self._output)

    def _arm_minute_tick(self) -> None:
        minute_ms = MINUTE_UPDATE_RATE.seconds * 1000
        delay_ms = delay_until_next(int(self._clock() * 1000), minute_ms)
        self._minute_handle = self._loop.call_later(delay_ms / 1000, self._minute_tick)

    def _minute_tick(self) -> None:
        if self._face is not None and self._face.state.ambient:
            self._face.on_time_tick()
        self._arm_minute_tick()
