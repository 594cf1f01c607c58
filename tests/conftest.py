# tests/conftest.py
"""Shared pytest fixtures for stylin247 tests."""

from datetime import datetime

import pytest
from pytz import utc

from stylin247.models import Bounds


class RecordingCanvas:
    """Canvas that records every call instead of rasterising."""

    def __init__(self, width: int = 400, height: int = 400) -> None:
        self.width = width
        self.height = height
        self.ops: list[tuple] = []
        self.layers: list["RecordingCanvas"] = []

    def fill(self, paint):
        self.ops.append(("fill", paint))

    def draw_line(self, start, end, paint):
        self.ops.append(("line", start, end, paint))

    def draw_circle(self, centre, radius, paint):
        self.ops.append(("circle", centre, radius, paint))

    def draw_oval(self, box, paint):
        self.ops.append(("oval", box, paint))

    def draw_arc(self, box, start, sweep, use_centre, paint):
        self.ops.append(("arc", box, start, sweep, use_centre, paint))

    def draw_path(self, path, paint):
        self.ops.append(("path", path, paint))

    def draw_text_on_path(self, text, path, h_offset, v_offset, paint):
        self.ops.append(("text", text, path, h_offset, v_offset, paint))

    def new_layer(self, width, height):
        layer = RecordingCanvas(width, height)
        self.layers.append(layer)
        return layer

    def blit(self, layer, x, y):
        self.ops.append(("blit", layer, x, y))

    def named(self, name: str) -> list[tuple]:
        return [op for op in self.ops if op[0] == name]

    def paints(self) -> list:
        return [op[-1] for op in self.ops if op[0] not in ("blit",)]


class FakeHandle:
    def __init__(self, loop: "FakeLoop", when: float, callback) -> None:
        self.loop = loop
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeLoop:
    """Just enough of an asyncio loop for the scheduler: call_soon and call_later."""

    def __init__(self) -> None:
        self.handles: list[FakeHandle] = []
        self.delays: list[float] = []

    def call_soon(self, callback):
        handle = FakeHandle(self, 0.0, callback)
        self.handles.append(handle)
        return handle

    def call_later(self, delay, callback):
        self.delays.append(delay)
        handle = FakeHandle(self, delay, callback)
        self.handles.append(handle)
        return handle

    def pending(self) -> list[FakeHandle]:
        return [h for h in self.handles if not h.cancelled]

    def run_once(self) -> int:
        """Run every callback pending right now; returns how many ran."""
        ready = self.pending()
        self.handles = []
        for handle in ready:
            handle.callback()
        return len(ready)


class FakeHost:
    """WatchFaceHost that counts redraw requests."""

    def __init__(self, time_zone: str = "UTC") -> None:
        self.time_zone = time_zone
        self.invalidations = 0
        self.listeners: list = []

    def invalidate(self) -> None:
        self.invalidations += 1

    def default_time_zone(self) -> str:
        return self.time_zone

    def register_time_zone_listener(self, listener) -> None:
        self.listeners.append(listener)

    def unregister_time_zone_listener(self, listener) -> None:
        self.listeners.remove(listener)

    def broadcast(self, time_zone: str) -> None:
        self.time_zone = time_zone
        for listener in list(self.listeners):
            listener()


@pytest.fixture
def canvas() -> RecordingCanvas:
    """400x400 recording canvas."""
    return RecordingCanvas(400, 400)


@pytest.fixture
def bounds() -> Bounds:
    return Bounds(0, 0, 400, 400)


@pytest.fixture
def loop() -> FakeLoop:
    return FakeLoop()


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def solstice_noon() -> datetime:
    """2024-06-21 12:00 UTC."""
    return datetime(2024, 6, 21, 12, 0, 0, tzinfo=utc)
