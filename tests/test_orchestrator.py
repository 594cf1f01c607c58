# tests/test_orchestrator.py

from datetime import datetime

import pytest
from pytz import utc

from conftest import RecordingCanvas
from stylin247.models import Bounds, ColourScheme, Coordinate, Options, PaletteMode
from stylin247.orchestrator import WatchFace
from stylin247.palette import MUTED_HAND_ALPHA, MUTED_SECOND_HAND_ALPHA
from stylin247.scheduler import MINUTE_UPDATE_RATE, SECOND_UPDATE_RATE

NOON = datetime(2024, 6, 21, 12, tzinfo=utc).timestamp()


def _hands(canvas: RecordingCanvas) -> list[tuple]:
    return [op[1:3] for op in canvas.named("line")][-3:]


class FailingClock:
    """Clock that succeeds until told to fail."""

    def __init__(self, value: float) -> None:
        self.value = value
        self.failing = False

    def __call__(self) -> float:
        if self.failing:
            raise OSError("clock unavailable")
        return self.value


@pytest.fixture
def options() -> dict:
    """Mutable holder the face reads its options from."""
    return {"value": Options()}


@pytest.fixture
def face(host, loop, options) -> WatchFace:
    face = WatchFace(host, loop, lambda: options["value"], clock=lambda: NOON)
    face.on_surface_changed(400, 400)
    return face


class TestDraw:
    def test_skips_before_surface_known(self, host, loop, bounds):
        face = WatchFace(host, loop, Options, clock=lambda: NOON)
        assert face.on_draw(RecordingCanvas(), bounds) is False

    def test_skips_empty_bounds(self, face):
        assert face.on_draw(RecordingCanvas(), Bounds(0, 0, 0, 0)) is False

    def test_draws_frame(self, face, bounds):
        canvas = RecordingCanvas()
        assert face.on_draw(canvas, bounds) is True
        assert canvas.ops[0][0] == "blit"

    def test_clock_failure_before_any_frame_skips(self, host, loop, bounds):
        clock = FailingClock(NOON)
        clock.failing = True
        face = WatchFace(host, loop, Options, clock=clock)
        face.on_surface_changed(400, 400)
        assert face.on_draw(RecordingCanvas(), bounds) is False

    def test_clock_failure_reuses_last_instant(self, host, loop, bounds):
        clock = FailingClock(NOON)
        face = WatchFace(host, loop, lambda: Options(show_second_hand=True), clock=clock)
        face.on_surface_changed(400, 400)
        first = RecordingCanvas()
        assert face.on_draw(first, bounds)

        clock.failing = True
        second = RecordingCanvas()
        assert face.on_draw(second, bounds)
        assert _hands(second) == _hands(first)

    def test_location_ignored_unless_enabled(self, host, loop, bounds):
        arctic = Coordinate(80.0, 0.0)
        december = datetime(2024, 12, 21, 12, tzinfo=utc).timestamp()
        face = WatchFace(host, loop, Options, location=arctic, clock=lambda: december)
        face.on_surface_changed(400, 400)
        canvas = RecordingCanvas()
        face.on_draw(canvas, bounds)
        assert len(canvas.layers[0].layers) == 2

        face = WatchFace(host, loop, lambda: Options(use_location=True), location=arctic,
                         clock=lambda: december)
        face.on_surface_changed(400, 400)
        canvas = RecordingCanvas()
        face.on_draw(canvas, bounds)
        assert len(canvas.layers[0].layers) == 1


class TestPalettes:
    def test_default_is_muted(self, face):
        assert face.current_palette().mode is PaletteMode.MUTED

    def test_vivid_scheme(self, host, loop):
        face = WatchFace(host, loop, lambda: Options(colour_scheme=ColourScheme.VIVID))
        face.on_surface_changed(400, 400)
        assert face.current_palette().mode is PaletteMode.VIVID

    def test_ambient_overrides_scheme(self, face):
        face.on_ambient_mode_changed(True)
        assert face.current_palette().mode is PaletteMode.AMBIENT

    def test_properties_rebuild_ambient_palette(self, face):
        face.on_properties_changed(low_bit_ambient=True, burn_in_protection=True)
        face.on_ambient_mode_changed(True)
        palette = face.current_palette()
        assert palette.low_bit_ambient
        assert palette.burn_in_protection

    def test_palette_radius_follows_surface(self, face):
        face.on_surface_changed(320, 320)
        assert face.state.face_radius == 160
        assert face.current_palette().face_radius == 160

    def test_mute_dims_hands(self, face, host):
        before = host.invalidations
        face.on_interruption_filter_changed(True)
        palette = face.current_palette()
        assert palette.hour_hand.alpha == MUTED_HAND_ALPHA
        assert palette.minute_hand.alpha == MUTED_HAND_ALPHA
        assert palette.second_hand.alpha == MUTED_SECOND_HAND_ALPHA
        assert host.invalidations == before + 1

        face.on_interruption_filter_changed(False)
        assert face.current_palette().hour_hand.alpha == 255

    def test_repeated_mute_is_ignored(self, face, host):
        face.on_interruption_filter_changed(True)
        before = host.invalidations
        face.on_interruption_filter_changed(True)
        assert host.invalidations == before


class TestFrameOptions:
    def test_ambient_hides_second_hand(self, host, loop):
        face = WatchFace(host, loop, lambda: Options(show_second_hand=True,
                                                     animate_second_hand_smoothly=True))
        face.on_ambient_mode_changed(True)
        options = face.frame_options()
        assert not options.show_second_hand
        assert not options.animate_second_hand_smoothly

    def test_smoothing_requires_second_hand(self, host, loop):
        face = WatchFace(host, loop, lambda: Options(animate_second_hand_smoothly=True))
        assert not face.frame_options().animate_second_hand_smoothly


class TestLifecycle:
    def test_visible_starts_scheduler_and_listens(self, face, host):
        face.on_visibility_changed(True)
        assert face.scheduler.cadence == MINUTE_UPDATE_RATE
        assert face.scheduler.armed
        assert host.listeners == [face.on_time_zone_changed]

    def test_hidden_stops_scheduler_and_listening(self, face, host):
        face.on_visibility_changed(True)
        face.on_visibility_changed(False)
        assert not face.scheduler.armed
        assert host.listeners == []

    def test_ambient_idles_scheduler(self, face):
        face.on_visibility_changed(True)
        face.on_ambient_mode_changed(True)
        assert not face.scheduler.armed

    def test_options_change_updates_cadence(self, face, options):
        face.on_visibility_changed(True)
        options["value"] = Options(show_second_hand=True)
        face.on_options_changed()
        assert face.scheduler.cadence == SECOND_UPDATE_RATE

    def test_visibility_rereads_zone_and_options(self, face, host, options):
        host.time_zone = "Asia/Seoul"
        options["value"] = Options(show_hour_numbers=True)
        face.on_visibility_changed(True)
        assert face.state.time_zone == "Asia/Seoul"
        assert face.options.show_hour_numbers

    def test_time_zone_broadcast(self, face, host, bounds):
        face.on_visibility_changed(True)
        before = host.invalidations
        host.broadcast("America/New_York")
        assert face.state.time_zone == "America/New_York"
        assert host.invalidations == before + 1

        canvas = RecordingCanvas()
        face.on_draw(canvas, bounds)
        # 08:00 in New York: hour hand at 8 * 15 + 180 = 300 degrees.
        hour_hand = next(op for op in canvas.named("line")
                         if op[3] == face.current_palette().hour_hand)
        (cx, cy), (x, y) = hour_hand[1], hour_hand[2]
        assert x < cx and y < cy

    def test_tap_and_time_tick_request_redraw(self, face, host):
        before = host.invalidations
        face.on_tap(10, 10)
        face.on_time_tick()
        assert host.invalidations == before + 2

    def test_destroy(self, face, host):
        face.on_visibility_changed(True)
        face.destroy()
        assert not face.scheduler.armed
        assert host.listeners == []

    def test_location_change_invalidates_cache(self, face, bounds):
        face.on_draw(RecordingCanvas(), bounds)
        face.on_location_changed(Coordinate(51.5, -0.1))
        canvas = RecordingCanvas()
        face.on_draw(canvas, bounds)
        assert len(canvas.layers) == 1
