"""Tick scheduler: picks the redraw cadence and aligns wakeups to the wall clock.

The scheduler runs on the host's event loop and needs only the asyncio loop
API: `call_soon`, `call_later`, and `cancel()` on the handles they return.
"""

import asyncio
import logging
import time
from collections.abc import Callable
from datetime import timedelta

from stylin247.models import EngineState, Options

logger = logging.getLogger(__name__)

SMOOTH_UPDATE_RATE = timedelta(seconds=1) / 20
SECOND_UPDATE_RATE = timedelta(seconds=1)
MINUTE_UPDATE_RATE = timedelta(minutes=1)


def cadence_for(state: EngineState, options: Options) -> timedelta | None:
    """Self-scheduled redraw interval, or None when the host's minute tick drives redraws."""
    if state.ambient or not state.visible:
        return None
    if options.show_second_hand:
        if options.animate_second_hand_smoothly:
            return SMOOTH_UPDATE_RATE
        return SECOND_UPDATE_RATE
    return MINUTE_UPDATE_RATE


def delay_until_next(now_ms: int, cadence_ms: int) -> int:
    """Milliseconds until the next multiple of the cadence on the wall clock."""
    return cadence_ms - now_ms % cadence_ms


class TickScheduler:
    """Calls `on_tick` at the cadence the current state and options call for.

    At most one callback is pending at a time; its handle is the token that
    revokes it.
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        on_tick: Callable[[], None],
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._loop = loop
        self._on_tick = on_tick
        self._clock = clock
        self._handle: asyncio.Handle | None = None
        self._cadence: timedelta | None = None

    @property
    def cadence(self) -> timedelta | None:
        return self._cadence

    @property
    def armed(self) -> bool:
        return self._handle is not None

    def update(self, state: EngineState, options: Options) -> None:
        """Re-evaluate the cadence; tick at once and re-arm if one applies."""
        self.cancel()
        self._cadence = cadence_for(state, options)
        if self._cadence is None:
            logger.debug("Scheduler idle; host ticks drive redraws")
            return
        logger.debug("Scheduler cadence %s", self._cadence)
        self._handle = self._loop.call_soon(self._tick)

    def cancel(self) -> None:
        """Revoke the pending callback, if any."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._cadence = None

    def _tick(self) -> None:
        self._handle = None
        if self._cadence is None:
            return
        self._on_tick()
        # on_tick may have disarmed or re-armed us.
        if self._cadence is None or self._handle is not None:
            return
        cadence_ms = self._cadence // timedelta(milliseconds=1)
        try:
            now_ms = int(self._clock() * 1000)
        except (OSError, ValueError, OverflowError) as e:
            logger.warning("Clock failed (%s); next tick in one full cadence", e)
            delay_ms = cadence_ms
        else:
            delay_ms = delay_until_next(now_ms, cadence_ms)
        self._handle = self._loop.call_later(delay_ms / 1000, self._tick)
