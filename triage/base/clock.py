"""
triage/base/clock.py
Clock abstraction for the engine's timers.

Everything time-driven in the engine (ingestion ticks, the simulated scan
delay) goes through a Clock so it can be cancelled on teardown and driven by
virtual time in tests.

INVARIANTS:
1. call_later() never blocks; it returns a handle with cancel().
2. A cancelled handle never fires.
3. ManualClock fires callbacks in deadline order (ties in scheduling order).
"""

import asyncio
import heapq
import itertools
import logging
from typing import Any, Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)


class Clock:
    """Interface for a monotonic time source that can schedule callbacks."""

    def time(self) -> float:
        raise NotImplementedError

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any):
        """Schedule callback(*args) after delay seconds. Returns a cancelable handle."""
        raise NotImplementedError


class LoopClock(Clock):
    """
    Clock backed by an asyncio event loop.

    Handles are asyncio.TimerHandle instances, so cancel() is the loop's own.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop or asyncio.get_running_loop()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    def time(self) -> float:
        return self._loop.time()

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> asyncio.TimerHandle:
        return self._loop.call_later(delay, callback, *args)


class ManualTimer:
    """Handle returned by ManualClock.call_later()."""

    __slots__ = ("_when", "_callback", "_args", "_cancelled")

    def __init__(self, when: float, callback: Callable[..., Any], args: Tuple[Any, ...]):
        self._when = when
        self._callback = callback
        self._args = args
        self._cancelled = False

    def when(self) -> float:
        return self._when

    def cancel(self) -> None:
        self._cancelled = True

    def cancelled(self) -> bool:
        return self._cancelled

    def _run(self) -> None:
        self._callback(*self._args)


class ManualClock(Clock):
    """
    Virtual clock. Time only moves when advance() is called.

    Used by the test-suite and by the headless `simulate` command, where a
    whole session is replayed without sleeping.
    """

    def __init__(self, start: float = 0.0):
        self._now = float(start)
        self._queue: List[Tuple[float, int, ManualTimer]] = []
        self._sequence = itertools.count()

    def time(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> ManualTimer:
        timer = ManualTimer(self._now + max(0.0, float(delay)), callback, args)
        heapq.heappush(self._queue, (timer.when(), next(self._sequence), timer))
        return timer

    def pending(self) -> int:
        """Number of scheduled, not-yet-cancelled timers."""
        return sum(1 for _, _, timer in self._queue if not timer.cancelled())

    def advance(self, seconds: float) -> int:
        """
        Move virtual time forward, firing every timer that comes due.

        Callbacks scheduled by a firing callback are honoured if they fall
        inside the window. Returns the number of callbacks fired.
        """
        if seconds < 0:
            raise ValueError("ManualClock cannot move backwards")

        target = self._now + seconds
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            when, _, timer = heapq.heappop(self._queue)
            if timer.cancelled():
                continue
            self._now = when
            timer._run()
            fired += 1
        self._now = target
        return fired
