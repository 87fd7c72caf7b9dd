"""
Tick scheduling for continuous playback.

The engine only needs three things from a clock: the current real time, a way
to run a callback after a delay, and a handle that cancels it. Handles follow
the ``asyncio.Handle`` shape (``cancel()`` / ``cancelled()``) so the asyncio
loop can be used directly.
"""

import asyncio
import heapq
import itertools
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Tuple


class TickScheduler(ABC):
    """Real-time clock with cancel-and-reschedule semantics."""

    @abstractmethod
    def now(self) -> float:
        """Monotonic time in seconds."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]):
        """Run ``callback`` after ``delay`` seconds; returns a cancellable handle."""


class ManualHandle:
    def __init__(self, callback: Callable[[], None]):
        self.callback = callback
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    def cancelled(self) -> bool:
        return self._cancelled


class ManualScheduler(TickScheduler):
    """Deterministic clock advanced explicitly by the caller.

    Used by tests and by the command-line front-end, where playback runs as
    fast as the CPU allows instead of in wall-clock time.
    """

    def __init__(self, start: float = 0.0):
        self._now = start
        self._queue: List[Tuple[float, int, ManualHandle]] = []
        self._counter = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualHandle:
        handle = ManualHandle(callback)
        heapq.heappush(self._queue, (self._now + max(0.0, delay), next(self._counter), handle))
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for _, _, handle in self._queue if not handle.cancelled())

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing every callback that falls due.

        Callbacks scheduled while advancing run too if they fall inside the
        window. Returns the number of callbacks fired.
        """
        target = self._now + seconds
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, handle = heapq.heappop(self._queue)
            if handle.cancelled():
                continue
            self._now = due
            handle.callback()
            fired += 1
        self._now = target
        return fired


class AsyncioScheduler(TickScheduler):
    """Schedules ticks on an asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now(self) -> float:
        return self.loop.time()

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self.loop.call_later(delay, callback)
