"""Timer scheduling for the handshake, on an event loop or a virtual clock."""

import asyncio
import heapq
import itertools
import logging
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger("playbook_share.scheduler")


class TimerHandle:
    """Cancellable scheduled callback."""

    def __init__(self, callback: Callable[[], None]):
        self._callback = callback
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def _run(self) -> None:
        if not self._cancelled:
            self._callback()


class RepeatingTimer(TimerHandle):
    """Fires every `interval` seconds until cancelled."""

    def __init__(self, scheduler: "Scheduler", interval: float, callback: Callable[[], None]):
        super().__init__(callback)
        self._scheduler = scheduler
        self.interval = interval
        self._next: Optional[TimerHandle] = None

    def start(self, first_delay: float) -> "RepeatingTimer":
        self._next = self._scheduler.call_later(first_delay, self._tick)
        return self

    def cancel(self) -> None:
        super().cancel()
        if self._next is not None:
            self._next.cancel()

    def _tick(self) -> None:
        if self._cancelled:
            return
        # Reschedule first so the callback may cancel the timer.
        self._next = self._scheduler.call_later(self.interval, self._tick)
        self._callback()


class Scheduler(ABC):
    """Clock plus one-shot and periodic callbacks."""

    @abstractmethod
    def now(self) -> float:
        """Current time in seconds."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run callback once after `delay` seconds."""

    def call_soon(self, callback: Callable[[], None]) -> TimerHandle:
        return self.call_later(0.0, callback)

    def call_every(
        self,
        interval: float,
        callback: Callable[[], None],
        first_delay: Optional[float] = None
    ) -> RepeatingTimer:
        """Run callback every `interval` seconds (first run after `first_delay`)."""
        if interval <= 0:
            raise ValueError("interval must be positive")
        delay = interval if first_delay is None else first_delay
        return RepeatingTimer(self, interval, callback).start(delay)


class AsyncioScheduler(Scheduler):
    """Scheduler backed by an asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now(self) -> float:
        return self.loop.time()

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = _LoopTimerHandle(callback)
        handle._loop_handle = self.loop.call_later(delay, handle._run)
        return handle


class _LoopTimerHandle(TimerHandle):
    _loop_handle: Optional[asyncio.TimerHandle] = None

    def cancel(self) -> None:
        super().cancel()
        if self._loop_handle is not None:
            self._loop_handle.cancel()


class ManualScheduler(Scheduler):
    """
    Virtual clock for tests. Nothing runs until advance() is called; due
    callbacks then run in time order, including ones scheduled while
    advancing.
    """

    def __init__(self, start: float = 0.0):
        self._now = start
        self._queue: List[Tuple[float, int, TimerHandle]] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(callback)
        heapq.heappush(self._queue, (self._now + max(0.0, delay), next(self._seq), handle))
        return handle

    def advance(self, seconds: float) -> None:
        """Move the clock forward, running everything that falls due."""
        deadline = self._now + seconds
        while self._queue and self._queue[0][0] <= deadline:
            when, _, handle = heapq.heappop(self._queue)
            self._now = max(self._now, when)
            handle._run()
        self._now = deadline

    def run_pending(self) -> None:
        """Run callbacks due now (zero-delay deliveries) without moving the clock."""
        self.advance(0.0)

    def pending(self) -> int:
        """Number of live (not cancelled) scheduled callbacks."""
        return sum(1 for _, _, h in self._queue if not h.cancelled)
