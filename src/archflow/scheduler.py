"""
Timers for presentation playback.

Playback needs two kinds of timed actions: a one-shot delayed action (the
title sub-slide auto-advance) and fixed-period ticks (autoplay progress and
the elapsed-time counter). Both are expressed against a small Scheduler
protocol so playback can run on an asyncio event loop or on a manually
advanced virtual clock.

Key Components:
- Scheduler: protocol with ``now()`` and ``call_later()``
- AsyncioScheduler: schedules on an asyncio event loop
- ManualScheduler: virtual clock advanced explicitly, fully deterministic
- Timeout: cancellable one-shot action
- Ticker: start/stop handle around a periodic callback
"""

import asyncio
import heapq
import itertools
from typing import Callable, List, Optional, Protocol, Tuple


class Handle(Protocol):
    """A scheduled call that can be cancelled."""

    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    """Protocol for schedulers."""

    def now(self) -> float:
        """Current time in seconds."""
        ...

    def call_later(self, delay: float, callback: Callable[[], None]) -> Handle:
        """Run ``callback`` once after ``delay`` seconds."""
        ...


class AsyncioScheduler:
    """
    Scheduler backed by an asyncio event loop.

    Without an explicit loop, the running loop is picked up on first use,
    so the first call must happen inside a coroutine or loop callback.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now(self) -> float:
        return self.loop.time()

    def call_later(self, delay: float, callback: Callable[[], None]) -> Handle:
        return self.loop.call_later(delay, callback)


class _ManualHandle:
    def __init__(self):
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """
    Virtual-clock scheduler.

    Nothing runs until ``advance`` is called; callbacks then fire in due
    order, each seeing ``now()`` equal to its due time.

    Example:
        >>> scheduler = ManualScheduler()
        >>> scheduler.call_later(2.0, lambda: print("fired"))
        >>> scheduler.advance(2.0)
        fired
    """

    def __init__(self, start: float = 0.0):
        self._now = start
        self._queue: List[Tuple[float, int, _ManualHandle, Callable[[], None]]] = []
        self._counter = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], None]) -> Handle:
        handle = _ManualHandle()
        due = self._now + max(delay, 0.0)
        heapq.heappush(self._queue, (due, next(self._counter), handle, callback))
        return handle

    @property
    def pending(self) -> int:
        """Number of scheduled, not yet cancelled calls."""
        return sum(1 for _, _, handle, _ in self._queue if not handle.cancelled)

    def advance(self, seconds: float) -> None:
        """Move the clock forward, running everything that falls due."""
        if seconds < 0:
            raise ValueError("cannot advance a scheduler backwards")
        target = self._now + seconds
        # Small tolerance so accumulated float steps still land on their tick
        while self._queue and self._queue[0][0] <= target + 1e-9:
            due, _, handle, callback = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self._now = max(self._now, due)
            callback()
        self._now = target


class Timeout:
    """A one-shot delayed action that can be cancelled before it fires."""

    def __init__(self, scheduler: Scheduler, delay: float, callback: Callable[[], None]):
        self._callback = callback
        self._fired = False
        self._handle: Optional[Handle] = scheduler.call_later(delay, self._fire)

    @property
    def pending(self) -> bool:
        return self._handle is not None and not self._fired

    def _fire(self) -> None:
        self._fired = True
        self._handle = None
        self._callback()

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class Ticker:
    """
    Periodic callback with an explicit start/stop lifecycle.

    Stopping cancels the pending tick, so a stopped ticker never calls back.
    Restarting begins a fresh period.
    """

    def __init__(self, scheduler: Scheduler, period: float, callback: Callable[[], None]):
        if period <= 0:
            raise ValueError("ticker period must be positive")
        self.scheduler = scheduler
        self.period = period
        self._callback = callback
        self._handle: Optional[Handle] = None
        self._generation = 0

    @property
    def running(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        """Start ticking; restarts the period if already running."""
        self.stop()
        self._schedule(self._generation)

    def stop(self) -> None:
        self._generation += 1
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _schedule(self, generation: int) -> None:
        self._handle = self.scheduler.call_later(
            self.period, lambda: self._tick(generation)
        )

    def _tick(self, generation: int) -> None:
        if generation != self._generation:
            return
        # Schedule the next tick first so the callback may stop the ticker
        self._schedule(generation)
        self._callback()
