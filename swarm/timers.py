from __future__ import annotations

import heapq
import itertools
import time
from typing import Callable, List, Optional, Tuple

Callback = Callable[[], None]

# Rebuild the timer heap once this many cancelled entries pile up and they
# outnumber the live ones.
_COMPACT_MIN_CANCELLED = 16


class ManualClock:
    """Monotonic clock that only moves when told to; drives headless runs and tests."""

    def __init__(self, start: float = 0.0) -> None:
        self._now = float(start)

    def __call__(self) -> float:
        return self._now

    def advance(self, seconds: float) -> float:
        if seconds < 0:
            raise ValueError("ManualClock cannot move backwards.")
        self._now += seconds
        return self._now


class TimerHandle:
    """Cancellable single-shot callback."""

    __slots__ = ("when", "callback", "_cancelled", "_fired", "_scheduler")

    def __init__(self, when: float, callback: Callback, scheduler: Optional["Scheduler"] = None) -> None:
        self.when = when
        self.callback = callback
        self._cancelled = False
        self._fired = False
        self._scheduler = scheduler

    def cancel(self) -> None:
        if not self.pending:
            return
        self._cancelled = True
        if self._scheduler is not None:
            self._scheduler._timer_cancelled()
            self._scheduler = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def pending(self) -> bool:
        return not (self._cancelled or self._fired)

    def _fire(self) -> None:
        self._fired = True
        self._scheduler = None
        self.callback()


class Scheduler:
    """Single-threaded timer queue plus a one-slot "before next repaint" request.

    Nothing here runs by itself: the host calls :meth:`run_due` and
    :meth:`run_frame` from its loop, so timers, input callbacks and the frame
    step all share one thread of control.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._queue: List[Tuple[float, int, TimerHandle]] = []
        self._counter = itertools.count()
        self._frame: Optional[TimerHandle] = None
        self._cancelled_count = 0

    def call_later(self, delay: float, callback: Callback) -> TimerHandle:
        handle = TimerHandle(self._clock() + max(0.0, float(delay)), callback, self)
        heapq.heappush(self._queue, (handle.when, next(self._counter), handle))
        return handle

    def request_frame(self, callback: Callback) -> TimerHandle:
        if self._frame is not None:
            self._frame.cancel()
        self._frame = TimerHandle(self._clock(), callback)
        return self._frame

    def cancel_frame(self) -> None:
        if self._frame is not None:
            self._frame.cancel()
            self._frame = None

    def run_due(self) -> int:
        """Fire every timer whose deadline has passed, earliest first."""
        now = self._clock()
        fired = 0
        while self._queue and self._queue[0][0] <= now:
            _, _, handle = heapq.heappop(self._queue)
            if handle.cancelled:
                self._cancelled_count -= 1
                continue
            handle._fire()
            fired += 1
        return fired

    def run_frame(self) -> bool:
        handle, self._frame = self._frame, None
        if handle is None or handle.cancelled:
            return False
        handle._fire()
        return True

    def cancel_all(self) -> None:
        queue, self._queue = self._queue, []
        self._cancelled_count = 0
        for _, _, handle in queue:
            handle._scheduler = None
            handle.cancel()
        self.cancel_frame()

    @property
    def pending(self) -> int:
        return len(self._queue) - self._cancelled_count

    def _timer_cancelled(self) -> None:
        self._cancelled_count += 1
        if self._cancelled_count > _COMPACT_MIN_CANCELLED and 2 * self._cancelled_count > len(self._queue):
            self._queue = [entry for entry in self._queue if not entry[2].cancelled]
            heapq.heapify(self._queue)
            self._cancelled_count = 0
