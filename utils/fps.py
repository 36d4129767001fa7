from __future__ import annotations

import time
from collections import deque
from typing import Callable, Deque


class FPSCounter:
    """Smoothed frames-per-second over the last ``average_over`` ticks."""

    def __init__(self, average_over: int = 60, clock: Callable[[], float] = time.perf_counter) -> None:
        self._clock = clock
        self._timestamps: Deque[float] = deque(maxlen=max(2, average_over))

    def tick(self) -> float:
        self._timestamps.append(self._clock())
        return self.fps

    @property
    def fps(self) -> float:
        if len(self._timestamps) < 2:
            return 0.0
        elapsed = self._timestamps[-1] - self._timestamps[0]
        if elapsed <= 0:
            return 0.0
        return (len(self._timestamps) - 1) / elapsed
