from __future__ import annotations

from collections import deque
from typing import Deque, Iterable, List, Optional

import numpy as np

HAND_LANDMARKS = 21


class ExponentialSmoother:
    """Scalar/vector exponential moving average."""

    def __init__(self, alpha: float) -> None:
        self.alpha = float(np.clip(alpha, 1e-4, 0.999))
        self._state: Optional[np.ndarray] = None

    def update(self, value: Iterable[float]) -> np.ndarray:
        vec = np.asarray(value, dtype=np.float32)
        if self._state is None:
            self._state = vec.copy()
        else:
            self._state = self.alpha * vec + (1.0 - self.alpha) * self._state
        return self._state

    def reset(self) -> None:
        self._state = None


class LandmarkSmoother:
    """Per-landmark position smoothing."""

    def __init__(self, alpha: float, count: int = HAND_LANDMARKS) -> None:
        self._count = count
        self._smoothers: List[ExponentialSmoother] = [ExponentialSmoother(alpha) for _ in range(count)]

    def update(self, landmarks: np.ndarray) -> np.ndarray:
        if landmarks.shape[0] != self._count:
            raise ValueError(f"Expected {self._count} landmarks, got {landmarks.shape[0]}.")
        smoothed = [self._smoothers[i].update(landmarks[i]) for i in range(self._count)]
        return np.stack(smoothed, axis=0)

    def reset(self) -> None:
        for smoother in self._smoothers:
            smoother.reset()


class TemporalStabilizer:
    """Keeps a rolling buffer of boolean states for stability checks."""

    def __init__(self, window: int) -> None:
        self._window = max(1, window)
        self._buffer: Deque[bool] = deque(maxlen=self._window)

    def push(self, value: bool) -> float:
        self._buffer.append(bool(value))
        return self.ratio

    @property
    def ratio(self) -> float:
        if not self._buffer:
            return 0.0
        return sum(self._buffer) / len(self._buffer)

    def is_stable(self, threshold: float) -> bool:
        # A partially filled window is never stable.
        if len(self._buffer) < self._window:
            return False
        return self.ratio >= threshold

    def clear(self) -> None:
        self._buffer.clear()
