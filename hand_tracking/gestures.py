from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np

from utils.config import GestureConfig, HandSample
from utils.smoothing import TemporalStabilizer

THUMB_TIP = 4
INDEX_TIP = 8
WRIST = 0
MIDDLE_MCP = 9


@dataclass
class HandDetection:
    landmarks: np.ndarray  # (21, 3) normalized, mirrored when configured
    pointer: np.ndarray  # (2,) index fingertip clipped to [0, 1]


def landmark_array(points: Iterable, mirror: bool = True) -> np.ndarray:
    """MediaPipe landmark objects to an (N, 3) array, optionally flipped left to right."""
    coords = np.array([(lm.x, lm.y, lm.z) for lm in points], dtype=np.float32)
    if mirror:
        coords[:, 0] = 1.0 - coords[:, 0]
    return coords


def fingertip(landmarks: np.ndarray) -> np.ndarray:
    return np.clip(landmarks[INDEX_TIP, :2], 0.0, 1.0)


def pinch_ratio(landmarks: np.ndarray) -> float:
    """Thumb-to-index distance relative to palm length, so it holds at any camera distance."""
    gap = np.linalg.norm(landmarks[THUMB_TIP, :2] - landmarks[INDEX_TIP, :2])
    palm = np.linalg.norm(landmarks[MIDDLE_MCP, :2] - landmarks[WRIST, :2])
    return float(gap / max(palm, 1e-6))


class PinchClassifier:
    """Pinch as contact-down, with hysteresis over the last few frames."""

    def __init__(self, config: GestureConfig) -> None:
        self._config = config
        self._stabilizer = TemporalStabilizer(config.stability_frames)
        self._pinched = False

    @property
    def pinched(self) -> bool:
        return self._pinched

    def is_pinch(self, landmarks: np.ndarray) -> bool:
        return pinch_ratio(landmarks) < self._config.pinch_threshold

    def update(self, landmarks: Optional[np.ndarray]) -> bool:
        if landmarks is None:
            self._stabilizer.clear()
            self._pinched = False
            return False
        self._stabilizer.push(self.is_pinch(landmarks))
        if not self._pinched and self._stabilizer.is_stable(self._config.engage_ratio):
            self._pinched = True
        elif self._pinched and self._stabilizer.ratio <= self._config.release_ratio:
            self._pinched = False
        return self._pinched

    def classify(self, detection: Optional[HandDetection]) -> Optional[HandSample]:
        if detection is None:
            self.update(None)
            return None
        pinched = self.update(detection.landmarks)
        return HandSample(x=float(detection.pointer[0]), y=float(detection.pointer[1]), pinched=pinched)
