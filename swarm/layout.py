from __future__ import annotations

from typing import Tuple

import numpy as np


def ring_radius(width: float, height: float, ratio: float = 0.35) -> float:
    return min(width, height) * ratio


def ring_layout(center: Tuple[float, float], radius: float, count: int) -> np.ndarray:
    """``count`` points evenly spaced on a circle, point ``i`` at angle ``2*pi*i/count``."""
    if count <= 0:
        return np.zeros((0, 2), dtype=np.float64)
    angles = np.arange(count, dtype=np.float64) * (2.0 * np.pi / count)
    x = center[0] + np.cos(angles) * radius
    y = center[1] + np.sin(angles) * radius
    return np.stack([x, y], axis=1)
