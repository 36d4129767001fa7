from __future__ import annotations

from typing import Tuple

import numpy as np


class ParticleStore:
    """Fixed-size particle collection kept as parallel numpy arrays.

    Row ``i`` of ``positions``, ``rest`` and ``text_targets`` all describe the
    same particle; layouts are assigned by index.
    """

    def __init__(self, size: float = 1.8, density_range: Tuple[float, float] = (10.0, 40.0)) -> None:
        self.size = float(size)
        self._density_range = density_range
        self.positions = np.zeros((0, 2), dtype=np.float64)
        self.rest = np.zeros((0, 2), dtype=np.float64)
        self.text_targets = np.zeros((0, 2), dtype=np.float64)
        self.density = np.zeros(0, dtype=np.float64)
        self.disturbed = np.zeros(0, dtype=bool)

    def __len__(self) -> int:
        return self.positions.shape[0]

    @property
    def is_empty(self) -> bool:
        return len(self) == 0

    def populate(self, points: np.ndarray, rng: np.random.Generator) -> None:
        """Replace the whole collection: one particle resting on each point."""
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        count = pts.shape[0]
        low, high = self._density_range
        self.positions = pts.copy()
        self.rest = pts.copy()
        self.text_targets = pts.copy()
        self.density = rng.uniform(low, high, size=count)
        self.disturbed = np.zeros(count, dtype=bool)

    def set_rest(self, targets: np.ndarray) -> None:
        targets = np.asarray(targets, dtype=np.float64)
        if targets.shape != self.rest.shape:
            raise ValueError(f"Layout has shape {targets.shape}, expected {self.rest.shape}.")
        self.rest[...] = targets

    def restore_text_layout(self) -> None:
        self.rest[...] = self.text_targets
