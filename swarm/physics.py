from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from rendering.surface import RasterSurface
from swarm.store import ParticleStore
from utils.config import PhysicsConfig


@dataclass
class PointerState:
    x: Optional[float] = None
    y: Optional[float] = None
    down: bool = False

    @property
    def position(self) -> Optional[Tuple[float, float]]:
        if self.x is None or self.y is None:
            return None
        return self.x, self.y

    def move_to(self, x: float, y: float) -> None:
        self.x = float(x)
        self.y = float(y)


def apply_repulsion(
    store: ParticleStore,
    pointer: PointerState,
    radius: float,
    strength: float,
    min_distance: float,
) -> int:
    """Push particles inside ``radius`` straight away from a held pointer.

    Recomputes the disturbed flags and returns how many particles are disturbed.
    """
    contact = pointer.position
    if not pointer.down or contact is None or store.is_empty:
        store.disturbed[...] = False
        return 0
    delta = np.asarray(contact, dtype=np.float64) - store.positions
    distance = np.hypot(delta[:, 0], delta[:, 1])
    hit = (distance < radius) & (distance > min_distance)
    store.disturbed[...] = hit
    if not hit.any():
        return 0
    dist = distance[hit][:, None]
    force = (radius - dist) / radius
    store.positions[hit] -= delta[hit] / dist * force * store.density[hit][:, None] * strength
    return int(hit.sum())


def ease_to_rest(store: ParticleStore, divisor: float) -> None:
    """Close ``1/divisor`` of the gap to the rest position in each axis."""
    store.positions -= (store.positions - store.rest) / divisor


class PhysicsStep:
    """Per-frame update and draw of the particle swarm."""

    def __init__(self, config: PhysicsConfig) -> None:
        self._config = config

    @property
    def config(self) -> PhysicsConfig:
        return self._config

    def fade(self, surface: RasterSurface) -> None:
        surface.fill_rect(self._config.trail_color, self._config.trail_opacity)

    def update(self, store: ParticleStore, pointer: PointerState) -> int:
        cfg = self._config
        disturbed = apply_repulsion(store, pointer, cfg.pointer_radius, cfg.strength, cfg.min_distance)
        ease_to_rest(store, cfg.ease_divisor)
        return disturbed

    def draw(self, store: ParticleStore, surface: RasterSurface) -> None:
        if store.is_empty:
            return
        cfg = self._config
        radius = store.size / 2.0
        calm = ~store.disturbed
        surface.fill_circles(store.positions[calm], radius, cfg.particle_color, cfg.rest_opacity)
        surface.fill_circles(store.positions[store.disturbed], radius, cfg.particle_color, cfg.disturbed_opacity)
