from __future__ import annotations

import logging
from typing import List, Optional

import numpy as np

from rendering.surface import RasterSurface
from swarm.modes import Listener, Mode, ModeStateMachine
from swarm.physics import PhysicsStep, PointerState
from swarm.sampler import ShapeSampler
from swarm.store import ParticleStore
from swarm.timers import Scheduler, TimerHandle
from utils.config import EngineConfig, ModeConfig, PhysicsConfig, SamplerConfig

logger = logging.getLogger(__name__)


class GlyphEngine:
    """Simulation context for one mounted glyph swarm.

    Owns every piece of mutable state (surface, particles, mode machine,
    pointer, timers). The host calls :meth:`start` once, feeds input through
    the pointer/toggle methods, drives the scheduler, and calls :meth:`stop`
    on teardown; after that every deferred callback is a no-op.
    """

    def __init__(
        self,
        surface: Optional[RasterSurface] = None,
        scheduler: Optional[Scheduler] = None,
        sampler_config: SamplerConfig = SamplerConfig(),
        physics_config: PhysicsConfig = PhysicsConfig(),
        mode_config: ModeConfig = ModeConfig(),
        config: EngineConfig = EngineConfig(),
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        self.surface = surface if surface is not None else RasterSurface()
        self.scheduler = scheduler if scheduler is not None else Scheduler()
        self._config = config
        self._rng = rng if rng is not None else np.random.default_rng(config.seed)
        self.store = ParticleStore(physics_config.particle_size, physics_config.density_range)
        self.sampler = ShapeSampler(sampler_config, self._rng)
        self.physics = PhysicsStep(physics_config)
        self.modes = ModeStateMachine(
            self.store,
            self.scheduler,
            mode_config,
            bounds=lambda: (self.surface.width, self.surface.height),
        )
        self.pointer = PointerState()
        self.initialized = False
        self.frames = 0
        self._active = False
        self._stopped = False
        self._empty_frames = 0
        self._retries: List[TimerHandle] = []

    @property
    def active(self) -> bool:
        return self._active

    @property
    def mode(self) -> Mode:
        return self.modes.mode

    @property
    def particle_count(self) -> int:
        return len(self.store)

    def add_listener(self, listener: Listener) -> None:
        self.modes.add_listener(listener)

    # lifecycle

    def start(self, width: int, height: int) -> None:
        if self._stopped:
            raise RuntimeError("A stopped GlyphEngine cannot be restarted.")
        if self._active:
            return
        self._active = True
        self.resize(width, height)
        self.scheduler.request_frame(self.frame)
        self._retries = [self.scheduler.call_later(delay, self._retry) for delay in self._config.retry_delays]
        logger.info("Engine started on %dx%d with %d particles", width, height, len(self.store))

    def stop(self) -> None:
        if not self._active:
            return
        self._active = False
        self._stopped = True
        self.scheduler.cancel_frame()
        for handle in self._retries:
            handle.cancel()
        self._retries = []
        self.modes.shutdown()
        logger.debug("Dropping %d pending timers", self.scheduler.pending)
        self.scheduler.cancel_all()
        logger.info("Engine stopped after %d frames", self.frames)

    # sampling

    def resize(self, width: int, height: int) -> None:
        if not self._active:
            return
        self.surface.resize(width, height)
        self.refresh()

    def refresh(self) -> bool:
        """Re-sample at the current size; ring targets are stale afterwards, so TEXT comes first."""
        if not self._active:
            return False
        self.modes.force_text()
        points = self.sampler.sample(self.surface)
        if points is None:
            return False
        self.store.populate(points, self._rng)
        self.initialized = True
        self._empty_frames = 0
        return True

    def notify_assets_ready(self) -> None:
        if self._active:
            logger.debug("Assets ready, re-sampling")
            self.refresh()

    def _retry(self) -> None:
        if self._active and not self.initialized:
            logger.debug("Retrying glyph sampling")
            self.refresh()

    # input

    def move_pointer(self, x: float, y: float) -> None:
        self.pointer.move_to(x, y)
        self.modes.note_activity()

    def set_contact(self, down: bool) -> None:
        self.pointer.down = bool(down)

    def request_toggle(self) -> bool:
        if not self._active:
            return False
        return self.modes.toggle()

    # frame

    def frame(self) -> None:
        if not self._active:
            return
        self.physics.fade(self.surface)
        if self.store.is_empty:
            self._empty_frames += 1
            if self._empty_frames > self.physics.config.empty_frame_limit:
                logger.warning("No particles for %d frames, forcing a re-sample", self._empty_frames)
                self._empty_frames = 0
                self.refresh()
        self.physics.update(self.store, self.pointer)
        self.physics.draw(self.store, self.surface)
        self.frames += 1
        self.scheduler.request_frame(self.frame)
