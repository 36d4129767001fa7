from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from swarm.layout import ring_layout, ring_radius
from swarm.store import ParticleStore
from swarm.timers import Callback, Scheduler, TimerHandle
from utils.config import ModeConfig

logger = logging.getLogger(__name__)


class Mode(enum.Enum):
    TEXT = "text"
    RING = "ring"


@dataclass(frozen=True)
class ModeSnapshot:
    mode: Mode
    transitioning: bool
    action_visible: bool
    action_clickable: bool


Listener = Callable[[ModeSnapshot], None]


class ModeStateMachine:
    """TEXT/RING layout switching with a cooldown guard and owned timers.

    Every timer is kept as a handle on the machine and cancelled before it is
    re-armed, so a superseded transition can never fire late.
    """

    def __init__(
        self,
        store: ParticleStore,
        scheduler: Scheduler,
        config: ModeConfig,
        bounds: Callable[[], Tuple[int, int]],
    ) -> None:
        self._store = store
        self._scheduler = scheduler
        self._config = config
        self._bounds = bounds
        self._mode = Mode.TEXT
        self._transitioning = False
        self._action_visible = False
        self._action_clickable = False
        self._active = True
        self._inactivity: Optional[TimerHandle] = None
        self._clickability: Optional[TimerHandle] = None
        self._cooldown: Optional[TimerHandle] = None
        self._listeners: List[Listener] = []

    @property
    def mode(self) -> Mode:
        return self._mode

    @property
    def action_visible(self) -> bool:
        return self._action_visible

    @property
    def action_clickable(self) -> bool:
        return self._action_clickable

    def snapshot(self) -> ModeSnapshot:
        return ModeSnapshot(self._mode, self._transitioning, self._action_visible, self._action_clickable)

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def toggle(self) -> bool:
        if not self._active:
            return False
        if self._transitioning:
            logger.debug("Ignoring toggle while a transition is in flight")
            return False
        self._transition(Mode.RING if self._mode is Mode.TEXT else Mode.TEXT)
        return True

    def force_text(self) -> bool:
        """Return to TEXT immediately, even mid-cooldown; used when ring targets go stale."""
        if not self._active or self._mode is Mode.TEXT:
            return False
        self._transition(Mode.TEXT)
        return True

    def note_activity(self) -> None:
        """Pointer movement in RING postpones the automatic revert."""
        if not self._active or self._mode is not Mode.RING or self._inactivity is None:
            return
        self._inactivity = self._rearm(self._inactivity, self._config.inactivity_timeout, self._auto_revert)

    def shutdown(self) -> None:
        self._active = False
        for handle in (self._inactivity, self._clickability, self._cooldown):
            if handle is not None:
                handle.cancel()
        self._inactivity = self._clickability = self._cooldown = None

    def _transition(self, target: Mode) -> None:
        cfg = self._config
        self._transitioning = True
        self._mode = target
        self._cancel_action_timers()
        self._action_clickable = False

        if target is Mode.RING:
            width, height = self._bounds()
            targets = ring_layout(
                (width / 2.0, height / 2.0),
                ring_radius(width, height, cfg.ring_radius_ratio),
                len(self._store),
            )
            self._store.set_rest(targets)
            self._action_visible = True
            self._clickability = self._scheduler.call_later(cfg.clickable_delay, self._arm_action)
            self._inactivity = self._scheduler.call_later(cfg.inactivity_timeout, self._auto_revert)
        else:
            self._store.restore_text_layout()
            self._action_visible = False

        self._cooldown = self._rearm(self._cooldown, cfg.transition_cooldown, self._release)
        logger.info("Layout switched to %s (%d particles)", target.value, len(self._store))
        self._notify()

    def _cancel_action_timers(self) -> None:
        if self._inactivity is not None:
            self._inactivity.cancel()
            self._inactivity = None
        if self._clickability is not None:
            self._clickability.cancel()
            self._clickability = None

    def _rearm(self, handle: Optional[TimerHandle], delay: float, callback: Callback) -> TimerHandle:
        if handle is not None:
            handle.cancel()
        return self._scheduler.call_later(delay, callback)

    def _arm_action(self) -> None:
        self._clickability = None
        if not self._active or self._mode is not Mode.RING:
            return
        self._action_clickable = True
        self._notify()

    def _auto_revert(self) -> None:
        self._inactivity = None
        if self._active and self._mode is Mode.RING:
            logger.debug("No pointer activity, reverting to text")
            self.toggle()

    def _release(self) -> None:
        self._cooldown = None
        if not self._active:
            return
        self._transitioning = False
        self._notify()

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in self._listeners:
            listener(snapshot)
