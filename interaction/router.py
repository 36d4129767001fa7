from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence, Tuple

from swarm.engine import GlyphEngine
from swarm.timers import TimerHandle
from utils.config import ModeConfig

logger = logging.getLogger(__name__)

Point = Tuple[float, float]
HitTest = Callable[[float, float], bool]


class InputRouter:
    """Turns raw mouse, touch, key and click events into engine inputs.

    Presses and clicks that land on the armed action element go to
    ``on_action`` only; they never count as contact or toward a double click.
    """

    def __init__(
        self,
        engine: GlyphEngine,
        config: ModeConfig,
        action_hit: Optional[HitTest] = None,
        on_action: Optional[Callable[[], None]] = None,
    ) -> None:
        self._engine = engine
        self._config = config
        self._action_hit = action_hit
        self._on_action = on_action
        self._clicks = 0
        self._click_timer: Optional[TimerHandle] = None
        self._hand_down = False

    @property
    def toggle_key(self) -> str:
        return self._config.toggle_key

    def _on_armed_action(self, x: float, y: float) -> bool:
        if self._action_hit is None or not self._engine.modes.action_clickable:
            return False
        return self._action_hit(x, y)

    # mouse

    def pointer_move(self, x: float, y: float) -> None:
        self._engine.move_pointer(x, y)

    def pointer_down(self, x: float, y: float) -> bool:
        if self._on_armed_action(x, y):
            return False
        self._engine.move_pointer(x, y)
        self._engine.set_contact(True)
        return True

    def pointer_up(self) -> None:
        self._engine.set_contact(False)

    def pointer_leave(self) -> None:
        self._engine.set_contact(False)

    # touch, first active contact wins

    def touch_start(self, points: Sequence[Point]) -> None:
        if points:
            self._engine.move_pointer(*points[0])
        self._engine.set_contact(True)

    def touch_move(self, points: Sequence[Point]) -> None:
        if points:
            self._engine.move_pointer(*points[0])

    def touch_end(self, points: Sequence[Point] = ()) -> None:
        self._engine.set_contact(False)

    def hand_update(self, x: float, y: float, pinched: bool) -> None:
        """A tracked fingertip acts as a touch contact while pinched."""
        if pinched and not self._hand_down:
            self.touch_start([(x, y)])
        elif pinched:
            self.touch_move([(x, y)])
        else:
            if self._hand_down:
                self.touch_end()
            self.pointer_move(x, y)
        self._hand_down = pinched

    def hand_lost(self) -> None:
        if self._hand_down:
            self.touch_end()
        self._hand_down = False

    # toggles

    def key_press(self, key: str) -> bool:
        if key and key.lower() == self._config.toggle_key.lower():
            return self._engine.request_toggle()
        return False

    def click(self, x: float, y: float) -> None:
        if not self._engine.active:
            return
        if self._on_armed_action(x, y):
            logger.info("Action element activated")
            if self._on_action is not None:
                self._on_action()
            return
        self._clicks += 1
        if self._clicks == 1:
            self._cancel_click_timer()
            self._click_timer = self._engine.scheduler.call_later(
                self._config.double_click_window, self._reset_clicks
            )
        elif self._clicks >= 2:
            self._cancel_click_timer()
            self._clicks = 0
            self._engine.request_toggle()

    def _reset_clicks(self) -> None:
        self._click_timer = None
        if self._engine.active:
            self._clicks = 0

    def _cancel_click_timer(self) -> None:
        if self._click_timer is not None:
            self._click_timer.cancel()
            self._click_timer = None

    def close(self) -> None:
        self._cancel_click_timer()
        self._clicks = 0
        self._hand_down = False
