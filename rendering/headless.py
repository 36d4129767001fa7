from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Tuple

import cv2
import numpy as np

from interaction.router import InputRouter
from swarm.engine import GlyphEngine
from swarm.timers import ManualClock
from ui.hud import ActionBadge, HUDOverlay, compose

logger = logging.getLogger(__name__)


class HeadlessHost:
    """Steps the engine on a virtual refresh clock and optionally writes the last frame to disk."""

    def __init__(
        self,
        engine: GlyphEngine,
        router: InputRouter,
        badge: ActionBadge,
        overlay: HUDOverlay,
        clock: ManualClock,
        frame_interval: float = 1 / 60.0,
    ) -> None:
        self._engine = engine
        self._router = router
        self._badge = badge
        self._overlay = overlay
        self._clock = clock
        self._interval = frame_interval

    def run(
        self,
        width: int,
        height: int,
        frames: int,
        press: Optional[Tuple[float, float]] = None,
        toggle_at: Optional[int] = None,
        output: Optional[Path] = None,
    ) -> np.ndarray:
        engine = self._engine
        scheduler = engine.scheduler
        engine.start(width, height)
        engine.notify_assets_ready()
        if press is not None:
            self._router.pointer_down(*press)
        frame = compose(engine, self._badge, self._overlay)
        try:
            for index in range(frames):
                if toggle_at is not None and index == toggle_at:
                    self._router.key_press(self._router.toggle_key)
                self._clock.advance(self._interval)
                scheduler.run_due()
                scheduler.run_frame()
                frame = compose(engine, self._badge, self._overlay)
        finally:
            self._router.close()
            engine.stop()
        logger.info(
            "Headless run finished: %d frames, %d particles, mode %s",
            frames,
            engine.particle_count,
            engine.mode.value,
        )
        if output is not None:
            output.parent.mkdir(parents=True, exist_ok=True)
            if not cv2.imwrite(str(output), cv2.cvtColor(frame, cv2.COLOR_RGB2BGR)):
                raise RuntimeError(f"Unable to write frame to {output}.")
            logger.info("Wrote %s", output)
        return frame
