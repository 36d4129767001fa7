from __future__ import annotations

from typing import Optional, Tuple

import cv2
import numpy as np

from swarm.engine import GlyphEngine
from utils.config import HUDConfig


class ActionBadge:
    """Companion action element: a centred emblem shown while the ring is up."""

    def __init__(self, config: HUDConfig) -> None:
        self._config = config
        self._font = cv2.FONT_HERSHEY_DUPLEX
        self._opacity = 0.0

    @property
    def opacity(self) -> float:
        return self._opacity

    def bounds(self, width: int, height: int) -> Tuple[int, int, int, int]:
        half = self._config.action_size // 2
        cx, cy = width // 2, height // 2
        return cx - half, cy - half, cx + half, cy + half

    def contains(self, x: float, y: float, width: int, height: int) -> bool:
        x0, y0, x1, y1 = self.bounds(width, height)
        return x0 <= x <= x1 and y0 <= y <= y1

    def draw(self, frame: np.ndarray, visible: bool, clickable: bool) -> np.ndarray:
        step = self._config.fade_step
        target = 1.0 if visible else 0.0
        if self._opacity < target:
            self._opacity = min(target, self._opacity + step)
        elif self._opacity > target:
            self._opacity = max(target, self._opacity - step)
        if self._opacity <= 0.0:
            return frame

        h, w = frame.shape[:2]
        x0, y0, x1, y1 = self.bounds(w, h)
        x0, y0, x1, y1 = max(0, x0), max(0, y0), min(w, x1), min(h, y1)
        if x1 <= x0 or y1 <= y0:
            return frame
        region = frame[y0:y1, x0:x1]
        layer = region.copy()
        center = (layer.shape[1] // 2, layer.shape[0] // 2)
        # Scale in from 75% like the element's entrance.
        grow = 0.75 + 0.25 * self._opacity
        radius = max(1, int(self._config.action_size * 0.42 * grow))
        color = self._config.accent_color
        cv2.circle(layer, center, radius, color, self._config.line_thickness, cv2.LINE_AA)
        if clickable:
            cv2.circle(layer, center, max(1, radius - 8), color, 1, cv2.LINE_AA)
        label = self._config.action_label
        scale = self._config.text_scale * 1.2
        (tw, th), _ = cv2.getTextSize(label, self._font, scale, 1)
        origin = (center[0] - tw // 2, center[1] + th // 2)
        cv2.putText(layer, label, origin, self._font, scale, color, 1, cv2.LINE_AA)

        weight = self._opacity if clickable else self._opacity * 0.6
        region[...] = cv2.addWeighted(layer, weight, region, 1.0 - weight, 0.0)
        return frame


class HUDOverlay:
    """Draws the hint line and the optional FPS read-out over the particle raster."""

    def __init__(self, config: HUDConfig, show_fps: bool = False) -> None:
        self._config = config
        self._font = cv2.FONT_HERSHEY_PLAIN
        self._show_fps = show_fps

    def apply(self, frame: np.ndarray, fps: Optional[float] = None) -> np.ndarray:
        h, w = frame.shape[:2]
        if h == 0 or w == 0:
            return frame
        margin = self._config.margin
        hint = self._config.hint_text
        (tw, _), _ = cv2.getTextSize(hint, self._font, self._config.text_scale * 1.4, 1)
        hint_color = tuple(int(c * self._config.hint_opacity) for c in self._config.text_color)
        cv2.putText(
            frame,
            hint,
            ((w - tw) // 2, h - margin),
            self._font,
            self._config.text_scale * 1.4,
            hint_color,
            1,
            cv2.LINE_AA,
        )
        if self._show_fps and fps is not None:
            cv2.putText(
                frame,
                f"fps {fps:05.2f}",
                (margin, margin + 18),
                self._font,
                self._config.text_scale * 1.6,
                self._config.text_color,
                1,
                cv2.LINE_AA,
            )
        return frame


def compose(
    engine: GlyphEngine,
    badge: ActionBadge,
    overlay: HUDOverlay,
    fps: Optional[float] = None,
) -> np.ndarray:
    """RGB frame for presentation; the particle surface itself is left untouched."""
    frame = engine.surface.to_rgb()
    badge.draw(frame, engine.modes.action_visible, engine.modes.action_clickable)
    return overlay.apply(frame, fps)
