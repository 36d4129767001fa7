from __future__ import annotations

import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

import cv2


@dataclass(frozen=True)
class SamplerConfig:
    text: str = "SHERVIN"
    gap: int = 2  # grid stride in both axes
    alpha_threshold: int = 128
    max_particles: int = 7500
    font_ratio: float = 0.2  # font height relative to surface width
    max_font_px: float = 150.0
    font_face: int = cv2.FONT_HERSHEY_DUPLEX
    cap_height_ratio: float = 0.7  # cap height of the glyphs relative to the font size
    weight_ratio: float = 2.4  # stroke thickness per unit of font scale
    max_width_ratio: float = 0.92

    def __post_init__(self) -> None:
        if not self.text:
            raise ValueError("SamplerConfig.text must not be empty.")
        if self.gap < 1:
            raise ValueError("SamplerConfig.gap must be at least 1.")
        if not 0 <= self.alpha_threshold < 255:
            raise ValueError("SamplerConfig.alpha_threshold must be in [0, 255).")
        if self.max_particles < 1:
            raise ValueError("SamplerConfig.max_particles must be positive.")


@dataclass(frozen=True)
class PhysicsConfig:
    pointer_radius: float = 150.0
    strength: float = 0.5
    min_distance: float = 0.1
    ease_divisor: float = 12.0  # 1/12 of the remaining distance per frame
    particle_size: float = 1.8
    density_range: Tuple[float, float] = (10.0, 40.0)
    particle_color: Tuple[int, int, int] = (255, 255, 255)
    rest_opacity: float = 0.6
    disturbed_opacity: float = 0.95
    trail_color: Tuple[int, int, int] = (0, 0, 0)
    trail_opacity: float = 0.05
    empty_frame_limit: int = 10

    def __post_init__(self) -> None:
        if self.pointer_radius <= 0:
            raise ValueError("PhysicsConfig.pointer_radius must be positive.")
        if self.ease_divisor < 1:
            raise ValueError("PhysicsConfig.ease_divisor must be at least 1.")
        low, high = self.density_range
        if not 0 <= low < high:
            raise ValueError("PhysicsConfig.density_range must be an increasing pair.")


@dataclass(frozen=True)
class ModeConfig:
    ring_radius_ratio: float = 0.35
    transition_cooldown: float = 0.6
    clickable_delay: float = 0.6
    inactivity_timeout: float = 5.0
    double_click_window: float = 0.3
    toggle_key: str = "w"

    def __post_init__(self) -> None:
        if len(self.toggle_key) != 1:
            raise ValueError("ModeConfig.toggle_key must be a single character.")


@dataclass(frozen=True)
class EngineConfig:
    retry_delays: Tuple[float, ...] = (0.1, 0.3, 0.5, 1.0, 2.0, 3.0)
    seed: Optional[int] = None


@dataclass(frozen=True)
class RenderConfig:
    window_width: int = 1280
    window_height: int = 720
    title: str = "Glyph Swarm"
    swap_interval: int = 1  # vsync, one frame per display refresh
    resizable: bool = True
    frame_interval: float = 1 / 60.0  # virtual refresh period for headless runs


@dataclass(frozen=True)
class HUDConfig:
    text_color: Tuple[int, int, int] = (255, 255, 255)
    accent_color: Tuple[int, int, int] = (255, 255, 255)
    text_scale: float = 0.6
    line_thickness: int = 2
    margin: int = 20
    action_size: int = 160
    action_label: str = "ENTER"
    action_url: str = "https://t.me/shervini"
    hint_text: str = '> Dev tip: > "dblclick" isn\'t deprecated - it\'s underrated !'
    hint_opacity: float = 0.15
    fade_step: float = 0.12  # opacity change per frame while the action element fades


@dataclass(frozen=True)
class VisionConfig:
    width: int = 1280
    height: int = 720
    camera_index: int = 0
    mirror: bool = True
    min_detection_confidence: float = 0.7
    min_tracking_confidence: float = 0.5
    smoothing_alpha: float = 0.35


@dataclass(frozen=True)
class GestureConfig:
    stability_frames: int = 6
    engage_ratio: float = 0.75
    release_ratio: float = 0.25
    pinch_threshold: float = 0.3  # thumb-index gap relative to palm length


@dataclass(frozen=True)
class HandSample:
    x: float  # normalized [0, 1], already mirrored
    y: float
    pinched: bool


class SharedState:
    """Thread-safe bridge between the hand tracking thread and the render loop."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sample: Optional[HandSample] = None
        self._sequence: int = 0
        self._consumed: int = 0
        self._shutdown: bool = False

    def update(self, sample: Optional[HandSample]) -> None:
        with self._lock:
            self._sample = sample
            self._sequence += 1

    def consume(self) -> Tuple[bool, Optional[HandSample]]:
        """Return ``(fresh, sample)``; ``fresh`` is False when nothing changed since the last call."""
        with self._lock:
            fresh = self._sequence != self._consumed
            self._consumed = self._sequence
            return fresh, self._sample

    def request_shutdown(self) -> None:
        with self._lock:
            self._shutdown = True

    def shutdown_requested(self) -> bool:
        with self._lock:
            return self._shutdown


def project_path(*parts: str) -> Path:
    """Resolve a path relative to the repository root."""
    base = Path(__file__).resolve().parents[1]
    return base.joinpath(*parts)
