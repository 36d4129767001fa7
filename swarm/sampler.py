from __future__ import annotations

import logging
from typing import Optional

import cv2
import numpy as np

from rendering.surface import RasterSurface, SurfaceError
from utils.config import SamplerConfig

logger = logging.getLogger(__name__)

_WHITE = (255, 255, 255)


def extract_points(alpha: np.ndarray, gap: int, threshold: int) -> np.ndarray:
    """Coordinates ``(x, y)`` of every ``gap``-th pixel whose alpha exceeds ``threshold``, in raster order."""
    grid = alpha[::gap, ::gap]
    rows, cols = np.nonzero(grid > threshold)
    return np.stack([cols * gap, rows * gap], axis=1).astype(np.float64)


def shuffle_points(points: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    """Uniform in-place permutation of the rows of ``points``."""
    rng.shuffle(points, axis=0)
    return points


class ShapeSampler:
    """Rasterizes the glyph text and turns its opaque pixels into a point set."""

    def __init__(self, config: SamplerConfig, rng: np.random.Generator) -> None:
        self._config = config
        self._rng = rng

    @property
    def config(self) -> SamplerConfig:
        return self._config

    def font_px(self, width: int) -> float:
        return min(width * self._config.font_ratio, self._config.max_font_px)

    def sample(self, surface: RasterSurface) -> Optional[np.ndarray]:
        """Shuffled, capped point set, or ``None`` when nothing usable was rendered.

        The surface is left cleared either way.
        """
        width, height = surface.width, surface.height
        if width <= 0 or height <= 0:
            logger.debug("Skipping sampling on a %dx%d surface", width, height)
            return None
        cfg = self._config
        try:
            surface.clear()
            surface.draw_text(
                cfg.text,
                (width / 2.0, height / 2.0),
                self.font_px(width),
                _WHITE,
                font_face=cfg.font_face,
                cap_height_ratio=cfg.cap_height_ratio,
                weight_ratio=cfg.weight_ratio,
                max_width=width * cfg.max_width_ratio,
            )
            alpha = surface.read_alpha(0, 0, width, height)
        except (SurfaceError, cv2.error):
            logger.exception("Failed to read back the rendered glyph shape")
            return None
        finally:
            surface.clear()

        points = extract_points(alpha, cfg.gap, cfg.alpha_threshold)
        if len(points) == 0:
            logger.debug("Glyph shape rendered no lit pixels yet")
            return None
        shuffle_points(points, self._rng)
        kept = points[: cfg.max_particles]
        logger.info("Sampled %d lit pixels on %dx%d, keeping %d", len(points), width, height, len(kept))
        return kept
