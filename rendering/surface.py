from __future__ import annotations

from typing import Optional, Tuple

import cv2
import numpy as np

Color = Tuple[int, int, int]

_SHIFT = 4  # fixed-point bits for sub-pixel circle centres


class SurfaceError(RuntimeError):
    """Raised when the raster cannot be read back."""


class RasterSurface:
    """BGRA raster exposing the small canvas vocabulary the particle engine draws with.

    Colors are BGR triples as everywhere else in OpenCV; ``opacity`` blends the
    color over the existing pixels and raises the alpha channel accordingly.
    Resizing replaces the buffer with a cleared one.
    """

    def __init__(self, width: int = 0, height: int = 0) -> None:
        self._pixels = self._allocate(width, height)

    @staticmethod
    def _allocate(width: int, height: int) -> np.ndarray:
        return np.zeros((max(0, int(height)), max(0, int(width)), 4), dtype=np.uint8)

    @property
    def width(self) -> int:
        return self._pixels.shape[1]

    @property
    def height(self) -> int:
        return self._pixels.shape[0]

    @property
    def pixels(self) -> np.ndarray:
        return self._pixels

    def is_valid(self) -> bool:
        return self.width > 0 and self.height > 0

    def resize(self, width: int, height: int) -> None:
        self._pixels = self._allocate(width, height)

    def clear(self) -> None:
        self._pixels[...] = 0

    def fill_rect(self, color: Color, opacity: float = 1.0) -> None:
        """Blend ``color`` over the whole surface."""
        if not self.is_valid():
            return
        opacity = float(np.clip(opacity, 0.0, 1.0))
        target = np.array([*color, 255], dtype=np.float32)
        blended = self._pixels.astype(np.float32) * (1.0 - opacity) + target * opacity
        # Truncation lets a repeated low-opacity black fill decay all the way to zero.
        self._pixels[...] = blended.astype(np.uint8)

    def fill_circles(self, centers: np.ndarray, radius: float, color: Color, opacity: float = 1.0) -> None:
        """Paint filled discs of one color at every row of ``centers`` (N, 2)."""
        if not self.is_valid() or len(centers) == 0:
            return
        coverage = np.zeros(self._pixels.shape[:2], dtype=np.uint8)
        if radius < 1.0:
            cols = np.rint(centers[:, 0]).astype(np.int64)
            rows = np.rint(centers[:, 1]).astype(np.int64)
            inside = (cols >= 0) & (cols < self.width) & (rows >= 0) & (rows < self.height)
            coverage[rows[inside], cols[inside]] = 255
        else:
            scale = 1 << _SHIFT
            fixed = np.rint(centers * scale)
            fixed = fixed[np.isfinite(fixed).all(axis=1)].astype(np.int64)
            fixed_radius = int(round(radius * scale))
            for cx, cy in fixed:
                cv2.circle(coverage, (int(cx), int(cy)), fixed_radius, 255, -1, cv2.LINE_AA, _SHIFT)
        rows, cols = np.nonzero(coverage)
        if rows.size == 0:
            return
        weight = (coverage[rows, cols].astype(np.float32) / 255.0 * float(opacity))[:, None]
        target = np.array([*color, 255], dtype=np.float32)
        current = self._pixels[rows, cols].astype(np.float32)
        self._pixels[rows, cols] = np.clip(current * (1.0 - weight) + target * weight, 0, 255).astype(np.uint8)

    def draw_text(
        self,
        text: str,
        center: Tuple[float, float],
        font_px: float,
        color: Color,
        font_face: int = cv2.FONT_HERSHEY_DUPLEX,
        cap_height_ratio: float = 0.7,
        weight_ratio: float = 2.4,
        max_width: Optional[float] = None,
    ) -> None:
        """Draw ``text`` centred on ``center`` with glyphs roughly ``font_px`` tall.

        When ``max_width`` is given the text is scaled down to fit it.
        """
        if not self.is_valid() or font_px <= 0:
            return
        (_, unit_height), _ = cv2.getTextSize("H", font_face, 1.0, 1)
        scale = font_px * cap_height_ratio / max(1, unit_height)
        thickness = max(1, int(round(scale * weight_ratio)))
        (text_w, text_h), _ = cv2.getTextSize(text, font_face, scale, thickness)
        if max_width is not None and text_w > max_width > 0:
            scale *= max_width / text_w
            thickness = max(1, int(round(scale * weight_ratio)))
            (text_w, text_h), _ = cv2.getTextSize(text, font_face, scale, thickness)
        origin = (int(round(center[0] - text_w / 2)), int(round(center[1] + text_h / 2)))
        cv2.putText(self._pixels, text, origin, font_face, scale, (*color, 255), thickness, cv2.LINE_AA)

    def read_alpha(
        self,
        x: int = 0,
        y: int = 0,
        width: Optional[int] = None,
        height: Optional[int] = None,
    ) -> np.ndarray:
        """Copy of the alpha channel over the given region (whole surface by default)."""
        width = self.width - x if width is None else width
        height = self.height - y if height is None else height
        if width <= 0 or height <= 0:
            raise SurfaceError(f"Cannot read back an empty region ({width}x{height}).")
        if x < 0 or y < 0 or x + width > self.width or y + height > self.height:
            raise SurfaceError(
                f"Region {x},{y} {width}x{height} exceeds the {self.width}x{self.height} surface."
            )
        return self._pixels[y : y + height, x : x + width, 3].copy()

    def to_rgb(self) -> np.ndarray:
        if not self.is_valid():
            return np.zeros((self.height, self.width, 3), dtype=np.uint8)
        return cv2.cvtColor(self._pixels, cv2.COLOR_BGRA2RGB)
