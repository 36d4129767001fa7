from __future__ import annotations

import logging
import threading
import time
from typing import Optional, Tuple

import cv2
import numpy as np

logger = logging.getLogger(__name__)


class WebcamCapture:
    """Background reader that only ever hands out the most recent camera frame."""

    def __init__(self, width: int, height: int, camera_index: int = 0, backend: int = cv2.CAP_ANY) -> None:
        self._size = (width, height)
        self._camera_index = camera_index
        self._backend = backend
        self._capture: Optional[cv2.VideoCapture] = None
        self._lock = threading.Lock()
        self._frame: Optional[np.ndarray] = None
        self._running = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._running.is_set():
            return
        capture = cv2.VideoCapture(self._camera_index, self._backend)
        if not capture.isOpened():
            capture.release()
            raise RuntimeError(f"Unable to access webcam #{self._camera_index}.")
        capture.set(cv2.CAP_PROP_FRAME_WIDTH, self._size[0])
        capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self._size[1])
        self._capture = capture
        self._running.set()
        self._thread = threading.Thread(target=self._reader_loop, name="webcam", daemon=True)
        self._thread.start()
        logger.info("Webcam #%d opened at %dx%d", self._camera_index, *self.resolution())

    def stop(self) -> None:
        self._running.clear()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=1.0)
        self._thread = None
        if self._capture is not None:
            self._capture.release()
            self._capture = None

    def _reader_loop(self) -> None:
        while self._running.is_set():
            ok, frame = self._capture.read()
            if not ok:
                time.sleep(0.01)
                continue
            with self._lock:
                self._frame = frame

    def get_frame(self) -> Optional[np.ndarray]:
        with self._lock:
            if self._frame is None:
                return None
            frame, self._frame = self._frame, None
        return frame

    def resolution(self) -> Tuple[int, int]:
        if self._capture is None:
            return self._size
        return (
            int(self._capture.get(cv2.CAP_PROP_FRAME_WIDTH)) or self._size[0],
            int(self._capture.get(cv2.CAP_PROP_FRAME_HEIGHT)) or self._size[1],
        )
