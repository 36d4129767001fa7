from __future__ import annotations

import logging
import urllib.request
from pathlib import Path
from typing import Optional

import cv2
import mediapipe as mp
import numpy as np
from mediapipe.tasks import python as mp_python
from mediapipe.tasks.python import vision as mp_vision

from hand_tracking.gestures import HandDetection, fingertip, landmark_array
from utils.config import VisionConfig, project_path
from utils.smoothing import LandmarkSmoother

logger = logging.getLogger(__name__)

MODEL_URL = (
    "https://storage.googleapis.com/mediapipe-models/hand_landmarker/hand_landmarker/float16/1/hand_landmarker.task"
)


def _model_path() -> Path:
    target = project_path("models", "hand_landmarker.task")
    if target.exists():
        return target
    target.parent.mkdir(parents=True, exist_ok=True)
    partial = target.with_suffix(".part")
    logger.info("Downloading hand landmarker model to %s", target)
    try:
        urllib.request.urlretrieve(MODEL_URL, partial)
    except OSError as exc:  # pragma: no cover - network dependent
        partial.unlink(missing_ok=True)
        raise RuntimeError("Could not download the MediaPipe hand landmarker model.") from exc
    partial.replace(target)
    return target


class HandDetector:
    """Fingertip pointer from the first hand MediaPipe finds in a BGR frame."""

    def __init__(self, config: VisionConfig) -> None:
        self._mirror = config.mirror
        self._smoother = LandmarkSmoother(config.smoothing_alpha)
        self._landmarker = mp_vision.HandLandmarker.create_from_options(
            mp_vision.HandLandmarkerOptions(
                base_options=mp_python.BaseOptions(model_asset_path=str(_model_path())),
                num_hands=1,
                min_hand_detection_confidence=config.min_detection_confidence,
                min_hand_presence_confidence=config.min_tracking_confidence,
                min_tracking_confidence=config.min_tracking_confidence,
            )
        )

    def process(self, frame_bgr: np.ndarray) -> Optional[HandDetection]:
        image = mp.Image(image_format=mp.ImageFormat.SRGB, data=cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB))
        hands = self._landmarker.detect(image).hand_landmarks
        if not hands:
            # the next hand starts unsmoothed
            self._smoother.reset()
            return None
        landmarks = self._smoother.update(landmark_array(hands[0], self._mirror))
        return HandDetection(landmarks=landmarks, pointer=fingertip(landmarks))

    def close(self) -> None:
        self._landmarker.close()
