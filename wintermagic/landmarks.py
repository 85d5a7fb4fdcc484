"""
Hand landmark detection using the MediaPipe Hand Landmarker, plus camera access.
"""
import logging
import time
import urllib.request
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

import cv2
import numpy as np

from .config import CameraConfig, MediaPipeConfig
from .types import LandmarkSample

logger = logging.getLogger(__name__)


class HandsTracker:
    """Hand landmark tracker using the MediaPipe Tasks API."""

    def __init__(self, cfg: MediaPipeConfig):
        """
        Create the tracker. No model is loaded until initialize().

        Args:
            cfg: MediaPipe settings (model location, hand count, confidences)
        """
        self.cfg = cfg
        self._landmarker = None
        self._mp = None
        self._start = time.monotonic()
        self._last_timestamp_ms = -1

    @property
    def ready(self) -> bool:
        return self._landmarker is not None

    def initialize(self) -> None:
        """
        Load the model, downloading it first if it is missing.

        Raises:
            ImportError: MediaPipe is not installed
            OSError: The model could not be downloaded or read
            RuntimeError: MediaPipe rejected the model
        """
        import mediapipe as mp
        from mediapipe.tasks.python import BaseOptions
        from mediapipe.tasks.python import vision as mp_vision

        model_path = self._ensure_model()
        options = mp_vision.HandLandmarkerOptions(
            base_options=BaseOptions(model_asset_path=str(model_path)),
            running_mode=mp_vision.RunningMode.VIDEO,
            num_hands=self.cfg.max_num_hands,
            min_hand_detection_confidence=self.cfg.min_detection_confidence,
            min_hand_presence_confidence=self.cfg.min_presence_confidence,
            min_tracking_confidence=self.cfg.min_tracking_confidence,
        )
        self._landmarker = mp_vision.HandLandmarker.create_from_options(options)
        self._mp = mp
        logger.info("✅ Hand landmarker ready (%s)", model_path)

    def _ensure_model(self) -> Path:
        path = Path(self.cfg.model_path)
        if not path.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
            logger.info("📥 Downloading hand landmarker model to %s", path)
            urllib.request.urlretrieve(self.cfg.model_url, str(path))
        return path

    def detect(self, frame_bgr: np.ndarray) -> List[LandmarkSample]:
        """
        Detect hands in a frame.

        Args:
            frame_bgr: Input frame in BGR format

        Returns:
            One list of 21 (x, y, z) landmarks per detected hand (possibly empty)
        """
        if self._landmarker is None:
            raise RuntimeError("HandsTracker.detect() called before initialize()")

        # Convert BGR to RGB for MediaPipe
        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        mp_image = self._mp.Image(image_format=self._mp.ImageFormat.SRGB, data=frame_rgb)

        # VIDEO mode requires strictly increasing timestamps
        timestamp_ms = max(int((time.monotonic() - self._start) * 1000), self._last_timestamp_ms + 1)
        self._last_timestamp_ms = timestamp_ms

        result = self._landmarker.detect_for_video(mp_image, timestamp_ms)
        return [
            [(lm.x, lm.y, lm.z) for lm in hand]
            for hand in result.hand_landmarks
        ]

    def close(self) -> None:
        if self._landmarker is not None:
            self._landmarker.close()
            self._landmarker = None

    @staticmethod
    def draw_landmarks(frame: np.ndarray, landmarks: LandmarkSample) -> np.ndarray:
        """
        Draw hand landmarks on the frame.

        Args:
            frame: Input frame
            landmarks: 21 (x, y, z) coordinates with x/y in [0..1]

        Returns:
            Frame with landmarks drawn
        """
        height, width = frame.shape[:2]

        for x, y, _z in landmarks:
            px = int(x * width)
            py = int(y * height)
            cv2.circle(frame, (px, py), 3, (0, 255, 0), -1)

        return frame


@contextmanager
def open_camera(cfg: CameraConfig) -> Iterator[cv2.VideoCapture]:
    """
    Open the camera for the duration of a with-block.

    The capture is released on every exit path, including a failed open.

    Raises:
        RuntimeError: The camera could not be opened
    """
    cap = cv2.VideoCapture(cfg.index)
    try:
        if not cap.isOpened():
            raise RuntimeError(f"Failed to open camera {cfg.index}")
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, cfg.width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, cfg.height)
        cap.set(cv2.CAP_PROP_FPS, cfg.fps)
        logger.info("📷 Camera %d opened", cfg.index)
        yield cap
    finally:
        cap.release()
        logger.info("📷 Camera %d released", cfg.index)


def read_frame(cap: cv2.VideoCapture) -> Optional[np.ndarray]:
    """Read one frame, or None if the camera produced nothing."""
    ok, frame = cap.read()
    return frame if ok else None
