"""
Detection loop: camera frames -> hand landmarks -> latest gesture signal.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, ContextManager, Optional

import numpy as np

from .channel import LatestValue
from .config import Cfg, CameraConfig
from .gestures import GestureClassifier
from .landmarks import HandsTracker, open_camera, read_frame
from .types import GestureSignal, LandmarkSample

logger = logging.getLogger(__name__)

CameraFactory = Callable[[CameraConfig], ContextManager]


@dataclass
class CameraPreview:
    """Last camera frame and the first hand found in it, for display only."""
    frame: np.ndarray
    landmarks: Optional[LandmarkSample]


class DetectionLoop:
    """
    Runs the detector once per camera frame and publishes the latest signal.

    The render loop never waits on this loop; it reads whatever signal was
    published last. Blocking camera and detector calls run in a worker
    thread so the event loop stays free for rendering.
    """

    def __init__(self, cfg: Cfg, signals: LatestValue[GestureSignal],
                 tracker: Optional[HandsTracker] = None,
                 camera_factory: CameraFactory = open_camera,
                 previews: Optional[LatestValue[CameraPreview]] = None):
        self.cfg = cfg
        self.signals = signals
        self.previews = previews
        self.tracker = tracker if tracker is not None else HandsTracker(cfg.mediapipe)
        self.camera_factory = camera_factory
        self.classifier = GestureClassifier(cfg)

        self.frames_processed = 0
        self.available = False
        self._stop = asyncio.Event()

    def stop(self) -> None:
        """Ask the loop to finish after the current frame."""
        self._stop.set()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    async def run(self) -> None:
        """
        Initialize the detector and process frames until stopped.

        Start-up failures are logged once and end the loop; the scene then
        stays in its default state.
        """
        try:
            await asyncio.to_thread(self.tracker.initialize)
        except Exception as e:
            logger.error("❌ Hand detection unavailable, continuing without it: %s", e)
            return

        self.available = True
        try:
            with self.camera_factory(self.cfg.camera) as cap:
                await self._process_frames(cap)
        except Exception as e:
            # Camera or detector failure mid-run: fall back to the default scene
            logger.error("❌ Detection stopped: %s", e)
        finally:
            self.available = False
            # Nothing reliable is known about the hand any more
            self.signals.publish(None)
            self.tracker.close()
            logger.info("🛑 Detection loop finished after %d frames", self.frames_processed)

    async def _process_frames(self, cap) -> None:
        while not self._stop.is_set():
            frame = await asyncio.to_thread(read_frame, cap)
            if frame is None:
                logger.warning("Failed to read frame from camera")
                break

            hands = await asyncio.to_thread(self.tracker.detect, frame)
            self.signals.publish(self.classifier.classify_hands(hands))
            self.frames_processed += 1

            if self.previews is not None:
                self.previews.publish(CameraPreview(frame=frame, landmarks=hands[0] if hands else None))
