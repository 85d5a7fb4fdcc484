"""
OpenCV preview renderer: a perspective view of the particle tree and images.
"""
import logging
import math
from typing import Dict, List, Optional, Sequence, Tuple

import cv2
import numpy as np

from .channel import LatestValue
from .config import Cfg
from .detection import CameraPreview
from .landmarks import HandsTracker
from .types import EntityConfig, ImageEntry, ParticleKind, SceneFrame

logger = logging.getLogger(__name__)

CAMERA_DISTANCE = 24.0
FOV_DEG = 45.0
GROUP_OFFSET = np.array([0.0, -2.0, 0.0])
IMAGE_SIZE = (3.0, 2.0)
BACKGROUND = (23, 23, 23)
STAR_COLOR = (0, 255, 255)
IMAGE_BACK_COLOR = (17, 17, 136)


def hex_to_bgr(color: str) -> Tuple[int, int, int]:
    color = color.lstrip("#")
    r, g, b = (int(color[i:i + 2], 16) for i in (0, 2, 4))
    return (b, g, r)


def load_texture(path: str) -> np.ndarray:
    """Read an image from disk for use as a texture."""
    image = cv2.imread(path, cv2.IMREAD_COLOR)
    if image is None:
        raise FileNotFoundError(f"Could not read image: {path}")
    return image


class PreviewRenderer:
    """Draws scene frames into an OpenCV window."""

    def __init__(self, cfg: Cfg, previews: Optional[LatestValue[CameraPreview]] = None,
                 tree_height: Optional[float] = None):
        self.cfg = cfg.display
        self.previews = previews
        self.width = self.cfg.width
        self.height = self.cfg.height
        self.focal = (self.height / 2) / math.tan(math.radians(FOV_DEG) / 2)
        self.star_position = np.array([0.0, (tree_height or cfg.formation.tree_height) / 2 + 0.5, 0.0])

        self.colors: np.ndarray = np.zeros((0, 3))
        self.kinds: List[ParticleKind] = []
        self.textures: Dict[str, np.ndarray] = {}
        self.orbit = 0.0

        cv2.namedWindow(self.cfg.window_name, cv2.WINDOW_NORMAL)
        cv2.resizeWindow(self.cfg.window_name, self.width, self.height)

    def setup(self, entities: Sequence[EntityConfig]) -> None:
        self.colors = np.array([hex_to_bgr(e.color) for e in entities], dtype=int)
        self.kinds = [e.kind for e in entities]

    def add_images(self, entries: Sequence[ImageEntry]) -> None:
        for entry in entries:
            if entry.texture is not None:
                self.textures[entry.id] = entry.texture

    def project(self, points: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Project scene points (N, 3) to pixels.

        Returns:
            Tuple of (pixel coordinates (N, 2), depth (N,)); depth <= 0 is behind the camera
        """
        world = np.atleast_2d(points) + GROUP_OFFSET
        c, s = math.cos(-self.orbit), math.sin(-self.orbit)
        x = world[:, 0] * c + world[:, 2] * s
        z = -world[:, 0] * s + world[:, 2] * c
        depth = CAMERA_DISTANCE - z
        safe = np.where(depth > 1e-3, depth, 1e-3)
        px = self.width / 2 + x / safe * self.focal
        py = self.height / 2 - world[:, 1] / safe * self.focal
        return np.stack([px, py], axis=1), depth

    def render(self, frame: SceneFrame) -> bool:
        self.orbit = frame.view_angle

        canvas = np.full((self.height, self.width, 3), BACKGROUND, dtype=np.uint8)
        self._draw_particles(canvas, frame)
        self._draw_star(canvas)
        self._draw_images(canvas, frame)
        self._draw_camera(canvas)
        self._draw_status(canvas, frame)

        cv2.imshow(self.cfg.window_name, canvas)
        key = cv2.waitKey(1) & 0xFF
        return key not in (ord('q'), 27)

    def close(self) -> None:
        cv2.destroyWindow(self.cfg.window_name)

    def _draw_particles(self, canvas: np.ndarray, frame: SceneFrame) -> None:
        pixels, depth = self.project(frame.particle_positions)
        # Far to near
        for i in np.argsort(-depth):
            if depth[i] <= 0.1:
                continue
            size = max(1, int(frame.particle_scales[i] * self.focal / depth[i] * 0.5))
            center = (int(pixels[i, 0]), int(pixels[i, 1]))
            color = tuple(int(v) for v in self.colors[i])
            kind = self.kinds[i]
            if kind == ParticleKind.BOX:
                cv2.rectangle(canvas, (center[0] - size, center[1] - size),
                              (center[0] + size, center[1] + size), color, -1)
            elif kind == ParticleKind.CONE:
                triangle = np.array([(center[0], center[1] - 2 * size),
                                     (center[0] - size, center[1] + size),
                                     (center[0] + size, center[1] + size)], dtype=np.int32)
                cv2.fillConvexPoly(canvas, triangle, color)
            elif kind == ParticleKind.GLYPH:
                # OpenCV fonts cannot draw emoji
                cv2.drawMarker(canvas, center, color, cv2.MARKER_STAR, size * 2, 1)
            else:
                cv2.circle(canvas, center, size, color, -1, cv2.LINE_AA)

    def _draw_star(self, canvas: np.ndarray) -> None:
        pixels, depth = self.project(self.star_position)
        if depth[0] > 0.1:
            size = max(2, int(0.8 * self.focal / depth[0]))
            center = (int(pixels[0, 0]), int(pixels[0, 1]))
            cv2.circle(canvas, center, size, STAR_COLOR, -1, cv2.LINE_AA)

    def _draw_images(self, canvas: np.ndarray, frame: SceneFrame) -> None:
        if not frame.image_transforms:
            return
        ids = list(frame.image_transforms)
        centers = np.array([frame.image_transforms[i].position for i in ids])
        pixels, depth = self.project(centers)
        for k in np.argsort(-depth):
            if depth[k] <= 0.1:
                continue
            transform = frame.image_transforms[ids[k]]
            half_w = int(IMAGE_SIZE[0] * transform.scale * self.focal / depth[k] / 2)
            half_h = int(IMAGE_SIZE[1] * transform.scale * self.focal / depth[k] / 2)
            if half_w < 1 or half_h < 1:
                continue
            cx, cy = int(pixels[k, 0]), int(pixels[k, 1])
            self._paste(canvas, self.textures.get(ids[k]), cx - half_w, cy - half_h, 2 * half_w, 2 * half_h)
            if ids[k] == frame.selection:
                cv2.putText(canvas, "Memory", (cx - 30, cy + half_h + 20),
                            cv2.FONT_HERSHEY_SIMPLEX, 0.6, (255, 255, 255), 1, cv2.LINE_AA)

    def _paste(self, canvas: np.ndarray, texture: Optional[np.ndarray],
               x: int, y: int, w: int, h: int) -> None:
        x0, y0 = max(x, 0), max(y, 0)
        x1, y1 = min(x + w, self.width), min(y + h, self.height)
        if x1 <= x0 or y1 <= y0:
            return
        if texture is None:
            cv2.rectangle(canvas, (x0, y0), (x1, y1), IMAGE_BACK_COLOR, -1)
            return
        resized = cv2.resize(texture, (w, h), interpolation=cv2.INTER_AREA)
        canvas[y0:y1, x0:x1] = resized[y0 - y:y1 - y, x0 - x:x1 - x]

    def _draw_camera(self, canvas: np.ndarray) -> None:
        if not self.cfg.show_camera or self.previews is None:
            return
        preview = self.previews.read()
        if preview is None:
            return
        thumb = preview.frame.copy()
        if preview.landmarks is not None:
            HandsTracker.draw_landmarks(thumb, preview.landmarks)
        # Mirrored like a selfie view
        thumb = cv2.flip(cv2.resize(thumb, (192, 144)), 1)
        h, w = thumb.shape[:2]
        canvas[self.height - h - 16:self.height - 16, self.width - w - 16:self.width - 16] = thumb

    def _draw_status(self, canvas: np.ndarray, frame: SceneFrame) -> None:
        lines = [
            "Fist: Form Tree | Open: Explode | Pinch: Grab Memories",
            f"Formation: {frame.formation.value}",
        ]
        if frame.selection is not None:
            lines.append(f"Holding: {frame.selection}")
        for i, text in enumerate(lines):
            cv2.putText(canvas, text, (16, 30 + i * 24), cv2.FONT_HERSHEY_SIMPLEX,
                        0.55, (240, 240, 240), 1, cv2.LINE_AA)
