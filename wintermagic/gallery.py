"""
Image collection and presentation transitions.

ImageGallery owns the uploaded images in upload order. PhotoTransitionEngine
computes where each image wants to be this frame (its slot on the tree, or the
presentation point while grabbed) and smooths every image toward it.
"""
import logging
import math
import uuid
import zlib
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
from scipy.spatial.transform import Rotation

from .config import Cfg
from .motion import MotionInterpolator
from .types import ImageEntry, Transform, TransitionStyle

logger = logging.getLogger(__name__)

STYLE_CYCLE = (TransitionStyle.SPIN, TransitionStyle.SLIDE, TransitionStyle.POP, TransitionStyle.FADE)

TextureLoader = Callable[[str], Any]


def slot_position(index: int, count: int, radius: float) -> Tuple[float, float, float]:
    """Circular layout slot; images alternate between three vertical bands."""
    angle = (index / (count or 1)) * math.pi * 2
    y = (index % 3) * 2 - 1
    return (math.cos(angle) * radius, float(y), math.sin(angle) * radius)


class ImageGallery:
    """Ordered, append-only collection of uploaded images."""

    def __init__(self, cfg: Cfg):
        self.slot_radius = cfg.gallery.slot_radius
        self.entries: List[ImageEntry] = []

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def ids(self) -> List[str]:
        return [entry.id for entry in self.entries]

    def add_images(self, sources: Iterable[str],
                   loader: Optional[TextureLoader] = None) -> List[ImageEntry]:
        """
        Append a batch of images.

        Slots are computed once, against the collection size after the batch,
        and never move afterwards.

        Args:
            sources: Image references (paths or URLs)
            loader: Optional callable resolving a source to a texture

        Returns:
            The newly created entries
        """
        sources = list(sources)
        count = len(self.entries) + len(sources)
        added = []

        for source in sources:
            index = len(self.entries)
            entry = ImageEntry(
                id=uuid.uuid4().hex[:9],
                source=source,
                style=STYLE_CYCLE[index % len(STYLE_CYCLE)],
                slot_index=index,
                base_position=slot_position(index, count, self.slot_radius),
            )
            if loader is not None:
                entry.texture = self._load(loader, source)
            self.entries.append(entry)
            added.append(entry)

        if added:
            logger.info("🖼️ Added %d image(s), %d total", len(added), len(self.entries))
        return added

    @staticmethod
    def _load(loader: TextureLoader, source: str) -> Any:
        try:
            return loader(source)
        except Exception as e:
            logger.warning("⚠️ Could not load image %s: %s", source, e)
            return None


def bob_params(image_id: str) -> Tuple[float, float]:
    """Deterministic (frequency, phase) of an image's idle bob."""
    digest = zlib.crc32(image_id.encode("utf-8"))
    phase = (digest & 0xFFFF) / 0xFFFF * 2 * math.pi
    frequency = 0.75 + ((digest >> 16) & 0xFF) / 0xFF * 0.5
    return frequency, phase


def look_at(position: np.ndarray, eye: np.ndarray) -> Rotation:
    """Orientation whose local +z axis points from position toward eye."""
    forward = np.asarray(eye, dtype=float) - np.asarray(position, dtype=float)
    norm = np.linalg.norm(forward)
    if norm == 0:
        return Rotation.identity()
    forward /= norm

    up = np.array([0.0, 1.0, 0.0])
    right = np.cross(up, forward)
    if np.linalg.norm(right) < 1e-9:
        # Looking straight up or down
        right = np.cross(np.array([0.0, 0.0, 1.0]), forward)
    right /= np.linalg.norm(right)
    true_up = np.cross(forward, right)

    return Rotation.from_matrix(np.column_stack([right, true_up, forward]))


class PhotoTransitionEngine:
    """
    Per-image presentation logic.

    Selected image: moves to the presentation point, grows to the active
    scale, plays its transition style, and faces the viewer.
    Idle image: sits in its slot with a small vertical bob.
    """

    def __init__(self, cfg: Cfg):
        """Initialize engine with configuration."""
        gallery = cfg.gallery
        self.presentation_point = np.array(gallery.presentation_point, dtype=float)
        self.viewer_position = np.array(gallery.viewer_position, dtype=float)
        self.active_scale = gallery.active_scale
        self.idle_scale = gallery.idle_scale
        self.bob_amplitude = gallery.bob_amplitude
        self.interpolator = MotionInterpolator(cfg.motion.image_rate)

        self.transforms: Dict[str, Transform] = {}

    def style_offset(self, style: TransitionStyle, elapsed: float) -> Tuple[np.ndarray, float, float]:
        """
        Bounded periodic offset for a presented image.

        Returns:
            Tuple of (position offset, scale offset, roll angle in radians)
        """
        offset = np.zeros(3)
        scale = 0.0
        roll = 0.0
        if style == TransitionStyle.SPIN:
            roll = math.sin(elapsed * 2) * 0.2
        elif style == TransitionStyle.SLIDE:
            offset[0] = math.sin(elapsed * 3) * 0.5
        elif style == TransitionStyle.POP:
            scale = math.sin(elapsed * 10) * 0.1
        elif style == TransitionStyle.FADE:
            offset[1] = math.sin(elapsed) * 0.2
        return offset, scale, roll

    def targets(self, entry: ImageEntry, selected: bool, elapsed: float) -> Transform:
        """Target transform of one image for this frame."""
        if selected:
            offset, scale, roll = self.style_offset(entry.style, elapsed)
            return Transform(
                position=self.presentation_point + offset,
                rotation=Rotation.from_euler("z", roll),
                scale=self.active_scale + scale,
            )

        frequency, phase = bob_params(entry.id)
        position = np.array(entry.base_position, dtype=float)
        position[1] += math.sin(elapsed * frequency + phase) * self.bob_amplitude
        return Transform(position=position, rotation=Rotation.identity(), scale=self.idle_scale)

    def update(self, entries: Sequence[ImageEntry], selection: Optional[str],
               elapsed: float, dt: float,
               viewer_position: Optional[np.ndarray] = None) -> Dict[str, Transform]:
        """
        Advance every image's smoothed transform by one frame.

        Args:
            entries: Images in upload order
            selection: Id of the grabbed image, or None
            elapsed: Scene time in seconds
            dt: Time since the previous frame in seconds
            viewer_position: Current vantage point in the scene frame; defaults
                to the configured viewer_position

        Returns:
            Mapping of image id to its current transform
        """
        eye = self.viewer_position if viewer_position is None else np.asarray(viewer_position, dtype=float)

        for entry in entries:
            current = self.transforms.get(entry.id)
            if current is None:
                current = Transform.identity(entry.base_position, self.idle_scale)

            selected = entry.id == selection
            target = self.targets(entry, selected, elapsed)
            current = self.interpolator.advance(current, target, dt)

            if selected:
                # Facing is set directly so the image always reads front-on
                facing = look_at(current.position, eye)
                current = Transform(current.position, facing * target.rotation, current.scale)

            self.transforms[entry.id] = current

        return dict(self.transforms)
