"""
Type definitions for the gesture-driven tree scene.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Protocol, Sequence, Tuple, runtime_checkable

import numpy as np
from scipy.spatial.transform import Rotation


# (x, y, z): x/y normalized to [0..1], z relative depth
Landmark = Tuple[float, float, float]

# 21 landmarks of one hand, MediaPipe ordering
LandmarkSample = Sequence[Landmark]

WRIST = 0
THUMB_TIP = 4
INDEX_TIP = 8
MIDDLE_TIP = 12
RING_TIP = 16
PINKY_TIP = 20

FINGER_TIPS = (INDEX_TIP, MIDDLE_TIP, RING_TIP, PINKY_TIP)


@dataclass(frozen=True)
class GestureSignal:
    """Discrete gesture reading for one detection cycle."""
    is_open: bool
    is_pinching: bool
    pinch_distance: float
    wrist_pos: Landmark
    index_tip_pos: Landmark
    thumb_tip_pos: Landmark


class FormationState(Enum):
    """Arrangement of the particle cloud."""
    TREE = "tree"
    EXPLODED = "exploded"


class ParticleKind(Enum):
    """Visual kind of a decorative particle."""
    SPHERE = "sphere"
    BOX = "box"
    CONE = "cone"
    GLYPH = "glyph"


class TransitionStyle(Enum):
    """Periodic motion applied to a presented image."""
    SPIN = "spin"    # rotational wobble
    SLIDE = "slide"  # horizontal slide
    POP = "pop"      # scale pulse
    FADE = "fade"    # vertical float


@dataclass(frozen=True)
class EntityConfig:
    """Immutable description of one decorative particle."""
    id: int
    kind: ParticleKind
    color: str
    initial_pos: Tuple[float, float, float]
    tree_pos: Tuple[float, float, float]
    exploded_offset: Tuple[float, float, float]
    scale: float
    spin: Tuple[float, float, float]  # rad/s per axis
    glyph: Optional[str] = None  # only set for ParticleKind.GLYPH


@dataclass(frozen=True)
class Transform:
    """Position, orientation and uniform scale of one displayed object."""
    position: np.ndarray
    rotation: Rotation
    scale: float

    @classmethod
    def identity(cls, position=(0.0, 0.0, 0.0), scale: float = 1.0) -> "Transform":
        return cls(
            position=np.asarray(position, dtype=float),
            rotation=Rotation.identity(),
            scale=float(scale),
        )


@dataclass
class ImageEntry:
    """One uploaded image that can be grabbed with a pinch."""
    id: str
    source: str
    style: TransitionStyle
    slot_index: int
    base_position: Tuple[float, float, float]
    texture: Optional[Any] = None  # owned by the renderer once resolved


@dataclass
class SceneFrame:
    """Everything the renderer needs for one display refresh."""
    elapsed: float
    formation: FormationState
    selection: Optional[str]
    particle_positions: np.ndarray  # (N, 3)
    particle_rotations: Rotation    # stack of N rotations
    particle_scales: np.ndarray     # (N,)
    image_transforms: Dict[str, Transform] = field(default_factory=dict)
    auto_rotate: bool = False
    view_angle: float = 0.0  # orbit of the vantage point about the vertical axis, radians


@runtime_checkable
class RendererProto(Protocol):
    """Abstract protocol for renderers that display scene frames."""

    def setup(self, entities: Sequence[EntityConfig]) -> None:
        """Receive the static particle table once at start-up."""
        ...

    def add_images(self, entries: Sequence[ImageEntry]) -> None:
        """Receive newly ingested images."""
        ...

    def render(self, frame: SceneFrame) -> bool:
        """Display one frame. Returning False asks the host to stop."""
        ...

    def close(self) -> None:
        """Release renderer resources."""
        ...
