"""
Render/update loop: latest gesture signal -> scene state -> smoothed transforms.
"""
import asyncio
import math
import logging
import time
from typing import Iterable, List, Optional

import numpy as np
from scipy.spatial.transform import Rotation

from .channel import LatestValue
from .config import Cfg
from .formation import FormationTable, ParticleFormationGenerator
from .gallery import ImageGallery, PhotoTransitionEngine, TextureLoader
from .gestures import SceneStateController
from .motion import MotionInterpolator
from .types import FormationState, GestureSignal, ImageEntry, RendererProto, SceneFrame

logger = logging.getLogger(__name__)

# One full orbit of the view every 120 s while the cloud is exploded
ORBIT_SPEED = 2 * math.pi / 120.0


class WinterScene:
    """
    Owns all per-entity state and advances it once per display refresh.

    Only the render loop calls update(); nothing else mutates the particle
    or image transforms.
    """

    def __init__(self, cfg: Cfg, signals: Optional[LatestValue[GestureSignal]] = None,
                 seed: Optional[int] = None):
        """Initialize the scene with configuration."""
        self.cfg = cfg
        self.signals = signals if signals is not None else LatestValue()

        self.controller = SceneStateController(cfg)
        self.table: FormationTable = ParticleFormationGenerator(cfg, seed=seed).generate()
        self.gallery = ImageGallery(cfg)
        self.photos = PhotoTransitionEngine(cfg)
        self.particle_motion = MotionInterpolator(cfg.motion.particle_rate)

        # Particles start scattered and fly into the tree
        self.positions = np.array(self.table.initial_positions, dtype=float)
        self.angles = np.zeros((len(self.table), 3))
        self.elapsed = 0.0
        self.view_angle = 0.0

    @property
    def formation(self) -> FormationState:
        return self.controller.formation

    @property
    def selection(self) -> Optional[str]:
        return self.controller.selection

    def add_images(self, sources: Iterable[str],
                   loader: Optional[TextureLoader] = None) -> List[ImageEntry]:
        return self.gallery.add_images(sources, loader=loader)

    def viewer_position(self) -> np.ndarray:
        """Configured vantage point carried around the vertical axis by the orbit."""
        viewer = np.array(self.cfg.gallery.viewer_position, dtype=float)
        return Rotation.from_euler("y", self.view_angle).apply(viewer)

    def update(self, dt: float) -> SceneFrame:
        """
        Advance the scene by dt seconds.

        Args:
            dt: Time since the previous frame in seconds (>= 0)

        Returns:
            SceneFrame describing every particle and image for this refresh
        """
        self.elapsed += dt

        signal = self.signals.read()
        formation, selection = self.controller.update(signal, self.elapsed, self.gallery.ids)

        targets = self.table.targets(formation, self.elapsed)
        self.positions = self.particle_motion.step(self.positions, targets, dt)
        self.angles += self.table.spins * dt

        if formation == FormationState.EXPLODED:
            self.view_angle += ORBIT_SPEED * dt

        images = self.photos.update(self.gallery.entries, selection, self.elapsed, dt,
                                    viewer_position=self.viewer_position())

        return SceneFrame(
            elapsed=self.elapsed,
            formation=formation,
            selection=selection,
            particle_positions=self.positions.copy(),
            particle_rotations=Rotation.from_euler("xyz", self.angles),
            particle_scales=self.table.scales,
            image_transforms=images,
            auto_rotate=formation == FormationState.EXPLODED,
            view_angle=self.view_angle,
        )


async def run_render_loop(scene: WinterScene, renderer: RendererProto,
                          stop: asyncio.Event, fps: int) -> int:
    """
    Update and render the scene at roughly fps frames per second until stopped.

    Sets stop when the renderer asks to quit, so other loops end as well.

    Returns:
        Number of frames rendered
    """
    period = 1.0 / fps
    frames = 0
    last = time.perf_counter()

    while not stop.is_set():
        now = time.perf_counter()
        dt = now - last
        last = now

        frame = scene.update(dt)
        frames += 1
        if not renderer.render(frame):
            logger.info("Renderer requested shutdown")
            stop.set()
            break

        # Yield to the detection loop even when rendering is slow
        await asyncio.sleep(max(0.0, period - (time.perf_counter() - now)))

    return frames
