"""
Mock renderer implementation for headless runs and testing.
"""
import logging
from typing import List, Optional, Sequence

from .types import EntityConfig, FormationState, ImageEntry, SceneFrame

logger = logging.getLogger(__name__)


class MockRenderer:
    """Mock renderer that logs state changes instead of drawing anything."""

    def __init__(self, max_frames: Optional[int] = None):
        """
        Initialize the mock renderer.

        Args:
            max_frames: Ask the host to stop after this many frames (None = never)
        """
        self.max_frames = max_frames
        self.entities: List[EntityConfig] = []
        self.images: List[ImageEntry] = []
        self.frame_count = 0
        self.last_frame: Optional[SceneFrame] = None
        self.formation_changes = 0
        self.closed = False

    def setup(self, entities: Sequence[EntityConfig]) -> None:
        self.entities = list(entities)
        logger.info("[MockRenderer] Setup with %d particles", len(self.entities))

    def add_images(self, entries: Sequence[ImageEntry]) -> None:
        self.images.extend(entries)
        logger.info("[MockRenderer] %d image(s) added", len(entries))

    def render(self, frame: SceneFrame) -> bool:
        """Record the frame and log formation and selection changes."""
        previous = self.last_frame
        formation = previous.formation if previous else FormationState.TREE
        if frame.formation != formation:
            self.formation_changes += 1
            logger.info("[MockRenderer] Formation: %s", frame.formation.value)
        if previous is not None and frame.selection != previous.selection:
            logger.info("[MockRenderer] Selection: %s", frame.selection)

        self.frame_count += 1
        self.last_frame = frame
        return self.max_frames is None or self.frame_count < self.max_frames

    def close(self) -> None:
        self.closed = True

    def reset_counters(self) -> None:
        """Reset counters for testing."""
        self.frame_count = 0
        self.formation_changes = 0
