"""
WinterMagic Gesture Scene

A Python library that reads hand landmarks from a webcam via MediaPipe and
turns open/fist/pinch gestures into a particle tree that explodes, reforms,
and presents grabbed images.
"""

__version__ = "0.1.0"
__author__ = "WinterMagic Team"

from .types import (
    GestureSignal,
    FormationState,
    ParticleKind,
    TransitionStyle,
    EntityConfig,
    ImageEntry,
    Transform,
    SceneFrame,
    RendererProto,
)
from .config import load_config, Cfg
from .channel import LatestValue
from .gestures import classify, GestureClassifier, SceneStateController, selection_index
from .formation import ParticleFormationGenerator, FormationTable, tree_position
from .motion import MotionInterpolator
from .gallery import ImageGallery, PhotoTransitionEngine
from .scene import WinterScene, run_render_loop
from .renderer_mock import MockRenderer

__all__ = [
    "GestureSignal",
    "FormationState",
    "ParticleKind",
    "TransitionStyle",
    "EntityConfig",
    "ImageEntry",
    "Transform",
    "SceneFrame",
    "RendererProto",
    "load_config",
    "Cfg",
    "LatestValue",
    "classify",
    "GestureClassifier",
    "SceneStateController",
    "selection_index",
    "ParticleFormationGenerator",
    "FormationTable",
    "tree_position",
    "MotionInterpolator",
    "ImageGallery",
    "PhotoTransitionEngine",
    "WinterScene",
    "run_render_loop",
    "MockRenderer",
]
