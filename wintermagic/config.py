"""
Configuration management for the gesture-driven tree scene.
"""
import yaml
from pathlib import Path
from typing import Optional, Dict, Any, Tuple
from dataclasses import dataclass


CONTROLLER_MODES = ("direct", "dwell")


@dataclass
class CameraConfig:
    """Camera configuration settings."""
    index: int
    width: int
    height: int
    fps: int


@dataclass
class MediaPipeConfig:
    """MediaPipe Hand Landmarker configuration settings."""
    model_path: str
    model_url: str
    max_num_hands: int
    min_detection_confidence: float
    min_presence_confidence: float
    min_tracking_confidence: float


@dataclass
class GesturesConfig:
    """Gesture classification thresholds (normalized image units)."""
    open_threshold: float
    pinch_threshold: float


@dataclass
class ControllerConfig:
    """Formation state hysteresis settings."""
    mode: str
    min_dwell_s: float


@dataclass
class FormationConfig:
    """Particle cloud generation settings."""
    particle_count: int
    tree_height: float
    tree_base_radius: float
    tree_turns: float
    explode_inner_radius: float
    explode_outer_radius: float
    swirl_speed: float
    spawn_extent: float
    seed: Optional[int]


@dataclass
class MotionConfig:
    """Exponential smoothing rates (1/s)."""
    particle_rate: float
    image_rate: float


@dataclass
class GalleryConfig:
    """Image layout and presentation settings."""
    slot_radius: float
    presentation_point: Tuple[float, float, float]
    viewer_position: Tuple[float, float, float]
    active_scale: float
    idle_scale: float
    bob_amplitude: float


@dataclass
class RenderConfig:
    """Render loop settings."""
    fps: int


@dataclass
class DisplayConfig:
    """Preview window settings."""
    window_name: str
    width: int
    height: int
    show_camera: bool


@dataclass
class LoggingConfig:
    """Logging settings."""
    level: str
    format: str


@dataclass
class Cfg:
    """Main configuration class."""
    camera: CameraConfig
    mediapipe: MediaPipeConfig
    gestures: GesturesConfig
    controller: ControllerConfig
    formation: FormationConfig
    motion: MotionConfig
    gallery: GalleryConfig
    render: RenderConfig
    display: DisplayConfig
    logging: LoggingConfig


def load_config(path: Optional[str] = None) -> Cfg:
    """
    Load configuration from YAML file.

    Args:
        path: Path to config file. If None, uses config.default.yaml

    Returns:
        Configuration object with all settings
    """
    if path is None:
        # Use default config file in project root
        project_root = Path(__file__).parent.parent
        path = project_root / "config.default.yaml"

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        data = yaml.safe_load(f)

    cfg = _dict_to_config(data)
    validate_config(cfg)
    return cfg


def _vec3(value) -> Tuple[float, float, float]:
    x, y, z = value
    return (float(x), float(y), float(z))


def _dict_to_config(data: Dict[str, Any]) -> Cfg:
    """Convert dictionary to configuration object."""
    camera_data = data['camera']
    camera = CameraConfig(
        index=camera_data['index'],
        width=camera_data['width'],
        height=camera_data['height'],
        fps=camera_data['fps']
    )

    mp_data = data['mediapipe']
    mediapipe = MediaPipeConfig(
        model_path=mp_data['model_path'],
        model_url=mp_data['model_url'],
        max_num_hands=mp_data['max_num_hands'],
        min_detection_confidence=mp_data['min_detection_confidence'],
        min_presence_confidence=mp_data['min_presence_confidence'],
        min_tracking_confidence=mp_data['min_tracking_confidence']
    )

    gestures_data = data['gestures']
    gestures = GesturesConfig(
        open_threshold=float(gestures_data['open_threshold']),
        pinch_threshold=float(gestures_data['pinch_threshold'])
    )

    controller_data = data['controller']
    controller = ControllerConfig(
        mode=controller_data['mode'],
        min_dwell_s=float(controller_data['min_dwell_s'])
    )

    formation_data = data['formation']
    formation = FormationConfig(
        particle_count=int(formation_data['particle_count']),
        tree_height=float(formation_data['tree_height']),
        tree_base_radius=float(formation_data['tree_base_radius']),
        tree_turns=float(formation_data['tree_turns']),
        explode_inner_radius=float(formation_data['explode_inner_radius']),
        explode_outer_radius=float(formation_data['explode_outer_radius']),
        swirl_speed=float(formation_data['swirl_speed']),
        spawn_extent=float(formation_data['spawn_extent']),
        seed=formation_data.get('seed')
    )

    motion_data = data['motion']
    motion = MotionConfig(
        particle_rate=float(motion_data['particle_rate']),
        image_rate=float(motion_data['image_rate'])
    )

    gallery_data = data['gallery']
    gallery = GalleryConfig(
        slot_radius=float(gallery_data['slot_radius']),
        presentation_point=_vec3(gallery_data['presentation_point']),
        viewer_position=_vec3(gallery_data['viewer_position']),
        active_scale=float(gallery_data['active_scale']),
        idle_scale=float(gallery_data['idle_scale']),
        bob_amplitude=float(gallery_data['bob_amplitude'])
    )

    render = RenderConfig(fps=int(data['render']['fps']))

    display_data = data['display']
    display = DisplayConfig(
        window_name=display_data['window_name'],
        width=int(display_data['width']),
        height=int(display_data['height']),
        show_camera=bool(display_data['show_camera'])
    )

    logging_data = data['logging']
    logging_cfg = LoggingConfig(
        level=str(logging_data['level']).upper(),
        format=logging_data['format']
    )

    return Cfg(
        camera=camera,
        mediapipe=mediapipe,
        gestures=gestures,
        controller=controller,
        formation=formation,
        motion=motion,
        gallery=gallery,
        render=render,
        display=display,
        logging=logging_cfg
    )


def validate_config(cfg: Cfg) -> None:
    """Raise ValueError for settings the scene cannot run with."""
    if not 0 < cfg.gestures.open_threshold < 1:
        raise ValueError("gestures.open_threshold must be in (0, 1)")
    if not 0 < cfg.gestures.pinch_threshold < 1:
        raise ValueError("gestures.pinch_threshold must be in (0, 1)")
    if cfg.controller.mode not in CONTROLLER_MODES:
        raise ValueError(f"controller.mode must be one of {CONTROLLER_MODES}, got {cfg.controller.mode!r}")
    if cfg.controller.min_dwell_s < 0:
        raise ValueError("controller.min_dwell_s must be >= 0")
    if cfg.formation.particle_count <= 0:
        raise ValueError("formation.particle_count must be positive")
    if not 0 <= cfg.formation.explode_inner_radius <= cfg.formation.explode_outer_radius:
        raise ValueError("formation explode radii must satisfy 0 <= inner <= outer")
    if cfg.motion.particle_rate <= 0 or cfg.motion.image_rate <= 0:
        raise ValueError("motion rates must be positive")
    if cfg.render.fps <= 0:
        raise ValueError("render.fps must be positive")
