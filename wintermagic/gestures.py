"""
Gesture classification and scene state control.

classify() turns one landmark sample into a GestureSignal without keeping any
state. SceneStateController maps the stream of signals onto formation and
selection state; temporal stability lives there and only there.
"""
import logging
import math
from typing import Optional, Sequence, Tuple

from .config import Cfg
from .types import (
    FINGER_TIPS,
    INDEX_TIP,
    THUMB_TIP,
    WRIST,
    FormationState,
    GestureSignal,
    LandmarkSample,
)

logger = logging.getLogger(__name__)

# Tuned for normalized [0..1] coordinates from a front-facing camera at a
# typical framing distance; not derived from hand geometry.
OPEN_THRESHOLD = 0.25
PINCH_THRESHOLD = 0.05


def planar_distance(a, b) -> float:
    """Euclidean distance between two landmarks in the image (x, y) plane."""
    return math.hypot(a[0] - b[0], a[1] - b[1])


def avg_tip_distance(sample: LandmarkSample) -> float:
    """Mean planar distance from the wrist to the four non-thumb fingertips."""
    wrist = sample[WRIST]
    return sum(planar_distance(sample[tip], wrist) for tip in FINGER_TIPS) / len(FINGER_TIPS)


def classify(sample: Optional[LandmarkSample],
             open_threshold: float = OPEN_THRESHOLD,
             pinch_threshold: float = PINCH_THRESHOLD) -> Optional[GestureSignal]:
    """
    Classify one hand sample into open/fist and pinch signals.

    The sample must hold 21 landmarks; that is the detector's contract and
    is not checked here.

    Args:
        sample: Landmarks of one hand, or None if no hand was detected
        open_threshold: Average tip distance above which the hand is open
        pinch_threshold: Thumb-index distance below which the hand pinches

    Returns:
        GestureSignal, or None when the sample is None
    """
    if sample is None:
        return None

    wrist = sample[WRIST]
    thumb_tip = sample[THUMB_TIP]
    index_tip = sample[INDEX_TIP]

    pinch_distance = planar_distance(thumb_tip, index_tip)

    return GestureSignal(
        is_open=avg_tip_distance(sample) > open_threshold,
        is_pinching=pinch_distance < pinch_threshold,
        pinch_distance=pinch_distance,
        wrist_pos=tuple(wrist),
        index_tip_pos=tuple(index_tip),
        thumb_tip_pos=tuple(thumb_tip),
    )


class GestureClassifier:
    """classify() bound to the configured thresholds."""

    def __init__(self, cfg: Cfg):
        self.open_threshold = cfg.gestures.open_threshold
        self.pinch_threshold = cfg.gestures.pinch_threshold

    def classify(self, sample: Optional[LandmarkSample]) -> Optional[GestureSignal]:
        return classify(sample, self.open_threshold, self.pinch_threshold)

    def classify_hands(self, hands: Sequence[LandmarkSample]) -> Optional[GestureSignal]:
        """Classify the first detected hand; other hands are ignored."""
        return self.classify(hands[0] if hands else None)


def selection_index(wrist_x: float, count: int) -> Optional[int]:
    """
    Map the wrist's horizontal position onto an image index.

    The x axis is mirrored so that moving the hand to the viewer's left
    selects images on the left of a mirrored camera feed.

    Returns:
        Index in [0, count - 1], or None when there are no images
    """
    if count <= 0:
        return None
    index = math.floor((1.0 - wrist_x) * count)
    return max(0, min(count - 1, index))


class SceneStateController:
    """
    Converts gesture signals over time into formation and selection state.

    Modes:
    - direct: formation follows every signal, no hysteresis
    - dwell: a new formation is committed once it has been requested
      continuously for min_dwell_s seconds

    A missing hand always resets to the tree with nothing selected,
    immediately and in both modes.
    """

    def __init__(self, cfg: Cfg):
        """Initialize controller with configuration."""
        self.mode = cfg.controller.mode
        self.min_dwell_s = cfg.controller.min_dwell_s

        self.formation = FormationState.TREE
        self.selection: Optional[str] = None

        # Dwell tracking: formation requested by recent signals and since when
        self._candidate: Optional[FormationState] = None
        self._candidate_since: float = 0.0

    def update(self, signal: Optional[GestureSignal], t_now: float,
               image_ids: Sequence[str] = ()) -> Tuple[FormationState, Optional[str]]:
        """
        Advance the controller by one frame.

        Args:
            signal: Latest published gesture signal (None if no hand)
            t_now: Current time in seconds
            image_ids: Ids of the image collection in upload order

        Returns:
            Tuple of (formation, selected image id or None)
        """
        if signal is None:
            self._set_formation(FormationState.TREE)
            self._candidate = None
            self.selection = None
            return self.formation, self.selection

        requested = FormationState.EXPLODED if signal.is_open else FormationState.TREE
        if self.mode == "direct":
            self._set_formation(requested)
        else:
            self._dwell(requested, t_now)

        # Pinch is evaluated independently of open/fist
        index = selection_index(signal.wrist_pos[0], len(image_ids)) if signal.is_pinching else None
        self.selection = image_ids[index] if index is not None else None

        return self.formation, self.selection

    def reset(self) -> None:
        """Return to the fail-safe default state."""
        self.formation = FormationState.TREE
        self.selection = None
        self._candidate = None

    def _dwell(self, requested: FormationState, t_now: float) -> None:
        if requested == self.formation:
            self._candidate = None
            return

        if self._candidate != requested:
            self._candidate = requested
            self._candidate_since = t_now

        if t_now - self._candidate_since >= self.min_dwell_s:
            self._set_formation(requested)
            self._candidate = None

    def _set_formation(self, formation: FormationState) -> None:
        if formation != self.formation:
            logger.debug("Formation %s -> %s", self.formation.value, formation.value)
            self.formation = formation
