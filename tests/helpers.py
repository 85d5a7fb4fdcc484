"""
Synthetic hand landmark fixtures shared by the tests.
"""
from typing import List, Tuple

from wintermagic.types import FINGER_TIPS, INDEX_TIP, THUMB_TIP, GestureSignal

Point = Tuple[float, float, float]


def make_hand(tip_distance: float = 0.125, pinch_distance: float = 0.25,
              wrist: Tuple[float, float] = (0.5, 0.75)) -> List[Point]:
    """
    Build 21 landmarks with the four fingertips straight above the wrist.

    Args:
        tip_distance: Wrist-to-fingertip distance for every non-thumb finger
        pinch_distance: Horizontal thumb-tip to index-tip distance
        wrist: Wrist (x, y)

    Use binary-exact values (0.25, 0.0625, ...) when a test sits on a threshold.
    """
    wx, wy = wrist
    landmarks = [(wx, wy, 0.0)] * 21
    for tip in FINGER_TIPS:
        landmarks[tip] = (wx, wy - tip_distance, 0.0)
    ix, iy, _ = landmarks[INDEX_TIP]
    landmarks[THUMB_TIP] = (ix + pinch_distance, iy, 0.0)
    return landmarks


def make_signal(is_open: bool = False, is_pinching: bool = False, wrist_x: float = 0.5) -> GestureSignal:
    """GestureSignal built directly, bypassing the classifier."""
    return GestureSignal(
        is_open=is_open,
        is_pinching=is_pinching,
        pinch_distance=0.01 if is_pinching else 0.2,
        wrist_pos=(wrist_x, 0.75, 0.0),
        index_tip_pos=(wrist_x, 0.5, 0.0),
        thumb_tip_pos=(wrist_x, 0.5, 0.0),
    )
