"""
Test cases for gesture classification and scene state control with synthetic landmarks.
"""
import unittest
import sys
from pathlib import Path

import numpy as np

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

from wintermagic.gestures import (
    classify, avg_tip_distance, GestureClassifier, SceneStateController, selection_index,
)
from wintermagic.types import FormationState, GestureSignal
from wintermagic.config import load_config
from helpers import make_hand, make_signal


class TestClassify(unittest.TestCase):
    """Test the stateless gesture classifier."""

    def test_absent_input(self):
        """No hand in, no signal out."""
        self.assertIsNone(classify(None))

    def test_tips_within_threshold_not_open(self):
        """Tips at or inside 0.25 of the wrist are a fist."""
        for distance in (0.0, 0.0625, 0.125, 0.25):
            signal = classify(make_hand(tip_distance=distance))
            self.assertFalse(signal.is_open, f"tip distance {distance}")

    def test_tips_beyond_threshold_open(self):
        """Strictly beyond 0.25 is open."""
        for distance in (0.2578125, 0.3125, 0.5):
            signal = classify(make_hand(tip_distance=distance))
            self.assertTrue(signal.is_open, f"tip distance {distance}")

    def test_average_over_four_tips(self):
        """Openness uses the mean of the four fingertip distances."""
        hand = make_hand(tip_distance=0.125)
        hand[20] = (0.5, 0.75 - 0.625, 0.0)  # pinky far out: mean = (3*0.125 + 0.625)/4 = 0.25
        self.assertEqual(avg_tip_distance(hand), 0.25)
        self.assertFalse(classify(hand).is_open)

        hand[16] = (0.5, 0.75 - 0.25, 0.0)
        self.assertTrue(classify(hand).is_open)

    def test_depth_ignored(self):
        """Only the image plane counts toward distances."""
        hand = make_hand(tip_distance=0.125)
        hand = [(x, y, 5.0 if i in (8, 12, 16, 20) else z) for i, (x, y, z) in enumerate(hand)]
        self.assertFalse(classify(hand).is_open)

    def test_pinch_threshold(self):
        """Thumb-index distance >= 0.05 is not a pinch, < 0.05 is."""
        for distance in (0.0625, 0.125, 0.25):
            signal = classify(make_hand(pinch_distance=distance))
            self.assertFalse(signal.is_pinching, f"pinch distance {distance}")
            self.assertAlmostEqual(signal.pinch_distance, distance)

        for distance in (0.0, 0.015625, 0.03125, 0.046875):
            signal = classify(make_hand(pinch_distance=distance))
            self.assertTrue(signal.is_pinching, f"pinch distance {distance}")

    def test_open_and_pinch_independent(self):
        """A fist can pinch; the two flags are not mutually exclusive."""
        signal = classify(make_hand(tip_distance=0.125, pinch_distance=0.03125))
        self.assertFalse(signal.is_open)
        self.assertTrue(signal.is_pinching)

    def test_positions_copied(self):
        """Signal carries wrist, index and thumb tip positions."""
        hand = make_hand(wrist=(0.25, 0.75), pinch_distance=0.125)
        signal = classify(hand)
        self.assertEqual(signal.wrist_pos, (0.25, 0.75, 0.0))
        self.assertEqual(signal.index_tip_pos, hand[8])
        self.assertEqual(signal.thumb_tip_pos, hand[4])

    def test_configured_thresholds(self):
        """GestureClassifier uses thresholds from configuration."""
        cfg = load_config()
        cfg.gestures.open_threshold = 0.5
        classifier = GestureClassifier(cfg)
        self.assertFalse(classifier.classify(make_hand(tip_distance=0.3125)).is_open)

    def test_first_hand_only(self):
        """Only the first detected hand is classified."""
        classifier = GestureClassifier(load_config())
        signal = classifier.classify_hands([make_hand(tip_distance=0.5), make_hand(tip_distance=0.0)])
        self.assertTrue(signal.is_open)
        self.assertIsNone(classifier.classify_hands([]))


class TestSelectionIndex(unittest.TestCase):
    """Test mirrored wrist position to image index mapping."""

    def test_center_of_four(self):
        """wrist x 0.5 with 4 images selects the third image."""
        self.assertEqual(selection_index(0.5, 4), 2)

    def test_far_side_clamped(self):
        """wrist x 0.0 with 3 images is floor(3) = 3, clamped to 2."""
        self.assertEqual(selection_index(0.0, 3), 2)

    def test_near_side(self):
        """wrist x 1.0 maps to the first image."""
        self.assertEqual(selection_index(1.0, 5), 0)

    def test_always_in_range(self):
        """Index stays in [0, count - 1] for every wrist position."""
        for count in range(1, 9):
            for x in np.linspace(0.0, 1.0, 101):
                index = selection_index(float(x), count)
                self.assertGreaterEqual(index, 0)
                self.assertLessEqual(index, count - 1)

    def test_no_images(self):
        """Empty collection never yields an index."""
        for x in (0.0, 0.5, 1.0):
            self.assertIsNone(selection_index(x, 0))


class TestSceneStateController(unittest.TestCase):
    """Test formation and selection state over time."""

    def setUp(self):
        """Set up test configuration."""
        self.cfg = load_config()
        self.ids = ["a", "b", "c", "d"]
        self.dt = 1 / 60

    def _controller(self, mode: str, min_dwell_s: float = 0.15) -> SceneStateController:
        self.cfg.controller.mode = mode
        self.cfg.controller.min_dwell_s = min_dwell_s
        return SceneStateController(self.cfg)

    def test_starts_as_tree(self):
        controller = self._controller("direct")
        self.assertEqual(controller.formation, FormationState.TREE)
        self.assertIsNone(controller.selection)

    def test_open_explodes_fist_reforms(self):
        controller = self._controller("direct")
        formation, _ = controller.update(make_signal(is_open=True), 0.0, self.ids)
        self.assertEqual(formation, FormationState.EXPLODED)
        formation, _ = controller.update(make_signal(is_open=False), self.dt, self.ids)
        self.assertEqual(formation, FormationState.TREE)

    def test_absent_resets_regardless_of_state(self):
        """No hand -> tree and no selection, in both modes, immediately."""
        for mode in ("direct", "dwell"):
            controller = self._controller(mode, min_dwell_s=0.0)
            controller.update(make_signal(is_open=True, is_pinching=True), 0.0, self.ids)
            self.assertEqual(controller.formation, FormationState.EXPLODED)
            self.assertIsNotNone(controller.selection)

            formation, selection = controller.update(None, self.dt, self.ids)
            self.assertEqual(formation, FormationState.TREE, mode)
            self.assertIsNone(selection, mode)

    def test_pinch_selects_by_wrist(self):
        """wrist x 0.5 with 4 images selects the third id."""
        controller = self._controller("direct")
        _, selection = controller.update(make_signal(is_pinching=True, wrist_x=0.5), 0.0, self.ids)
        self.assertEqual(selection, "c")

    def test_pinch_far_side_selects_last(self):
        controller = self._controller("direct")
        _, selection = controller.update(make_signal(is_pinching=True, wrist_x=0.0), 0.0, ["a", "b", "c"])
        self.assertEqual(selection, "c")

    def test_pinch_without_images(self):
        """Pinching with no images is a no-op."""
        controller = self._controller("direct")
        _, selection = controller.update(make_signal(is_pinching=True), 0.0, [])
        self.assertIsNone(selection)

    def test_release_pinch_clears_selection(self):
        controller = self._controller("direct")
        controller.update(make_signal(is_pinching=True), 0.0, self.ids)
        _, selection = controller.update(make_signal(is_pinching=False), self.dt, self.ids)
        self.assertIsNone(selection)

    def test_fist_pinch_keeps_tree(self):
        """Pinch is evaluated independently of open/fist."""
        controller = self._controller("direct")
        formation, selection = controller.update(make_signal(is_open=False, is_pinching=True), 0.0, self.ids)
        self.assertEqual(formation, FormationState.TREE)
        self.assertEqual(selection, "c")

    def test_oscillation_direct_mode_toggles_every_frame(self):
        """
        Direct mode reproduces the unfiltered behavior: an open/fist signal
        flipping every frame flips the formation every frame. This is why
        config.default.yaml ships with dwell.
        """
        controller = self._controller("direct")
        previous = controller.formation
        toggles = 0
        for frame in range(10):
            formation, _ = controller.update(make_signal(is_open=frame % 2 == 0), frame * self.dt, self.ids)
            toggles += formation != previous
            previous = formation
        self.assertEqual(toggles, 10)

    def test_oscillation_dwell_mode_at_most_one_toggle(self):
        """Dwell mode: the same oscillating input toggles at most once."""
        controller = self._controller("dwell", min_dwell_s=0.15)
        previous = controller.formation
        toggles = 0
        for frame in range(10):
            formation, _ = controller.update(make_signal(is_open=frame % 2 == 0), frame * self.dt, self.ids)
            toggles += formation != previous
            previous = formation
        self.assertLessEqual(toggles, 1)

    def test_dwell_commits_sustained_change(self):
        """A change held longer than min_dwell_s is committed."""
        controller = self._controller("dwell", min_dwell_s=0.15)
        for frame in range(7):  # up to t = 0.1
            formation, _ = controller.update(make_signal(is_open=True), frame * self.dt, self.ids)
        self.assertEqual(formation, FormationState.TREE)

        for frame in range(7, 13):  # up to t = 0.2
            formation, _ = controller.update(make_signal(is_open=True), frame * self.dt, self.ids)
        self.assertEqual(formation, FormationState.EXPLODED)

    def test_dwell_does_not_delay_selection(self):
        """Hysteresis applies to formation only."""
        controller = self._controller("dwell", min_dwell_s=10.0)
        _, selection = controller.update(make_signal(is_pinching=True, wrist_x=1.0), 0.0, self.ids)
        self.assertEqual(selection, "a")

    def test_at_most_one_selection(self):
        """Selection is a single id or None on every frame."""
        controller = self._controller("direct")
        for x in np.linspace(0.0, 1.0, 21):
            _, selection = controller.update(make_signal(is_pinching=True, wrist_x=float(x)), 0.0, self.ids)
            self.assertIn(selection, self.ids)

    def test_reset(self):
        controller = self._controller("direct")
        controller.update(make_signal(is_open=True, is_pinching=True), 0.0, self.ids)
        controller.reset()
        self.assertEqual(controller.formation, FormationState.TREE)
        self.assertIsNone(controller.selection)

    def test_signal_is_immutable(self):
        signal = make_signal()
        with self.assertRaises(Exception):
            signal.is_open = True  # type: ignore[misc]
        self.assertIsInstance(signal, GestureSignal)


if __name__ == '__main__':
    unittest.main()
