"""
Tests for the hand pointer pieces that do not need a camera or the MediaPipe model.
"""

import unittest
from types import SimpleNamespace

import numpy as np

from hand_tracking.gestures import HandDetection, PinchClassifier, fingertip, landmark_array, pinch_ratio
from swarm.timers import ManualClock
from utils.config import GestureConfig, HandSample, SharedState
from utils.fps import FPSCounter
from utils.smoothing import ExponentialSmoother, LandmarkSmoother, TemporalStabilizer


def _hand(pinched):
    landmarks = np.zeros((21, 3), dtype=np.float32)
    landmarks[0] = (0.5, 0.8, 0.0)  # wrist
    landmarks[9] = (0.5, 0.6, 0.0)  # middle finger base
    landmarks[4] = (0.45, 0.5, 0.0)  # thumb tip
    landmarks[8] = (0.46, 0.5, 0.0) if pinched else (0.6, 0.3, 0.0)
    return landmarks


class TestPinchClassifier(unittest.TestCase):
    def test_pinch_ratio_is_palm_relative(self):
        self.assertAlmostEqual(pinch_ratio(_hand(True)), 0.05, places=5)
        self.assertGreater(pinch_ratio(_hand(False)), 1.0)

    def test_engages_and_releases_with_hysteresis(self):
        classifier = PinchClassifier(GestureConfig())
        for _ in range(5):
            self.assertFalse(classifier.update(_hand(True)))
        self.assertTrue(classifier.update(_hand(True)))
        for _ in range(4):
            self.assertTrue(classifier.update(_hand(False)))
        self.assertFalse(classifier.update(_hand(False)))

    def test_lost_hand_releases(self):
        classifier = PinchClassifier(GestureConfig())
        for _ in range(6):
            classifier.update(_hand(True))
        self.assertTrue(classifier.pinched)
        self.assertIsNone(classifier.classify(None))
        self.assertFalse(classifier.pinched)

    def test_classify_builds_a_sample(self):
        classifier = PinchClassifier(GestureConfig())
        detection = HandDetection(landmarks=_hand(False), pointer=np.array([0.25, 0.75]))
        self.assertEqual(classifier.classify(detection), HandSample(x=0.25, y=0.75, pinched=False))


class TestLandmarkConversion(unittest.TestCase):
    def test_landmarks_are_mirrored(self):
        points = [SimpleNamespace(x=0.2, y=0.4, z=-0.1), SimpleNamespace(x=0.9, y=0.1, z=0.0)]
        np.testing.assert_allclose(landmark_array(points), [[0.8, 0.4, -0.1], [0.1, 0.1, 0.0]], atol=1e-6)
        np.testing.assert_allclose(landmark_array(points, mirror=False)[:, 0], [0.2, 0.9], atol=1e-6)

    def test_fingertip_is_clipped(self):
        landmarks = _hand(False)
        landmarks[8] = (1.2, -0.1, 0.0)
        np.testing.assert_allclose(fingertip(landmarks), [1.0, 0.0])
        np.testing.assert_allclose(fingertip(_hand(False)), [0.6, 0.3], atol=1e-6)


class TestHelpers(unittest.TestCase):
    def test_temporal_stabilizer_needs_a_full_window(self):
        stabilizer = TemporalStabilizer(3)
        stabilizer.push(True)
        stabilizer.push(True)
        self.assertFalse(stabilizer.is_stable(0.5))
        self.assertAlmostEqual(stabilizer.push(False), 2 / 3)
        self.assertTrue(stabilizer.is_stable(0.5))
        stabilizer.clear()
        self.assertEqual(stabilizer.ratio, 0.0)

    def test_exponential_smoother(self):
        smoother = ExponentialSmoother(0.5)
        np.testing.assert_allclose(smoother.update([2.0, 4.0]), [2.0, 4.0])
        np.testing.assert_allclose(smoother.update([4.0, 0.0]), [3.0, 2.0])
        smoother.reset()
        np.testing.assert_allclose(smoother.update([1.0, 1.0]), [1.0, 1.0])

    def test_landmark_smoother_checks_shape(self):
        smoother = LandmarkSmoother(0.5)
        with self.assertRaises(ValueError):
            smoother.update(np.zeros((5, 3), dtype=np.float32))
        self.assertEqual(smoother.update(_hand(True)).shape, (21, 3))

    def test_shared_state_freshness(self):
        state = SharedState()
        self.assertEqual(state.consume(), (False, None))
        sample = HandSample(0.1, 0.2, True)
        state.update(sample)
        self.assertEqual(state.consume(), (True, sample))
        self.assertEqual(state.consume(), (False, sample))
        state.update(None)
        self.assertEqual(state.consume(), (True, None))
        state.request_shutdown()
        self.assertTrue(state.shutdown_requested())

    def test_fps_counter(self):
        clock = ManualClock()
        counter = FPSCounter(average_over=30, clock=clock)
        self.assertEqual(counter.tick(), 0.0)
        for _ in range(29):
            clock.advance(1 / 60.0)
            counter.tick()
        self.assertAlmostEqual(counter.fps, 60.0, places=3)


if __name__ == "__main__":
    unittest.main()
