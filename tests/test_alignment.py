import unittest

from alignment import AlignmentDetector
from config import FeedbackMode


class TestAlignmentDetector(unittest.TestCase):
    def test_fires_once_per_alignment_episode(self):
        detector = AlignmentDetector(0.05)
        samples = [(0.3, 0.2), (0.1, 0.0)] + [(0.01, -0.02)] * 6

        fired = [detector.update(x, y) for x, y in samples]

        self.assertEqual(fired, [False, False, True, False, False, False, False, False])
        self.assertTrue(detector.aligned)

    def test_fires_again_after_leaving_and_returning(self):
        detector = AlignmentDetector(0.05)
        fired = [detector.update(x, y) for x, y in [(0.0, 0.0), (0.0, 0.0), (0.2, 0.0), (0.0, 0.01)]]
        self.assertEqual(fired, [True, False, False, True])

    def test_both_axes_must_be_under_threshold(self):
        detector = AlignmentDetector(0.05)
        self.assertFalse(detector.classify(0.01, 0.06))
        self.assertFalse(detector.classify(0.06, 0.01))
        self.assertFalse(detector.classify(0.05, 0.0))
        self.assertTrue(detector.classify(0.049, -0.049))

    def test_symmetric_under_sign_flip(self):
        detector = AlignmentDetector(0.05)
        for x, y in [(0.02, 0.01), (0.04, -0.03), (0.07, 0.0), (0.0, 0.2), (0.05, 0.05)]:
            self.assertEqual(detector.classify(x, y), detector.classify(-x, -y))

    def test_continuous_mode_fires_on_every_aligned_sample(self):
        detector = AlignmentDetector(0.05, FeedbackMode.CONTINUOUS)
        fired = [detector.update(x, y) for x, y in [(0.0, 0.0), (0.01, 0.0), (0.3, 0.0), (0.0, 0.0)]]
        self.assertEqual(fired, [True, True, False, True])

    def test_reset_forgets_previous_state(self):
        detector = AlignmentDetector(0.05)
        self.assertTrue(detector.update(0.0, 0.0))
        detector.reset()
        self.assertFalse(detector.aligned)
        self.assertTrue(detector.update(0.0, 0.0))


if __name__ == "__main__":
    unittest.main()
