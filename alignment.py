"""
bubblelevel - Alignment Detector
Classifies tilt samples as level / not level and decides when the
feedback pulse fires.
"""

from config import FeedbackMode


class AlignmentDetector:
    """
    Level when both |x| and |y| are under the threshold (independent axes,
    no combined magnitude test).

    update() returns True when feedback should fire. In RISING_EDGE mode
    that is only the first aligned sample after a non-aligned one, so a
    device resting level does not buzz at the sample rate. CONTINUOUS
    fires on every aligned sample.
    """

    def __init__(self, threshold: float, mode: FeedbackMode = FeedbackMode.RISING_EDGE):
        self.threshold = threshold
        self.mode = mode
        self._aligned = False

    @property
    def aligned(self) -> bool:
        return self._aligned

    def classify(self, x: float, y: float) -> bool:
        return abs(x) < self.threshold and abs(y) < self.threshold

    def update(self, x: float, y: float) -> bool:
        aligned = self.classify(x, y)
        previous = self._aligned
        self._aligned = aligned

        if self.mode == FeedbackMode.CONTINUOUS:
            return aligned
        return aligned and not previous

    def reset(self) -> None:
        self._aligned = False
