"""
bubblelevel - Tilt Mapper
Turns tilt samples into the bubble's target offset and the aligned
feedback events, and animates the rendered offset on the render clock.

Two timing domains meet here:
  process_sample() - sensor thread, once per sample
  tick()           - render clock, once per frame
The target offset is the only value they share, passed through TargetSlot.
"""

import math
from typing import Callable, Optional

from alignment import AlignmentDetector
from config import TiltConfig, SmootherConfig
from geometry import Offset, CENTER, clamp_offset, raw_displacement
from logging_utils import debug_enabled, log_event
from motion_smoother import SpringSmoother
from sensor_source import TiltSample


class MalformedSample(ValueError):
    """A sample with a non-finite component."""


def validate_sample(sample: TiltSample) -> None:
    if not (math.isfinite(sample.x) and math.isfinite(sample.y) and math.isfinite(sample.z)):
        raise MalformedSample(f"non-finite tilt sample ({sample.x}, {sample.y}, {sample.z})")


class TargetSlot:
    """
    One-slot, last-writer-wins mailbox for the target offset.
    A write replaces a single reference to an immutable Offset, which is
    atomic in CPython, so neither side takes a lock.
    """

    def __init__(self):
        self._value: Offset = CENTER

    def put(self, offset: Offset) -> None:
        self._value = offset

    def peek(self) -> Offset:
        return self._value

    def clear(self) -> None:
        self._value = CENTER


class TiltMapper:
    """
    Owns one alignment detector, one spring smoother and the target slot
    for a single level session.
    """

    # Log the first dropped sample and then every Nth consecutive one
    DROP_LOG_EVERY = 50

    def __init__(self, tilt_config: TiltConfig, smoother_config: SmootherConfig = None,
                 feedback_callback: Optional[Callable[[TiltSample], None]] = None):
        self.config = tilt_config
        self.feedback_callback = feedback_callback
        self.detector = AlignmentDetector(tilt_config.alignment_threshold, tilt_config.feedback_mode)
        self.smoother = SpringSmoother.from_config(smoother_config or SmootherConfig())
        self._target = TargetSlot()
        self._rendered: Offset = CENTER
        self._components: tuple[float, float, float] = (0.0, 0.0, 0.0)
        self.dropped_samples = 0
        self._consecutive_drops = 0

    # ------------------------------------------------------------------
    # Sensor domain
    # ------------------------------------------------------------------

    def process_sample(self, sample: TiltSample) -> bool:
        """Map one sample. Returns False when the sample was dropped."""
        try:
            validate_sample(sample)
        except MalformedSample as e:
            self.dropped_samples += 1
            self._consecutive_drops += 1
            if self._consecutive_drops == 1 or self._consecutive_drops % self.DROP_LOG_EVERY == 0:
                log_event("WARNING", "Mapper", "Dropped sample", consecutive=self._consecutive_drops, error=e)
            return False
        self._consecutive_drops = 0

        cfg = self.config
        dx, dy = raw_displacement(sample.x, sample.y, cfg.sensitivity_x, cfg.sensitivity_y)
        target = clamp_offset(dx, dy, cfg.travel_radius, cfg.indicator_radius)

        if self.detector.update(sample.x, sample.y):
            log_event("DEBUG", "Mapper", "Aligned", x=sample.x, y=sample.y)
            if self.feedback_callback is not None:
                self.feedback_callback(sample)

        self._target.put(target)
        self._components = (sample.x, sample.y, sample.z)
        if debug_enabled():
            log_event("DEBUG", "Mapper", "Sample", x=sample.x, y=sample.y,
                      target_x=target.x, target_y=target.y)
        return True

    # ------------------------------------------------------------------
    # Render domain
    # ------------------------------------------------------------------

    def tick(self, dt: float) -> Offset:
        """Advance the smoother by dt seconds toward the latest target."""
        self.smoother.set_target(self._target.peek())
        self._rendered = self.smoother.advance(dt)
        return self._rendered

    # ------------------------------------------------------------------
    # Readout
    # ------------------------------------------------------------------

    @property
    def target_offset(self) -> Offset:
        return self._target.peek()

    @property
    def rendered_offset(self) -> Offset:
        return self._rendered

    @property
    def latest_components(self) -> tuple[float, float, float]:
        return self._components

    @property
    def aligned(self) -> bool:
        return self.detector.aligned

    def reset(self) -> None:
        """Discard all filter and debounce state."""
        self.detector.reset()
        self.smoother.reset()
        self._target.clear()
        self._rendered = CENTER
        self._components = (0.0, 0.0, 0.0)
        self.dropped_samples = 0
        self._consecutive_drops = 0
