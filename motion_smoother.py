"""
bubblelevel - Motion Smoother
Spring-damper filter that animates the rendered bubble offset toward the
latest target offset.

Each axis is an independent unit-mass spring:

    a = k * (target - position) - c * velocity

integrated with semi-implicit Euler over fixed sub-steps, so the result
does not depend on how often the render loop happens to tick. With
c = 2 * sqrt(k) the filter is critically damped: from rest it approaches a
held target without overshooting it.
"""

import numpy as np

from geometry import Offset


class SpringSmoother:
    """
    Continuously retargetable smoother. set_target() may be called far more
    often than the settle time (every sensor sample); advance() is called
    from the render clock with the real elapsed time.
    """

    SETTLE_EPSILON = 1e-3   # px and px/s

    def __init__(self, stiffness: float = 225.0, damping: float = 30.0,
                 step_s: float = 1.0 / 240.0, max_dt_s: float = 0.25):
        self.stiffness = stiffness
        self.damping = damping
        self.step_s = step_s
        self.max_dt_s = max_dt_s

        self._position = np.zeros(2)
        self._velocity = np.zeros(2)
        self._target = np.zeros(2)
        self._carry_s = 0.0   # elapsed time not yet integrated (< one sub-step)

    @classmethod
    def from_config(cls, smoother_config) -> "SpringSmoother":
        return cls(
            stiffness=smoother_config.stiffness,
            damping=smoother_config.damping,
            step_s=smoother_config.step_ms / 1000.0,
            max_dt_s=smoother_config.max_dt_ms / 1000.0,
        )

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def position(self) -> Offset:
        return Offset(float(self._position[0]), float(self._position[1]))

    @property
    def velocity(self) -> Offset:
        return Offset(float(self._velocity[0]), float(self._velocity[1]))

    @property
    def target(self) -> Offset:
        return Offset(float(self._target[0]), float(self._target[1]))

    @property
    def damping_ratio(self) -> float:
        return self.damping / (2.0 * np.sqrt(self.stiffness))

    @property
    def settled(self) -> bool:
        error = np.max(np.abs(self._target - self._position))
        speed = np.max(np.abs(self._velocity))
        return bool(error < self.SETTLE_EPSILON and speed < self.SETTLE_EPSILON)

    def set_target(self, target: Offset) -> None:
        self._target[0] = target.x
        self._target[1] = target.y

    def reset(self) -> None:
        """Back to rest at the center. Nothing carries over."""
        self._position[:] = 0.0
        self._velocity[:] = 0.0
        self._target[:] = 0.0
        self._carry_s = 0.0

    # ------------------------------------------------------------------
    # Integration
    # ------------------------------------------------------------------

    def advance(self, dt: float) -> Offset:
        """Integrate dt seconds of motion and return the new rendered offset."""
        if not dt > 0.0:
            return self.position

        self._carry_s += min(dt, self.max_dt_s)
        steps = int(self._carry_s / self.step_s)
        if steps == 0:
            return self.position
        self._carry_s -= steps * self.step_s

        h = self.step_s
        k = self.stiffness
        c = self.damping
        for _ in range(steps):
            accel = k * (self._target - self._position) - c * self._velocity
            self._velocity += accel * h
            self._position += self._velocity * h

        return self.position
