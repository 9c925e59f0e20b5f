from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class Offset:
    """Signed displacement from the ring center, in pixels."""
    x: float = 0.0
    y: float = 0.0

    @property
    def distance(self) -> float:
        return float(np.hypot(self.x, self.y))


CENTER = Offset(0.0, 0.0)


def raw_displacement(
    x: float,
    y: float,
    sensitivity_x: float,
    sensitivity_y: float,
) -> tuple[float, float]:
    """Scale the tilt components of a sample into an unclamped pixel displacement."""
    return x * sensitivity_x, y * sensitivity_y


def clamp_offset(
    dx: float,
    dy: float,
    travel_radius: float,
    indicator_radius: float,
) -> Offset:
    """Keep the indicator inside the ring.

    Points within travel_radius - indicator_radius of the center come back
    unchanged; anything further is projected radially onto that circle, so
    direction is kept and there is no jump at the boundary.
    """
    limit = travel_radius - indicator_radius
    distance = np.hypot(dx, dy)
    if distance <= limit:
        return Offset(float(dx), float(dy))

    angle = np.arctan2(dy, dx)
    return Offset(float(limit * np.cos(angle)), float(limit * np.sin(angle)))
