# bubblelevel Configuration
# All default values and constants

import math
from dataclasses import dataclass, field, is_dataclass
from typing import Tuple
from enum import IntEnum


class ConfigInvalid(ValueError):
    """Raised when a config cannot be used to run a level session."""


class FeedbackMode(IntEnum):
    """When the aligned feedback pulse fires"""
    RISING_EDGE = 1        # Once per alignment episode (not-aligned -> aligned)
    CONTINUOUS = 2         # On every aligned sample (legacy behavior)


SENSOR_SOURCES = ("simulated", "icm20948")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

DEFAULT_PALETTE = ("blue", "red", "green", "yellow", "purple", "orange")


@dataclass
class TiltConfig:
    """Bubble geometry and alignment parameters"""
    travel_radius: float = 100.0      # Radius of the level ring (px)
    indicator_radius: float = 25.0    # Radius of the bubble (px)
    alignment_threshold: float = 0.05 # Max |x| and |y| to count as level
    sample_interval_ms: int = 100     # Sensor update interval (ms)
    # Raw displacement = sample * sensitivity (half the viewport in px)
    sensitivity_x: float = 200.0
    sensitivity_y: float = 200.0
    feedback_mode: FeedbackMode = FeedbackMode.RISING_EDGE

    @property
    def max_offset(self) -> float:
        """Largest distance the bubble center may travel from the ring center."""
        return self.travel_radius - self.indicator_radius


@dataclass
class SmootherConfig:
    """Spring-damper filter between target and rendered offset"""
    stiffness: float = 225.0          # k, 1/s^2
    damping: float = 30.0             # c, 1/s (2*sqrt(k) = critically damped)
    step_ms: float = 1000.0 / 240.0   # Fixed integration sub-step (ms)
    max_dt_ms: float = 250.0          # Cap on elapsed time per render tick (ms)


@dataclass
class DisplayConfig:
    """Rendering and feedback settings"""
    indicator_color: str = "blue"
    palette: Tuple[str, ...] = DEFAULT_PALETTE
    frame_interval_ms: int = 16       # Render tick (~60 FPS)
    feedback_flash_ms: int = 150      # Ring highlight duration on alignment
    beep_on_aligned: bool = True


@dataclass
class SensorConfig:
    """Which tilt source feeds the session"""
    source: str = "simulated"         # 'simulated' or 'icm20948'
    i2c_address: int = 0x68           # ICM20948 (0x69 with jumper)
    simulated_seed: int | None = None
    simulated_wobble: float = 0.4     # Peak tilt of the simulated hand wobble
    simulated_level_period_s: float = 6.0  # Seconds between simulated "set it down level" phases


@dataclass
class Config:
    """Master configuration"""
    tilt: TiltConfig = field(default_factory=TiltConfig)
    smoother: SmootherConfig = field(default_factory=SmootherConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    sensor: SensorConfig = field(default_factory=SensorConfig)
    log_level: str = "INFO"           # Logging level (DEBUG/INFO/WARNING/ERROR)


def apply_dict_to_dataclass(target, data) -> None:
    """Recursively apply values from a dict onto a dataclass instance.
    Unknown keys are ignored; IntEnum fields are coerced when possible."""
    if not isinstance(data, dict):
        return

    for key, value in data.items():
        if not hasattr(target, key):
            continue

        current = getattr(target, key)

        if is_dataclass(current):
            if not isinstance(value, dict):
                raise ConfigInvalid(f"{key}: expected an object, got {value!r}")
            apply_dict_to_dataclass(current, value)
            continue

        if isinstance(current, IntEnum):
            try:
                setattr(target, key, current.__class__(value))
            except (TypeError, ValueError):
                raise ConfigInvalid(f"{key}: {value!r} is not a valid {current.__class__.__name__}")
            continue

        if isinstance(current, tuple):
            if not isinstance(value, (list, tuple)):
                raise ConfigInvalid(f"{key}: expected a list, got {value!r}")
            value = tuple(value)

        setattr(target, key, value)


def _positive(name: str, value) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigInvalid(f"{name} must be a number, got {value!r}")
    number = float(value)
    if not math.isfinite(number) or number <= 0:
        raise ConfigInvalid(f"{name} must be positive, got {value!r}")


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_config(config: Config) -> None:
    """Fail fast on a config no session can run with. Raises ConfigInvalid."""
    tilt = config.tilt
    _positive("tilt.travel_radius", tilt.travel_radius)
    _positive("tilt.indicator_radius", tilt.indicator_radius)
    if tilt.indicator_radius > tilt.travel_radius:
        raise ConfigInvalid(
            f"tilt.indicator_radius ({tilt.indicator_radius}) exceeds "
            f"tilt.travel_radius ({tilt.travel_radius})"
        )
    _positive("tilt.alignment_threshold", tilt.alignment_threshold)
    _positive("tilt.sample_interval_ms", tilt.sample_interval_ms)
    _positive("tilt.sensitivity_x", tilt.sensitivity_x)
    _positive("tilt.sensitivity_y", tilt.sensitivity_y)

    smoother = config.smoother
    _positive("smoother.stiffness", smoother.stiffness)
    _positive("smoother.damping", smoother.damping)
    _positive("smoother.step_ms", smoother.step_ms)
    _positive("smoother.max_dt_ms", smoother.max_dt_ms)

    display = config.display
    _positive("display.frame_interval_ms", display.frame_interval_ms)
    _positive("display.feedback_flash_ms", display.feedback_flash_ms)
    if not isinstance(display.palette, tuple) or not display.palette:
        raise ConfigInvalid("display.palette must be a non-empty list of color names")
    if not all(isinstance(color, str) and color for color in display.palette):
        raise ConfigInvalid(f"display.palette has a non-string entry: {display.palette!r}")
    if display.indicator_color not in display.palette:
        raise ConfigInvalid(
            f"display.indicator_color {display.indicator_color!r} is not in the palette"
        )

    sensor = config.sensor
    if sensor.source not in SENSOR_SOURCES:
        raise ConfigInvalid(
            f"sensor.source {sensor.source!r} is not one of {', '.join(SENSOR_SOURCES)}"
        )
    if not _is_int(sensor.i2c_address) or not 0 <= sensor.i2c_address <= 0x7F:
        raise ConfigInvalid(f"sensor.i2c_address must be a 7-bit integer, got {sensor.i2c_address!r}")
    if sensor.simulated_seed is not None and not _is_int(sensor.simulated_seed):
        raise ConfigInvalid(f"sensor.simulated_seed must be an integer or null, got {sensor.simulated_seed!r}")
    _positive("sensor.simulated_wobble", sensor.simulated_wobble)
    _positive("sensor.simulated_level_period_s", sensor.simulated_level_period_s)

    if not isinstance(config.log_level, str) or config.log_level.upper() not in LOG_LEVELS:
        raise ConfigInvalid(f"log_level {config.log_level!r} is not one of {', '.join(LOG_LEVELS)}")


# Default config instance
DEFAULT_CONFIG = Config()
