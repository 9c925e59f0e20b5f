"""
bubblelevel - Tilt Sources
Push streams of three-axis tilt samples.

A source owns a background thread that reads one sample per update
interval and hands it to the subscribed listener. The listener runs on
that thread, never on the GUI thread.
"""

import math
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from config import SensorConfig
from logging_utils import log_event


STANDARD_GRAVITY = 9.80665  # m/s^2


class SensorUnavailable(RuntimeError):
    """The tilt sensor cannot be subscribed to (missing hardware, driver or permission)."""


@dataclass(frozen=True)
class TiltSample:
    """One accelerometer reading, in units of g"""
    x: float
    y: float
    z: float
    timestamp: float = 0.0


TiltListener = Callable[[TiltSample], None]


class TiltSource(ABC):
    """
    Base class for sample sources.

    Subclasses implement:
        _open()        - acquire the device, raise SensorUnavailable on failure
        read_sample()  - return one TiltSample, or None to skip this interval
        _close()       - release the device (optional)
    """

    # Log the first failure and then every Nth consecutive one
    FAILURE_LOG_EVERY = 50

    def __init__(self, interval_ms: int = 100):
        self.interval_ms = interval_ms
        self._listener: Optional[TiltListener] = None
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._consecutive_failures = 0

    @property
    def subscribed(self) -> bool:
        return self._thread is not None

    def set_update_interval(self, interval_ms: int) -> None:
        """Change the sample cadence; takes effect from the next sample."""
        self.interval_ms = interval_ms

    def subscribe(self, listener: TiltListener) -> None:
        """Open the device and start pushing samples to listener."""
        if self._thread is not None:
            raise RuntimeError(f"{self.__class__.__name__} is already subscribed")

        self._open()
        self._listener = listener
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, daemon=True, name=f"tilt-{self.__class__.__name__}"
        )
        self._thread.start()
        log_event("INFO", "Sensor", "Subscribed", source=self.__class__.__name__, interval_ms=self.interval_ms)

    def unsubscribe(self) -> None:
        """Stop pushing samples. Safe to call any number of times."""
        thread = self._thread
        if thread is None:
            return

        self._stop.set()
        if thread is not threading.current_thread():
            thread.join(timeout=max(1.0, 2 * self.interval_ms / 1000.0))
        self._thread = None
        self._listener = None
        self._close()
        log_event("INFO", "Sensor", "Unsubscribed", source=self.__class__.__name__)

    # ------------------------------------------------------------------
    # Worker thread
    # ------------------------------------------------------------------

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                sample = self.read_sample()
                self._consecutive_failures = 0
            except Exception as e:
                sample = None
                self._consecutive_failures += 1
                if self._consecutive_failures == 1 or self._consecutive_failures % self.FAILURE_LOG_EVERY == 0:
                    log_event("WARNING", "Sensor", "Read failed",
                              consecutive=self._consecutive_failures, error=e)

            listener = self._listener
            if sample is not None and listener is not None and not self._stop.is_set():
                try:
                    listener(sample)
                except Exception as e:
                    log_event("ERROR", "Sensor", "Listener error", error=e)

            self._stop.wait(self.interval_ms / 1000.0)

    # ------------------------------------------------------------------
    # Device hooks
    # ------------------------------------------------------------------

    @abstractmethod
    def _open(self) -> None:
        ...

    @abstractmethod
    def read_sample(self) -> Optional[TiltSample]:
        ...

    def _close(self) -> None:
        pass


class SimulatedTiltSource(TiltSource):
    """
    Hand-held device with no hardware attached.

    Each cycle of level_period_s wobbles for the first 60% (amplitude
    swelling up to `wobble` and back down) and then rests close to level
    with a little sensor noise, so the aligned feedback gets exercised.
    Time advances by one interval per sample, so a seeded source is
    fully repeatable.
    """

    WOBBLE_SHARE = 0.6
    REST_NOISE = 0.008

    def __init__(self, interval_ms: int = 100, wobble: float = 0.4,
                 level_period_s: float = 6.0, seed: int | None = None):
        super().__init__(interval_ms)
        self.wobble = wobble
        self.level_period_s = level_period_s
        self._rng = np.random.default_rng(seed)
        self._t = 0.0

    def _open(self) -> None:
        self._t = 0.0

    def read_sample(self) -> TiltSample:
        t = self._t
        self._t += self.interval_ms / 1000.0

        u = (t % self.level_period_s) / self.level_period_s
        if u < self.WOBBLE_SHARE:
            amp = self.wobble * np.sin(np.pi * u / self.WOBBLE_SHARE)
            x = amp * np.sin(2 * np.pi * 0.7 * t) + self._rng.normal(0.0, self.REST_NOISE)
            y = amp * np.cos(2 * np.pi * 0.45 * t) + self._rng.normal(0.0, self.REST_NOISE)
        else:
            x, y = self._rng.normal(0.0, self.REST_NOISE, size=2)

        z = math.sqrt(max(0.0, 1.0 - x * x - y * y))
        return TiltSample(float(x), float(y), z, time.monotonic())


class ICM20948TiltSource(TiltSource):
    """ICM20948 9-DOF IMU over I2C; only the accelerometer is used."""

    def __init__(self, interval_ms: int = 100, address: int = 0x68):
        super().__init__(interval_ms)
        self.address = address
        self._sensor = None

    def _open(self) -> None:
        try:
            import board
            import busio
            import adafruit_icm20x
        except ImportError as e:
            raise SensorUnavailable(f"ICM20948 driver not installed ({e.name})") from e

        try:
            i2c = busio.I2C(board.SCL, board.SDA)
            self._sensor = adafruit_icm20x.ICM20948(i2c, address=self.address)
        except (OSError, ValueError, RuntimeError) as e:
            raise SensorUnavailable(f"ICM20948 not found at I2C 0x{self.address:02x}: {e}") from e
        log_event("INFO", "Sensor", "ICM20948 ready", address=f"0x{self.address:02x}")

    def read_sample(self) -> Optional[TiltSample]:
        if self._sensor is None:
            return None
        ax, ay, az = self._sensor.acceleration
        return TiltSample(
            ax / STANDARD_GRAVITY,
            ay / STANDARD_GRAVITY,
            az / STANDARD_GRAVITY,
            time.monotonic(),
        )

    def _close(self) -> None:
        self._sensor = None


def create_tilt_source(sensor_config: SensorConfig, interval_ms: int) -> TiltSource:
    """Build the source named by sensor_config.source."""
    if sensor_config.source == "icm20948":
        return ICM20948TiltSource(interval_ms, address=sensor_config.i2c_address)
    return SimulatedTiltSource(
        interval_ms,
        wobble=sensor_config.simulated_wobble,
        level_period_s=sensor_config.simulated_level_period_s,
        seed=sensor_config.simulated_seed,
    )
