"""
bubblelevel - Level Session
Subscription handle for one visit to the level screen.

start() opens the tilt source and creates fresh mapper state; stop()
unsubscribes and throws that state away. Nothing survives from one
session to the next.
"""

import copy
import threading
import time
from typing import Callable, Optional

from config import Config, validate_config
from geometry import Offset, CENTER
from logging_utils import log_event
from sensor_source import SensorUnavailable, TiltSample, TiltSource, create_tilt_source
from tilt_mapper import TiltMapper


class LevelSession:
    """
    Sensor samples arrive on the source thread through _on_sample(); the
    render loop calls tick() on its own clock. After stop() returns neither
    does any more work.
    """

    def __init__(self, config: Config,
                 source_factory: Callable[..., TiltSource] = create_tilt_source,
                 feedback_callback: Optional[Callable[[TiltSample], None]] = None,
                 status_callback: Optional[Callable[[str, bool], None]] = None):
        """
        Args:
            config: Application configuration (validated at start())
            source_factory: Called with (sensor_config, interval_ms)
            feedback_callback: Called on the sensor thread when feedback should fire
            status_callback: Called with (status_message, is_running)
        """
        self.config = config
        self.source_factory = source_factory
        self.feedback_callback = feedback_callback
        self.status_callback = status_callback

        # Reentrant so a feedback consumer may call stop() from the sensor thread
        self._lock = threading.RLock()
        self._active = False
        self._source: Optional[TiltSource] = None
        self._mapper: Optional[TiltMapper] = None
        self._last_tick: Optional[float] = None
        self._indicator_color = config.display.indicator_color

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def active(self) -> bool:
        return self._active

    def start(self) -> None:
        """Open the sensor subscription. Raises ConfigInvalid or SensorUnavailable."""
        if self._active:
            return

        validate_config(self.config)
        # Snapshot so settings edits cannot change a running session
        tilt_config = copy.deepcopy(self.config.tilt)
        smoother_config = copy.deepcopy(self.config.smoother)

        mapper = TiltMapper(tilt_config, smoother_config, feedback_callback=self._on_feedback)
        source = self.source_factory(self.config.sensor, tilt_config.sample_interval_ms)

        with self._lock:
            self._mapper = mapper
            self._source = source
            self._last_tick = None
            self._active = True

        try:
            source.subscribe(self._on_sample)
        except SensorUnavailable as e:
            self._abandon_start()
            log_event("ERROR", "Session", "Sensor unavailable", error=e)
            self._notify_status(f"Sensor unavailable: {e}", False)
            raise
        except Exception:
            self._abandon_start()
            raise

        if not self._active:
            # stop() ran from a feedback callback before subscribe() returned
            return
        log_event("INFO", "Session", "Started",
                  travel_radius=tilt_config.travel_radius,
                  indicator_radius=tilt_config.indicator_radius,
                  threshold=tilt_config.alignment_threshold,
                  interval_ms=tilt_config.sample_interval_ms)
        self._notify_status("Measuring", True)

    def _abandon_start(self) -> None:
        with self._lock:
            self._active = False
            self._mapper = None
            self._source = None

    def stop(self) -> None:
        """Unsubscribe and discard all session state. Safe to call repeatedly."""
        with self._lock:
            if not self._active:
                return
            self._active = False
            mapper = self._mapper
            self._mapper = None
            self._last_tick = None
            source = self._source
            self._source = None

        if source is not None:
            source.unsubscribe()

        dropped = mapper.dropped_samples if mapper is not None else 0
        log_event("INFO", "Session", "Stopped", dropped_samples=dropped)
        self._notify_status("Stopped", False)

    # ------------------------------------------------------------------
    # Sensor domain
    # ------------------------------------------------------------------

    def _on_sample(self, sample: TiltSample) -> None:
        with self._lock:
            mapper = self._mapper
            if not self._active or mapper is None:
                return
            mapper.process_sample(sample)

    def _on_feedback(self, sample: TiltSample) -> None:
        if self._active and self.feedback_callback is not None:
            self.feedback_callback(sample)

    # ------------------------------------------------------------------
    # Render domain
    # ------------------------------------------------------------------

    def tick(self, now: Optional[float] = None) -> Optional[Offset]:
        """Advance the smoother by the real time since the previous tick.

        Returns the rendered offset, or None when the session is not running.
        """
        mapper = self._mapper
        if not self._active or mapper is None:
            return None

        if now is None:
            now = time.perf_counter()
        last = self._last_tick
        self._last_tick = now
        dt = 0.0 if last is None else now - last
        return mapper.tick(dt)

    # ------------------------------------------------------------------
    # Display output
    # ------------------------------------------------------------------

    @property
    def rendered_offset(self) -> Offset:
        mapper = self._mapper
        return mapper.rendered_offset if mapper is not None else CENTER

    @property
    def latest_components(self) -> tuple[float, float, float]:
        mapper = self._mapper
        return mapper.latest_components if mapper is not None else (0.0, 0.0, 0.0)

    @property
    def aligned(self) -> bool:
        mapper = self._mapper
        return mapper.aligned if mapper is not None else False

    @property
    def indicator_color(self) -> str:
        return self._indicator_color

    def set_indicator_color(self, color: str) -> None:
        """Change the bubble color without touching the sensor subscription."""
        if color not in self.config.display.palette:
            raise ValueError(f"{color!r} is not in the palette")
        self._indicator_color = color
        self.config.display.indicator_color = color
        log_event("INFO", "Session", "Indicator color changed", color=color)

    def _notify_status(self, message: str, running: bool) -> None:
        if self.status_callback:
            try:
                self.status_callback(message, running)
            except Exception as e:
                log_event("ERROR", "Session", "Status callback error", error=e)
