import math
import sys
import threading
import unittest
from unittest import mock

from config import SensorConfig
from sensor_source import (
    ICM20948TiltSource,
    SensorUnavailable,
    SimulatedTiltSource,
    TiltSource,
    create_tilt_source,
)


class FlakySource(TiltSource):
    def __init__(self):
        super().__init__(interval_ms=5)
        self.reads = 0

    def _open(self):
        pass

    def read_sample(self):
        self.reads += 1
        if self.reads % 2:
            raise OSError("i2c glitch")
        return SimulatedTiltSource(seed=1).read_sample()


class TestSimulatedTiltSource(unittest.TestCase):
    def test_seeded_source_is_repeatable(self):
        a = SimulatedTiltSource(seed=3)
        b = SimulatedTiltSource(seed=3)
        for _ in range(20):
            sa, sb = a.read_sample(), b.read_sample()
            self.assertEqual((sa.x, sa.y, sa.z), (sb.x, sb.y, sb.z))

    def test_samples_look_like_gravity(self):
        source = SimulatedTiltSource(seed=5, wobble=0.4)
        for _ in range(200):
            sample = source.read_sample()
            self.assertTrue(all(math.isfinite(v) for v in (sample.x, sample.y, sample.z)))
            self.assertLessEqual(abs(sample.x), 0.5)
            self.assertLessEqual(abs(sample.y), 0.5)
            self.assertGreaterEqual(sample.z, 0.0)

    def test_rest_phase_is_close_to_level(self):
        source = SimulatedTiltSource(interval_ms=100, level_period_s=6.0, seed=11)
        samples = [source.read_sample() for _ in range(60)]
        # samples 37..59 fall in the rest part of the first cycle
        rest = samples[37:60]
        level = [s for s in rest if abs(s.x) < 0.05 and abs(s.y) < 0.05]
        self.assertGreater(len(level), len(rest) * 0.9)

    def test_subscribe_pushes_samples_until_unsubscribed(self):
        source = SimulatedTiltSource(interval_ms=5, seed=2)
        received = []
        got_three = threading.Event()

        def listener(sample):
            received.append(sample)
            if len(received) >= 3:
                got_three.set()

        source.subscribe(listener)
        self.assertTrue(source.subscribed)
        self.assertTrue(got_three.wait(timeout=2.0))

        source.unsubscribe()
        source.unsubscribe()
        count = len(received)
        self.assertFalse(source.subscribed)
        threading.Event().wait(0.05)
        self.assertEqual(len(received), count)

    def test_set_update_interval_changes_cadence(self):
        source = SimulatedTiltSource(interval_ms=100, seed=4)
        source.set_update_interval(20)
        self.assertEqual(source.interval_ms, 20)
        source.read_sample()
        self.assertAlmostEqual(source._t, 0.02, places=12)

    def test_double_subscribe_is_rejected(self):
        source = SimulatedTiltSource(interval_ms=50, seed=2)
        source.subscribe(lambda s: None)
        try:
            with self.assertRaises(RuntimeError):
                source.subscribe(lambda s: None)
        finally:
            source.unsubscribe()

    def test_read_errors_are_logged_not_fatal(self):
        source = FlakySource()
        got_sample = threading.Event()
        with mock.patch("sensor_source.log_event") as log_event_mock:
            source.subscribe(lambda s: got_sample.set())
            self.assertTrue(got_sample.wait(timeout=2.0))
            source.unsubscribe()

        warnings = [c for c in log_event_mock.call_args_list if c[0][0] == "WARNING"]
        self.assertGreaterEqual(len(warnings), 1)
        self.assertEqual(warnings[0][0][2], "Read failed")


class TestICM20948TiltSource(unittest.TestCase):
    def test_missing_driver_is_sensor_unavailable(self):
        source = ICM20948TiltSource()
        with mock.patch.dict(sys.modules, {"board": None}):
            with self.assertRaises(SensorUnavailable):
                source.subscribe(lambda s: None)
        self.assertFalse(source.subscribed)

    def test_acceleration_is_normalized_to_g(self):
        source = ICM20948TiltSource()
        source._sensor = mock.Mock(acceleration=(0.0, 9.80665, -9.80665 / 2))
        sample = source.read_sample()
        self.assertAlmostEqual(sample.x, 0.0)
        self.assertAlmostEqual(sample.y, 1.0)
        self.assertAlmostEqual(sample.z, -0.5)


class TestCreateTiltSource(unittest.TestCase):
    def test_builds_configured_source(self):
        simulated = create_tilt_source(SensorConfig(source="simulated", simulated_seed=1), 50)
        self.assertIsInstance(simulated, SimulatedTiltSource)
        self.assertEqual(simulated.interval_ms, 50)

        hardware = create_tilt_source(SensorConfig(source="icm20948", i2c_address=0x69), 100)
        self.assertIsInstance(hardware, ICM20948TiltSource)
        self.assertEqual(hardware.address, 0x69)


if __name__ == "__main__":
    unittest.main()
