#!/usr/bin/env python3
"""
Unit tests for compass heading estimation.
"""

import unittest
import numpy as np
import sys
import os

# Add core modules to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from inertial_nav.sensors import OrientationSample, HeadingEstimator, CalibrationSignal


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now


def level(azimuth, **kwargs):
    return OrientationSample(azimuth=azimuth, pitch=0.0, roll=0.0, **kwargs)


class TestTiltCompensation(unittest.TestCase):
    """Test tilt compensation."""

    def setUp(self):
        self.estimator = HeadingEstimator()

    def test_near_level_uses_raw_azimuth(self):
        """Tilt at the threshold leaves the azimuth unchanged."""
        self.assertAlmostEqual(self.estimator.tilt_compensate(123.0, 5.0, -5.0), 123.0)

    def test_roll_rotates_heading(self):
        """A pure roll of 30° rotates a north azimuth by 30°."""
        self.assertAlmostEqual(self.estimator.tilt_compensate(0.0, 0.0, 30.0), 30.0, places=6)

    def test_pure_pitch_keeps_north(self):
        self.assertAlmostEqual(self.estimator.tilt_compensate(0.0, 30.0, 0.0), 0.0, places=6)

    def test_result_is_wrapped(self):
        heading = self.estimator.tilt_compensate(0.0, 0.0, -30.0)
        self.assertAlmostEqual(heading, 330.0, places=6)


class TestHeadingEstimator(unittest.TestCase):
    """Test HeadingEstimator updates."""

    def setUp(self):
        self.clock = FakeClock()
        self.estimator = HeadingEstimator(clock=self.clock)

    def test_first_sample_initializes_filter(self):
        """No smoothing is applied to the very first reading."""
        state = self.estimator.update(level(90.0))

        self.assertAlmostEqual(state.filtered_heading, 90.0)
        self.assertAlmostEqual(state.last_value, 90.0)

    def test_low_pass_filter(self):
        """Subsequent readings are exponentially smoothed with alpha 0.2."""
        self.estimator.update(level(90.0))
        state = self.estimator.update(level(100.0))

        self.assertAlmostEqual(state.filtered_heading, 92.0)

    def test_compass_native_heading_is_inverted(self):
        state = self.estimator.update(level(90.0, compass_heading_present=True))
        self.assertAlmostEqual(state.filtered_heading, 270.0)

    def test_compass_inversion_of_north_stays_in_range(self):
        state = self.estimator.update(level(0.0, compass_heading_present=True))
        self.assertEqual(state.filtered_heading, 0.0)

    def test_screen_rotation_offset(self):
        state = self.estimator.update(level(300.0, screen_rotation=90.0))
        self.assertAlmostEqual(state.filtered_heading, 30.0)

    def test_compass_flag_takes_precedence_over_screen_rotation(self):
        state = self.estimator.update(level(90.0, compass_heading_present=True,
                                            screen_rotation=90.0))
        self.assertAlmostEqual(state.filtered_heading, 270.0)

    def test_from_event_falls_back_to_compass_heading(self):
        sample = OrientationSample.from_event(None, 0.0, 0.0, compass_heading=45.0)

        self.assertTrue(sample.compass_heading_present)
        state = self.estimator.update(sample)
        self.assertAlmostEqual(state.filtered_heading, 315.0)

    def test_malformed_samples_are_dropped(self):
        """Non-finite or missing angles leave the state untouched."""
        self.estimator.update(level(45.0))

        bad_samples = [
            level(float('nan')),
            OrientationSample(azimuth=None, pitch=0.0, roll=0.0),
            OrientationSample(azimuth=10.0, pitch=float('inf'), roll=0.0),
            OrientationSample(azimuth=10.0, pitch=0.0, roll=True),
            level(10.0, screen_rotation=float('nan')),
        ]
        for sample in bad_samples:
            state = self.estimator.update(sample)
            self.assertAlmostEqual(state.filtered_heading, 45.0)
            self.assertAlmostEqual(state.last_value, 45.0)

        stats = self.estimator.get_statistics()
        self.assertEqual(stats['sample_count'], 1)
        self.assertEqual(stats['dropped_count'], len(bad_samples))

    def test_heading_always_bounded(self):
        """Heading stays in [0, 360) for arbitrary inputs."""
        rng = np.random.RandomState(7)

        for _ in range(2000):
            sample = OrientationSample(
                azimuth=float(rng.uniform(-1000, 1000)),
                pitch=float(rng.uniform(-180, 180)),
                roll=float(rng.uniform(-90, 90)),
                compass_heading_present=bool(rng.rand() < 0.3),
                screen_rotation=float(rng.choice([-90.0, 0.0, 90.0, 180.0, 270.0]))
            )
            heading = self.estimator.update(sample).filtered_heading
            self.assertGreaterEqual(heading, 0.0)
            self.assertLess(heading, 360.0)

    def test_invalid_alpha_rejected(self):
        with self.assertRaises(ValueError):
            HeadingEstimator({'alpha': 0.0})
        with self.assertRaises(ValueError):
            HeadingEstimator({'alpha': 1.5})


class TestCalibrationSignal(unittest.TestCase):
    """Test interference detection and the calibrating window."""

    def setUp(self):
        self.clock = FakeClock(100.0)
        self.estimator = HeadingEstimator(clock=self.clock)

    def test_calibration_pulse(self):
        """A 25° jump raises the flag for exactly two seconds."""
        self.estimator.update(level(10.0))
        self.assertFalse(self.estimator.is_calibrating)

        # 0.2 * 135 + 0.8 * 10 = 35, a 25° jump
        state = self.estimator.update(level(135.0))
        self.assertAlmostEqual(state.filtered_heading, 35.0)
        self.assertTrue(self.estimator.is_calibrating)

        self.clock.now = 101.999
        self.assertTrue(self.estimator.is_calibrating)

        self.clock.now = 102.0
        self.assertFalse(self.estimator.is_calibrating)

    def test_small_changes_do_not_raise_flag(self):
        self.estimator.update(level(10.0))
        self.estimator.update(level(50.0))  # filtered 18

        self.assertFalse(self.estimator.is_calibrating)
        self.assertEqual(self.estimator.interference_count, 0)

    def test_comparison_is_against_previous_filtered_heading(self):
        """The first sample is compared with the initial 0° heading."""
        self.estimator.update(level(90.0))
        self.assertTrue(self.estimator.is_calibrating)

    def test_retrigger_restarts_window(self):
        signal = CalibrationSignal(2.0, self.clock)
        signal.trigger()

        self.clock.now = 101.5
        signal.trigger()

        self.clock.now = 103.0
        self.assertTrue(signal.active)
        self.assertAlmostEqual(signal.remaining, 0.5)

        self.clock.now = 103.5
        self.assertFalse(signal.active)
        self.assertEqual(signal.remaining, 0.0)

    def test_cancel(self):
        signal = CalibrationSignal(2.0, self.clock)
        signal.trigger()
        signal.cancel()
        self.assertFalse(signal.active)


if __name__ == '__main__':
    unittest.main()
