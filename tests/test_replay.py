#!/usr/bin/env python3
"""
Tests for the event log replay application.
"""

import logging
import os
import shutil
import sys
import tempfile
import unittest

import pandas as pd

# Add core modules and the replay application to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'platforms', 'replay'))

from log_reader import read_event_log
from plotting import plot_traces
from main import ReplaySystem, main

from inertial_nav.sensors import OrientationSample, MotionSample, GeoFix

COLUMNS = ["type", "t_ms", "ax", "ay", "alpha", "beta", "gamma",
           "compass_heading", "screen_rotation", "lat", "lon", "accuracy", "code"]


def event(kind, t_ms, **values):
    row = dict.fromkeys(COLUMNS)
    row.update(type=kind, t_ms=t_ms, **values)
    return row


def walking_log():
    """Orientation, a short push north-east and two fixes."""
    rows = [
        event("orientation", 0.0, alpha=45.0, beta=1.0, gamma=-1.0),
        event("fix", 0.0, lat=48.137, lon=11.575, accuracy=4.0),
    ]
    t = 0.0
    for i in range(20):
        rows.append(event("motion", t, ax=0.0, ay=1.0 if i < 10 else -1.0))
        t += 50.0
    rows.append(event("fix_error", t, code=3))
    rows.append(event("fix", t, lat=48.13701, lon=11.57501, accuracy=4.0))
    rows.append(event("gyro", t))
    return rows


class TestLogReader(unittest.TestCase):
    """Test event log parsing."""

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.log_path = os.path.join(self.tmpdir, "session.csv")
        pd.DataFrame(walking_log(), columns=COLUMNS).to_csv(self.log_path, index=False)

    def tearDown(self):
        shutil.rmtree(self.tmpdir)

    def test_events_in_file_order(self):
        events = read_event_log(self.log_path)

        # The unknown 'gyro' row is skipped
        self.assertEqual(len(events), 24)
        self.assertEqual(events[0][0], "orientation")
        self.assertIsInstance(events[0][1], OrientationSample)
        self.assertEqual(events[0][1].azimuth, 45.0)
        self.assertIsNone(events[0][1].screen_rotation)
        self.assertIsInstance(events[1][1], GeoFix)
        self.assertIsInstance(events[2][1], MotionSample)
        self.assertEqual(events[-2], ("fix_error", 3))

    def test_empty_cells_make_samples_invalid(self):
        path = os.path.join(self.tmpdir, "partial.csv")
        pd.DataFrame([event("motion", 10.0, ax=1.0)], columns=COLUMNS).to_csv(path, index=False)

        (kind, sample), = read_event_log(path)
        self.assertEqual(kind, "motion")
        self.assertFalse(sample.is_valid)

    def test_missing_log(self):
        with self.assertRaises(FileNotFoundError):
            read_event_log(os.path.join(self.tmpdir, "absent.csv"))

    def test_missing_columns(self):
        path = os.path.join(self.tmpdir, "bad.csv")
        pd.DataFrame({"type": ["motion"]}).to_csv(path, index=False)

        with self.assertRaises(ValueError):
            read_event_log(path)


class TestReplaySystem(unittest.TestCase):
    """Test replaying a log end to end."""

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.log_path = os.path.join(self.tmpdir, "session.csv")
        pd.DataFrame(walking_log(), columns=COLUMNS).to_csv(self.log_path, index=False)

    def tearDown(self):
        shutil.rmtree(self.tmpdir)

    def test_replay_builds_traces(self):
        replay = ReplaySystem(self.log_path)
        self.assertTrue(replay.run())

        session = replay.session
        self.assertFalse(session.is_monitoring)
        self.assertEqual(len(session.path), 20)
        self.assertEqual(len(session.ground_truth_trace), 2)
        self.assertEqual(len(session.projected_trace), 20)
        self.assertIsNone(session.gps_error)

        summary = replay.summary()
        self.assertEqual(summary['events'], 24)
        self.assertEqual(summary['dispatched'], 24)
        self.assertEqual(summary['geo']['fix_count'], 2)

    def test_write_traces(self):
        replay = ReplaySystem(self.log_path)
        replay.run()

        written = replay.write_traces(os.path.join(self.tmpdir, "out"))

        dr_trace = pd.read_csv(written['dr_trace'])
        self.assertEqual(list(dr_trace.columns), ['lat', 'lon'])
        self.assertEqual(len(dr_trace), 20)
        self.assertAlmostEqual(dr_trace['lat'].iloc[0], 48.137)
        self.assertEqual(len(pd.read_csv(written['gnss_trace'])), 2)
        self.assertEqual(len(pd.read_csv(written['dr_path'])), 20)

    def test_plot_traces(self):
        replay = ReplaySystem(self.log_path)
        replay.run()

        image = plot_traces(replay.session.projected_trace,
                            replay.session.ground_truth_trace,
                            os.path.join(self.tmpdir, "traces.png"))

        self.assertTrue(os.path.exists(image))
        self.assertIsNone(plot_traces([], [], os.path.join(self.tmpdir, "empty.png")))

    def test_main_entry_point(self):
        output = os.path.join(self.tmpdir, "cli")
        config_path = os.path.join(self.tmpdir, "config.json")
        with open(config_path, "w") as f:
            f.write('{"enable_logging": false}')

        code = main([self.log_path, "--output", output, "--plot",
                     "--config", config_path, "--status-every", "10"])
        logging.disable(logging.NOTSET)

        self.assertEqual(code, 0)
        for name in ("dr_path.csv", "dr_trace.csv", "gnss_trace.csv", "traces.png"):
            self.assertTrue(os.path.exists(os.path.join(output, name)))


if __name__ == '__main__':
    unittest.main()
