#!/usr/bin/env python3
"""
Dead Reckoning Replay Application
Feeds a recorded sensor event log through a monitoring session and
compares the dead-reckoned path with the recorded GNSS fixes.
"""

import argparse
import os
import sys
import time
from typing import Optional

import pandas as pd

# Add core modules to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from inertial_nav import Config, MonitoringSession, SerialDispatcher
from inertial_nav.config import configure_logging
from log_reader import read_event_log
from plotting import plot_traces


class ReplaySystem:
    """Replays an event log through the dead reckoning pipeline."""

    def __init__(self, log_path: str, config_file: Optional[str] = None):
        """Initialize the replay system."""

        # Load configuration
        self.config = Config(config_file)
        self.log_path = log_path

        self.session = MonitoringSession.from_config(self.config)
        self.dispatcher = SerialDispatcher(self.session)

        self.start_time = time.time()
        self.event_count = 0

    def run(self, status_every: int = 0) -> bool:
        """
        Replay the whole log.

        Args:
            status_every: Print status after this many events (0 disables)

        Returns:
            True if the session started and the log was replayed
        """
        events = read_event_log(self.log_path)

        if not self.session.start():
            print(f"ERROR: {self.session.error}")
            return False

        self.dispatcher.start()
        try:
            for kind, payload in events:
                self.dispatcher.submit(kind, payload)
                self.event_count += 1

                if status_every and self.event_count % status_every == 0:
                    self.dispatcher.join()
                    self._print_status()

            self.dispatcher.join()
        finally:
            self.dispatcher.stop()
            self.session.stop()

        return True

    def _print_status(self):
        """Print current replay status."""
        status = self.session.status()
        elapsed = time.time() - self.start_time

        print(f"\n=== Dead Reckoning Replay ({self.event_count} events, {elapsed:.1f}s) ===")
        print(f"Position: [{status['position']['x']:.2f}, {status['position']['y']:.2f}] m")
        print(f"Velocity: [{status['velocity']['vx']:.2f}, {status['velocity']['vy']:.2f}] m/s "
              f"(Speed: {status['velocity']['speed']:.2f} m/s)")
        print(f"Heading:  {status['heading']:.1f}°" +
              (" (calibrating)" if status['is_calibrating'] else ""))
        print(f"Path: {status['path_length']} points, GNSS: {status['ground_truth_length']} points")

        if status['drift_m'] is not None:
            print(f"DR drift vs GNSS: {status['drift_m']:.2f} m")
        if status['gps_error']:
            print(status['gps_error'])

    def write_traces(self, output_dir: str) -> dict:
        """
        Write the path and both traces to CSV files.

        Returns:
            Mapping of trace name to written file
        """
        os.makedirs(output_dir, exist_ok=True)

        frames = {
            'dr_path': pd.DataFrame(self.session.path, columns=['x', 'y']),
            'dr_trace': pd.DataFrame(self.session.projected_trace, columns=['lat', 'lon']),
            'gnss_trace': pd.DataFrame(self.session.ground_truth_trace, columns=['lat', 'lon'])
        }

        written = {}
        for name, frame in frames.items():
            path = os.path.join(output_dir, f"{name}.csv")
            frame.to_csv(path, index=False)
            written[name] = path

        return written

    def summary(self) -> dict:
        """Final replay summary."""
        return {
            'events': self.event_count,
            'dispatched': self.dispatcher.dispatched_count,
            'heading': self.session.heading_estimator.get_statistics(),
            'motion': self.session.motion_integrator.get_statistics(),
            'geo': self.session.correlator.get_statistics()
        }


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Replay a recorded sensor log through the DR pipeline")
    parser.add_argument("log", help="CSV event log")
    parser.add_argument("--config", default=None, help="JSON configuration file")
    parser.add_argument("--output", default="replay_output", help="Directory for trace CSV files")
    parser.add_argument("--plot", action="store_true", help="Also save a trace plot")
    parser.add_argument("--status-every", type=int, default=0,
                        help="Print status every N events")
    return parser.parse_args(argv)


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    replay = ReplaySystem(args.log, args.config)
    configure_logging(replay.config)

    print("Dead Reckoning Replay")
    print(f"Log: {args.log}")
    print("=" * 50)

    if not replay.run(status_every=args.status_every):
        return 1

    replay._print_status()
    written = replay.write_traces(args.output)
    for name, path in written.items():
        print(f"Saved {name}: {path}")

    if args.plot:
        image = plot_traces(replay.session.projected_trace,
                            replay.session.ground_truth_trace,
                            os.path.join(args.output, "traces.png"))
        if image:
            print(f"Saved plot: {image}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
