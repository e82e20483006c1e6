#!/usr/bin/env python3
"""
Basic usage example of the inertial dead reckoning pipeline.

This example walks a simulated phone along a straight line with a
pause in the middle, feeding orientation, motion and GNSS events to a
monitoring session without any hardware.
"""

import sys
import os
import numpy as np

# Add core modules to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from inertial_nav import MonitoringSession, OrientationSample, MotionSample, GeoFix


def simulate_walk(duration=30.0, dt=0.02, seed=0):
    """
    Simulate a device walking north-east with a stop halfway.

    Args:
        duration: Simulation duration in seconds
        dt: Motion sample period in seconds
        seed: Random seed for sensor noise

    Yields:
        (kind, event) tuples in arrival order
    """
    rng = np.random.RandomState(seed)

    # Starting position (Munich)
    start_lat = 48.137
    start_lon = 11.575

    heading_deg = 45.0
    accel_noise = 0.03   # m/s²
    compass_noise = 1.0  # degrees
    gps_noise = 0.00002  # degrees (~2m)

    speed = 0.0
    distance = 0.0
    t = 0.0
    while t < duration:
        # Accelerate, cruise, stop, accelerate, stop
        phase = t % 15.0
        if phase < 2.0:
            accel = 0.6
        elif phase < 8.0:
            accel = 0.0
        elif phase < 10.0:
            accel = -0.6
        else:
            accel = 0.0
        speed = max(0.0, speed + accel * dt)
        distance += speed * dt

        yield "orientation", OrientationSample(
            azimuth=heading_deg + rng.normal(0, compass_noise),
            pitch=rng.normal(0, 2.0),
            roll=rng.normal(0, 2.0)
        )

        yield "motion", MotionSample(
            accel_x=rng.normal(0, accel_noise),
            accel_y=accel + rng.normal(0, accel_noise),
            timestamp=t * 1000.0
        )

        # GPS updates at 1 Hz
        if t % 1.0 < dt:
            north = distance * np.cos(np.radians(heading_deg))
            east = distance * np.sin(np.radians(heading_deg))
            yield "fix", GeoFix(
                latitude=start_lat + north / 111320.0 + rng.normal(0, gps_noise),
                longitude=start_lon + east / (111320.0 * np.cos(np.radians(start_lat)))
                          + rng.normal(0, gps_noise),
                accuracy=3.0,
                timestamp=t * 1000.0
            )

        t += dt


def print_status(session: MonitoringSession, t: float):
    """Print current session status."""
    status = session.status()

    print(f"Time: {t:.1f}s")
    print(f"  Position: [{status['position']['x']:6.2f}, {status['position']['y']:6.2f}] m")
    print(f"  Velocity: [{status['velocity']['vx']:5.2f}, {status['velocity']['vy']:5.2f}] m/s "
          f"(Speed: {status['velocity']['speed']:5.2f} m/s)")
    print(f"  Heading:  {status['heading']:6.1f}°" +
          ("  [calibrating]" if status['is_calibrating'] else ""))
    if status['drift_m'] is not None:
        print(f"  Drift vs GNSS: {status['drift_m']:5.2f} m")
    print()


def main():
    """Main example function."""
    print("Inertial Dead Reckoning - Basic Usage Example")
    print("=" * 50)

    session = MonitoringSession()
    session.start()

    handlers = {
        "orientation": session.handle_orientation,
        "motion": session.handle_motion,
        "fix": session.handle_fix,
    }

    print("Starting simulation (straight walk with stops, 30 seconds)...")

    last_print_time = 0.0
    print_interval = 5.0
    for kind, event in simulate_walk():
        handlers[kind](event)

        if kind == "motion":
            t = event.timestamp / 1000.0
            if t - last_print_time >= print_interval:
                print_status(session, t)
                last_print_time = t

    session.stop()
    print("Simulation completed!")

    # Final statistics
    motion_stats = session.motion_integrator.get_statistics()
    geo_stats = session.correlator.get_statistics()
    print("\n=== Final Statistics ===")
    print(f"Motion samples integrated: {motion_stats['integrated_count']}")
    print(f"Path points: {motion_stats['path_length']}")
    print(f"Learned bias: [{motion_stats['acceleration_bias'][0]:.3f}, "
          f"{motion_stats['acceleration_bias'][1]:.3f}] m/s²")
    print(f"GNSS points kept: {geo_stats['ground_truth_length']} of {geo_stats['fix_count']}")


if __name__ == "__main__":
    main()
