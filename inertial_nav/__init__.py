"""
Inertial dead reckoning with georeferenced comparison.

This package provides platform-independent implementations of:
- Tilt-compensated, low-pass filtered compass heading estimation
- Acceleration integration into a world-frame trajectory
- Projection of the trajectory onto satellite fixes
- Session lifecycle and serialized event dispatch
"""

__version__ = "1.0.0"

from .sensors import (OrientationSample, HeadingEstimator, MotionSample,
                      MotionIntegrator, GeoFix, GeoreferencingCorrelator)
from .tracking import HeadingState, MotionState
from .tracking.session import MonitoringSession, SerialDispatcher
from .config import Config

__all__ = [
    "OrientationSample",
    "HeadingEstimator",
    "MotionSample",
    "MotionIntegrator",
    "GeoFix",
    "GeoreferencingCorrelator",
    "HeadingState",
    "MotionState",
    "MonitoringSession",
    "SerialDispatcher",
    "Config"
]
