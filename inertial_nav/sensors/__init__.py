"""
Sensor stream processing modules.
"""

from .orientation import OrientationSample, HeadingEstimator, CalibrationSignal
from .motion import MotionSample, MotionIntegrator
from .geo import GeoFix, GeoreferencingCorrelator, GeolocationError

__all__ = ["OrientationSample", "HeadingEstimator", "CalibrationSignal",
           "MotionSample", "MotionIntegrator",
           "GeoFix", "GeoreferencingCorrelator", "GeolocationError"]
